"""
OpenVidu control-plane domain logic.

Includes:
- builders: option map validation.
- registry: lock-guarded cache of sessions and active recordings.
- openvidu_domain: the OpenViduService facade over sessions, connections and recordings.
- webhook_dispatcher: in-order per-session fan-out of server webhooks.
"""
