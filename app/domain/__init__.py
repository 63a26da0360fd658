"""
Domain layer containing core business logic and domain services.

Submodules:
- openvidu: OpenVidu session, connection and recording orchestration.
"""
