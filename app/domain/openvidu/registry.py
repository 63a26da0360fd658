"""In-memory registry of known OpenVidu sessions and active recordings.

The registry is owned by one ``OpenViduService`` and injected into every
operation class; there is no module level instance. It never performs I/O.

Concurrency: all access happens on the event loop thread, so single dict
operations are atomic. Multi-step updates that span a remote call must hold
``lock(session_id)``, which serializes work on one session while leaving
other sessions free.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from .openvidu_models import Recording, Session


class _SessionLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        # holder plus waiters
        self.users = 0


class SessionRegistry:
    def __init__(self) -> None:
        # dicts keep insertion order, which get_active_sessions relies on
        self._sessions: dict[str, Session] = {}
        self._recordings: dict[str, Recording] = {}
        self._locks: dict[str, _SessionLock] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    # ==================== LOCKS ====================

    @asynccontextmanager
    async def lock(self, session_id: str) -> AsyncIterator[None]:
        """Hold the lock guarding ``session_id``.

        The entry exists only while someone holds or waits for it, so locks
        taken for unknown or evicted ids do not accumulate.
        """
        entry = self._locks.get(session_id)
        if entry is None:
            entry = self._locks[session_id] = _SessionLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[session_id]

    # ==================== SESSIONS ====================

    def get(self, session_id: str) -> Session | None:
        """Return the cached session itself (not a copy). Callers outside the
        domain layer must receive ``model_copy(deep=True)`` views."""
        return self._sessions.get(session_id)

    def put(self, session: Session) -> None:
        self._sessions[session.session_id] = session

    def pop(self, session_id: str) -> Session | None:
        session = self._sessions.pop(session_id, None)
        for recording_id, recording in list(self._recordings.items()):
            if recording.session_id == session_id:
                del self._recordings[recording_id]
        return session

    def sessions(self) -> list[Session]:
        return list(self._sessions.values())

    def session_ids(self) -> list[str]:
        return list(self._sessions)

    # ==================== RECORDINGS ====================

    def get_recording(self, recording_id: str) -> Recording | None:
        return self._recordings.get(recording_id)

    def recordings(self) -> list[Recording]:
        return list(self._recordings.values())

    def track_recording(self, recording: Recording) -> None:
        """Cache ``recording`` while it is active, forget it otherwise, and keep
        the owning session's ``recording`` flag in sync.

        Recordings of sessions that are not cached are never tracked.
        """
        if recording.status.is_active and recording.session_id in self._sessions:
            self._recordings[recording.id] = recording
        else:
            self._recordings.pop(recording.id, None)
        self._refresh_recording_flag(recording.session_id)

    def forget_recording(self, recording_id: str) -> Recording | None:
        recording = self._recordings.pop(recording_id, None)
        if recording is not None:
            self._refresh_recording_flag(recording.session_id)
        return recording

    def _refresh_recording_flag(self, session_id: str) -> None:
        session = self._sessions.get(session_id)
        if session is None:
            return
        session.recording = any(
            recording.session_id == session_id for recording in self._recordings.values()
        )
