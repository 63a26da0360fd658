"""Recording operations."""

from loguru import logger

from ._base import BaseService
from .openvidu_models import Recording, RecordingProperties


class RecordingOperations(BaseService):
    """Recording operations.

    Recordings are not owned by the cache the way sessions are: every call
    goes to the server. The registry only tracks which recordings of cached
    sessions are active so that a session's ``recording`` flag stays accurate
    between fetches.
    """

    async def _track(self, recording: Recording) -> None:
        if recording.session_id not in self.registry:
            self.registry.forget_recording(recording.id)
            return
        async with self.registry.lock(recording.session_id):
            self.registry.track_recording(recording)

    async def start_recording(self, props: RecordingProperties) -> Recording:
        recording = await self.client.start_recording(props)
        await self._track(recording)

        logger.info(
            f"Started recording {recording.id} of session {recording.session_id} "
            f"({recording.output_mode})"
        )
        return recording.model_copy()

    async def stop_recording(self, recording_id: str) -> Recording:
        recording = await self.client.stop_recording(recording_id)
        await self._track(recording)

        logger.info(f"Stopped recording {recording_id} ({recording.status})")
        return recording.model_copy()

    async def get_recording(self, recording_id: str) -> Recording:
        recording = await self.client.get_recording(recording_id)
        if self.registry.get_recording(recording_id) is not None:
            await self._track(recording)
        return recording

    async def list_recordings(self) -> list[Recording]:
        return await self.client.list_recordings()

    async def delete_recording(self, recording_id: str) -> bool:
        await self.client.delete_recording(recording_id)
        self.registry.forget_recording(recording_id)

        logger.info(f"Deleted recording {recording_id}")
        return True
