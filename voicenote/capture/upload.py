from typing import Any, Dict

import httpx

from voicenote.capture.controller import CaptureArtifact, CaptureController
from voicenote.util.errors import UploadFailed
from voicenote.util.logger import get_logger

logger = get_logger(__name__)


async def upload_artifact(
    artifact: CaptureArtifact, base_url: str, user_id: str, timeout: float = 300
) -> Dict[str, Any]:
    """
    POST the artifact to the processing endpoint and return the created note.

    Raises:
        UploadFailed: the server answered with an error; carries its message
    """
    filename, payload, content_type = artifact.as_upload()
    url = f"{base_url.rstrip('/')}/api/notes/process-audio"

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            resp = await client.post(
                url,
                headers={"x-user-id": user_id},
                files={"audio": (filename, payload, content_type)},
            )
    except httpx.HTTPError as e:
        logger.error(f"Upload to {url} failed: {e}")
        raise UploadFailed("Could not reach the server")

    if resp.status_code != 200:
        try:
            message = resp.json().get("error")
        except ValueError:
            message = None
        logger.error(f"Upload rejected: status={resp.status_code} body={resp.text[:200]}")
        raise UploadFailed(message, status_code=resp.status_code)

    return resp.json()


async def submit_capture(
    controller: CaptureController, base_url: str, user_id: str
) -> Dict[str, Any]:
    """
    Stop the capture, hand the artifact to the server and, once the note is
    created, reset the controller. On failure the capture state is kept so
    the user can retry.
    """
    artifact = await controller.stop()
    if artifact is None or artifact.size == 0:
        raise UploadFailed("Nothing was recorded", status_code=400)

    note = await upload_artifact(artifact, base_url, user_id)
    controller.reset()
    return note
