# service/upload_service.py
import logging
import secrets
from core.vimeo_client import VimeoClient
from model.upload import InitiatedUpload
from repository.pending_upload_repository import PendingUploadRepository
from util.constants import DEFAULT_VIDEO_NAME
from util.enums import ErrorMessage
from util.errors import StoreError, ValidationError
from util.functions import utc_now

logger = logging.getLogger(__name__)

TOKEN_BYTES = 24


class UploadService:
    def __init__(self, pending: PendingUploadRepository, vimeo: VimeoClient) -> None:
        self._pending = pending
        self._vimeo = vimeo

    async def initiate(
        self,
        size_bytes: int | None,
        display_name: str | None = None,
        *,
        filename: str | None = None,
    ) -> InitiatedUpload:
        """
        Create the Vimeo placeholder, then register a pending record for it.

        - Host failure raises RemoteHostError and nothing is stored.
        - Store failure is logged only: the link is still usable, but the
          sweeper will never reclaim this video (safety_net_registered=False).
        """
        if (
            size_bytes is None
            or isinstance(size_bytes, bool)
            or not isinstance(size_bytes, int)
            or size_bytes <= 0
        ):
            raise ValidationError.of(ErrorMessage.INVALID_SIZE)

        name = (
            (display_name or "").strip()
            or (filename or "").strip()
            or DEFAULT_VIDEO_NAME
        )

        video = await self._vimeo.create_video(size_bytes, name)
        folder_add_ok = await self._vimeo.add_to_folder(video.video_id)

        token = secrets.token_hex(TOKEN_BYTES)
        registered = False
        try:
            registered = await self._pending.create(
                token, video.video_id, utc_now(), video_uri=video.video_uri
            )
        except StoreError:
            logger.warning("upload.register.error video=%s cleanup=disabled", video.video_id)

        logger.info(
            "upload.create.ok video=%s bytes=%d folder=%s registered=%s",
            video.video_id,
            size_bytes,
            folder_add_ok,
            registered,
        )
        return InitiatedUpload(
            upload_link=video.upload_link,
            media_id=video.video_id,
            video_uri=video.video_uri,
            video_url=video.video_url,
            token=token,
            privacy=self._vimeo.privacy,
            folder_add_ok=folder_add_ok,
            safety_net_registered=registered,
        )
