# service/confirmation_service.py
import logging
from datetime import datetime
from model.upload import ConfirmResult
from repository.pending_upload_repository import PendingUploadRepository
from util.enums import ErrorMessage
from util.errors import ValidationError
from util.functions import utc_now

logger = logging.getLogger(__name__)


class ConfirmationService:
    """
    The client calls this once the tus upload finished.
    One store attempt, no retries; StoreError propagates to the caller.
    """

    def __init__(self, pending: PendingUploadRepository) -> None:
        self._pending = pending

    async def confirm(
        self,
        token: str | None,
        media_id: str | None,
        confirmed_at: datetime | None = None,
    ) -> ConfirmResult:
        token = (token or "").strip()
        media_id = (media_id or "").strip()
        if not token or not media_id:
            raise ValidationError.of(ErrorMessage.MISSING_IDS)

        result = await self._pending.confirm(token, media_id, confirmed_at or utc_now())
        logger.info(
            "confirm.done media=%s ok=%s reason=%s", media_id, result.ok, result.reason
        )
        return result
