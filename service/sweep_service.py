# service/sweep_service.py
import asyncio
import logging
import math
from datetime import datetime, timedelta
from config.settings import settings
from core.vimeo_client import VimeoClient
from model.upload import PendingRecord, SweepItemResult, SweepReport
from repository.pending_upload_repository import PendingUploadRepository
from util.enums import ErrorMessage
from util.errors import RemoteHostError, StoreError, ValidationError
from util.functions import utc_now
from util.timing import timed

logger = logging.getLogger(__name__)


def _positive_number(raw: str, error: ErrorMessage) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ValidationError.of(error) from None
    if not math.isfinite(value) or value <= 0:
        raise ValidationError.of(error)
    return value


def parse_window(
    minutes: str | None,
    hours: str | None,
    limit: str | None,
    *,
    default_minutes: float = settings.SWEEP_DEFAULT_MINUTES,
    default_limit: int = settings.SWEEP_DEFAULT_LIMIT,
) -> tuple[float, int]:
    """
    Resolve the staleness threshold and batch size from query params.
    `minutes` wins over the older `hours`; both must be positive, and the
    limit must be a positive whole number.
    """
    if minutes is not None:
        window = _positive_number(minutes, ErrorMessage.INVALID_WINDOW)
    elif hours is not None:
        window = _positive_number(hours, ErrorMessage.INVALID_WINDOW) * 60
    else:
        window = float(default_minutes)

    if limit is None:
        return window, int(default_limit)
    n = _positive_number(limit, ErrorMessage.INVALID_LIMIT)
    if not n.is_integer():
        raise ValidationError.of(ErrorMessage.INVALID_LIMIT)
    return window, int(n)


class SweepService:
    """
    Reclaims abandoned uploads: scan stale pending records, delete the Vimeo
    placeholder, retire the record only once the video is gone.

    A failed delete leaves the record in place, so the next sweep retries it
    in its original created_at order. Overlapping sweeps are fine: retire is
    idempotent and deleting an already-gone video counts as success.

    The confirmed marker is re-checked right before each delete. A
    confirmation landing after that check but before the delete can still
    lose its video; the window is narrowed, not closed.
    """

    def __init__(
        self,
        pending: PendingUploadRepository,
        vimeo: VimeoClient,
        *,
        concurrency: int = settings.SWEEP_CONCURRENCY,
        pending_ttl_seconds: int = settings.UPLOAD_PENDING_TTL_SECONDS,
    ) -> None:
        self._pending = pending
        self._vimeo = vimeo
        self._concurrency = max(1, int(concurrency))
        self._pending_ttl = int(pending_ttl_seconds)

    async def sweep_older_than(self, minutes: float, limit: int) -> SweepReport:
        if minutes * 60 >= self._pending_ttl:
            # Records this old may already be gone from Redis with their video
            # still on Vimeo.
            logger.warning(
                "sweep.window.exceeds_ttl minutes=%s ttl_seconds=%d",
                minutes,
                self._pending_ttl,
            )
        try:
            cutoff = utc_now() - timedelta(minutes=minutes)
        except OverflowError:
            # Window reaches past the earliest representable datetime.
            raise ValidationError.of(ErrorMessage.INVALID_WINDOW) from None
        return await self.sweep(cutoff, limit)

    async def sweep(self, cutoff: datetime, limit: int) -> SweepReport:
        if limit <= 0:
            raise ValidationError.of(ErrorMessage.INVALID_LIMIT)

        with timed(logger, "sweep", limit=limit):
            records = await self._pending.scan_expired(cutoff, limit)
            sem = asyncio.Semaphore(self._concurrency)

            async def _guarded(rec: PendingRecord) -> SweepItemResult:
                async with sem:
                    try:
                        return await self._process(rec)
                    except Exception as e:
                        # One bad item must not sink the batch.
                        logger.exception("sweep.item.unexpected token=%s", rec.token)
                        return self._result(rec, "deletion_failed", type(e).__name__)

            results = list(await asyncio.gather(*(_guarded(r) for r in records)))

        deleted = sum(1 for r in results if r.outcome == "deleted")
        failed = sum(1 for r in results if r.outcome == "deletion_failed")
        logger.info(
            "sweep.done found=%d deleted=%d failed=%d", len(records), deleted, failed
        )
        return SweepReport(
            cutoff=cutoff, found=len(records), deleted=deleted, results=results
        )

    @staticmethod
    def _result(
        rec: PendingRecord, outcome: str, error: str | None = None
    ) -> SweepItemResult:
        return SweepItemResult(
            token=rec.token,
            media_id=rec.media_id,
            created_at=rec.created_at,
            outcome=outcome,
            error=error,
        )

    async def _process(self, rec: PendingRecord) -> SweepItemResult:
        if not rec.media_id:
            # Nothing to delete on Vimeo; keeping it would block the batch head.
            logger.warning("sweep.item.malformed token=%s", rec.token)
            try:
                await self._pending.retire(rec.token)
            except StoreError as e:
                return self._result(rec, "malformed", e.detail)
            return self._result(rec, "malformed")

        try:
            if await self._pending.is_confirmed(rec.media_id):
                await self._pending.retire(rec.token)
                logger.info(
                    "sweep.item.confirmed token=%s media=%s", rec.token, rec.media_id
                )
                return self._result(rec, "skipped_already_confirmed")
        except StoreError as e:
            # Unknown confirmation state: never delete on a guess.
            return self._result(rec, "deletion_failed", e.detail)

        try:
            await self._vimeo.delete_video(rec.media_id)
        except RemoteHostError as e:
            logger.warning(
                "sweep.item.delete_failed token=%s media=%s", rec.token, rec.media_id
            )
            return self._result(rec, "deletion_failed", e.detail)

        try:
            await self._pending.retire(rec.token)
        except StoreError as e:
            # Video is gone; the next sweep repeats the idempotent delete+retire.
            logger.warning("sweep.item.retire_failed token=%s", rec.token)
            return self._result(rec, "deleted", e.detail)

        logger.info("sweep.item.deleted token=%s media=%s", rec.token, rec.media_id)
        return self._result(rec, "deleted")
