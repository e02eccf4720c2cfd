# controller/controller_dependencies.py
import hmac
from fastapi import Depends, Header
from fastapi_limiter.depends import RateLimiter
from config.settings import settings
from core.vimeo_client import VimeoClient
from repository.pending_upload_repository import PendingUploadRepository
from service.confirmation_service import ConfirmationService
from service.sweep_service import SweepService
from service.upload_service import UploadService
from util.enums import ErrorMessage
from util.errors import AppError


def get_pending_repository() -> PendingUploadRepository:
    return PendingUploadRepository()


def get_vimeo_client() -> VimeoClient:
    return VimeoClient()


def get_upload_service(
    pending: PendingUploadRepository = Depends(get_pending_repository),
    vimeo: VimeoClient = Depends(get_vimeo_client),
) -> UploadService:
    return UploadService(pending, vimeo)


def get_confirmation_service(
    pending: PendingUploadRepository = Depends(get_pending_repository),
) -> ConfirmationService:
    return ConfirmationService(pending)


def get_sweep_service(
    pending: PendingUploadRepository = Depends(get_pending_repository),
    vimeo: VimeoClient = Depends(get_vimeo_client),
) -> SweepService:
    return SweepService(pending, vimeo)


def rate_limits() -> list:
    """Router-level limiter; empty when RATE_LIMIT_ENABLED is off."""
    if not settings.RATE_LIMIT_ENABLED:
        return []
    return [
        Depends(
            RateLimiter(
                times=settings.RATE_LIMIT_TIMES, seconds=settings.RATE_LIMIT_SECONDS
            )
        )
    ]


async def require_cron_secret(
    authorization: str | None = Header(default=None),
    x_cleanup_secret: str | None = Header(default=None),
) -> None:
    # Scheduler sends "Authorization: Bearer <CRON_SECRET>"; old jobs send x-cleanup-secret.
    secret = settings.CRON_SECRET
    if not secret:
        return
    # Bytes, not str: compare_digest rejects non-ASCII str with TypeError.
    bearer = f"Bearer {secret}".encode()
    if authorization and hmac.compare_digest(authorization.encode(), bearer):
        return
    if x_cleanup_secret and hmac.compare_digest(
        x_cleanup_secret.encode(), secret.encode()
    ):
        return
    raise AppError.of(ErrorMessage.UNAUTHORIZED)
