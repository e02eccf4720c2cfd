# controller/upload_controller.py
from fastapi import APIRouter, Depends, status
from model.api import (
    ConfirmUploadRequest,
    ConfirmUploadResponse,
    CreateUploadRequest,
    CreateUploadResponse,
)
from service.confirmation_service import ConfirmationService
from service.upload_service import UploadService
from util.constants import InternalURIs
from controller.controller_dependencies import (
    get_confirmation_service,
    get_upload_service,
    rate_limits,
)

upload_router = APIRouter(dependencies=rate_limits())


@upload_router.post(
    InternalURIs.CREATE_UPLOAD,
    response_model=CreateUploadResponse,
    status_code=status.HTTP_200_OK,
)
async def create_upload(
    payload: CreateUploadRequest,
    service: UploadService = Depends(get_upload_service),
) -> CreateUploadResponse:
    upload = await service.initiate(
        payload.sizeBytes, payload.displayName, filename=payload.filename
    )
    return CreateUploadResponse.from_domain(upload)


@upload_router.post(InternalURIs.CONFIRM_UPLOAD, response_model=ConfirmUploadResponse)
async def confirm_upload(
    payload: ConfirmUploadRequest,
    service: ConfirmationService = Depends(get_confirmation_service),
) -> ConfirmUploadResponse:
    # NOT_FOUND / MEDIA_MISMATCH are answers, not transport errors.
    result = await service.confirm(payload.token, payload.mediaId, payload.confirmedAt)
    return ConfirmUploadResponse.from_domain(result)
