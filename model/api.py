# model/api.py
from datetime import datetime
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from model.upload import ConfirmResult, InitiatedUpload, SweepItemResult, SweepReport
from util.functions import iso
from util.types import ConfirmReason, SweepOutcome


class CreateUploadRequest(BaseModel):
    # Older embeds still post {size, name, filename}.
    model_config = ConfigDict(populate_by_name=True)

    sizeBytes: int | None = Field(
        default=None, validation_alias=AliasChoices("sizeBytes", "size")
    )
    displayName: str | None = Field(
        default=None, validation_alias=AliasChoices("displayName", "name")
    )
    filename: str | None = None


class CreateUploadResponse(BaseModel):
    uploadLink: str
    mediaId: str
    videoUri: str
    videoUrl: str
    token: str
    privacy: str
    folderAddOk: bool
    safetyNetRegistered: bool

    @classmethod
    def from_domain(cls, upload: InitiatedUpload) -> "CreateUploadResponse":
        return cls(
            uploadLink=upload.upload_link,
            mediaId=upload.media_id,
            videoUri=upload.video_uri,
            videoUrl=upload.video_url,
            token=upload.token,
            privacy=upload.privacy,
            folderAddOk=upload.folder_add_ok,
            safetyNetRegistered=upload.safety_net_registered,
        )


class ConfirmUploadRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("token", "pendingToken", "pending_token"),
    )
    mediaId: str | None = Field(
        default=None, validation_alias=AliasChoices("mediaId", "videoId", "video_id")
    )
    confirmedAt: datetime | None = Field(
        default=None, validation_alias=AliasChoices("confirmedAt", "confirmed_at")
    )


class ConfirmUploadResponse(BaseModel):
    ok: bool
    reason: ConfirmReason | None = None

    @classmethod
    def from_domain(cls, result: ConfirmResult) -> "ConfirmUploadResponse":
        return cls(ok=result.ok, reason=result.reason)


class SweepItemResponse(BaseModel):
    token: str
    mediaId: str
    createdAt: str
    outcome: SweepOutcome
    error: str | None = None

    @classmethod
    def from_domain(cls, item: SweepItemResult) -> "SweepItemResponse":
        return cls(
            token=item.token,
            mediaId=item.media_id,
            createdAt=iso(item.created_at),
            outcome=item.outcome,
            error=item.error,
        )


class CleanupResponse(BaseModel):
    ok: bool = True
    cutoff: str
    requestedMinutes: float
    requestedLimit: int
    found: int
    deleted: int
    results: list[SweepItemResponse]

    @classmethod
    def from_domain(
        cls, report: SweepReport, *, minutes: float, limit: int
    ) -> "CleanupResponse":
        return cls(
            cutoff=iso(report.cutoff),
            requestedMinutes=minutes,
            requestedLimit=limit,
            found=report.found,
            deleted=report.deleted,
            results=[SweepItemResponse.from_domain(r) for r in report.results],
        )


class WhoAmIResponse(BaseModel):
    name: str | None = None
    uri: str | None = None
    link: str | None = None
    account: str | None = None
