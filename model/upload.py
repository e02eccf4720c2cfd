# model/upload.py
from datetime import datetime
from pydantic import AliasChoices, BaseModel, Field
from util.types import ConfirmReason, SweepOutcome


class PendingRecord(BaseModel):
    """
    One outstanding upload slot: the placeholder exists on Vimeo but nobody
    has confirmed the bytes landed yet.

    Records written by the old Next.js relay ({video_id, created_at}) under
    the same keys still decode; their token comes from the key.
    """

    token: str = ""
    media_id: str = Field(validation_alias=AliasChoices("media_id", "video_id"))
    created_at: datetime
    video_uri: str | None = None


class ConfirmedMarker(BaseModel):
    media_id: str
    token: str
    confirmed_at: datetime
    # Token whose confirmation actually retired the pending record; may differ
    # from `token` when an earlier stale confirm wrote the marker first.
    retired_by: str | None = None


class ConfirmResult(BaseModel):
    ok: bool
    reason: ConfirmReason | None = None


class InitiatedUpload(BaseModel):
    upload_link: str
    media_id: str
    video_uri: str
    video_url: str
    token: str
    privacy: str
    folder_add_ok: bool
    safety_net_registered: bool


class SweepItemResult(BaseModel):
    token: str
    media_id: str
    created_at: datetime
    outcome: SweepOutcome
    error: str | None = None


class SweepReport(BaseModel):
    cutoff: datetime
    found: int
    deleted: int
    results: list[SweepItemResult]
