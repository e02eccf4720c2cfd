# controller/cleanup_controller.py
from fastapi import APIRouter, Depends, Query
from core.vimeo_client import VimeoClient
from model.api import CleanupResponse, WhoAmIResponse
from service.sweep_service import SweepService, parse_window
from util.constants import InternalURIs
from controller.controller_dependencies import (
    get_sweep_service,
    get_vimeo_client,
    require_cron_secret,
)

cleanup_router = APIRouter(dependencies=[Depends(require_cron_secret)])


# GET is what the cron scheduler calls; POST for manual runs.
@cleanup_router.api_route(
    InternalURIs.CLEANUP, methods=["GET", "POST"], response_model=CleanupResponse
)
async def cleanup(
    minutes: str | None = Query(default=None),
    hours: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    service: SweepService = Depends(get_sweep_service),
) -> CleanupResponse:
    window, batch = parse_window(minutes, hours, limit)
    report = await service.sweep_older_than(window, batch)
    return CleanupResponse.from_domain(report, minutes=window, limit=batch)


@cleanup_router.get(InternalURIs.WHOAMI, response_model=WhoAmIResponse)
async def whoami(vimeo: VimeoClient = Depends(get_vimeo_client)) -> WhoAmIResponse:
    account = await vimeo.whoami()
    return WhoAmIResponse(
        name=account.name, uri=account.uri, link=account.link, account=account.account
    )
