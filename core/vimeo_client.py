# core/vimeo_client.py
import logging
from typing import Any, Dict, Optional
import httpx
from fastapi import status
from config.settings import settings
from core.entities import CreatedVideo, VimeoAccount
from util.constants import ExternalURIs
from util.enums import ErrorMessage
from util.errors import RemoteHostError
from util.functions import clip, video_id_from_uri
from util.timing import timed

logger = logging.getLogger(__name__)


class VimeoClient:
    """
    Thin async wrapper over the four Vimeo calls the relay needs.
    Every call has its own timeout; nothing here retries.
    """

    def __init__(
        self,
        token: str = settings.VIMEO_TOKEN,
        *,
        api_url: str = settings.VIMEO_API_URL,
        web_url: str = settings.VIMEO_WEB_URL,
        folder_id: str = settings.VIMEO_FOLDER_ID,
        privacy: str = settings.VIMEO_DEFAULT_PRIVACY,
        timeout: float = settings.VIMEO_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._token = token
        self._api_url = api_url.rstrip("/")
        self._web_url = web_url.rstrip("/")
        self._folder_id = folder_id
        self.privacy = privacy
        self._timeout = httpx.Timeout(timeout, connect=5.0)
        self._transport = transport

    def _headers(self, *, json_body: bool = False) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._token}",
            "Accept": settings.VIMEO_ACCEPT,
        }
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._api_url, timeout=self._timeout, transport=self._transport
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            async with self._http() as client:
                return await client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            logger.error("vimeo.request_error method=%s err=%s", method, type(e).__name__)
            raise RemoteHostError.of(
                ErrorMessage.VIMEO_UNAVAILABLE, type(e).__name__
            ) from e

    async def create_video(self, size: int, name: str) -> CreatedVideo:
        payload = {
            "upload": {"approach": "tus", "size": size},
            "name": name,
            "privacy": {"view": self.privacy},
        }
        with timed(logger, "vimeo.create", size=size):
            res = await self._request(
                "POST",
                ExternalURIs.ME_VIDEOS,
                headers=self._headers(json_body=True),
                json=payload,
            )

        if res.status_code // 100 != 2:
            logger.error("vimeo.create.bad_status status=%d", res.status_code)
            err = RemoteHostError.of(ErrorMessage.VIMEO_CREATE_FAILED, clip(res.text))
            err.upstream_status = res.status_code
            raise err

        try:
            data = res.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            data = {}

        upload_link = (data.get("upload") or {}).get("upload_link")
        video_uri = data.get("uri")
        video_id = video_id_from_uri(video_uri)
        if not upload_link or not video_uri or not video_id:
            logger.error(
                "vimeo.create.incomplete link=%s uri=%s id=%s",
                bool(upload_link),
                bool(video_uri),
                bool(video_id),
            )
            raise RemoteHostError.of(ErrorMessage.VIMEO_BAD_RESPONSE)

        logger.info("vimeo.create.ok video=%s", video_id)
        return CreatedVideo(
            upload_link=str(upload_link),
            video_uri=str(video_uri),
            video_id=video_id,
            video_url=f"{self._web_url}/{video_id}",
        )

    async def add_to_folder(self, video_id: str) -> bool:
        """Best effort. Returns False instead of raising."""
        if not self._folder_id:
            return False
        path = ExternalURIs.FOLDER_VIDEO.format(
            folder_id=self._folder_id, video_id=video_id
        )
        try:
            res = await self._request("PUT", path, headers=self._headers())
        except RemoteHostError:
            return False
        ok = res.status_code // 100 == 2
        if not ok:
            logger.warning(
                "vimeo.folder.add.bad_status video=%s status=%d",
                video_id,
                res.status_code,
            )
        return ok

    async def delete_video(self, video_id: str) -> None:
        """
        Raises RemoteHostError unless the video is gone afterwards.
        404 counts as gone: two sweeps may delete the same video.
        """
        path = ExternalURIs.VIDEO.format(video_id=video_id)
        with timed(logger, "vimeo.delete", video=video_id):
            res = await self._request("DELETE", path, headers=self._headers())

        if res.status_code == status.HTTP_404_NOT_FOUND:
            logger.info("vimeo.delete.already_gone video=%s", video_id)
            return
        if res.status_code // 100 != 2:
            logger.error(
                "vimeo.delete.bad_status video=%s status=%d", video_id, res.status_code
            )
            err = RemoteHostError.of(
                ErrorMessage.VIMEO_DELETE_FAILED, f"{res.status_code} {clip(res.text)}"
            )
            err.upstream_status = res.status_code
            raise err

    async def whoami(self) -> VimeoAccount:
        res = await self._request("GET", ExternalURIs.ME, headers=self._headers())
        if res.status_code // 100 != 2:
            logger.error("vimeo.whoami.bad_status status=%d", res.status_code)
            err = RemoteHostError.of(ErrorMessage.VIMEO_UNAVAILABLE, str(res.status_code))
            err.upstream_status = res.status_code
            raise err
        try:
            data = res.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            logger.error("vimeo.whoami.bad_body")
            raise RemoteHostError.of(ErrorMessage.VIMEO_BAD_RESPONSE)
        return VimeoAccount(
            name=data.get("name"),
            uri=data.get("uri"),
            link=data.get("link"),
            account=data.get("account"),
        )
