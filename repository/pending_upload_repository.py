# repository/pending_upload_repository.py
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional
from pydantic import ValidationError as ModelValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError
from config.cache import get_redis
from config.settings import settings
from model.upload import ConfirmResult, ConfirmedMarker, PendingRecord
from repository.namespaces import CONFIRMED, PENDING, PENDING_INDEX
from util.enums import ErrorMessage
from util.errors import StoreError
from util.functions import as_utc, from_epoch_ms, to_epoch_ms

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(op: str) -> Iterator[None]:
    try:
        yield
    except RedisError as e:
        logger.error("store.%s.error err=%s", op, type(e).__name__)
        raise StoreError(ErrorMessage.STORE_UNAVAILABLE.value.message) from e


def _text(v: bytes | str) -> str:
    return v.decode("utf-8") if isinstance(v, (bytes, bytearray)) else str(v)


class PendingUploadRepository:
    """
    Redis-backed tracker for upload slots handed out but not yet confirmed.

    Layout:
    - PENDING:<token>      JSON PendingRecord, safety-net TTL
    - CONFIRMED:<mediaId>  JSON ConfirmedMarker, long TTL, first writer wins
    - PENDING_INDEX        zset token -> created_at (epoch ms)

    Cross-key sequences are not atomic. Every sequence that removes state
    deletes the record before the index entry, so a half-finished one leaves
    an orphan index entry (pruned by the next scan) and never a record the
    sweeper cannot see.
    """

    def __init__(
        self,
        redis: Optional[Redis] = None,
        ttl_seconds: int = settings.UPLOAD_PENDING_TTL_SECONDS,
        confirmed_ttl_seconds: int = settings.CONFIRMED_TTL_SECONDS,
    ) -> None:
        self._redis = redis
        self._ttl = int(ttl_seconds)
        self._confirmed_ttl = int(confirmed_ttl_seconds)

    async def _client(self) -> Redis:
        if self._redis is not None:
            return self._redis
        return await get_redis()

    @staticmethod
    def _pending_key(token: str) -> str:
        return f"{PENDING}:{token}"

    @staticmethod
    def _confirmed_key(media_id: str) -> str:
        return f"{CONFIRMED}:{media_id}"

    @staticmethod
    def _decode(token: str, raw: bytes | str) -> Optional[PendingRecord]:
        try:
            rec = PendingRecord.model_validate_json(raw)
        except ModelValidationError:
            logger.warning("store.record.malformed token=%s", token)
            return None
        # The key is authoritative for the token.
        return rec.model_copy(update={"token": token})

    @staticmethod
    def _decode_marker(raw: bytes | str | None) -> Optional[ConfirmedMarker]:
        if raw is None:
            return None
        try:
            return ConfirmedMarker.model_validate_json(raw)
        except ModelValidationError:
            return None

    async def _drop(self, r: Redis, token: str) -> None:
        await r.delete(self._pending_key(token))
        await r.zrem(PENDING_INDEX, token)

    # ---------------- Create / read ----------------

    async def create(
        self,
        token: str,
        media_id: str,
        created_at: datetime,
        *,
        video_uri: str | None = None,
    ) -> bool:
        """
        Write the record, then index it.
        Returns False when only the index write failed: the record exists but
        only the safety-net TTL will reclaim it.
        """
        rec = PendingRecord(
            token=token,
            media_id=media_id,
            created_at=as_utc(created_at),
            video_uri=video_uri,
        )
        with _store_errors("create"):
            r = await self._client()
            payload = rec.model_dump_json(exclude_none=True).encode("utf-8")
            await r.set(self._pending_key(token), payload, ex=self._ttl)

        try:
            await r.zadd(PENDING_INDEX, {token: to_epoch_ms(rec.created_at)})
        except RedisError as e:
            logger.warning(
                "store.index.add.error token=%s media=%s err=%s",
                token,
                media_id,
                type(e).__name__,
            )
            return False
        return True

    async def read(self, token: str) -> Optional[PendingRecord]:
        if not token:
            return None
        with _store_errors("read"):
            r = await self._client()
            raw = await r.get(self._pending_key(token))
        if raw is None:
            return None
        return self._decode(token, raw)

    async def is_confirmed(self, media_id: str) -> bool:
        if not media_id:
            return False
        with _store_errors("confirmed.check"):
            r = await self._client()
            return bool(await r.exists(self._confirmed_key(media_id)))

    # ---------------- State transitions ----------------

    async def confirm(
        self, token: str, media_id: str, confirmed_at: datetime
    ) -> ConfirmResult:
        """
        The marker is written before anything else and regardless of outcome:
        it is what keeps the sweeper away from this video even when the
        pending record already expired or never existed.
        """
        marker = ConfirmedMarker(
            media_id=media_id, token=token, confirmed_at=as_utc(confirmed_at)
        )
        marker_key = self._confirmed_key(media_id)

        with _store_errors("confirm"):
            r = await self._client()
            wrote = await r.set(
                marker_key,
                marker.model_dump_json().encode("utf-8"),
                ex=self._confirmed_ttl,
                nx=True,
            )
            prior: Optional[ConfirmedMarker] = None
            if not wrote:
                prior = self._decode_marker(await r.get(marker_key))
                await r.expire(marker_key, self._confirmed_ttl)

            raw = await r.get(self._pending_key(token))
            if raw is None:
                if prior is not None and prior.retired_by == token:
                    logger.info("store.confirm.repeat token=%s media=%s", token, media_id)
                    return ConfirmResult(ok=True)
                logger.info("store.confirm.not_found token=%s media=%s", token, media_id)
                return ConfirmResult(ok=False, reason="NOT_FOUND")

            rec = self._decode(token, raw)
            if rec is None:
                return ConfirmResult(ok=False, reason="NOT_FOUND")
            if rec.media_id != media_id:
                logger.warning(
                    "store.confirm.mismatch token=%s media=%s stored=%s",
                    token,
                    media_id,
                    rec.media_id,
                )
                return ConfirmResult(ok=False, reason="MEDIA_MISMATCH")

            await self._drop(r, token)
            # Lets a replay of this exact confirmation answer ok. The first
            # writer's token and time are kept.
            done = (prior or marker).model_copy(update={"retired_by": token})
            await r.set(
                marker_key,
                done.model_dump_json().encode("utf-8"),
                xx=True,
                keepttl=True,
            )
        logger.info("store.confirm.ok token=%s media=%s", token, media_id)
        return ConfirmResult(ok=True)

    async def scan_expired(self, cutoff: datetime, limit: int) -> list[PendingRecord]:
        """
        Up to `limit` records created at or before `cutoff`, oldest first.

        Side effects while scanning:
        - index entries whose record is gone are pruned (orphans)
        - records whose video carries a confirmed marker are retired
        Records that cannot be decoded come back with an empty media_id.
        """
        if limit <= 0:
            return []

        with _store_errors("scan"):
            r = await self._client()
            entries = await r.zrangebyscore(
                PENDING_INDEX,
                "-inf",
                to_epoch_ms(cutoff),
                start=0,
                num=limit,
                withscores=True,
            )
            if not entries:
                return []

            tokens = [_text(member) for member, _ in entries]
            raws = await r.mget([self._pending_key(t) for t in tokens])

            records: list[PendingRecord] = []
            orphans: list[str] = []
            for token, (_, score), raw in zip(tokens, entries, raws):
                if raw is None:
                    orphans.append(token)
                    continue
                rec = self._decode(token, raw) or PendingRecord(
                    token=token, media_id="", created_at=from_epoch_ms(score)
                )
                records.append(rec)

            if orphans:
                await r.zrem(PENDING_INDEX, *orphans)
                logger.info("store.scan.orphans_pruned count=%d", len(orphans))

            media_ids = [rec.media_id for rec in records if rec.media_id]
            confirmed: set[str] = set()
            if media_ids:
                flags = await r.mget([self._confirmed_key(m) for m in media_ids])
                confirmed = {m for m, f in zip(media_ids, flags) if f is not None}

            expired: list[PendingRecord] = []
            for rec in records:
                if rec.media_id in confirmed:
                    await self._drop(r, rec.token)
                    logger.info(
                        "store.scan.confirmed_retired token=%s media=%s",
                        rec.token,
                        rec.media_id,
                    )
                    continue
                expired.append(rec)

        logger.info(
            "store.scan.ok scanned=%d expired=%d orphans=%d confirmed=%d",
            len(tokens),
            len(expired),
            len(orphans),
            len(records) - len(expired),
        )
        return expired

    async def retire(self, token: str) -> None:
        """Idempotent: retiring a missing token is a no-op."""
        if not token:
            return
        with _store_errors("retire"):
            r = await self._client()
            await self._drop(r, token)
