"""Tests for the pending upload tracker stored in Redis."""

import json
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from repository.namespaces import CONFIRMED, PENDING, PENDING_INDEX
from util.errors import StoreError
from util.functions import to_epoch_ms, utc_now


async def _index_members(redis) -> list[str]:
    return [m.decode() for m in await redis.zrange(PENDING_INDEX, 0, -1)]


class TestCreateAndRead:
    @pytest.mark.asyncio
    async def test_create_writes_record_with_ttl_and_index_entry(self, repo, redis):
        now = utc_now()
        assert await repo.create("tok1", "med1", now, video_uri="/videos/med1") is True

        rec = await repo.read("tok1")
        assert rec is not None
        assert rec.token == "tok1"
        assert rec.media_id == "med1"
        assert rec.video_uri == "/videos/med1"

        ttl = await redis.ttl(f"{PENDING}:tok1")
        assert 0 < ttl <= 3600
        assert await redis.zscore(PENDING_INDEX, "tok1") == to_epoch_ms(now)

    @pytest.mark.asyncio
    async def test_read_missing_token(self, repo):
        assert await repo.read("nope") is None
        assert await repo.read("") is None

    @pytest.mark.asyncio
    async def test_index_failure_is_reported_not_raised(self, repo, redis, monkeypatch):
        monkeypatch.setattr(
            redis, "zadd", AsyncMock(side_effect=RedisConnectionError("down"))
        )
        assert await repo.create("tok1", "med1", utc_now()) is False
        # The record is still there for the TTL to reclaim.
        assert await repo.read("tok1") is not None

    @pytest.mark.asyncio
    async def test_record_write_failure_raises_store_error(self, repo, redis, monkeypatch):
        monkeypatch.setattr(
            redis, "set", AsyncMock(side_effect=RedisConnectionError("down"))
        )
        with pytest.raises(StoreError):
            await repo.create("tok1", "med1", utc_now())
        assert await _index_members(redis) == []

    @pytest.mark.asyncio
    async def test_legacy_record_shape_still_decodes(self, repo, redis):
        await redis.set(
            f"{PENDING}:oldtok",
            json.dumps({"video_id": "555", "created_at": "2025-01-01T00:00:00.000Z"}),
        )
        rec = await repo.read("oldtok")
        assert rec is not None
        assert rec.token == "oldtok"
        assert rec.media_id == "555"


class TestScanExpired:
    @pytest.mark.asyncio
    async def test_only_stale_records_are_returned(self, repo):
        now = utc_now()
        await repo.create("tok1", "med1", now)

        assert await repo.scan_expired(now - timedelta(seconds=1), 10) == []

        found = await repo.scan_expired(now + timedelta(hours=1), 10)
        assert [(r.token, r.media_id) for r in found] == [("tok1", "med1")]

    @pytest.mark.asyncio
    async def test_oldest_first_under_limit(self, repo):
        now = utc_now()
        await repo.create("newest", "m3", now - timedelta(minutes=1))
        await repo.create("oldest", "m1", now - timedelta(minutes=30))
        await repo.create("middle", "m2", now - timedelta(minutes=10))

        found = await repo.scan_expired(now, 2)
        assert [r.token for r in found] == ["oldest", "middle"]

    @pytest.mark.asyncio
    async def test_non_positive_limit_returns_nothing(self, repo):
        await repo.create("tok1", "med1", utc_now() - timedelta(hours=1))
        assert await repo.scan_expired(utc_now(), 0) == []

    @pytest.mark.asyncio
    async def test_orphan_index_entries_are_pruned(self, repo, redis):
        then = utc_now() - timedelta(hours=2)
        await repo.create("gone", "m1", then)
        await repo.create("live", "m2", then + timedelta(seconds=1))
        # Safety-net TTL fired behind our back.
        await redis.delete(f"{PENDING}:gone")

        found = await repo.scan_expired(utc_now(), 10)

        assert [r.token for r in found] == ["live"]
        assert await _index_members(redis) == ["live"]

    @pytest.mark.asyncio
    async def test_confirmed_video_is_retired_not_returned(self, repo, redis):
        then = utc_now() - timedelta(hours=2)
        await repo.create("tok1", "med1", then)
        # Confirmation from another token (or after a lost race) left only the marker.
        await repo.confirm("othertok", "med1", utc_now())

        assert await repo.scan_expired(utc_now(), 10) == []
        assert await repo.read("tok1") is None
        assert await _index_members(redis) == []

    @pytest.mark.asyncio
    async def test_undecodable_record_comes_back_with_empty_media_id(self, repo, redis):
        then = utc_now() - timedelta(hours=1)
        await repo.create("bad", "m1", then)
        await redis.set(f"{PENDING}:bad", b"{not json")

        found = await repo.scan_expired(utc_now(), 10)
        assert len(found) == 1
        assert found[0].token == "bad"
        assert found[0].media_id == ""
        assert to_epoch_ms(found[0].created_at) == to_epoch_ms(then)

    @pytest.mark.asyncio
    async def test_scan_failure_raises_store_error(self, repo, redis, monkeypatch):
        monkeypatch.setattr(
            redis, "zrangebyscore", AsyncMock(side_effect=RedisConnectionError("x"))
        )
        with pytest.raises(StoreError):
            await repo.scan_expired(utc_now(), 10)


class TestConfirm:
    @pytest.mark.asyncio
    async def test_confirm_retires_pending_and_writes_marker(self, repo, redis):
        now = utc_now()
        await repo.create("tok2", "med2", now)

        result = await repo.confirm("tok2", "med2", now)

        assert result.ok is True
        assert result.reason is None
        assert await repo.read("tok2") is None
        assert await repo.is_confirmed("med2") is True
        assert await repo.scan_expired(now + timedelta(hours=1), 10) == []
        ttl = await redis.ttl(f"{CONFIRMED}:med2")
        assert 0 < ttl <= 86400

    @pytest.mark.asyncio
    async def test_confirm_twice_is_ok_both_times(self, repo, redis):
        await repo.create("tok", "med", utc_now())

        first = await repo.confirm("tok", "med", utc_now())
        marker_before = await redis.get(f"{CONFIRMED}:med")
        second = await repo.confirm("tok", "med", utc_now() + timedelta(minutes=5))

        assert first.ok is True
        assert second.ok is True
        # First writer wins: the replay did not rewrite the marker.
        assert await redis.get(f"{CONFIRMED}:med") == marker_before

    @pytest.mark.asyncio
    async def test_replay_is_ok_after_stale_token_wrote_marker_first(self, repo, redis):
        await repo.create("tokA", "mA", utc_now())
        stale = await repo.confirm("tokX", "mA", utc_now())

        first = await repo.confirm("tokA", "mA", utc_now())
        second = await repo.confirm("tokA", "mA", utc_now())

        assert stale.reason == "NOT_FOUND"
        assert first.ok is True
        assert second.ok is True and second.reason is None
        marker = json.loads(await redis.get(f"{CONFIRMED}:mA"))
        assert marker["token"] == "tokX"
        assert marker["retired_by"] == "tokA"
        # The stale token still does not get an ok.
        assert (await repo.confirm("tokX", "mA", utc_now())).reason == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_missing_record_still_leaves_marker(self, repo):
        result = await repo.confirm("ghost", "med9", utc_now())

        assert result.ok is False
        assert result.reason == "NOT_FOUND"
        assert await repo.is_confirmed("med9") is True

    @pytest.mark.asyncio
    async def test_repeating_a_not_found_stays_not_found(self, repo):
        await repo.confirm("ghost", "med9", utc_now())
        again = await repo.confirm("ghost", "med9", utc_now())
        assert again.reason == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_media_mismatch_keeps_pending_record(self, repo, redis):
        await repo.create("tok", "medB", utc_now())

        result = await repo.confirm("tok", "medA", utc_now())

        assert result.ok is False
        assert result.reason == "MEDIA_MISMATCH"
        rec = await repo.read("tok")
        assert rec is not None and rec.media_id == "medB"
        assert await _index_members(redis) == ["tok"]

    @pytest.mark.asyncio
    async def test_store_failure_surfaces(self, repo, redis, monkeypatch):
        monkeypatch.setattr(
            redis, "set", AsyncMock(side_effect=RedisConnectionError("down"))
        )
        with pytest.raises(StoreError):
            await repo.confirm("tok", "med", utc_now())


class TestRetire:
    @pytest.mark.asyncio
    async def test_retire_is_idempotent(self, repo, redis):
        await repo.create("tok", "med", utc_now())

        await repo.retire("tok")
        await repo.retire("tok")
        await repo.retire("never-existed")

        assert await repo.read("tok") is None
        assert await _index_members(redis) == []
