"""Tests for scratch-file staging."""

import httpx
import pytest

from assetdepot.core.errors import FetchError
from assetdepot.modules.assets.staging import TempStaging


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestStageBuffer:
    @pytest.mark.asyncio
    async def test_writes_file_named_by_key(self, staging, scratch_dir) -> None:
        path = await staging.stage_buffer(b"hello", "abc-123")

        assert path == scratch_dir / "abc-123"
        assert path.read_bytes() == b"hello"

    @pytest.mark.asyncio
    async def test_scratch_dir_created_idempotently(self, tmp_path) -> None:
        scratch = tmp_path / "deep" / "cache" / "tmp"
        first = TempStaging(scratch)
        second = TempStaging(scratch)

        await first.stage_buffer(b"a", "one")
        await second.stage_buffer(b"b", "two")

        assert sorted(p.name for p in scratch.iterdir()) == ["one", "two"]

    @pytest.mark.asyncio
    async def test_context_manager_releases_on_error(self, staging, scratch_dir) -> None:
        with pytest.raises(RuntimeError):
            async with staging.staged_buffer(b"data", "key") as path:
                assert path.exists()
                raise RuntimeError("commit failed")

        assert list(scratch_dir.iterdir()) == []


class TestStageURL:
    @pytest.mark.asyncio
    async def test_body_fully_written(self, staging) -> None:
        body = b"chunk" * 10000

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=body)

        async with mock_client(handler) as client:
            path = await staging.stage_url("https://example.com/big.bin", "big", client)

        assert path.read_bytes() == body

    @pytest.mark.asyncio
    async def test_server_error_is_fetch_error(self, staging, scratch_dir) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, content=b"")

        async with mock_client(handler) as client:
            with pytest.raises(FetchError, match="HTTP 503"):
                await staging.stage_url("https://example.com/a.png", "key", client)

        assert not (scratch_dir / "key").exists()

    @pytest.mark.asyncio
    async def test_oversized_body_aborts(self, scratch_dir) -> None:
        staging = TempStaging(scratch_dir, max_bytes=4)

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"x" * 10)

        async with mock_client(handler) as client:
            with pytest.raises(FetchError, match="exceeds 4 bytes"):
                await staging.stage_url("https://example.com/a.png", "key", client)

        assert not (scratch_dir / "key").exists()

    @pytest.mark.asyncio
    async def test_truncated_body_aborts(self, staging, scratch_dir) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers={"Content-Length": "100"}, content=b"short")

        async with mock_client(handler) as client:
            with pytest.raises(FetchError, match="truncated"):
                await staging.stage_url("https://example.com/a.png", "key", client)

        assert not (scratch_dir / "key").exists()

    @pytest.mark.asyncio
    async def test_timeout_is_fetch_error(self, staging) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timeout", request=request)

        async with mock_client(handler) as client:
            with pytest.raises(FetchError, match="timeout"):
                await staging.stage_url("https://example.com/a.png", "key", client)


class TestRelease:
    def test_release_is_idempotent(self, staging, scratch_dir) -> None:
        scratch_dir.mkdir(parents=True)
        path = scratch_dir / "gone"
        path.write_bytes(b"x")

        staging.release(path)
        staging.release(path)

        assert not path.exists()

    def test_release_never_raises(self, staging, scratch_dir) -> None:
        # a directory can't be unlinked with os.remove
        scratch_dir.mkdir(parents=True)
        staging.release(scratch_dir)

        assert scratch_dir.exists()
