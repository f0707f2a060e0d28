"""Tests for async record loading from files and URLs."""

import json

import httpx
import pytest

from src.core.exceptions import DataLoadError, DatasetNotFoundError
from src.services import data_loader
from src.services.data_loader import is_remote, load_records, load_text


def test_is_remote():
    assert is_remote("https://example.org/eval-x.json")
    assert is_remote("http://localhost:8000/data")
    assert not is_remote("public/out/family/eval-x.json")


class TestLocalFiles:
    """Tests for reading record files from disk."""

    @pytest.mark.asyncio
    async def test_load_text(self, tmp_path):
        path = tmp_path / "eval-a.json"
        path.write_text('{"query": "q"}', encoding="utf-8")

        assert await load_text(path) == '{"query": "q"}'

    @pytest.mark.asyncio
    async def test_load_records(self, data_root):
        result = await load_records(data_root / "family" / "eval-test.json")

        assert [r.query for r in result.records] == [
            "(Alice, worksAt, ?)",
            "(Bob, worksAt, ?)",
        ]
        assert result.diagnostics == []

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        with pytest.raises(DatasetNotFoundError):
            await load_text(tmp_path / "nope.json")

    @pytest.mark.asyncio
    async def test_directory_is_not_a_file(self, tmp_path):
        with pytest.raises(DatasetNotFoundError):
            await load_text(tmp_path)

    @pytest.mark.asyncio
    async def test_undecodable_file(self, tmp_path):
        path = tmp_path / "eval-bad.json"
        path.write_bytes(b"\xff\xfe\xfa")

        with pytest.raises(DataLoadError):
            await load_text(path)


@pytest.fixture
def parse_calls(monkeypatch):
    """Count calls into the record parser made by the loader."""
    calls = []
    real_parse = data_loader.parse_records

    def counting_parse(text):
        calls.append(text)
        return real_parse(text)

    monkeypatch.setattr(data_loader, "parse_records", counting_parse)
    return calls


class TestRecordCache:
    """Local record files are parsed once per version."""

    @pytest.mark.asyncio
    async def test_same_file_parsed_once(self, data_root, parse_calls):
        path = data_root / "family" / "eval-test.json"

        first = await load_records(path)
        second = await load_records(path)

        assert len(parse_calls) == 1
        assert second is first

    @pytest.mark.asyncio
    async def test_rewritten_file_parsed_again(self, data_root, parse_calls):
        path = data_root / "family" / "eval-test.json"
        await load_records(path)

        path.write_text('{"query": "only"}', encoding="utf-8")
        result = await load_records(path)

        assert len(parse_calls) == 2
        assert [r.query for r in result.records] == ["only"]

    @pytest.mark.asyncio
    async def test_failed_read_not_cached(self, tmp_path, parse_calls):
        path = tmp_path / "eval-bad.json"
        path.write_bytes(b"\xff\xfe\xfa")
        with pytest.raises(DataLoadError):
            await load_records(path)

        path.write_text('{"query": "fixed"}', encoding="utf-8")
        result = await load_records(path)

        assert [r.query for r in result.records] == ["fixed"]
        assert len(parse_calls) == 1

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        with pytest.raises(DatasetNotFoundError):
            await load_records(tmp_path / "nope.json")

    @pytest.mark.asyncio
    async def test_remote_not_cached(self, parse_calls):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, text='{"query": "q"}')
        )

        for _ in range(2):
            await load_records("https://data.example.org/x.json", transport=transport)

        assert len(parse_calls) == 2


class TestRemote:
    """Tests for fetching record files over HTTP."""

    @pytest.mark.asyncio
    async def test_fetch(self, sample_raw):
        body = json.dumps([sample_raw])

        def handler(request):
            assert request.url.path == "/out/family/eval-test.json"
            return httpx.Response(200, text=body)

        result = await load_records(
            "https://data.example.org/out/family/eval-test.json",
            transport=httpx.MockTransport(handler),
        )

        assert len(result.records) == 1
        assert result.records[0].candidates[0].name == "AcmeCorp"

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(404))

        with pytest.raises(DataLoadError) as exc_info:
            await load_text("https://data.example.org/missing.json", transport=transport)

        assert "404" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_network_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(DataLoadError):
            await load_text(
                "https://data.example.org/eval-x.json",
                transport=httpx.MockTransport(handler),
            )

    @pytest.mark.asyncio
    async def test_malformed_lines_reported_not_raised(self):
        body = "\n".join(['{"query": "a"}', "{broken", '{"query": "b"}'])
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text=body))

        result = await load_records("https://data.example.org/x.json", transport=transport)

        assert [r.query for r in result.records] == ["a", "b"]
        assert result.diagnostics[0].line_number == 2
