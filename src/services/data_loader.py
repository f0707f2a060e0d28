"""
Async loading of raw record files.

The only suspension point of the pipeline: raw text is read from a local
path or fetched over HTTP, then handed to the synchronous parser. Any I/O
or HTTP failure is fatal for that load and raises DataLoadError; no partial
result is returned.

Local record files are parsed once per (path, mtime, size) and the
ParseResult is kept in a small LRU cache, so repeated graph and filter
requests against the same file skip reading and parsing. Reading and
parsing run in a worker thread to keep the event loop free.
"""

import asyncio
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

import httpx
import structlog

from src.core.config import settings
from src.core.exceptions import DataLoadError, DatasetNotFoundError
from src.domain.models.pipeline_contracts import ParseResult
from src.services.record_parser import parse_records

log = structlog.get_logger(__name__)

Location = Union[str, Path]


def is_remote(location: Location) -> bool:
    return isinstance(location, str) and location.startswith(("http://", "https://"))


def _local_file(location: Location) -> Path:
    path = Path(location)
    if not path.is_file():
        raise DatasetNotFoundError(f"Record file {path} not found")
    return path


def _read_local(path: Path) -> str:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        log.error("data_read_failed", location=str(path), error=str(e))
        raise DataLoadError(f"Reading {path} failed: {e}") from e
    log.info("data_loaded", location=str(path), length=len(text))
    return text


@lru_cache(maxsize=settings.record_cache_size)
def _parse_local(path: str, mtime_ns: int, size: int) -> ParseResult:
    """Read and parse one version of a local file.

    mtime_ns and size only take part in the cache key. Failures raise and
    are therefore never cached.
    """
    result = parse_records(_read_local(Path(path)))
    log.debug("records_parsed", location=path, record_count=len(result.records))
    return result


def clear_record_cache() -> None:
    """Drop every cached ParseResult."""
    _parse_local.cache_clear()


async def load_text(
    location: Location,
    timeout: Optional[float] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> str:
    """
    Read raw text from a local file or an http(s) URL.

    Args:
        location: File path or URL
        timeout: HTTP timeout in seconds (default: settings.fetch_timeout)
        transport: Optional httpx transport (injected for testing)

    Returns:
        Decoded text

    Raises:
        DatasetNotFoundError: If a local file does not exist
        DataLoadError: On any other read or HTTP failure
    """
    if not is_remote(location):
        return await asyncio.to_thread(_read_local, _local_file(location))

    bound_log = log.bind(location=str(location))
    try:
        async with httpx.AsyncClient(
            timeout=timeout or settings.fetch_timeout, transport=transport
        ) as client:
            response = await client.get(str(location))
            response.raise_for_status()
            text = response.text
    except httpx.HTTPStatusError as e:
        bound_log.error("data_fetch_failed", status_code=e.response.status_code)
        raise DataLoadError(
            f"Fetching {location} failed with HTTP {e.response.status_code}"
        ) from e
    except httpx.HTTPError as e:
        bound_log.error("data_fetch_failed", error=str(e))
        raise DataLoadError(f"Fetching {location} failed: {e}") from e

    bound_log.info("data_loaded", length=len(text))
    return text


async def load_records(
    location: Location,
    timeout: Optional[float] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ParseResult:
    """Load a record file and parse it into query records.

    Local files go through the parse cache; a rewritten file has a new
    mtime or size and is parsed again. Remote files are parsed on every
    call. The returned ParseResult may be shared and must not be mutated.
    """
    if is_remote(location):
        text = await load_text(location, timeout=timeout, transport=transport)
        return await asyncio.to_thread(parse_records, text)

    path = _local_file(location)
    try:
        stat = path.stat()
    except OSError as e:
        raise DataLoadError(f"Reading {path} failed: {e}") from e
    return await asyncio.to_thread(
        _parse_local, str(path.resolve()), stat.st_mtime_ns, stat.st_size
    )
