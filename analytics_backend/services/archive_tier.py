"""
Archive-Tier Gatherer.

Queries the archive store with a server-side filter expression so that only
matching line-delimited JSON records are transferred, then decodes the
streamed response incrementally.

Streaming decode rules (NdjsonStreamDecoder):
- bytes are buffered across chunk boundaries; a record may be split anywhere,
  including inside a multi-byte UTF-8 sequence
- buffered + incoming bytes are split on newline boundaries
- each complete line is parsed as one JSON object; blank lines are ignored,
  unparsable or non-object lines are skipped and counted, never raised
- the trailing partial line is kept for the next chunk and parsed as a final
  line when the stream ends

If the archive request fails outright (connectivity, HTTP status, a transport
error mid-stream) the whole entity type degrades to an empty result through
GatherError; nothing is retried.
"""

import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol

import httpx

from analytics_backend.core.exceptions import GatherError
from analytics_backend.models.enums import EntityType, StorageTier
from analytics_backend.models.schemas import AnalyticsQuery
from analytics_backend.services.gathering import coerce_records
from analytics_backend.sql.archive_queries import archive_key_prefix, build_select_expression


logger = logging.getLogger(__name__)


# =============================================================================
# Incremental NDJSON Decoder
# =============================================================================


class NdjsonStreamDecoder:
    """
    Incremental decoder for a chunked line-delimited JSON stream.

    Usage:
        decoder = NdjsonStreamDecoder()
        async for chunk in stream:
            records.extend(decoder.feed(chunk))
        records.extend(decoder.flush())
    """

    def __init__(self) -> None:
        self._buffer = bytearray()
        self.decoded = 0
        self.skipped = 0

    def feed(self, chunk: bytes) -> List[Dict[str, Any]]:
        """Consume one chunk and return the records completed by it."""
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        self._buffer.extend(chunk)

        last_newline = self._buffer.rfind(b"\n")
        if last_newline < 0:
            return []

        complete = bytes(self._buffer[:last_newline])
        del self._buffer[:last_newline + 1]
        return self._parse_lines(complete.split(b"\n"))

    def flush(self) -> List[Dict[str, Any]]:
        """Parse whatever remains buffered once the stream has ended."""
        remainder = bytes(self._buffer)
        self._buffer.clear()
        return self._parse_lines([remainder])

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet terminated by a newline."""
        return len(self._buffer)

    def _parse_lines(self, lines: List[bytes]) -> List[Dict[str, Any]]:
        records: List[Dict[str, Any]] = []
        for line in lines:
            record = self._parse_line(line)
            if record is not None:
                records.append(record)
        return records

    def _parse_line(self, line: bytes) -> Optional[Dict[str, Any]]:
        text = line.strip()
        if not text:
            return None
        try:
            value = json.loads(text)
        except ValueError:
            # JSONDecodeError and UnicodeDecodeError are both ValueErrors
            self.skipped += 1
            logger.debug(f"Skipping unparsable archive line ({len(text)} bytes)")
            return None
        if not isinstance(value, dict):
            self.skipped += 1
            logger.debug("Skipping archive line that is not a JSON object")
            return None
        self.decoded += 1
        return value


# =============================================================================
# Archive Store Protocol + HTTP Implementation
# =============================================================================


class ArchiveStore(Protocol):
    """Archive collaborator: server-side filtered streaming reads."""

    def select(self, entity: EntityType, expression: str) -> AsyncIterator[bytes]:
        """Stream the raw bytes of all archived records matching expression."""
        ...


class HttpArchiveStore:
    """
    Archive store reached through an HTTP select endpoint.

    Sends ``POST {base_url}/select`` with the key prefix, the filter
    expression and the input/output serialization, and yields the response
    body chunk by chunk as it arrives.

    Args:
        base_url: Base URL of the archive service.
        api_key: Optional bearer token.
        timeout: httpx timeout in seconds for connect/read.
        transport: Optional httpx transport (used by tests).
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/x-ndjson"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def select(self, entity: EntityType, expression: str) -> AsyncIterator[bytes]:
        payload = {
            "key": archive_key_prefix(entity),
            "expression": expression,
            "expressionType": "SQL",
            "inputSerialization": {"JSON": {"Type": "LINES"}, "CompressionType": "NONE"},
            "outputSerialization": {"JSON": {"RecordDelimiter": "\n"}},
        }
        async with httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            async with client.stream("POST", "/select", json=payload, headers=self._headers()) as response:
                response.raise_for_status()
                async for chunk in response.aiter_bytes():
                    yield chunk


# =============================================================================
# Gatherer
# =============================================================================


class ArchiveTierGatherer:
    """
    Gatherer backed by the archive store.

    Args:
        store: The archive collaborator. When None (no archive configured)
            every fetch fails and degrades to an empty result.
    """

    tier = StorageTier.ARCHIVE

    def __init__(self, store: Optional[ArchiveStore]) -> None:
        self._store = store

    async def fetch(self, entity: EntityType, query: AnalyticsQuery) -> List[Any]:
        if self._store is None:
            raise GatherError(entity.value, self.tier.value, "no archive store configured")

        expression = build_select_expression(entity, query.dateRange, query.filters)
        decoder = NdjsonStreamDecoder()
        raw: List[Dict[str, Any]] = []

        try:
            async for chunk in self._store.select(entity, expression):
                raw.extend(decoder.feed(chunk))
            raw.extend(decoder.flush())
        except Exception as e:
            raise GatherError(entity.value, self.tier.value, str(e) or e.__class__.__name__) from e

        if decoder.skipped:
            logger.warning(
                f"Archive select for {entity.value} skipped {decoder.skipped} malformed lines"
            )
        logger.info(f"Archive select returned {len(raw)} {entity.value} records")
        return coerce_records(entity, raw)
