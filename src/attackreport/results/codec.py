"""Length-prefixed JSON framing for result streams.

Each record is a 4-byte big-endian payload length followed by a UTF-8 JSON
object. Zero bytes at a frame boundary is a clean end of stream; anything
else that fails to parse is a :class:`DecodeError` for that one record.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import struct
from datetime import datetime, timezone
from typing import Any, BinaryIO, Iterable, Mapping

from attackreport.config import DEFAULT_MAX_FRAME_SIZE
from attackreport.errors import DecodeError
from attackreport.results.models import (
    RequestLabel,
    Result,
    from_nanoseconds,
    to_nanoseconds,
)

HEADER = struct.Struct(">I")
MAX_LATENCY_NS = (1 << 63) - 1
_SKIP_CHUNK = 64 * 1024


def encode_result(result: Result) -> bytes:
    doc: dict[str, Any] = {
        "code": result.code,
        "timestamp": result.timestamp.isoformat(),
        "latency": to_nanoseconds(result.latency),
        "bytes_out": result.bytes_out,
        "bytes_in": result.bytes_in,
        "error": result.error,
    }
    if result.request is not None:
        doc["method"] = result.request.method
        doc["url"] = result.request.url
    payload = json.dumps(doc, separators=(",", ":")).encode("utf-8")
    return HEADER.pack(len(payload)) + payload


def write_results(stream: BinaryIO, results: Iterable[Result]) -> int:
    count = 0
    for result in results:
        stream.write(encode_result(result))
        count += 1
    return count


def decode_payload(payload: bytes) -> Result:
    try:
        doc = json.loads(payload)
    except (ValueError, RecursionError) as exc:
        msg = f"invalid record payload: {exc}"
        raise DecodeError(msg) from exc
    if not isinstance(doc, dict):
        msg = f"record payload must be an object, got {type(doc).__name__}"
        raise DecodeError(msg)

    latency_ns = _int_field(doc, "latency")
    bytes_out = _int_field(doc, "bytes_out")
    bytes_in = _int_field(doc, "bytes_in")
    for name, value in (("latency", latency_ns), ("bytes_out", bytes_out), ("bytes_in", bytes_in)):
        if value < 0:
            msg = f"field {name!r} must be non-negative, got {value}"
            raise DecodeError(msg)
    if latency_ns > MAX_LATENCY_NS:
        msg = f"field 'latency' exceeds {MAX_LATENCY_NS} nanoseconds"
        raise DecodeError(msg)
    try:
        latency = from_nanoseconds(latency_ns)
    except (OverflowError, ValueError) as exc:
        msg = f"field 'latency' out of range: {latency_ns}"
        raise DecodeError(msg) from exc

    request = None
    if "method" in doc or "url" in doc:
        request = RequestLabel(
            method=_str_field(doc, "method", default=""),
            url=_str_field(doc, "url", default=""),
        )

    return Result(
        code=_int_field(doc, "code"),
        timestamp=_timestamp_field(doc, "timestamp"),
        latency=latency,
        bytes_out=bytes_out,
        bytes_in=bytes_in,
        error=_str_field(doc, "error", default=""),
        request=request,
    )


def _int_field(doc: Mapping[str, Any], name: str) -> int:
    if name not in doc:
        msg = f"missing field {name!r}"
        raise DecodeError(msg)
    value = doc[name]
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"field {name!r} must be an integer, got {value!r}"
        raise DecodeError(msg)
    return value


def _str_field(doc: Mapping[str, Any], name: str, default: str) -> str:
    value = doc.get(name, default)
    if not isinstance(value, str):
        msg = f"field {name!r} must be a string, got {value!r}"
        raise DecodeError(msg)
    return value


def _timestamp_field(doc: Mapping[str, Any], name: str) -> datetime:
    raw = _str_field(doc, name, default="")
    if not raw:
        msg = f"missing field {name!r}"
        raise DecodeError(msg)
    try:
        stamp = datetime.fromisoformat(raw)
    except ValueError as exc:
        msg = f"field {name!r} is not an ISO-8601 timestamp: {raw!r}"
        raise DecodeError(msg) from exc
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    return stamp


class RecordDecoder:
    """Decodes framed records from one source.

    ``source`` is either a blocking binary file object, whose reads are run in
    a worker thread, or an asyncio reader whose ``read(n)`` is a coroutine
    (``asyncio.StreamReader``).
    """

    def __init__(self, source: Any, max_frame_size: int = DEFAULT_MAX_FRAME_SIZE) -> None:
        self._source = source
        self._max_frame_size = max_frame_size
        self._is_async = inspect.iscoroutinefunction(getattr(source, "read", None))

    async def decode(self) -> Result:
        """Return the next record.

        Raises ``EOFError`` at a clean end of stream and :class:`DecodeError`
        for a malformed record. ``OSError`` from the source propagates; a
        closed source is reported as ``OSError`` too.
        """
        header = await self._read(HEADER.size)
        if not header:
            raise EOFError("end of record stream")
        if len(header) < HEADER.size:
            msg = f"truncated frame header ({len(header)} of {HEADER.size} bytes)"
            raise DecodeError(msg)
        (size,) = HEADER.unpack(header)
        if size > self._max_frame_size:
            skipped = await self._skip(size)
            msg = f"frame of {size} bytes exceeds limit of {self._max_frame_size} (skipped {skipped})"
            raise DecodeError(msg)
        payload = await self._read(size)
        if len(payload) < size:
            msg = f"truncated frame payload ({len(payload)} of {size} bytes)"
            raise DecodeError(msg)
        return decode_payload(payload)

    async def _read_chunk(self, n: int) -> bytes:
        try:
            if self._is_async:
                return await self._source.read(n)
            return await asyncio.to_thread(self._source.read, n)
        except ValueError as exc:
            # reading a closed file object
            raise OSError(f"source unreadable: {exc}") from exc

    async def _read(self, n: int) -> bytes:
        buf = bytearray()
        while len(buf) < n:
            chunk = await self._read_chunk(n - len(buf))
            if not chunk:
                break
            buf += chunk
        return bytes(buf)

    async def _skip(self, n: int) -> int:
        skipped = 0
        while skipped < n:
            chunk = await self._read_chunk(min(_SKIP_CHUNK, n - skipped))
            if not chunk:
                break
            skipped += len(chunk)
        return skipped
