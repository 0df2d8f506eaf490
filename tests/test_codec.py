from __future__ import annotations

import asyncio
import io
from datetime import datetime, timedelta, timezone

import pytest

from attackreport.errors import DecodeError
from attackreport.results import RecordDecoder, RequestLabel, Result, encode_result, write_results
from attackreport.results.codec import HEADER

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _frame(payload: bytes) -> bytes:
    return HEADER.pack(len(payload)) + payload


def _decode_all(data: bytes) -> list[Result | DecodeError]:
    async def run() -> list[Result | DecodeError]:
        decoder = RecordDecoder(io.BytesIO(data))
        out: list[Result | DecodeError] = []
        while True:
            try:
                out.append(await decoder.decode())
            except EOFError:
                return out
            except DecodeError as exc:
                out.append(exc)

    return asyncio.run(run())


def test_decodes_encoded_record_with_request_label() -> None:
    result = Result(
        code=200,
        timestamp=T0,
        latency=timedelta(milliseconds=12, microseconds=345),
        bytes_out=10,
        bytes_in=512,
        request=RequestLabel("GET", "http://localhost/health"),
    )
    [decoded] = _decode_all(encode_result(result))
    assert decoded == result


def test_empty_stream_is_clean_end() -> None:
    assert _decode_all(b"") == []


def test_corrupt_payload_keeps_frame_alignment() -> None:
    ok = Result(code=200, timestamp=T0, latency=timedelta(milliseconds=5))
    data = encode_result(ok) + _frame(b"{not json") + encode_result(ok)
    out = _decode_all(data)
    assert len(out) == 3
    assert out[0] == ok
    assert isinstance(out[1], DecodeError)
    assert out[2] == ok


def test_truncated_header_is_decode_error_then_end() -> None:
    ok = Result(code=200, timestamp=T0, latency=timedelta(milliseconds=5))
    out = _decode_all(encode_result(ok) + b"\x00\x01")
    assert out[0] == ok
    assert isinstance(out[1], DecodeError)
    assert "truncated frame header" in str(out[1])
    assert len(out) == 2


def test_truncated_payload_is_decode_error() -> None:
    frame = encode_result(Result(code=200, timestamp=T0, latency=timedelta(milliseconds=5)))
    out = _decode_all(frame[:-3])
    assert len(out) == 1
    assert isinstance(out[0], DecodeError)


@pytest.mark.parametrize(
    "payload, fragment",
    [
        (b'{"code": 200}', "missing field"),
        (b"[1, 2]", "must be an object"),
        (
            b'{"code": 200, "timestamp": "2024-05-01T12:00:00+00:00", "latency": -1, "bytes_out": 0, "bytes_in": 0, "error": ""}',
            "non-negative",
        ),
        (
            b'{"code": "200", "timestamp": "2024-05-01T12:00:00+00:00", "latency": 1, "bytes_out": 0, "bytes_in": 0, "error": ""}',
            "must be an integer",
        ),
        (
            b'{"code": 200, "timestamp": "yesterday", "latency": 1, "bytes_out": 0, "bytes_in": 0, "error": ""}',
            "ISO-8601",
        ),
    ],
)
def test_malformed_records(payload: bytes, fragment: str) -> None:
    [err] = _decode_all(_frame(payload))
    assert isinstance(err, DecodeError)
    assert fragment in str(err)


def test_oversized_frame_is_skipped() -> None:
    ok = Result(code=200, timestamp=T0, latency=timedelta(milliseconds=5))
    big = _frame(b"x" * 100)

    async def run() -> list[object]:
        decoder = RecordDecoder(io.BytesIO(big + encode_result(ok)), max_frame_size=50)
        out: list[object] = []
        with pytest.raises(DecodeError, match="exceeds limit"):
            await decoder.decode()
        out.append(await decoder.decode())
        return out

    assert asyncio.run(run()) == [ok]


def test_naive_timestamp_is_read_as_utc() -> None:
    payload = (
        b'{"code": 0, "timestamp": "2024-05-01T12:00:00", "latency": 1000, '
        b'"bytes_out": 0, "bytes_in": 0, "error": "connection refused"}'
    )
    [decoded] = _decode_all(_frame(payload))
    assert isinstance(decoded, Result)
    assert decoded.timestamp == T0
    assert decoded.latency == timedelta(microseconds=1)
    assert not decoded.success


def test_stream_reader_source() -> None:
    ok = Result(code=204, timestamp=T0, latency=timedelta(seconds=1))

    async def run() -> Result:
        reader = asyncio.StreamReader()
        reader.feed_data(encode_result(ok))
        reader.feed_eof()
        decoder = RecordDecoder(reader)
        decoded = await decoder.decode()
        with pytest.raises(EOFError):
            await decoder.decode()
        return decoded

    assert asyncio.run(run()) == ok


def test_write_results_counts_records() -> None:
    buf = io.BytesIO()
    results = [Result(code=200, timestamp=T0 + timedelta(seconds=i), latency=timedelta(0)) for i in range(3)]
    assert write_results(buf, results) == 3
    assert _decode_all(buf.getvalue()) == results


def _record(latency: int) -> bytes:
    return (
        b'{"code": 200, "timestamp": "2024-05-01T12:00:00+00:00", "latency": %d, '
        b'"bytes_out": 0, "bytes_in": 0, "error": ""}' % latency
    )


def test_out_of_range_latency_is_decode_error() -> None:
    ok = Result(code=200, timestamp=T0, latency=timedelta(milliseconds=5))
    out = _decode_all(encode_result(ok) + _frame(_record(10**26)) + encode_result(ok))
    assert out[0] == ok
    assert isinstance(out[1], DecodeError)
    assert "latency" in str(out[1])
    assert out[2] == ok


def test_largest_int64_latency_still_decodes() -> None:
    [decoded] = _decode_all(_frame(_record((1 << 63) - 1)))
    assert isinstance(decoded, Result)
    assert decoded.latency == timedelta(microseconds=((1 << 63) - 1) // 1_000)


def test_deeply_nested_payload_is_decode_error() -> None:
    ok = Result(code=200, timestamp=T0, latency=timedelta(milliseconds=5))
    nested = b"[" * 200_000 + b"]" * 200_000
    out = _decode_all(encode_result(ok) + _frame(nested) + encode_result(ok))
    assert len(out) == 3
    assert isinstance(out[1], DecodeError)
    assert "invalid record payload" in str(out[1])
    assert out[0] == out[2] == ok


def test_latency_keeps_microsecond_precision() -> None:
    ns = 86_400 * 10**9 * 10_000 + 123_456_789
    [decoded] = _decode_all(_frame(_record(ns)))
    assert isinstance(decoded, Result)
    assert decoded.latency == timedelta(days=10_000, microseconds=123_456)


def test_closed_source_is_reported_as_os_error() -> None:
    src = io.BytesIO(b"")
    src.close()

    async def run() -> None:
        with pytest.raises(OSError, match="source unreadable"):
            await RecordDecoder(src).decode()

    asyncio.run(run())
