from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Generic, TypeVar

from attackreport.config import CollectorConfig
from attackreport.errors import ChannelClosed, DecodeError, StreamAbortedError
from attackreport.results.codec import RecordDecoder
from attackreport.results.models import Result, sort_results

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CLOSED = object()

# asyncio only keeps weak references to tasks
_background_tasks: set[asyncio.Task[Any]] = set()


class Channel(Generic[T]):
    """Single-consumer closable channel on top of ``asyncio.Queue``."""

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize)
        self._closing = False
        self._drained = False

    @property
    def closed(self) -> bool:
        return self._closing

    async def send(self, item: T) -> None:
        if self._closing:
            raise ChannelClosed("send on closed channel")
        await self._queue.put(item)

    async def close(self) -> None:
        if self._closing:
            return
        self._closing = True
        await self._queue.put(_CLOSED)

    async def receive(self) -> T:
        if self._drained:
            raise ChannelClosed("receive on closed channel")
        item = await self._queue.get()
        if item is _CLOSED:
            self._drained = True
            raise ChannelClosed("receive on closed channel")
        return item

    def __aiter__(self) -> AsyncIterator[T]:
        return self

    async def __anext__(self) -> T:
        try:
            return await self.receive()
        except ChannelClosed:
            raise StopAsyncIteration from None


class Collector:
    """Fans N record sources into one record channel and one error channel.

    One decode task runs per source. Both channels are closed once every
    task has finished, so consumers must drain until closure.
    """

    def __init__(self, sources: tuple[Any, ...], config: CollectorConfig | None = None) -> None:
        self.config = config or CollectorConfig()
        self.sources = sources
        self.records: Channel[Result] = Channel(self.config.buffer_size)
        self.errors: Channel[DecodeError] = Channel(self.config.buffer_size)
        self._supervisor: asyncio.Task[None] | None = None

    def start(self) -> tuple[Channel[Result], Channel[DecodeError]]:
        if self._supervisor is not None:
            raise RuntimeError("collector already started")
        asyncio.get_running_loop()
        tasks = [
            asyncio.create_task(self._decode_source(index, source), name=f"collect-source-{index}")
            for index, source in enumerate(self.sources)
        ]
        self._supervisor = asyncio.create_task(self._supervise(tasks), name="collect-supervisor")
        _background_tasks.add(self._supervisor)
        self._supervisor.add_done_callback(_background_tasks.discard)
        logger.debug("Collecting from %d source(s)", len(tasks))
        return self.records, self.errors

    async def wait(self) -> None:
        if self._supervisor is None:
            raise RuntimeError("collector not started")
        await self._supervisor

    async def _supervise(self, tasks: list[asyncio.Task[None]]) -> None:
        try:
            if tasks:
                await asyncio.wait(tasks)
            for index, task in enumerate(tasks):
                exc = task.exception()
                if exc is None:
                    continue
                logger.error("Decode task for source %d failed", index, exc_info=exc)
                aborted = StreamAbortedError(f"decode task failed: {exc!r}", source=index)
                aborted.__cause__ = exc
                await self.errors.send(aborted)
        finally:
            await self.records.close()
            await self.errors.close()
        logger.debug("All %d source(s) reached end of stream", len(tasks))

    async def _decode_source(self, index: int, source: Any) -> None:
        decoder = RecordDecoder(source, max_frame_size=self.config.max_frame_size)
        limit = self.config.max_consecutive_errors
        decoded = 0
        consecutive = 0
        while True:
            try:
                result = await decoder.decode()
            except EOFError:
                logger.debug("Source %d finished after %d record(s)", index, decoded)
                return
            except DecodeError as exc:
                exc.source = index
                error: DecodeError = exc
            except OSError as exc:
                error = DecodeError(f"read failed: {exc}", source=index)
                error.__cause__ = exc
            else:
                consecutive = 0
                decoded += 1
                await self.records.send(result)
                continue

            consecutive += 1
            logger.warning("Decode error: %s", error)
            await self.errors.send(error)
            if limit is not None and consecutive >= limit:
                aborted = StreamAbortedError(
                    f"aborted after {consecutive} consecutive decode errors",
                    source=index,
                )
                logger.error("Giving up on source %d: %s", index, aborted.message)
                await self.errors.send(aborted)
                return


def collect(
    *sources: Any,
    config: CollectorConfig | None = None,
) -> tuple[Channel[Result], Channel[DecodeError]]:
    """Start merging ``sources`` and return the (records, errors) channels.

    Must be called with a running event loop. Records arrive in interleaved
    arrival order; decode order is preserved only within a single source.
    A decode task that dies unexpectedly is reported on the error channel as
    a ``StreamAbortedError`` for its source before the channels close.
    """
    return Collector(sources, config).start()


async def gather_results(
    *sources: Any,
    config: CollectorConfig | None = None,
) -> tuple[list[Result], list[DecodeError]]:
    """Drain a full collection and return results sorted by timestamp."""
    collector = Collector(sources, config)
    records, errors = collector.start()

    async def drain(channel: Channel[T]) -> list[T]:
        return [item async for item in channel]

    results, decode_errors = await asyncio.gather(drain(records), drain(errors))
    await collector.wait()
    return sort_results(results), decode_errors
