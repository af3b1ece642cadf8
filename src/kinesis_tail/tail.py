"""Tail orchestration: fan out shard readers and merge their output."""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from .clients.kinesis_client import KinesisStreamClient
from .config.settings import TailConfig
from .models import RecordEvent, ShardState, ShardStatus, TailOptions
from .output import JsonLineSink
from .shard_reader import ShardReader
from .shards import list_shard_ids

logger = logging.getLogger(__name__)

_READERS_DONE = object()


class StreamTailer:
    """
    Tails a stream by running one ShardReader task per shard.

    All readers share one asyncio.Queue; ``run`` hands events to the sink in
    the order they arrive. Events of one shard keep their service order,
    events of different shards interleave arbitrarily.
    """

    def __init__(
        self,
        client: KinesisStreamClient,
        stream_name: str,
        options: TailOptions,
        shard_id: Optional[str] = None,
        sink: Optional[Callable[[RecordEvent], None]] = None,
        config: Optional[TailConfig] = None,
        on_shard_stopped: Optional[Callable[[ShardStatus], None]] = None
    ):
        self.client = client
        self.stream_name = stream_name
        self.options = options
        self.shard_id = shard_id
        self.sink = sink if sink is not None else JsonLineSink()
        self.config = config if config is not None else TailConfig()
        self.on_shard_stopped = on_shard_stopped

        self._readers: Dict[str, ShardReader] = {}
        self._tasks: List[asyncio.Task] = []
        self._executor: Optional[ThreadPoolExecutor] = None
        self._stopping = False

        self.stats = {
            "records_relayed": 0,
            "started_at": None,
            "last_record_time": None
        }

    async def run(self):
        """
        Tail until every shard reader has stopped or ``stop`` is called.

        Raises:
            ServiceError: If the shard listing fails; no reader is started
        """
        shard_ids = await self._resolve_shard_ids()
        if self._stopping:
            return
        logger.info(f"Tailing {len(shard_ids)} shards of {self.stream_name}")

        queue: asyncio.Queue = asyncio.Queue(maxsize=self.config.queue_maxsize)
        # One worker per shard so blocking GetRecords calls never wait on each other
        self._executor = ThreadPoolExecutor(
            max_workers=max(len(shard_ids), 1),
            thread_name_prefix="shard-reader"
        )
        self.stats["started_at"] = datetime.now(timezone.utc)

        for shard_id in shard_ids:
            reader = ShardReader(
                self.client,
                self.stream_name,
                shard_id,
                self.options,
                queue,
                poll_interval=self.config.poll_interval_seconds,
                max_records=self.config.max_records_per_request,
                executor=self._executor,
                on_stopped=self.on_shard_stopped
            )
            self._readers[shard_id] = reader
            self._tasks.append(asyncio.create_task(reader.run(), name=f"shard-{shard_id}"))

        watcher = asyncio.create_task(self._signal_when_done(queue))
        try:
            await self._relay(queue)
        finally:
            await self._shutdown(watcher)

    def stop(self):
        """Cancel all shard readers; ``run`` returns once they have stopped."""
        if self._stopping:
            return
        self._stopping = True
        logger.info("Stopping tail")
        for task in self._tasks:
            task.cancel()

    async def _resolve_shard_ids(self) -> List[str]:
        if self.shard_id:
            return [self.shard_id]
        return await list_shard_ids(self.client, self.stream_name)

    async def _relay(self, queue: asyncio.Queue):
        while True:
            event = await queue.get()
            if event is _READERS_DONE:
                break

            self.sink(event)
            self.stats["records_relayed"] += 1
            self.stats["last_record_time"] = datetime.now(timezone.utc)

    async def _signal_when_done(self, queue: asyncio.Queue):
        # Queued after every event the readers produced
        results = await asyncio.gather(*self._tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.error(f"Shard reader task ended with an error: {result}")
        await queue.put(_READERS_DONE)

    async def _shutdown(self, watcher: asyncio.Task):
        for task in self._tasks:
            task.cancel()
        watcher.cancel()
        await asyncio.gather(*self._tasks, watcher, return_exceptions=True)

        if self._executor is not None:
            # In-flight AWS calls cannot be interrupted; do not wait for them
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

        logger.info(f"Tail finished after {self.stats['records_relayed']} records")

    @property
    def all_shards_failed(self) -> bool:
        """True when shards were tailed and every reader ended FAILED."""
        return bool(self._readers) and all(
            reader.status.state == ShardState.FAILED for reader in self._readers.values()
        )

    def get_stats(self) -> Dict[str, Any]:
        """Get tail statistics, including the status of every shard."""
        return {
            **self.stats,
            "stream_name": self.stream_name,
            "shards": {
                shard_id: reader.status.to_dict()
                for shard_id, reader in self._readers.items()
            }
        }

    async def health_check(self) -> Dict[str, Any]:
        """Summarize shard coverage as healthy, degraded or unhealthy."""
        statuses = [reader.status for reader in self._readers.values()]
        failed = [s.shard_id for s in statuses if s.state == ShardState.FAILED]
        active = [s.shard_id for s in statuses if not s.state.finished]

        health_status = {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "active_shards": len(active),
            "failed_shards": failed,
            "stats": self.get_stats()
        }

        if failed:
            health_status["status"] = "degraded" if active else "unhealthy"

        return health_status
