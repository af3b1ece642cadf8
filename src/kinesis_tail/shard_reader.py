"""Per-shard read loop."""

import asyncio
import logging
from concurrent.futures import Executor
from typing import Any, Callable, Dict, Optional

from .clients.kinesis_client import GetRecordsResult, KinesisStreamClient
from .decoder import decode_payload
from .errors import ServiceError
from .models import RecordEvent, ShardState, ShardStatus, TailOptions
from .utils.logging import log_error_with_context

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 2.0


class ShardReader:
    """
    Follows one shard and puts a RecordEvent on the shared queue per record.

    The reader owns its shard iterator exclusively and replaces it after
    every GetRecords call. It stops for good when the service returns no
    next iterator (shard closed), when a call fails, or when its task is
    cancelled. Failures are logged and recorded in ``status`` but never
    raised, so sibling shards keep running.
    """

    def __init__(
        self,
        client: KinesisStreamClient,
        stream_name: str,
        shard_id: str,
        options: TailOptions,
        queue: asyncio.Queue,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        max_records: Optional[int] = None,
        executor: Optional[Executor] = None,
        on_stopped: Optional[Callable[[ShardStatus], None]] = None
    ):
        self.client = client
        self.stream_name = stream_name
        self.shard_id = shard_id
        self.options = options
        self.queue = queue
        self.poll_interval = poll_interval
        self.max_records = max_records
        self.executor = executor
        self.on_stopped = on_stopped

        self.status = ShardStatus(shard_id=shard_id)

    async def run(self) -> ShardStatus:
        """Read the shard until it closes, fails or is cancelled."""
        self.status.state = ShardState.RUNNING
        try:
            await self._read_loop()
        except asyncio.CancelledError:
            self._finish(ShardState.CANCELLED)
            logger.debug(f"Shard {self.shard_id} reader cancelled")
            raise
        except ServiceError as e:
            self._finish(ShardState.FAILED, e)
            log_error_with_context(
                logger, e, e.operation,
                stream_name=self.stream_name,
                shard_id=self.shard_id,
                error_code=e.code
            )
        except Exception as e:
            self._finish(ShardState.FAILED, e)
            logger.error(f"Unexpected error reading shard {self.shard_id}: {e}", exc_info=True)
        else:
            self._finish(ShardState.CLOSED)
            logger.info(
                f"Shard {self.shard_id} closed after {self.status.records_emitted} records"
            )

        return self.status

    async def _read_loop(self):
        shard_iterator = await self._get_initial_iterator()

        while True:
            result = await self._get_records(shard_iterator)
            self.status.polls += 1

            for record in result.records:
                await self.queue.put(self._to_event(record))
                self.status.records_emitted += 1
                self.status.last_sequence_number = record['SequenceNumber']

            if result.records:
                logger.debug(f"Retrieved {len(result.records)} records from {self.shard_id}")

            shard_iterator = result.next_shard_iterator
            if shard_iterator is None:
                return

            await asyncio.sleep(self.poll_interval)

    async def _get_initial_iterator(self) -> str:
        iterator_type = self.options.iterator_type
        logger.debug(f"Requesting {iterator_type.value} iterator for {self.shard_id}")

        return await asyncio.get_event_loop().run_in_executor(
            self.executor,
            lambda: self.client.get_shard_iterator(
                self.stream_name,
                self.shard_id,
                iterator_type,
                self.options.at_timestamp
            )
        )

    async def _get_records(self, shard_iterator: str) -> GetRecordsResult:
        return await asyncio.get_event_loop().run_in_executor(
            self.executor,
            lambda: self.client.get_records(shard_iterator, limit=self.max_records)
        )

    def _to_event(self, record: Dict[str, Any]) -> RecordEvent:
        return RecordEvent(
            shard_id=self.shard_id,
            partition_key=record['PartitionKey'],
            sequence_number=record['SequenceNumber'],
            approximate_arrival_timestamp=record.get('ApproximateArrivalTimestamp'),
            encryption_type=record.get('EncryptionType'),
            data=decode_payload(record['Data'])
        )

    def _finish(self, state: ShardState, error: Optional[Exception] = None):
        self.status.state = state
        if error is not None:
            self.status.error = str(error)

        if self.on_stopped is not None:
            try:
                self.on_stopped(self.status)
            except Exception as e:
                logger.warning(f"Shard stop callback failed for {self.shard_id}: {e}")
