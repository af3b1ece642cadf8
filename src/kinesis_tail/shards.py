"""Shard discovery."""

import asyncio
import logging
from concurrent.futures import Executor
from typing import List, Optional

from .clients.kinesis_client import KinesisStreamClient

logger = logging.getLogger(__name__)


async def list_shard_ids(
    client: KinesisStreamClient,
    stream_name: str,
    executor: Optional[Executor] = None
) -> List[str]:
    """
    List the shard ids of a stream without blocking the event loop.

    Raises:
        ServiceError: If the listing fails; no partial list is returned
    """
    shard_ids = await asyncio.get_event_loop().run_in_executor(
        executor,
        lambda: client.list_shards(stream_name)
    )
    logger.debug(f"Shards for {stream_name}: {shard_ids}")
    return shard_ids
