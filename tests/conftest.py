"""Pytest configuration and shared fixtures."""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Union
from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError

from kinesis_tail.config.settings import TailConfig

# A shard's pages: each entry is one GetRecords response, or an exception to raise
Pages = List[Union[List[Dict[str, Any]], Exception]]


def make_record(sequence_number: str, data: Any, partition_key: str = "pk-1") -> Dict[str, Any]:
    """Build a record shaped like a boto3 GetRecords entry."""
    if not isinstance(data, bytes):
        data = json.dumps(data).encode("utf-8")
    return {
        'SequenceNumber': sequence_number,
        'ApproximateArrivalTimestamp': datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
        'Data': data,
        'PartitionKey': partition_key,
        'EncryptionType': 'NONE'
    }


def client_error(code: str, operation: str, message: str = "boom") -> ClientError:
    return ClientError(
        error_response={'Error': {'Code': code, 'Message': message}},
        operation_name=operation
    )


def build_fake_kinesis(pages_by_shard: Dict[str, Pages]) -> Mock:
    """
    Mock boto3 Kinesis client serving ``pages_by_shard``.

    Iterators are ``<shard id>:<page index>``; the last page of a shard
    returns no NextShardIterator, which closes the shard.
    """
    client = Mock()
    client.list_shards.return_value = {
        'Shards': [{'ShardId': shard_id} for shard_id in pages_by_shard]
    }

    def get_shard_iterator(**kwargs):
        return {'ShardIterator': f"{kwargs['ShardId']}:0"}

    def get_records(**kwargs):
        shard_id, index = kwargs['ShardIterator'].rsplit(':', 1)
        index = int(index)
        pages = pages_by_shard[shard_id]
        page = pages[index]
        if isinstance(page, Exception):
            raise page

        last = index + 1 == len(pages)
        return {
            'Records': page,
            'NextShardIterator': None if last else f"{shard_id}:{index + 1}",
            'MillisBehindLatest': 0
        }

    client.get_shard_iterator.side_effect = get_shard_iterator
    client.get_records.side_effect = get_records
    return client


@pytest.fixture
def fake_kinesis():
    """Factory for mock boto3 Kinesis clients."""
    return build_fake_kinesis


@pytest.fixture
def endless_kinesis() -> Mock:
    """A single shard that never closes and never has records."""
    client = Mock()
    client.list_shards.return_value = {'Shards': [{'ShardId': 'shardId-000000000000'}]}
    client.get_shard_iterator.return_value = {'ShardIterator': 'iter-0'}
    client.get_records.return_value = {
        'Records': [],
        'NextShardIterator': 'iter-next',
        'MillisBehindLatest': 0
    }
    return client


@pytest.fixture
def fast_config() -> TailConfig:
    """Tail configuration without polling delay."""
    return TailConfig(poll_interval_seconds=0)
