"""AWS Kinesis Data Streams client for reading shards."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from ..errors import ServiceError
from ..models import IteratorType

logger = logging.getLogger(__name__)


@dataclass
class GetRecordsResult:
    """One GetRecords response."""
    records: List[Dict[str, Any]] = field(default_factory=list)
    next_shard_iterator: Optional[str] = None
    millis_behind_latest: Optional[int] = None


def _service_error(operation: str, error: Exception) -> ServiceError:
    if isinstance(error, ClientError):
        err = error.response.get('Error', {})
        return ServiceError(operation, err.get('Message', str(error)), code=err.get('Code'))
    return ServiceError(operation, str(error))


class KinesisStreamClient:
    """
    Read-side wrapper around a boto3 Kinesis client.

    Calls are blocking and stateless, so one instance is shared by every
    shard reader. botocore errors are translated to ServiceError.
    """

    def __init__(self, kinesis_client):
        self.kinesis_client = kinesis_client

    def list_shards(self, stream_name: str) -> List[str]:
        """Return every shard id of the stream, in service order."""
        shard_ids: List[str] = []
        request: Dict[str, Any] = {'StreamName': stream_name}

        try:
            while True:
                response = self.kinesis_client.list_shards(**request)
                shard_ids.extend(shard['ShardId'] for shard in response.get('Shards', []))

                next_token = response.get('NextToken')
                if not next_token:
                    break
                # StreamName must not be sent together with NextToken
                request = {'NextToken': next_token}
        except (ClientError, BotoCoreError) as e:
            raise _service_error('ListShards', e) from e

        logger.info(f"Found {len(shard_ids)} shards for stream {stream_name}")
        return shard_ids

    def get_shard_iterator(
        self,
        stream_name: str,
        shard_id: str,
        iterator_type: IteratorType,
        timestamp: Optional[datetime] = None
    ) -> str:
        """Request a starting iterator for one shard."""
        request: Dict[str, Any] = {
            'StreamName': stream_name,
            'ShardId': shard_id,
            'ShardIteratorType': IteratorType(iterator_type).value,
        }
        if iterator_type == IteratorType.AT_TIMESTAMP:
            request['Timestamp'] = timestamp

        try:
            response = self.kinesis_client.get_shard_iterator(**request)
        except (ClientError, BotoCoreError) as e:
            raise _service_error('GetShardIterator', e) from e

        return response['ShardIterator']

    def get_records(self, shard_iterator: str, limit: Optional[int] = None) -> GetRecordsResult:
        """Fetch the next batch of records for an iterator."""
        request: Dict[str, Any] = {'ShardIterator': shard_iterator}
        if limit is not None:
            request['Limit'] = limit

        try:
            response = self.kinesis_client.get_records(**request)
        except (ClientError, BotoCoreError) as e:
            raise _service_error('GetRecords', e) from e

        return GetRecordsResult(
            records=response.get('Records', []),
            next_shard_iterator=response.get('NextShardIterator'),
            millis_behind_latest=response.get('MillisBehindLatest')
        )
