"""Data types shared by the shard readers and the tail orchestrator."""

from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class IteratorType(str, Enum):
    """Shard iterator kinds requested from Kinesis."""
    AT_TIMESTAMP = "AT_TIMESTAMP"
    TRIM_HORIZON = "TRIM_HORIZON"


class ShardState(str, Enum):
    """Lifecycle of a single shard reader."""
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    CLOSED = "CLOSED"        # service returned no next iterator
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @property
    def finished(self) -> bool:
        return self not in (ShardState.PENDING, ShardState.RUNNING)


@dataclass(frozen=True)
class TailOptions:
    """Starting position shared by every shard of one invocation."""
    at_timestamp: Optional[datetime] = None

    @property
    def iterator_type(self) -> IteratorType:
        if self.at_timestamp is not None:
            return IteratorType.AT_TIMESTAMP
        return IteratorType.TRIM_HORIZON


@dataclass(frozen=True)
class RecordEvent:
    """One decoded Kinesis record, ready to be printed."""
    shard_id: str
    partition_key: str
    sequence_number: str
    approximate_arrival_timestamp: Optional[datetime]
    encryption_type: Optional[str]
    data: Any

    def to_output(self) -> Dict[str, Any]:
        """Return the record keyed the way it is printed."""
        return {
            "ShardId": self.shard_id,
            "PartitionKey": self.partition_key,
            "SequenceNumber": self.sequence_number,
            "ApproximateArrivalTimestamp": self.approximate_arrival_timestamp,
            "EncryptionType": self.encryption_type,
            "Data": self.data,
        }


@dataclass
class ShardStatus:
    """Progress and outcome of one shard reader."""
    shard_id: str
    state: ShardState = ShardState.PENDING
    records_emitted: int = 0
    polls: int = 0
    last_sequence_number: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        status = asdict(self)
        status["state"] = self.state.value
        return status
