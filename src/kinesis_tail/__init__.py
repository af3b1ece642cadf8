"""
Kinesis Tail - follow Amazon Kinesis Data Streams from the command line.

Reads every shard of a stream concurrently and prints each record as a
single line of JSON, optionally starting from a point in time.
"""

__version__ = "1.0.0"
__author__ = "Kinesis Tail Team"
