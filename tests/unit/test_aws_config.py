"""Tests for Kinesis client construction."""

import pytest

from kinesis_tail.config.aws_config import AWSClientManager
from kinesis_tail.config.settings import AWSConfig
from kinesis_tail.errors import ConfigurationError


def test_localstack_client():
    manager = AWSClientManager(AWSConfig(endpoint_url="http://localhost:4566"))

    client = manager.kinesis_client

    assert client.meta.endpoint_url == "http://localhost:4566"
    assert client.meta.region_name == "us-east-1"
    assert manager.kinesis_client is client


def test_region_is_applied():
    manager = AWSClientManager(AWSConfig(region="eu-west-1", endpoint_url="http://localhost:4566"))
    assert manager.kinesis_client.meta.region_name == "eu-west-1"


def test_unknown_profile_is_configuration_error():
    manager = AWSClientManager(AWSConfig(profile="kinesis-tail-no-such-profile"))

    with pytest.raises(ConfigurationError, match="Could not create Kinesis client"):
        manager.kinesis_client
