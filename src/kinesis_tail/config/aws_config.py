"""AWS-specific configuration and client setup."""

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError
import logging

from .settings import AWSConfig
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)


class AWSClientManager:
    """Builds the boto3 Kinesis client shared by all shard readers."""

    def __init__(self, aws_config: AWSConfig):
        self.config = aws_config
        self._kinesis_client = None

        self._boto_config = Config(
            region_name=aws_config.region,
            retries={
                'max_attempts': aws_config.max_attempts,
                'mode': 'standard'
            },
            max_pool_connections=50,
            connect_timeout=aws_config.connect_timeout,
            read_timeout=aws_config.read_timeout
        )

    @property
    def kinesis_client(self):
        """Get or create the Kinesis client.

        Raises:
            ConfigurationError: If credentials, profile or region are unusable
        """
        if self._kinesis_client is None:
            try:
                session = boto3.Session(profile_name=self.config.profile)

                if self.config.endpoint_url:
                    # LocalStack configuration for local development
                    self._kinesis_client = session.client(
                        'kinesis',
                        endpoint_url=self.config.endpoint_url,
                        aws_access_key_id='test',
                        aws_secret_access_key='test',
                        region_name=self.config.region or 'us-east-1',
                        config=self._boto_config
                    )
                    logger.info(f"Created LocalStack Kinesis client: {self.config.endpoint_url}")
                else:
                    self._kinesis_client = session.client(
                        'kinesis',
                        config=self._boto_config
                    )
                    logger.info(f"Created AWS Kinesis client in region: {self._kinesis_client.meta.region_name}")
            except BotoCoreError as e:
                raise ConfigurationError(f"Could not create Kinesis client: {e}") from e

        return self._kinesis_client
