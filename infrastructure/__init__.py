# ============================================================================
# INFRASTRUCTURE MODULE
# ============================================================================
# EPOCH: 1 - UNIFIED SQS/SNS ADDRESSING
# STATUS: Infrastructure - AWS service adapters
# PURPOSE: SQS/SNS adapters, identity caching and client configuration
# CREATED: 13 OCT 2026
# ============================================================================
"""
Infrastructure module for the unified transport.

Provides:
- QueueService / TopicService: adapter contracts (ABCs)
- SqsQueueService / SnsTopicService: boto3 implementations
- ResourceIdentityCache: name -> ARN cache owned by each adapter
- AwsConfig: region/endpoint/retry configuration and client factory

Usage:
    from infrastructure import AwsConfig, SqsQueueService, SnsTopicService

    config = AwsConfig.from_env()
    sqs_client, sns_client = config.create_clients()
    queues = SqsQueueService(sqs_client, config)
    topics = SnsTopicService(sns_client, config)
"""

from infrastructure.aws import AwsConfig
from infrastructure.base_service import (
    CloudService,
    QueueService,
    TopicService,
    ReceivedMessage,
)
from infrastructure.identity_cache import ResourceIdentityCache
from infrastructure.sns import SnsTopicService
from infrastructure.sqs import SqsQueueService

__all__ = [
    # Configuration
    'AwsConfig',
    # Contracts
    'CloudService',
    'QueueService',
    'TopicService',
    'ReceivedMessage',
    # Caching
    'ResourceIdentityCache',
    # AWS adapters
    'SqsQueueService',
    'SnsTopicService',
]
