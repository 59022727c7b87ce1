from __future__ import annotations

from functools import lru_cache

from ..infrastructure.aws_clients import cloudwatch_client, cognito_idp_client, sns_client, sqs_client
from ..infrastructure.redis_client import redis_client
from ..observability.metrics import MetricsService
from ..repositories.user_id_cache import UserIdCache
from ..settings import settings
from .cognito_service import CognitoService
from .event_publish_service import EventPublishService
from .user_account_service import UserAccountService


@lru_cache(maxsize=1)
def get_metrics_service() -> MetricsService:
    return MetricsService(
        cloudwatch_client() if settings.metrics_namespace else None,
        namespace=settings.metrics_namespace,
        environment=settings.normalized_environment,
    )


@lru_cache(maxsize=1)
def get_cognito_service() -> CognitoService:
    return CognitoService(cognito_idp_client(), user_pool_id=settings.cognito_user_pool_id)


@lru_cache(maxsize=1)
def get_event_publish_service() -> EventPublishService:
    return EventPublishService(
        sqs_client=sqs_client(),
        sns_client=sns_client(),
        metrics=get_metrics_service(),
        request_queue_url=settings.request_queue_url,
        user_account_update_topic_arn=settings.user_account_update_topic_arn,
        profile_move_topic_arn=settings.profile_move_topic_arn,
    )


@lru_cache(maxsize=1)
def get_user_id_cache() -> UserIdCache:
    return UserIdCache(
        redis_client(),
        prefix=settings.cache_key_prefix,
        ttl_seconds=settings.cache_time_to_live_seconds,
    )


@lru_cache(maxsize=1)
def get_user_account_service() -> UserAccountService:
    return UserAccountService(
        cognito=get_cognito_service(),
        cache=get_user_id_cache(),
        event_publisher=get_event_publish_service(),
        metrics=get_metrics_service(),
    )
