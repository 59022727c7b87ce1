from __future__ import annotations

from functools import lru_cache

import boto3
from botocore.config import Config

from ..settings import settings


@lru_cache(maxsize=1)
def botocore_config() -> Config:
    # Conservative timeouts; adaptive retries.
    return Config(
        retries={"max_attempts": 5, "mode": "adaptive"},
        connect_timeout=2,
        read_timeout=12,
    )


@lru_cache(maxsize=1)
def cognito_idp_client():
    return boto3.client("cognito-idp", region_name=settings.aws_region, config=botocore_config())


@lru_cache(maxsize=1)
def sqs_client():
    return boto3.client("sqs", region_name=settings.aws_region, config=botocore_config())


@lru_cache(maxsize=1)
def sns_client():
    return boto3.client("sns", region_name=settings.aws_region, config=botocore_config())


@lru_cache(maxsize=1)
def cloudwatch_client():
    return boto3.client("cloudwatch", region_name=settings.aws_region, config=botocore_config())
