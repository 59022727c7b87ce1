from __future__ import annotations

import threading
from collections import Counter
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from ..domain.user_account import MfaType, UserStatus
from .logging import get_logger

log = get_logger("metrics")

MFA_RESET = "account.mfa.reset"
ACCOUNT_DELETE = "account.delete"
DATA_RESYNC = "data.resync"


class MetricsService:
    """
    Counters for account operations.

    Counts are always kept in-process (keyed by metric name + dimensions) and,
    when a namespace is configured, pushed to CloudWatch one datapoint at a time.
    """

    def __init__(self, cloudwatch_client: Any | None, *, namespace: str | None, environment: str):
        self._client = cloudwatch_client
        self._namespace = (namespace or "").strip() or None
        self._environment = environment
        self._counts: Counter[tuple[str, tuple[tuple[str, str], ...]]] = Counter()
        self._lock = threading.Lock()

    def increment_mfa_reset_counter(self, mfa_type: MfaType) -> None:
        self._increment(MFA_RESET, {"MfaType": _value(mfa_type)})

    def increment_delete_account_counter(self, mfa_type: MfaType, user_status: UserStatus) -> None:
        self._increment(
            ACCOUNT_DELETE,
            {"MfaType": _value(mfa_type), "UserStatus": _value(user_status)},
        )

    def increment_resync_counter(self) -> None:
        self._increment(DATA_RESYNC, {})

    def count(self, name: str, **dimensions: str) -> int:
        key = (name, self._dimension_key({k: _value(v) for k, v in dimensions.items()}))
        with self._lock:
            return int(self._counts.get(key, 0))

    def _dimension_key(self, dimensions: dict[str, str]) -> tuple[tuple[str, str], ...]:
        dims = {"Environment": self._environment, **dimensions}
        return tuple(sorted(dims.items()))

    def _increment(self, name: str, dimensions: dict[str, str]) -> None:
        key = (name, self._dimension_key(dimensions))
        with self._lock:
            self._counts[key] += 1

        if not self._namespace or self._client is None:
            return

        try:
            self._client.put_metric_data(
                Namespace=self._namespace,
                MetricData=[
                    {
                        "MetricName": name,
                        "Dimensions": [{"Name": k, "Value": v} for k, v in key[1]],
                        "Value": 1.0,
                        "Unit": "Count",
                    }
                ],
            )
        except (ClientError, BotoCoreError) as e:
            log.warning("metric_publish_failed", metric=name, error=str(e))


def _value(v: Any) -> str:
    return str(getattr(v, "value", v))
