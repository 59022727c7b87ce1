from __future__ import annotations

from user_management.domain.user_account import MfaType, UserStatus
from user_management.observability.metrics import ACCOUNT_DELETE, MFA_RESET, MetricsService

from fakes import FakeCloudWatch


def test_counts_are_kept_per_dimension_combination():
    metrics = MetricsService(None, namespace=None, environment="prod")

    metrics.increment_mfa_reset_counter(MfaType.SMS)
    metrics.increment_mfa_reset_counter(MfaType.SMS)
    metrics.increment_mfa_reset_counter(MfaType.TOTP)
    metrics.increment_delete_account_counter(MfaType.NO_MFA, UserStatus.UNCONFIRMED)

    assert metrics.count(MFA_RESET, MfaType=MfaType.SMS) == 2
    assert metrics.count(MFA_RESET, MfaType="TOTP") == 1
    assert metrics.count(MFA_RESET, MfaType="NO_MFA") == 0
    assert metrics.count(ACCOUNT_DELETE, MfaType="NO_MFA", UserStatus="UNCONFIRMED") == 1


def test_increments_are_published_with_environment_dimension():
    cw = FakeCloudWatch()
    metrics = MetricsService(cw, namespace="TisTrainee", environment="stage")

    metrics.increment_delete_account_counter(MfaType.TOTP, UserStatus.CONFIRMED)

    (call,) = cw.metric_data
    assert call["Namespace"] == "TisTrainee"
    (datum,) = call["MetricData"]
    assert datum["MetricName"] == "account.delete"
    assert datum["Value"] == 1.0
    assert {d["Name"]: d["Value"] for d in datum["Dimensions"]} == {
        "Environment": "stage",
        "MfaType": "TOTP",
        "UserStatus": "CONFIRMED",
    }


def test_publish_failure_is_not_raised():
    metrics = MetricsService(FakeCloudWatch(fail=True), namespace="TisTrainee", environment="dev")

    metrics.increment_resync_counter()

    assert metrics.count("data.resync") == 1
