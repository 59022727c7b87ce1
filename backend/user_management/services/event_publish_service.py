from __future__ import annotations

import json
from typing import Any

from ..domain.events import DataRequestEvent, EmailUpdateEvent, ProfileMoveEvent
from ..observability.logging import get_logger
from ..observability.metrics import MetricsService

log = get_logger("event_publish_service")

PRODUCER = "tis-trainee-user-management"
DATA_REQUEST_SCHEMA = "tcs"
PERSON_TABLE = "Person"


def _is_fifo(target: str) -> bool:
    return target.endswith(".fifo")


class EventPublishService:
    """Outbound events: SQS data requests and SNS account notifications."""

    def __init__(
        self,
        *,
        sqs_client: Any,
        sns_client: Any,
        metrics: MetricsService,
        request_queue_url: str | None,
        user_account_update_topic_arn: str | None,
        profile_move_topic_arn: str | None,
    ):
        self._sqs = sqs_client
        self._sns = sns_client
        self._metrics = metrics
        self._request_queue_url = str(request_queue_url or "").strip()
        self._update_topic_arn = str(user_account_update_topic_arn or "").strip()
        self._profile_move_topic_arn = str(profile_move_topic_arn or "").strip()

    def publish_single_profile_sync_event(self, trainee_id: str) -> None:
        log.info("profile_sync_event_sending", trainee_id=trainee_id)
        if not self._request_queue_url:
            raise RuntimeError("REQUEST_QUEUE_URL is not set")

        event = DataRequestEvent(table=PERSON_TABLE, id=trainee_id)
        kwargs: dict[str, Any] = {
            "QueueUrl": self._request_queue_url,
            "MessageBody": json.dumps(event.to_message(), separators=(",", ":")),
        }
        if _is_fifo(self._request_queue_url):
            kwargs["MessageGroupId"] = f"{DATA_REQUEST_SCHEMA}_{PERSON_TABLE}_{trainee_id}"

        self._sqs.send_message(**kwargs)
        self._metrics.increment_resync_counter()

    def publish_email_update_event(
        self,
        user_id: str,
        trainee_id: str | None,
        previous_email: str | None,
        new_email: str,
    ) -> None:
        log.info("email_update_event_sending", user_id=user_id, trainee_id=trainee_id)
        event = EmailUpdateEvent(
            user_id=user_id,
            trainee_id=trainee_id,
            previous_email=previous_email,
            new_email=new_email,
        )
        self._publish(
            topic_arn=self._update_topic_arn,
            setting="USER_ACCOUNT_UPDATE_TOPIC_ARN",
            subject="Account Email Updated",
            message=event.to_message(),
            group_id=user_id,
        )

    def publish_profile_move_event(self, from_trainee_id: str, to_trainee_id: str) -> None:
        log.info("profile_move_event_sending", from_trainee_id=from_trainee_id, to_trainee_id=to_trainee_id)
        event = ProfileMoveEvent(from_trainee_id=from_trainee_id, to_trainee_id=to_trainee_id)
        self._publish(
            topic_arn=self._profile_move_topic_arn,
            setting="PROFILE_MOVE_TOPIC_ARN",
            subject="Profile Move",
            message=event.to_message(),
            group_id=from_trainee_id,
        )

    def _publish(
        self,
        *,
        topic_arn: str,
        setting: str,
        subject: str,
        message: dict[str, Any],
        group_id: str,
    ) -> None:
        if not topic_arn:
            raise RuntimeError(f"{setting} is not set")

        kwargs: dict[str, Any] = {
            "TopicArn": topic_arn,
            "Subject": subject,
            "Message": json.dumps(message, separators=(",", ":")),
            "MessageAttributes": {
                "producer": {"DataType": "String", "StringValue": PRODUCER},
            },
        }
        if _is_fifo(topic_arn):
            kwargs["MessageGroupId"] = group_id

        self._sns.publish(**kwargs)
