from __future__ import annotations

import json
import time
from typing import Any

from ..domain.events import ContactDetails, ContactDetailsEvent
from ..infrastructure.aws_clients import sqs_client
from ..observability.logging import configure_logging, get_logger
from ..services.factory import get_user_account_service
from ..services.user_account_service import UserAccountService
from ..settings import settings

log = get_logger("contact_details_worker")


def _queue_url() -> str:
    q = str(settings.contact_details_updated_queue_url or "").strip()
    if not q:
        raise RuntimeError("CONTACT_DETAILS_UPDATED_QUEUE_URL is not set")
    return q


def parse_body(body: str) -> ContactDetailsEvent | None:
    """
    Parse a queue message body into a contact details event.

    Accepts the raw record event or an SNS envelope wrapping it. Returns None for
    anything that cannot be handled (malformed JSON, missing trainee id).
    """
    try:
        data = json.loads(body) if body else {}
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None

    # SNS -> SQS subscriptions without raw delivery wrap the event.
    if data.get("Type") == "Notification" and isinstance(data.get("Message"), str):
        try:
            data = json.loads(data["Message"])
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None

    try:
        return ContactDetailsEvent.from_record(data)
    except ValueError:
        return None


def handle_contact_details_update(event: ContactDetailsEvent, service: UserAccountService) -> None:
    details: ContactDetails = event.contact_details
    trainee_id = details.trainee_id
    log.info("contact_details_update_received", trainee_id=trainee_id)

    if not details.email:
        log.info("contact_details_update_no_email", trainee_id=trainee_id)
        return

    account_ids = service.get_user_account_ids(trainee_id)

    if not account_ids:
        log.info("contact_details_update_no_account", trainee_id=trainee_id)
        return

    if len(account_ids) == 1:
        account_id = next(iter(account_ids))
    else:
        account_id = service.delete_duplicate_accounts(trainee_id, set(account_ids), details.email)
        if account_id is None:
            raise ValueError(
                f"{len(account_ids)} accounts found for trainee {trainee_id}, unable to update email."
            )

    service.update_contact_details(account_id, details.email, details.forenames, details.surname)


def process_message(body: str, service: UserAccountService) -> bool:
    """
    Handle a single message body.

    Returns False when the message is malformed and should be dropped. Handler
    errors propagate so the message is retried after its visibility timeout.
    """
    event = parse_body(body)
    if event is None:
        return False
    handle_contact_details_update(event, service)
    return True


def run_forever() -> None:
    configure_logging(level="INFO")
    qurl = _queue_url()
    sqs = sqs_client()
    service = get_user_account_service()
    wait_s = max(1, min(20, int(settings.contact_details_poll_wait_seconds or 10)))
    max_msgs = max(1, min(10, int(settings.contact_details_poll_max_messages or 5)))

    log.info(
        "contact_details_worker_starting",
        queue_url=qurl,
        wait_seconds=wait_s,
        max_messages=max_msgs,
    )

    while True:
        try:
            resp = sqs.receive_message(
                QueueUrl=qurl,
                MaxNumberOfMessages=max_msgs,
                WaitTimeSeconds=wait_s,
            )
            msgs: list[dict[str, Any]] = resp.get("Messages") or []
            for m in msgs:
                receipt = m.get("ReceiptHandle")
                try:
                    handled = process_message(str(m.get("Body") or ""), service)
                except Exception:
                    # Visibility timeout handles the retry.
                    log.exception("contact_details_update_failed", message_id=m.get("MessageId"))
                    continue

                if not handled:
                    log.warning("contact_details_message_dropped", message_id=m.get("MessageId"))
                if receipt:
                    sqs.delete_message(QueueUrl=qurl, ReceiptHandle=receipt)
        except Exception:
            # Prevent tight crash loops.
            log.exception("contact_details_worker_loop_error")
            time.sleep(2.0)


if __name__ == "__main__":
    run_forever()
