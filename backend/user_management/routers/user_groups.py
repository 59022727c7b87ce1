from __future__ import annotations

from fastapi import APIRouter, Response

from ..observability.logging import get_logger
from ..services.factory import get_user_account_service
from ..settings import settings

router = APIRouter(tags=["user-groups"])
log = get_logger("user_groups_router")


@router.post("/beta-participants/enroll/{username}", status_code=204)
def enroll_beta_participant_group(username: str):
    log.info("beta_participant_enroll_requested", username=username)
    get_user_account_service().enroll_to_user_group(username, settings.cognito_beta_participant_group)
    return Response(status_code=204)


@router.post("/beta-participants/withdraw/{username}", status_code=204)
def withdraw_beta_participant_group(username: str):
    log.info("beta_participant_withdraw_requested", username=username)
    get_user_account_service().withdraw_from_user_group(username, settings.cognito_beta_participant_group)
    return Response(status_code=204)
