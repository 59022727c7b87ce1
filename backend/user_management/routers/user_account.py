from __future__ import annotations

from fastapi import APIRouter, Response

from ..domain.user_account import UserAccountDetails, UserGroupList, UserLoginDetails
from ..observability.logging import get_logger
from ..services.factory import get_user_account_service
from ..settings import settings

router = APIRouter(tags=["user-account"])
log = get_logger("user_account_router")


@router.get("/details/{username}", response_model=UserAccountDetails)
def get_user_account_details(username: str):
    log.info("account_details_requested", username=username)
    return get_user_account_service().get_user_account_details(username)


@router.get("/logins/{username}", response_model=list[UserLoginDetails])
def get_user_login_details(username: str):
    log.info("login_details_requested", username=username)
    return get_user_account_service().get_user_login_details(username)


@router.get("/user-groups/{username}", response_model=UserGroupList)
def get_user_groups(username: str):
    log.info("user_groups_requested", username=username)
    return UserGroupList(user_groups=get_user_account_service().get_user_groups(username))


@router.post("/reset-mfa/{username}", status_code=204)
def reset_user_account_mfa(username: str):
    log.info("mfa_reset_requested", username=username)
    get_user_account_service().reset_user_account_mfa(username)
    return Response(status_code=204)


@router.delete("/{username}", status_code=204)
def delete_cognito_account(username: str):
    log.info("account_delete_requested", username=username)
    get_user_account_service().delete_cognito_account(username)
    return Response(status_code=204)


@router.post("/dsp-consultants/enroll/{username}", status_code=204)
def enroll_dsp_consultation_group(username: str):
    log.info("dsp_consultation_enroll_requested", username=username)
    get_user_account_service().enroll_to_user_group(username, settings.cognito_consultation_group)
    return Response(status_code=204)


@router.post("/dsp-consultants/withdraw/{username}", status_code=204)
def withdraw_dsp_consultation_group(username: str):
    log.info("dsp_consultation_withdraw_requested", username=username)
    get_user_account_service().withdraw_from_user_group(username, settings.cognito_consultation_group)
    return Response(status_code=204)
