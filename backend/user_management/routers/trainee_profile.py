from __future__ import annotations

from fastapi import APIRouter, Response

from ..observability.logging import get_logger
from ..services.factory import get_event_publish_service

router = APIRouter(tags=["trainee-profile"])
log = get_logger("trainee_profile_router")


@router.post("/sync/{trainee_tis_id}")
def sync_trainee_profile(trainee_tis_id: str):
    log.info("profile_resync_requested", trainee_id=trainee_tis_id)
    get_event_publish_service().publish_single_profile_sync_event(trainee_tis_id)
    return Response(status_code=200)


@router.post("/move/{from_tis_id}/to/{to_tis_id}")
def move_trainee_profile(from_tis_id: str, to_tis_id: str):
    log.info("profile_move_requested", from_trainee_id=from_tis_id, to_trainee_id=to_tis_id)
    get_event_publish_service().publish_profile_move_event(from_tis_id, to_tis_id)
    return Response(status_code=200)
