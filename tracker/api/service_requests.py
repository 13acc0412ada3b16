# tracker/api/service_requests.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException

from tracker.api.deps import get_delivery_service, get_service_request_service
from tracker.core.config import Settings, get_app_settings
from tracker.core.security import get_current_moderator, get_current_user
from tracker.db.session import get_db
from tracker.schemas.service_request import SubmitServiceRequestBody
from tracker.services.delivery import DeliveryService
from tracker.services.exceptions import RequestNotFound
from tracker.services.pricing import price_list
from tracker.services.service_requests import ServiceRequestService
from tracker.services.validation import INTEGRITY, SubmissionRejected
from tracker.utils.mongo import serialize_mongo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/location-tracker", tags=["Location Tracker"])


async def get_ledger_viewer(
    authorization: Optional[str] = Header(None),
    x_user_id: Optional[str] = Header(None, alias="X-User-ID"),
    db=Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict:
    """The owning user (when X-User-ID is sent) or a moderator."""
    if x_user_id:
        return {"user": await get_current_user(authorization, x_user_id, db, settings)}
    return {"moderator": await get_current_moderator(authorization, db, settings)}


@router.get("/prices")
async def get_prices():
    return {"success": True, **price_list()}


@router.post("/submit-service", status_code=201)
async def submit_service(
    body: SubmitServiceRequestBody,
    user: dict = Depends(get_current_user),
    service: ServiceRequestService = Depends(get_service_request_service),
):
    try:
        doc = await service.submit(user, body.model_dump())
    except SubmissionRejected as exc:
        if exc.kind == INTEGRITY:
            logger.warning("Integrity check failed for user %s: %s", user["_id"], exc.message)
        raise HTTPException(400, exc.message) from exc

    return {
        "success": True,
        "message": "Location tracker service request submitted successfully",
        "request": serialize_mongo(doc),
    }


@router.get("/my-service-requests")
async def my_service_requests(
    user: dict = Depends(get_current_user),
    service: ServiceRequestService = Depends(get_service_request_service),
):
    requests = await service.list_for_user(user)
    return {"success": True, "requests": serialize_mongo(requests)}


@router.get("/delivered-data/{request_id}")
async def delivered_data(
    request_id: str,
    viewer: dict = Depends(get_ledger_viewer),
    requests: ServiceRequestService = Depends(get_service_request_service),
    deliveries: DeliveryService = Depends(get_delivery_service),
):
    try:
        request = await requests.get(request_id)
    except RequestNotFound as exc:
        raise HTTPException(404, str(exc)) from exc

    user = viewer.get("user")
    if user is not None and request["user"] != user["_id"]:
        # non-owners get the not-found answer
        raise HTTPException(404, "Tracker request not found")

    records = await deliveries.list_for_request(request["_id"])
    return {"success": True, "deliveredData": serialize_mongo(records)}
