import logging

from fastapi import APIRouter, Depends, HTTPException

from tracker.api.deps import get_delivery_service, get_service_request_service
from tracker.core.security import get_current_moderator
from tracker.schemas.service_request import DeliverDataBody, StatusUpdateBody
from tracker.services.delivery import DeliveryService
from tracker.services.exceptions import DeliveryRejected, InvalidStatus, RequestNotFound
from tracker.services.service_requests import ServiceRequestService
from tracker.services.workflow import STATUSES
from tracker.utils.mongo import serialize_mongo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin Tracker"])


# LIST ALL REQUESTS (newest first, owner populated)
@router.get("/tracker/requests")
async def list_requests(
    moderator: dict = Depends(get_current_moderator),
    service: ServiceRequestService = Depends(get_service_request_service),
):
    requests = await service.list_all()
    return {"success": True, "requests": serialize_mongo(requests)}


@router.put("/tracker/requests/{request_id}/status")
async def update_status(
    request_id: str,
    body: StatusUpdateBody,
    moderator: dict = Depends(get_current_moderator),
    service: ServiceRequestService = Depends(get_service_request_service),
):
    if body.status not in STATUSES:
        raise HTTPException(400, "Invalid status provided")

    try:
        updated = await service.set_status(
            request_id, body.status, moderator, moderator_notes=body.moderatorNotes
        )
    except RequestNotFound as exc:
        raise HTTPException(404, str(exc)) from exc
    except InvalidStatus as exc:
        raise HTTPException(400, str(exc)) from exc

    return {
        "success": True,
        "message": "Tracker request updated successfully",
        "request": serialize_mongo(updated),
    }


@router.delete("/tracker/requests/{request_id}")
async def delete_request(
    request_id: str,
    moderator: dict = Depends(get_current_moderator),
    service: ServiceRequestService = Depends(get_service_request_service),
):
    try:
        removed = await service.delete(request_id)
    except RequestNotFound as exc:
        raise HTTPException(404, str(exc)) from exc

    logger.info("Moderator %s deleted request %s", moderator.get("email"), request_id)
    return {
        "success": True,
        "message": "Tracker request deleted successfully",
        "deletedDeliveries": removed,
    }


@router.post("/deliver-data", status_code=201)
async def deliver_data(
    body: DeliverDataBody,
    moderator: dict = Depends(get_current_moderator),
    service: DeliveryService = Depends(get_delivery_service),
):
    if not body.requestId or not body.dataType or body.dataContent in (None, ""):
        raise HTTPException(400, "Missing required fields: requestId, dataType, dataContent")

    try:
        record, request = await service.deliver(
            body.requestId, body.dataType, body.dataContent, moderator
        )
    except RequestNotFound as exc:
        raise HTTPException(404, str(exc)) from exc
    except DeliveryRejected as exc:
        raise HTTPException(400, str(exc)) from exc

    return {
        "success": True,
        "message": "Data delivered successfully",
        "deliveredData": serialize_mongo(record),
        "request": serialize_mongo(request),
    }
