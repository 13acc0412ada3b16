from typing import Any, Dict, Optional

from tracker.utils.mongo import serialize_mongo

NEW_SERVICE_REQUEST = "new-service-request"
SERVICE_REQUEST_UPDATED = "service-request-updated"
NOTIFICATION = "notification"
AUTH = "auth"


def new_service_request(request: dict) -> Dict[str, Any]:
    return {"type": NEW_SERVICE_REQUEST, "request": serialize_mongo(request)}


def service_request_updated(request: dict, delivered_data: Optional[dict] = None) -> Dict[str, Any]:
    message = {"type": SERVICE_REQUEST_UPDATED, "request": serialize_mongo(request)}
    if delivered_data is not None:
        message["deliveredData"] = serialize_mongo(delivered_data)
    return message


def notification(text: str) -> Dict[str, Any]:
    return {"type": NOTIFICATION, "message": text}


def auth_accepted(identity: str, role: str) -> Dict[str, Any]:
    return {"type": AUTH, "success": True, "identity": identity, "role": role}
