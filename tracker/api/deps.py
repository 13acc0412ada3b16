from fastapi import Depends
from starlette.requests import HTTPConnection

from tracker.db.mongo import ADMINS, DELIVERED_DATA, SERVICE_REQUESTS, USERS
from tracker.db.session import get_db
from tracker.realtime.connections import ConnectionRegistry
from tracker.repositories.accounts import AdminRepository, UserRepository
from tracker.repositories.delivered_data import DeliveredDataRepository
from tracker.repositories.service_requests import ServiceRequestRepository
from tracker.services.delivery import DeliveryService
from tracker.services.service_requests import ServiceRequestService


def get_connections(conn: HTTPConnection) -> ConnectionRegistry:
    return conn.app.state.connections


def get_service_request_service(
    db=Depends(get_db),
    connections: ConnectionRegistry = Depends(get_connections),
) -> ServiceRequestService:
    return ServiceRequestService(
        ServiceRequestRepository(db[SERVICE_REQUESTS]),
        DeliveredDataRepository(db[DELIVERED_DATA]),
        UserRepository(db[USERS]),
        connections,
    )


def get_delivery_service(
    db=Depends(get_db),
    connections: ConnectionRegistry = Depends(get_connections),
) -> DeliveryService:
    return DeliveryService(
        ServiceRequestRepository(db[SERVICE_REQUESTS]),
        DeliveredDataRepository(db[DELIVERED_DATA]),
        AdminRepository(db[ADMINS]),
        connections,
    )
