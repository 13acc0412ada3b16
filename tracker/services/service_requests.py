import logging
from typing import Any, Dict, List, Mapping, Optional

from tracker.models.service_requests import ServiceRequest
from tracker.realtime import events
from tracker.realtime.connections import ConnectionRegistry
from tracker.repositories.accounts import UserRepository
from tracker.repositories.delivered_data import DeliveredDataRepository
from tracker.repositories.service_requests import ServiceRequestRepository
from tracker.services.exceptions import InvalidStatus, RequestNotFound
from tracker.services.validation import validate_submission
from tracker.services.workflow import (
    ModeratorSet,
    Outcome,
    advance,
    apply_transition_updates,
)

logger = logging.getLogger(__name__)


class ServiceRequestService:
    def __init__(
        self,
        requests: ServiceRequestRepository,
        deliveries: DeliveredDataRepository,
        users: UserRepository,
        connections: ConnectionRegistry,
    ):
        self.requests = requests
        self.deliveries = deliveries
        self.users = users
        self.connections = connections

    # ------------------------------------------------------------------
    # User side
    # ------------------------------------------------------------------
    async def submit(self, user: dict, payload: Mapping[str, Any]) -> Dict[str, Any]:
        cleaned = validate_submission(payload)
        doc = await self.requests.insert(
            ServiceRequest(user=user["_id"], **cleaned).to_document()
        )
        logger.info(
            "Service request %s submitted by user %s (%s, charge %s)",
            doc["_id"], user["_id"], ",".join(doc["serviceTypes"]), doc["serviceCharge"],
        )

        message = events.new_service_request(doc)
        await self.connections.send_to_moderators(message)
        await self.connections.send_to_user(user["_id"], message)
        return doc

    async def list_for_user(self, user: dict) -> List[Dict[str, Any]]:
        return await self.requests.list_for_user(user["_id"])

    # ------------------------------------------------------------------
    # Moderator side
    # ------------------------------------------------------------------
    async def get(self, request_id) -> Dict[str, Any]:
        doc = await self.requests.get(request_id)
        if not doc:
            raise RequestNotFound("Tracker request not found")
        return doc

    async def populate_owners(self, docs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        owners = await self.users.get_public_by_ids(d["user"] for d in docs)
        for d in docs:
            d["user"] = owners.get(str(d["user"]))
        return docs

    async def list_all(self) -> List[Dict[str, Any]]:
        return await self.populate_owners(await self.requests.list_all())

    async def set_status(
        self,
        request_id,
        status: str,
        moderator: dict,
        moderator_notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        current = await self.get(request_id)
        transition = advance(current["status"], ModeratorSet(status))
        if transition.outcome is Outcome.illegal:
            raise InvalidStatus(transition.reason)
        if transition.backward:
            logger.warning(
                "Moderator %s moved request %s backwards: %s -> %s",
                moderator.get("email"), current["_id"], transition.previous, transition.status,
            )

        updated = await self.requests.update(
            current["_id"], apply_transition_updates(transition, moderator_notes)
        )
        if updated is None:
            # deleted between the read and the write
            raise RequestNotFound("Tracker request not found")
        logger.info(
            "Request %s status %s -> %s by %s",
            updated["_id"], transition.previous, transition.status, moderator.get("email"),
        )

        owner_id = updated["user"]
        await self.connections.send_to_user(owner_id, events.service_request_updated(updated))
        if transition.changed:
            await self.connections.send_to_user(
                owner_id,
                events.notification(f"Your service request is now {transition.status}"),
            )
        await self.connections.send_to_moderators(events.service_request_updated(updated))

        return (await self.populate_owners([updated]))[0]

    async def delete(self, request_id) -> int:
        """Remove a request and its delivered data; returns how many deliveries went with it."""
        if not await self.requests.delete(request_id):
            raise RequestNotFound("Tracker request not found")
        removed = await self.deliveries.delete_for_request(request_id)
        logger.info("Request %s deleted with %d delivered record(s)", request_id, removed)
        return removed
