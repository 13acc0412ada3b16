import logging
from typing import Any, Dict, List, Tuple

from tracker.models.service_requests import DeliveredData
from tracker.realtime import events
from tracker.realtime.connections import ConnectionRegistry
from tracker.repositories.accounts import AdminRepository
from tracker.repositories.delivered_data import DeliveredDataRepository
from tracker.repositories.service_requests import ServiceRequestRepository
from tracker.services.exceptions import DeliveryRejected, RequestNotFound
from tracker.services.pricing import canonical_category
from tracker.services.workflow import (
    DataDelivered,
    Outcome,
    advance,
    apply_transition_updates,
)

logger = logging.getLogger(__name__)


class DeliveryService:
    def __init__(
        self,
        requests: ServiceRequestRepository,
        deliveries: DeliveredDataRepository,
        admins: AdminRepository,
        connections: ConnectionRegistry,
    ):
        self.requests = requests
        self.deliveries = deliveries
        self.admins = admins
        self.connections = connections

    async def deliver(
        self,
        request_id,
        data_type: str,
        data_content: Any,
        moderator: dict,
    ) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        """Append a delivery and advance the request; returns (record, request)."""
        request = await self.requests.get(request_id)
        if not request:
            raise RequestNotFound("Location tracker service request not found")

        category = canonical_category(data_type)
        if category is None or category not in request["dataNeeded"]:
            raise DeliveryRejected(
                f"Data type {data_type} was not requested for this service request"
            )

        needed = set(request["dataNeeded"])
        before = await self.deliveries.delivered_types(request["_id"])
        preview = advance(request["status"], DataDelivered(before | {category}, needed))
        if preview.outcome is Outcome.illegal:
            raise DeliveryRejected(preview.reason)

        record = await self.deliveries.append(
            DeliveredData(
                requestId=request["_id"],
                dataType=category,
                dataContent=data_content,
                deliveredBy=moderator["_id"],
            ).to_document()
        )
        if await self.requests.get(request["_id"]) is None:
            # request deleted after our read; its ledger was already swept
            await self.deliveries.remove(record["_id"])
            raise RequestNotFound("Location tracker service request not found")
        logger.info(
            "Delivered %s for request %s by %s",
            category, request["_id"], moderator.get("email"),
        )

        request = await self._settle(request)

        message = events.service_request_updated(request, delivered_data=record)
        await self.connections.send_to_user(request["user"], message)
        await self.connections.send_to_moderators(message)
        return record, request

    async def _settle(self, request: Dict[str, Any]) -> Dict[str, Any]:
        # status write is conditional on the status read; on conflict re-read and retry
        needed = set(request["dataNeeded"])
        while True:
            delivered = await self.deliveries.delivered_types(request["_id"])
            transition = advance(request["status"], DataDelivered(delivered, needed))
            if not transition.changed:
                return request

            updated = await self.requests.update(
                request["_id"],
                apply_transition_updates(transition),
                expected_status=transition.previous,
            )
            if updated is not None:
                logger.info(
                    "Request %s status %s -> %s after delivery",
                    request["_id"], transition.previous, transition.status,
                )
                return updated

            current = await self.requests.get(request["_id"])
            if current is None:
                return request
            request = current

    async def list_for_request(self, request_id) -> List[Dict[str, Any]]:
        """Ledger for a request, each record annotated with the moderator's email."""
        records = await self.deliveries.list_for_request(request_id)
        moderators = await self.admins.emails_by_ids(r["deliveredBy"] for r in records)
        for r in records:
            r["deliveredBy"] = moderators.get(str(r["deliveredBy"]))
        return records
