from typing import Any, Dict, List, Optional

from pymongo import DESCENDING, ReturnDocument

from tracker.utils.mongo import parse_oid


class ServiceRequestRepository:
    def __init__(self, col):
        self.col = col

    async def insert(self, document: Dict[str, Any]) -> Dict[str, Any]:
        result = await self.col.insert_one(document)
        document["_id"] = result.inserted_id
        return document

    async def get(self, request_id) -> Optional[Dict[str, Any]]:
        oid = parse_oid(request_id)
        if oid is None:
            return None
        return await self.col.find_one({"_id": oid})

    async def list_for_user(self, user_id) -> List[Dict[str, Any]]:
        cursor = self.col.find({"user": parse_oid(user_id)}).sort("createdAt", DESCENDING)
        return await cursor.to_list(length=None)

    async def list_all(self) -> List[Dict[str, Any]]:
        cursor = self.col.find().sort("createdAt", DESCENDING)
        return await cursor.to_list(length=None)

    async def update(
        self,
        request_id,
        update: Dict[str, Any],
        expected_status: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """Apply ``update``; with ``expected_status`` only if the status still matches."""
        oid = parse_oid(request_id)
        if oid is None:
            return None
        query: Dict[str, Any] = {"_id": oid}
        if expected_status is not None:
            query["status"] = expected_status
        return await self.col.find_one_and_update(
            query,
            update,
            return_document=ReturnDocument.AFTER,
        )

    async def delete(self, request_id) -> bool:
        oid = parse_oid(request_id)
        if oid is None:
            return False
        result = await self.col.delete_one({"_id": oid})
        return result.deleted_count == 1
