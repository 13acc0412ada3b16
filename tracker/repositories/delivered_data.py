from typing import Any, Dict, List, Set

from pymongo import ASCENDING

from tracker.utils.mongo import parse_oid


class DeliveredDataRepository:
    """Append-only ledger of data handed to customers; records are never updated."""

    def __init__(self, col):
        self.col = col

    async def append(self, document: Dict[str, Any]) -> Dict[str, Any]:
        result = await self.col.insert_one(document)
        document["_id"] = result.inserted_id
        return document

    async def list_for_request(self, request_id) -> List[Dict[str, Any]]:
        oid = parse_oid(request_id)
        if oid is None:
            return []
        cursor = self.col.find({"requestId": oid}).sort("createdAt", ASCENDING)
        return await cursor.to_list(length=None)

    async def delivered_types(self, request_id) -> Set[str]:
        return {d["dataType"] for d in await self.list_for_request(request_id)}

    async def remove(self, record_id) -> bool:
        """Drop a single record whose request vanished while it was being appended."""
        result = await self.col.delete_one({"_id": parse_oid(record_id)})
        return result.deleted_count == 1

    async def delete_for_request(self, request_id) -> int:
        oid = parse_oid(request_id)
        if oid is None:
            return 0
        result = await self.col.delete_many({"requestId": oid})
        return result.deleted_count
