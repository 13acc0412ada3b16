from typing import Dict, Iterable, Optional

from tracker.utils.mongo import parse_oid


class UserRepository:
    def __init__(self, col):
        self.col = col

    async def get(self, user_id) -> Optional[dict]:
        oid = parse_oid(user_id)
        if oid is None:
            return None
        return await self.col.find_one({"_id": oid})

    async def get_by_email(self, email: str) -> Optional[dict]:
        return await self.col.find_one({"email": (email or "").lower().strip()})

    async def get_public_by_ids(self, ids: Iterable) -> Dict[str, dict]:
        """name/email/phone keyed by str(_id), for populating request owners."""
        obj_ids = list({oid for oid in (parse_oid(x) for x in ids) if oid})
        if not obj_ids:
            return {}

        rows = await self.col.find(
            {"_id": {"$in": obj_ids}},
            {"name": 1, "email": 1, "phone": 1},
        ).to_list(length=None)
        return {str(u["_id"]): u for u in rows}


class AdminRepository:
    def __init__(self, col):
        self.col = col

    async def get(self, admin_id) -> Optional[dict]:
        oid = parse_oid(admin_id)
        if oid is None:
            return None
        return await self.col.find_one({"_id": oid})

    async def get_by_email(self, email: str) -> Optional[dict]:
        return await self.col.find_one({"email": (email or "").lower().strip()})

    async def emails_by_ids(self, ids: Iterable) -> Dict[str, dict]:
        obj_ids = list({oid for oid in (parse_oid(x) for x in ids) if oid})
        if not obj_ids:
            return {}

        rows = await self.col.find({"_id": {"$in": obj_ids}}, {"email": 1}).to_list(length=None)
        return {str(a["_id"]): a for a in rows}
