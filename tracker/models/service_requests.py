from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import Field

from tracker.core.enums import (
    DataCategory,
    PaymentMethod,
    RequestStatus,
    ServiceKey,
    SourceType,
)
from tracker.models.common import PyObjectId, TrackerBaseModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ServiceRequest(TrackerBaseModel):
    id: Optional[PyObjectId] = Field(None, alias="_id")
    user: PyObjectId

    sourceType: SourceType
    dataNeeded: List[DataCategory]
    serviceTypes: List[ServiceKey]

    imei: Optional[str] = None
    phoneNumber: Optional[str] = None
    lastUsedPhoneNumber: Optional[str] = None
    additionalNote: Optional[str] = Field(None, max_length=500)

    # frozen at submission; never recomputed from the price table
    serviceCharge: int = Field(..., ge=0)
    paymentMethod: PaymentMethod
    trxId: str = Field(..., min_length=8)

    status: RequestStatus = RequestStatus.pending
    moderatorNotes: Optional[str] = Field(None, max_length=1000)

    createdAt: datetime = Field(default_factory=utcnow)
    updatedAt: datetime = Field(default_factory=utcnow)


class DeliveredData(TrackerBaseModel):
    id: Optional[PyObjectId] = Field(None, alias="_id")
    requestId: PyObjectId
    dataType: DataCategory
    dataContent: Any
    deliveredBy: PyObjectId
    createdAt: datetime = Field(default_factory=utcnow)
