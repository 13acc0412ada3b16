from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SubmitServiceRequestBody(BaseModel):
    # Presence and cross-field rules live in services.validation so the
    # client gets one descriptive message instead of a field dump.
    sourceType: Optional[str] = None
    dataNeeded: Optional[List[str]] = None
    serviceTypes: Optional[List[str]] = None
    imei: Optional[str] = None
    phoneNumber: Optional[str] = None
    lastUsedPhoneNumber: Optional[str] = None
    additionalNote: Optional[str] = None
    # raw value; a numeric string must not be coerced into a matching charge
    serviceCharge: Optional[Any] = None
    paymentMethod: Optional[str] = None
    trxId: Optional[str] = None


class StatusUpdateBody(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    status: str
    moderatorNotes: Optional[str] = Field(None, max_length=1000)


class DeliverDataBody(BaseModel):
    requestId: Optional[str] = None
    dataType: Optional[str] = None
    dataContent: Optional[Any] = None
