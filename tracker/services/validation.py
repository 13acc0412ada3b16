"""
Submission checks for new service requests.

The charge is recomputed from ``SERVICE_PRICES`` and compared with what the
client declared, and the requested data categories are cross-checked
against the paid service keys.  Nothing here touches the database; the
caller persists the cleaned fields returned by ``validate_submission``.
"""

from __future__ import annotations

import re
from numbers import Real
from typing import Any, Dict, Iterable, List, Mapping, Set

from tracker.core.enums import PaymentMethod, SourceType
from tracker.services.pricing import (
    BASE_SERVICE,
    NUMBER_SERVICES,
    canonical_category,
    category_for,
    total_charge,
)

INVALID_INPUT = "invalid_input"
INTEGRITY = "integrity"

PHONE_PATTERN = re.compile(r"^01[3-9]\d{8}$")
MIN_TRX_ID_LENGTH = 8
MAX_NOTE_LENGTH = 500

_PAYMENT_METHODS = {m.value for m in PaymentMethod}


class SubmissionRejected(ValueError):
    def __init__(self, message: str, kind: str = INVALID_INPUT):
        super().__init__(message)
        self.message = message
        self.kind = kind


def is_valid_phone(phone: Any) -> bool:
    return isinstance(phone, str) and bool(PHONE_PATTERN.match(phone.strip()))


def expected_data_needed(service_types: Iterable[str]) -> Set[str]:
    return {category_for(key) for key in service_types}


def _text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ""


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list) or not value:
        return []
    if not all(isinstance(item, str) for item in value):
        return []
    return value


def _check_service_types(source_type: str, service_types: List[str], label: str) -> None:
    seen = set()
    for service in service_types:
        if service in seen:
            raise SubmissionRejected(f"Duplicate service type: {service}")
        seen.add(service)
        if source_type == SourceType.imei.value and service == BASE_SERVICE:
            continue
        if service not in NUMBER_SERVICES:
            raise SubmissionRejected(f"Invalid service type for {label}: {service}")


def _check_data_needed(data_needed: List[str], service_types: List[str], label: str) -> List[str]:
    canonical = [canonical_category(item) for item in data_needed]
    expected = expected_data_needed(service_types)
    if (
        None in canonical
        or len(canonical) != len(expected)
        or set(canonical) != expected
    ):
        raise SubmissionRejected(f"Data needed mismatch for {label}", INTEGRITY)
    return canonical


def validate_submission(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Accept or reject a submission.

    Returns the cleaned fields of the request to store, with
    ``serviceCharge`` set to the server-side total.  Raises
    ``SubmissionRejected`` on the first failed rule.
    """
    source_type = data.get("sourceType")
    data_needed = _string_list(data.get("dataNeeded"))
    service_types = _string_list(data.get("serviceTypes"))

    if not source_type or not data_needed or not service_types:
        raise SubmissionRejected("Missing required fields or invalid array format")

    cleaned: Dict[str, Any] = {"sourceType": source_type}

    if source_type == SourceType.imei.value:
        label = "IMEI tracking"
        imei = _text(data, "imei")
        if not imei:
            raise SubmissionRejected("IMEI is required for IMEI tracking")
        if BASE_SERVICE not in service_types:
            raise SubmissionRejected(f"IMEI tracking must include {BASE_SERVICE} service")
        cleaned["imei"] = imei
        last_used = _text(data, "lastUsedPhoneNumber")
        if last_used:
            cleaned["lastUsedPhoneNumber"] = last_used

    elif source_type == SourceType.phone_number.value:
        label = "phone number tracking"
        phone = _text(data, "phoneNumber")
        if not phone:
            raise SubmissionRejected("Phone number is required for phone number tracking")
        if not is_valid_phone(phone):
            raise SubmissionRejected("Invalid phone number. Expected format: 01XXXXXXXXX")
        cleaned["phoneNumber"] = phone

    else:
        raise SubmissionRejected("Invalid source type")

    _check_service_types(source_type, service_types, label)
    cleaned["dataNeeded"] = _check_data_needed(data_needed, service_types, label)
    cleaned["serviceTypes"] = list(service_types)

    expected_charge = total_charge(service_types)
    declared = data.get("serviceCharge")
    if (
        not isinstance(declared, Real)
        or isinstance(declared, bool)
        or declared != expected_charge
    ):
        raise SubmissionRejected(
            "Service charge mismatch. Please refresh and try again.", INTEGRITY
        )
    cleaned["serviceCharge"] = expected_charge

    trx_id = _text(data, "trxId")
    if len(trx_id) < MIN_TRX_ID_LENGTH:
        raise SubmissionRejected(
            f"TRX ID must be at least {MIN_TRX_ID_LENGTH} characters."
        )
    payment_method = _text(data, "paymentMethod")
    if not payment_method:
        raise SubmissionRejected("Payment method is required")
    if payment_method not in _PAYMENT_METHODS:
        raise SubmissionRejected(f"Invalid payment method: {payment_method}")
    cleaned["trxId"] = trx_id
    cleaned["paymentMethod"] = payment_method

    note = _text(data, "additionalNote")
    if len(note) > MAX_NOTE_LENGTH:
        raise SubmissionRejected(
            f"Additional note must be at most {MAX_NOTE_LENGTH} characters."
        )
    if note:
        cleaned["additionalNote"] = note

    return cleaned
