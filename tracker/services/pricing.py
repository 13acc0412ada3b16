"""Static price table and the category <-> service-key mapping."""

from typing import Dict, Iterable, Optional

from tracker.core.enums import DataCategory, ServiceKey

BASE_SERVICE = ServiceKey.imei_to_number.value

SERVICE_PRICES: Dict[str, int] = {
    ServiceKey.imei_to_number.value: 1500,
    ServiceKey.number_to_location.value: 1000,
    ServiceKey.number_to_nid.value: 800,
    ServiceKey.number_to_call_list_3_months.value: 2000,
    ServiceKey.number_to_call_list_6_months.value: 3000,
}

# one category per service key; the base IMEI lookup yields the number
SERVICE_CATEGORIES: Dict[str, str] = {
    ServiceKey.imei_to_number.value: DataCategory.number.value,
    ServiceKey.number_to_location.value: DataCategory.location.value,
    ServiceKey.number_to_nid.value: DataCategory.nid.value,
    ServiceKey.number_to_call_list_3_months.value: DataCategory.call_list_3_months.value,
    ServiceKey.number_to_call_list_6_months.value: DataCategory.call_list_6_months.value,
}

NUMBER_SERVICES = frozenset(SERVICE_CATEGORIES) - {BASE_SERVICE}

_CANONICAL_CATEGORIES = {c.value.lower(): c.value for c in DataCategory}


def price_of(service_key: str) -> int:
    return SERVICE_PRICES[service_key]


def total_charge(service_keys: Iterable[str]) -> int:
    return sum(price_of(key) for key in service_keys)


def category_for(service_key: str) -> str:
    return SERVICE_CATEGORIES[service_key]


def canonical_category(value: Optional[str]) -> Optional[str]:
    """Canonical spelling of a data category ("NID" -> "nid"), None if unknown."""
    if not isinstance(value, str):
        return None
    return _CANONICAL_CATEGORIES.get(value.strip().lower())


def price_list() -> dict:
    return {
        "prices": dict(SERVICE_PRICES),
        "categories": dict(SERVICE_CATEGORIES),
        "baseService": BASE_SERVICE,
    }
