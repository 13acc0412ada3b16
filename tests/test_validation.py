from itertools import combinations

import pytest

from tracker.services.pricing import NUMBER_SERVICES, SERVICE_PRICES, category_for
from tracker.services.validation import (
    INTEGRITY,
    INVALID_INPUT,
    SubmissionRejected,
    is_valid_phone,
    validate_submission,
)

NUMBER_KEYS = sorted(NUMBER_SERVICES)


def rejected(payload):
    with pytest.raises(SubmissionRejected) as exc:
        validate_submission(payload)
    return exc.value


def test_phone_example_is_accepted_with_server_side_charge(phone_payload):
    cleaned = validate_submission(phone_payload)

    assert cleaned["serviceCharge"] == 1800
    assert cleaned["phoneNumber"] == "01712345678"
    assert cleaned["dataNeeded"] == ["location", "nid"]
    assert "imei" not in cleaned


def test_phone_charge_off_by_one_is_an_integrity_error(phone_payload):
    phone_payload["serviceCharge"] = 1799

    err = rejected(phone_payload)
    assert err.kind == INTEGRITY
    assert "Service charge mismatch" in err.message


def test_imei_example_is_accepted(imei_payload):
    cleaned = validate_submission(imei_payload)

    assert cleaned["serviceCharge"] == 1500
    assert cleaned["serviceTypes"] == ["imeiToNumber"]
    assert cleaned["lastUsedPhoneNumber"] == "01912345678"


def test_float_charge_equal_to_total_is_accepted(phone_payload):
    phone_payload["serviceCharge"] = 1800.0
    assert validate_submission(phone_payload)["serviceCharge"] == 1800


@pytest.mark.parametrize("phone", ["01912345678", "01312345678", "01712345678"])
def test_valid_phone_numbers(phone):
    assert is_valid_phone(phone)


@pytest.mark.parametrize(
    "phone",
    ["02712345678", "01212345678", "0171234567", "017123456789", "0171234567a", "", None],
)
def test_invalid_phone_numbers(phone):
    assert not is_valid_phone(phone)


def test_phone_request_with_bad_prefix_is_rejected(phone_payload):
    phone_payload["phoneNumber"] = "02712345678"
    assert rejected(phone_payload).kind == INVALID_INPUT


@pytest.mark.parametrize("size", [0, 1, 2, 3, 4])
def test_every_imei_combination_includes_base_and_prices_add_up(imei_payload, size):
    for extra in combinations(NUMBER_KEYS, size):
        service_types = ["imeiToNumber", *extra]
        imei_payload["serviceTypes"] = service_types
        imei_payload["dataNeeded"] = ["number"] + [category_for(k) for k in extra]
        imei_payload["serviceCharge"] = sum(SERVICE_PRICES[k] for k in service_types)

        cleaned = validate_submission(imei_payload)

        assert "imeiToNumber" in cleaned["serviceTypes"]
        assert cleaned["serviceCharge"] >= SERVICE_PRICES["imeiToNumber"]
        assert set(cleaned["dataNeeded"]) == {category_for(k) for k in service_types}


def test_imei_without_base_service_is_rejected(imei_payload):
    imei_payload["serviceTypes"] = ["numberToLocation"]
    imei_payload["dataNeeded"] = ["location"]
    imei_payload["serviceCharge"] = 1000

    assert "must include imeiToNumber" in rejected(imei_payload).message


def test_imei_is_required(imei_payload):
    imei_payload["imei"] = "   "
    assert rejected(imei_payload).message == "IMEI is required for IMEI tracking"


def test_imei_request_drops_phone_number(imei_payload):
    imei_payload["phoneNumber"] = "01712345678"
    assert "phoneNumber" not in validate_submission(imei_payload)


def test_phone_request_ignores_last_used_number(phone_payload):
    phone_payload["lastUsedPhoneNumber"] = "01912345678"
    assert "lastUsedPhoneNumber" not in validate_submission(phone_payload)


def test_unknown_service_type_is_rejected(imei_payload):
    imei_payload["serviceTypes"] = ["imeiToNumber", "numberToPassport"]
    imei_payload["dataNeeded"] = ["number", "passport"]

    err = rejected(imei_payload)
    assert err.kind == INVALID_INPUT
    assert "Invalid service type" in err.message


def test_phone_request_cannot_buy_imei_lookup(phone_payload):
    phone_payload["serviceTypes"] = ["imeiToNumber"]
    phone_payload["dataNeeded"] = ["number"]
    phone_payload["serviceCharge"] = 1500

    assert "Invalid service type" in rejected(phone_payload).message


def test_duplicate_service_type_is_rejected(phone_payload):
    phone_payload["serviceTypes"] = ["numberToLocation", "numberToLocation"]
    phone_payload["dataNeeded"] = ["location", "location"]
    phone_payload["serviceCharge"] = 2000

    assert "Duplicate service type" in rejected(phone_payload).message


@pytest.mark.parametrize(
    "data_needed",
    [
        ["location"],  # paid for nid but did not ask for it
        ["location", "nid", "callList3Months"],  # asked for more than paid
        ["location", "location"],
        ["location", "passport"],
    ],
)
def test_data_needed_must_match_paid_services(phone_payload, data_needed):
    phone_payload["dataNeeded"] = data_needed

    err = rejected(phone_payload)
    assert err.kind == INTEGRITY
    assert "Data needed mismatch" in err.message


def test_data_needed_order_and_case_do_not_matter(phone_payload):
    phone_payload["dataNeeded"] = ["NID", "Location"]
    assert validate_submission(phone_payload)["dataNeeded"] == ["nid", "location"]


def test_call_list_categories_are_accepted(phone_payload):
    phone_payload["serviceTypes"] = ["numberToCallList3Months", "numberToCallList6Months"]
    phone_payload["dataNeeded"] = ["callList3Months", "callList6Months"]
    phone_payload["serviceCharge"] = 5000

    assert validate_submission(phone_payload)["serviceCharge"] == 5000


def test_imei_data_needed_must_include_number(imei_payload):
    imei_payload["serviceTypes"] = ["imeiToNumber", "numberToLocation"]
    imei_payload["dataNeeded"] = ["location"]
    imei_payload["serviceCharge"] = 2500

    assert rejected(imei_payload).kind == INTEGRITY


@pytest.mark.parametrize(
    "field, value",
    [
        ("sourceType", None),
        ("sourceType", ""),
        ("dataNeeded", []),
        ("dataNeeded", "location"),
        ("serviceTypes", []),
        ("serviceTypes", None),
        ("serviceTypes", [1, 2]),
    ],
)
def test_missing_fields_or_bad_arrays(phone_payload, field, value):
    phone_payload[field] = value
    assert rejected(phone_payload).message == "Missing required fields or invalid array format"


def test_unknown_source_type(phone_payload):
    phone_payload["sourceType"] = "email"
    assert rejected(phone_payload).message == "Invalid source type"


@pytest.mark.parametrize("charge", [None, "1800", True])
def test_non_numeric_charge_is_a_mismatch(phone_payload, charge):
    phone_payload["serviceCharge"] = charge
    assert rejected(phone_payload).kind == INTEGRITY


@pytest.mark.parametrize("trx_id", [None, "", "short", "1234567"])
def test_trx_id_needs_eight_characters(phone_payload, trx_id):
    phone_payload["trxId"] = trx_id
    assert "TRX ID" in rejected(phone_payload).message


def test_trx_id_of_exactly_eight_characters_is_accepted(phone_payload):
    phone_payload["trxId"] = "12345678"
    assert validate_submission(phone_payload)["trxId"] == "12345678"


def test_payment_method_required_and_known(phone_payload):
    phone_payload["paymentMethod"] = ""
    assert rejected(phone_payload).message == "Payment method is required"

    phone_payload["paymentMethod"] = "PayPal"
    assert "Invalid payment method" in rejected(phone_payload).message


def test_additional_note_limit(phone_payload):
    phone_payload["additionalNote"] = "x" * 500
    assert len(validate_submission(phone_payload)["additionalNote"]) == 500

    phone_payload["additionalNote"] = "x" * 501
    assert "500" in rejected(phone_payload).message
