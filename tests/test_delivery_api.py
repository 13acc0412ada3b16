import asyncio

from bson import ObjectId

from tracker.db.mongo import DELIVERED_DATA

DELIVER = "/admin/deliver-data"


def ledger_url(request_id):
    return f"/api/location-tracker/delivered-data/{request_id}"


def two_category_payload(imei_payload):
    imei_payload["serviceTypes"] = ["imeiToNumber", "numberToLocation"]
    imei_payload["dataNeeded"] = ["number", "location"]
    imei_payload["serviceCharge"] = 2500
    return imei_payload


def deliver(client, headers, request_id, data_type, content="payload"):
    return client.post(
        DELIVER,
        json={"requestId": request_id, "dataType": data_type, "dataContent": content},
        headers=headers,
    )


def test_partial_then_full_delivery_walks_the_lifecycle(client, submit, imei_payload, moderator_headers):
    request = submit(two_category_payload(imei_payload))

    r = deliver(client, moderator_headers, request["_id"], "location", "23.81,90.41")
    assert r.status_code == 201
    assert r.json()["request"]["status"] == "Approved"
    record = r.json()["deliveredData"]
    assert record["dataType"] == "location"
    assert record["requestId"] == request["_id"]

    r = deliver(client, moderator_headers, request["_id"], "number", "01712345678")
    assert r.status_code == 201
    assert r.json()["request"]["status"] == "Completed"


def test_repeated_delivery_of_same_type_does_not_complete(client, submit, imei_payload, moderator_headers):
    request = submit(two_category_payload(imei_payload))

    deliver(client, moderator_headers, request["_id"], "location")
    r = deliver(client, moderator_headers, request["_id"], "location", "corrected fix")

    assert r.status_code == 201
    assert r.json()["request"]["status"] == "Approved"


def test_single_category_request_completes_on_first_delivery(client, submit, imei_payload, moderator_headers):
    request = submit(imei_payload)

    r = deliver(client, moderator_headers, request["_id"], "number", {"msisdn": "01712345678"})

    assert r.json()["request"]["status"] == "Completed"
    assert r.json()["deliveredData"]["dataContent"] == {"msisdn": "01712345678"}


def test_delivery_type_must_be_requested(client, submit, phone_payload, moderator_headers, db):
    request = submit(phone_payload)

    r = deliver(client, moderator_headers, request["_id"], "callList6Months")

    assert r.status_code == 400
    assert "was not requested" in r.json()["message"]
    assert asyncio.run(db[DELIVERED_DATA].count_documents({})) == 0


def test_delivery_type_matching_is_case_insensitive(client, submit, phone_payload, moderator_headers):
    request = submit(phone_payload)

    r = deliver(client, moderator_headers, request["_id"], "NID")

    assert r.status_code == 201
    assert r.json()["deliveredData"]["dataType"] == "nid"


def test_delivery_to_rejected_request_is_refused(client, submit, phone_payload, moderator_headers, db):
    request = submit(phone_payload)
    client.put(
        f"/admin/tracker/requests/{request['_id']}/status",
        json={"status": "Rejected"},
        headers=moderator_headers,
    )

    r = deliver(client, moderator_headers, request["_id"], "location")

    assert r.status_code == 400
    assert "rejected" in r.json()["message"]
    assert asyncio.run(db[DELIVERED_DATA].count_documents({})) == 0


def test_delivery_to_missing_request_is_404(client, moderator_headers):
    r = deliver(client, moderator_headers, str(ObjectId()), "location")
    assert r.status_code == 404


def test_delivery_needs_all_fields(client, submit, phone_payload, moderator_headers):
    request = submit(phone_payload)

    r = client.post(DELIVER, json={"requestId": request["_id"], "dataType": "location"},
                    headers=moderator_headers)

    assert r.status_code == 400
    assert r.json()["message"].startswith("Missing required fields")


def test_users_cannot_deliver(client, submit, phone_payload, user_headers):
    request = submit(phone_payload)

    r = deliver(client, {"Authorization": user_headers["Authorization"]}, request["_id"], "location")

    assert r.status_code == 403


def test_ledger_lists_records_with_moderator_email(client, submit, phone_payload, moderator_headers):
    request = submit(phone_payload)
    deliver(client, moderator_headers, request["_id"], "location", "first")
    deliver(client, moderator_headers, request["_id"], "nid", "second")

    r = client.get(ledger_url(request["_id"]), headers=moderator_headers)

    assert r.status_code == 200
    records = r.json()["deliveredData"]
    assert {rec["dataType"] for rec in records} == {"location", "nid"}
    assert all(rec["deliveredBy"]["email"] == "mod@example.com" for rec in records)


def test_owner_can_read_their_ledger(client, submit, phone_payload, moderator_headers, user_headers):
    request = submit(phone_payload)
    deliver(client, moderator_headers, request["_id"], "location", "23.81,90.41")

    r = client.get(ledger_url(request["_id"]), headers=user_headers)

    assert r.status_code == 200
    assert r.json()["deliveredData"][0]["dataContent"] == "23.81,90.41"


def test_other_users_cannot_read_the_ledger(client, submit, phone_payload, other_user_headers):
    request = submit(phone_payload)

    r = client.get(ledger_url(request["_id"]), headers=other_user_headers)

    assert r.status_code == 404


def test_ledger_for_missing_request_is_404(client, moderator_headers):
    assert client.get(ledger_url(ObjectId()), headers=moderator_headers).status_code == 404
