import uuid
from decimal import Decimal

BASE = "/call-record-api/v1"
HEADER = "CallerId,Recipient,CallDate,CallTime,Duration,Cost,Reference,Currency\n"

PAYLOAD = {
    "caller_id": "441215598896",
    "recipient": "448000096481",
    "start_time": "2024-08-16T14:21:33Z",
    "end_time": "2024-08-16T14:22:16Z",
    "cost": "0.121",
    "reference": "C5DA9724701EEBBA95CA2CC5617BA93E4",
    "currency": "GBP",
}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_create_and_fetch_call_record(client):
    created = client.post(f"{BASE}/", json=PAYLOAD)
    assert created.status_code == 200
    body = created.json()
    assert body["duration"] == 43
    assert body["call_date"] == "2024-08-16"
    assert Decimal(str(body["cost"])) == Decimal("0.121")

    by_id = client.get(f"{BASE}/{body['id']}")
    by_reference = client.get(f"{BASE}/reference/{PAYLOAD['reference']}")
    assert by_id.status_code == 200
    assert by_reference.json()["id"] == body["id"]


def test_create_rejects_invalid_payload(client):
    for override in ({"cost": "0"}, {"currency": "POUND"}, {"caller_id": "1" * 21}, {"end_time": "2024-08-16T14:00:00Z"}):
        response = client.post(f"{BASE}/", json={**PAYLOAD, **override})
        assert response.status_code == 422, override


def test_unknown_call_record_is_404(client):
    response = client.get(f"{BASE}/{uuid.uuid4()}")
    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "call_record_not_found"


def test_list_call_records(client, make_call):
    make_call(reference="A", caller_id="123")
    make_call(reference="B", caller_id="456")

    response = client.get(f"{BASE}/", params={"phone_number": "45", "page_size": 10})

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["total_pages"] == 1
    assert body["next_page"] is None
    assert [item["reference"] for item in body["items"]] == ["B"]


def test_list_rejects_bad_paging(client):
    assert client.get(f"{BASE}/", params={"page_size": 0}).status_code == 422
    assert client.get(f"{BASE}/", params={"page": -1}).status_code == 422


def test_bulk_add(client):
    second = {**PAYLOAD, "reference": "SECOND"}
    response = client.post(f"{BASE}/bulk", json=[PAYLOAD, second])
    assert response.status_code == 200
    assert response.json() == {"added": True}
    assert client.get(f"{BASE}/").json()["total"] == 2


def test_update_and_delete(client):
    created = client.post(f"{BASE}/", json=PAYLOAD).json()

    updated = client.put(f"{BASE}/{created['id']}", json={"currency": "EUR"})
    assert updated.status_code == 200
    assert updated.json()["currency"] == "EUR"
    assert updated.json()["recipient"] == PAYLOAD["recipient"]

    renamed = client.put(f"{BASE}/reference/{PAYLOAD['reference']}", json={"reference": "RENAMED"})
    assert renamed.json()["reference"] == "RENAMED"

    assert client.delete(f"{BASE}/reference/RENAMED").status_code == 200
    assert client.delete(f"{BASE}/{created['id']}").status_code == 404


def test_update_with_end_before_start_is_400(client):
    created = client.post(f"{BASE}/", json=PAYLOAD).json()
    response = client.put(f"{BASE}/{created['id']}", json={"start_time": "2024-08-16T15:00:00Z"})
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "end_time_before_start_time"


def test_upload_csv(client):
    content = HEADER + "111,222,01/01/2023,10:00:00,60,1.50,REF001,USD\nnot,enough,fields\n"

    response = client.post(f"{BASE}/upload-csv", files={"file": ("calls.csv", content.encode(), "text/csv")})

    assert response.status_code == 200
    assert response.json() == {"imported": 1, "skipped_rows": [3]}
    assert client.get(f"{BASE}/reference/REF001").json()["start_time"].startswith("2023-01-01T09:59:00")


def test_upload_csv_without_valid_rows_is_400(client):
    response = client.post(f"{BASE}/upload-csv", files={"file": ("calls.csv", HEADER.encode(), "text/csv")})
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "VALIDATION_ERROR"


def test_upload_empty_file_is_400(client):
    response = client.post(f"{BASE}/upload-csv", files={"file": ("calls.csv", b"", "text/csv")})
    assert response.status_code == 400
