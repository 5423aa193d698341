# tests/test_api_text_endpoints.py

FULL_MESSAGE = "My current rent is $1,300 in Buffalo, NY and I'd like to get it down to $1,200"


def test_extract_endpoint(client):
    r = client.post("/extract", json={"text": FULL_MESSAGE})
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["current_rent"] == 1300.0
    assert data["target_rent"] == 1200.0
    assert data["location"]["city"] == "Buffalo"
    assert data["location"]["state"] == "NY"


def test_trigger_endpoint_asks_for_missing_details(client):
    r = client.post("/trigger", json={"text": "help me lower my rent"})
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["decision"]["should_trigger"] is True
    assert data["decision"]["completeness"] == {"has_rent": False, "has_target": False, "has_location": False}
    assert len(data["follow_up_questions"]) == 3
    assert data["message"].startswith("I'd be happy to help")


def test_trigger_endpoint_ignores_unrelated_text(client):
    r = client.post("/trigger", json={"text": "What's the weather today?"})
    assert r.status_code == 200
    data = r.json()
    assert data["decision"]["should_trigger"] is False
    assert data["message"] is None


def test_text_is_required(client):
    r = client.post("/extract", json={})
    assert r.status_code == 422


def test_market_estimate_endpoint(client):
    r = client.post("/market/estimate", json={"location": "Buffalo, NY"})
    assert r.status_code == 200, r.text
    data = r.json()
    assert 1180.0 <= data["median"] <= 1220.0
    assert data["range"]["low"] <= data["median"] <= data["range"]["high"]
    assert 0.0 < data["confidence"] <= 1.0
    assert {s["provider_id"] for s in data["sources"]} == {"hud_fmr", "zori", "rentcast_listings"}


def test_market_estimate_without_data(client):
    r = client.post("/market/estimate", json={"location": "Smallville, KS"})
    assert r.status_code == 200
    data = r.json()
    assert data["median"] is None
    assert data["confidence"] == 0.0


def test_message_endpoint_round_trip(client):
    r1 = client.post("/message", json={"text": "help me lower my rent, I pay $1,300"})
    assert r1.status_code == 200, r1.text
    first = r1.json()
    assert first["kind"] == "follow_up"

    r2 = client.post("/message", json={"text": "Buffalo, NY", "previous_facts": first["facts"]})
    assert r2.status_code == 200, r2.text
    second = r2.json()
    assert second["kind"] == "plan"
    assert second["plan"]["market_summary"]["current_rent"] == 1300.0


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
