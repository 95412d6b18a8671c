"""
Suggestion endpoints: plan from a payload, adjust with versions, commit.
"""

SPEC_EXAMPLE = {
    "requirements": [
        {"requirement_id": "REQ-40", "width": 40, "gsm": 120, "bf": 18, "shade": "Golden",
         "quantity": 3, "order_id": "ORD-A", "client_name": "Acme Papers"},
        {"requirement_id": "REQ-38", "width": 38, "gsm": 120, "bf": 18, "shade": "golden",
         "quantity": 2, "order_id": "ORD-B"},
    ],
}


def plan(client, **overrides):
    response = client.post("/api/cutting/suggestions", json={**SPEC_EXAMPLE, **overrides})
    assert response.status_code == 200, response.text
    return response.json()


def test_root_and_health(client):
    assert client.get("/").status_code == 200
    assert client.get("/health").json() == {"status": "healthy"}


def test_generate_spec_suggestions(client):
    body = plan(client)

    assert body["status"] == "success"
    assert body["target_width"] == 118
    [suggestion] = body["spec_suggestions"]
    assert suggestion["paper_spec"] == {"gsm": 120, "bf": 18.0, "shade": "Golden"}
    [jumbo] = suggestion["jumbo_rolls"]
    assert [[cut["width_inches"] for cut in s["cuts"]] for s in jumbo["sets"]] == [[40, 40, 38], [40, 38]]
    assert suggestion["summary"]["total_waste"] == 40.0
    assert body["summary"]["total_jumbo_rolls"] == 1


def test_generate_order_view(client):
    body = plan(client, view="order")

    assert [s["order_info"]["order_id"] for s in body["order_suggestions"]] == ["ORD-A", "ORD-B"]


def test_wastage_sets_target_width(client):
    body = plan(client, wastage=3)

    assert body["target_width"] == 116
    assert body["wastage"] == 3


def test_target_width_and_wastage_together_is_rejected(client):
    response = client.post("/api/cutting/suggestions", json={**SPEC_EXAMPLE, "target_width": 118, "wastage": 1})

    assert response.status_code == 400
    assert response.json()["code"] == "input_error"


def test_too_wide_requirement_is_a_client_error(client):
    payload = {"requirements": [{"requirement_id": "R1", "width": 120, "gsm": 120, "bf": 18,
                                 "shade": "Golden", "quantity": 1, "order_id": "ORD-1"}]}
    response = client.post("/api/cutting/suggestions", json=payload)

    assert response.status_code == 400
    assert response.json()["code"] == "requirement_too_wide"


def test_empty_request(client):
    body = plan(client, requirements=[])

    assert body["status"] == "no_pending_orders"
    assert body["spec_suggestions"] == []


def test_existing_stock_in_payload(client):
    stock = [{"roll_id": "STK-9", "width": 41, "gsm": 120, "bf": 18, "shade": "Golden"}]
    body = plan(client, existing_stock=stock)

    [suggestion] = body["spec_suggestions"]
    assert suggestion["summary"]["rolls_from_existing"] == 1
    assert suggestion["stock_consumptions"][0]["roll_id"] == "STK-9"


def test_cp_sat_strategy(client):
    body = plan(client, strategy="cp_sat")

    assert body["spec_suggestions"][0]["summary"]["total_sets"] == 2


# ============================================================================
# ADJUST
# ============================================================================

def test_get_and_adjust_suggestion(client):
    suggestion = plan(client)["spec_suggestions"][0]
    suggestion_id = suggestion["suggestion_id"]
    jumbo = suggestion["jumbo_rolls"][0]

    fetched = client.get(f"/api/suggestions/{suggestion_id}")
    assert fetched.status_code == 200
    assert fetched.json()["version"] == 1

    response = client.post(f"/api/suggestions/{suggestion_id}/adjust", json={
        "operation": "add_cut",
        "expected_version": 1,
        "jumbo_id": jumbo["jumbo_id"],
        "set_id": jumbo["sets"][1]["set_id"],
        "width": 30,
        "description": "Stock fill",
    })
    assert response.status_code == 200, response.text
    adjusted = response.json()
    assert adjusted["version"] == 2
    assert adjusted["summary"]["total_rolls"] == 6

    stale = client.post(f"/api/suggestions/{suggestion_id}/adjust", json={
        "operation": "remove_cut",
        "expected_version": 1,
        "cut_id": jumbo["sets"][0]["cuts"][0]["cut_id"],
    })
    assert stale.status_code == 409
    assert stale.json()["code"] == "version_conflict"


def test_adjust_capacity_errors(client):
    suggestion = plan(client)["spec_suggestions"][0]
    suggestion_id = suggestion["suggestion_id"]
    jumbo_id = suggestion["jumbo_rolls"][0]["jumbo_id"]
    add_new_set = {"operation": "add_cut", "jumbo_id": jumbo_id, "set_id": "new", "width": 50}

    assert client.post(f"/api/suggestions/{suggestion_id}/adjust", json=add_new_set).status_code == 200
    response = client.post(f"/api/suggestions/{suggestion_id}/adjust", json=add_new_set)
    assert response.status_code == 409
    assert response.json()["code"] == "jumbo_full"


def test_adjust_requires_operation_fields(client):
    suggestion_id = plan(client)["spec_suggestions"][0]["suggestion_id"]

    response = client.post(f"/api/suggestions/{suggestion_id}/adjust", json={"operation": "remove_cut"})
    assert response.status_code == 400


def test_discard_suggestion(client):
    suggestion_id = plan(client)["spec_suggestions"][0]["suggestion_id"]

    response = client.delete(f"/api/suggestions/{suggestion_id}")
    assert response.status_code == 200
    assert response.json() == {"status": "discarded", "suggestion_id": suggestion_id, "version": 1}

    assert client.get(f"/api/suggestions/{suggestion_id}").status_code == 404
    assert client.delete(f"/api/suggestions/{suggestion_id}").status_code == 404


def test_unknown_suggestion(client):
    assert client.get("/api/suggestions/SUG-404").status_code == 404
    response = client.post("/api/suggestions/SUG-404/adjust", json={"operation": "remove_cut", "cut_id": "CUT-1"})
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


# ============================================================================
# COMMIT
# ============================================================================

def test_commit_creates_plan(client):
    suggestion = plan(client)["spec_suggestions"][0]
    suggestion_id = suggestion["suggestion_id"]

    response = client.post(f"/api/suggestions/{suggestion_id}/commit", json={"name": "Morning run"})
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["status"] == "committed"
    [reference] = body["plans"]
    assert reference["frontend_id"] == "PLN-00001"
    assert reference["status"] == "planned"

    plans = client.get("/api/plans").json()
    assert len(plans) == 1
    assert plans[0]["name"] == "Morning run"
    assert plans[0]["suggestion_id"] == suggestion_id
    assert plans[0]["cut_pattern"]["summary"]["total_rolls"] == 5
    assert plans[0]["expected_waste_percentage"] == 16.9

    # Committed suggestions are no longer editable
    assert client.get(f"/api/suggestions/{suggestion_id}").status_code == 404


def test_commit_with_stale_version_keeps_suggestion(client):
    suggestion_id = plan(client)["spec_suggestions"][0]["suggestion_id"]

    response = client.post(f"/api/suggestions/{suggestion_id}/commit", json={"expected_version": 2})
    assert response.status_code == 409
    assert client.get(f"/api/suggestions/{suggestion_id}").status_code == 200
