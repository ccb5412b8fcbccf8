import pytest

import storage.file_manager as fm


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(fm, "_DATA_DIR", tmp_path / "data")
    fm.ensure_defaults()
    cfg = fm.read_json("config.json")
    cfg["timezone"] = "UTC"
    fm.write_json("config.json", cfg)
    from app import app
    return app.test_client()


def post_sale(client, ts, qty, method="cash", **extra):
    body = {
        "timestamp": ts, "paymentMethod": method,
        "items": [{"menuItemId": "1", "name": "Carne Asada Taco", "quantity": qty, "price": 250, "cost": 120}],
    }
    body.update(extra)
    return client.post("/api/saledata", json=body)


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}


def test_sale_create_list_delete(client):
    rv = post_sale(client, "2024-01-15T10:30:00Z", 2, "mpesa", mpesaCode="QA12B3C4D5")
    assert rv.status_code == 200
    body = rv.get_json()
    assert body["status"] == "success"
    assert body["data"]["total"] == 500
    sale_id = body["salesId"]

    listed = client.get("/api/fetchSaleData").get_json()["data"]
    assert [s["id"] for s in listed] == [sale_id]

    assert client.delete(f"/api/deletesale/{sale_id}").status_code == 200
    rv = client.delete(f"/api/deletesale/{sale_id}")
    assert rv.status_code == 404
    assert rv.get_json()["error"] == "Sale not found"


def test_invalid_sale_is_rejected(client):
    rv = client.post("/api/saledata", json={"items": [], "paymentMethod": "cash"})
    assert rv.status_code == 400
    assert rv.get_json()["status"] == "error"
    assert fm.read_json("sales.json") == []


@pytest.mark.parametrize("body", [
    {"paymentMethod": "cash", "items": ["taco"]},
    {"paymentMethod": "cash", "items": "taco"},
    ["not", "an", "object"],
])
def test_malformed_sale_body_is_a_400(client, body):
    rv = client.post("/api/saledata", json=body)
    assert rv.status_code == 400
    assert rv.get_json()["status"] == "error"
    assert fm.read_json("sales.json") == []


def test_sale_deducts_inventory(client):
    post_sale(client, "2024-01-15T10:30:00Z", 26)
    inv = client.get("/api/inventory").get_json()
    beef = next(i for i in inv["data"] if i["name"] == "Beef")
    assert beef["currentStock"] == 420
    assert "Beef" in [i["name"] for i in inv["lowStock"]]
    alerts = client.get("/api/alerts").get_json()["data"]
    assert len(alerts) == 2

    rv = client.post(f"/api/alerts/{alerts[0]['id']}/ack")
    assert rv.get_json()["data"]["acknowledged"] is True
    assert client.post("/api/alerts/missing/ack").status_code == 404


def test_daily_and_weekly_views(client):
    post_sale(client, "2024-01-15T10:30:00Z", 2, "mpesa")
    post_sale(client, "2024-01-17T13:30:00Z", 4)
    client.post("/api/expenses", json={"timestamp": "2024-01-15T08:00:00Z", "description": "Beef",
                                       "amount": 300, "category": "ingredients", "paymentMethod": "cash"})

    daily = client.get("/api/daily?date=2024-01-15").get_json()
    assert daily["status"] == "ready"
    assert daily["summary"]["totalSales"] == 500
    assert daily["summary"]["netProfit"] == 200
    assert daily["summary"]["mpesaSales"] == 500

    weekly = client.get("/api/weekly?date=2024-01-20").get_json()
    assert weekly["analysis"]["mostProductiveDay"] == "Wednesday"
    assert weekly["analysis"]["totalWeeklyProfit"] == 1200
    assert weekly["analysis"]["bestPerformingItems"] == [
        {"name": "Carne Asada Taco", "quantity": 6, "revenue": 1500},
    ]
    assert len(weekly["chart"]) == 7

    assert client.get("/api/daily?date=15-01-2024").status_code == 400


def test_profit_and_sales_search(client):
    post_sale(client, "2024-01-15T10:30:00Z", 2, "mpesa", mpesaCode="QA12B3C4D5", customerPhone="+254700123456")
    post_sale(client, "2024-01-16T10:30:00Z", 1)

    profit = client.get("/api/profit").get_json()
    assert profit["totalProfit"] == 750
    assert profit["mostProductiveDay"] == "Monday"
    assert profit["weekdayProfit"] == {"Monday": 260, "Tuesday": 130}

    found = client.get("/api/sales?search=qa12").get_json()
    assert [s["mpesaCode"] for s in found["sales"]] == ["QA12B3C4D5"]
    assert client.get("/api/sales?payment=cash").get_json()["payments"]["counts"] == {"mpesa": 1, "cash": 1}
    assert len(client.get("/api/sales?payment=cash").get_json()["sales"]) == 1
    assert client.get("/api/sales?payment=card").status_code == 400


def test_expenses_endpoints(client):
    rv = client.post("/api/expenses", json={"description": "Gas", "amount": "2200", "category": "utilities",
                                            "paymentMethod": "mpesa", "mpesaCode": "QA11B2C3D4"})
    assert rv.status_code == 200
    expense_id = rv.get_json()["expenseId"]
    assert client.post("/api/expenses", json={"description": "Free"}).status_code == 400

    summary = client.get("/api/expenses/summary").get_json()
    assert summary["totalExpenses"] == 2200
    assert summary["byCategory"] == {"utilities": 2200}

    assert client.delete(f"/api/deleteexpense/{expense_id}").status_code == 200
    assert client.get("/api/fetchExpenses").get_json()["data"] == []


def test_inventory_update(client):
    rv = client.post("/api/inventory/4", json={"currentStock": 30})
    assert rv.get_json()["data"]["currentStock"] == 30
    assert client.post("/api/inventory/4", json={}).status_code == 400
    assert client.post("/api/inventory/4", json={"currentStock": -2}).status_code == 400
    assert client.post("/api/inventory/nope", json={"currentStock": 1}).status_code == 404


def test_close_day_and_reports(client):
    post_sale(client, "2024-01-15T10:30:00Z", 2)
    rv = client.post("/reports/close?date=2024-01-15")
    assert rv.get_json()["data"]["totalSales"] == 500
    assert client.get("/reports").get_json()["data"][0]["date"] == "2024-01-15"
    assert client.post("/reports/close?date=tomorrow").status_code == 400


@pytest.fixture
def reschedules(client, monkeypatch):
    import app as app_module
    calls = []
    monkeypatch.setattr(app_module, "_schedule_job", lambda: calls.append(fm.get_config()))
    return calls


def test_config_update_ignores_unknown_keys(client, reschedules):
    rv = client.post("/config", json={"closing_time": "21:30", "secret": 1})
    body = rv.get_json()
    assert body["changed"] == {"closing_time": "21:30"}
    assert fm.get_config()["closing_time"] == "21:30"
    assert "secret" not in fm.get_config()
    assert len(reschedules) == 1


def test_config_update_reschedules_when_scheduler_is_turned_on(client, reschedules):
    client.post("/config", json={"scheduler": {"running": True}})
    assert [c["scheduler"] for c in reschedules] == [{"running": True}]
    client.post("/config", json={"notifications": {"newSales": True}})
    assert len(reschedules) == 1


@pytest.mark.parametrize("body", [
    {"timezone": "Mars/Olympus"},
    {"timezone": 3},
    {"closing_time": "25:00"},
    {"closing_time": "10pm"},
    {"scheduler": True},
])
def test_config_update_rejects_values_that_would_break_views(client, reschedules, body):
    before = fm.get_config()
    rv = client.post("/config", json=body)
    assert rv.status_code == 400
    assert rv.get_json()["status"] == "error"
    assert fm.get_config() == before
    assert reschedules == []
    assert client.get("/api/daily?date=2024-01-15").status_code == 200


def test_config_update_accepts_valid_timezone(client, reschedules):
    rv = client.post("/config", json={"timezone": "Africa/Nairobi", "closing_time": "23:15"})
    assert rv.status_code == 200
    assert fm.get_config()["timezone"] == "Africa/Nairobi"
    assert len(reschedules) == 1
