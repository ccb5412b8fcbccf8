import pytest

import storage.file_manager as fm
from reports import close_day, list_reports
from storage.repository import JsonTransactionStore


def setup_env(tmp_path, monkeypatch):
    monkeypatch.setattr(fm, "_DATA_DIR", tmp_path / "data")
    fm.ensure_defaults()
    cfg = fm.read_json("config.json")
    cfg["timezone"] = "UTC"
    fm.write_json("config.json", cfg)


def test_close_day_archives_summary(tmp_path, monkeypatch):
    setup_env(tmp_path, monkeypatch)
    store = JsonTransactionStore()
    store.create_sale({
        "timestamp": "2024-01-15T10:30:00Z", "paymentMethod": "mpesa",
        "items": [{"menuItemId": "2", "name": "Chicken Taco", "quantity": 3, "price": 220, "cost": 100}],
    })
    store.create_expense({"timestamp": "2024-01-15T08:00:00Z", "amount": 1200, "paymentMethod": "cash"})

    report = close_day("2024-01-15")
    assert report["dayOfWeek"] == "Monday"
    assert report["totalSales"] == 660
    assert report["netProfit"] == -540
    assert report["mpesaSales"] == 660
    assert fm.read_json("reports.json")["2024-01-15"] == report


def test_closing_twice_replaces_and_reports_are_date_ordered(tmp_path, monkeypatch):
    setup_env(tmp_path, monkeypatch)
    close_day("2024-01-16")
    close_day("2024-01-15")
    JsonTransactionStore().create_expense({"timestamp": "2024-01-16T08:00:00Z", "amount": 50,
                                           "paymentMethod": "cash"})
    close_day("2024-01-16")

    reports = list_reports()
    assert [r["date"] for r in reports] == ["2024-01-15", "2024-01-16"]
    assert reports[1]["totalExpenses"] == 50


def test_close_day_rejects_bad_date(tmp_path, monkeypatch):
    setup_env(tmp_path, monkeypatch)
    with pytest.raises(ValueError):
        close_day("16/01/2024")
    assert list_reports() == []
