import json

import pytest
import requests

from storage.exceptions import StoreResponseError, TransportError
from storage.remote import HttpTransactionSource

BASE = "http://store.test"

SALE_DOC = {
    "id": "s1", "timestamp": "2024-01-15T10:30:00Z", "total": 500, "paymentMethod": "mpesa",
    "mpesaCode": "QA12B3C4D5",
    "items": [{"menuItemId": "1", "name": "Carne Asada Taco", "quantity": 2, "price": 250, "cost": 120}],
}


def make_response(status_code=200, body=None, raw=None):
    resp = requests.Response()
    resp.status_code = status_code
    resp.encoding = "utf-8"
    resp._content = raw if raw is not None else json.dumps(body).encode("utf-8")
    return resp


class FakeSession:
    """Answers every request with a canned response and records the calls."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def request(self, method, url, json=None, timeout=None):
        self.calls.append((method, url, json, timeout))
        if self.error is not None:
            raise self.error
        return self.response


class FlaskSession:
    """Routes requests into a Flask test client."""

    def __init__(self, client):
        self.client = client

    def request(self, method, url, json=None, timeout=None):
        rv = self.client.open(url[len(BASE):], method=method, json=json)
        return make_response(rv.status_code, raw=rv.data)


def source(response=None, error=None):
    session = FakeSession(response, error)
    return HttpTransactionSource(BASE + "/", session=session, timeout=3), session


def test_list_sales_parses_envelope():
    src, session = source(make_response(body={"status": "success", "data": [SALE_DOC]}))
    sales = src.list_sales()
    assert [s.id for s in sales] == ["s1"]
    assert session.calls == [("GET", BASE + "/api/fetchSaleData", None, 3)]


def test_list_skips_malformed_records():
    bad = dict(SALE_DOC, id="s2", items=[])
    src, _ = source(make_response(body={"status": "success", "data": [SALE_DOC, bad]}))
    assert [s.id for s in src.list_sales()] == ["s1"]


@pytest.mark.parametrize("response", [
    make_response(raw=b"<html>oops</html>"),
    make_response(body=["not", "an", "envelope"]),
    make_response(body={"status": "success", "data": None}),
    make_response(body={"status": "success"}),
])
def test_malformed_or_empty_payload_reads_as_empty(response, caplog):
    src, _ = source(response)
    assert src.list_expenses() == []
    assert caplog.records


def test_non_success_status_raises():
    src, _ = source(make_response(body={"status": "error", "error": "db down"}))
    with pytest.raises(StoreResponseError, match="db down") as exc:
        src.list_sales()
    assert exc.value.status == "error"


def test_http_error_raises_transport_error():
    src, _ = source(make_response(500, body={"status": "error"}))
    with pytest.raises(TransportError):
        src.list_sales()


def test_connection_failure_raises_transport_error():
    src, _ = source(error=requests.ConnectionError("refused"))
    with pytest.raises(TransportError):
        src.list_expenses()
    src, _ = source(error=requests.Timeout("slow"))
    with pytest.raises(TransportError):
        src.create_sale(SALE_DOC)


def test_create_and_delete_paths():
    src, session = source(make_response(body={"status": "success", "salesId": "abc"}))
    assert src.create_sale({"items": []}) == {"id": "abc"}
    assert session.calls[0][:3] == ("POST", BASE + "/api/saledata", {"items": []})

    src, session = source(make_response(body={"status": "success", "message": "Deleted"}))
    assert src.delete_expense("e9") is True
    assert session.calls[0][:2] == ("DELETE", BASE + "/api/deleteexpense/e9")

    src, _ = source(make_response(404, body={"status": "error", "error": "Sale not found"}))
    assert src.delete_sale("nope") is False


def test_delete_with_error_envelope_raises():
    src, _ = source(make_response(body={"status": "error", "error": "not deleted"}))
    with pytest.raises(StoreResponseError, match="not deleted"):
        src.delete_sale("abc")

    src, _ = source(make_response(500, raw=b"boom"))
    with pytest.raises(TransportError):
        src.delete_expense("abc")

    src, _ = source(make_response(raw=b""))
    assert src.delete_sale("abc") is True


def test_round_trip_against_flask_app(tmp_path, monkeypatch):
    import storage.file_manager as fm
    monkeypatch.setattr(fm, "_DATA_DIR", tmp_path / "data")
    fm.ensure_defaults()
    from app import app

    src = HttpTransactionSource(BASE, session=FlaskSession(app.test_client()))
    created = src.create_sale(dict(SALE_DOC, id=None, timestamp=None))
    src.create_expense({"description": "Gas", "amount": "2200", "category": "utilities",
                        "paymentMethod": "cash"})

    sales = src.list_sales()
    assert [s.id for s in sales] == [created["id"]]
    assert sales[0].total == 500
    assert src.list_expenses()[0].amount == 2200

    assert src.delete_sale(created["id"]) is True
    assert src.delete_sale(created["id"]) is False
    assert src.list_sales() == []
