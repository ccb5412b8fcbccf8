from datetime import date, timezone

from dashboard import Dashboard, make_source
from ledger.sales import sale_from_dict
from storage.exceptions import TransportError
from storage.remote import HttpTransactionSource
from storage.repository import JsonTransactionStore, TransactionSource


class StubSource(TransactionSource):
    """In-memory source; raises `error` from every read when set."""

    def __init__(self, sales=(), expenses=(), error=None):
        self.sales = list(sales)
        self.expenses = list(expenses)
        self.error = error
        self.reads = 0

    def list_sales(self):
        self.reads += 1
        if self.error:
            raise self.error
        return list(self.sales)

    def list_expenses(self):
        if self.error:
            raise self.error
        return list(self.expenses)

    def create_sale(self, data):
        raise NotImplementedError

    def create_expense(self, data):
        raise NotImplementedError

    def delete_sale(self, sale_id):
        return False

    def delete_expense(self, expense_id):
        return False


def one_sale():
    return sale_from_dict({
        "id": "s1", "timestamp": "2024-01-15T10:30:00Z", "paymentMethod": "cash",
        "items": [{"menuItemId": "1", "name": "Taco", "quantity": 2, "price": 250, "cost": 120}],
    })


def test_store_failure_is_an_error_state_not_zeros():
    dash = Dashboard(StubSource(error=TransportError("connection refused")), timezone.utc)
    view = dash.daily(date(2024, 1, 15))
    assert view == {"status": "error", "error": "connection refused"}
    assert dash.weekly(date(2024, 1, 15))["status"] == "error"
    assert dash.profit()["status"] == "error"


def test_empty_store_is_ready_with_zeros():
    view = Dashboard(StubSource(), timezone.utc).daily(date(2024, 1, 15))
    assert view["status"] == "ready"
    assert view["summary"]["totalSales"] == 0
    assert view["summary"]["salesCount"] == 0


def test_every_view_reads_a_fresh_snapshot():
    source = StubSource()
    dash = Dashboard(source, timezone.utc)
    assert dash.profit()["totalProfit"] == 0
    source.sales.append(one_sale())
    assert dash.profit()["totalProfit"] == 500
    assert source.reads == 2


def test_overview():
    view = Dashboard(StubSource([one_sale()]), timezone.utc).overview(date(2024, 1, 15))
    assert view["status"] == "ready"
    assert view["today"]["cashSales"] == 500
    assert view["totalProfit"] == 500
    assert view["mostProductiveDay"] == "Monday"
    assert [s["id"] for s in view["recentSales"]] == ["s1"]


def test_make_source_picks_remote_when_url_configured():
    remote = make_source({"store_url": "http://store.test", "request_timeout": 4})
    assert isinstance(remote, HttpTransactionSource)
    assert remote.timeout == 4
    assert isinstance(make_source({"store_url": None}), JsonTransactionStore)
