"""Dashboard views over a transaction source.

Each view fetches a fresh snapshot (one request per collection), runs the
aggregation engine on it and returns a JSON-ready dict. A store failure is
returned as ``{"status": "error", "error": ...}`` instead of an empty view so
that "no sales yet" and "could not reach the store" never look alike.
"""

import logging
from datetime import date, tzinfo
from typing import Callable, Dict, List, Optional, Tuple

from ledger.expenses import Expense, expense_to_dict
from ledger.financials import (
    daily_summary,
    most_productive_weekday,
    total_profit,
    weekday_item_profit,
    weekly_analysis,
)
from ledger.sales import Sale, sale_to_dict
from ledger.search import (
    daily_revenue_series,
    expense_totals_by_category,
    filter_sales,
    item_sales_stats,
    payment_breakdown,
    recent_sales,
    weekly_chart_series,
)
from storage.exceptions import StoreError
from storage.file_manager import configured_timezone, get_config
from storage.remote import DEFAULT_TIMEOUT, HttpTransactionSource
from storage.repository import JsonTransactionStore, TransactionSource

LOG = logging.getLogger(__name__)

READY = "ready"
ERROR = "error"


def make_source(cfg: Optional[Dict] = None) -> TransactionSource:
    """The remote store when ``store_url`` is configured, else the local files."""
    cfg = cfg if cfg is not None else get_config()
    url = cfg.get("store_url")
    if url:
        return HttpTransactionSource(url, timeout=float(cfg.get("request_timeout") or DEFAULT_TIMEOUT))
    return JsonTransactionStore()


class Dashboard:
    def __init__(self, source: TransactionSource, tz: Optional[tzinfo] = None):
        self.source = source
        self.tz = tz

    @classmethod
    def from_config(cls) -> "Dashboard":
        return cls(make_source(), configured_timezone())

    def snapshot(self) -> Tuple[List[Sale], List[Expense]]:
        return self.source.list_sales(), self.source.list_expenses()

    def _render(self, build: Callable[[List[Sale], List[Expense]], Dict]) -> Dict:
        try:
            sales, expenses = self.snapshot()
        except StoreError as exc:
            LOG.error("Could not load transactions: %s", exc)
            return {"status": ERROR, "error": str(exc)}
        view = build(sales, expenses)
        view["status"] = READY
        return view

    def overview(self, today: date) -> Dict:
        def build(sales, expenses):
            return {
                "today": daily_summary(sales, expenses, today, self.tz).to_dict(),
                "totalProfit": total_profit(sales, expenses),
                "mostProductiveDay": most_productive_weekday(sales, self.tz),
                "recentSales": [sale_to_dict(s) for s in recent_sales(sales)],
                "payments": payment_breakdown(sales),
            }
        return self._render(build)

    def daily(self, day: date) -> Dict:
        return self._render(lambda sales, expenses: {
            "summary": daily_summary(sales, expenses, day, self.tz).to_dict(),
        })

    def weekly(self, day: date) -> Dict:
        def build(sales, expenses):
            return {
                "analysis": weekly_analysis(sales, expenses, day, self.tz).to_dict(),
                "chart": weekly_chart_series(sales, expenses, day, self.tz),
            }
        return self._render(build)

    def profit(self) -> Dict:
        def build(sales, expenses):
            return {
                "totalProfit": total_profit(sales, expenses),
                "mostProductiveDay": most_productive_weekday(sales, self.tz),
                "weekdayProfit": weekday_item_profit(sales, self.tz),
            }
        return self._render(build)

    def sales_page(self, search_term: str = "", payment: str = "all") -> Dict:
        def build(sales, expenses):
            return {
                "sales": [sale_to_dict(s) for s in filter_sales(sales, search_term, payment)],
                "payments": payment_breakdown(sales),
                "dailyRevenue": daily_revenue_series(sales, self.tz),
                "items": [i.to_dict() for i in item_sales_stats(sales)],
            }
        return self._render(build)

    def expenses_page(self) -> Dict:
        def build(sales, expenses):
            return {
                "expenses": [expense_to_dict(e) for e in expenses],
                "totalExpenses": sum(e.amount for e in expenses),
                "byCategory": expense_totals_by_category(expenses),
            }
        return self._render(build)
