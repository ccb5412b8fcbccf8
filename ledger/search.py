"""Filtering, search and chart series for the dashboard pages."""

from datetime import date, tzinfo
from typing import Dict, List, Optional

from ledger.dates import DAY_ABBREVIATIONS, local_date, week_days
from ledger.expenses import Expense
from ledger.financials import ItemPerformance, daily_summary, rank_items
from ledger.payments import CASH, MOBILE_MONEY, MobileMoneyPayment, normalize_method
from ledger.sales import Sale

ALL_PAYMENTS = "all"


def matches_search(sale: Sale, term: str) -> bool:
    """Match on mobile-money code (any case), customer phone or sale id."""
    if isinstance(sale.payment, MobileMoneyPayment):
        if sale.payment.code and term.lower() in sale.payment.code.lower():
            return True
        if sale.payment.phone and term in sale.payment.phone:
            return True
    return term in sale.id


def filter_sales(sales: List[Sale], search_term: str = "", payment: str = ALL_PAYMENTS) -> List[Sale]:
    method = None if payment in (None, "", ALL_PAYMENTS) else normalize_method(payment)
    return [
        s for s in sales
        if matches_search(s, search_term or "") and (method is None or s.payment_method == method)
    ]


def payment_breakdown(sales: List[Sale]) -> Dict:
    counts = {MOBILE_MONEY: 0, CASH: 0}
    revenue = {MOBILE_MONEY: 0.0, CASH: 0.0}
    for s in sales:
        counts[s.payment_method] += 1
        revenue[s.payment_method] += s.total
    share = round(counts[MOBILE_MONEY] / len(sales) * 100) if sales else 0
    return {
        "counts": counts,
        "revenue": revenue,
        "totalRevenue": revenue[MOBILE_MONEY] + revenue[CASH],
        "mpesaPercentage": share,
    }


def expense_totals_by_category(expenses: List[Expense]) -> Dict[str, float]:
    totals: Dict[str, float] = {}
    for e in expenses:
        totals[e.category] = totals.get(e.category, 0.0) + e.amount
    return totals


def item_sales_stats(sales: List[Sale]) -> List[ItemPerformance]:
    """All-time quantity and revenue per item name, best sellers first."""
    return rank_items(sales)


def daily_revenue_series(sales: List[Sale], tz: Optional[tzinfo] = None) -> List[Dict]:
    by_day: Dict[date, Dict] = {}
    for s in sales:
        d = local_date(s.timestamp, tz)
        row = by_day.setdefault(d, {"date": d.isoformat(), "revenue": 0.0, "orders": 0})
        row["revenue"] += s.total
        row["orders"] += 1
    return [by_day[d] for d in sorted(by_day)]


def weekly_chart_series(
    sales: List[Sale],
    expenses: List[Expense],
    ref: date,
    tz: Optional[tzinfo] = None,
) -> List[Dict]:
    out = []
    for d in week_days(ref):
        summary = daily_summary(sales, expenses, d, tz)
        out.append({
            "day": DAY_ABBREVIATIONS[d.weekday()],
            "profit": summary.net_profit,
            "sales": summary.total_sales,
            "expenses": summary.total_expenses,
        })
    return out


def recent_sales(sales: List[Sale], limit: int = 5) -> List[Sale]:
    return sorted(sales, key=lambda s: s.timestamp.timestamp(), reverse=True)[:limit]
