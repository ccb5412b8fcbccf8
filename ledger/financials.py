"""Sales and expense aggregation.

Every function here is pure: it takes the full list of sales and expenses
(as fetched from the store) and recomputes its result from scratch. Nothing
is cached between calls.

Two different notions of "most productive day" live here on purpose:

- ``weekly_analysis(...).most_productive_day`` ranks the seven calendar days
  of one week by net profit (sales totals minus expenses).
- ``most_productive_weekday`` ranks weekday labels across the whole history
  by line-item margin (price minus cost), merging every Monday into one
  bucket and ignoring expenses.

They answer different questions and regularly disagree.
"""

from dataclasses import dataclass
from datetime import date, tzinfo
from typing import Dict, List, Optional, Tuple

from ledger.dates import DAY_NAMES, day_name, local_date, week_days
from ledger.expenses import Expense
from ledger.payments import CASH, MOBILE_MONEY
from ledger.sales import Sale

DEFAULT_WEEKDAY = "Monday"
TOP_ITEMS = 3


@dataclass(frozen=True)
class DailySummary:
    date: date
    day_of_week: str
    total_sales: float
    total_expenses: float
    net_profit: float
    sales_count: int
    mobile_money_sales: float
    cash_sales: float

    def to_dict(self) -> Dict:
        return {
            "date": self.date.isoformat(),
            "dayOfWeek": self.day_of_week,
            "totalSales": self.total_sales,
            "totalExpenses": self.total_expenses,
            "netProfit": self.net_profit,
            "salesCount": self.sales_count,
            "mpesaSales": self.mobile_money_sales,
            "cashSales": self.cash_sales,
        }


@dataclass(frozen=True)
class ItemPerformance:
    name: str
    quantity: int
    revenue: float

    def to_dict(self) -> Dict:
        return {"name": self.name, "quantity": self.quantity, "revenue": self.revenue}


@dataclass(frozen=True)
class WeeklyAnalysis:
    week_start: date
    week_end: date
    days: Tuple[DailySummary, ...]
    most_productive_day: str
    average_daily_profit: float
    total_weekly_profit: float
    best_performing_items: Tuple[ItemPerformance, ...]

    def to_dict(self) -> Dict:
        return {
            "weekStart": self.week_start.isoformat(),
            "weekEnd": self.week_end.isoformat(),
            "days": [d.to_dict() for d in self.days],
            "mostProductiveDay": self.most_productive_day,
            "averageDailyProfit": self.average_daily_profit,
            "totalWeeklyProfit": self.total_weekly_profit,
            "bestPerformingItems": [i.to_dict() for i in self.best_performing_items],
        }


def sales_on(sales: List[Sale], day: date, tz: Optional[tzinfo] = None) -> List[Sale]:
    return [s for s in sales if local_date(s.timestamp, tz) == day]


def expenses_on(expenses: List[Expense], day: date, tz: Optional[tzinfo] = None) -> List[Expense]:
    return [e for e in expenses if local_date(e.timestamp, tz) == day]


def daily_summary(
    sales: List[Sale],
    expenses: List[Expense],
    day: date,
    tz: Optional[tzinfo] = None,
) -> DailySummary:
    """Totals for one local calendar day.

    Records are matched on their calendar date in ``tz``, not on a rolling
    24 hour window. A day without records yields an all-zero summary.
    """
    day_sales = sales_on(sales, day, tz)
    day_expenses = expenses_on(expenses, day, tz)

    total_sales = sum(s.total for s in day_sales)
    total_expenses = sum(e.amount for e in day_expenses)
    return DailySummary(
        date=day,
        day_of_week=day_name(day),
        total_sales=total_sales,
        total_expenses=total_expenses,
        net_profit=total_sales - total_expenses,
        sales_count=len(day_sales),
        mobile_money_sales=sum(s.total for s in day_sales if s.payment_method == MOBILE_MONEY),
        cash_sales=sum(s.total for s in day_sales if s.payment_method == CASH),
    )


def rank_items(sales: List[Sale], limit: Optional[int] = None) -> List[ItemPerformance]:
    """Aggregate line items by name and order them by revenue, highest first.

    Equal revenues keep the order in which the names were first seen.
    """
    stats: Dict[str, List[float]] = {}
    for sale in sales:
        for item in sale.items:
            acc = stats.setdefault(item.name, [0, 0.0])
            acc[0] += item.quantity
            acc[1] += item.revenue
    ranked = sorted(
        (ItemPerformance(name=name, quantity=int(q), revenue=r) for name, (q, r) in stats.items()),
        key=lambda p: p.revenue,
        reverse=True,
    )
    return ranked if limit is None else ranked[:limit]


def weekly_analysis(
    sales: List[Sale],
    expenses: List[Expense],
    day: date,
    tz: Optional[tzinfo] = None,
) -> WeeklyAnalysis:
    """Profit analysis for the Monday-to-Sunday week containing ``day``.

    The average always divides by seven, including for a week that is still
    in progress. The most productive day is the first day, in Monday-first
    order, whose net profit is strictly higher than every earlier day.
    """
    days = week_days(day)
    summaries = [daily_summary(sales, expenses, d, tz) for d in days]
    total = sum(s.net_profit for s in summaries)

    best = summaries[0]
    for current in summaries[1:]:
        if current.net_profit > best.net_profit:
            best = current

    in_week = set(days)
    week_sales = [s for s in sales if local_date(s.timestamp, tz) in in_week]

    return WeeklyAnalysis(
        week_start=days[0],
        week_end=days[-1],
        days=tuple(summaries),
        most_productive_day=best.day_of_week,
        average_daily_profit=total / 7,
        total_weekly_profit=total,
        best_performing_items=tuple(rank_items(week_sales, TOP_ITEMS)),
    )


def total_profit(sales: List[Sale], expenses: List[Expense]) -> float:
    return sum(s.total for s in sales) - sum(e.amount for e in expenses)


def weekday_item_profit(sales: List[Sale], tz: Optional[tzinfo] = None) -> Dict[str, float]:
    """Line-item margin per weekday label, in first-seen order."""
    buckets: Dict[str, float] = {}
    for sale in sales:
        label = DAY_NAMES[local_date(sale.timestamp, tz).weekday()]
        buckets[label] = buckets.get(label, 0.0) + sale.item_profit
    return buckets


def most_productive_weekday(sales: List[Sale], tz: Optional[tzinfo] = None) -> str:
    """Weekday label with the highest all-time line-item margin.

    Returns ``DEFAULT_WEEKDAY`` when no weekday has a positive margin, which
    includes an empty history; use ``weekday_item_profit`` to tell those
    cases apart.
    """
    best_day, best_profit = DEFAULT_WEEKDAY, 0.0
    for label, profit in weekday_item_profit(sales, tz).items():
        if profit > best_profit:
            best_day, best_profit = label, profit
    return best_day
