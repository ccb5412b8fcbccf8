import logging
from typing import Dict, List, Optional

from ledger.dates import parse_date
from ledger.financials import daily_summary
from storage.file_manager import configured_timezone, get_config, read_json, today_local, write_json
from storage.repository import JsonTransactionStore

LOG = logging.getLogger(__name__)


def close_day(day_iso: Optional[str] = None) -> Dict:
    """Archive the daily summary for one day; returns the stored report.

    Defaults to today in the configured timezone. Closing the same day again
    replaces its report. Reports are history only: live summaries are always
    recomputed from the transactions.
    """
    day_iso = day_iso or today_local()
    day = parse_date(day_iso)
    store = JsonTransactionStore()
    summary = daily_summary(store.list_sales(), store.list_expenses(), day, configured_timezone())
    report = summary.to_dict()

    reports = read_json("reports.json")
    reports[report["date"]] = report
    write_json("reports.json", reports)

    if get_config().get("notifications", {}).get("dailySummary", True):
        LOG.info(
            "Daily close %s (%s): sales %s, expenses %s, net profit %s over %d sales",
            report["date"], report["dayOfWeek"], report["totalSales"],
            report["totalExpenses"], report["netProfit"], report["salesCount"],
        )
    return report


def list_reports() -> List[Dict]:
    reports = read_json("reports.json")
    # lexicographic works for YYYY-MM-DD keys
    return [reports[k] for k in sorted(reports)]
