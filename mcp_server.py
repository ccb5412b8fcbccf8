"""
Local MCP server for the Taco Hut dashboard.

Exposes the dashboard views (daily and weekly summaries, profit, sales
search, expenses) plus inventory and daily-close tools over FastMCP.

Reads go through `Dashboard.from_config()`, so they hit the remote
transaction store when `store_url` is configured and the local JSON files
otherwise. A store failure comes back as {"status": "error", "error": ...}.
"""
import json
import logging
from typing import Any, Dict

from fastmcp import FastMCP

from dashboard import Dashboard
from ledger.dates import parse_date
from ledger.inventory import expiring_items, get_alerts, get_inventory, low_stock_items
from reports import close_day, list_reports
from storage.file_manager import ensure_defaults, get_config, today_local

LOG = logging.getLogger(__name__)

server_instructions = """
This MCP server provides read access to a restaurant's sales and expense
analytics: daily summaries, Monday-to-Sunday weekly analysis, all-time
profit, sales search, expense breakdowns, inventory levels and alerts.
"""


def _content(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {"content": [{"type": "text", "text": json.dumps(payload)}]}


def _day(arg: str):
    return parse_date(arg.strip()) if arg and arg.strip() else parse_date(today_local())


def daily_payload(arg: str = "") -> Dict[str, Any]:
    try:
        day = _day(arg)
    except ValueError:
        return {"error": "Invalid date. Use YYYY-MM-DD"}
    return Dashboard.from_config().daily(day)


def weekly_payload(arg: str = "") -> Dict[str, Any]:
    try:
        day = _day(arg)
    except ValueError:
        return {"error": "Invalid date. Use YYYY-MM-DD"}
    return Dashboard.from_config().weekly(day)


def search_payload(arg: str = "") -> Dict[str, Any]:
    try:
        data = json.loads(arg) if arg else {}
    except json.JSONDecodeError:
        return {"error": "Invalid JSON argument"}
    if not isinstance(data, dict):
        return {"error": "Expected a JSON object"}
    try:
        return Dashboard.from_config().sales_page(data.get("search", ""), data.get("payment", "all"))
    except ValueError as e:
        return {"error": str(e)}


def close_day_payload(arg: str = "") -> Dict[str, Any]:
    try:
        return {"report": close_day(arg.strip() or None)}
    except ValueError:
        return {"error": "Invalid date. Use YYYY-MM-DD"}


def create_server() -> FastMCP:
    mcp = FastMCP(name="Taco Hut Dashboard MCP", instructions=server_instructions)

    @mcp.tool()
    async def status() -> Dict[str, Any]:
        """
        Return the business profile and where transactions are read from.

        Returns:
            MCP content array with JSON:
            {"business": {...}, "store": "remote"|"local", "store_url": url|null}
        """
        cfg = get_config()
        url = cfg.get("store_url")
        return _content({
            "business": cfg.get("business"),
            "store": "remote" if url else "local",
            "store_url": url,
        })

    @mcp.tool()
    async def daily_summary_tool(arg: str = "") -> Dict[str, Any]:
        """
        Return the sales/expense summary for one calendar day.

        Args:
            arg: Optional YYYY-MM-DD date. Empty means today in the configured
                 timezone.

        Returns:
            MCP content array with JSON {"status": "ready", "summary": {...}}
            carrying totalSales, totalExpenses, netProfit, salesCount,
            mpesaSales and cashSales.

        Edge cases:
            - A day without records returns an all-zero summary.
            - An unparseable date returns an error payload.
        """
        return _content(daily_payload(arg))

    @mcp.tool()
    async def weekly_analysis_tool(arg: str = "") -> Dict[str, Any]:
        """
        Return the Monday-to-Sunday analysis for the week containing a date.

        Args:
            arg: Optional YYYY-MM-DD date inside the wanted week.

        Returns:
            MCP content array with JSON {"status": "ready", "analysis": {...},
            "chart": [...]}. The analysis holds mostProductiveDay (by daily
            net profit), totalWeeklyProfit, averageDailyProfit (always total/7)
            and the top three bestPerformingItems by revenue.
        """
        return _content(weekly_payload(arg))

    @mcp.tool()
    async def profit_summary() -> Dict[str, Any]:
        """
        Return all-time profit and the weekday with the best item margins.

        `mostProductiveDay` here merges every week: each weekday collects the
        (price - cost) x quantity of all its sales, ignoring expenses. It can
        differ from the weekly tool's mostProductiveDay. `weekdayProfit` shows
        the raw buckets; it is empty when there are no sales, in which case
        mostProductiveDay falls back to "Monday".
        """
        return _content(Dashboard.from_config().profit())

    @mcp.tool()
    async def search_sales(arg: str = "") -> Dict[str, Any]:
        """
        Search recorded sales.

        The `arg` parameter accepts a JSON object like
        {"search": "QA12", "payment": "mpesa"}; both keys are optional.
        `search` matches M-Pesa codes (case-insensitive), customer phones and
        sale ids; `payment` is "all", "cash" or "mpesa".
        """
        return _content(search_payload(arg))

    @mcp.tool()
    async def expenses_summary() -> Dict[str, Any]:
        """
        Return all expenses with their total and per-category totals.
        """
        return _content(Dashboard.from_config().expenses_page())

    @mcp.tool()
    async def inventory_status() -> Dict[str, Any]:
        """
        Return inventory levels with the low-stock and soon-expiring subsets.

        Low stock means current stock at or below the item's threshold;
        expiring means an expiry date no later than tomorrow.
        """
        inv = get_inventory()
        today = parse_date(today_local())
        return _content({
            "inventory": inv,
            "lowStock": low_stock_items(inv),
            "expiring": expiring_items(inv, today),
        })

    @mcp.tool()
    async def alerts() -> Dict[str, Any]:
        """
        Return stored alerts, newest first, including acknowledged ones.
        """
        return _content({"alerts": get_alerts()})

    @mcp.tool()
    async def close_day_tool(arg: str = "") -> Dict[str, Any]:
        """
        Archive the daily summary for a date (default today) and return it.

        Closing a date twice replaces the earlier report.
        """
        return _content(close_day_payload(arg))

    @mcp.tool()
    async def reports() -> Dict[str, Any]:
        """
        Return archived daily-close reports in date order.
        """
        return _content({"reports": list_reports()})

    return mcp


def main():
    logging.basicConfig(level=logging.INFO)
    ensure_defaults()
    server = create_server()
    LOG.info("Starting local MCP server on 0.0.0.0:8000 (HTTP)")
    server.run(transport="http", host="0.0.0.0", port=8000, path="/mcp")


if __name__ == "__main__":
    main()
