import logging
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from flask import Flask, jsonify, request
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from dashboard import Dashboard
from ledger.dates import parse_date
from ledger.inventory import (
    acknowledge_alert,
    apply_sale,
    expiring_items,
    get_alerts,
    get_inventory,
    get_menu,
    low_stock_items,
    set_stock,
)
from ledger.sales import sale_from_dict
from reports import close_day, list_reports
from storage.file_manager import configured_timezone, ensure_defaults, get_config, read_json, today_local, write_json
from storage.repository import JsonTransactionStore

LOG = logging.getLogger(__name__)

ensure_defaults()
app = Flask(__name__)
store = JsonTransactionStore()

scheduler = BackgroundScheduler(daemon=True)
def _schedule_job():
    cfg = get_config()
    running = bool(cfg.get("scheduler", {}).get("running", True))
    for job in scheduler.get_jobs():
        scheduler.remove_job(job.id)
    if running:
        hour, minute = (int(x) for x in cfg.get("closing_time", "22:00").split(":"))
        trigger = CronTrigger(hour=hour, minute=minute, timezone=cfg.get("timezone") or "UTC")
        scheduler.add_job(close_day, trigger=trigger, id="daily_close", replace_existing=True)
        if not scheduler.running:
            scheduler.start()

def _ok(**payload):
    return jsonify({"status": "success", **payload})

def _error(message: str, code: int):
    return jsonify({"status": "error", "error": message}), code

def _body() -> dict:
    data = request.get_json(force=True, silent=True)
    return data if isinstance(data, dict) else {}

def _day_arg():
    q = request.args.get("date")
    return parse_date(q) if q else parse_date(today_local())

def _dashboard() -> Dashboard:
    # analytics served here always read this process's own files
    return Dashboard(store, configured_timezone())

def _view(view: dict):
    if view.get("status") != "ready":
        return jsonify(view), 502
    return jsonify(view)

@app.get("/health")
def health():
    return jsonify({"status": "ok"})

@app.get("/status")
def status():
    jobs = scheduler.get_jobs()
    next_run = jobs[0].next_run_time.isoformat() if jobs and jobs[0].next_run_time else None
    return jsonify({
        "scheduler_running": scheduler.running,
        "next_close": next_run,
        "closing_time": get_config().get("closing_time"),
    })

# -------- Sales --------
@app.post("/api/saledata")
def sale_create():
    try:
        doc = store.create_sale(_body())
    except (ValueError, TypeError) as e:
        return _error(str(e), 400)
    alerts = apply_sale(sale_from_dict(doc))
    if get_config().get("notifications", {}).get("newSales", False):
        LOG.info("New sale %s: %s via %s", doc["id"], doc["total"], doc["paymentMethod"])
    return _ok(message="Sales data received and saved", salesId=doc["id"], data=doc, alerts=alerts)

@app.get("/api/fetchSaleData")
def sale_list():
    return _ok(data=list(reversed(read_json("sales.json"))))

@app.delete("/api/deletesale/<sale_id>")
def sale_delete(sale_id):
    if not store.delete_sale(sale_id):
        return _error("Sale not found", 404)
    return _ok(message="Deleted")

# -------- Expenses --------
@app.post("/api/expenses")
def expense_create():
    try:
        doc = store.create_expense(_body())
    except (ValueError, TypeError) as e:
        return _error(str(e), 400)
    return _ok(message="Expense data received and saved", expenseId=doc["id"], data=doc)

@app.get("/api/fetchExpenses")
def expense_list():
    return _ok(data=list(reversed(read_json("expenses.json"))))

@app.delete("/api/deleteexpense/<expense_id>")
def expense_delete(expense_id):
    if not store.delete_expense(expense_id):
        return _error("Expense not found", 404)
    return _ok(message="Deleted")

# -------- Analytics --------
@app.get("/api/overview")
def overview():
    try:
        day = _day_arg()
    except ValueError:
        return _error("Invalid date format. Use YYYY-MM-DD", 400)
    return _view(_dashboard().overview(day))

@app.get("/api/daily")
def daily():
    try:
        day = _day_arg()
    except ValueError:
        return _error("Invalid date format. Use YYYY-MM-DD", 400)
    return _view(_dashboard().daily(day))

@app.get("/api/weekly")
def weekly():
    try:
        day = _day_arg()
    except ValueError:
        return _error("Invalid date format. Use YYYY-MM-DD", 400)
    return _view(_dashboard().weekly(day))

@app.get("/api/profit")
def profit():
    return _view(_dashboard().profit())

@app.get("/api/sales")
def sales_search():
    try:
        view = _dashboard().sales_page(request.args.get("search", ""), request.args.get("payment", "all"))
    except ValueError as e:
        return _error(str(e), 400)
    return _view(view)

@app.get("/api/expenses/summary")
def expenses_summary():
    return _view(_dashboard().expenses_page())

# -------- Menu, inventory, alerts --------
@app.get("/api/menu")
def menu_get():
    return _ok(data=get_menu())

@app.get("/api/inventory")
def inventory_get():
    inv = get_inventory()
    today = parse_date(today_local())
    return _ok(data=inv, lowStock=low_stock_items(inv), expiring=expiring_items(inv, today))

@app.post("/api/inventory/<item_id>")
def inventory_set(item_id):
    data = _body()
    if "currentStock" not in data:
        return _error("Provide currentStock.", 400)
    try:
        item = set_stock(item_id, float(data["currentStock"]))
    except (ValueError, TypeError) as e:
        return _error(str(e), 404 if "Unknown" in str(e) else 400)
    return _ok(data=item)

@app.get("/api/alerts")
def alerts_get():
    return _ok(data=get_alerts())

@app.post("/api/alerts/<alert_id>/ack")
def alerts_ack(alert_id):
    try:
        return _ok(data=acknowledge_alert(alert_id))
    except ValueError as e:
        return _error(str(e), 404)

# -------- Reports --------
@app.get("/reports")
def reports_get():
    return _ok(data=list_reports())

@app.post("/reports/close")
def reports_close():
    day = request.args.get("date") or _body().get("date")
    try:
        report = close_day(day)
    except ValueError:
        return _error("Invalid date format. Use YYYY-MM-DD", 400)
    return _ok(data=report)

# -------- Admin --------
def _check_config(changed: dict):
    """Reject values that would break the scheduler or the date views."""
    if "timezone" in changed:
        tz = changed["timezone"]
        if not isinstance(tz, str):
            raise ValueError(f"Unknown timezone: {tz!r}")
        try:
            ZoneInfo(tz)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {tz!r}") from e
    if "closing_time" in changed:
        try:
            datetime.strptime(changed["closing_time"], "%H:%M")
        except (ValueError, TypeError):
            raise ValueError("closing_time must be HH:MM")
    if "scheduler" in changed and not isinstance(changed["scheduler"], dict):
        raise ValueError("scheduler must be an object")

@app.post("/config")
def config_update():
    data = _body()
    cfg = get_config()
    # Allow partial updates to top-level keys
    allowed = {"business", "mpesa", "timezone", "store_url", "request_timeout",
               "notifications", "closing_time", "scheduler"}
    changed = {k: v for k, v in data.items() if k in allowed}
    try:
        _check_config(changed)
    except ValueError as e:
        return _error(str(e), 400)
    cfg.update(changed)
    write_json("config.json", cfg)
    # Re-schedule if the close time, zone or running flag changed
    if changed.keys() & {"closing_time", "scheduler", "timezone"}:
        _schedule_job()
    return _ok(changed=changed, config=cfg)

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    _schedule_job()
    app.run(host="0.0.0.0", port=8080, debug=False)
