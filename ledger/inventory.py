import logging
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple
from uuid import uuid4

from ledger.dates import parse_date
from ledger.menu import MenuItem, find_item, menu_from_dicts
from ledger.sales import Sale
from storage.file_manager import get_config, read_json, write_json

LOG = logging.getLogger(__name__)


def _num(x: float):
    """Keep whole quantities as ints in the JSON documents."""
    return int(x) if float(x).is_integer() else round(float(x), 4)


def low_stock_alert(item: Dict, new_stock: float, now: datetime) -> Dict:
    return {
        "id": uuid4().hex,
        "type": "critical",
        "title": "Low Stock Alert",
        "message": (
            f"{item['name']} is running low! Only {_num(new_stock)} {item.get('unit', '')} "
            f"remaining (threshold: {_num(item['lowStockThreshold'])})"
        ),
        "timestamp": now.isoformat(),
        "acknowledged": False,
    }


def deduct_for_sale(
    sale: Sale,
    menu: Dict[str, MenuItem],
    inventory: List[Dict],
    now: Optional[datetime] = None,
) -> Tuple[List[Dict], List[Dict]]:
    """Consume the ingredients of every line of ``sale`` from ``inventory``.

    Inventory items are matched to ingredients by case-insensitive name, and
    each deduction sees the stock left by the previous one. An alert is raised
    when an item goes from strictly above its threshold to at or below it.
    Stock never drops below zero. Lines whose menu item is unknown are skipped.

    Returns:
        (new_inventory, alerts) -- the input list is not modified.
    """
    now = now or datetime.now().astimezone()
    stock = [dict(item) for item in inventory]
    alerts = []
    for line in sale.items:
        menu_item = find_item(menu, line.menu_item_id)
        if menu_item is None:
            continue
        for ingredient in menu_item.ingredients:
            wanted = ingredient.name.lower()
            for item in stock:
                if str(item.get("name", "")).lower() != wanted:
                    continue
                current = float(item.get("currentStock", 0))
                threshold = float(item.get("lowStockThreshold", 0))
                new_stock = current - ingredient.quantity * line.quantity
                if new_stock <= threshold and current > threshold:
                    alerts.append(low_stock_alert(item, new_stock, now))
                item["currentStock"] = _num(max(0.0, new_stock))
    return stock, alerts


def low_stock_items(inventory: List[Dict]) -> List[Dict]:
    return [
        item for item in inventory
        if float(item.get("currentStock", 0)) <= float(item.get("lowStockThreshold", 0))
    ]


def expiring_items(inventory: List[Dict], today: date, within_days: int = 1) -> List[Dict]:
    """Items whose expiry date is on or before ``today + within_days``."""
    limit = today + timedelta(days=within_days)
    out = []
    for item in inventory:
        expiry = item.get("expiryDate")
        if expiry and parse_date(expiry) <= limit:
            out.append(item)
    return out


# -------- Store-backed helpers --------

def get_menu() -> List[Dict]:
    return read_json("menu.json")

def get_inventory() -> List[Dict]:
    return read_json("inventory.json")

def save_inventory(inv: List[Dict]):
    write_json("inventory.json", inv)

def get_alerts() -> List[Dict]:
    return read_json("alerts.json")

def set_stock(item_id: str, new_stock: float) -> Dict:
    if float(new_stock) < 0:
        raise ValueError("Stock cannot be negative")
    inv = get_inventory()
    for item in inv:
        if str(item.get("id")) == str(item_id):
            item["currentStock"] = _num(new_stock)
            save_inventory(inv)
            return item
    raise ValueError(f"Unknown inventory item: {item_id}")

def acknowledge_alert(alert_id: str) -> Dict:
    alerts = get_alerts()
    for alert in alerts:
        if alert.get("id") == alert_id:
            alert["acknowledged"] = True
            write_json("alerts.json", alerts)
            return alert
    raise ValueError(f"Unknown alert: {alert_id}")

def apply_sale(sale: Sale) -> List[Dict]:
    """Deduct a recorded sale from the stored inventory; returns new alerts."""
    menu = menu_from_dicts(get_menu())
    inv, alerts = deduct_for_sale(sale, menu, get_inventory())
    save_inventory(inv)
    if alerts:
        # newest first, as the dashboard lists them
        write_json("alerts.json", alerts[::-1] + get_alerts())
        if get_config().get("notifications", {}).get("lowStock", True):
            for a in alerts:
                LOG.warning("%s: %s", a["title"], a["message"])
    return alerts
