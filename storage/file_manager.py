import json
import os
import tempfile
import threading
from datetime import datetime
from typing import Dict, Optional
from zoneinfo import ZoneInfo

_DATA_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "data")
_FILE_LOCK = threading.Lock()

DEFAULTS = {
    "menu.json": [
        {
            "id": "1", "name": "Carne Asada Taco", "price": 250, "category": "Tacos", "cost": 120,
            "ingredients": [
                {"name": "Beef", "quantity": 80, "unit": "g"},
                {"name": "Tortilla", "quantity": 1, "unit": "piece"},
                {"name": "Onions", "quantity": 15, "unit": "g"},
                {"name": "Cilantro", "quantity": 5, "unit": "g"},
                {"name": "Lime", "quantity": 0.25, "unit": "piece"},
            ],
        },
        {
            "id": "2", "name": "Chicken Taco", "price": 220, "category": "Tacos", "cost": 100,
            "ingredients": [
                {"name": "Chicken", "quantity": 70, "unit": "g"},
                {"name": "Tortilla", "quantity": 1, "unit": "piece"},
                {"name": "Onions", "quantity": 15, "unit": "g"},
                {"name": "Cilantro", "quantity": 5, "unit": "g"},
                {"name": "Lime", "quantity": 0.25, "unit": "piece"},
            ],
        },
        {
            "id": "3", "name": "Guacamole & Chips", "price": 180, "category": "Sides", "cost": 80,
            "ingredients": [
                {"name": "Avocado", "quantity": 1, "unit": "piece"},
                {"name": "Tortilla Chips", "quantity": 50, "unit": "g"},
                {"name": "Tomatoes", "quantity": 20, "unit": "g"},
                {"name": "Onions", "quantity": 10, "unit": "g"},
                {"name": "Lime", "quantity": 0.5, "unit": "piece"},
            ],
        },
        {"id": "4", "name": "Beef Burrito", "price": 350, "category": "Burritos", "cost": 180, "ingredients": []},
        {"id": "5", "name": "Chicken Quesadilla", "price": 280, "category": "Quesadillas", "cost": 140, "ingredients": []},
    ],
    "inventory.json": [
        {"id": "1", "name": "Beef", "currentStock": 2500, "unit": "g", "lowStockThreshold": 500,
         "costPerUnit": 0.8, "supplier": "Kileleshwa Butchery", "lastRestocked": "2024-01-15", "expiryDate": "2024-01-18"},
        {"id": "2", "name": "Chicken", "currentStock": 1800, "unit": "g", "lowStockThreshold": 400,
         "costPerUnit": 0.6, "supplier": "Kileleshwa Butchery", "lastRestocked": "2024-01-15", "expiryDate": "2024-01-18"},
        {"id": "3", "name": "Tortilla", "currentStock": 45, "unit": "piece", "lowStockThreshold": 20,
         "costPerUnit": 8, "supplier": "Local Bakery", "lastRestocked": "2024-01-14", "expiryDate": None},
        {"id": "4", "name": "Avocado", "currentStock": 8, "unit": "piece", "lowStockThreshold": 10,
         "costPerUnit": 25, "supplier": "City Park Market", "lastRestocked": "2024-01-13", "expiryDate": "2024-01-17"},
        {"id": "5", "name": "Tomatoes", "currentStock": 800, "unit": "g", "lowStockThreshold": 200,
         "costPerUnit": 0.15, "supplier": "City Park Market", "lastRestocked": "2024-01-14", "expiryDate": "2024-01-18"},
    ],
    "sales.json": [],
    "expenses.json": [],
    "alerts.json": [],
    "reports.json": {},
    "config.json": {
        "business": {
            "name": "Taco Hut",
            "location": "Westlands, Nairobi",
            "phone": "+254 700 123 456",
            "hours": "10:00 AM - 10:00 PM"
        },
        "mpesa": {
            "paybill": "123456",
            "till_number": "789012"
        },
        "timezone": "Africa/Nairobi",
        "store_url": None,
        "request_timeout": 10,
        "notifications": {
            "dailySummary": True,
            "lowStock": True,
            "newSales": False
        },
        "closing_time": "22:00",
        "scheduler": {
            "running": True
        }
    }
}

def data_path(filename: str) -> str:
    os.makedirs(_DATA_DIR, exist_ok=True)
    return os.path.join(_DATA_DIR, filename)

def _atomic_write(path: str, data_obj):
    tmp_fd, tmp_path = tempfile.mkstemp(prefix=".tmp_", dir=_DATA_DIR)
    try:
        with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
            json.dump(data_obj, f, indent=2)
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)

def ensure_defaults():
    os.makedirs(_DATA_DIR, exist_ok=True)
    for fname, default in DEFAULTS.items():
        path = data_path(fname)
        if not os.path.exists(path):
            with _FILE_LOCK:
                _atomic_write(path, default)

def read_json(filename: str):
    path = data_path(filename)
    with _FILE_LOCK:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

def write_json(filename: str, obj):
    path = data_path(filename)
    with _FILE_LOCK:
        _atomic_write(path, obj)

def append_json(filename: str, record: Dict):
    """Append one record to a list document under a single lock hold."""
    path = data_path(filename)
    with _FILE_LOCK:
        with open(path, "r", encoding="utf-8") as f:
            rows = json.load(f)
        rows.append(record)
        _atomic_write(path, rows)

def remove_by_id(filename: str, record_id: str) -> Optional[Dict]:
    """Remove the record with the given id; returns it, or None if absent."""
    path = data_path(filename)
    with _FILE_LOCK:
        with open(path, "r", encoding="utf-8") as f:
            rows = json.load(f)
        for i, row in enumerate(rows):
            if str(row.get("id")) == str(record_id):
                removed = rows.pop(i)
                _atomic_write(path, rows)
                return removed
    return None

def get_config() -> Dict:
    return read_json("config.json")

def configured_timezone() -> ZoneInfo:
    return ZoneInfo(get_config().get("timezone") or "UTC")

def today_local() -> str:
    return datetime.now(configured_timezone()).date().isoformat()
