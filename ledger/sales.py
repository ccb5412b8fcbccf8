from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple
from uuid import uuid4

from ledger.dates import parse_timestamp
from ledger.payments import Payment, payment_from_dict, payment_to_dict


@dataclass(frozen=True)
class SaleItem:
    menu_item_id: str
    name: str
    quantity: int
    unit_price: float
    unit_cost: float

    @property
    def revenue(self) -> float:
        return self.quantity * self.unit_price

    @property
    def profit(self) -> float:
        return (self.unit_price - self.unit_cost) * self.quantity


@dataclass(frozen=True)
class Sale:
    id: str
    timestamp: datetime
    items: Tuple[SaleItem, ...]
    total: float
    payment: Payment

    @property
    def payment_method(self) -> str:
        return self.payment.method

    @property
    def item_profit(self) -> float:
        return sum(item.profit for item in self.items)


def _first(data: Dict, *keys, default=None):
    for k in keys:
        if data.get(k) is not None:
            return data[k]
    return default


def _quantity(raw) -> int:
    if isinstance(raw, bool):
        raise ValueError(f"Line item quantity must be a whole number, got {raw!r}")
    qty = float(raw)
    if not qty.is_integer():
        raise ValueError(f"Line item quantity must be a whole number, got {raw!r}")
    if qty <= 0:
        raise ValueError(f"Line item quantity must be positive, got {raw!r}")
    return int(qty)


def item_from_dict(data: Dict) -> SaleItem:
    if not isinstance(data, dict):
        raise ValueError(f"Line item must be an object, got {type(data).__name__}")
    qty = _quantity(_first(data, "quantity", default=0))
    price = float(_first(data, "unitPrice", "price", default=0))
    cost = float(_first(data, "unitCost", "cost", default=0))
    if price < 0 or cost < 0:
        raise ValueError("Line item price and cost must be non-negative")
    return SaleItem(
        menu_item_id=str(_first(data, "menuItemId", default="")),
        name=str(_first(data, "name", default="")),
        quantity=qty,
        unit_price=price,
        unit_cost=cost,
    )


def sale_from_dict(data: Dict) -> Sale:
    """Build a Sale from its JSON document.

    Accepts the legacy field aliases (``ID``/``_id`` and
    ``recordedAt``). A missing total is computed from the line items; a
    present total is kept as-is even if it drifted from the items.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Sale must be an object, got {type(data).__name__}")
    raw_items = data.get("items") or []
    if not isinstance(raw_items, list):
        raise ValueError("Sale items must be a list")
    items = tuple(item_from_dict(i) for i in raw_items)
    if not items:
        raise ValueError("A sale needs at least one line item")
    total = _first(data, "total")
    total = sum(i.revenue for i in items) if total is None else float(total)
    return Sale(
        id=str(_first(data, "id", "ID", "_id", default="")),
        timestamp=parse_timestamp(_first(data, "timestamp", "recordedAt")),
        items=items,
        total=total,
        payment=payment_from_dict(data),
    )


def sale_to_dict(sale: Sale) -> Dict:
    out = {
        "id": sale.id,
        "timestamp": sale.timestamp.isoformat(),
        "items": [
            {
                "menuItemId": i.menu_item_id,
                "name": i.name,
                "quantity": i.quantity,
                "price": i.unit_price,
                "cost": i.unit_cost,
            }
            for i in sale.items
        ],
        "total": sale.total,
    }
    out.update(payment_to_dict(sale.payment))
    return out


def new_sale_document(data: Dict, now: Optional[datetime] = None) -> Dict:
    """Stamp an incoming checkout with an id and, if absent, a timestamp.

    Validates the payload by parsing it; raises ValueError on bad input.
    """
    doc = dict(data)
    doc["id"] = uuid4().hex
    if not _first(doc, "timestamp", "recordedAt"):
        doc["timestamp"] = (now or datetime.now().astimezone()).isoformat()
    return sale_to_dict(sale_from_dict(doc))


def sales_from_dicts(rows: List[Dict]) -> List[Sale]:
    return [sale_from_dict(r) for r in rows]
