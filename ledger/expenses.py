from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional
from uuid import uuid4

from ledger.dates import parse_timestamp
from ledger.payments import MobileMoneyPayment, Payment, payment_from_dict, payment_to_dict

CATEGORIES = ("ingredients", "supplies", "equipment", "utilities", "other")


@dataclass(frozen=True)
class Expense:
    id: str
    timestamp: datetime
    description: str
    amount: float
    category: str
    payment: Payment

    @property
    def payment_method(self) -> str:
        return self.payment.method


def expense_from_dict(data: Dict) -> Expense:
    raw = data.get("amount")
    if raw in (None, ""):
        raise ValueError("Expense amount is required")
    # older documents store amounts as strings
    amount = float(raw)
    if amount < 0:
        raise ValueError(f"Expense amount must be non-negative, got {raw!r}")
    category = str(data.get("category") or "other").lower()
    if category not in CATEGORIES:
        raise ValueError(f"Unknown expense category: {category!r}")
    payment = payment_from_dict(data)
    if isinstance(payment, MobileMoneyPayment) and payment.phone:
        # expenses never carry a customer phone
        payment = MobileMoneyPayment(code=payment.code)
    ts = data.get("timestamp") or data.get("timeAdded")
    return Expense(
        id=str(data.get("id") or data.get("ID") or data.get("_id") or ""),
        timestamp=parse_timestamp(ts),
        description=str(data.get("description") or ""),
        amount=amount,
        category=category,
        payment=payment,
    )


def expense_to_dict(expense: Expense) -> Dict:
    out = {
        "id": expense.id,
        "timestamp": expense.timestamp.isoformat(),
        "description": expense.description,
        "amount": expense.amount,
        "category": expense.category,
    }
    out.update(payment_to_dict(expense.payment))
    return out


def new_expense_document(data: Dict, now: Optional[datetime] = None) -> Dict:
    doc = dict(data)
    doc["id"] = uuid4().hex
    if not (doc.get("timestamp") or doc.get("timeAdded")):
        doc["timestamp"] = (now or datetime.now().astimezone()).isoformat()
    return expense_to_dict(expense_from_dict(doc))
