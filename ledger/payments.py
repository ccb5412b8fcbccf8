"""Payment channels.

A payment is either cash or mobile money. Only mobile money carries a
transaction code and, for sales, the paying customer's phone number.
"""

from dataclasses import dataclass
from typing import ClassVar, Dict, Optional, Union

CASH = "cash"
MOBILE_MONEY = "mpesa"

# Spellings accepted on the wire
_ALIASES = {
    "cash": CASH,
    "mpesa": MOBILE_MONEY,
    "m-pesa": MOBILE_MONEY,
    "mobile-money": MOBILE_MONEY,
    "mobile_money": MOBILE_MONEY,
}


@dataclass(frozen=True)
class CashPayment:
    method: ClassVar[str] = CASH


@dataclass(frozen=True)
class MobileMoneyPayment:
    method: ClassVar[str] = MOBILE_MONEY
    code: Optional[str] = None
    phone: Optional[str] = None


Payment = Union[CashPayment, MobileMoneyPayment]


def normalize_method(value) -> str:
    method = _ALIASES.get(str(value or "").strip().lower())
    if method is None:
        raise ValueError(f"Unknown payment method: {value!r}")
    return method


def payment_from_dict(data: Dict) -> Payment:
    method = normalize_method(data.get("paymentMethod"))
    if method == CASH:
        return CashPayment()
    return MobileMoneyPayment(
        code=data.get("mpesaCode") or None,
        phone=data.get("customerPhone") or None,
    )


def payment_to_dict(payment: Payment) -> Dict:
    out = {"paymentMethod": payment.method}
    if isinstance(payment, MobileMoneyPayment):
        if payment.code:
            out["mpesaCode"] = payment.code
        if payment.phone:
            out["customerPhone"] = payment.phone
    return out
