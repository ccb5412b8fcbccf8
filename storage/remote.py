"""HTTP transaction source.

Talks to the transaction store over its JSON API. Every response is an
envelope ``{"status": "success", "data": ...}``.

Failure handling:
    - connection errors, timeouts and non-2xx answers raise TransportError;
    - an envelope whose status is not "success" raises StoreResponseError;
    - a body that is not a JSON envelope, or a missing/null ``data``, is
      logged and read as an empty collection.

There is no retry. A write that times out may or may not have been stored,
and repeating it can record the sale twice since the store has no
idempotency key.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from ledger.expenses import Expense, expense_from_dict
from ledger.sales import Sale, sale_from_dict
from storage.exceptions import StoreResponseError, TransportError
from storage.repository import TransactionSource, parse_rows

LOG = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10

SALES_LIST = "/api/fetchSaleData"
SALE_CREATE = "/api/saledata"
SALE_DELETE = "/api/deletesale/{id}"
EXPENSES_LIST = "/api/fetchExpenses"
EXPENSE_CREATE = "/api/expenses"
EXPENSE_DELETE = "/api/deleteexpense/{id}"


class HttpTransactionSource(TransactionSource):
    def __init__(self, base_url: str, session: Optional[requests.Session] = None, timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _send(self, method: str, path: str, body: Optional[Dict] = None) -> requests.Response:
        url = self.base_url + path
        try:
            resp = self.session.request(method, url, json=body, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc
        return resp

    def _envelope(self, method: str, path: str, body: Optional[Dict] = None) -> Optional[Dict[str, Any]]:
        """Send a request and return the success envelope, or None if unreadable."""
        return self._read_envelope(method, path, self._send(method, path, body))

    def _read_envelope(self, method: str, path: str, resp: requests.Response) -> Optional[Dict[str, Any]]:
        if not resp.ok:
            raise TransportError(f"{method} {path} failed: HTTP {resp.status_code} {resp.text[:200]}")
        try:
            payload = resp.json()
        except ValueError:
            LOG.warning("Malformed response from %s %s: body is not JSON", method, path)
            return None
        if not isinstance(payload, dict):
            LOG.warning("Malformed response from %s %s: expected an object, got %s",
                        method, path, type(payload).__name__)
            return None
        status = payload.get("status")
        if status != "success":
            raise StoreResponseError(status, payload.get("error") or payload.get("message") or "")
        return payload

    def _list(self, path: str, kind: str) -> List[Dict]:
        payload = self._envelope("GET", path)
        if payload is None:
            return []
        data = payload.get("data")
        if data is None:
            LOG.warning("Store returned no %s data from %s; treating as empty", kind, path)
            return []
        return data

    def _delete(self, path: str) -> bool:
        resp = self._send("DELETE", path)
        if resp.status_code == 404:
            return False
        # a 2xx with an unreadable body still counts as deleted
        self._read_envelope("DELETE", path, resp)
        return True

    def list_sales(self) -> List[Sale]:
        return parse_rows(self._list(SALES_LIST, "sale"), sale_from_dict, "sale")

    def list_expenses(self) -> List[Expense]:
        return parse_rows(self._list(EXPENSES_LIST, "expense"), expense_from_dict, "expense")

    def create_sale(self, data: Dict) -> Dict:
        payload = self._envelope("POST", SALE_CREATE, data)
        if payload is None:
            return {}
        return payload.get("data") or {"id": payload.get("salesId")}

    def create_expense(self, data: Dict) -> Dict:
        payload = self._envelope("POST", EXPENSE_CREATE, data)
        if payload is None:
            return {}
        return payload.get("data") or {"id": payload.get("expenseId")}

    def delete_sale(self, sale_id: str) -> bool:
        return self._delete(SALE_DELETE.format(id=sale_id))

    def delete_expense(self, expense_id: str) -> bool:
        return self._delete(EXPENSE_DELETE.format(id=expense_id))
