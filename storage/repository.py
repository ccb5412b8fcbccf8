"""Transaction source interface and the local JSON-file implementation.

The aggregation engine never reads storage itself; callers fetch a snapshot
from a TransactionSource and hand the lists to the engine.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, TypeVar

from ledger.expenses import Expense, expense_from_dict, new_expense_document
from ledger.sales import Sale, new_sale_document, sale_from_dict
from storage.file_manager import append_json, read_json, remove_by_id

LOG = logging.getLogger(__name__)

T = TypeVar("T")


def parse_rows(rows, parser: Callable[[Dict], T], kind: str) -> List[T]:
    """Parse a list of documents, skipping (and logging) the unusable ones."""
    if not isinstance(rows, list):
        LOG.warning("Expected a list of %s, got %s; treating as empty", kind, type(rows).__name__)
        return []
    out = []
    for row in rows:
        try:
            out.append(parser(row))
        except (ValueError, TypeError, KeyError, AttributeError) as exc:
            LOG.warning("Skipping malformed %s record %r: %s", kind, row, exc)
    return out


class TransactionSource(ABC):
    """Where sales and expenses live.

    No filtering, sorting or paging is pushed down: list operations return
    the whole collection.
    """

    @abstractmethod
    def list_sales(self) -> List[Sale]:
        pass

    @abstractmethod
    def list_expenses(self) -> List[Expense]:
        pass

    @abstractmethod
    def create_sale(self, data: Dict) -> Dict:
        """Store a checkout payload; returns the stored document."""
        pass

    @abstractmethod
    def create_expense(self, data: Dict) -> Dict:
        pass

    @abstractmethod
    def delete_sale(self, sale_id: str) -> bool:
        """Returns False when no sale has that id."""
        pass

    @abstractmethod
    def delete_expense(self, expense_id: str) -> bool:
        pass


class JsonTransactionStore(TransactionSource):
    """Sales and expenses kept in the data directory's JSON files."""

    def list_sales(self) -> List[Sale]:
        return parse_rows(read_json("sales.json"), sale_from_dict, "sale")

    def list_expenses(self) -> List[Expense]:
        return parse_rows(read_json("expenses.json"), expense_from_dict, "expense")

    def create_sale(self, data: Dict) -> Dict:
        doc = new_sale_document(data)
        append_json("sales.json", doc)
        LOG.info("Recorded sale %s (%d items, total %s)", doc["id"], len(doc["items"]), doc["total"])
        return doc

    def create_expense(self, data: Dict) -> Dict:
        doc = new_expense_document(data)
        append_json("expenses.json", doc)
        LOG.info("Recorded expense %s (%s, %s)", doc["id"], doc["category"], doc["amount"])
        return doc

    def delete_sale(self, sale_id: str) -> bool:
        removed = remove_by_id("sales.json", sale_id)
        if removed:
            LOG.info("Deleted sale %s", sale_id)
        return removed is not None

    def delete_expense(self, expense_id: str) -> bool:
        removed = remove_by_id("expenses.json", expense_id)
        if removed:
            LOG.info("Deleted expense %s", expense_id)
        return removed is not None
