from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Ingredient:
    name: str
    quantity: float
    unit: str


@dataclass(frozen=True)
class MenuItem:
    id: str
    name: str
    price: float
    category: str
    cost: float
    ingredients: Tuple[Ingredient, ...] = ()


def menu_item_from_dict(data: Dict) -> MenuItem:
    return MenuItem(
        id=str(data["id"]),
        name=str(data["name"]),
        price=float(data.get("price", 0.0)),
        category=str(data.get("category", "")),
        cost=float(data.get("cost", 0.0)),
        ingredients=tuple(
            Ingredient(name=str(i["name"]), quantity=float(i["quantity"]), unit=str(i.get("unit", "")))
            for i in (data.get("ingredients") or [])
        ),
    )


def menu_from_dicts(rows: List[Dict]) -> Dict[str, MenuItem]:
    """Index menu items by id, keeping file order."""
    return {m.id: m for m in (menu_item_from_dict(r) for r in rows)}


def find_item(menu: Dict[str, MenuItem], menu_item_id: str) -> Optional[MenuItem]:
    return menu.get(str(menu_item_id))
