# restobot/ordering/catalog.py
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..config import settings

_CATALOG_CACHE: Dict[str, "Catalog"] = {}

_CURRENCY_SYMBOLS = {
    "NGN": "₦",
    "GBP": "£",
    "USD": "$",
}


@dataclass(frozen=True)
class MenuItem:
    id: int
    name: str
    price: int


class Catalog:
    """Read-only, ordered menu. Lookups by id are indexed."""

    def __init__(self, items: Iterable[MenuItem], currency: str = "NGN") -> None:
        self._items: List[MenuItem] = []
        self._by_id: Dict[int, MenuItem] = {}
        for it in items:
            if it.id <= 0:
                raise ValueError(f"Menu item id must be positive: {it.id}")
            if it.price < 0:
                raise ValueError(f"Menu item price must not be negative: {it.name}")
            if it.id in self._by_id:
                raise ValueError(f"Duplicate menu item id: {it.id}")
            self._items.append(it)
            self._by_id[it.id] = it
        self.currency = (currency or "NGN").upper()

    def list(self) -> List[MenuItem]:
        return list(self._items)

    def find_by_id(self, item_id: int) -> Optional[MenuItem]:
        return self._by_id.get(item_id)

    @property
    def currency_symbol(self) -> str:
        return _CURRENCY_SYMBOLS.get(self.currency, "")

    def __len__(self) -> int:
        return len(self._items)


def _sanitize_menu_key(raw: str) -> str:
    k = (raw or "").strip().replace("\\", "/")
    k = k.split("/")[-1].strip()
    return k or "naija"


def _iter_raw_items(menu: Dict[str, Any]) -> Iterable[Dict[str, Any]]:
    """Supports both schemas:
    - Flat: menu["items"] top-level
    - Grouped: nested categories[*]["items"]
    """
    for it in (menu.get("items") or []):
        if isinstance(it, dict):
            yield it

    for cat in (menu.get("categories") or []):
        if not isinstance(cat, dict):
            continue
        for it in (cat.get("items") or []):
            if isinstance(it, dict):
                yield it


def catalog_from_dict(menu: Dict[str, Any]) -> Catalog:
    items = [
        MenuItem(id=int(it["id"]), name=str(it["name"]).strip(), price=int(it["price"]))
        for it in _iter_raw_items(menu)
    ]
    currency = str((menu.get("meta") or {}).get("currency") or "NGN")
    return Catalog(items, currency=currency)


def load_catalog(menu_key: Optional[str] = None, menus_dir: Optional[str] = None) -> Catalog:
    key = _sanitize_menu_key(menu_key or settings.menu_key)
    data_dir = Path(menus_dir or settings.menus_dir)

    cache_key = f"{data_dir}:{key}"
    if cache_key in _CATALOG_CACHE:
        return _CATALOG_CACHE[cache_key]

    menu_path = data_dir / key / "menu.json"
    if not menu_path.exists():
        available = sorted([p.name for p in data_dir.iterdir() if p.is_dir()]) if data_dir.exists() else []
        raise FileNotFoundError(
            f"Menu '{key}' not found.\nAvailable menus: {available}"
        )

    try:
        menu = json.loads(menu_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {menu_path}: {e}") from e

    catalog = catalog_from_dict(menu)
    _CATALOG_CACHE[cache_key] = catalog
    return catalog
