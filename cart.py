"""
Client cart state.

The cart is a list of {id, name, price, category, image, quantity} entries
kept in local storage under "cart". Every mutation writes the whole list back,
recomputes totals and fires "cart-updated" on the window so same-tab
listeners (the header badge) refresh; other tabs learn about it from the
storage event.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from browser import StorageEvent, Window
from config import SHIPPING_FEE, TAX_RATE

logger = logging.getLogger(__name__)

CART_KEY = "cart"
CART_UPDATED = "cart-updated"

CartEntry = Dict[str, Any]


@dataclass(frozen=True)
class CartTotals:
    subtotal: float = 0
    tax: int = 0
    shipping: float = 0
    total: float = 0


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_totals(items: List[Mapping[str, Any]], tax_rate: float = TAX_RATE, shipping: float = SHIPPING_FEE) -> CartTotals:
    subtotal = sum(item["price"] * item["quantity"] for item in items)
    tax = round_half_up(subtotal * tax_rate)
    return CartTotals(subtotal=subtotal, tax=tax, shipping=shipping, total=subtotal + tax + shipping)


def read_cart(window: Window) -> List[CartEntry]:
    items = window.local_storage.get_json(CART_KEY, [])
    if not isinstance(items, list):
        logger.warning("Discarding malformed cart in local storage")
        return []
    return items


class CartStore:
    def __init__(self, window: Window):
        self.window = window
        self._items: List[CartEntry] = read_cart(window)
        self.totals = compute_totals(self._items)
        window.events.add_listener(CART_UPDATED, self._on_cart_updated)
        window.events.add_listener("storage", self._on_storage)

    @property
    def items(self) -> List[CartEntry]:
        return [dict(item) for item in self._items]

    @property
    def count(self) -> int:
        return sum(item["quantity"] for item in self._items)

    def is_empty(self) -> bool:
        return not self._items

    def find(self, item_id: str) -> Optional[CartEntry]:
        for item in self._items:
            if item["id"] == item_id:
                return dict(item)
        return None

    def add(self, product: Mapping[str, Any], quantity: int = 1) -> None:
        """Add a product, or bump its quantity when it is already in the cart."""
        items = self.items
        for item in items:
            if item["id"] == product["id"]:
                item["quantity"] += quantity
                break
        else:
            items.append({
                "id": product["id"],
                "name": product.get("name"),
                "price": product.get("price", 0),
                "category": product.get("category"),
                "image": product.get("image"),
                "quantity": quantity,
            })
        self._commit(items)

    def set_quantity(self, item_id: str, quantity: int) -> None:
        if quantity <= 0:
            self.remove(item_id)
            return
        items = [dict(item, quantity=quantity) if item["id"] == item_id else item for item in self.items]
        self._commit(items)

    def remove(self, item_id: str) -> None:
        self._commit([item for item in self.items if item["id"] != item_id])

    def clear(self) -> None:
        self._items = []
        self.totals = compute_totals(self._items)
        self.window.local_storage.remove_item(CART_KEY)
        self.window.events.dispatch(CART_UPDATED, self)

    def reload(self) -> None:
        self._items = read_cart(self.window)
        self.totals = compute_totals(self._items)

    def close(self) -> None:
        self.window.events.remove_listener(CART_UPDATED, self._on_cart_updated)
        self.window.events.remove_listener("storage", self._on_storage)

    def _commit(self, items: List[CartEntry]) -> None:
        self._items = items
        self.window.local_storage.set_json(CART_KEY, items)
        self.totals = compute_totals(items)
        self.window.events.dispatch(CART_UPDATED, self)

    def _on_cart_updated(self, source: Any) -> None:
        if source is not self:
            self.reload()

    def _on_storage(self, event: StorageEvent) -> None:
        if event.key in (CART_KEY, None):
            self.reload()


class CartBadge:
    """Header cart counter: total quantity across entries."""

    def __init__(self, window: Window):
        self.window = window
        self.count = 0
        self.refresh()
        window.events.add_listener(CART_UPDATED, self._on_cart_updated)
        window.events.add_listener("storage", self._on_storage)

    def refresh(self) -> None:
        self.count = sum(item.get("quantity", 0) for item in read_cart(self.window))

    def _on_cart_updated(self, source: Any) -> None:
        self.refresh()

    def _on_storage(self, event: StorageEvent) -> None:
        if event.key in (CART_KEY, None):
            self.refresh()
