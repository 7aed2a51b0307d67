"""Catalog listing: category filtering, search and page slicing over the loaded product list,
plus the counts shown on the admin dashboard."""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from api_client import StorefrontApi
from config import CATALOG_PAGE_SIZE

Product = Dict[str, Any]

LOW_STOCK_THRESHOLD = 30


@dataclass
class Page:
    items: List[Product] = field(default_factory=list)
    page: int = 1
    total_pages: int = 0
    total: int = 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1


def filter_by_category(products: List[Product], category: Optional[str]) -> List[Product]:
    if not category:
        return list(products)
    return [p for p in products if p.get("category") == category]


def paginate(products: List[Product], page: int = 1, per_page: int = CATALOG_PAGE_SIZE) -> Page:
    if per_page < 1:
        raise ValueError("per_page must be at least 1")
    total = len(products)
    total_pages = math.ceil(total / per_page)
    page = min(max(page, 1), max(total_pages, 1))
    start = (page - 1) * per_page
    return Page(items=products[start:start + per_page], page=page, total_pages=total_pages, total=total)


def search(products: List[Product], term: Optional[str]) -> List[Product]:
    """Case-insensitive substring match on name, category or sku."""
    needle = (term or "").strip().lower()
    if not needle:
        return list(products)
    return [
        p for p in products
        if any(needle in str(p.get(key) or "").lower() for key in ("name", "category", "sku"))
    ]


def featured(products: List[Product], limit: int = 4) -> List[Product]:
    return products[:limit]


def categories(products: List[Product]) -> List[str]:
    return sorted({p["category"] for p in products if p.get("category")})


@dataclass(frozen=True)
class AdminSummary:
    product_count: int
    total_stock: float
    low_stock: int
    order_count: int
    pending_orders: int
    revenue: float


def admin_summary(products: List[Product], orders: List[Dict[str, Any]], low_stock_below: int = LOW_STOCK_THRESHOLD) -> AdminSummary:
    return AdminSummary(
        product_count=len(products),
        total_stock=sum(p.get("stock") or 0 for p in products),
        low_stock=sum(1 for p in products if (p.get("stock") or 0) < low_stock_below),
        order_count=len(orders),
        pending_orders=sum(1 for o in orders if o.get("status") == "pending"),
        revenue=sum(o.get("totalAmount") or 0 for o in orders),
    )


class Catalog:
    def __init__(self, api: StorefrontApi, per_page: int = CATALOG_PAGE_SIZE):
        self.api = api
        self.per_page = per_page
        self.category: Optional[str] = None
        self.term: Optional[str] = None
        self.products: List[Product] = []

    def load(self, category: Optional[str] = None) -> List[Product]:
        """Fetch the whole list (or one category partition) and reset to page 1."""
        self.category = category
        if category:
            self.products = self.api.products.get_by_category(category)
        else:
            self.products = self.api.products.get_all()
        return self.products

    def search(self, term: Optional[str]) -> Page:
        """Narrow the loaded list by a search term and go back to page 1."""
        self.term = term
        return self.page(1)

    def page(self, number: int = 1) -> Page:
        return paginate(search(self.products, self.term), number, self.per_page)
