"""Field-presence checks run on a candidate record before it is written.

These never look at other records: sku and email uniqueness is checked by the
route handlers against the store.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List

from fastapi import HTTPException

from schemas import USER_TYPES

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass
class ValidationResult:
    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_product(record: Dict[str, Any]) -> ValidationResult:
    result = ValidationResult()

    if _is_blank(record.get("sku")):
        result.errors.append("SKU is required")
    if _is_blank(record.get("name")):
        result.errors.append("Product name is required")

    price = record.get("price")
    if price is None:
        result.errors.append("Price is required")
    elif not _is_number(price) or price < 0:
        result.errors.append("Price must be a number greater than or equal to 0")

    if _is_blank(record.get("category")):
        result.errors.append("Category is required")
    if _is_blank(record.get("image")):
        result.errors.append("Image is required")

    # stock is optional but must be sane when given
    stock = record.get("stock")
    if stock is not None and (not _is_number(stock) or stock < 0):
        result.errors.append("Stock must be a number greater than or equal to 0")

    return result


def validate_user(record: Dict[str, Any]) -> ValidationResult:
    result = ValidationResult()

    email = record.get("email")
    if not email:
        result.errors.append("Email is required")
    elif not isinstance(email, str) or not EMAIL_RE.match(email):
        result.errors.append("Invalid email format")

    if not record.get("name"):
        result.errors.append("Name is required")
    if not record.get("password"):
        result.errors.append("Password is required")

    user_type = record.get("user_type")
    if not user_type:
        result.errors.append("User type is required")
    elif user_type not in USER_TYPES:
        result.errors.append('User type must be either "customer" or "admin"')

    return result


def validation_error(errors: List[str]) -> HTTPException:
    return HTTPException(status_code=400, detail={"error": "Validation failed", "details": errors})
