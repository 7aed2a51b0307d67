import logging
import secrets
import string
import time
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from database import utcnow
from schemas import ORDER_STATUSES, Number, Order, OrderItem, PaymentInfo, ShippingAddress
from store import Container, DuplicateRecordError, get_orders

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"])

_BASE36 = string.ascii_lowercase + string.digits


def make_order_id() -> str:
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"order_{int(time.time() * 1000)}_{suffix}"


class OrderCreate(BaseModel):
    userId: Optional[str] = None
    items: List[OrderItem] = []
    totalAmount: Optional[Number] = None
    tax: Optional[Number] = None
    shippingFee: Optional[Number] = None
    status: Optional[str] = None
    shippingAddress: Optional[ShippingAddress] = None
    paymentInfo: Optional[PaymentInfo] = None


class OrderUpdate(BaseModel):
    userId: Optional[str] = None  # partition key, required, never changes
    items: Optional[List[OrderItem]] = None
    totalAmount: Optional[Number] = None
    tax: Optional[Number] = None
    shippingFee: Optional[Number] = None
    status: Optional[str] = None
    shippingAddress: Optional[ShippingAddress] = None
    paymentInfo: Optional[PaymentInfo] = None


class StatusUpdate(BaseModel):
    status: Optional[str] = None
    userId: Optional[str] = None


def _check_status(status: Optional[str]):
    if status is not None and status not in ORDER_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid order status")


def _require_user_id(user_id: Optional[str]) -> str:
    if not user_id:
        raise HTTPException(status_code=400, detail="userId is required")
    return user_id


def _find_order(orders: Container, order_id: str, user_id: str) -> Dict[str, Any]:
    order = orders.get_by_id(order_id, user_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


def _replace(orders: Container, order: Dict[str, Any]) -> Dict[str, Any]:
    order["updatedAt"] = utcnow()
    saved = orders.replace(order["id"], order["userId"], Order(**order).model_dump())
    if saved is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return saved


@router.get("")
def list_orders(orders: Container = Depends(get_orders)):
    return orders.list_all(order_by="createdAt")


@router.get("/user/{user_id}")
def list_user_orders(user_id: str, orders: Container = Depends(get_orders)):
    return orders.get_by_partition(user_id, order_by="createdAt")


@router.get("/{order_id}")
def get_order(order_id: str, user_id: Optional[str] = Query(None, alias="userId"), orders: Container = Depends(get_orders)):
    return _find_order(orders, order_id, _require_user_id(user_id))


@router.post("", status_code=201)
def create_order(data: OrderCreate, orders: Container = Depends(get_orders)):
    if not data.items:
        raise HTTPException(status_code=400, detail="Order items are required")
    if data.shippingAddress is None:
        raise HTTPException(status_code=400, detail="Shipping address is required")
    _check_status(data.status)

    now = utcnow()
    order = Order(
        id=make_order_id(),
        userId=data.userId or "guest",
        items=data.items,
        totalAmount=data.totalAmount or 0,
        tax=data.tax or 0,
        shippingFee=data.shippingFee or 0,
        status=data.status or "pending",
        shippingAddress=data.shippingAddress,
        paymentInfo=data.paymentInfo,
        createdAt=now,
        updatedAt=now,
    )
    try:
        created = orders.create(order.model_dump())
    except DuplicateRecordError:
        logger.warning("Order id %s already taken", order.id)
        raise HTTPException(status_code=409, detail="Order id already exists")
    logger.info("Created order %s for %s (total %s)", created["id"], created["userId"], created["totalAmount"])
    return created


@router.put("/{order_id}/status")
def update_order_status(order_id: str, data: StatusUpdate, orders: Container = Depends(get_orders)):
    if not data.status:
        raise HTTPException(status_code=400, detail="Status is required")
    user_id = _require_user_id(data.userId)
    _check_status(data.status)

    order = _find_order(orders, order_id, user_id)
    previous = order["status"]
    order["status"] = data.status
    saved = _replace(orders, order)
    logger.info("Order %s status %s -> %s", order_id, previous, data.status)
    return saved


@router.put("/{order_id}")
def update_order(order_id: str, data: OrderUpdate, orders: Container = Depends(get_orders)):
    user_id = _require_user_id(data.userId)
    changes = {k: v for k, v in data.model_dump(exclude_unset=True, exclude={"userId"}).items() if v is not None}
    _check_status(changes.get("status"))
    if "items" in changes and not changes["items"]:
        raise HTTPException(status_code=400, detail="Order items are required")

    order = _find_order(orders, order_id, user_id)
    # id and userId are immutable
    order.update(changes)
    return _replace(orders, order)


@router.delete("/{order_id}")
def delete_order(order_id: str, user_id: Optional[str] = Query(None, alias="userId"), orders: Container = Depends(get_orders)):
    user_id = _require_user_id(user_id)
    order = _find_order(orders, order_id, user_id)
    if not orders.delete(order_id, user_id):
        raise HTTPException(status_code=404, detail="Order not found")
    logger.info("Deleted order %s", order_id)
    return {"message": "Order deleted", "deletedOrder": order}
