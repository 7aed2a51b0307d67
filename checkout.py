"""
Checkout: Shipping -> Payment -> Confirmation.

Shipping fields are only checked here, on the client. Payment happens in the
gateway's hosted widget; once it reports success the order is posted. If that
post fails the money is already taken and nothing retries or reconciles it:
the user is told to contact support.
"""

import enum
import logging
from typing import Any, Dict, List, Mapping, Optional

import requests

from api_client import ApiError, StorefrontApi, StorefrontError
from cart import CartStore
from config import PAYMENT_MERCHANT_ID, PAYMENT_PAY_METHOD, PAYMENT_PG
from messages import translate
from payment import PaymentRequest, PaymentResult, PaymentWidget, merchant_reference
from session import SessionStore

logger = logging.getLogger(__name__)

SHIPPING_FIELDS = ("firstName", "lastName", "email", "phone", "address", "city", "zipCode")


class CheckoutStep(enum.Enum):
    SHIPPING = "shipping"
    PAYMENT = "payment"
    CONFIRMATION = "confirmation"


class EmptyCartError(StorefrontError):
    pass


class ShippingFormError(StorefrontError):
    def __init__(self, missing_fields: List[str], message: str):
        self.missing_fields = missing_fields
        super().__init__(message)


class PaymentFailedError(StorefrontError):
    def __init__(self, result: PaymentResult, message: str):
        self.result = result
        super().__init__(message)


class OrderNotSavedError(StorefrontError):
    """Payment succeeded but the order could not be stored."""

    def __init__(self, result: PaymentResult, message: str):
        self.result = result
        super().__init__(message)


class CheckoutFlow:
    def __init__(
        self,
        cart: CartStore,
        api: StorefrontApi,
        widget: PaymentWidget,
        session: Optional[SessionStore] = None,
        merchant_id: str = PAYMENT_MERCHANT_ID,
        locale: Optional[str] = None,
    ):
        self.cart = cart
        self.api = api
        self.widget = widget
        self.session = session
        self.merchant_id = merchant_id
        self.locale = locale
        self.step = CheckoutStep.SHIPPING
        self.shipping: Optional[Dict[str, str]] = None
        self.payment: Optional[PaymentResult] = None
        self.order: Optional[Dict[str, Any]] = None

    @property
    def user_id(self) -> str:
        user = self.session.user if self.session else None
        return user["id"] if user and user.get("id") else "guest"

    def _ensure_cart(self) -> None:
        if self.cart.is_empty():
            raise EmptyCartError(translate("checkout.empty_cart", self.locale))

    def submit_shipping(self, form: Mapping[str, Any]) -> Dict[str, str]:
        self._ensure_cart()
        shipping = {name: str(form.get(name) or "").strip() for name in SHIPPING_FIELDS}
        missing = [name for name, value in shipping.items() if not value]
        if missing:
            raise ShippingFormError(missing, translate("checkout.missing_fields", self.locale, fields=", ".join(missing)))
        self.shipping = shipping
        self.step = CheckoutStep.PAYMENT
        return shipping

    def back(self) -> None:
        if self.step is CheckoutStep.PAYMENT:
            self.step = CheckoutStep.SHIPPING

    def order_name(self) -> str:
        items = self.cart.items
        if len(items) == 1:
            return items[0]["name"]
        return translate("checkout.order_name", self.locale, name=items[0]["name"], count=len(items) - 1)

    def payment_request(self) -> PaymentRequest:
        s = self.shipping
        return PaymentRequest(
            merchant_id=self.merchant_id,
            merchant_uid=merchant_reference(),
            amount=self.cart.totals.total,
            name=self.order_name(),
            buyer_name=f"{s['firstName']} {s['lastName']}",
            buyer_email=s["email"],
            buyer_tel=s["phone"],
            buyer_addr=f"{s['address']} {s['city']}",
            buyer_postcode=s["zipCode"],
            pg=PAYMENT_PG,
            pay_method=PAYMENT_PAY_METHOD,
        )

    def order_payload(self, result: PaymentResult) -> Dict[str, Any]:
        totals = self.cart.totals
        return {
            "userId": self.user_id,
            "items": [
                {
                    "productId": item["id"],
                    "name": item["name"],
                    "price": item["price"],
                    "quantity": item["quantity"],
                    "category": item.get("category"),
                    "image": item.get("image"),
                }
                for item in self.cart.items
            ],
            "totalAmount": totals.total,
            "tax": totals.tax,
            "shippingFee": totals.shipping,
            "status": "pending",
            "shippingAddress": dict(self.shipping),
            "paymentInfo": result.to_payment_info(),
        }

    def pay(self) -> Dict[str, Any]:
        """Run the payment widget and store the order; returns the created order."""
        if self.step is not CheckoutStep.PAYMENT:
            raise RuntimeError("Shipping information must be submitted before payment")
        self._ensure_cart()

        request = self.payment_request()
        result = self.widget.request_pay(request)
        self.payment = result
        if not result.success:
            logger.info("Payment %s not completed: %s", request.merchant_uid, result.error_msg)
            raise PaymentFailedError(result, translate("checkout.payment_failed", self.locale, reason=result.error_msg or "-"))

        try:
            created = self.api.orders.create(self.order_payload(result))
        except (ApiError, requests.RequestException) as e:
            logger.error("Payment %s succeeded but the order was not saved: %s", result.imp_uid, e)
            reference = result.imp_uid or result.merchant_uid
            raise OrderNotSavedError(result, translate("checkout.order_not_saved", self.locale, reference=reference)) from e

        self.cart.clear()
        self.order = created
        self.step = CheckoutStep.CONFIRMATION
        return created
