"""
Hosted payment widget interface.

Card entry and authorization happen inside the gateway's widget; the
storefront only hands it a request and receives the result.
"""

import random
import string
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

_BASE36 = string.ascii_lowercase + string.digits


def merchant_reference() -> str:
    """order_<timestamp>_<random>; not guaranteed unique."""
    suffix = "".join(random.choice(_BASE36) for _ in range(9))
    return f"order_{int(time.time() * 1000)}_{suffix}"


@dataclass
class PaymentRequest:
    merchant_id: str
    merchant_uid: str
    amount: float
    name: str
    buyer_name: str
    buyer_email: str
    buyer_tel: str
    buyer_addr: str
    buyer_postcode: str = ""
    pg: str = "html5_inicis"
    pay_method: str = "card"


@dataclass
class PaymentResult:
    success: bool
    merchant_uid: str
    imp_uid: Optional[str] = None
    paid_amount: Optional[float] = None
    pay_method: Optional[str] = None
    pg: Optional[str] = None
    error_msg: Optional[str] = None

    def to_payment_info(self) -> Dict[str, Any]:
        return {
            "impUid": self.imp_uid,
            "merchantUid": self.merchant_uid,
            "paidAmount": self.paid_amount,
            "payMethod": self.pay_method,
            "pg": self.pg,
            "status": "paid" if self.success else "failed",
        }


class PaymentWidget(ABC):
    """Opens the gateway's hosted checkout and blocks until it reports back."""

    @abstractmethod
    def request_pay(self, request: PaymentRequest) -> PaymentResult:
        raise NotImplementedError
