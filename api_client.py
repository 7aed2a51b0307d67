"""HTTP client the storefront uses to talk to the shopping mall API."""

import logging
from typing import Any, Dict, List, Optional

import requests

from config import API_BASE_URL

logger = logging.getLogger(__name__)


class StorefrontError(Exception):
    """Base class for errors surfaced to the storefront user."""


class ApiError(StorefrontError):
    def __init__(self, status_code: int, payload: Any):
        self.status_code = status_code
        self.payload = payload
        super().__init__(f"API request failed ({status_code}): {self.message}")

    @property
    def message(self) -> str:
        if isinstance(self.payload, dict):
            detail = self.payload.get("detail", self.payload.get("error"))
            if isinstance(detail, dict):
                return detail.get("error", str(detail))
            if detail is not None:
                return str(detail)
        return str(self.payload)


class StorefrontApi:
    """Thin wrapper over the REST surface.

    ``session`` is anything with a requests-style ``request(method, url,
    params=..., json=..., headers=...)``; a ``requests.Session`` by default.
    """

    def __init__(self, base_url: str = API_BASE_URL, session: Optional[Any] = None, token: Optional[str] = None):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.token = token
        self.products = ProductApi(self)
        self.users = UserApi(self)
        self.orders = OrderApi(self)

    def request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None, json: Any = None) -> Any:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        resp = self.session.request(method, f"{self.base_url}{path}", params=params, json=json, headers=headers)
        try:
            payload = resp.json()
        except ValueError:
            payload = resp.text
        if resp.status_code >= 300:
            logger.debug("%s %s -> %s", method, path, resp.status_code)
            raise ApiError(resp.status_code, payload)
        return payload


class ProductApi:
    def __init__(self, api: StorefrontApi):
        self.api = api

    def get_all(self) -> List[dict]:
        return self.api.request("GET", "/products")

    def get_by_category(self, category: str) -> List[dict]:
        return self.api.request("GET", f"/products/category/{category}")

    def get_by_sku(self, sku: str) -> dict:
        return self.api.request("GET", f"/products/sku/{sku}")

    def get_by_id(self, product_id: str, category: Optional[str] = None) -> dict:
        params = {"category": category} if category else None
        return self.api.request("GET", f"/products/{product_id}", params=params)

    def create(self, product: dict) -> dict:
        return self.api.request("POST", "/products", json=product)

    def update(self, product_id: str, product: dict, category: Optional[str] = None) -> dict:
        params = {"category": category} if category else None
        return self.api.request("PUT", f"/products/{product_id}", params=params, json=product)

    def patch(self, product_id: str, changes: dict, category: Optional[str] = None) -> dict:
        params = {"category": category} if category else None
        return self.api.request("PATCH", f"/products/{product_id}", params=params, json=changes)

    def delete(self, product_id: str, category: Optional[str] = None) -> dict:
        params = {"category": category} if category else None
        return self.api.request("DELETE", f"/products/{product_id}", params=params)


class UserApi:
    def __init__(self, api: StorefrontApi):
        self.api = api

    def get_all(self) -> List[dict]:
        return self.api.request("GET", "/users")

    def get_by_id(self, user_id: str, email: str) -> dict:
        return self.api.request("GET", f"/users/{user_id}", params={"email": email})

    def get_by_email(self, email: str) -> dict:
        return self.api.request("GET", f"/users/email/{email}")

    def me(self) -> dict:
        return self.api.request("GET", "/users/me")

    def register(self, user: dict) -> dict:
        return self.api.request("POST", "/users", json=user)

    def login(self, email: str, password: str) -> dict:
        return self.api.request("POST", "/users/login", json={"email": email, "password": password})

    def update(self, user_id: str, user: dict) -> dict:
        return self.api.request("PUT", f"/users/{user_id}", json=user)

    def delete(self, user_id: str, email: str) -> dict:
        return self.api.request("DELETE", f"/users/{user_id}", params={"email": email})


class OrderApi:
    def __init__(self, api: StorefrontApi):
        self.api = api

    def get_all(self) -> List[dict]:
        return self.api.request("GET", "/orders")

    def get_by_id(self, order_id: str, user_id: str) -> dict:
        return self.api.request("GET", f"/orders/{order_id}", params={"userId": user_id})

    def get_by_user_id(self, user_id: str) -> List[dict]:
        return self.api.request("GET", f"/orders/user/{user_id}")

    def create(self, order: dict) -> dict:
        return self.api.request("POST", "/orders", json=order)

    def update(self, order_id: str, order: dict) -> dict:
        return self.api.request("PUT", f"/orders/{order_id}", json=order)

    def update_status(self, order_id: str, user_id: str, status: str) -> dict:
        return self.api.request("PUT", f"/orders/{order_id}/status", json={"status": status, "userId": user_id})

    def delete(self, order_id: str, user_id: str) -> dict:
        return self.api.request("DELETE", f"/orders/{order_id}", params={"userId": user_id})
