"""Sign-up checks and the logged-in user state kept in local storage under "user" and "token"."""

import logging
import re
from typing import Any, Dict, Mapping, Optional

from api_client import ApiError, StorefrontApi, StorefrontError
from browser import StorageEvent, Window
from messages import translate

logger = logging.getLogger(__name__)

USER_KEY = "user"
TOKEN_KEY = "token"
USER_UPDATED = "user-updated"

PASSWORD_MIN_LENGTH = 8
SIGNUP_EMAIL_RE = re.compile(r"\S+@\S+\.\S+")


class SignupFormError(StorefrontError):
    """The sign-up form was refused before anything was sent; errors maps field to message."""

    def __init__(self, errors: Dict[str, str], message: str):
        self.errors = errors
        super().__init__(message)


def validate_signup(form: Mapping[str, Any], locale: Optional[str] = None) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    name = str(form.get("name") or "").strip()
    email = str(form.get("email") or "").strip()
    password = form.get("password") or ""
    confirm = form.get("passwordConfirm") or ""

    if not name:
        errors["name"] = translate("signup.name_required", locale)

    if not email:
        errors["email"] = translate("signup.email_required", locale)
    elif not SIGNUP_EMAIL_RE.search(email):
        errors["email"] = translate("signup.email_invalid", locale)

    if not password:
        errors["password"] = translate("signup.password_required", locale)
    elif len(password) < PASSWORD_MIN_LENGTH:
        errors["password"] = translate("signup.password_too_short", locale, min_length=PASSWORD_MIN_LENGTH)

    if not confirm:
        errors["passwordConfirm"] = translate("signup.password_confirm_required", locale)
    elif password != confirm:
        errors["passwordConfirm"] = translate("signup.password_mismatch", locale)

    # one slot for both consents; privacy is reported when both are missing
    if not form.get("termsOfService"):
        errors["agreements"] = translate("signup.terms_required", locale)
    if not form.get("privacyPolicy"):
        errors["agreements"] = translate("signup.privacy_required", locale)

    return errors


class SessionStore:
    def __init__(self, window: Window):
        self.window = window

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        user = self.window.local_storage.get_json(USER_KEY)
        return user if isinstance(user, dict) else None

    @property
    def token(self) -> Optional[str]:
        return self.window.local_storage.get_item(TOKEN_KEY)

    @property
    def is_logged_in(self) -> bool:
        return self.user is not None and self.token is not None

    @property
    def is_admin(self) -> bool:
        user = self.user
        return bool(user) and user.get("user_type") == "admin"

    def register(self, api: StorefrontApi, form: Mapping[str, Any], locale: Optional[str] = None) -> Dict[str, Any]:
        """Check the sign-up form, then create a customer account. Does not log in."""
        errors = validate_signup(form, locale)
        if errors:
            raise SignupFormError(errors, translate("signup.invalid", locale, fields=", ".join(errors)))

        user = {
            "name": form["name"].strip(),
            "email": form["email"].strip(),
            "password": form["password"],
            "user_type": "customer",
        }
        if form.get("address"):
            user["address"] = form["address"]
        created = api.users.register(user)
        logger.info("Registered %s", created.get("email"))
        return created

    def login(self, api: StorefrontApi, email: str, password: str) -> Dict[str, Any]:
        """Log in through the API; returns the response ({success, message, user, token})."""
        response = api.users.login(email, password)
        self.window.local_storage.set_item(TOKEN_KEY, response["token"])
        self.window.local_storage.set_json(USER_KEY, response["user"])
        api.token = response["token"]
        logger.info("Logged in as %s", response["user"].get("email"))
        self.window.events.dispatch(USER_UPDATED, self)
        return response

    def current_user(self, api: StorefrontApi) -> Optional[Dict[str, Any]]:
        """Re-read the user behind the stored token; drops the session if the token is rejected."""
        if self.token is None:
            return None
        api.token = self.token
        try:
            user = api.users.me()
        except ApiError as e:
            if e.status_code != 401:
                raise
            logger.info("Stored token rejected, logging out")
            self.logout(api)
            return None
        self.window.local_storage.set_json(USER_KEY, user)
        self.window.events.dispatch(USER_UPDATED, self)
        return user

    def logout(self, api: Optional[StorefrontApi] = None) -> None:
        self.window.local_storage.remove_item(TOKEN_KEY)
        self.window.local_storage.remove_item(USER_KEY)
        if api is not None:
            api.token = None
        self.window.events.dispatch(USER_UPDATED, self)


class AccountBadge:
    """Header login indicator, refreshed from both notification channels."""

    def __init__(self, window: Window):
        self.window = window
        self.session = SessionStore(window)
        self.user: Optional[Dict[str, Any]] = None
        self.refresh()
        window.events.add_listener(USER_UPDATED, self._on_user_updated)
        window.events.add_listener("storage", self._on_storage)

    @property
    def label(self) -> Optional[str]:
        return self.user.get("name") if self.user else None

    def refresh(self) -> None:
        self.user = self.session.user

    def _on_user_updated(self, source: Any) -> None:
        self.refresh()

    def _on_storage(self, event: StorageEvent) -> None:
        if event.key in (USER_KEY, TOKEN_KEY, None):
            self.refresh()
