"""User-facing messages for the login, sign-up and checkout flows, in Korean and English."""

from typing import Optional

from config import DEFAULT_LOCALE

MESSAGES = {
    "ko": {
        "login.missing_fields": "이메일과 비밀번호를 입력해주세요",
        "login.invalid_credentials": "이메일 또는 비밀번호가 올바르지 않습니다. 다시 시도해주세요.",
        "login.welcome": "{name}님, 환영합니다!",
        "login.failed": "로그인 처리 중 오류가 발생했습니다. 다시 시도해주세요.",
        "checkout.empty_cart": "장바구니가 비어 있습니다.",
        "checkout.order_name": "{name} 외 {count}건",
        "checkout.missing_fields": "배송 정보를 모두 입력해주세요: {fields}",
        "checkout.payment_failed": "결제에 실패했습니다: {reason}",
        "checkout.order_not_saved": "결제는 완료되었지만 주문 저장에 실패했습니다. 고객센터에 문의해주세요. (결제번호: {reference})",
        "signup.name_required": "이름을 입력해주세요",
        "signup.email_required": "이메일을 입력해주세요",
        "signup.email_invalid": "올바른 이메일 형식이 아닙니다",
        "signup.password_required": "비밀번호를 입력해주세요",
        "signup.password_too_short": "비밀번호는 최소 {min_length}자 이상이어야 합니다",
        "signup.password_confirm_required": "비밀번호 확인을 입력해주세요",
        "signup.password_mismatch": "비밀번호가 일치하지 않습니다",
        "signup.terms_required": "이용 약관에 동의해주세요",
        "signup.privacy_required": "개인정보 수집 및 이용에 동의해주세요",
        "signup.invalid": "회원가입 정보를 확인해주세요: {fields}",
    },
    "en": {
        "login.missing_fields": "Please enter your email and password",
        "login.invalid_credentials": "The email or password is incorrect. Please try again.",
        "login.welcome": "Welcome, {name}!",
        "login.failed": "Something went wrong while logging in. Please try again.",
        "checkout.empty_cart": "Your cart is empty.",
        "checkout.order_name": "{name} and {count} more",
        "checkout.missing_fields": "Please fill in all shipping fields: {fields}",
        "checkout.payment_failed": "Payment failed: {reason}",
        "checkout.order_not_saved": "Your payment went through but we could not save your order. Please contact support. (payment reference: {reference})",
        "signup.name_required": "Please enter your name",
        "signup.email_required": "Please enter your email",
        "signup.email_invalid": "The email format is not valid",
        "signup.password_required": "Please enter a password",
        "signup.password_too_short": "The password must be at least {min_length} characters",
        "signup.password_confirm_required": "Please confirm your password",
        "signup.password_mismatch": "The passwords do not match",
        "signup.terms_required": "Please agree to the terms of service",
        "signup.privacy_required": "Please agree to the collection and use of personal information",
        "signup.invalid": "Please check your sign-up details: {fields}",
    },
}


def negotiate_locale(accept_language: Optional[str]) -> str:
    """Pick the first supported language from an Accept-Language header."""
    if not accept_language:
        return DEFAULT_LOCALE
    for part in accept_language.split(","):
        tag = part.split(";", 1)[0].strip().lower()
        lang = tag.split("-", 1)[0]
        if lang in MESSAGES:
            return lang
    return DEFAULT_LOCALE


def translate(key: str, locale: Optional[str] = None, **params) -> str:
    catalog = MESSAGES.get(locale or DEFAULT_LOCALE) or MESSAGES[DEFAULT_LOCALE]
    template = catalog.get(key) or MESSAGES["en"][key]
    return template.format(**params)
