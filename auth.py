import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import JSONResponse
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel
from pymongo.errors import PyMongoError

from config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, JWT_SECRET, PASSWORD_HASH_ROUNDS
from messages import negotiate_locale, translate
from store import Container, get_users

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=PASSWORD_HASH_ROUNDS)

router = APIRouter(prefix="/api/users", tags=["auth"])


# Utilities

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # stored value is not a recognizable hash
        return False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")


def sanitize_user(user: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Return a copy of a user record without its password hash."""
    if user is None:
        return None
    user = dict(user)
    user.pop("password", None)
    return user


def token_claims(user: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": user["id"],
        "email": user["email"],
        "name": user.get("name"),
        "user_type": user.get("user_type"),
    }


# Dependency to get current user

def get_current_user(
    authorization: Optional[str] = Header(default=None),
    users: Container = Depends(get_users),
) -> Dict[str, Any]:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Not authenticated")
    token = authorization.split(" ", 1)[1]
    payload = decode_token(token)
    user_id, email = payload.get("id"), payload.get("email")
    if not user_id or not email:
        raise HTTPException(status_code=401, detail="Invalid token")
    user = users.get_by_id(user_id, email)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return sanitize_user(user)


# Routes

class LoginInput(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


def _login_error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@router.post("/login")
def login(
    payload: LoginInput,
    accept_language: Optional[str] = Header(default=None),
    users: Container = Depends(get_users),
):
    locale = negotiate_locale(accept_language)
    if not payload.email or not payload.password:
        return _login_error(400, translate("login.missing_fields", locale))

    try:
        user = users.get_by_unique_field("email", payload.email)
    except PyMongoError as e:
        logger.error("Login lookup failed: %s", e)
        return _login_error(500, translate("login.failed", locale))

    # Same answer for unknown email and wrong password
    if not user or not verify_password(payload.password, user.get("password", "")):
        logger.info("Failed login attempt for %s", payload.email)
        return _login_error(401, translate("login.invalid_credentials", locale))

    token = create_access_token(token_claims(user))
    return {
        "success": True,
        "message": translate("login.welcome", locale, name=user.get("name", "")),
        "user": sanitize_user(user),
        "token": token,
    }


@router.get("/me")
def me(current_user: dict = Depends(get_current_user)):
    return current_user
