import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from auth import hash_password, sanitize_user
from database import new_id, utcnow
from schemas import User
from store import Container, DuplicateRecordError, get_users
from validators import validate_user, validation_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])

EMAIL_CONFLICT = "Email already exists"
ID_CONFLICT = "User id already exists"


class UserIn(BaseModel):
    id: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    password: Optional[str] = None
    user_type: Optional[str] = None
    address: Optional[str] = None


class UserUpdate(BaseModel):
    email: Optional[str] = None  # partition hint only, never changes
    name: Optional[str] = None
    password: Optional[str] = None
    user_type: Optional[str] = None
    address: Optional[str] = None


def _find_user(users: Container, user_id: str, email: Optional[str]) -> Dict[str, Any]:
    user = users.get_by_id(user_id, email) if email else users.find_by_id(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def _save(users: Container, existing: Dict[str, Any], record: Dict[str, Any], new_password: Optional[str]):
    # validate with the plain password when one is being set
    candidate = dict(record, password=new_password or record.get("password"))
    result = validate_user(candidate)
    if not result.is_valid:
        raise validation_error(result.errors)
    if new_password:
        record["password"] = hash_password(new_password)

    record["updatedAt"] = utcnow()
    saved = users.replace(existing["id"], existing["email"], User(**record).model_dump())
    if saved is None:
        raise HTTPException(status_code=404, detail="User not found")
    return sanitize_user(saved)


@router.get("")
def list_users(users: Container = Depends(get_users)):
    return [sanitize_user(u) for u in users.list_all()]


@router.get("/email/{email}")
def get_user_by_email(email: str, users: Container = Depends(get_users)):
    user = users.get_by_unique_field("email", email)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return sanitize_user(user)


@router.get("/{user_id}")
def get_user(user_id: str, email: Optional[str] = Query(None), users: Container = Depends(get_users)):
    if not email:
        raise HTTPException(status_code=400, detail="Email is required in query parameter")
    user = users.get_by_id(user_id, email)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return sanitize_user(user)


@router.post("", status_code=201)
def create_user(data: UserIn, users: Container = Depends(get_users)):
    now = utcnow()
    record = {
        "id": data.id or new_id(),
        "email": data.email,
        "name": data.name,
        "password": data.password,
        "user_type": data.user_type or "customer",
        "address": data.address,
        "createdAt": now,
        "updatedAt": now,
    }
    result = validate_user(record)
    if not result.is_valid:
        raise validation_error(result.errors)

    if users.get_by_unique_field("email", record["email"]):
        logger.warning("Rejected duplicate email %s", record["email"])
        raise HTTPException(status_code=409, detail=EMAIL_CONFLICT)

    record["password"] = hash_password(record["password"])
    try:
        created = users.create(User(**record).model_dump())
    except DuplicateRecordError as e:
        raise HTTPException(status_code=409, detail=ID_CONFLICT if e.field == "_id" else EMAIL_CONFLICT)
    logger.info("Registered user %s", created["id"])
    return sanitize_user(created)


@router.put("/{user_id}")
def update_user(
    user_id: str,
    data: UserUpdate,
    email: Optional[str] = Query(None),
    users: Container = Depends(get_users),
):
    existing = _find_user(users, user_id, email or data.email)
    # fields sent in the body replace the stored ones, null included
    changes = data.model_dump(exclude_unset=True, exclude={"email", "password"})
    record = {**existing, **changes}
    return _save(users, existing, record, data.password)


@router.patch("/{user_id}")
def partial_update_user(
    user_id: str,
    data: UserUpdate,
    email: Optional[str] = Query(None),
    users: Container = Depends(get_users),
):
    existing = _find_user(users, user_id, email or data.email)
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    changes.pop("email", None)
    new_password = changes.pop("password", None)
    record = {**existing, **changes}
    return _save(users, existing, record, new_password)


@router.delete("/{user_id}")
def delete_user(user_id: str, email: Optional[str] = Query(None), users: Container = Depends(get_users)):
    if not email:
        raise HTTPException(status_code=400, detail="Email is required in query parameter")
    if not users.delete(user_id, email):
        raise HTTPException(status_code=404, detail="User not found")
    logger.info("Deleted user %s", user_id)
    return {"message": "User deleted successfully"}
