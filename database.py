"""
Database helpers

Holds the MongoDB connection for the three storefront collections and the
small helpers every route module shares.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from bson import ObjectId
from fastapi import HTTPException
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

from config import DATABASE_NAME, DATABASE_URL

logger = logging.getLogger(__name__)

PRODUCTS = "products"
USERS = "users"
ORDERS = "orders"

client: Optional[MongoClient] = None
db: Optional[Database] = None

if DATABASE_URL:
    client = MongoClient(DATABASE_URL)
    db = client[DATABASE_NAME]


def get_db() -> Database:
    if db is None:
        raise HTTPException(status_code=500, detail="Database not available")
    return db


def utcnow() -> datetime:
    # BSON dates keep millisecond precision
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def new_id() -> str:
    return str(ObjectId())


def ensure_indexes(database: Database) -> None:
    """Create the partition and uniqueness indexes the storefront relies on."""
    products = database[PRODUCTS]
    products.create_index([("sku", ASCENDING)], unique=True, name="sku_unique")
    products.create_index([("category", ASCENDING), ("createdAt", DESCENDING)], name="category_created")

    users = database[USERS]
    users.create_index([("email", ASCENDING)], unique=True, name="email_unique")

    orders = database[ORDERS]
    orders.create_index([("userId", ASCENDING), ("createdAt", DESCENDING)], name="user_created")
    orders.create_index([("createdAt", DESCENDING)], name="created")
    logger.info("Indexes ensured on database '%s'", database.name)


def serialize_doc(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not doc:
        return doc
    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = str(doc.pop("_id"))
    for k, v in list(doc.items()):
        if isinstance(v, datetime) and v.tzinfo is None:
            # pymongo hands back naive UTC datetimes
            doc[k] = v.replace(tzinfo=timezone.utc)
        elif isinstance(v, ObjectId):
            doc[k] = str(v)
    return doc
