"""
Data access layer

One Container per collection. Every point read or write is scoped by the
collection's partition key value (category, email or userId); callers that
only know an id resolve the partition first with find_by_id, which scans.
Store errors are not caught here.
"""

from typing import Any, Dict, List, Optional

from fastapi import Depends
from pymongo import ASCENDING, DESCENDING
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import ORDERS, PRODUCTS, USERS, get_db, serialize_doc


class DuplicateRecordError(Exception):
    """A unique index rejected the write.

    ``field`` names the clashing key ("_id", "sku", "email") when it is known.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class Container:
    def __init__(self, collection: Collection, partition_key: str):
        self.collection = collection
        self.partition_key = partition_key

    def _cursor(self, filt: Dict[str, Any], order_by: Optional[str], descending: bool):
        cursor = self.collection.find(filt)
        if order_by:
            cursor = cursor.sort(order_by, DESCENDING if descending else ASCENDING)
        return cursor

    def list_all(self, order_by: Optional[str] = None, descending: bool = True) -> List[Dict[str, Any]]:
        return [serialize_doc(d) for d in self._cursor({}, order_by, descending)]

    def get_by_id(self, item_id: str, partition_value: str) -> Optional[Dict[str, Any]]:
        doc = self.collection.find_one({"_id": item_id, self.partition_key: partition_value})
        return serialize_doc(doc)

    def find_by_id(self, item_id: str) -> Optional[Dict[str, Any]]:
        # cross-partition scan
        doc = self.collection.find_one({"_id": item_id})
        return serialize_doc(doc)

    def get_by_unique_field(self, field: str, value: Any) -> Optional[Dict[str, Any]]:
        doc = self.collection.find_one({field: value})
        return serialize_doc(doc)

    def get_by_partition(self, value: Any, order_by: Optional[str] = None, descending: bool = True) -> List[Dict[str, Any]]:
        return [serialize_doc(d) for d in self._cursor({self.partition_key: value}, order_by, descending)]

    def create(self, record: Dict[str, Any]) -> Dict[str, Any]:
        doc = dict(record)
        doc["_id"] = doc.pop("id")
        try:
            self.collection.insert_one(doc)
        except DuplicateKeyError as e:
            raise DuplicateRecordError(str(e), self._clashing_field(e, doc["_id"])) from e
        return serialize_doc(doc)

    def replace(self, item_id: str, partition_value: str, record: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        doc = {k: v for k, v in record.items() if k not in ("id", "_id")}
        try:
            res = self.collection.replace_one({"_id": item_id, self.partition_key: partition_value}, doc)
        except DuplicateKeyError as e:
            raise DuplicateRecordError(str(e), _key_pattern_field(e)) from e
        if res.matched_count == 0:
            return None
        doc["_id"] = item_id
        return serialize_doc(doc)

    def _clashing_field(self, error: DuplicateKeyError, item_id: Any) -> Optional[str]:
        field = _key_pattern_field(error)
        if field is None and self.collection.find_one({"_id": item_id}, {"_id": 1}) is not None:
            # servers that omit keyPattern: an existing _id is the clash
            field = "_id"
        return field

    def delete(self, item_id: str, partition_value: str) -> bool:
        res = self.collection.delete_one({"_id": item_id, self.partition_key: partition_value})
        return res.deleted_count > 0


def _key_pattern_field(error: DuplicateKeyError) -> Optional[str]:
    key_pattern = (error.details or {}).get("keyPattern") or {}
    return next(iter(key_pattern), None)


def get_products(db: Database = Depends(get_db)) -> Container:
    return Container(db[PRODUCTS], "category")


def get_users(db: Database = Depends(get_db)) -> Container:
    return Container(db[USERS], "email")


def get_orders(db: Database = Depends(get_db)) -> Container:
    return Container(db[ORDERS], "userId")
