"""MongoDB repositories.

Handlers never touch pymongo directly: they receive one of these classes
through FastAPI's dependency injection and work with plain dicts whose
ObjectIds and datetimes are already rendered as strings.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from bson import ObjectId
from fastapi import Depends
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database

from database import get_db
from schemas import Order


# ------------- Helpers -------------

def to_oid(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def _to_plain(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    if isinstance(value, list):
        return [_to_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_plain(v) for k, v in value.items()}
    return value


def to_str_id(doc: Optional[dict]) -> Optional[dict]:
    if not doc:
        return doc
    return _to_plain(doc)


def _with_timestamps(doc: Dict[str, Any]) -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    out = {**doc}
    out.setdefault("created_at", now)
    out["updated_at"] = now
    return out


def _oids(values: Iterable[Any]) -> List[ObjectId]:
    return [oid for oid in (to_oid(v) for v in values) if oid is not None]


# ------------- Users -------------

class UserRepository:
    def __init__(self, database: Database):
        self.collection = database["users"]

    def find_one(self, filter_dict: Dict[str, Any]) -> Optional[dict]:
        return to_str_id(self.collection.find_one(filter_dict))

    def find_by_id(self, user_id: str) -> Optional[dict]:
        oid = to_oid(user_id)
        if oid is None:
            return None
        return to_str_id(self.collection.find_one({"_id": oid}))

    def update_by_id(self, user_id: str, fields: Dict[str, Any]) -> Optional[dict]:
        oid = to_oid(user_id)
        if oid is None:
            return None
        data = {**fields, "updated_at": datetime.now(timezone.utc)}
        doc = self.collection.find_one_and_update(
            {"_id": oid}, {"$set": data}, return_document=ReturnDocument.AFTER
        )
        return to_str_id(doc)

    def insert(self, data: Dict[str, Any]) -> dict:
        doc = _with_timestamps(data)
        doc["_id"] = self.collection.insert_one(doc).inserted_id
        return to_str_id(doc)


# ------------- Orders -------------

class OrderRepository:
    """Orders come back with buyer and products resolved for display."""

    def __init__(self, database: Database):
        self.collection = database["orders"]
        self.users = database["users"]
        self.products = database["products"]

    def find_resolved(self, filter_dict: Optional[Dict[str, Any]] = None, newest_first: bool = False) -> List[dict]:
        query = dict(filter_dict or {})
        if "buyer" in query:
            query["buyer"] = to_oid(query["buyer"])
            if query["buyer"] is None:
                return []
        cursor = self.collection.find(query)
        if newest_first:
            cursor = cursor.sort("created_at", DESCENDING)
        orders = list(cursor)

        buyer_ids = _oids({o.get("buyer") for o in orders})
        product_ids = _oids({p for o in orders for p in o.get("products", [])})
        buyers = {
            d["_id"]: d
            for d in self.users.find({"_id": {"$in": buyer_ids}}, {"name": 1})
        } if buyer_ids else {}
        products = {
            d["_id"]: d
            for d in self.products.find({"_id": {"$in": product_ids}}, {"photo": 0})
        } if product_ids else {}

        resolved = []
        for order in orders:
            out = {**order}
            out["buyer"] = buyers.get(order.get("buyer"), order.get("buyer"))
            out["products"] = [products[p] for p in order.get("products", []) if p in products]
            resolved.append(to_str_id(out))
        return resolved

    def update_by_id(self, order_id: str, fields: Dict[str, Any]) -> Optional[dict]:
        oid = to_oid(order_id)
        if oid is None:
            return None
        doc = self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": {**fields, "updated_at": datetime.now(timezone.utc)}},
            return_document=ReturnDocument.AFTER,
        )
        return to_str_id(doc)

    def insert(self, data: Dict[str, Any]) -> dict:
        order = Order(**data).model_dump(mode="json")
        if "created_at" in data:
            order["created_at"] = data["created_at"]
        doc = _with_timestamps(order)
        doc["buyer"] = to_oid(doc.get("buyer"))
        doc["products"] = _oids(doc.get("products", []))
        doc["_id"] = self.collection.insert_one(doc).inserted_id
        return to_str_id(doc)


# ------------- Categories -------------

class CategoryRepository:
    def __init__(self, database: Database):
        self.collection = database["categories"]

    def find_all(self) -> List[dict]:
        return [to_str_id(d) for d in self.collection.find({})]

    def find_one(self, filter_dict: Dict[str, Any]) -> Optional[dict]:
        return to_str_id(self.collection.find_one(filter_dict))

    def insert(self, data: Dict[str, Any]) -> dict:
        doc = _with_timestamps(data)
        doc["_id"] = self.collection.insert_one(doc).inserted_id
        return to_str_id(doc)


# ------------- Products -------------

class ProductRepository:
    def __init__(self, database: Database):
        self.collection = database["products"]
        self.categories = database["categories"]

    def insert(self, data: Dict[str, Any]) -> dict:
        doc = _with_timestamps(data)
        doc["category"] = to_oid(doc.get("category")) or doc.get("category")
        doc["_id"] = self.collection.insert_one(doc).inserted_id
        doc.pop("photo", None)
        return to_str_id(doc)

    def find_recent(self, limit: int = 12) -> List[dict]:
        docs = list(self.collection.find({}, {"photo": 0}).sort("created_at", DESCENDING).limit(limit))
        category_ids = _oids({d.get("category") for d in docs})
        categories = {
            c["_id"]: c for c in self.categories.find({"_id": {"$in": category_ids}})
        } if category_ids else {}
        out = []
        for d in docs:
            d["category"] = categories.get(d.get("category"), d.get("category"))
            out.append(to_str_id(d))
        return out

    def find_photo(self, product_id: str) -> Optional[Tuple[bytes, str]]:
        oid = to_oid(product_id)
        if oid is None:
            return None
        doc = self.collection.find_one({"_id": oid}, {"photo": 1})
        photo = (doc or {}).get("photo") or {}
        if not photo.get("data"):
            return None
        return bytes(photo["data"]), photo.get("content_type") or "application/octet-stream"


# ------------- Dependencies -------------

def get_user_repository(database: Database = Depends(get_db)) -> UserRepository:
    return UserRepository(database)


def get_order_repository(database: Database = Depends(get_db)) -> OrderRepository:
    return OrderRepository(database)


def get_category_repository(database: Database = Depends(get_db)) -> CategoryRepository:
    return CategoryRepository(database)


def get_product_repository(database: Database = Depends(get_db)) -> ProductRepository:
    return ProductRepository(database)
