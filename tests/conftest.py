"""Shared fixtures: in-memory repositories wired into the app via dependency overrides."""

import sys
from pathlib import Path

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from auth_helper import TokenService, get_token_service, hash_password  # noqa: E402
from main import app  # noqa: E402
from repositories import (  # noqa: E402
    get_category_repository,
    get_order_repository,
    get_product_repository,
    get_user_repository,
)


# =============================================================================
# In-memory repositories
# =============================================================================


def _matches(doc, filter_dict):
    return all(doc.get(k) == v for k, v in filter_dict.items())


class FakeUserRepository:
    def __init__(self):
        self.docs = {}
        self.updates = []

    def find_one(self, filter_dict):
        for doc in self.docs.values():
            if _matches(doc, filter_dict):
                return dict(doc)
        return None

    def find_by_id(self, user_id):
        doc = self.docs.get(user_id)
        return dict(doc) if doc else None

    def update_by_id(self, user_id, fields):
        self.updates.append((user_id, fields))
        if user_id not in self.docs:
            return None
        self.docs[user_id].update(fields)
        return dict(self.docs[user_id])

    def insert(self, data):
        doc = {**data, "_id": str(ObjectId())}
        self.docs[doc["_id"]] = doc
        return dict(doc)


class FakeOrderRepository:
    def __init__(self):
        self.docs = []
        self.queries = []

    def find_resolved(self, filter_dict=None, newest_first=False):
        self.queries.append((dict(filter_dict or {}), newest_first))
        out = [dict(d) for d in self.docs if _matches({**d, "buyer": d["buyer"]["_id"]}, filter_dict or {})]
        if newest_first:
            out.sort(key=lambda d: d["created_at"], reverse=True)
        return out

    def update_by_id(self, order_id, fields):
        for doc in self.docs:
            if doc["_id"] == order_id:
                doc.update(fields)
                return dict(doc)
        return None

    def insert(self, data):
        doc = {**data, "_id": str(ObjectId())}
        self.docs.append(doc)
        return dict(doc)


class FakeCategoryRepository:
    def __init__(self):
        self.docs = []

    def find_all(self):
        return [dict(d) for d in self.docs]

    def find_one(self, filter_dict):
        for doc in self.docs:
            if _matches(doc, filter_dict):
                return dict(doc)
        return None

    def insert(self, data):
        doc = {**data, "_id": str(ObjectId())}
        self.docs.append(doc)
        return dict(doc)


class FakeProductRepository:
    def __init__(self):
        self.docs = []

    def insert(self, data):
        doc = {**data, "_id": str(ObjectId())}
        self.docs.append(doc)
        return {k: v for k, v in doc.items() if k != "photo"}

    def find_recent(self, limit=12):
        return [{k: v for k, v in d.items() if k != "photo"} for d in reversed(self.docs)][:limit]

    def find_photo(self, product_id):
        for doc in self.docs:
            if doc["_id"] == product_id and doc.get("photo"):
                return doc["photo"]["data"], doc["photo"]["content_type"]
        return None


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def users():
    return FakeUserRepository()


@pytest.fixture
def orders():
    return FakeOrderRepository()


@pytest.fixture
def categories():
    return FakeCategoryRepository()


@pytest.fixture
def products():
    return FakeProductRepository()


@pytest.fixture
def tokens():
    return TokenService(secret="test-secret", expires_days=7)


@pytest.fixture
def client(users, orders, categories, products, tokens):
    app.dependency_overrides[get_user_repository] = lambda: users
    app.dependency_overrides[get_order_repository] = lambda: orders
    app.dependency_overrides[get_category_repository] = lambda: categories
    app.dependency_overrides[get_product_repository] = lambda: products
    app.dependency_overrides[get_token_service] = lambda: tokens
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(users):
    def _make(email="john@example.com", password="password123", role=0, **extra):
        data = {
            "name": "John Doe",
            "email": email,
            "phone": "12344000",
            "address": "123 Street",
            "answer": "Football",
            "role": role,
            "password": hash_password(password),
        }
        data.update(extra)
        return users.insert(data)

    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@example.com", name="Admin", role=1)


@pytest.fixture
def user_headers(user, tokens):
    return {"Authorization": tokens.sign(user["_id"])}


@pytest.fixture
def admin_headers(admin, tokens):
    return {"Authorization": f"Bearer {tokens.sign(admin['_id'])}"}
