import os
import tempfile

# must be in place before storefront.config builds its settings
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(
    tempfile.gettempdir(), f"storefront_test_{os.getpid()}.db"
)
os.environ["PAYMENT_MOCK_DELAY_MS"] = "0"

import pytest
from fastapi.testclient import TestClient

from storefront.db import init_db
from storefront.main import app
from storefront.repositories.catalog_repo import CATEGORIES, ITEMS
from storefront.repositories.document_store import DocumentStore
from storefront.repositories.user_repo import ROLES, USER_ROLES


@pytest.fixture(autouse=True)
def fresh_db():
    init_db(reset=True)
    yield


@pytest.fixture
def store():
    return DocumentStore()


@pytest.fixture
def client():
    return TestClient(app)


def make_item(store, item_id, name, price, category_id="cat-a", created="2024-01-01T00:00:00.000000+00:00"):
    store.set(
        ITEMS,
        item_id,
        {
            "name": name,
            "description": f"{name} description",
            "price": price,
            "bannerImage": f"https://img.example/{item_id}.png",
            "images": [],
            "category_id": category_id,
            "createdAt": created,
        },
    )


def make_category(store, category_id, name, parent=None):
    store.set(
        CATEGORIES,
        category_id,
        {
            "name": name,
            "description": "",
            "image": "",
            "parent_category_id": parent,
            "createdAt": "2024-01-01T00:00:00.000000+00:00",
        },
    )


def grant_role(store, user_id, slug):
    store.set(ROLES, slug, {"name": slug.title(), "slug": slug})
    store.set(USER_ROLES, f"{user_id}-{slug}", {"user_id": user_id, "role_id": slug})
