#!/usr/bin/env python3
"""
Seed roles, categories and items into the document store.

The seed file is JSON with optional "roles", "categories" and "items" lists;
every entry may carry its own "id" (kept, so re-running is idempotent).
Without --file a small built-in sample catalogue is used.

Usage:
    python scripts/seed_catalog.py --file catalogue.json --admin-user <uid>
"""
import argparse
import json
import os
import sys
from datetime import datetime, timedelta, timezone

# allow running from repo/scripts
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from storefront.db import init_db
from storefront.repositories.catalog_repo import CATEGORIES, ITEMS
from storefront.repositories.document_store import DocumentStore
from storefront.repositories.user_repo import ROLES, USER_ROLES

SAMPLE = {
    "roles": [
        {"id": "admin", "name": "Administrator", "slug": "admin"},
        {"id": "customer", "name": "Customer", "slug": "customer"},
    ],
    "categories": [
        {"id": "electronics", "name": "Electronics", "description": "Gadgets and devices", "parent_category_id": None},
        {"id": "phones", "name": "Phones", "description": "Smartphones", "parent_category_id": "electronics"},
        {"id": "laptops", "name": "Laptops", "description": "Portable computers", "parent_category_id": "electronics"},
        {"id": "home", "name": "Home", "description": "Home and kitchen", "parent_category_id": None},
    ],
    "items": [
        {"id": "iphone-15", "name": "iPhone 15", "price": 799.0, "category_id": "phones"},
        {"id": "iphone-15-pro", "name": "iPhone 15 Pro", "price": 999.0, "category_id": "phones"},
        {"id": "pixel-8", "name": "Pixel 8", "price": 699.0, "category_id": "phones"},
        {"id": "macbook-air", "name": "MacBook Air", "price": 1099.0, "category_id": "laptops"},
        {"id": "thinkpad-x1", "name": "ThinkPad X1", "price": 1399.0, "category_id": "laptops"},
        {"id": "kettle", "name": "Electric Kettle", "price": 39.5, "category_id": "home"},
    ],
}


def _timestamp(offset: int) -> str:
    base = datetime.now(timezone.utc) - timedelta(minutes=offset)
    return base.isoformat(timespec="microseconds")


def seed(store: DocumentStore, data: dict, admin_user: str = None):
    for role in data.get("roles", []):
        store.set(ROLES, role.get("id") or role["slug"], role)

    for i, cat in enumerate(data.get("categories", [])):
        record = {
            "name": cat["name"],
            "description": cat.get("description", ""),
            "image": cat.get("image", ""),
            "parent_category_id": cat.get("parent_category_id"),
            "createdAt": cat.get("createdAt") or _timestamp(i),
        }
        if cat.get("id"):
            store.set(CATEGORIES, cat["id"], record)
        else:
            store.add(CATEGORIES, record)

    count = 0
    for i, it in enumerate(data.get("items", [])):
        price = float(it.get("price", 0))
        if price <= 0:
            print(f"Skipping item without a positive price: {it.get('name')}")
            continue
        images = it.get("images") or []
        record = {
            "name": it["name"],
            "description": it.get("description", ""),
            "price": price,
            "bannerImage": it.get("bannerImage") or (images[0] if images else ""),
            "images": images,
            "category_id": it["category_id"],
            "createdAt": it.get("createdAt") or _timestamp(i),
        }
        if it.get("id"):
            store.set(ITEMS, it["id"], record)
        else:
            store.add(ITEMS, record)
        count += 1

    if admin_user:
        store.set(USER_ROLES, f"{admin_user}-admin", {"user_id": admin_user, "role_id": "admin"})
    print(f"Seeded {len(data.get('categories', []))} categories and {count} items.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the storefront catalogue.")
    parser.add_argument("--file", help="JSON seed file (defaults to the built-in sample)")
    parser.add_argument("--admin-user", help="grant the admin role to this user id")
    parser.add_argument("--reset", action="store_true", help="drop and recreate tables first")
    args = parser.parse_args()

    init_db(reset=args.reset)
    data = SAMPLE
    if args.file:
        with open(args.file, encoding="utf-8") as fh:
            data = json.load(fh)
    seed(DocumentStore(), data, admin_user=args.admin_user)
