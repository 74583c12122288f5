import argparse
import concurrent.futures
import os

import requests

BASE = os.environ.get("STOREFRONT_BASE", "http://127.0.0.1:8000")


def quantity_task(i, user, line_id):
    headers = {"X-User-Id": user}
    try:
        r = requests.patch(
            f"{BASE}/api/cart/items/{line_id}", json={"quantity": i + 1}, headers=headers, timeout=10
        )
        return (i + 1, r.status_code)
    except Exception as e:
        return (i + 1, f"ERR {e}")


def checkout_task(i, user):
    headers = {"X-User-Id": user}
    try:
        r = requests.post(f"{BASE}/api/cart/checkout", headers=headers, timeout=20)
        return (i, r.status_code, r.text)
    except Exception as e:
        return (i, "ERR", str(e))


def run_quantity_race(workers, user, item_id):
    """Concurrent quantity writes to one line: the store keeps whichever lands last."""
    headers = {"X-User-Id": user}
    r = requests.post(f"{BASE}/api/cart/items", json={"item_id": item_id, "quantity": 1}, headers=headers, timeout=10)
    r.raise_for_status()
    line_id = r.json()["line_item_id"]
    print(f"Running quantity race: workers={workers}, line={line_id}")
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as ex:
        futures = [ex.submit(quantity_task, i, user, line_id) for i in range(workers)]
        results = [f.result() for f in futures]
    print(results)
    cart = requests.get(f"{BASE}/api/cart", headers=headers, timeout=10).json()
    final = next((l["quantity"] for l in cart["items"] if l["id"] == line_id), None)
    print("Final quantity:", final)


def run_checkout_repeat(workers, user):
    """Re-issuing proceed-to-checkout is idempotent: every call should succeed."""
    print(f"Running repeated checkout: workers={workers}, user={user}")
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as ex:
        futures = [ex.submit(checkout_task, i, user) for i in range(workers)]
        for f in futures:
            print(f.result())


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Concurrency probe for cart lines.")
    sub = parser.add_subparsers(dest="mode", required=True)

    q = sub.add_parser("quantity")
    q.add_argument("--user", default="probe-user")
    q.add_argument("--item", default="iphone-15")
    q.add_argument("--workers", type=int, default=8)

    c = sub.add_parser("checkout")
    c.add_argument("--user", default="probe-user")
    c.add_argument("--workers", type=int, default=8)

    args = parser.parse_args()

    if args.mode == "quantity":
        run_quantity_race(args.workers, args.user, args.item)
    elif args.mode == "checkout":
        run_checkout_repeat(args.workers, args.user)
