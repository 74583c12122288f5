import json
import sqlite3
import sys

DB = sys.argv[1] if len(sys.argv) > 1 else "dev.db"
COLLECTION = sys.argv[2] if len(sys.argv) > 2 else None
USER = sys.argv[3] if len(sys.argv) > 3 else None

conn = sqlite3.connect(DB)
cur = conn.cursor()

print("=== Collections ===")
cur.execute("SELECT collection, COUNT(*) FROM documents GROUP BY collection ORDER BY collection")
for r in cur.fetchall():
    print(r)

if COLLECTION:
    print(f"\n=== {COLLECTION} ===")
    cur.execute(
        "SELECT id, data FROM documents WHERE collection=? ORDER BY written_at DESC LIMIT 50",
        (COLLECTION,),
    )
    for doc_id, data in cur.fetchall():
        print({"id": doc_id, **json.loads(data)})

if USER:
    print(f"\n=== Cart lines for user={USER} ===")
    cur.execute(
        "SELECT id, data FROM documents WHERE collection='checkouts' "
        "AND json_extract(data, '$.user_id')=? ORDER BY json_extract(data, '$.updatedAt') DESC",
        (USER,),
    )
    for doc_id, data in cur.fetchall():
        d = json.loads(data)
        print(doc_id, d.get("item_id"), d.get("quantity"), d.get("last_step"), d.get("is_done"), d.get("order_id"))

conn.close()
