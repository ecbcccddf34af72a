"""Seed a running franchise service with demo data.

    python -m franchise_service.init_data

The admin account is written straight to the database (there is no public
way to create the first admin); everything else goes through the HTTP API.
"""
import asyncio
import os

import httpx

from . import models, users
from .database import Base, SessionLocal, engine
from .schemas import AdminUserCreate

API_URL = os.getenv("API_URL", "http://localhost:8000")
STRONG_PASS = "Admin@123"
ADMIN_EMAIL = "admin@example.com"


def ensure_admin():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if not db.query(models.User).filter(models.User.email == ADMIN_EMAIL).first():
            users.create_user(
                db,
                AdminUserCreate(email=ADMIN_EMAIL, password=STRONG_PASS, name="Admin"),
                role=models.Role.ADMIN,
            )
    finally:
        db.close()


async def seed_data():
    print("Seeding demo data...")
    ensure_admin()

    async with httpx.AsyncClient(base_url=API_URL, timeout=30.0) as client:
        res = await client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": STRONG_PASS})
        res.raise_for_status()
        headers = {"Authorization": f"Bearer {res.json()['access_token']}"}

        # 1. Franchises
        franchises = [
            {"name": "Downtown Outlet", "email": "downtown@example.com", "contactNumber": "5550101",
             "address": {"street": "1 Main St", "city": "Springfield", "state": "IL",
                         "pincode": "62701", "country": "US"}},
            {"name": "Airport Outlet", "email": "airport@example.com", "contactNumber": "5550102"},
        ]
        franchise_ids = []
        for f in franchises:
            res = await client.post("/api/franchises", json=f, headers=headers)
            if res.status_code == 201:
                franchise_ids.append(res.json()["franchise"]["id"])
                print(f"   created franchise {f['name']}")
            else:
                print(f"   skipped franchise {f['name']}: {res.json().get('message')}")

        # 2. Order managers, one per franchise
        for i, franchise_id in enumerate(franchise_ids, start=1):
            res = await client.post("/api/users", headers=headers, json={
                "email": f"manager{i}@example.com", "password": STRONG_PASS,
                "name": f"Manager {i}", "role": "orderManager",
            })
            if res.status_code != 201:
                print(f"   skipped manager{i}: {res.json().get('message')}")
                continue
            manager_id = res.json()["user"]["id"]
            await client.post("/api/franchises/assign-manager", headers=headers, json={
                "franchiseId": franchise_id, "managerId": manager_id,
            })
            print(f"   manager{i}@example.com -> {franchise_id}")

        # 3. Catalogue
        res = await client.post("/api/categories", json={"name": "Beverages"}, headers=headers)
        if res.status_code == 201:
            category_id = res.json()["category"]["id"]
            for name, price in (("Cold Brew", 4.5), ("Green Tea", 3.0), ("Lemonade", 2.5)):
                await client.post("/api/products", headers=headers, json={
                    "name": name, "category": category_id, "price": price, "warehouseStock": 100,
                })
                print(f"   product {name}")

    print("Done. Admin login: %s / %s" % (ADMIN_EMAIL, STRONG_PASS))


if __name__ == "__main__":
    asyncio.run(seed_data())
