from franchise_service import models

ADDRESS = {
    "street": "1 Main St",
    "city": "Springfield",
    "state": "IL",
    "pincode": "62701",
    "country": "US",
}


def test_create_franchise(client, admin, headers_for):
    res = client.post("/api/franchises", headers=headers_for(admin), json={
        "name": "Downtown",
        "email": "downtown@example.com",
        "contactNumber": "5550101",
        "address": ADDRESS,
    })

    assert res.status_code == 201
    body = res.json()
    assert body["success"] is True
    assert body["message"] == "Franchise created successfully"
    franchise = body["franchise"]
    assert franchise["isActive"] is True
    assert franchise["address"] == ADDRESS
    assert franchise["orderManager"] is None
    assert len(franchise["id"]) == 24


def test_create_franchise_duplicate_email(client, admin, headers_for, make_franchise):
    existing = make_franchise()

    res = client.post("/api/franchises", headers=headers_for(admin),
                      json={"name": "Copy", "email": existing.email})

    assert res.status_code == 400
    assert res.json()["message"] == "Franchise already exists with this email"


def test_create_franchise_incomplete_address(client, admin, headers_for):
    partial = {k: v for k, v in ADDRESS.items() if k != "pincode"}

    res = client.post("/api/franchises", headers=headers_for(admin),
                      json={"name": "Half", "email": "half@example.com", "address": partial})

    assert res.status_code == 400
    body = res.json()
    assert body["success"] is False
    assert "pincode" in body["error"]


def test_create_franchise_without_address(client, admin, headers_for):
    res = client.post("/api/franchises", headers=headers_for(admin),
                      json={"name": "Kiosk", "email": "kiosk@example.com"})

    assert res.status_code == 201
    assert res.json()["franchise"]["address"] is None


def test_list_franchises_empty_is_ok(client, admin, headers_for):
    res = client.get("/api/franchises", headers=headers_for(admin))

    assert res.status_code == 200
    assert res.json() == {
        "success": True,
        "franchises": [],
        "pagination": {"total": 0, "page": 1, "limit": 10, "pages": 0},
    }


def test_list_franchises_pagination(client, admin, headers_for, make_franchise):
    for _ in range(7):
        make_franchise()

    res = client.get("/api/franchises?page=3&limit=3", headers=headers_for(admin))

    body = res.json()
    assert len(body["franchises"]) == 1
    assert body["pagination"] == {"total": 7, "page": 3, "limit": 3, "pages": 3}


def test_list_franchises_search_and_sort(client, admin, headers_for, make_franchise):
    make_franchise(name="Zeta Mall")
    make_franchise(name="Alpha Mall")
    make_franchise(name="Harbour Point")

    res = client.get("/api/franchises?search=mall&sortBy=name&sortOrder=asc",
                     headers=headers_for(admin))

    names = [f["name"] for f in res.json()["franchises"]]
    assert names == ["Alpha Mall", "Zeta Mall"]


def test_list_franchises_unknown_sort_key(client, admin, headers_for):
    res = client.get("/api/franchises?sortBy=password", headers=headers_for(admin))
    assert res.status_code == 400


def test_list_franchises_requires_admin(client, headers_for, make_manager):
    res = client.get("/api/franchises", headers=headers_for(make_manager()))
    assert res.status_code == 403


def test_missing_token(client):
    res = client.get("/api/franchises")
    assert res.status_code == 401
    assert res.json() == {"success": False, "message": "Missing Token"}


def test_invalid_token(client):
    res = client.get("/api/franchises", headers={"Authorization": "Bearer nope"})
    assert res.status_code == 401


def test_get_franchise_access(client, admin, headers_for, make_franchise, make_manager, make_user):
    mine = make_manager()
    other = make_manager()
    franchise = make_franchise(manager=mine)

    assert client.get(f"/api/franchises/{franchise.id}", headers=headers_for(admin)).status_code == 200
    assert client.get(f"/api/franchises/{franchise.id}", headers=headers_for(mine)).status_code == 200
    assert client.get(f"/api/franchises/{franchise.id}", headers=headers_for(other)).status_code == 403
    assert client.get(f"/api/franchises/{franchise.id}",
                      headers=headers_for(make_user())).status_code == 403


def test_get_missing_franchise(client, admin, headers_for):
    res = client.get(f"/api/franchises/{'0' * 24}", headers=headers_for(admin))
    assert res.status_code == 404
    assert res.json() == {"success": False, "message": "Franchise not found"}


def test_update_franchise_email_clash(client, admin, headers_for, make_franchise):
    first = make_franchise()
    second = make_franchise()

    res = client.put(f"/api/franchises/{second.id}", json={"email": first.email},
                     headers=headers_for(admin))

    assert res.status_code == 400


def test_update_franchise_fields(client, db, admin, headers_for, make_franchise):
    franchise = make_franchise()

    res = client.put(f"/api/franchises/{franchise.id}", headers=headers_for(admin),
                     json={"isActive": False, "address": ADDRESS})

    assert res.status_code == 200
    body = res.json()["franchise"]
    assert body["isActive"] is False
    assert body["address"]["city"] == "Springfield"

    res = client.put(f"/api/franchises/{franchise.id}", headers=headers_for(admin),
                     json={"address": None})
    assert res.json()["franchise"]["address"] is None
    db.expire_all()
    assert franchise.street is None and franchise.country is None


def test_delete_franchise_with_orders_conflicts(client, db, admin, headers_for,
                                                make_franchise, make_order):
    franchise = make_franchise()
    make_order(franchise)
    make_order(franchise)

    res = client.delete(f"/api/franchises/{franchise.id}", headers=headers_for(admin))

    assert res.status_code == 409
    assert res.json()["success"] is False
    db.expire_all()
    assert db.get(models.Franchise, franchise.id) is not None
    assert db.query(models.Order).filter(models.Order.franchise_id == franchise.id).count() == 2


def test_delete_franchise_cascades_stock_and_clears_manager(client, db, admin, headers_for,
                                                            make_franchise, make_manager, product):
    manager = make_manager()
    franchise = make_franchise(manager=manager)
    keep = make_franchise()
    db.add_all([
        models.FranchiseStock(franchise_id=franchise.id, product_id=product.id, quantity=5),
        models.FranchiseStock(franchise_id=keep.id, product_id=product.id, quantity=7),
    ])
    db.commit()
    franchise_id = franchise.id

    res = client.delete(f"/api/franchises/{franchise_id}", headers=headers_for(admin))

    assert res.status_code == 200
    db.expire_all()
    assert db.get(models.Franchise, franchise_id) is None
    assert db.query(models.FranchiseStock).filter_by(franchise_id=franchise_id).count() == 0
    assert db.query(models.FranchiseStock).filter_by(franchise_id=keep.id).count() == 1
    assert manager.franchise_id is None


def test_franchise_stock(client, admin, headers_for, make_franchise, make_manager, product):
    manager = make_manager()
    franchise = make_franchise(manager=manager)
    headers = headers_for(manager)

    res = client.put(f"/api/franchises/{franchise.id}/stock", headers=headers,
                     json={"productId": product.id, "quantity": 12})
    assert res.status_code == 200
    res = client.put(f"/api/franchises/{franchise.id}/stock", headers=headers,
                     json={"productId": product.id, "quantity": 3})
    assert res.json()["stock"]["quantity"] == 3

    res = client.get(f"/api/franchises/{franchise.id}/stock", headers=headers)
    assert [(s["productId"], s["quantity"]) for s in res.json()["stock"]] == [(product.id, 3)]

    res = client.put(f"/api/franchises/{franchise.id}/stock", headers=headers,
                     json={"productId": "b" * 24, "quantity": 1})
    assert res.status_code == 404


def test_search_wildcards_match_literally(client, admin, headers_for, make_franchise):
    make_franchise(name="Corner Shop")
    make_franchise(name="100% Fresh")

    res = client.get("/api/franchises", params={"search": "%"}, headers=headers_for(admin))
    assert [f["name"] for f in res.json()["franchises"]] == ["100% Fresh"]

    res = client.get("/api/franchises", params={"search": "r_s"}, headers=headers_for(admin))
    assert res.json()["pagination"]["total"] == 0


def test_update_rejects_blank_name(client, db, admin, headers_for, make_franchise):
    franchise = make_franchise(name="Keep me")

    res = client.put(f"/api/franchises/{franchise.id}", json={"name": ""},
                     headers=headers_for(admin))

    assert res.status_code == 400
    db.expire_all()
    assert franchise.name == "Keep me"
