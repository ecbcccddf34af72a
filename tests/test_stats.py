import datetime

from franchise_service import models

Status = models.DeliveryStatus


def stats_for(client, headers, franchise):
    return client.get(f"/api/franchises/{franchise.id}/stats", headers=headers)


def test_revenue_counts_only_delivered_orders(client, admin, headers_for, make_franchise, make_order):
    franchise = make_franchise(name="Harbour")
    for amount in (10.0, 20.0, 30.0):
        make_order(franchise, status=Status.DELIVERED, amount=amount)
    make_order(franchise, status=Status.CANCELLED, amount=100.0)

    res = stats_for(client, headers_for(admin), franchise)

    assert res.status_code == 200
    body = res.json()
    assert body["franchise"] == "Harbour"
    assert body["stats"]["totalRevenue"] == 60
    assert body["stats"]["totalOrders"] == 4
    assert body["stats"]["ordersByStatus"]["delivered"] == 3
    assert body["stats"]["ordersByStatus"]["cancelled"] == 1


def test_stats_without_orders(client, admin, headers_for, make_franchise):
    franchise = make_franchise()

    stats = stats_for(client, headers_for(admin), franchise).json()["stats"]

    assert stats["totalOrders"] == 0
    assert stats["totalRevenue"] == 0
    assert stats["recentOrders"] == []
    assert set(stats["ordersByStatus"].values()) == {0}


def test_status_counts_add_up_to_total(client, admin, headers_for, make_franchise, make_order):
    franchise = make_franchise()
    for status in (Status.PENDING, Status.PENDING, Status.ACCEPTED, Status.SHIPPED, Status.PROCESSING):
        make_order(franchise, status=status)

    stats = stats_for(client, headers_for(admin), franchise).json()["stats"]

    by_status = stats["ordersByStatus"]
    assert sum(by_status.values()) == stats["totalOrders"] == 5
    assert by_status["pending"] == 2
    assert by_status["other"] == 0
    assert set(by_status) == {s.value for s in Status} | {"other"}


def test_stats_ignore_other_franchises(client, admin, headers_for, make_franchise, make_order):
    franchise = make_franchise()
    neighbour = make_franchise()
    make_order(franchise, status=Status.DELIVERED, amount=5.0)
    make_order(neighbour, status=Status.DELIVERED, amount=50.0)

    stats = stats_for(client, headers_for(admin), franchise).json()["stats"]

    assert stats["totalOrders"] == 1
    assert stats["totalRevenue"] == 5


def test_recent_orders_are_the_five_newest(client, admin, headers_for, make_franchise, make_order):
    franchise = make_franchise()
    start = datetime.datetime(2024, 1, 1, 12, 0)
    orders = [make_order(franchise, created_at=start + datetime.timedelta(days=i)) for i in range(7)]

    recent = stats_for(client, headers_for(admin), franchise).json()["stats"]["recentOrders"]

    assert [o["id"] for o in recent] == [o.id for o in reversed(orders[2:])]
    assert recent[0]["user"]["name"] == "Alice Customer"
    assert recent[0]["product"]["name"] == "Cold Brew"
    assert recent[0]["deliverystatus"] == "pending"


def test_assigned_manager_can_read_stats(client, headers_for, make_franchise, make_manager):
    manager = make_manager()
    franchise = make_franchise(manager=manager)

    assert stats_for(client, headers_for(manager), franchise).status_code == 200


def test_manager_of_another_franchise_is_forbidden(client, headers_for, make_franchise, make_manager):
    franchise_x = make_franchise()
    manager = make_manager()
    make_franchise(manager=manager)

    res = stats_for(client, headers_for(manager), franchise_x)

    assert res.status_code == 403
    assert res.json() == {"success": False, "message": "Not authorized to access this franchise"}


def test_unassigned_manager_is_forbidden(client, headers_for, make_franchise, make_manager):
    franchise = make_franchise()

    res = stats_for(client, headers_for(make_manager()), franchise)

    assert res.status_code == 403


def test_customers_cannot_read_stats(client, headers_for, make_franchise, make_user):
    franchise = make_franchise()

    res = stats_for(client, headers_for(make_user()), franchise)

    assert res.status_code == 403
    assert res.json()["message"] == "Access denied. Insufficient privileges."


def test_stats_for_missing_franchise(client, admin, headers_for):
    res = client.get(f"/api/franchises/{'c' * 24}/stats", headers=headers_for(admin))
    assert res.status_code == 404
