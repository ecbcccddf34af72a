"""Read-only order queries: per-franchise statistics and the filtered order list."""
import re
from datetime import datetime, time

from sqlalchemy import func, or_

from . import models
from .franchises import load_franchise, check_franchise_access
from .pagination import contains, paginate

OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")
RECENT_ORDERS = 5


def get_franchise_stats(db, franchise_id, principal):
    franchise = load_franchise(db, franchise_id)
    check_franchise_access(franchise.id, principal)

    base = db.query(models.Order).filter(models.Order.franchise_id == franchise.id)
    total_orders = base.count()

    by_status = {status.value: 0 for status in models.DeliveryStatus}
    rows = (db.query(models.Order.delivery_status, func.count(models.Order.id))
            .filter(models.Order.franchise_id == franchise.id)
            .group_by(models.Order.delivery_status)
            .all())
    for status, count in rows:
        by_status[status.value] += count
    # anything the enum does not know about still has to add up to the total
    by_status["other"] = total_orders - sum(by_status.values())

    total_revenue = (db.query(func.coalesce(func.sum(models.Order.total_amount), 0))
                     .filter(models.Order.franchise_id == franchise.id,
                             models.Order.delivery_status == models.DeliveryStatus.DELIVERED)
                     .scalar())

    recent_orders = base.order_by(models.Order.created_at.desc()).limit(RECENT_ORDERS).all()

    return franchise, {
        "totalOrders": total_orders,
        "ordersByStatus": by_status,
        "totalRevenue": float(total_revenue or 0),
        "recentOrders": recent_orders,
    }


def _day_bounds(start_date=None, end_date=None):
    start = datetime.combine(start_date, time.min) if start_date else None
    # inclusive upper bound: 23:59:59.999 of the given day
    end = datetime.combine(end_date, time(23, 59, 59, 999000)) if end_date else None
    return start, end


def order_filter(db, franchise_id=None, status=None, start_date=None, end_date=None, search=None):
    query = db.query(models.Order)
    if franchise_id:
        query = query.filter(models.Order.franchise_id == franchise_id)
    if status:
        query = query.filter(models.Order.delivery_status == status)

    start, end = _day_bounds(start_date, end_date)
    if start:
        query = query.filter(models.Order.created_at >= start)
    if end:
        query = query.filter(models.Order.created_at <= end)

    if search:
        term = search.strip()
        user_ids = [uid for (uid,) in db.query(models.User.id)
                    .filter(contains(models.User.name, term))
                    .all()]
        clauses = [contains(models.Order.order_code, term)]
        if user_ids:
            clauses.append(models.Order.user_id.in_(user_ids))
        if OBJECT_ID_RE.match(term):
            clauses.append(models.Order.id == term.lower())
        query = query.filter(or_(*clauses))

    return query


def list_orders(db, franchise_id=None, status=None, start_date=None, end_date=None,
                search=None, page=1, limit=10):
    query = order_filter(db, franchise_id, status, start_date, end_date, search)
    return paginate(query.order_by(models.Order.created_at.desc()), page, limit)


def list_franchise_orders(db, franchise_id, principal, **filters):
    franchise = load_franchise(db, franchise_id)
    check_franchise_access(franchise.id, principal)
    orders, pagination = list_orders(db, franchise_id=franchise.id, **filters)
    return franchise, orders, pagination
