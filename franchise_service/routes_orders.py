from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from . import models, orders, stats
from .auth import get_current_user, require_admin, require_admin_or_manager
from .database import get_db
from .notifications import notify_franchise
from .schemas import OrderOut, OrderStatusUpdate, dump

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.get("")
def list_orders(
    status: Optional[models.DeliveryStatus] = None,
    franchise: Optional[str] = None,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    _: models.User = Depends(require_admin),
):
    items, pagination = stats.list_orders(
        db, franchise_id=franchise, status=status, start_date=start_date,
        end_date=end_date, search=search, page=page, limit=limit,
    )
    return {
        "success": True,
        "orders": [dump(OrderOut, o) for o in items],
        "pagination": pagination,
    }


@router.get("/{order_id}")
def get_order(order_id: str, db: Session = Depends(get_db),
              user: models.User = Depends(get_current_user)):
    order = orders.get_order(db, order_id, user)
    return {"success": True, "order": dump(OrderOut, order)}


def _apply_status(db, order_id, status, user):
    order = orders.update_order_status(db, order_id, status, user)
    return order.franchise_id, order.order_code, order.delivery_status, dump(OrderOut, order)


@router.put("/{order_id}/status")
async def update_order_status(order_id: str, payload: OrderStatusUpdate,
                              db: Session = Depends(get_db),
                              user: models.User = Depends(require_admin_or_manager)):
    # the session is blocking; keep it off the event loop
    franchise_id, order_code, status, body = await run_in_threadpool(
        _apply_status, db, order_id, payload.status, user,
    )
    await notify_franchise(franchise_id, f"Order {order_code} is now {status.value}")
    return {
        "success": True,
        "message": f"Order status updated to {status.value}",
        "order": body,
    }
