from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import franchises, models, stats
from .auth import require_admin, require_admin_or_manager
from .database import get_db
from .schemas import (
    AssignManagerRequest, FranchiseCreate, FranchiseOut, FranchiseUpdate, OrderOut,
    StockOut, StockUpdate, dump,
)

router = APIRouter(prefix="/api/franchises", tags=["franchises"])


@router.post("")
def create_franchise(payload: FranchiseCreate, db: Session = Depends(get_db),
                     _: models.User = Depends(require_admin)):
    franchise = franchises.create_franchise(db, payload)
    return JSONResponse(status_code=201, content={
        "success": True,
        "message": "Franchise created successfully",
        "franchise": dump(FranchiseOut, franchise),
    })


@router.get("")
def list_franchises(
    search: Optional[str] = None,
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    _: models.User = Depends(require_admin),
):
    items, pagination = franchises.list_franchises(db, search, sort_by, sort_order, page, limit)
    return {
        "success": True,
        "franchises": [dump(FranchiseOut, f) for f in items],
        "pagination": pagination,
    }


@router.post("/assign-manager")
def assign_manager(payload: AssignManagerRequest, db: Session = Depends(get_db),
                   _: models.User = Depends(require_admin)):
    franchise = franchises.assign_manager(db, payload.franchise_id, payload.manager_id)
    return {
        "success": True,
        "message": "Manager assigned to franchise successfully",
        "franchise": dump(FranchiseOut, franchise),
    }


@router.get("/{franchise_id}")
def get_franchise(franchise_id: str, db: Session = Depends(get_db),
                  user: models.User = Depends(require_admin_or_manager)):
    franchise = franchises.get_franchise(db, franchise_id, user)
    return {"success": True, "franchise": dump(FranchiseOut, franchise)}


@router.put("/{franchise_id}")
def update_franchise(franchise_id: str, payload: FranchiseUpdate, db: Session = Depends(get_db),
                     _: models.User = Depends(require_admin)):
    franchise = franchises.update_franchise(db, franchise_id, payload)
    return {
        "success": True,
        "message": "Franchise updated successfully",
        "franchise": dump(FranchiseOut, franchise),
    }


@router.delete("/{franchise_id}")
def delete_franchise(franchise_id: str, db: Session = Depends(get_db),
                     _: models.User = Depends(require_admin)):
    franchises.delete_franchise(db, franchise_id)
    return {"success": True, "message": "Franchise deleted successfully"}


@router.get("/{franchise_id}/orders")
def get_franchise_orders(
    franchise_id: str,
    status: Optional[models.DeliveryStatus] = None,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    user: models.User = Depends(require_admin_or_manager),
):
    franchise, orders, pagination = stats.list_franchise_orders(
        db, franchise_id, user,
        status=status, start_date=start_date, end_date=end_date,
        search=search, page=page, limit=limit,
    )
    return {
        "success": True,
        "franchise": franchise.name,
        "orders": [dump(OrderOut, o) for o in orders],
        "pagination": pagination,
    }


@router.get("/{franchise_id}/stats")
def get_franchise_stats(franchise_id: str, db: Session = Depends(get_db),
                        user: models.User = Depends(require_admin_or_manager)):
    franchise, summary = stats.get_franchise_stats(db, franchise_id, user)
    summary["recentOrders"] = [dump(OrderOut, o) for o in summary["recentOrders"]]
    return {"success": True, "franchise": franchise.name, "stats": summary}


@router.get("/{franchise_id}/stock")
def get_franchise_stock(franchise_id: str, db: Session = Depends(get_db),
                        user: models.User = Depends(require_admin_or_manager)):
    rows = franchises.list_franchise_stock(db, franchise_id, user)
    return {"success": True, "stock": [dump(StockOut, r) for r in rows]}


@router.put("/{franchise_id}/stock")
def set_franchise_stock(franchise_id: str, payload: StockUpdate, db: Session = Depends(get_db),
                        user: models.User = Depends(require_admin_or_manager)):
    row = franchises.set_franchise_stock(db, franchise_id, payload, user)
    return {"success": True, "message": "Stock updated successfully", "stock": dump(StockOut, row)}
