from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import models, products
from .auth import require_admin, require_admin_or_manager
from .database import get_db
from .schemas import (
    CategoryCreate, CategoryOut, ProductCreate, ProductOut, ProductStockUpdate,
    ProductUpdate, dump,
)

router = APIRouter(tags=["products"])


# ==========================================
# CATEGORIES
# ==========================================
@router.post("/api/categories")
def create_category(payload: CategoryCreate, db: Session = Depends(get_db),
                    _: models.User = Depends(require_admin)):
    category = products.create_category(db, payload)
    return JSONResponse(status_code=201, content={
        "success": True,
        "message": "Category created successfully",
        "category": dump(CategoryOut, category),
    })


@router.get("/api/categories")
def list_categories(db: Session = Depends(get_db)):
    return {"success": True, "categories": [dump(CategoryOut, c) for c in products.list_categories(db)]}


# ==========================================
# PRODUCTS
# ==========================================
@router.post("/api/products")
def create_product(payload: ProductCreate, db: Session = Depends(get_db),
                   _: models.User = Depends(require_admin)):
    product = products.create_product(db, payload)
    return JSONResponse(status_code=201, content={
        "success": True,
        "message": "Product created successfully",
        "product": dump(ProductOut, product),
    })


@router.get("/api/products")
def list_products(
    category: Optional[str] = None,
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    publish: Optional[bool] = None,
    manufacturer: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: str = Query("asc", alias="sortOrder", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    items, pagination = products.list_products(
        db, category=category, min_price=min_price, max_price=max_price, publish=publish,
        manufacturer=manufacturer, search=search, sort_by=sort_by, sort_order=sort_order,
        page=page, limit=limit,
    )
    return {
        "success": True,
        "products": [dump(ProductOut, p) for p in items],
        "pagination": pagination,
    }


@router.get("/api/products/category/{category_id}")
def get_products_by_category(category_id: str, db: Session = Depends(get_db)):
    category, items = products.products_by_category(db, category_id)
    return {
        "success": True,
        "category": category.name,
        "products": [dump(ProductOut, p) for p in items],
    }


@router.get("/api/products/{product_id}")
def get_product(product_id: str, db: Session = Depends(get_db)):
    return {"success": True, "product": dump(ProductOut, products.get_product(db, product_id))}


@router.put("/api/products/{product_id}")
def update_product(product_id: str, payload: ProductUpdate, db: Session = Depends(get_db),
                   _: models.User = Depends(require_admin)):
    product = products.update_product(db, product_id, payload)
    return {
        "success": True,
        "message": "Product updated successfully",
        "product": dump(ProductOut, product),
    }


@router.put("/api/products/{product_id}/stock")
def update_product_stock(product_id: str, payload: ProductStockUpdate, db: Session = Depends(get_db),
                         _: models.User = Depends(require_admin_or_manager)):
    product = products.update_product_stock(db, product_id, payload.warehouse_stock)
    return {
        "success": True,
        "message": "Product stock updated successfully",
        "product": {"id": product.id, "name": product.name, "warehouseStock": product.warehouse_stock},
    }


@router.delete("/api/products/{product_id}")
def delete_product(product_id: str, db: Session = Depends(get_db),
                   _: models.User = Depends(require_admin)):
    products.delete_product(db, product_id)
    return {"success": True, "message": "Product deleted successfully"}
