import logging

from sqlalchemy import or_

from . import models
from .database import transaction
from .errors import Conflict, NotFound, ValidationError
from .pagination import contains, paginate

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "name": models.Product.name,
    "price": models.Product.price,
    "discount": models.Product.discount,
    "warehouseStock": models.Product.warehouse_stock,
    "createdAt": models.Product.created_at,
}


# --- CATEGORIES ---
def create_category(db, data):
    if db.query(models.Category).filter(models.Category.name == data.name).first():
        raise ValidationError("Category already exists")
    category = models.Category(name=data.name)
    with transaction(db):
        db.add(category)
    db.refresh(category)
    return category


def list_categories(db):
    return db.query(models.Category).order_by(models.Category.name).all()


def _load_category(db, category_id):
    category = db.get(models.Category, category_id)
    if not category:
        raise NotFound("Category not found")
    return category


# --- PRODUCTS ---
def get_product(db, product_id):
    product = db.get(models.Product, product_id)
    if not product:
        raise NotFound("Product not found")
    return product


def create_product(db, data):
    _load_category(db, data.category)
    product = models.Product(
        name=data.name,
        description=data.description,
        category_id=data.category,
        price=data.price,
        discount=data.discount,
        warehouse_stock=data.warehouse_stock,
        low_stock_threshold=data.low_stock_threshold,
        image=list(data.image),
        manufacturer=data.manufacturer,
        publish=data.publish,
    )
    with transaction(db):
        db.add(product)
    db.refresh(product)
    logger.info("Created product %s (%s)", product.id, product.name)
    return product


def list_products(db, category=None, min_price=None, max_price=None, publish=None,
                  manufacturer=None, search=None, sort_by=None, sort_order="asc",
                  page=1, limit=10):
    query = db.query(models.Product)
    if category:
        query = query.filter(models.Product.category_id == category)
    if publish is not None:
        query = query.filter(models.Product.publish == publish)
    if manufacturer:
        query = query.filter(models.Product.manufacturer == manufacturer)
    if min_price is not None:
        query = query.filter(models.Product.price >= min_price)
    if max_price is not None:
        query = query.filter(models.Product.price <= max_price)
    if search:
        query = query.filter(or_(
            contains(models.Product.name, search),
            contains(models.Product.description, search),
        ))

    if sort_by:
        column = SORT_FIELDS.get(sort_by)
        if column is None:
            raise ValidationError(f"Cannot sort products by '{sort_by}'")
        query = query.order_by(column.desc() if sort_order == "desc" else column.asc())
    else:
        # newest first
        query = query.order_by(models.Product.created_at.desc())

    return paginate(query, page, limit)


def update_product(db, product_id, patch):
    fields = patch.model_dump(exclude_unset=True)
    with transaction(db):
        product = get_product(db, product_id)
        category = fields.pop("category", None)
        if category and category != product.category_id:
            _load_category(db, category)
            product.category_id = category
        for key, value in fields.items():
            if value is not None:
                setattr(product, key, value)
    db.refresh(product)
    return product


def update_product_stock(db, product_id, warehouse_stock):
    if warehouse_stock is None:
        raise ValidationError("Warehouse stock is required")
    with transaction(db):
        product = get_product(db, product_id)
        product.warehouse_stock = warehouse_stock
    db.refresh(product)
    if product.warehouse_stock <= (product.low_stock_threshold or 0):
        logger.warning("Product %s is low on stock (%s left)", product.id, product.warehouse_stock)
    return product


def delete_product(db, product_id):
    with transaction(db):
        product = get_product(db, product_id)
        if db.query(models.Order).filter(models.Order.product_id == product.id).count():
            raise Conflict("Cannot delete a product that has orders")
        db.query(models.FranchiseStock).filter(
            models.FranchiseStock.product_id == product.id
        ).delete(synchronize_session=False)
        db.delete(product)
    logger.info("Deleted product %s", product_id)


def products_by_category(db, category_id):
    category = _load_category(db, category_id)
    products = (db.query(models.Product)
                .filter(models.Product.category_id == category.id,
                        models.Product.publish.is_(True))
                .all())
    return category, products
