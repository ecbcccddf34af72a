"""Franchise CRUD and the franchise <-> order manager assignment.

The assignment edge is stored twice (``Franchise.order_manager_id`` and
``User.franchise_id``). Every operation that touches it runs inside a single
transaction so both sides are written together or not at all.
"""
import logging
from contextlib import contextmanager

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from . import models
from .database import transaction
from .errors import Conflict, Forbidden, NotFound, RoleMismatch, ValidationError
from .pagination import contains, paginate

logger = logging.getLogger(__name__)

ADDRESS_FIELDS = ("street", "city", "state", "pincode", "country")

SORT_FIELDS = {
    "name": models.Franchise.name,
    "email": models.Franchise.email,
    "createdAt": models.Franchise.created_at,
}


def load_franchise(db, franchise_id, lock=False):
    query = db.query(models.Franchise).filter(models.Franchise.id == franchise_id)
    if lock:
        query = query.with_for_update()
    franchise = query.first()
    if not franchise:
        raise NotFound("Franchise not found")
    return franchise


def _load_manager(db, manager_id):
    # locked so two assignments of the same manager run one after the other
    manager = (db.query(models.User)
               .filter(models.User.id == manager_id)
               .with_for_update()
               .first())
    if not manager:
        raise NotFound("Manager not found")
    if manager.role != models.Role.ORDER_MANAGER:
        raise RoleMismatch("User is not a manager")
    return manager


def _set_address(franchise, address):
    for field in ADDRESS_FIELDS:
        setattr(franchise, field, address[field] if address else None)


def _email_taken(db, email, exclude_id=None):
    query = db.query(models.Franchise).filter(models.Franchise.email == email)
    if exclude_id:
        query = query.filter(models.Franchise.id != exclude_id)
    return query.first() is not None


def check_franchise_access(franchise_id, principal):
    """Admins see every franchise, an order manager only the one assigned to them."""
    if principal.role == models.Role.ADMIN:
        return
    if principal.role == models.Role.ORDER_MANAGER and principal.franchise_id == franchise_id:
        return
    raise Forbidden("Not authorized to access this franchise")


def detach_manager(db, franchise):
    """Clear both sides of the franchise's current manager edge, if any."""
    manager = franchise.order_manager
    if manager is None:
        return
    franchise.order_manager = None
    if manager.franchise_id == franchise.id:
        manager.franchise = None
    db.flush()
    logger.info("Detached manager %s from franchise %s", manager.id, franchise.id)


def _link(db, franchise, manager):
    if manager.franchise_id and manager.franchise_id != franchise.id:
        previous = (db.query(models.Franchise)
                    .filter(models.Franchise.id == manager.franchise_id)
                    .with_for_update()
                    .first())
        # a stale back-reference is left alone unless it still points at this manager
        if previous is not None and previous.order_manager_id == manager.id:
            previous.order_manager = None
            logger.info("Manager %s moved away from franchise %s", manager.id, previous.id)

    if franchise.order_manager_id and franchise.order_manager_id != manager.id:
        detach_manager(db, franchise)

    # order_manager_id is unique: the old owner has to be written first
    db.flush()
    franchise.order_manager = manager
    manager.franchise = franchise


@contextmanager
def _edge_transaction(db):
    """Like `transaction`, but a unique-key clash on the edge becomes a 409."""
    try:
        with transaction(db):
            yield
    except IntegrityError as exc:
        logger.warning("Concurrent change to a franchise assignment: %s", exc.orig)
        raise Conflict("Franchise or manager was changed by another request; please retry")


def create_franchise(db, data):
    if _email_taken(db, data.email):
        raise ValidationError("Franchise already exists with this email")

    franchise = models.Franchise(
        name=data.name,
        contact_number=data.contact_number,
        email=data.email,
        is_active=True,
    )
    _set_address(franchise, data.address.model_dump() if data.address else None)
    with transaction(db):
        db.add(franchise)
    db.refresh(franchise)
    logger.info("Created franchise %s (%s)", franchise.id, franchise.email)
    return franchise


def list_franchises(db, search=None, sort_by="createdAt", sort_order="desc", page=1, limit=10):
    query = db.query(models.Franchise)
    if search:
        query = query.filter(or_(
            contains(models.Franchise.name, search),
            contains(models.Franchise.email, search),
            contains(models.Franchise.city, search),
        ))

    column = SORT_FIELDS.get(sort_by)
    if column is None:
        raise ValidationError(f"Cannot sort franchises by '{sort_by}'")
    query = query.order_by(column.desc() if sort_order == "desc" else column.asc())
    return paginate(query, page, limit)


def get_franchise(db, franchise_id, principal):
    franchise = load_franchise(db, franchise_id)
    check_franchise_access(franchise.id, principal)
    return franchise


def assign_manager(db, franchise_id, manager_id):
    with _edge_transaction(db):
        franchise = load_franchise(db, franchise_id, lock=True)
        manager = _load_manager(db, manager_id)
        _link(db, franchise, manager)
    db.refresh(franchise)
    logger.info("Assigned manager %s to franchise %s", manager_id, franchise_id)
    return franchise


def update_franchise(db, franchise_id, patch):
    """Apply only the fields present in ``patch``.

    ``manager`` set to a user id reassigns the franchise; set to ``""`` or
    ``None`` it detaches the current manager on both sides.
    """
    fields = patch.model_dump(exclude_unset=True)

    with _edge_transaction(db):
        franchise = load_franchise(db, franchise_id, lock=True)

        email = fields.get("email")
        if email and email != franchise.email and _email_taken(db, email, exclude_id=franchise.id):
            raise ValidationError("Franchise already exists with this email")

        for key in ("name", "contact_number", "email", "is_active"):
            if fields.get(key) is not None:
                setattr(franchise, key, fields[key])

        if "address" in fields:
            _set_address(franchise, fields["address"])

        if "manager" in fields:
            manager_id = fields["manager"]
            if manager_id:
                _link(db, franchise, _load_manager(db, manager_id))
            else:
                detach_manager(db, franchise)

    db.refresh(franchise)
    return franchise


def delete_franchise(db, franchise_id):
    with transaction(db):
        franchise = load_franchise(db, franchise_id, lock=True)

        order_count = (db.query(models.Order)
                       .filter(models.Order.franchise_id == franchise.id)
                       .count())
        if order_count:
            raise Conflict(
                f"Cannot delete franchise with {order_count} existing order(s); "
                "reassign or remove them first"
            )

        detach_manager(db, franchise)
        for user in db.query(models.User).filter(models.User.franchise_id == franchise.id):
            user.franchise = None
        db.flush()

        # stock rows go with the franchise (delete-orphan cascade)
        db.delete(franchise)

    logger.info("Deleted franchise %s", franchise_id)


def list_franchise_stock(db, franchise_id, principal):
    franchise = get_franchise(db, franchise_id, principal)
    return list(franchise.stock)


def set_franchise_stock(db, franchise_id, data, principal):
    with transaction(db):
        franchise = get_franchise(db, franchise_id, principal)
        if not db.get(models.Product, data.product_id):
            raise NotFound("Product not found")

        row = (db.query(models.FranchiseStock)
               .filter(models.FranchiseStock.franchise_id == franchise.id,
                       models.FranchiseStock.product_id == data.product_id)
               .first())
        if row is None:
            row = models.FranchiseStock(franchise=franchise, product_id=data.product_id)
            db.add(row)
        row.quantity = data.quantity
    db.refresh(row)
    return row
