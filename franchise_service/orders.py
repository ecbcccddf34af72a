import logging

from . import models
from .database import transaction
from .errors import Forbidden, NotFound, ValidationError
from .franchises import check_franchise_access

logger = logging.getLogger(__name__)


def can_transition(current, new):
    """Statuses only move forward; cancelling is allowed until the order is closed."""
    if current.is_terminal or new == current:
        return False
    if new == models.DeliveryStatus.CANCELLED:
        return True
    return models.STATUS_FLOW.index(new) > models.STATUS_FLOW.index(current)


def get_order(db, order_id, principal):
    order = db.get(models.Order, order_id)
    if not order:
        raise NotFound("Order not found")
    if principal.role == models.Role.USER:
        if order.user_id != principal.id:
            raise Forbidden("Not authorized to view this order")
    else:
        check_franchise_access(order.franchise_id, principal)
    return order


def update_order_status(db, order_id, status, principal):
    with transaction(db):
        order = (db.query(models.Order)
                 .filter(models.Order.id == order_id)
                 .with_for_update()
                 .first())
        if not order:
            raise NotFound("Order not found")
        check_franchise_access(order.franchise_id, principal)

        current = order.delivery_status
        if not can_transition(current, status):
            raise ValidationError(
                f"Cannot change order status from '{current.value}' to '{status.value}'"
            )
        order.delivery_status = status

    db.refresh(order)
    logger.info("Order %s: %s -> %s", order.order_code, current.value, status.value)
    return order
