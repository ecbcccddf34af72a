import logging

from . import models
from .auth import get_password_hash, verify_password
from .database import transaction
from .errors import Conflict, NotFound, ValidationError
from .pagination import contains, paginate

logger = logging.getLogger(__name__)


def _email_taken(db, email, exclude_id=None):
    query = db.query(models.User).filter(models.User.email == email)
    if exclude_id:
        query = query.filter(models.User.id != exclude_id)
    return query.first() is not None


def get_user(db, user_id):
    user = db.get(models.User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


def create_user(db, data, role=models.Role.USER):
    if _email_taken(db, data.email):
        raise ValidationError("Email exists")
    user = models.User(
        email=data.email,
        hashed_password=get_password_hash(data.password),
        name=data.name,
        phone=data.phone,
        role=role,
    )
    with transaction(db):
        db.add(user)
    db.refresh(user)
    logger.info("Created %s user %s", user.role.value, user.id)
    return user


def authenticate(db, email, password):
    user = db.query(models.User).filter(models.User.email == email).first()
    if not user or not user.hashed_password or not verify_password(password, user.hashed_password):
        return None
    return user


def list_users(db, role=None, search=None, page=1, limit=10):
    query = db.query(models.User)
    if role:
        query = query.filter(models.User.role == role)
    if search:
        query = query.filter(contains(models.User.name, search))
    return paginate(query.order_by(models.User.created_at.desc()), page, limit)


def _release_franchise(db, user):
    """Drop the user's side of the assignment edge and the franchise's side with it."""
    for franchise in db.query(models.Franchise).filter(models.Franchise.order_manager_id == user.id):
        franchise.order_manager = None
    user.franchise = None
    db.flush()


def update_user(db, user_id, patch):
    fields = patch.model_dump(exclude_unset=True)
    with transaction(db):
        user = get_user(db, user_id)

        email = fields.get("email")
        if email and email != user.email and _email_taken(db, email, exclude_id=user.id):
            raise ValidationError("Email exists")

        role = fields.get("role")
        if role and role != user.role and user.role == models.Role.ORDER_MANAGER:
            # only order managers may hold a franchise
            _release_franchise(db, user)
            logger.info("User %s is no longer an order manager", user.id)

        for key in ("name", "email", "phone", "role"):
            if fields.get(key) is not None:
                setattr(user, key, fields[key])
    db.refresh(user)
    return user


def delete_user(db, user_id):
    with transaction(db):
        user = get_user(db, user_id)
        if db.query(models.Order).filter(models.Order.user_id == user.id).count():
            raise Conflict("Cannot delete a user that has orders")
        _release_franchise(db, user)
        db.delete(user)
    logger.info("Deleted user %s", user_id)


def add_address(db, user, data):
    address = models.UserAddress(
        user_id=user.id,
        title=data.title,
        name=data.name,
        address=data.address,
        phone=data.phone,
    )
    with transaction(db):
        db.add(address)
    db.refresh(address)
    return address


def list_addresses(db, user):
    return db.query(models.UserAddress).filter(models.UserAddress.user_id == user.id).all()
