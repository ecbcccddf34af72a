import datetime
import enum
import secrets

from sqlalchemy import (
    Boolean, Column, DateTime, Enum, Float, ForeignKey, Integer, JSON, String, Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base


def new_id():
    """24 lowercase hex chars, same shape as a Mongo ObjectId."""
    return secrets.token_hex(12)


def new_order_code():
    return "ORD-" + secrets.token_hex(4).upper()


class Role(str, enum.Enum):
    ADMIN = "admin"
    ORDER_MANAGER = "orderManager"
    USER = "user"


class DeliveryStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @classmethod
    def _missing_(cls, value):
        # older clients still send "dispatched"
        if isinstance(value, str):
            value = value.strip().lower()
            if value == "dispatched":
                return cls.PROCESSING
            for member in cls:
                if member.value == value:
                    return member
        return None

    @property
    def is_terminal(self):
        return self in (DeliveryStatus.DELIVERED, DeliveryStatus.CANCELLED)


# pending -> accepted -> processing -> shipped -> delivered
STATUS_FLOW = [
    DeliveryStatus.PENDING,
    DeliveryStatus.ACCEPTED,
    DeliveryStatus.PROCESSING,
    DeliveryStatus.SHIPPED,
    DeliveryStatus.DELIVERED,
]


def _enum_column(enum_cls, length=20, **kwargs):
    return Column(
        Enum(
            enum_cls,
            native_enum=False,
            length=length,
            values_callable=lambda e: [m.value for m in e],
            validate_strings=True,
        ),
        **kwargs,
    )


class User(Base):
    __tablename__ = "users"

    id = Column(String(24), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)
    hashed_password = Column(String(200))
    phone = Column(String(20), nullable=True)

    role = _enum_column(Role, default=Role.USER, nullable=False)

    # Only order managers hold a franchise; mirrored by Franchise.order_manager_id
    franchise_id = Column(
        String(24),
        ForeignKey("franchises.id", use_alter=True, name="fk_users_franchise_id"),
        nullable=True,
    )
    created_at = Column(DateTime, default=datetime.datetime.utcnow)

    franchise = relationship("Franchise", foreign_keys=[franchise_id], post_update=True)
    addresses = relationship("UserAddress", back_populates="user", cascade="all, delete-orphan")


class UserAddress(Base):
    __tablename__ = "user_addresses"

    id = Column(String(24), primary_key=True, default=new_id)
    user_id = Column(String(24), ForeignKey("users.id"), index=True)

    title = Column(String(50))
    name = Column(String(100))
    address = Column(String(255))
    phone = Column(String(20))

    user = relationship("User", back_populates="addresses")


class Franchise(Base):
    __tablename__ = "franchises"

    id = Column(String(24), primary_key=True, default=new_id)
    name = Column(String(100), index=True, nullable=False)

    street = Column(String(200), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    pincode = Column(String(20), nullable=True)
    country = Column(String(100), nullable=True)

    contact_number = Column(String(20))
    email = Column(String(100), unique=True, index=True, nullable=False)
    is_active = Column(Boolean, default=True)

    order_manager_id = Column(String(24), ForeignKey("users.id"), unique=True, nullable=True)

    created_at = Column(DateTime, default=datetime.datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)

    order_manager = relationship("User", foreign_keys=[order_manager_id])
    stock = relationship("FranchiseStock", back_populates="franchise", cascade="all, delete-orphan")

    @property
    def address(self):
        if self.street is None:
            return None
        return {
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "pincode": self.pincode,
            "country": self.country,
        }


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(24), primary_key=True, default=new_id)
    name = Column(String(100), unique=True, nullable=False)

    products = relationship("Product", back_populates="category")


class Product(Base):
    __tablename__ = "products"

    id = Column(String(24), primary_key=True, default=new_id)
    name = Column(String(200), index=True, nullable=False)
    description = Column(Text, nullable=True)
    category_id = Column(String(24), ForeignKey("categories.id"), nullable=False)

    price = Column(Float, nullable=False)
    discount = Column(Float, default=0)
    warehouse_stock = Column(Integer, default=0)
    low_stock_threshold = Column(Integer, default=10)

    image = Column(JSON, default=list)
    manufacturer = Column(String(200), nullable=True)
    publish = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)

    category = relationship("Category", back_populates="products")


class FranchiseStock(Base):
    __tablename__ = "franchise_stock"
    __table_args__ = (UniqueConstraint("franchise_id", "product_id", name="uq_franchise_product"),)

    id = Column(String(24), primary_key=True, default=new_id)
    franchise_id = Column(String(24), ForeignKey("franchises.id"), nullable=False, index=True)
    product_id = Column(String(24), ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, default=0)
    updated_at = Column(DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)

    franchise = relationship("Franchise", back_populates="stock")
    product = relationship("Product")


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(24), primary_key=True, default=new_id)
    order_code = Column(String(20), unique=True, index=True, default=new_order_code)

    user_id = Column(String(24), ForeignKey("users.id"), index=True, nullable=False)
    product_id = Column(String(24), ForeignKey("products.id"), nullable=False)
    franchise_id = Column(String(24), ForeignKey("franchises.id"), index=True, nullable=False)
    delivery_address_id = Column(String(24), ForeignKey("user_addresses.id"), nullable=True)

    quantity = Column(Integer, default=1)
    delivery_status = _enum_column(DeliveryStatus, default=DeliveryStatus.PENDING, nullable=False)
    payment_status = Column(String(20), default="pending")
    total_amount = Column(Float, default=0)

    created_at = Column(DateTime, default=datetime.datetime.utcnow, index=True)

    user = relationship("User")
    product = relationship("Product")
    franchise = relationship("Franchise")
    delivery_address = relationship("UserAddress")
