"""Request and response DTOs.

Wire format is camelCase (``contactNumber``, ``isActive``, ``orderManager``);
snake_case field names are accepted on input as well.
"""
import re
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .models import DeliveryStatus, Role

EMAIL_RE = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
PHONE_RE = r'^\+?\d{7,15}$'


def _check_email(v):
    if v is not None and not re.match(EMAIL_RE, v):
        raise ValueError('Invalid email address')
    return v


def _check_phone(v):
    if v is not None and not re.match(PHONE_RE, v):
        raise ValueError('Invalid phone number (7-15 digits, optional leading +)')
    return v


Email = Annotated[str, AfterValidator(_check_email)]
Phone = Annotated[str, AfterValidator(_check_phone)]


class APIModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def dump(schema, obj):
    return schema.model_validate(obj).model_dump(by_alias=True, mode="json")


# --- FRANCHISE ---
class AddressIn(APIModel):
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    pincode: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)


class FranchiseCreate(APIModel):
    name: str = Field(..., min_length=1)
    address: Optional[AddressIn] = None
    contact_number: Optional[Phone] = None
    email: Email


class FranchiseUpdate(APIModel):
    name: Optional[str] = Field(None, min_length=1)
    address: Optional[AddressIn] = None
    contact_number: Optional[Phone] = None
    email: Optional[Email] = None
    is_active: Optional[bool] = None
    # "" or null detaches the current manager
    manager: Optional[str] = None


class AssignManagerRequest(APIModel):
    franchise_id: str
    manager_id: str


class ManagerOut(APIModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None


class FranchiseOut(APIModel):
    id: str
    name: str
    address: Optional[AddressIn] = None
    contact_number: Optional[str] = None
    email: str
    is_active: bool = True
    order_manager: Optional[ManagerOut] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class StockUpdate(APIModel):
    product_id: str
    quantity: int = Field(..., ge=0)


class StockOut(APIModel):
    id: str
    product_id: str
    quantity: int
    updated_at: Optional[datetime] = None


# --- USERS ---
class UserCreate(APIModel):
    email: Email
    password: str
    name: str
    phone: Optional[Phone] = None

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        if len(v) < 8:
            raise ValueError('Password must be at least 8 characters long')
        if not re.search(r"[A-Z]", v):
            raise ValueError('Password must contain an uppercase letter')
        if not re.search(r"[a-z]", v):
            raise ValueError('Password must contain a lowercase letter')
        if not re.search(r"\d", v):
            raise ValueError('Password must contain a digit')
        if not re.search(r"[@$!%*?&]", v):
            raise ValueError('Password must contain a special character (@$!%*?&)')
        return v


class AdminUserCreate(UserCreate):
    role: Role = Role.USER


class UserUpdate(APIModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[Email] = None
    phone: Optional[Phone] = None
    role: Optional[Role] = None


class LoginRequest(APIModel):
    email: str
    password: str


class UserOut(APIModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    role: Role
    franchise_id: Optional[str] = None
    created_at: Optional[datetime] = None


class AddressCreate(APIModel):
    title: str
    name: str
    address: str
    phone: Phone


class AddressOut(AddressCreate):
    id: str
    user_id: str


# --- CATALOGUE ---
class CategoryCreate(APIModel):
    name: str = Field(..., min_length=1)


class CategoryOut(APIModel):
    id: str
    name: str


class ProductCreate(APIModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    category: str
    price: float = Field(..., ge=0)
    discount: float = Field(0, ge=0)
    warehouse_stock: int = Field(0, ge=0)
    low_stock_threshold: int = Field(10, ge=0)
    image: List[str] = []
    manufacturer: Optional[str] = None
    publish: bool = True


class ProductUpdate(APIModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    discount: Optional[float] = Field(None, ge=0)
    warehouse_stock: Optional[int] = Field(None, ge=0)
    low_stock_threshold: Optional[int] = Field(None, ge=0)
    image: Optional[List[str]] = None
    manufacturer: Optional[str] = None
    publish: Optional[bool] = None


class ProductStockUpdate(APIModel):
    warehouse_stock: Optional[int] = Field(None, ge=0)


class ProductOut(APIModel):
    id: str
    name: str
    description: Optional[str] = None
    category: CategoryOut
    price: float
    discount: float = 0
    warehouse_stock: int = 0
    low_stock_threshold: int = 10
    image: List[str] = []
    manufacturer: Optional[str] = None
    publish: bool = True
    created_at: Optional[datetime] = None


# --- ORDERS ---
class OrderUserOut(APIModel):
    id: str
    name: str
    email: str


class OrderProductOut(APIModel):
    id: str
    name: str
    price: float
    image: List[str] = []


class OrderOut(APIModel):
    id: str
    order_code: str
    user: OrderUserOut
    product: OrderProductOut
    franchise_id: str
    delivery_address: Optional[AddressOut] = None
    quantity: int = 1
    delivery_status: DeliveryStatus = Field(..., alias="deliverystatus")
    payment_status: Optional[str] = None
    total_amount: float = 0
    created_at: Optional[datetime] = None


class OrderStatusUpdate(APIModel):
    status: DeliveryStatus
