# provide dataclass models for the records exchanged with the shop backend

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Union


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class KeyboardLayout(str, Enum):
    FULL_SIZE = "FULL_SIZE"
    TKL = "TKL"
    SEVENTY_FIVE_PERCENT = "SEVENTY_FIVE_PERCENT"
    SIXTY_FIVE_PERCENT = "SIXTY_FIVE_PERCENT"
    SIXTY_PERCENT = "SIXTY_PERCENT"
    FORTY_PERCENT = "FORTY_PERCENT"
    SPLIT = "SPLIT"
    ORTHOLINEAR = "ORTHOLINEAR"
    CUSTOM = "CUSTOM"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


def _money(val) -> Decimal:
    if val is None:
        return Decimal("0")
    return Decimal(str(val))


def _layout(val) -> Union[KeyboardLayout, str, None]:
    # layouts added on the server before the client knows them stay plain strings
    if val is None:
        return None
    try:
        return KeyboardLayout(val)
    except ValueError:
        return val


def _status(val) -> Union[OrderStatus, str]:
    try:
        return OrderStatus(val)
    except ValueError:
        return val


def _timestamp(val) -> Optional[datetime]:
    if not val:
        return None
    try:
        return datetime.fromisoformat(str(val).replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass(frozen=True)
class Identity:
    id: int
    username: str
    email: str
    role: Role

    @classmethod
    def from_json(cls, data: dict) -> "Identity":
        return cls(
            id=int(data["id"]),
            username=str(data["username"]),
            email=str(data["email"]),
            role=Role(data["role"]),
        )

    def to_json(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role.value,
        }


@dataclass(frozen=True)
class AuthResponse:
    """Flat body returned by /auth/login and /auth/register."""

    token: str
    type: str
    id: int
    username: str
    email: str
    role: str

    @classmethod
    def from_json(cls, data: dict) -> "AuthResponse":
        return cls(
            token=data["token"],
            type=data.get("type", "Bearer"),
            id=int(data["id"]),
            username=data["username"],
            email=data["email"],
            role=data["role"],
        )

    def identity(self) -> Identity:
        return Identity(
            id=self.id, username=self.username, email=self.email, role=Role(self.role)
        )


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    description: str
    price: Decimal
    brand: str
    layout: Union[KeyboardLayout, str, None]
    switch_type: Optional[str]
    keycap_material: Optional[str]
    case_material: Optional[str]
    rgb_support: bool
    wireless_support: bool
    stock_quantity: int
    image_url: Optional[str]

    @classmethod
    def from_json(cls, data: dict) -> "Product":
        return cls(
            id=int(data["id"]),
            name=data.get("name", ""),
            description=data.get("description") or "",
            price=_money(data.get("price")),
            brand=data.get("brand") or "",
            layout=_layout(data.get("layout")),
            switch_type=data.get("switchType"),
            keycap_material=data.get("keycapMaterial"),
            case_material=data.get("caseMaterial"),
            rgb_support=bool(data.get("rgbSupport", False)),
            wireless_support=bool(data.get("wirelessSupport", False)),
            stock_quantity=int(data.get("stockQuantity") or 0),
            image_url=data.get("imageUrl"),
        )

    @property
    def in_stock(self) -> bool:
        return self.stock_quantity > 0


@dataclass(frozen=True)
class ProductDraft:
    """Body for admin create/update; every field is sent as-is."""

    name: str
    description: str
    price: Decimal
    brand: str
    layout: str
    stock_quantity: int
    switch_type: str = ""
    keycap_material: str = ""
    case_material: str = ""
    rgb_support: bool = False
    wireless_support: bool = False
    image_url: str = ""

    @classmethod
    def from_product(cls, product: Product) -> "ProductDraft":
        layout = product.layout
        return cls(
            name=product.name,
            description=product.description,
            price=product.price,
            brand=product.brand,
            layout=layout.value if isinstance(layout, KeyboardLayout) else (layout or ""),
            stock_quantity=product.stock_quantity,
            switch_type=product.switch_type or "",
            keycap_material=product.keycap_material or "",
            case_material=product.case_material or "",
            rgb_support=product.rgb_support,
            wireless_support=product.wireless_support,
            image_url=product.image_url or "",
        )

    def to_json(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "price": float(self.price),
            "brand": self.brand,
            "layout": self.layout,
            "switchType": self.switch_type,
            "keycapMaterial": self.keycap_material,
            "caseMaterial": self.case_material,
            "rgbSupport": self.rgb_support,
            "wirelessSupport": self.wireless_support,
            "stockQuantity": self.stock_quantity,
            "imageUrl": self.image_url,
        }


@dataclass(frozen=True)
class ProductPage:
    content: List[Product]
    total_elements: int
    total_pages: int

    @classmethod
    def from_json(cls, data: dict) -> "ProductPage":
        content = [Product.from_json(p) for p in data.get("content") or []]
        return cls(
            content=content,
            total_elements=int(data.get("totalElements", len(content))),
            total_pages=int(data.get("totalPages", 1 if content else 0)),
        )


@dataclass(frozen=True)
class CartItem:
    id: int
    product: Product
    quantity: int

    @classmethod
    def from_json(cls, data: dict) -> "CartItem":
        return cls(
            id=int(data["id"]),
            product=Product.from_json(data["product"]),
            quantity=int(data["quantity"]),
        )


@dataclass(frozen=True)
class Cart:
    id: Optional[int]
    user_id: Optional[int]
    items: List[CartItem] = field(default_factory=list)
    total_amount: Decimal = Decimal("0")

    @classmethod
    def from_json(cls, data: dict) -> "Cart":
        return cls(
            id=data.get("id"),
            user_id=data.get("userId"),
            items=[CartItem.from_json(i) for i in data.get("items") or []],
            total_amount=_money(data.get("totalAmount")),
        )


@dataclass(frozen=True)
class CartItemRequest:
    product_id: int
    quantity: int

    def to_json(self) -> dict:
        return {"productId": self.product_id, "quantity": self.quantity}


@dataclass(frozen=True)
class OrderItem:
    id: int
    product: Product
    quantity: int
    unit_price: Decimal

    @classmethod
    def from_json(cls, data: dict) -> "OrderItem":
        return cls(
            id=int(data["id"]),
            product=Product.from_json(data["product"]),
            quantity=int(data["quantity"]),
            unit_price=_money(data.get("unitPrice")),
        )

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Order:
    id: int
    user_id: Optional[int]
    items: List[OrderItem]
    total_amount: Decimal
    status: Union[OrderStatus, str]
    created_at: Optional[datetime]
    shipping_address: str
    billing_address: str
    payment_method: str

    @classmethod
    def from_json(cls, data: dict) -> "Order":
        return cls(
            id=int(data["id"]),
            user_id=data.get("userId"),
            items=[OrderItem.from_json(i) for i in data.get("items") or []],
            total_amount=_money(data.get("totalAmount")),
            status=_status(data.get("status")),
            created_at=_timestamp(data.get("createdAt")),
            shipping_address=data.get("shippingAddress") or "",
            billing_address=data.get("billingAddress") or "",
            payment_method=data.get("paymentMethod") or "",
        )


@dataclass(frozen=True)
class OrderPage:
    content: List[Order]
    total_elements: int
    total_pages: int

    @classmethod
    def from_json(cls, data) -> "OrderPage":
        # some deployments return a bare list instead of a page
        if isinstance(data, list):
            orders = [Order.from_json(o) for o in data]
            return cls(content=orders, total_elements=len(orders), total_pages=1)
        orders = [Order.from_json(o) for o in data.get("content") or []]
        return cls(
            content=orders,
            total_elements=int(data.get("totalElements", len(orders))),
            total_pages=int(data.get("totalPages", 1)),
        )


@dataclass(frozen=True)
class AdminOrderItem:
    id: int
    product_name: str
    quantity: int
    unit_price: Decimal

    @classmethod
    def from_json(cls, data: dict) -> "AdminOrderItem":
        return cls(
            id=int(data["id"]),
            product_name=data.get("productName", ""),
            quantity=int(data["quantity"]),
            unit_price=_money(data.get("unitPrice")),
        )


@dataclass(frozen=True)
class AdminOrder:
    id: int
    order_number: str
    username: str
    first_name: Optional[str]
    last_name: Optional[str]
    items: List[AdminOrderItem]
    total_amount: Decimal
    status: Union[OrderStatus, str]
    shipping_address: str
    billing_address: str
    payment_method: str
    created_at: Optional[datetime]

    @classmethod
    def from_json(cls, data: dict) -> "AdminOrder":
        return cls(
            id=int(data["id"]),
            order_number=str(data.get("orderNumber") or data["id"]),
            username=data.get("username", ""),
            first_name=data.get("firstName"),
            last_name=data.get("lastName"),
            items=[AdminOrderItem.from_json(i) for i in data.get("items") or []],
            total_amount=_money(data.get("totalAmount")),
            status=_status(data.get("status")),
            shipping_address=data.get("shippingAddress") or "",
            billing_address=data.get("billingAddress") or "",
            payment_method=data.get("paymentMethod") or "",
            created_at=_timestamp(data.get("createdAt")),
        )

    @property
    def customer_name(self) -> str:
        full = " ".join(p for p in (self.first_name, self.last_name) if p)
        return full or self.username


@dataclass(frozen=True)
class CheckoutRequest:
    items: List[CartItemRequest]
    shipping_address: str
    billing_address: str
    payment_method: str
    phone_number: str = ""

    def to_json(self) -> dict:
        body = {
            "items": [i.to_json() for i in self.items],
            "shippingAddress": self.shipping_address,
            "billingAddress": self.billing_address,
            "paymentMethod": self.payment_method,
        }
        if self.phone_number:
            body["phoneNumber"] = self.phone_number
        return body


@dataclass(frozen=True)
class Profile:
    id: Optional[int]
    username: str
    email: str
    display_name: str
    gender: Optional[str] = None
    date_of_birth: Optional[str] = None
    address: Optional[str] = None
    phone_number: Optional[str] = None

    @classmethod
    def from_json(cls, data: dict) -> "Profile":
        phone = data.get("phoneNumber")
        return cls(
            id=data.get("id"),
            username=data.get("username", ""),
            email=data.get("email", ""),
            display_name=data.get("displayName") or "",
            gender=data.get("gender"),
            date_of_birth=data.get("dateOfBirth"),
            address=data.get("address"),
            phone_number=str(phone) if phone is not None else None,
        )


@dataclass(frozen=True)
class ProfileUpdate:
    display_name: str
    gender: Optional[str] = None
    date_of_birth: Optional[str] = None  # YYYY-MM-DD
    address: Optional[str] = None
    phone_number: Optional[str] = None

    def to_json(self) -> dict:
        return {
            "displayName": self.display_name,
            "gender": self.gender,
            "dateOfBirth": self.date_of_birth,
            "address": self.address,
            "phoneNumber": self.phone_number,
        }
