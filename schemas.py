from __future__ import annotations
from typing import Any, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Storefront Schemas
# Field names are camelCase on the wire and in the data file.


class StoreModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Product(StoreModel):
    product_id: str
    name: str
    quantity: int = Field(ge=0)
    price: float = Field(ge=0)
    image: Optional[str] = None


class ProductCreate(StoreModel):
    name: str
    quantity: int = Field(ge=0, default=0)
    price: float = Field(ge=0)
    image: Optional[str] = None


class ProductUpdate(StoreModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    name: Optional[str] = None
    quantity: Optional[int] = Field(ge=0, default=None)
    price: Optional[float] = Field(ge=0, default=None)
    image: Optional[str] = None


class CartItem(StoreModel):
    product_id: str
    quantity: int = Field(ge=1)
    ordered_price: float = Field(ge=0)
    name: Optional[str] = None
    current_price: Optional[float] = None


class OrderItem(StoreModel):
    product_id: str
    name: str
    quantity: int
    ordered_price: float
    price: float


class Order(StoreModel):
    order_id: str
    items: List[OrderItem]
    total_amount: float
    discount_applied: float = 0
    final_amount: float
    date: str
    applied_discount_code: Optional[str] = None


class StoreOrder(Order):
    user_id: str
    user_name: str


class PublicUser(StoreModel):
    user_id: str
    name: str
    email: str
    role: Literal["user", "admin"] = "user"
    orders: List[Order] = Field(default_factory=list)


class User(PublicUser):
    password: str

    def public(self) -> PublicUser:
        return PublicUser.model_validate(self.model_dump(exclude={"password"}))


class DiscountCode(StoreModel):
    code: str
    discount: int = Field(ge=0, le=100)
    is_available: bool = True


class Snapshot(StoreModel):
    products: List[Product] = Field(default_factory=list)
    users: List[User] = Field(default_factory=list)
    discount_codes: List[DiscountCode] = Field(default_factory=list)
    discount_order: Optional[int] = 5


# Request bodies

class CheckoutRequest(StoreModel):
    user_id: str = Field(min_length=1)
    cart_items: List[CartItem] = Field(min_length=1)
    discount_code: Optional[str] = None


class SignupRequest(StoreModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class LoginRequest(StoreModel):
    email: str
    password: str


class EligibilityRequest(StoreModel):
    user_id: str


class DiscountOrderRequest(StoreModel):
    user_id: str
    discount_order: Any = None


class CheckoutOutcome(StoreModel):
    order: Order
    new_discount_code: Optional[DiscountCode] = None
