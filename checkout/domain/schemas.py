# checkout/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Generic, List, TypeVar
from decimal import Decimal
from datetime import datetime

from checkout.domain.enums import OrderStatus

T = TypeVar("T")


class ItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: int = Field(..., gt=0, description="ID produktu (musi byc > 0)")
    quantity: int = Field(..., gt=0, description="Ilosc produktu (musi byc > 0)")


class ItemUpdateIn(BaseModel):
    """Ilosc <= 0 usuwa pozycje."""

    quantity: int


class ApplyPromoIn(BaseModel):
    promo_code: str = Field(..., min_length=1, max_length=64)


class CartItemOut(BaseModel):
    """Schema dla produktu w koszyku (response)."""

    id: int
    product_id: int
    product_name: str
    product_sku: str
    quantity: int
    unit_price: Decimal
    original_price: Decimal
    total_price: Decimal
    discount: Decimal


class CartOut(BaseModel):
    """Schema dla koszyka (response)."""

    cart_id: int | None
    user_id: int | None
    items: List[CartItemOut]
    sub_total: Decimal
    total_price_before_discount: Decimal
    total_discount: Decimal
    total_quantity: int
    applied_promo_code: str | None = None
    promo_code_discount_percentage: Decimal | None = None
    promo_code_discount_amount: Decimal
    final_amount: Decimal
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class CartCountOut(BaseModel):
    count: int


class WhatsAppOrderIn(BaseModel):
    """Numer sklepu (phone_number) i dane klienta do wiadomosci."""

    phone_number: str = Field(..., min_length=1, max_length=50)
    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_phone: str = Field(..., min_length=1, max_length=50)


class QuickOrderIn(WhatsAppOrderIn):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(1, gt=0)


class WhatsAppLinkOut(BaseModel):
    whatsapp_url: str
    message: str


class UserCreate(BaseModel):
    """Schema dla tworzenia uzytkownika."""

    id: int = Field(..., gt=0, description="ID uzytkownika (musi byc > 0)")
    name: str = Field(..., min_length=1, max_length=100, description="Imie uzytkownika")


class UserRead(BaseModel):
    """Schema dla uzytkownika (response)."""

    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class OrderCreate(BaseModel):
    """Dane klienta i dostawy + opcjonalna kwota z portfela."""

    customer_name: str = Field(..., min_length=1, max_length=200)
    customer_phone: str = Field(..., min_length=1, max_length=50)
    delivery_address: str = Field(..., min_length=1, max_length=500)
    latitude: float | None = None
    longitude: float | None = None
    delivery_notes: str | None = None
    use_wallet_amount: Decimal | None = Field(None, ge=0, decimal_places=2)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderItemOut(BaseModel):
    product_id: int
    product_name: str
    product_sku: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal


class OrderOut(BaseModel):
    """Schema dla zamowienia (response)."""

    id: int
    order_number: str
    user_id: int
    customer_name: str
    customer_phone: str
    delivery_address: str
    latitude: float | None = None
    longitude: float | None = None
    delivery_notes: str | None = None
    items: List[OrderItemOut]
    sub_total: Decimal
    promo_code_discount: Decimal | None = None
    wallet_discount: Decimal | None = None
    total_amount: Decimal
    status: OrderStatus
    bonus_awarded: bool
    bonus_amount: Decimal | None = None
    created_at: datetime
    updated_at: datetime | None = None
    confirmed_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class OrderListItemOut(BaseModel):
    id: int
    order_number: str
    customer_name: str
    total_amount: Decimal
    status: OrderStatus
    items_count: int
    created_at: datetime


class PageOut(BaseModel, Generic[T]):
    items: List[T]
    total_count: int
    page: int
    page_size: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


class WalletOut(BaseModel):
    id: int
    user_id: int
    balance: Decimal


class WalletTransactionOut(BaseModel):
    id: int
    type: str
    amount: Decimal
    balance_before: Decimal
    balance_after: Decimal
    description: str
    order_id: int | None = None
    created_at: datetime


class PromoCodeCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=64)
    discount_percentage: Decimal = Field(..., description="Procent rabatu (0, 100]")
    expiration_date: datetime | None = None
    is_active: bool = True
    usage_limit: int | None = Field(None, ge=0)


class PromoCodeUpdate(BaseModel):
    """Aktualizacja czesciowa - pola None sa pomijane."""

    code: str | None = Field(None, min_length=1, max_length=64)
    discount_percentage: Decimal | None = None
    expiration_date: datetime | None = None
    is_active: bool | None = None
    usage_limit: int | None = Field(None, ge=0)


class PromoCodeOut(BaseModel):
    id: int
    code: str
    discount_percentage: Decimal
    expiration_date: datetime | None = None
    is_active: bool
    usage_limit: int | None = None
    current_usage_count: int
    created_at: datetime
    updated_at: datetime | None = None


class PromoCodeValidationOut(BaseModel):
    is_valid: bool
    error_message: str | None = None
    promo_code: PromoCodeOut | None = None


class PromoCodeUsageOut(BaseModel):
    id: int
    promo_code_id: int
    promo_code: str
    user_id: int | None = None
    cart_id: int | None = None
    order_id: int | None = None
    discount_amount: Decimal
    order_total: Decimal
    used_at: datetime
