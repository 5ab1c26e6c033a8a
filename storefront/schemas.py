from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from storefront.domain import CustomerInfo, LineItem
from storefront.reconciler import to_decimal


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class LineItemIn(BaseModel):
    id: str
    name: str
    price: float = Field(ge=0, allow_inf_nan=False)
    quantity: int = Field(ge=1)

    def to_domain(self) -> LineItem:
        return LineItem(id=self.id, name=self.name, price=to_decimal(self.price), quantity=self.quantity)


class CustomerHint(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


class CustomerInfoIn(BaseModel):
    name: Optional[str] = ""
    address: Optional[str] = ""
    city: Optional[str] = ""
    zip: Optional[str] = ""
    email: Optional[str] = None

    def to_domain(self) -> CustomerInfo:
        return CustomerInfo(
            name=(self.name or "").strip(),
            address=(self.address or "").strip(),
            city=(self.city or "").strip(),
            zip=(self.zip or "").strip(),
            email=self.email.strip() if self.email else None,
        )


class PaymentIntentRequest(CamelModel):
    amount: Optional[float] = Field(default=None, allow_inf_nan=False)
    currency: Optional[str] = None
    items: List[LineItemIn] = []
    customer_info: Optional[CustomerHint] = Field(default=None, alias="customerInfo")


class PaymentIntentResponse(CamelModel):
    client_secret: str = Field(alias="clientSecret")
    payment_intent_id: str = Field(alias="paymentIntentId")
    amount: int
    currency: str
    status: Literal["requires_payment_method", "processing", "succeeded"]


class PaymentConfirmationRequest(CamelModel):
    payment_intent_id: Optional[str] = Field(default=None, alias="paymentIntentId")
    payment_method_type: Optional[str] = Field(default="card", alias="paymentMethodType")
    customer_info: CustomerInfoIn = Field(default_factory=CustomerInfoIn, alias="customerInfo")
    items: List[LineItemIn] = []
    amount: Optional[float] = Field(default=None, allow_inf_nan=False)


class PaymentConfirmationResponse(CamelModel):
    order_id: str = Field(alias="orderId")
    payment_intent_id: str = Field(alias="paymentIntentId")
    status: Literal["succeeded"]
    amount: float
    currency: str
    receipt_url: str = Field(alias="receiptUrl")
    timestamp: str


class ManualOrderItem(BaseModel):
    id: Optional[str] = None
    product_id: Optional[str] = None
    name: Optional[str] = None
    product_name: Optional[str] = None
    price: Optional[float] = Field(default=None, allow_inf_nan=False)
    product_price: Optional[float] = Field(default=None, allow_inf_nan=False)
    quantity: int = Field(ge=1)


class ManualOrderRequest(BaseModel):
    order_id: Optional[str] = None
    payment_intent_id: Optional[str] = None
    status: str = "completed"
    total_amount: Optional[Decimal] = None
    currency: str = "usd"
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    shipping_address: str = "N/A"
    shipping_city: str = "N/A"
    shipping_zip: str = "N/A"
    payment_method: str = "manual"
    is_development_order: bool = False
    items: List[ManualOrderItem] = []


class ProductIn(BaseModel):
    name: str
    slug: str
    description: str
    details: str
    price: Decimal = Field(gt=0)
    stock_quantity: int = 0
    ingredients: List[str] = []
    images: List[str] = []
