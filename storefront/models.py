from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Integer, JSON, Numeric, String, Text
)
from sqlalchemy.orm import relationship

from storefront.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class PaymentIntentRecord(Base):
    __tablename__ = "payment_intents"

    id = Column(String, primary_key=True)          # pi_mock_...
    client_secret = Column(String, unique=True)
    amount = Column(Integer)                       # minor units
    currency = Column(String)
    status = Column(String)                        # requires_payment_method | processing | succeeded
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String, unique=True, index=True)
    payment_intent_id = Column(String, index=True)
    status = Column(String)                        # succeeded | completed (manual)
    total_amount = Column(Numeric(10, 2))
    currency = Column(String, default="usd")
    customer_name = Column(String)
    customer_email = Column(String, nullable=True)
    shipping_address = Column(String)
    shipping_city = Column(String)
    shipping_zip = Column(String)
    payment_method = Column(String)                # card | bypass | manual
    is_development_order = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, index=True)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), index=True)
    product_id = Column(String)
    product_name = Column(String)
    product_price = Column(Numeric(10, 2))
    quantity = Column(Integer)
    line_total = Column(Numeric(10, 2))

    order = relationship("Order", back_populates="items")


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=False)
    details = Column(Text, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    images = Column(JSON, default=list)
    ingredients = Column(JSON, default=list)
    stock_quantity = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    reviews = relationship("Review", back_populates="product", cascade="all, delete-orphan")


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("products.id"), index=True, nullable=False)
    reviewer_name = Column(String(255), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False)
    is_verified = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    product = relationship("Product", back_populates="reviews")
