"""ORM Models for the tables the costing engine reads -- SQLAlchemy 2.0"""
import uuid
from datetime import datetime, date
from typing import Optional
from sqlalchemy import (
    String, Text, Integer, Numeric, DateTime, Date, ForeignKey,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
from washroom_estimator.db import Base


def gen_uuid():
    return str(uuid.uuid4())


# ── VENDOR RATE CARD (execution services catalog) ───────────────────────────
class VendorCategory(Base):
    __tablename__ = "vendor_categories"
    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=gen_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    sequence: Mapped[int] = mapped_column(Integer, default=0)
    items: Mapped[list["VendorItem"]] = relationship("VendorItem", back_populates="category")


class VendorItem(Base):
    __tablename__ = "vendor_items"
    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=gen_uuid)
    category_id: Mapped[Optional[str]] = mapped_column(UUID(as_uuid=False), ForeignKey("vendor_categories.id"))
    sl_no: Mapped[Optional[str]] = mapped_column(String(20))
    item_code: Mapped[Optional[str]] = mapped_column(String(50))
    scope_of_work: Mapped[str] = mapped_column(Text, nullable=False)
    measuring_unit: Mapped[Optional[str]] = mapped_column(String(50))
    # e.g. "$rate * $floor_area / 2"; NULL → unit rule
    cost_formula: Mapped[Optional[str]] = mapped_column(Text)
    category: Mapped[Optional["VendorCategory"]] = relationship("VendorCategory", back_populates="items")
    rate_cards: Mapped[list["VendorRateCard"]] = relationship("VendorRateCard", back_populates="item")


class VendorRateCard(Base):
    __tablename__ = "vendor_rate_cards"
    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=gen_uuid)
    item_id: Mapped[str] = mapped_column(UUID(as_uuid=False), ForeignKey("vendor_items.id"), nullable=False)
    vendor_rate1: Mapped[Optional[float]] = mapped_column(Numeric(12, 2))
    vendor_rate2: Mapped[Optional[float]] = mapped_column(Numeric(12, 2))
    vendor_rate3: Mapped[Optional[float]] = mapped_column(Numeric(12, 2))
    client_rate: Mapped[float] = mapped_column(Numeric(12, 2), nullable=False, default=0)
    currency: Mapped[Optional[str]] = mapped_column(String(10), default="INR")
    effective_date: Mapped[Optional[date]] = mapped_column(Date)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    item: Mapped["VendorItem"] = relationship("VendorItem", back_populates="rate_cards")


# ── BRANDS & PRODUCTS ────────────────────────────────────────────────────────
class Brand(Base):
    __tablename__ = "brands"
    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=gen_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    products: Mapped[list["Product"]] = relationship("Product", back_populates="brand")


class Product(Base):
    __tablename__ = "products"
    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=gen_uuid)
    brand_id: Mapped[str] = mapped_column(UUID(as_uuid=False), ForeignKey("brands.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(100))
    mrp: Mapped[float] = mapped_column(Numeric(12, 2), default=0)
    landing_price: Mapped[float] = mapped_column(Numeric(12, 2), default=0)
    client_price: Mapped[float] = mapped_column(Numeric(12, 2), default=0)
    quotation_price: Mapped[float] = mapped_column(Numeric(12, 2), default=0)
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    brand: Mapped["Brand"] = relationship("Brand", back_populates="products")


# ── CALCULATOR ───────────────────────────────────────────────────────────────
class Fixture(Base):
    __tablename__ = "fixtures"
    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=gen_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)  # electrical | plumbing | additional
    client_price: Mapped[float] = mapped_column(Numeric(12, 2), default=0)


class AppSettings(Base):
    __tablename__ = "settings"
    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=gen_uuid)
    plumbing_rate_per_sqft: Mapped[float] = mapped_column(Numeric(10, 2), default=150)
    tile_cost_per_unit: Mapped[float] = mapped_column(Numeric(10, 2), default=80)
    tiling_labor_per_sqft: Mapped[float] = mapped_column(Numeric(10, 2), default=85)
    breakage_percentage: Mapped[float] = mapped_column(Numeric(5, 2), default=10)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
