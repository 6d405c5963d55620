"""ORM Models for FoamBoss Estimator — SQLAlchemy 2.0"""
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, Float, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from foamboss.db import Base


def gen_uuid():
    return str(uuid.uuid4())


# ── ESTIMATES ─────────────────────────────────────────────────────────────────
class EstimateORM(Base):
    __tablename__ = "estimates"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=gen_uuid)
    business_id: Mapped[Optional[str]] = mapped_column(String(64), index=True)
    job_name: Mapped[Optional[str]] = mapped_column(String(255))
    customer_name: Mapped[Optional[str]] = mapped_column(String(255))
    building_type: Mapped[Optional[str]] = mapped_column(String(100))
    default_foam: Mapped[Optional[str]] = mapped_column(String(20))
    miles: Mapped[Optional[float]] = mapped_column(Float)
    # Assembly inputs, pricing snapshot and computed totals as serialized by pydantic
    assemblies: Mapped[list] = mapped_column(JSON, default=list)
    pricing: Mapped[dict] = mapped_column(JSON, default=dict)
    totals: Mapped[dict] = mapped_column(JSON, default=dict)
    grand_total: Mapped[float] = mapped_column(Float, default=0.0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


# ── BUSINESS SETTINGS ─────────────────────────────────────────────────────────
class BusinessSettingsORM(Base):
    __tablename__ = "business_settings"
    business_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    company: Mapped[dict] = mapped_column(JSON, default=dict)
    pricing: Mapped[dict] = mapped_column(JSON, default=dict)
    users: Mapped[list] = mapped_column(JSON, default=list)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


# ── MATERIALS ─────────────────────────────────────────────────────────────────
class MaterialORM(Base):
    __tablename__ = "materials"
    __table_args__ = (Index("ix_materials_business_type", "business_id", "material_type"),)
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=gen_uuid)
    business_id: Mapped[Optional[str]] = mapped_column(String(64), index=True)
    material_name: Mapped[str] = mapped_column(String(255), nullable=False)
    material_type: Mapped[str] = mapped_column(String(20), nullable=False)
    unit_price: Mapped[float] = mapped_column(Float, default=0.0)
    yield_per_unit: Mapped[float] = mapped_column(Float, default=0.0)
    unit_type: Mapped[str] = mapped_column(String(20), default="set")
    quantity_on_hand: Mapped[float] = mapped_column(Float, default=0.0)
    reorder_level: Mapped[Optional[float]] = mapped_column(Float)
    cost_per_bdft: Mapped[Optional[float]] = mapped_column(Float)
    notes: Mapped[Optional[str]] = mapped_column(Text)
