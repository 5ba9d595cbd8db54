"""SQLAlchemy ORM models for marketplace persistence."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, Float, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .utils import utc_now


class Base(DeclarativeBase):
    pass


class PricingRule(Base):
    __tablename__ = "pricing_rules"

    vehicle_type: Mapped[str] = mapped_column(String, primary_key=True)
    pricing_model: Mapped[str] = mapped_column(String, nullable=False)
    base_fare_multiplier: Mapped[float] = mapped_column(Float, nullable=False)
    per_km_multiplier: Mapped[float] = mapped_column(Float, nullable=False)
    min_fare_multiplier: Mapped[float] = mapped_column(Float, nullable=False)
    range_tiers: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    free_loading_minutes: Mapped[float] = mapped_column(Float, default=45)
    demurrage_multiplier: Mapped[float] = mapped_column(Float, default=0.1)
    fuel_type: Mapped[str] = mapped_column(String, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    updated_at: Mapped[datetime] = mapped_column(
        default=lambda: utc_now(),
        onupdate=lambda: utc_now(),
    )


class SystemSetting(Base):
    __tablename__ = "system_settings"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=False)
    updated_by: Mapped[str | None] = mapped_column(String, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        default=lambda: utc_now(),
        onupdate=lambda: utc_now(),
    )


class Driver(Base):
    __tablename__ = "drivers"

    driver_id: Mapped[str] = mapped_column(String, primary_key=True)
    vehicle_type: Mapped[str] = mapped_column(String, nullable=False)
    is_online: Mapped[bool] = mapped_column(Boolean, default=False)
    verified: Mapped[bool] = mapped_column(Boolean, default=False)
    wallet_locked: Mapped[bool] = mapped_column(Boolean, default=False)
    wallet_lock_reason: Mapped[str | None] = mapped_column(String, nullable=True)
    rating: Mapped[float] = mapped_column(Float, default=5.0)
    total_trips: Mapped[int] = mapped_column(Integer, default=0)
    total_earnings: Mapped[int] = mapped_column(Integer, default=0)
    push_token: Mapped[str | None] = mapped_column(String, nullable=True)
    lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    cell: Mapped[str | None] = mapped_column(String, nullable=True)
    location_updated_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=lambda: utc_now())

    __table_args__ = (
        Index("idx_driver_cell", "cell"),
        Index("idx_driver_online_vehicle", "is_online", "vehicle_type"),
    )


class UserProfile(Base):
    __tablename__ = "user_profiles"

    user_id: Mapped[str] = mapped_column(String, primary_key=True)
    push_token: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=lambda: utc_now())
    updated_at: Mapped[datetime] = mapped_column(
        default=lambda: utc_now(),
        onupdate=lambda: utc_now(),
    )


class Trip(Base):
    __tablename__ = "trips"

    trip_id: Mapped[str] = mapped_column(String, primary_key=True)
    customer_id: Mapped[str] = mapped_column(String, nullable=False)
    driver_id: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False)
    vehicle_type: Mapped[str] = mapped_column(String, nullable=False)
    request: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    distance_km: Mapped[float] = mapped_column(Float, nullable=False)
    duration_min: Mapped[float] = mapped_column(Float, nullable=False)
    polyline: Mapped[str] = mapped_column(Text, default="")
    fare: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    negotiated_fare: Mapped[int | None] = mapped_column(Integer, nullable=True)
    final_fare: Mapped[int | None] = mapped_column(Integer, nullable=True)
    driver_earnings: Mapped[int | None] = mapped_column(Integer, nullable=True)
    negotiation_history: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    cancelled_by: Mapped[str | None] = mapped_column(String, nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(String, nullable=True)
    version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=lambda: utc_now())
    accepted_at: Mapped[datetime | None] = mapped_column(nullable=True)
    arrived_at: Mapped[datetime | None] = mapped_column(nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        default=lambda: utc_now(),
        onupdate=lambda: utc_now(),
    )

    __table_args__ = (
        Index("idx_trip_status", "status"),
        Index("idx_trip_customer", "customer_id"),
        Index("idx_trip_driver", "driver_id"),
    )
