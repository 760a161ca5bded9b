from __future__ import annotations

import datetime as dt
from typing import Any, Optional

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import JSON, Boolean, CheckConstraint, Date, ForeignKey, Integer, String, UniqueConstraint
from floorplan.infra.db import Base

ROOM_CHECK = "room IN ('roubenka', 'terasa', 'stodolka', 'cely_areal')"


class EventORM(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), default="")
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)

    # comptage manuel, indépendant de la liste d'hôtes
    paid_count: Mapped[int] = mapped_column(Integer, default=0)
    free_count: Mapped[int] = mapped_column(Integer, default=0)

    # autres champs de l'événement, renvoyés tels quels
    extra: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    tables: Mapped[list["EventTableORM"]] = relationship(
        back_populates="event", cascade="all, delete-orphan", order_by="EventTableORM.table_id"
    )
    guests: Mapped[list["EventGuestORM"]] = relationship(
        back_populates="event", cascade="all, delete-orphan", order_by="EventGuestORM.guest_id"
    )


class EventTableORM(Base):
    __tablename__ = "event_tables"

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    table_id: Mapped[int] = mapped_column(Integer, nullable=False)  # id local au plan
    table_name: Mapped[str] = mapped_column(String(100), nullable=False)
    room: Mapped[str] = mapped_column(String(50), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=4)
    extra: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    event: Mapped["EventORM"] = relationship(back_populates="tables")

    __table_args__ = (
        UniqueConstraint("event_id", "table_id", name="uq_event_table"),
        CheckConstraint("capacity > 0", name="ck_table_capacity"),
        CheckConstraint(ROOM_CHECK, name="ck_table_room"),
    )


class EventGuestORM(Base):
    __tablename__ = "event_guests"

    pk: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    guest_id: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(20), default="adult")
    nationality: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    is_paid: Mapped[bool] = mapped_column(Boolean, default=False)
    is_present: Mapped[bool] = mapped_column(Boolean, default=False)
    table_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # None = non placé
    reservation_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    person_index: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    extra: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    event: Mapped["EventORM"] = relationship(back_populates="guests")

    __table_args__ = (
        UniqueConstraint("event_id", "guest_id", name="uq_event_guest"),
        CheckConstraint("type IN ('adult', 'child')", name="ck_guest_type"),
    )


class ReservationORM(Base):
    __tablename__ = "reservations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(50), default="RECEIVED")
    contact_name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_nationality: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    persons: Mapped[list["ReservationPersonORM"]] = relationship(
        back_populates="reservation", cascade="all, delete-orphan", order_by="ReservationPersonORM.position"
    )


class ReservationPersonORM(Base):
    __tablename__ = "reservation_persons"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    reservation_id: Mapped[int] = mapped_column(ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[str] = mapped_column(String(20), default="adult")  # adult | child | infant
    menu: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    reservation: Mapped["ReservationORM"] = relationship(back_populates="persons")
