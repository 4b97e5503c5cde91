"""Relational schema for entities and observations."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import (
    Boolean,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..models import MAX_ENTITY_CODE_LENGTH


class Base(DeclarativeBase):
    pass


class EntityRow(Base):
    __tablename__ = "entities"

    code: Mapped[str] = mapped_column(String(MAX_ENTITY_CODE_LENGTH), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    has_high_frequency_source: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class InflationRow(Base):
    """One inflation rate; ``period`` is ``YYYY`` or ``YYYY-MM``.

    ``granularity``, ``year`` and ``period_start`` (month index of the first
    covered month) are derived from the period at write time so range and
    cross-granularity lookups never compare period strings.
    """

    __tablename__ = "inflation_observations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entity_code: Mapped[str] = mapped_column(
        ForeignKey("entities.code"),
        nullable=False,
    )
    period: Mapped[str] = mapped_column(String(7), nullable=False)
    granularity: Mapped[str] = mapped_column(String(8), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    period_start: Mapped[int] = mapped_column(Integer, nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False)

    __table_args__ = (
        UniqueConstraint("entity_code", "period", name="uq_inflation_entity_period"),
        Index("ix_inflation_entity_year_granularity", "entity_code", "year", "granularity"),
        Index("ix_inflation_granularity_start", "granularity", "period_start"),
    )


class IncomeRow(Base):
    __tablename__ = "income_observations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entity_code: Mapped[str] = mapped_column(
        ForeignKey("entities.code"),
        nullable=False,
    )
    period: Mapped[str] = mapped_column(String(4), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    period_start: Mapped[int] = mapped_column(Integer, nullable=False)
    ppp_value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    lcu_value: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    growth_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    __table_args__ = (
        UniqueConstraint("entity_code", "period", name="uq_income_entity_period"),
        Index("ix_income_year", "year"),
    )


entities_table = EntityRow.__table__
inflation_table = InflationRow.__table__
income_table = IncomeRow.__table__
metadata = Base.metadata


__all__ = [
    "Base",
    "EntityRow",
    "InflationRow",
    "IncomeRow",
    "entities_table",
    "inflation_table",
    "income_table",
    "metadata",
]
