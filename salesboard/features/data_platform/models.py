"""Read-only ORM mappings of the point-of-sale marts.

The tables are produced by the upstream ETL; this service only reads them to
build aggregate queries. They live in two schemas:

- ``mart``: facts (sale lines, transaction counts, promo slices)
- ``portal``: lookups (SKU classification, promo campaigns)

Grain:
- SaleLine: one row per (sale_date, toko, SKU variant)
- TransactionCount: one row per (sale_date, toko, payment_type)
- PromoSale: one row per (sale_date, toko, campaign_code, spg)
"""

import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, Date, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from salesboard.core.database import Base

MART_SCHEMA = "mart"
PORTAL_SCHEMA = "portal"


# ============================================================================
# FACT TABLES
# ============================================================================


class SaleLine(Base):
    """Sale line fact: units and revenue per store/day/SKU variant.

    Attributes:
        id: Surrogate primary key.
        sale_date: Business date of the sale.
        toko: Store name.
        branch: Branch (regional grouping of stores).
        kode: Fine-grained product code (SKU incl. size).
        kode_besar: Coarse product code (article without size).
        kode_mix: Mix key shared by colorways of an article.
        article: Article display name.
        series: Product series.
        gender: Target gender.
        tier: Price tier.
        color: Colorway.
        size: Size label.
        pairs: Units sold (footwear pairs), non-negative.
        revenue: Net revenue, non-negative.
    """

    __tablename__ = "iseller_daily"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    sale_date: Mapped[datetime.date] = mapped_column(Date, index=True)
    toko: Mapped[str] = mapped_column(String(120))
    branch: Mapped[str | None] = mapped_column(String(80), nullable=True)
    kode: Mapped[str | None] = mapped_column(String(60), nullable=True)
    kode_besar: Mapped[str | None] = mapped_column(String(60), nullable=True)
    kode_mix: Mapped[str | None] = mapped_column(String(60), nullable=True)
    article: Mapped[str | None] = mapped_column(String(200), nullable=True)
    series: Mapped[str | None] = mapped_column(String(80), nullable=True)
    gender: Mapped[str | None] = mapped_column(String(40), nullable=True)
    tier: Mapped[str | None] = mapped_column(String(20), nullable=True)
    color: Mapped[str | None] = mapped_column(String(80), nullable=True)
    size: Mapped[str | None] = mapped_column(String(20), nullable=True)
    pairs: Mapped[int] = mapped_column(Integer, default=0)
    revenue: Mapped[Decimal] = mapped_column(Numeric(16, 2), default=0)

    __table_args__ = (
        Index("ix_iseller_daily_date_toko", "sale_date", "toko"),
        {"schema": MART_SCHEMA},
    )


class TransactionCount(Base):
    """Transaction fact: receipt counts per store/day/payment type.

    Carries no product columns, so product filters never apply to it.

    Attributes:
        id: Surrogate primary key.
        sale_date: Business date.
        toko: Store name.
        branch: Branch.
        payment_type: Payment method.
        txn_count: Number of receipts.
    """

    __tablename__ = "iseller_txn_agg"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    sale_date: Mapped[datetime.date] = mapped_column(Date, index=True)
    toko: Mapped[str] = mapped_column(String(120))
    branch: Mapped[str | None] = mapped_column(String(80), nullable=True)
    payment_type: Mapped[str | None] = mapped_column(String(60), nullable=True)
    txn_count: Mapped[int] = mapped_column(Integer, default=0)

    __table_args__ = ({"schema": MART_SCHEMA},)


class PromoSale(Base):
    """Promo fact: promo-qualifying volume per store/day/campaign/staff.

    Attributes:
        id: Surrogate primary key.
        sale_date: Business date.
        toko: Store name.
        branch: Branch.
        campaign_code: Promo campaign code.
        spg: Sales promotion staff id ("Unknown" when unattributed).
        qty_promo: Units sold under the promo.
        qty_all: All units on the same receipts.
        revenue: Revenue on the same receipts.
        discount_total: Discount granted.
        txn_count: Receipts.
    """

    __tablename__ = "mv_iseller_promo"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    sale_date: Mapped[datetime.date] = mapped_column(Date, index=True)
    toko: Mapped[str] = mapped_column(String(120))
    branch: Mapped[str | None] = mapped_column(String(80), nullable=True)
    campaign_code: Mapped[str | None] = mapped_column(String(60), nullable=True)
    spg: Mapped[str | None] = mapped_column(String(120), nullable=True)
    qty_promo: Mapped[int] = mapped_column(Integer, default=0)
    qty_all: Mapped[int] = mapped_column(Integer, default=0)
    revenue: Mapped[Decimal] = mapped_column(Numeric(16, 2), default=0)
    discount_total: Mapped[Decimal] = mapped_column(Numeric(16, 2), default=0)
    txn_count: Mapped[int] = mapped_column(Integer, default=0)

    __table_args__ = ({"schema": MART_SCHEMA},)


# ============================================================================
# LOOKUP TABLES
# ============================================================================


class SkuClassification(Base):
    """Classification lookup keyed by coarse product code.

    Attributes:
        kode_besar: Coarse product code (primary key).
        tipe: Coarse classification (e.g. "jepit", "fashion").
    """

    __tablename__ = "kodemix"

    kode_besar: Mapped[str] = mapped_column(String(60), primary_key=True)
    tipe: Mapped[str | None] = mapped_column(String(60), nullable=True)

    __table_args__ = ({"schema": PORTAL_SCHEMA},)


class PromoCampaign(Base):
    """Promo campaign lookup.

    Attributes:
        campaign_code: Campaign code (primary key).
        campaign_name: Display name.
    """

    __tablename__ = "promo_campaign"

    campaign_code: Mapped[str] = mapped_column(String(60), primary_key=True)
    campaign_name: Mapped[str] = mapped_column(String(200))

    __table_args__ = ({"schema": PORTAL_SCHEMA},)
