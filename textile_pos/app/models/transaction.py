from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from textile_pos.app.core.database import Base


class TransactionType(str, enum.Enum):
    SALE = "SALE"
    PURCHASE = "PURCHASE"
    RETURN = "RETURN"


class PaymentMethod(str, enum.Enum):
    CASH = "CASH"
    CARD = "CARD"
    UPI = "UPI"
    OTHER = "OTHER"


class Transaction(Base):
    """A finalized sale, purchase or return.

    Rows are written once at finalization and never updated: reports read
    the frozen line values, not the current product master.
    """

    __tablename__ = "transactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    kind: Mapped[TransactionType] = mapped_column(
        Enum(TransactionType), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    customer_phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    payment_method: Mapped[PaymentMethod | None] = mapped_column(
        Enum(PaymentMethod), nullable=True
    )
    amount_received: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=20, scale=4), nullable=True
    )
    change_due: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=Decimal("0")
    )

    # Purchases: supplier and the supplier's own bill number
    supplier_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True
    )
    supplier_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    supplier_bill_no: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Returns: the sale this return reverses
    original_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("transactions.id"), nullable=True
    )
    # Token of the terminal ledger that produced this row
    ledger_token: Mapped[str | None] = mapped_column(String(32), unique=True, nullable=True)

    item_count: Mapped[int] = mapped_column(Integer, nullable=False)
    total_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    sub_total: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=4), nullable=False)
    total_discount: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False
    )
    total_tax: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=4), nullable=False)
    grand_total: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False
    )

    original: Mapped[Transaction | None] = relationship(remote_side=[id])
    lines: Mapped[list[TransactionLine]] = relationship(
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionLine.position",
    )

    __table_args__ = (
        Index("ix_transactions_kind_created", "kind", "created_at"),
        Index("ix_transactions_original", "original_id"),
    )

    @property
    def original_number(self) -> str | None:
        return self.original.number if self.original else None


class TransactionLine(Base):
    __tablename__ = "transaction_lines"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    transaction_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    # Plain string: the product may be edited or deleted later
    product_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=4), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    line_discount: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False
    )
    tax_rate: Mapped[Decimal | None] = mapped_column(Numeric(precision=5, scale=2), nullable=True)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=4), nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=4), nullable=False)
    unit_cost: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=20, scale=4), nullable=True
    )
    retail_rate: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=20, scale=4), nullable=True
    )

    transaction: Mapped[Transaction] = relationship(back_populates="lines")

    __table_args__ = (Index("ix_transaction_lines_txn", "transaction_id"),)


class SequenceCounter(Base):
    """One row per named sequence, incremented under a row lock."""

    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)
    next_value: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
