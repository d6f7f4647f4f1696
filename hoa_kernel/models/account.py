"""
Module: hoa_kernel.models.account
Responsibility: ORM persistence for an association's chart of accounts, the
    target of every journal line.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - account_code is unique per association.
    - Structural fields (account_code, account_type, normal_balance) are
      immutable once posted lines reference the account (db/immutability.py).

Failure modes:
    - IntegrityError on duplicate (association_id, account_code).
    - ImmutabilityViolationError when a structural field changes after use.

Audit relevance:
    current_balance is a running total maintained by posting.  The ledger
    selector can recompute it from posted lines at any time.
"""

from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hoa_kernel.db.base import TrackedBase, UUIDString


class AccountType(str, Enum):
    """Types of accounts in the chart of accounts."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class NormalBalance(str, Enum):
    """Normal balance side for an account."""

    DEBIT = "debit"
    CREDIT = "credit"


# Conventional normal side for each account type
DEFAULT_NORMAL_BALANCE: dict[AccountType, NormalBalance] = {
    AccountType.ASSET: NormalBalance.DEBIT,
    AccountType.EXPENSE: NormalBalance.DEBIT,
    AccountType.LIABILITY: NormalBalance.CREDIT,
    AccountType.EQUITY: NormalBalance.CREDIT,
    AccountType.REVENUE: NormalBalance.CREDIT,
}


class GLAccount(TrackedBase):
    """
    General ledger account belonging to one association.

    Contract:
        Accounts are never hard-deleted; deactivation sets is_active=False.
        Inactive accounts cannot receive new journal lines.

    Guarantees:
        - account_type is one of ASSET, LIABILITY, EQUITY, REVENUE, EXPENSE.
        - normal_balance is DEBIT or CREDIT.

    Non-goals:
        - Deactivation guards (children, referencing lines) live in
          GLAccountService, not here.
    """

    __tablename__ = "gl_accounts"

    __table_args__ = (
        UniqueConstraint(
            "association_id", "account_code", name="uq_gl_account_association_code"
        ),
        Index("idx_gl_account_association", "association_id"),
        Index("idx_gl_account_parent", "parent_account_id"),
    )

    association_id: Mapped[str] = mapped_column(String(64), nullable=False)

    account_code: Mapped[str] = mapped_column(String(50), nullable=False)

    account_name: Mapped[str] = mapped_column(String(255), nullable=False)

    account_type: Mapped[AccountType] = mapped_column(String(20), nullable=False)

    account_subtype: Mapped[str | None] = mapped_column(String(50), nullable=True)

    normal_balance: Mapped[NormalBalance] = mapped_column(String(10), nullable=False)

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    parent_account_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("gl_accounts.id"),
        nullable=True,
    )

    current_balance: Mapped[Decimal] = mapped_column(
        Numeric(38, 9),
        nullable=False,
        default=Decimal("0"),
    )

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    is_system_account: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    parent: Mapped["GLAccount | None"] = relationship(
        remote_side="GLAccount.id",
        foreign_keys=[parent_account_id],
    )

    def __repr__(self) -> str:
        return f"<GLAccount {self.account_code} {self.account_name}>"

    @property
    def is_debit_normal(self) -> bool:
        return self.normal_balance == NormalBalance.DEBIT
