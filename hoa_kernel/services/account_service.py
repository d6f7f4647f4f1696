"""
GLAccountService -- chart-of-accounts maintenance and running balances.

Responsibility:
    Creates, updates and deactivates an association's GL accounts, seeds the
    default HOA chart, and applies posted lines to ``current_balance``.

Architecture position:
    Kernel > Services -- imperative shell.  Called by JournalEntryService
    (balance application, account checks) and by JournalEntryLedger.

Invariants enforced:
    - account_code is unique per association (checked here, backed by a
      UNIQUE constraint).
    - Accounts are soft-deleted.  Deactivation is refused while the account
      has active children or any journal lines.
    - Balance application is a single atomic SQL increment, so concurrent
      postings to the same account never lose an update.

Failure modes:
    - AccountNotFoundError, DuplicateAccountCodeError,
      AccountHasChildrenError, AccountReferencedError.
    - ValidationError for an unknown account type or normal balance.
"""

from decimal import Decimal
from typing import Iterable
from uuid import UUID

from sqlalchemy import case, exists, func, select, update

from hoa_kernel.domain.dtos import GLAccountSpec
from hoa_kernel.exceptions import (
    AccountHasChildrenError,
    AccountNotFoundError,
    AccountReferencedError,
    DuplicateAccountCodeError,
    InvalidAccountError,
    ValidationError,
)
from hoa_kernel.logging_config import get_logger
from hoa_kernel.models.account import (
    DEFAULT_NORMAL_BALANCE,
    AccountType,
    GLAccount,
    NormalBalance,
)
from hoa_kernel.models.journal import JournalEntryLine
from hoa_kernel.services.base import BaseService, as_uuid

logger = get_logger("services.accounts")

_UPDATABLE_FIELDS = frozenset(
    {
        "account_code",
        "account_name",
        "account_type",
        "account_subtype",
        "normal_balance",
        "description",
        "parent_account_id",
    }
)


def _account_type(value: str) -> AccountType:
    try:
        return AccountType(value)
    except ValueError:
        raise ValidationError(f"Invalid account type: '{value}'") from None


def _normal_balance(value: str) -> NormalBalance:
    try:
        return NormalBalance(value)
    except ValueError:
        raise ValidationError(f"Invalid normal balance: '{value}'") from None


class GLAccountService(BaseService[GLAccount]):
    """
    Write service for GL accounts.

    Contract:
        Flush-only.  Every mutation is visible to the caller's transaction
        and committed by the caller.
    """

    def get_account(self, account_id: UUID | str) -> GLAccount:
        account = self.session.get(GLAccount, as_uuid(account_id))
        if account is None:
            raise AccountNotFoundError(str(account_id))
        return account

    def _code_taken(self, association_id: str, account_code: str) -> bool:
        return bool(
            self.session.execute(
                select(
                    exists().where(
                        GLAccount.association_id == association_id,
                        GLAccount.account_code == account_code,
                    )
                )
            ).scalar()
        )

    def _check_parent(self, association_id: str, parent_id: UUID | str | None) -> UUID | None:
        if parent_id is None:
            return None
        parent = self.get_account(parent_id)
        if parent.association_id != association_id:
            raise InvalidAccountError(
                str(parent.id), "parent account belongs to another association"
            )
        return parent.id

    def _check_no_cycle(self, account: GLAccount, parent_id: UUID | None) -> None:
        """Reject a parent that is the account itself or one of its descendants."""
        seen = set()
        current = parent_id
        while current is not None and current not in seen:
            if current == account.id:
                raise InvalidAccountError(
                    str(account.id), "parent would make the account its own ancestor"
                )
            seen.add(current)
            current = self.session.get(GLAccount, current).parent_account_id

    def create_account(self, association_id: str, spec: GLAccountSpec) -> GLAccount:
        """
        Create a GL account in an association's chart.

        The normal balance defaults from the account type when not given.

        Raises:
            DuplicateAccountCodeError: If the code is already used.
            ValidationError: If the type or normal balance is unknown.
        """
        account_type = _account_type(spec.account_type)
        normal_balance = (
            _normal_balance(spec.normal_balance)
            if spec.normal_balance
            else DEFAULT_NORMAL_BALANCE[account_type]
        )

        if self._code_taken(association_id, spec.account_code):
            raise DuplicateAccountCodeError(association_id, spec.account_code)

        parent_id = self._check_parent(association_id, spec.parent_account_id)
        now = self.clock.now()

        account = GLAccount(
            association_id=association_id,
            account_code=spec.account_code,
            account_name=spec.account_name,
            account_type=account_type.value,
            account_subtype=spec.account_subtype,
            normal_balance=normal_balance.value,
            description=spec.description,
            parent_account_id=parent_id,
            current_balance=Decimal("0"),
            is_active=True,
            is_system_account=spec.is_system_account,
            created_at=now,
            updated_at=now,
        )
        self.session.add(account)
        self.session.flush()

        logger.info(
            "gl_account_created",
            extra={
                "account_id": str(account.id),
                "association_id": association_id,
                "account_code": spec.account_code,
                "account_type": account_type.value,
            },
        )
        return account

    def update_account(self, account_id: UUID | str, **changes) -> GLAccount:
        """
        Update mutable attributes of an account.

        Structural fields can only change while no posted line references
        the account; the immutability listeners enforce that at flush.
        ``is_active`` is not updatable here; use deactivate_account.

        Raises:
            ValidationError: On an unknown field or invalid enum value.
            DuplicateAccountCodeError: If the new code is taken.
            InvalidAccountError: If the new parent is the account itself or
                one of its descendants.
        """
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

        account = self.get_account(account_id)

        if "account_type" in changes:
            changes["account_type"] = _account_type(changes["account_type"]).value
        if "normal_balance" in changes:
            changes["normal_balance"] = _normal_balance(changes["normal_balance"]).value
        if "parent_account_id" in changes:
            parent_id = self._check_parent(account.association_id, changes["parent_account_id"])
            self._check_no_cycle(account, parent_id)
            changes["parent_account_id"] = parent_id
        new_code = changes.get("account_code")
        if new_code is not None and new_code != account.account_code:
            if self._code_taken(account.association_id, new_code):
                raise DuplicateAccountCodeError(account.association_id, new_code)

        for key, value in changes.items():
            setattr(account, key, value)
        account.updated_at = self.clock.now()
        self.session.flush()

        logger.info(
            "gl_account_updated",
            extra={"account_id": str(account.id), "fields": sorted(changes)},
        )
        return account

    def deactivate_account(self, account_id: UUID | str) -> GLAccount:
        """
        Soft-delete an account.

        Raises:
            AccountHasChildrenError: If active child accounts exist.
            AccountReferencedError: If any journal line uses the account.
        """
        account = self.get_account(account_id)

        child_count = self.session.execute(
            select(func.count())
            .select_from(GLAccount)
            .where(
                GLAccount.parent_account_id == account.id,
                GLAccount.is_active.is_(True),
            )
        ).scalar_one()
        if child_count:
            raise AccountHasChildrenError(str(account.id), child_count)

        has_lines = self.session.execute(
            select(exists().where(JournalEntryLine.gl_account_id == account.id))
        ).scalar()
        if has_lines:
            raise AccountReferencedError(str(account.id))

        account.is_active = False
        account.updated_at = self.clock.now()
        self.session.flush()

        logger.info("gl_account_deactivated", extra={"account_id": str(account.id)})
        return account

    def apply_line(
        self,
        account_id: UUID | str,
        debit_amount: Decimal,
        credit_amount: Decimal,
    ) -> None:
        """
        Move ``current_balance`` by one posted line.

        Debit-normal accounts grow by debit - credit; credit-normal accounts
        by credit - debit.
        """
        delta = case(
            (
                GLAccount.normal_balance == NormalBalance.DEBIT.value,
                debit_amount - credit_amount,
            ),
            else_=credit_amount - debit_amount,
        )
        self.session.execute(
            update(GLAccount)
            .where(GLAccount.id == as_uuid(account_id))
            .values(current_balance=GLAccount.current_balance + delta)
            .execution_options(synchronize_session="fetch")
        )

    def create_default_chart(
        self,
        association_id: str,
        seeds: Iterable[GLAccountSpec],
    ) -> list[GLAccount]:
        """
        Seed an association's chart of accounts.

        Codes that already exist are skipped, so this can be re-run safely.

        Returns:
            The accounts created by this call.
        """
        created = []
        for spec in seeds:
            if self._code_taken(association_id, spec.account_code):
                continue
            created.append(self.create_account(association_id, spec))

        logger.info(
            "default_chart_created",
            extra={"association_id": association_id, "accounts_created": len(created)},
        )
        return created
