"""
Module: hoa_kernel.selectors.account_selector
Responsibility: Read-only chart-of-accounts queries: flat listings ordered by
    account code and the parent/child hierarchy.
Architecture position: Kernel > Selectors.
"""

from uuid import UUID

from sqlalchemy import select

from hoa_kernel.db.types import round_money
from hoa_kernel.domain.dtos import AccountNode, GLAccountDTO
from hoa_kernel.models.account import GLAccount
from hoa_kernel.selectors.base import BaseSelector


def account_to_dto(account: GLAccount) -> GLAccountDTO:
    return GLAccountDTO(
        id=account.id,
        association_id=account.association_id,
        account_code=account.account_code,
        account_name=account.account_name,
        account_type=str(getattr(account.account_type, "value", account.account_type)),
        account_subtype=account.account_subtype,
        normal_balance=str(getattr(account.normal_balance, "value", account.normal_balance)),
        parent_account_id=account.parent_account_id,
        current_balance=round_money(account.current_balance),
        is_active=account.is_active,
        is_system_account=account.is_system_account,
    )


class GLAccountSelector(BaseSelector[GLAccount]):
    """Read-only queries over GL accounts."""

    def get_account(self, account_id: UUID | str) -> GLAccountDTO | None:
        if not isinstance(account_id, UUID):
            account_id = UUID(str(account_id))
        account = self.session.get(GLAccount, account_id)
        return account_to_dto(account) if account is not None else None

    def get_by_code(self, association_id: str, account_code: str) -> GLAccountDTO | None:
        account = self.session.execute(
            select(GLAccount).where(
                GLAccount.association_id == association_id,
                GLAccount.account_code == account_code,
            )
        ).scalar_one_or_none()
        return account_to_dto(account) if account is not None else None

    def list_accounts(
        self,
        association_id: str,
        include_inactive: bool = False,
    ) -> list[GLAccountDTO]:
        query = (
            select(GLAccount)
            .where(GLAccount.association_id == association_id)
            .order_by(GLAccount.account_code)
        )
        if not include_inactive:
            query = query.where(GLAccount.is_active.is_(True))
        return [account_to_dto(a) for a in self.session.execute(query).scalars()]

    def chart_of_accounts(self, association_id: str) -> list[AccountNode]:
        """
        Active accounts arranged as a forest of root nodes.

        An account whose parent is inactive or missing is treated as a root.
        """
        accounts = self.list_accounts(association_id)
        by_parent: dict[UUID | None, list[GLAccountDTO]] = {}
        known = {a.id for a in accounts}
        for account in accounts:
            parent = account.parent_account_id if account.parent_account_id in known else None
            by_parent.setdefault(parent, []).append(account)

        def build(account: GLAccountDTO) -> AccountNode:
            return AccountNode(
                account=account,
                children=tuple(build(child) for child in by_parent.get(account.id, [])),
            )

        return [build(root) for root in by_parent.get(None, [])]
