"""
Role checks for company administrators and contractors.

All checks run before any mutation so a forbidden request never leaves
partial state behind.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from invoicing_kernel.exceptions import (
    ContractorNotFoundError,
    ForbiddenError,
    UserNotFoundError,
)
from invoicing_kernel.logging_config import get_logger
from invoicing_kernel.models.company import CompanyAdministratorModel
from invoicing_kernel.models.contractor import CompanyContractorModel
from invoicing_kernel.models.user import UserModel

logger = get_logger("services.authority")


class AuthorityService:
    """Read-only role lookups scoped to one company."""

    def __init__(self, session: Session):
        self.session = session

    def is_administrator(self, company_id: UUID, user_id: UUID) -> bool:
        return self.session.execute(
            select(CompanyAdministratorModel.id).where(
                CompanyAdministratorModel.company_id == company_id,
                CompanyAdministratorModel.user_id == user_id,
            )
        ).first() is not None

    def require_administrator(self, company_id: UUID, user_id: UUID) -> None:
        """Raise ForbiddenError unless ``user_id`` administers the company."""
        if not self.is_administrator(company_id, user_id):
            logger.warning(
                "administrator_required",
                extra={"company_id": str(company_id), "actor_id": str(user_id)},
            )
            raise ForbiddenError(str(user_id), "administrator", str(company_id))

    def contractor_for_user(
        self, company_id: UUID, user_id: UUID,
    ) -> CompanyContractorModel | None:
        return self.session.execute(
            select(CompanyContractorModel).where(
                CompanyContractorModel.company_id == company_id,
                CompanyContractorModel.user_id == user_id,
            )
        ).scalar_one_or_none()

    def require_contractor_by_external_id(
        self, company_id: UUID, user_external_id: str,
    ) -> tuple[UserModel, CompanyContractorModel]:
        """Resolve a user by external id and their contractor row.

        Raises:
            UserNotFoundError: no user with that external id.
            ContractorNotFoundError: the user is not a contractor here.
        """
        user = self.session.execute(
            select(UserModel).where(UserModel.external_id == user_external_id)
        ).scalar_one_or_none()
        if user is None:
            raise UserNotFoundError(user_external_id)

        contractor = self.contractor_for_user(company_id, user.id)
        if contractor is None:
            raise ContractorNotFoundError(str(company_id), user_external_id)
        return user, contractor
