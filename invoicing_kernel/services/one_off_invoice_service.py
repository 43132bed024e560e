"""
invoicing_kernel.services.one_off_invoice_service -- Admin-created invoices.

Responsibility:
    Lets a company administrator create an invoice on a contractor's
    behalf (``create_as_admin``) and lets that contractor accept it,
    optionally choosing their equity split within an allowed range
    (``accept_payment``).

Architecture position:
    Kernel > Services.  Uses the pure equity, fee and numbering engines;
    fires the notifier after the insert.

Invariants enforced:
    - Only administrators create; only the invoice's own contractor
      accepts, and only ``other`` (admin-created) invoices.
    - The equity split is recomputed by the calculator on both paths and
      must match the elected percentage exactly; a split is never
      clamped to the available grant.
    - cash + equity == total on every write.
    - An admin-created invoice awaits payee acceptance until
      ``accepted_at`` is set and is not payable before that.

Failure modes:
    - ForbiddenError, UserNotFoundError, ContractorNotFoundError,
      InvoiceNotFoundError.
    - InvalidAmountError, InvalidEquityRangeError,
      EquityPercentageOutOfRangeError, InsufficientUnvestedEquityError,
      EquityPercentageMismatchError.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select

from invoicing_config import get_active_config
from invoicing_config.schema import InvoicingConfig
from invoicing_engines.equity import (
    EquityGrantSnapshot,
    EquitySplit,
    calculate_invoice_equity,
)
from invoicing_engines.fees import platform_fee_cents
from invoicing_engines.numbering import highest_invoice_number, next_admin_invoice_number
from invoicing_kernel.domain.collaborators import Notifier
from invoicing_kernel.domain.dtos import InvoiceCreatedEvent, InvoiceInfo
from invoicing_kernel.domain.invoice import InvoiceStatus, InvoiceType
from invoicing_kernel.exceptions import (
    EquityPercentageMismatchError,
    EquityPercentageOutOfRangeError,
    ForbiddenError,
    InsufficientUnvestedEquityError,
    InvalidAmountError,
    InvalidEquityRangeError,
    InvoiceNotFoundError,
    PayeeAcceptanceError,
)
from invoicing_kernel.logging_config import LogContext, get_logger
from invoicing_kernel.models.company import CompanyModel
from invoicing_kernel.models.contractor import CompanyContractorModel, EquityGrantModel
from invoicing_kernel.models.invoice import InvoiceLineItemModel, InvoiceModel
from invoicing_kernel.services.authority import AuthorityService
from invoicing_kernel.services.base import BaseService
from invoicing_kernel.services.company_settings import load_company_settings
from invoicing_kernel.services.invoice_lifecycle import InvoiceLifecycleService
from invoicing_kernel.services.notifications import LoggingNotifier

logger = get_logger("services.one_off_invoice")


class OneOffInvoiceService(BaseService[InvoiceModel]):
    """Admin-created ("other") invoices and their acceptance by the payee."""

    def __init__(
        self,
        session,
        clock=None,
        config: InvoicingConfig | None = None,
        notifier: Notifier | None = None,
    ):
        super().__init__(session, clock)
        self.config = config or get_active_config()
        self.notifier = notifier or LoggingNotifier()
        self.authority = AuthorityService(session)
        self.lifecycle = InvoiceLifecycleService(session, self.clock)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _validate_range(self, minimum: int | None, maximum: int | None) -> None:
        bounds = self.config.equity
        for label, value in (("Minimum", minimum), ("Maximum", maximum)):
            if value is not None and not bounds.contains(value):
                raise InvalidEquityRangeError(
                    f"{label} equity percentage must be between "
                    f"{bounds.minimum_percentage} and {bounds.maximum_percentage}"
                )
        if minimum is not None and maximum is not None and minimum > maximum:
            raise InvalidEquityRangeError(
                "Minimum equity percentage must not exceed the maximum"
            )

    def _grant_snapshot(
        self, contractor_id: UUID, year: int,
    ) -> EquityGrantSnapshot | None:
        grant = self.session.execute(
            select(EquityGrantModel).where(
                EquityGrantModel.company_contractor_id == contractor_id,
                EquityGrantModel.year == year,
            )
        ).scalar_one_or_none()
        if grant is None:
            return None
        return EquityGrantSnapshot(
            year=grant.year,
            share_price_usd=grant.share_price_usd,
            unvested_options=grant.unvested_options,
        )

    def _compute_split(
        self,
        *,
        company: CompanyModel,
        contractor: CompanyContractorModel,
        total_amount_cents: int,
        invoice_year: int,
        equity_percentage: int,
        equity_enabled: bool,
        insufficient_message: str,
    ) -> EquitySplit:
        split = calculate_invoice_equity(
            service_amount_cents=total_amount_cents,
            invoice_year=invoice_year,
            equity_compensation_enabled=equity_enabled,
            equity_percentage=equity_percentage,
            grant=self._grant_snapshot(contractor.id, invoice_year),
            fallback_share_price_usd=company.fmv_per_share_usd,
        )
        if split is None:
            logger.warning(
                "equity_split_insufficient",
                extra={
                    "company_contractor_id": str(contractor.id),
                    "equity_percentage": equity_percentage,
                    "invoice_year": invoice_year,
                },
            )
            raise InsufficientUnvestedEquityError(
                contractor.external_id, equity_percentage, insufficient_message,
            )
        if split.equity_percentage != equity_percentage:
            raise EquityPercentageMismatchError(equity_percentage, split.equity_percentage)
        return split

    def _next_invoice_number(self, company_id: UUID, user_id: UUID) -> str:
        numbers = self.session.execute(
            select(InvoiceModel.invoice_number)
            .where(
                InvoiceModel.company_id == company_id,
                InvoiceModel.user_id == user_id,
                InvoiceModel.invoice_type == InvoiceType.OTHER.value,
            )
        ).scalars().all()
        return next_admin_invoice_number(
            highest_invoice_number(numbers), self.config.numbering.initial_admin_invoice_number,
        )

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_as_admin(
        self,
        company_id: UUID,
        actor_id: UUID,
        contractor_user_external_id: str,
        total_amount_cents: int,
        description: str,
        equity_percentage: int = 0,
        min_allowed_equity_percentage: int | None = None,
        max_allowed_equity_percentage: int | None = None,
        notes: str | None = None,
    ) -> InvoiceInfo:
        """Create a ``received`` one-off invoice for a contractor.

        Preconditions:
            ``actor_id`` administers the company; the contractor user
            exists and works for it.

        Postconditions:
            One invoice and one line item flushed; the notifier has been
            handed an ``InvoiceCreatedEvent``.
        """
        self.authority.require_administrator(company_id, actor_id)
        settings = load_company_settings(self.session, company_id, self.config)
        user, contractor = self.authority.require_contractor_by_external_id(
            company_id, contractor_user_external_id,
        )

        if total_amount_cents <= 0:
            raise InvalidAmountError(total_amount_cents)
        self._validate_range(min_allowed_equity_percentage, max_allowed_equity_percentage)
        if not self.config.equity.contains(equity_percentage):
            raise EquityPercentageOutOfRangeError(
                equity_percentage,
                self.config.equity.minimum_percentage,
                self.config.equity.maximum_percentage,
            )

        company = self.session.get(CompanyModel, company_id)
        today = self.clock.today()

        split = EquitySplit.all_cash(total_amount_cents)
        if settings.equity_compensation_enabled:
            split = self._compute_split(
                company=company,
                contractor=contractor,
                total_amount_cents=total_amount_cents,
                invoice_year=today.year,
                equity_percentage=equity_percentage,
                equity_enabled=True,
                insufficient_message="Recipient has insufficient unvested equity",
            )

        invoice = InvoiceModel(
            company_id=company_id,
            company_contractor_id=contractor.id,
            user_id=user.id,
            created_by_id=actor_id,
            invoice_type=InvoiceType.OTHER.value,
            invoice_number=self._next_invoice_number(company_id, user.id),
            status=InvoiceStatus.RECEIVED.value,
            invoice_date=today,
            due_on=today,
            bill_from=user.display_name,
            bill_to=settings.name,
            notes=notes,
            total_amount_in_usd_cents=total_amount_cents,
            cash_amount_in_cents=split.cash_cents,
            equity_amount_in_cents=split.equity_cents,
            equity_percentage=split.equity_percentage,
            equity_amount_in_options=split.equity_options,
            min_allowed_equity_percentage=min_allowed_equity_percentage,
            max_allowed_equity_percentage=max_allowed_equity_percentage,
            platform_fee_cents=platform_fee_cents(total_amount_cents, self.config.fees),
        )
        invoice.line_items.append(
            InvoiceLineItemModel(
                description=description,
                quantity=1,
                pay_rate_in_subunits=total_amount_cents,
            )
        )
        self.session.add(invoice)
        self.session.flush()

        with LogContext.bind(
            company_id=str(company_id), actor_id=str(actor_id), invoice_id=str(invoice.id),
        ):
            logger.info(
                "one_off_invoice_created",
                extra={
                    "invoice_number": invoice.invoice_number,
                    "total_amount_cents": total_amount_cents,
                    "equity_percentage": split.equity_percentage,
                    "platform_fee_cents": invoice.platform_fee_cents,
                },
            )
            self.notifier.invoice_created(
                InvoiceCreatedEvent(
                    invoice_id=invoice.id,
                    invoice_external_id=invoice.external_id,
                    company_name=settings.name or (settings.email or ""),
                    payee_user_id=user.id,
                    payee_email=user.email,
                    payee_name=user.display_name,
                    total_amount_in_usd_cents=total_amount_cents,
                    descriptions=tuple(item.description for item in invoice.line_items),
                )
            )

        return invoice.to_dto()

    # ------------------------------------------------------------------
    # Acceptance
    # ------------------------------------------------------------------

    def accept_payment(
        self,
        company_id: UUID,
        actor_id: UUID,
        invoice_external_id: str,
        equity_percentage: int,
    ) -> InvoiceInfo:
        """The payee accepts an admin-created invoice.

        When the invoice carries an allowed equity range the payee's
        election rewrites the split; otherwise only ``accepted_at`` is set.
        """
        contractor = self.authority.contractor_for_user(company_id, actor_id)
        if contractor is None:
            raise ForbiddenError(str(actor_id), "contractor", str(company_id))

        invoice_id = self.session.execute(
            select(InvoiceModel.id).where(
                InvoiceModel.company_id == company_id,
                InvoiceModel.external_id == invoice_external_id,
                InvoiceModel.deleted_at.is_(None),
            )
        ).scalar_one_or_none()
        if invoice_id is None:
            raise InvoiceNotFoundError(invoice_external_id)
        invoice = self.lifecycle.lock_active_invoice(invoice_id)

        if invoice.user_id != actor_id:
            raise ForbiddenError(str(actor_id), "invoice payee", str(company_id))
        if invoice.invoice_type != InvoiceType.OTHER.value:
            raise PayeeAcceptanceError(invoice.external_id, invoice.invoice_type)

        bounds = self.config.equity
        if not bounds.contains(equity_percentage):
            raise EquityPercentageOutOfRangeError(
                equity_percentage, bounds.minimum_percentage, bounds.maximum_percentage,
            )
        has_range = (
            invoice.min_allowed_equity_percentage is not None
            and invoice.max_allowed_equity_percentage is not None
        )
        if has_range and not (
            invoice.min_allowed_equity_percentage
            <= equity_percentage
            <= invoice.max_allowed_equity_percentage
        ):
            raise EquityPercentageOutOfRangeError(
                equity_percentage,
                invoice.min_allowed_equity_percentage,
                invoice.max_allowed_equity_percentage,
            )

        settings = load_company_settings(self.session, company_id, self.config)
        company = self.session.get(CompanyModel, company_id)
        split = self._compute_split(
            company=company,
            contractor=contractor,
            total_amount_cents=invoice.total_amount_in_usd_cents,
            invoice_year=invoice.invoice_date.year,
            equity_percentage=equity_percentage,
            equity_enabled=settings.equity_compensation_enabled,
            insufficient_message="Error calculating equity. Please contact the administrator.",
        )

        invoice.accepted_at = self.clock.now()
        if has_range:
            invoice.equity_percentage = split.equity_percentage
            invoice.equity_amount_in_cents = split.equity_cents
            invoice.equity_amount_in_options = split.equity_options
            invoice.cash_amount_in_cents = split.cash_cents
        self.session.flush()

        logger.info(
            "invoice_payment_accepted",
            extra={
                "invoice_id": str(invoice.id),
                "actor_id": str(actor_id),
                "equity_percentage": invoice.equity_percentage,
                "split_rewritten": has_range,
            },
        )
        return invoice.to_dto()
