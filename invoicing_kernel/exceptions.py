"""
Typed exception hierarchy for the invoicing kernel.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from InvoicingError:

    InvoicingError (base)
    |
    +-- NotFoundError
    |   +-- InvoiceNotFoundError
    |   +-- CompanyNotFoundError
    |   +-- ContractorNotFoundError
    |   +-- UserNotFoundError
    |
    +-- ForbiddenError
    |
    +-- InvoiceValidationError
    |   +-- InvalidAmountError
    |   +-- InvalidEquityRangeError
    |   +-- EquityPercentageOutOfRangeError
    |   +-- InsufficientUnvestedEquityError
    |   +-- EquityPercentageMismatchError
    |
    +-- InvoiceTransitionError
    |   +-- InvalidInvoiceTransitionError
    |   +-- DuplicateApprovalError
    |   +-- InvoiceNotPayableError
    |   +-- PayeeAcceptanceError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                          | When Raised
----------------|-------------------------------|-------------------------------------
Not found       | INVOICE_NOT_FOUND             | Id missing, deleted, or other company
                | COMPANY_NOT_FOUND             | Company id doesn't exist
                | CONTRACTOR_NOT_FOUND          | User is not a contractor of company
                | USER_NOT_FOUND                | User external id doesn't exist
----------------|-------------------------------|-------------------------------------
Forbidden       | FORBIDDEN                     | Actor lacks admin / contractor role
----------------|-------------------------------|-------------------------------------
Validation      | INVALID_AMOUNT                | Non-positive invoice total
                | INVALID_EQUITY_RANGE          | min > max, or bound out of limits
                | EQUITY_PERCENTAGE_OUT_OF_RANGE| Election outside allowed range
                | INSUFFICIENT_UNVESTED_EQUITY  | Grant can't cover requested options
                | EQUITY_PERCENTAGE_MISMATCH    | No options would be granted
----------------|-------------------------------|-------------------------------------
Transition      | INVALID_INVOICE_TRANSITION    | Status change not in the machine
                | DUPLICATE_APPROVAL            | Same administrator approves twice
                | INVOICE_NOT_PAYABLE           | Pay-now requested, not payable now
                | PAYEE_ACCEPTANCE_NOT_ALLOWED  | Accepting a non one-off invoice
----------------|-------------------------------|-------------------------------------
Immutability    | IMMUTABILITY_VIOLATION        | Updating / deleting an approval row

===============================================================================
HANDLING PATTERNS
===============================================================================

Deletion never raises for a non-deletable status: it is a retry-safe
no-op.  Approval and rejection outside their source states raise
InvoiceTransitionError subclasses so that a retried request cannot count
twice toward quorum.

    try:
        coordinator.approve_invoices(...)
    except NotFoundError as e:
        return {"error": e.code}, 404
    except ForbiddenError as e:
        return {"error": e.code}, 403
    except (InvoiceValidationError, InvoiceTransitionError) as e:
        return {"error": e.code, "message": str(e)}, 422
"""


class InvoicingError(Exception):
    """
    Base exception for all invoicing kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "INVOICING_ERROR"


# Not-found exceptions


class NotFoundError(InvoicingError):
    """Base exception for missing or out-of-scope records."""

    code: str = "NOT_FOUND"


class InvoiceNotFoundError(NotFoundError):
    """One or more invoice ids did not resolve within the company scope."""

    code: str = "INVOICE_NOT_FOUND"

    def __init__(self, invoice_ids: list[str] | tuple[str, ...] | str):
        if isinstance(invoice_ids, str):
            invoice_ids = [invoice_ids]
        self.invoice_ids = sorted(str(i) for i in invoice_ids)
        super().__init__(f"Invoice(s) not found: {', '.join(self.invoice_ids)}")


class CompanyNotFoundError(NotFoundError):
    """Company with given ID was not found."""

    code: str = "COMPANY_NOT_FOUND"

    def __init__(self, company_id: str):
        self.company_id = company_id
        super().__init__(f"Company not found: {company_id}")


class ContractorNotFoundError(NotFoundError):
    """User is not a contractor of the company."""

    code: str = "CONTRACTOR_NOT_FOUND"

    def __init__(self, company_id: str, user_id: str):
        self.company_id = company_id
        self.user_id = user_id
        super().__init__(
            f"User {user_id} is not a contractor of company {company_id}"
        )


class UserNotFoundError(NotFoundError):
    """User with given external ID was not found."""

    code: str = "USER_NOT_FOUND"

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


# Authorization


class ForbiddenError(InvoicingError):
    """Actor lacks the role required for the action."""

    code: str = "FORBIDDEN"

    def __init__(self, actor_id: str, required_role: str, company_id: str):
        self.actor_id = actor_id
        self.required_role = required_role
        self.company_id = company_id
        super().__init__(
            f"Actor {actor_id} must be a {required_role} of company {company_id}"
        )


# Validation exceptions


class InvoiceValidationError(InvoicingError):
    """Base exception for user-facing input validation failures."""

    code: str = "INVOICE_VALIDATION_ERROR"


class InvalidAmountError(InvoiceValidationError):
    """Invoice total must be a positive number of minor units."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, amount_cents: int):
        self.amount_cents = amount_cents
        super().__init__(f"Invoice total must be positive, got {amount_cents}")


class InvalidEquityRangeError(InvoiceValidationError):
    """Allowed equity range is inverted or outside configured bounds."""

    code: str = "INVALID_EQUITY_RANGE"

    def __init__(self, message: str):
        super().__init__(message)


class EquityPercentageOutOfRangeError(InvoiceValidationError):
    """Equity election falls outside the allowed range."""

    code: str = "EQUITY_PERCENTAGE_OUT_OF_RANGE"

    def __init__(self, equity_percentage: int, minimum: int, maximum: int):
        self.equity_percentage = equity_percentage
        self.minimum = minimum
        self.maximum = maximum
        super().__init__("Equity percentage is out of range")


class InsufficientUnvestedEquityError(InvoiceValidationError):
    """Contractor's unvested grant cannot cover the requested equity."""

    code: str = "INSUFFICIENT_UNVESTED_EQUITY"

    def __init__(
        self,
        contractor_id: str,
        equity_percentage: int,
        message: str = "Recipient has insufficient unvested equity",
    ):
        self.contractor_id = contractor_id
        self.equity_percentage = equity_percentage
        super().__init__(message)


class EquityPercentageMismatchError(InvoiceValidationError):
    """Calculated percentage differs from the election (zero options)."""

    code: str = "EQUITY_PERCENTAGE_MISMATCH"

    def __init__(self, requested: int, calculated: int):
        self.requested = requested
        self.calculated = calculated
        super().__init__("No options would be granted")


# Transition exceptions


class InvoiceTransitionError(InvoicingError):
    """Base exception for operations outside an invoice's allowed states."""

    code: str = "INVOICE_TRANSITION_ERROR"


class InvalidInvoiceTransitionError(InvoiceTransitionError):
    """Status change is not permitted by the invoice status machine."""

    code: str = "INVALID_INVOICE_TRANSITION"

    def __init__(self, invoice_id: str, from_status: str, to_status: str):
        self.invoice_id = invoice_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Invoice {invoice_id} cannot transition from "
            f"'{from_status}' to '{to_status}'"
        )


class DuplicateApprovalError(InvoiceTransitionError):
    """Administrator has already approved this invoice."""

    code: str = "DUPLICATE_APPROVAL"

    def __init__(self, invoice_id: str, approver_id: str):
        self.invoice_id = invoice_id
        self.approver_id = approver_id
        super().__init__(
            f"Invoice {invoice_id} already approved by {approver_id}"
        )


class InvoiceNotPayableError(InvoiceTransitionError):
    """Immediate payment requested for an invoice that is not payable now."""

    code: str = "INVOICE_NOT_PAYABLE"

    def __init__(self, invoice_id: str, reason: str):
        self.invoice_id = invoice_id
        self.reason = reason
        super().__init__(f"Invoice {invoice_id} cannot be paid now: {reason}")


class PayeeAcceptanceError(InvoiceTransitionError):
    """Payee acceptance is only defined for admin-created invoices."""

    code: str = "PAYEE_ACCEPTANCE_NOT_ALLOWED"

    def __init__(self, invoice_id: str, invoice_type: str):
        self.invoice_id = invoice_id
        self.invoice_type = invoice_type
        super().__init__(
            f"Invoice {invoice_id} of type '{invoice_type}' cannot be accepted"
        )


# Immutability


class ImmutabilityError(InvoicingError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
