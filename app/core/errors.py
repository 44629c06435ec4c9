"""
Error taxonomy for mutations.
Every failure carries a stable `kind` (returned to clients) and the HTTP status
the API layer maps it to. Raised by services, rendered by one handler in main.py.
"""

from fastapi import status


class MutationError(Exception):
    """Base class: stable error kind + human readable message."""

    kind = "MUTATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Mutation failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.kind, "detail": self.message}


class NotAuthenticated(MutationError):
    kind = "NOT_AUTHENTICATED"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "You must be signed in to do that"


class InvalidCredentials(MutationError):
    kind = "INVALID_CREDENTIALS"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid email or password"


class PermissionDenied(MutationError):
    kind = "PERMISSION_DENIED"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have sufficient permissions"


class OwnershipDenied(MutationError):
    kind = "OWNERSHIP_DENIED"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not own this resource"


class NotFound(MutationError):
    kind = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class EmailTaken(MutationError):
    kind = "EMAIL_TAKEN"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Email already registered"


class PasswordMismatch(MutationError):
    kind = "PASSWORD_MISMATCH"
    default_message = "Passwords do not match"


class InvalidOrExpiredToken(MutationError):
    kind = "INVALID_OR_EXPIRED_TOKEN"
    default_message = "This token is either invalid or expired"


class EmptyCart(MutationError):
    kind = "EMPTY_CART"
    default_message = "Your cart is empty"


class PaymentFailed(MutationError):
    kind = "PAYMENT_FAILED"
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    default_message = "Payment was declined"


class PaymentTimeout(MutationError):
    kind = "PAYMENT_TIMEOUT"
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    default_message = "Payment gateway did not answer in time; the charge may still have gone through"


class PaymentUnconfirmed(MutationError):
    """The gateway accepted the request but its answer could not be read."""

    kind = "PAYMENT_UNCONFIRMED"
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Payment gateway answer could not be read; the charge may have gone through"

    def __init__(self, reference: str, message: str | None = None):
        self.reference = reference
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["reference"] = self.reference
        return data


class CheckoutInProgress(MutationError):
    kind = "CHECKOUT_IN_PROGRESS"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Another checkout is already running for this account"


class PendingReconciliation(MutationError):
    kind = "PENDING_RECONCILIATION"
    status_code = status.HTTP_409_CONFLICT
    default_message = "A payment for items in your cart is still being reconciled"

    def __init__(self, charge_id: str, message: str | None = None):
        self.charge_id = charge_id
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["charge_id"] = self.charge_id
        return data


class ReconciliationConflict(MutationError):
    """Recorded line items do not add up to the charged amount."""

    kind = "RECONCILIATION_CONFLICT"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Charged amount does not match the recorded line items"


class LockUnavailable(MutationError):
    kind = "LOCK_UNAVAILABLE"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Checkout is temporarily unavailable, please try again"


class PersistenceError(MutationError):
    kind = "PERSISTENCE_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Could not save changes"


class UnreconciledCharge(PersistenceError):
    """The card was charged but the order could not be written."""

    kind = "UNRECONCILED_CHARGE"
    default_message = "Payment succeeded but the order could not be saved; it will be reconciled"

    def __init__(self, charge_id: str, message: str | None = None):
        self.charge_id = charge_id
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["charge_id"] = self.charge_id
        return data
