# order_intake/errors.py

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    MISSING_PAYMENT_PROOF = "MissingPaymentProof"
    TOO_MANY_FILES = "TooManyFiles"
    UNSUPPORTED_MEDIA_TYPE = "UnsupportedMediaType"
    PAYLOAD_TOO_LARGE = "PayloadTooLarge"
    MISSING_FIELDS = "MissingFields"
    INVALID_PRODUCTS_FORMAT = "InvalidProductsFormat"
    EMPTY_CART = "EmptyCart"
    INVALID_PRODUCT_LINE = "InvalidProductLine"
    INVALID_EMAIL_OR_PHONE = "InvalidEmailOrPhone"
    INVALID_TOTAL_AMOUNT = "InvalidTotalAmount"
    PERSISTENCE_ERROR = "PersistenceError"
    UPLOAD_STORAGE_ERROR = "UploadStorageError"


@dataclass(frozen=True)
class FieldError:
    kind: ErrorKind
    field: str
    message: str

    def as_dict(self) -> dict:
        return {"kind": self.kind.value, "field": self.field, "message": self.message}


class IntakeError(Exception):
    """
    Base class for every failure of the order intake pipeline.

    Attributes:
        kind (ErrorKind): Machine-readable reason.
        message (str): Human readable message, safe to show to the client.
        client_fault (bool): True when the submission itself is at fault.
    """

    kind: ErrorKind
    client_fault = True

    def __init__(self, message: str, kind: ErrorKind | None = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind


class MissingPaymentProof(IntakeError):
    kind = ErrorKind.MISSING_PAYMENT_PROOF

    def __init__(self, message: str = "Payment screenshot is required"):
        super().__init__(message)


class TooManyFiles(IntakeError):
    kind = ErrorKind.TOO_MANY_FILES

    def __init__(self, message: str = "Only one payment screenshot may be uploaded"):
        super().__init__(message)


class UnsupportedMediaType(IntakeError):
    kind = ErrorKind.UNSUPPORTED_MEDIA_TYPE

    def __init__(self, message: str = "Invalid file type. Only JPEG, JPG, and PNG are allowed!"):
        super().__init__(message)


class PayloadTooLarge(IntakeError):
    kind = ErrorKind.PAYLOAD_TOO_LARGE

    def __init__(self, max_bytes: int):
        super().__init__(f"Payment screenshot exceeds the {max_bytes} byte limit")
        self.max_bytes = max_bytes


class OrderValidationError(IntakeError):
    """Carries every field-level problem found in one submission."""

    def __init__(self, errors: list[FieldError]):
        if not errors:
            raise ValueError("OrderValidationError needs at least one FieldError")
        self.errors = list(errors)
        fields = ", ".join(dict.fromkeys(error.field for error in self.errors))
        super().__init__(f"Invalid order: {fields}", kind=self.errors[0].kind)

    @property
    def fields(self) -> list[str]:
        return [error.field for error in self.errors]

    def fields_of(self, kind: ErrorKind) -> list[str]:
        return [error.field for error in self.errors if error.kind == kind]


class ServerFault(IntakeError):
    client_fault = False

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.detail = detail


class PersistenceError(ServerFault):
    kind = ErrorKind.PERSISTENCE_ERROR


class UploadStorageError(ServerFault):
    kind = ErrorKind.UPLOAD_STORAGE_ERROR
