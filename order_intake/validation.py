# order_intake/validation.py

import json
import logging
import math
from typing import Any, Mapping

from pydantic import ValidationError

from order_intake.errors import ErrorKind, FieldError, OrderValidationError
from order_intake.schemas import CustomerInfo, OrderDraft, ProductLine


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

CUSTOMER_FIELDS = ("name", "email", "phone", "address", "pincode", "city")
REQUIRED_FIELDS = CUSTOMER_FIELDS + ("totalAmount", "products")

CONTACT_MESSAGES = {
    "email": "Email address is not valid",
    "phone": "Phone number must be exactly 10 digits",
}


def _clean(value: Any) -> str | None:
    """Strip a submitted form value; blank and non-text values count as absent."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def parse_products(raw: str) -> tuple[list[ProductLine], list[FieldError]]:
    """
    Parse the serialized product list into ProductLine objects.

    Args:
        raw (str): JSON text sent in the `products` form field.

    Returns:
        tuple: The parsed lines (only when every line is valid) and the
        errors found while parsing them.
    """
    try:
        decoded = json.loads(raw)
    # Deeply nested input exhausts the decoder's recursion limit
    except (ValueError, RecursionError):
        return [], [FieldError(ErrorKind.INVALID_PRODUCTS_FORMAT, "products", "Products must be a JSON list")]

    if not isinstance(decoded, list):
        return [], [FieldError(ErrorKind.INVALID_PRODUCTS_FORMAT, "products", "Products must be a JSON list")]
    if not decoded:
        return [], [FieldError(ErrorKind.EMPTY_CART, "products", "Cart cannot be empty")]

    lines: list[ProductLine] = []
    errors: list[FieldError] = []
    for index, item in enumerate(decoded):
        scope = f"products[{index}]"
        if not isinstance(item, dict):
            errors.append(FieldError(ErrorKind.INVALID_PRODUCT_LINE, scope, "Product line must be an object"))
            continue
        try:
            lines.append(ProductLine.model_validate(item))
        except ValidationError as exc:
            for problem in exc.errors():
                location = ".".join(str(part) for part in problem["loc"])
                field = f"{scope}.{location}" if location else scope
                errors.append(FieldError(ErrorKind.INVALID_PRODUCT_LINE, field, problem["msg"]))
    return (lines if not errors else []), errors


def parse_customer(values: Mapping[str, str | None]) -> tuple[CustomerInfo | None, list[FieldError]]:
    """Validate the submitted customer fields; absent ones are reported as missing elsewhere."""
    present = {field: values[field] for field in CUSTOMER_FIELDS if values[field] is not None}
    try:
        return CustomerInfo.model_validate(present), []
    except ValidationError as exc:
        errors = []
        for problem in exc.errors():
            if problem["type"] == "missing":
                continue
            field = str(problem["loc"][0])
            errors.append(FieldError(ErrorKind.INVALID_EMAIL_OR_PHONE, field, CONTACT_MESSAGES.get(field, problem["msg"])))
        return None, errors


def parse_total_amount(raw: str) -> float | None:
    try:
        amount = float(raw)
    except ValueError:
        return None
    if not math.isfinite(amount) or amount < 0:
        return None
    return amount


def validate_order(payload: Mapping[str, Any]) -> OrderDraft:
    """
    Validate a raw order submission and normalize it into an OrderDraft.

    Every check that can run does run, so the raised error lists all the
    problems of the submission at once.

    Args:
        payload (Mapping[str, Any]): Text fields of the submission.

    Returns:
        OrderDraft: The normalized customer info, product lines and total.

    Raises:
        OrderValidationError: If any field is missing or invalid.
    """
    values = {field: _clean(payload.get(field)) for field in REQUIRED_FIELDS}
    errors = [
        FieldError(ErrorKind.MISSING_FIELDS, field, f"{field} is required")
        for field in REQUIRED_FIELDS
        if values[field] is None
    ]

    customer, customer_errors = parse_customer(values)
    errors.extend(customer_errors)

    total_amount = None
    if values["totalAmount"] is not None:
        total_amount = parse_total_amount(values["totalAmount"])
        if total_amount is None:
            errors.append(FieldError(
                ErrorKind.INVALID_TOTAL_AMOUNT, "totalAmount", "Total amount must be a non-negative number"
            ))

    products: list[ProductLine] = []
    if values["products"] is not None:
        products, product_errors = parse_products(values["products"])
        errors.extend(product_errors)

    if errors:
        logger.info(f"Order validation failed for fields: {[error.field for error in errors]}")
        raise OrderValidationError(errors)

    return OrderDraft(
        customer_info=customer,
        products=products,
        total_amount=total_amount,
    )
