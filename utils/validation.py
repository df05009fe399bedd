"""Input validation for link resource submissions.

Provides:
- ValidationResult: the {status, code, message} outcome returned to clients
- validate_batch(): ordered, first-failure validation of a create batch
- validate_update(): the same field rules applied to a partial update

The batch is rejected atomically: the first invalid record stops validation
and nothing in the batch is written.  Rules run per record in this order:

    1. resource required            6. price required and numeric
    2. main_category required       7. casino_price numeric (if present)
    3. main_category in categories  8. cbd_price numeric (if present)
    4. other_categories members     9. adult_price numeric (if present)
    5. email required and valid    10. metrics and usd_price numeric (if present)

Rule 10 keeps non-numbers out of the REAL metric columns; a blank value there
is stored as NULL.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Callable, Optional

from utils.categories import is_valid_category, split_categories
from utils.strings import display_value, format_resource_url, is_numeric, is_valid_email

SUCCESS_MESSAGE = "Requested successfully!"
DEFAULT_ERROR_CODE = 500

# Optional price fields checked by rules 7-9, in order
OPTIONAL_PRICE_FIELDS = ("casino_price", "cbd_price", "adult_price")

# Remaining numeric fields checked by rule 10, in order
OPTIONAL_NUMERIC_FIELDS = (
    "da", "dr", "rd", "tr", "pa", "tf", "cf", "organic_keywords", "usd_price",
)

# Fields a partial update may touch, grouped by the table that stores them
RESOURCE_FIELDS = (
    "resource", "main_category", "other_categories",
    "da", "dr", "rd", "tr", "pa", "tf", "cf", "organic_keywords",
    "metrics_update_date", "social_media", "other_info",
)
PROVIDER_FIELDS = (
    "email", "currency", "price", "casino_price", "cbd_price", "adult_price",
    "payment_method", "promotions", "usd_price", "notes",
)
NUMERIC_FIELDS = frozenset({
    "da", "dr", "rd", "tr", "pa", "tf", "cf", "organic_keywords",
    "price", "casino_price", "cbd_price", "adult_price", "usd_price",
})


class ValidationResult:
    """Outcome of a validation run, shaped like the API response body."""

    def __init__(self, status: str, code: int, message: str):
        self.status = status
        self.code = code
        self.message = message

    @property
    def ok(self) -> bool:
        return self.status == "success"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"status": self.status, "code": self.code, "message": self.message}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValidationResult):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return (f"ValidationResult(status={self.status}, code={self.code}, "
                f"message={self.message!r})")


def success_result() -> ValidationResult:
    return ValidationResult("success", 200, SUCCESS_MESSAGE)


def error_result(message: str, code: int = DEFAULT_ERROR_CODE) -> ValidationResult:
    """Build a failed ValidationResult.

    Args:
        message: Human-readable rule violation, naming the field and value
        code: Status code to report (500 unless configured otherwise)
    """
    return ValidationResult("error", code, message)


def _present(record: Mapping, field: str) -> bool:
    """True if field is set to something other than None/blank.

    Whitespace-only strings count as blank.
    """
    value = record.get(field)
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return True


def _check_resource(record: Mapping) -> Optional[str]:
    # "https://" or "www." alone normalises to an empty identifier
    if not _present(record, "resource") or not format_resource_url(str(record["resource"])):
        return "resource field is required"
    return None


def _check_main_category(record: Mapping) -> Optional[str]:
    if not _present(record, "main_category"):
        return "main_category field is required"
    main_category = record["main_category"]
    if not is_valid_category(main_category):
        return f"main_category {display_value(main_category)} is not valid"
    return None


def _check_other_categories(record: Mapping) -> Optional[str]:
    for member in split_categories(record.get("other_categories")):
        if not is_valid_category(member):
            return f"other_categories {member} is not valid"
    return None


def _check_email(record: Mapping) -> Optional[str]:
    email = record.get("email")
    if not _present(record, "email") or not is_valid_email(email):
        return f"email {display_value(email)} is missing or not valid"
    return None


def _check_price(record: Mapping) -> Optional[str]:
    price = record.get("price")
    if not _present(record, "price") or not is_numeric(price):
        return f"price {display_value(price)} is missing or not valid"
    return None


def _optional_price_check(field: str) -> Callable[[Mapping], Optional[str]]:
    def check(record: Mapping) -> Optional[str]:
        # None counts as absent; "" is present and fails, as does any non-number
        value = record.get(field)
        if value is not None and not is_numeric(value):
            return f"{field} {display_value(value)} is not valid"
        return None
    check.__name__ = f"_check_{field}"
    return check


def _optional_number_check(field: str) -> Callable[[Mapping], Optional[str]]:
    def check(record: Mapping) -> Optional[str]:
        if not _present(record, field):
            return None
        value = record[field]
        if not is_numeric(value):
            return f"{field} {display_value(value)} is not valid"
        return None
    check.__name__ = f"_check_{field}"
    return check


# Ordered rule list; the order is part of the contract
RECORD_CHECKS: tuple[Callable[[Mapping], Optional[str]], ...] = (
    _check_resource,
    _check_main_category,
    _check_other_categories,
    _check_email,
    _check_price,
    *(_optional_price_check(field) for field in OPTIONAL_PRICE_FIELDS),
    *(_optional_number_check(field) for field in OPTIONAL_NUMERIC_FIELDS),
)


def validate_record(record: Any) -> Optional[str]:
    """Return the first rule violation for one record, or None if valid."""
    if not isinstance(record, Mapping):
        return "resource field is required"
    for check in RECORD_CHECKS:
        message = check(record)
        if message:
            return message
    return None


def validate_batch(records: Optional[Sequence[Any]],
                   error_code: int = DEFAULT_ERROR_CODE) -> ValidationResult:
    """Validate a create batch, stopping at the first invalid record.

    Args:
        records: Raw submission records (mappings of field -> value), or
            None when the request carried no ``data`` field
        error_code: Status code reported on failure

    Returns:
        success_result() if every record passes every rule (an empty batch
        included), otherwise an error_result() carrying the first
        violation's message.
    """
    if records is None:
        return error_result("data field is required", error_code)
    for record in records:
        message = validate_record(record)
        if message:
            return error_result(message, error_code)
    return success_result()


def validate_update(fields: Mapping[str, Any],
                    error_code: int = DEFAULT_ERROR_CODE) -> ValidationResult:
    """Validate a partial update: only the supplied fields are checked.

    Required fields (resource, main_category, email, price) may be omitted,
    but if supplied they must satisfy the same rules as on create.  Other
    numeric fields accept None (to clear them) or a number.
    """
    known = [f for f in (*RESOURCE_FIELDS, *PROVIDER_FIELDS) if f in fields]
    if not known:
        return error_result("no updatable fields supplied", error_code)

    checks: list[Callable[[Mapping], Optional[str]]] = []
    if "resource" in fields:
        checks.append(_check_resource)
    if "main_category" in fields:
        checks.append(_check_main_category)
    if "other_categories" in fields:
        checks.append(_check_other_categories)
    if "email" in fields:
        checks.append(_check_email)
    if "price" in fields:
        checks.append(_check_price)
    for check in checks:
        message = check(fields)
        if message:
            return error_result(message, error_code)

    for field in sorted(NUMERIC_FIELDS - {"price"}):
        if field not in fields:
            continue
        value = fields[field]
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        if not is_numeric(value):
            return error_result(f"{field} {display_value(value)} is not valid", error_code)
    return success_result()
