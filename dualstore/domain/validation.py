"""Field-by-field validation for candidate records.

Each ``validate_*`` function takes raw client values, returns the
normalised values together with every failed constraint, and never touches
storage. With ``partial=True`` only the supplied keys are checked, which is
how partial updates are validated.
"""

import re
from collections.abc import Callable, Mapping
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any

from dualstore.domain.entities import ProductStatus, UserStatus
from dualstore.domain.exceptions import FieldError

_EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
_CENT = Decimal("0.01")
_MAX_PRICE = Decimal("99999999.99")
_MAX_INT32 = 2**31 - 1

_MISSING = object()

# A rule normalises one value or raises _Invalid with the message to report.
Rule = Callable[[Any], Any]


class _Invalid(Exception):
    pass


def _as_int(value: Any, label: str) -> int:
    if isinstance(value, bool):
        raise _Invalid(f"{label} must be an integer")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if not isinstance(value, int):
        raise _Invalid(f"{label} must be an integer")
    return value


def _as_enum(value: Any, enum_type: type[Enum]) -> Enum:
    raw = value.value if isinstance(value, Enum) else value
    try:
        return enum_type(raw)
    except ValueError:
        raise _Invalid(f"{raw} is not a valid status") from None


# ── User rules ───────────────────────────────────────────────────────


def _user_name(value: Any) -> str:
    if value is None:
        raise _Invalid("Name is required")
    if not isinstance(value, str):
        raise _Invalid("Name must be a string")
    value = value.strip()
    if not value:
        raise _Invalid("Name is required")
    if len(value) > 100:
        raise _Invalid("Name cannot exceed 100 characters")
    return value


def _user_email(value: Any) -> str:
    if value is None:
        raise _Invalid("Email is required")
    if not isinstance(value, str):
        raise _Invalid("Email must be a string")
    value = value.strip().lower()
    if not value:
        raise _Invalid("Email is required")
    if not _EMAIL_PATTERN.match(value):
        raise _Invalid("Please enter a valid email address")
    return value


def _user_age(value: Any) -> int | None:
    if value is None:
        return None
    age = _as_int(value, "Age")
    if age < 0:
        raise _Invalid("Age cannot be negative")
    if age > 150:
        raise _Invalid("Age seems unrealistic")
    return age


def _user_status(value: Any) -> UserStatus:
    return _as_enum(value, UserStatus)


def _user_metadata(value: Any) -> dict:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise _Invalid("Metadata must be an object")
    return dict(value)


_USER_RULES: dict[str, Rule] = {
    "name": _user_name,
    "email": _user_email,
    "age": _user_age,
    "status": _user_status,
    "metadata": _user_metadata,
}
_USER_DEFAULTS: dict[str, Any] = {
    "age": None,
    "status": UserStatus.ACTIVE,
    "metadata": {},
}


# ── Product rules ────────────────────────────────────────────────────


def _product_name(value: Any) -> str:
    if value is None:
        raise _Invalid("Name is required")
    if not isinstance(value, str):
        raise _Invalid("Name must be a string")
    value = value.strip()
    if not value:
        raise _Invalid("Name cannot be empty")
    if len(value) > 255:
        raise _Invalid("Name must be between 1 and 255 characters")
    return value


def _product_description(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise _Invalid("Description must be a string")
    return value


def _product_price(value: Any) -> Decimal:
    if value is None:
        raise _Invalid("Price is required")
    if isinstance(value, bool):
        raise _Invalid("Price must be a valid decimal number")
    try:
        price = Decimal(str(value).strip())
    except InvalidOperation:
        raise _Invalid("Price must be a valid decimal number") from None
    if not price.is_finite():
        raise _Invalid("Price must be a valid decimal number")
    if price < 0:
        raise _Invalid("Price cannot be negative")
    # quantize overflows the context precision for very large values
    if price > _MAX_PRICE:
        raise _Invalid("Price cannot exceed 99999999.99")
    price = price.quantize(_CENT, rounding=ROUND_HALF_UP)
    if price > _MAX_PRICE:
        raise _Invalid("Price cannot exceed 99999999.99")
    return price


def _product_quantity(value: Any) -> int:
    if value is None:
        raise _Invalid("Quantity is required")
    quantity = _as_int(value, "Quantity")
    if quantity < 0:
        raise _Invalid("Quantity cannot be negative")
    if quantity > _MAX_INT32:
        raise _Invalid(f"Quantity cannot exceed {_MAX_INT32}")
    return quantity


def _product_category(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise _Invalid("Category must be a string")
    value = value.strip()
    if len(value) > 100:
        raise _Invalid("Category cannot exceed 100 characters")
    return value or None


def _product_status(value: Any) -> ProductStatus:
    return _as_enum(value, ProductStatus)


_PRODUCT_RULES: dict[str, Rule] = {
    "name": _product_name,
    "description": _product_description,
    "price": _product_price,
    "quantity": _product_quantity,
    "category": _product_category,
    "status": _product_status,
}
_PRODUCT_DEFAULTS: dict[str, Any] = {
    "description": None,
    "quantity": 0,
    "category": None,
    "status": ProductStatus.AVAILABLE,
}


# ── Public API ───────────────────────────────────────────────────────


def _run_rules(
    data: Mapping[str, Any],
    rules: dict[str, Rule],
    defaults: dict[str, Any],
    partial: bool,
) -> tuple[dict[str, Any], list[FieldError]]:
    cleaned: dict[str, Any] = {}
    errors: list[FieldError] = []
    for name, rule in rules.items():
        value = data.get(name, _MISSING)
        if value is _MISSING:
            if partial:
                continue
            if name in defaults:
                default = defaults[name]
                cleaned[name] = dict(default) if isinstance(default, dict) else default
                continue
            value = None
        try:
            cleaned[name] = rule(value)
        except _Invalid as exc:
            errors.append(FieldError(name, str(exc)))
    return cleaned, errors


def validate_user(
    data: Mapping[str, Any], *, partial: bool = False
) -> tuple[dict[str, Any], list[FieldError]]:
    """Validate and normalise user fields (trimmed name, lower-cased email)."""
    return _run_rules(data, _USER_RULES, _USER_DEFAULTS, partial)


def validate_product(
    data: Mapping[str, Any], *, partial: bool = False
) -> tuple[dict[str, Any], list[FieldError]]:
    """Validate and normalise product fields (price quantized to cents)."""
    return _run_rules(data, _PRODUCT_RULES, _PRODUCT_DEFAULTS, partial)
