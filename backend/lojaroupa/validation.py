from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .models.auth import ACCESS_LEVELS
from .models.inventory import DIRECTIONS


# Maximum price: 99,999,999.99 fits Numeric(10, 2)
MAX_PRICE = Decimal("99999999.99")

# Largest value a 32-bit Integer column holds on every supported engine
MAX_INT = 2_147_483_647

EMAIL_RE = re.compile(r"^[\w-]+(\.[\w-]+)*@([\w-]+\.)+[a-zA-Z]{2,7}$")


@dataclass
class ValidationResult:
    """
    Outcome of validating one payload.

    Validators never raise on bad input; they collect every violation so the
    caller can answer with the full list in one response.
    """
    data: dict = field(default_factory=dict)
    violations: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations

    def add(self, message: str) -> None:
        self.violations.append(message)

    def error_body(self) -> dict:
        return {
            "error": self.violations[0] if self.violations else "Invalid payload",
            "code": "validation_error",
            "violations": list(self.violations),
        }


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_decimal(key: str, value: Any) -> tuple[Decimal | None, str | None]:
    """Accept ints, numeric strings and floats; at most two decimal places."""
    if isinstance(value, bool):
        return None, f"{key} must be a number"
    if isinstance(value, float):
        # JSON numbers arrive as float; go through repr to avoid binary noise
        value = repr(value)
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None, f"{key} must be a number"
    try:
        dec = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return None, f"{key} must be a number"
    if not dec.is_finite():
        return None, f"{key} must be a finite number"
    # quantize() overflows the decimal context past 28 digits
    if dec.copy_abs() > MAX_PRICE:
        return None, f"{key} cannot exceed {MAX_PRICE}"
    if dec.as_tuple().exponent < -2:
        return None, f"{key} must have at most 2 decimal places"
    return dec.quantize(Decimal("0.01")), None


def coerce_int(key: str, value: Any) -> tuple[int | None, str | None]:
    val, error = _parse_int(key, value)
    if error is None and abs(val) > MAX_INT:
        return None, f"{key} cannot exceed {MAX_INT}"
    return val, error


def _parse_int(key: str, value: Any) -> tuple[int | None, str | None]:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value, None
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None, f"{key} must be an integer"
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            return None, f"{key} must be a plain integer (scientific notation not allowed)"
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            return None, f"{key} must be an integer (no decimals)"
        try:
            return int(stripped), None
        except ValueError:
            return None, f"{key} must be an integer"
    if isinstance(value, float):
        return None, f"{key} must be an integer, not a decimal"
    return None, f"{key} must be an integer"


def _coerce_value(col, value: Any) -> tuple[Any, str | None]:
    coltype = col.type

    if value is None:
        return None, None

    if isinstance(coltype, Integer):
        return coerce_int(col.key, value)

    if isinstance(coltype, Numeric):
        return coerce_decimal(col.key, value)

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value, None
        return None, f"{col.key} must be a boolean"

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            return None, f"{col.key} must be a string"
        return str(value).strip(), None

    # Default: leave as-is
    return value, None


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: Any,
    policy: ModelValidationPolicy,
    partial: bool,
) -> ValidationResult:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    result = ValidationResult()

    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        result.add("Invalid JSON payload")
        return result

    required = (policy.required_on_create or set()) if not partial else set()
    if required:
        for f in sorted(required):
            raw = payload.get(f)
            if raw is None or (isinstance(raw, str) and not raw.strip()):
                result.add(f"{f} is required")

    cols = _columns_by_key(model)

    for k, raw in payload.items():
        # Reject unknown / non-writable fields
        if k not in policy.writable_fields:
            result.add(f"Field not allowed: {k}")
            continue
        col = cols.get(k)
        if col is None:
            # Policy may list virtual fields (e.g. "category", "password"); caller handles them
            continue

        if raw is None:
            if not col.nullable and k not in required:
                result.add(f"{k} cannot be null")
            elif col.nullable:
                result.data[k] = None
            continue

        val, error = _coerce_value(col, raw)
        if error:
            result.add(error)
            continue

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                if k not in required:
                    result.add(f"{k} cannot be blank")
                continue

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                result.add(f"{k} exceeds max length {col.type.length}")
                continue

        result.data[k] = val

    return result


def enforce_rules_product(result: ValidationResult) -> ValidationResult:
    """Business rules that are not captured by SQLAlchemy metadata alone."""
    patch = result.data
    if patch.get("price") is not None:
        price = patch["price"]
        if price <= 0:
            result.add("price must be > 0")
        elif price > MAX_PRICE:
            result.add(f"price cannot exceed {MAX_PRICE}")
    if patch.get("alert_threshold") is not None and patch["alert_threshold"] < 0:
        result.add("alert_threshold must be >= 0")
    return result


def enforce_rules_movement(result: ValidationResult) -> ValidationResult:
    patch = result.data
    if "type" in patch and patch["type"] not in DIRECTIONS:
        result.add('type must be "in" or "out"')
    if "quantity" in patch and patch["quantity"] <= 0:
        result.add("quantity must be > 0")
    if "transaction_price" in patch:
        price = patch["transaction_price"]
        if price <= 0:
            result.add("transaction_price must be > 0")
        elif price > MAX_PRICE:
            result.add(f"transaction_price cannot exceed {MAX_PRICE}")
    return result


def validate_transaction_reference(payload: Any) -> ValidationResult:
    """{"transaction_id": int} as sent to the return endpoint."""
    result = ValidationResult()
    if not isinstance(payload, dict):
        result.add("Invalid JSON payload")
        return result

    raw = payload.get("transaction_id")
    if raw is None or raw == "":
        result.add("transaction_id is required")
        return result
    tx_id, error = coerce_int("transaction_id", raw)
    if error:
        result.add(error)
    elif tx_id <= 0:
        result.add("transaction_id must be > 0")
    else:
        result.data["transaction_id"] = tx_id
    return result


def validate_exchange_payload(payload: Any) -> ValidationResult:
    """
    {"transaction_id": int, "new_products": [{"product_id": int, "quantity": int}, ...]}

    new_products must be a non-empty list; order is preserved.
    """
    result = validate_transaction_reference(payload)
    if not isinstance(payload, dict):
        return result

    items = payload.get("new_products")
    if not isinstance(items, list) or not items:
        result.add("new_products must be a non-empty list")
        return result

    cleaned = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            result.add(f"new_products[{index}] must be an object")
            continue
        product_id, error = coerce_int(f"new_products[{index}].product_id", item.get("product_id"))
        if error:
            result.add(error)
            continue
        quantity, error = coerce_int(f"new_products[{index}].quantity", item.get("quantity"))
        if error:
            result.add(error)
            continue
        if quantity <= 0:
            result.add(f"new_products[{index}].quantity must be > 0")
            continue
        cleaned.append({"product_id": product_id, "quantity": quantity})

    result.data["new_products"] = cleaned
    return result


def validate_stock_quantity(payload: Any) -> ValidationResult:
    result = ValidationResult()
    if not isinstance(payload, dict):
        result.add("Invalid JSON payload")
        return result
    quantity, error = coerce_int("quantity", payload.get("quantity"))
    if error:
        result.add("Invalid quantity. Must be a number greater than or equal to zero.")
    elif quantity < 0:
        result.add("Invalid quantity. Must be a number greater than or equal to zero.")
    else:
        result.data["quantity"] = quantity
    return result


def validate_user_fields(payload: Any, *, partial: bool) -> ValidationResult:
    """
    name 2..100 chars, valid email, password 6..100 chars, access level in
    ACCESS_LEVELS. On update (partial=True) only provided fields are checked.
    """
    result = ValidationResult()
    if not isinstance(payload, dict):
        result.add("Invalid JSON payload")
        return result

    allowed = {"name", "email", "password", "access_level"}
    for k in payload:
        if k not in allowed:
            result.add(f"Field not allowed: {k}")

    def _present(key):
        value = payload.get(key)
        return value is not None and not (isinstance(value, str) and not value.strip())

    if not partial:
        for key in ("name", "email", "password", "access_level"):
            if not _present(key):
                result.add(f"{key} is required")

    if _present("name"):
        name = str(payload["name"]).strip()
        if len(name) < 2 or len(name) > 100:
            result.add("name must be between 2 and 100 characters")
        else:
            result.data["name"] = name

    if _present("email"):
        email = str(payload["email"]).strip().lower()
        if not EMAIL_RE.match(email):
            result.add("Invalid email")
        else:
            result.data["email"] = email

    if _present("password"):
        password = str(payload["password"])
        if len(password) < 6 or len(password) > 100:
            result.add("password must be between 6 and 100 characters")
        else:
            result.data["password"] = password

    if _present("access_level"):
        level = str(payload["access_level"]).strip()
        if level not in ACCESS_LEVELS:
            result.add("Invalid access level")
        else:
            result.data["access_level"] = level

    return result
