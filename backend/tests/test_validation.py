from decimal import Decimal

import pytest

from lojaroupa.models import Product
from lojaroupa.validation import (
    ModelValidationPolicy,
    ValidationResult,
    coerce_decimal,
    coerce_int,
    enforce_rules_product,
    validate_exchange_payload,
    validate_payload,
    validate_stock_quantity,
    validate_user_fields,
)

POLICY = ModelValidationPolicy(
    writable_fields={"name", "price", "size", "color", "alert_threshold"},
    required_on_create={"name", "price", "size", "color"},
)


class TestCoercion:

    @pytest.mark.parametrize(
        "raw,expected",
        [(10, Decimal("10.00")), ("19.9", Decimal("19.90")), (0.1, Decimal("0.10")), (" 5.55 ", Decimal("5.55"))],
    )
    def test_decimal_accepts(self, raw, expected):
        value, error = coerce_decimal("price", raw)
        assert error is None
        assert value == expected

    @pytest.mark.parametrize("raw", ["", "abc", "1.005", True, "NaN", [1], "1e30", 1e30, "-1e30", "100000000"])
    def test_decimal_rejects(self, raw):
        value, error = coerce_decimal("price", raw)
        assert value is None
        assert error

    def test_decimal_magnitude_is_reported(self):
        assert coerce_decimal("price", "1e30") == (None, "price cannot exceed 99999999.99")
        assert coerce_decimal("price", "99999999.99") == (Decimal("99999999.99"), None)

    def test_int_magnitude_is_reported(self):
        assert coerce_int("quantity", 10**30) == (None, "quantity cannot exceed 2147483647")
        assert coerce_int("quantity", 2147483647) == (2147483647, None)

    @pytest.mark.parametrize("raw,expected", [(3, 3), ("42", 42), (" -1 ", -1)])
    def test_int_accepts(self, raw, expected):
        assert coerce_int("quantity", raw) == (expected, None)

    @pytest.mark.parametrize("raw", [1.5, "1e3", "2.0", True, None, "", 10**30, "2147483648", -2147483648])
    def test_int_rejects(self, raw):
        value, error = coerce_int("quantity", raw)
        assert value is None
        assert error


class TestValidatePayload:

    def test_collects_every_violation(self, app):
        result = validate_payload(
            model=Product,
            payload={"price": "x", "sku": "A1"},
            policy=POLICY,
            partial=False,
        )
        assert not result.ok
        assert "name is required" in result.violations
        assert "price must be a number" in result.violations
        assert "Field not allowed: sku" in result.violations

    def test_partial_allows_missing_required(self, app):
        result = validate_payload(model=Product, payload={"color": "Azul"}, policy=POLICY, partial=True)
        assert result.ok
        assert result.data == {"color": "Azul"}

    def test_partial_rejects_blank_required_column(self, app):
        result = validate_payload(model=Product, payload={"name": "  "}, policy=POLICY, partial=True)
        assert result.violations == ["name cannot be blank"]

    def test_max_length(self, app):
        result = validate_payload(model=Product, payload={"size": "X" * 40}, policy=POLICY, partial=True)
        assert result.violations == ["size exceeds max length 32"]

    def test_non_object_payload(self, app):
        result = validate_payload(model=Product, payload=[1, 2], policy=POLICY, partial=True)
        assert result.violations == ["Invalid JSON payload"]

    def test_product_rules(self, app):
        result = validate_payload(
            model=Product,
            payload={"price": "0", "alert_threshold": -1},
            policy=POLICY,
            partial=True,
        )
        enforce_rules_product(result)
        assert result.violations == ["price must be > 0", "alert_threshold must be >= 0"]


class TestWorkflowPayloads:

    def test_exchange_preserves_order(self):
        result = validate_exchange_payload({
            "transaction_id": "7",
            "new_products": [{"product_id": 3, "quantity": 1}, {"product_id": 1, "quantity": "2"}],
        })
        assert result.ok
        assert result.data == {
            "transaction_id": 7,
            "new_products": [{"product_id": 3, "quantity": 1}, {"product_id": 1, "quantity": 2}],
        }

    def test_exchange_item_errors_are_indexed(self):
        result = validate_exchange_payload({
            "transaction_id": 7,
            "new_products": [{"product_id": 3, "quantity": 1}, "bad"],
        })
        assert result.violations == ["new_products[1] must be an object"]

    @pytest.mark.parametrize("payload", [{"quantity": -1}, {"quantity": "x"}, {}, None])
    def test_stock_quantity_rejects(self, payload):
        result = validate_stock_quantity(payload)
        assert not result.ok

    def test_stock_quantity_zero_allowed(self):
        assert validate_stock_quantity({"quantity": 0}).data == {"quantity": 0}

    def test_user_fields_partial(self):
        result = validate_user_fields({"email": " X@Y.com "}, partial=True)
        assert result.ok
        assert result.data == {"email": "x@y.com"}

    def test_user_fields_unknown_key(self):
        result = validate_user_fields({"is_admin": True}, partial=True)
        assert result.violations == ["Field not allowed: is_admin"]


def test_error_body_shape():
    result = ValidationResult()
    result.add("first")
    result.add("second")
    assert result.error_body() == {
        "error": "first",
        "code": "validation_error",
        "violations": ["first", "second"],
    }
