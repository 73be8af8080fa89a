from __future__ import annotations

from typing import Any


class ValidationError(ValueError):
    """400-level input problem."""


def require_fields(payload: dict, *fields: str) -> None:
    missing = [f for f in fields if payload.get(f) is None]
    if missing:
        raise ValidationError(f"missing required field(s): {', '.join(missing)}")


def parse_int(value: Any, field: str) -> int:
    """
    Strict integer coercion for JSON/query input.

    Accepts ints and plain digit strings; rejects bools, floats,
    decimals and scientific notation.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e15") and decimals (e.g., "12.5")
        if "e" in stripped.lower() or "." in stripped:
            raise ValidationError(f"{field} must be a plain integer")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def parse_optional_int(value: Any, field: str) -> int | None:
    if value is None:
        return None
    return parse_int(value, field)


def parse_categories(payload: dict) -> list[str]:
    categories = payload.get("categories")
    if isinstance(categories, str):
        categories = [categories]
    if not categories or not isinstance(categories, list):
        raise ValidationError("categories must be a non-empty list")
    cleaned = [str(c).strip() for c in categories if c is not None and str(c).strip()]
    if not cleaned:
        raise ValidationError("categories must be a non-empty list")
    return cleaned
