"""Human-readable reference codes for bookings, payments and tasks."""

from __future__ import annotations

import secrets
import string

from skynest.utils.datetime import utc_now

_ALPHABET = string.ascii_uppercase + string.digits


def _suffix(length: int = 6) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def make_reference(prefix: str) -> str:
    """
    Build a reference such as ``BK-20250101-7QX2LM``.

    Args:
        prefix: Short code for the entity kind (BK, PAY, MNT, SR)

    Returns:
        str: Reference that is unique with overwhelming probability
    """
    return f"{prefix}-{utc_now():%Y%m%d}-{_suffix()}"


def booking_reference() -> str:
    return make_reference("BK")


def payment_reference() -> str:
    return make_reference("PAY")


def maintenance_reference() -> str:
    return make_reference("MNT")


def service_request_reference() -> str:
    return make_reference("SR")
