"""Tenant identifier validation. Pure functions, no infrastructure or DB access."""

from typing import Union

from app.domain.exceptions import InvalidTenantIdError


def parse_tenant_id(tenant_id: Union[int, str]) -> int:
    """
    Convert a tenant identifier (claim string or int) to the stored integer form.
    Raises InvalidTenantIdError for empty, non-numeric or non-positive values;
    there is no fallback to an unscoped query.
    """
    if isinstance(tenant_id, bool) or not isinstance(tenant_id, (int, str)):
        raise InvalidTenantIdError(
            f"tenant_id must be an int or numeric string, got {type(tenant_id).__name__}"
        )
    if isinstance(tenant_id, int):
        value = tenant_id
    else:
        text = tenant_id.strip()
        if not text:
            raise InvalidTenantIdError("tenant_id must not be empty")
        # Only ASCII digits: str.isdigit() also accepts superscripts that int() rejects.
        if not (text.isascii() and text.isdigit()):
            raise InvalidTenantIdError(f"tenant_id must be numeric, got '{text}'")
        value = int(text)
    if value <= 0:
        raise InvalidTenantIdError(f"tenant_id must be a positive integer, got {value}")
    return value
