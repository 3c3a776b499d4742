"""Domain validators. Pure validation functions."""

from app.domain.validators.tenant_validator import parse_tenant_id

__all__ = [
    "parse_tenant_id",
]
