"""Domain layer: models, schemas, validators, exceptions. Pure business logic only."""

from app.domain.exceptions import (
    DomainError,
    DomainValidationError,
    InvalidTenantIdError,
)
from app.domain.models import (
    AuthorizationDecision,
    DecisionTier,
    PermissionAction,
    Principal,
)
from app.domain.schemas import AuditLogPage, AuditLogResponse
from app.domain.validators import parse_tenant_id

__all__ = [
    "AuditLogPage",
    "AuditLogResponse",
    "AuthorizationDecision",
    "DecisionTier",
    "DomainError",
    "DomainValidationError",
    "InvalidTenantIdError",
    "PermissionAction",
    "Principal",
    "parse_tenant_id",
]
