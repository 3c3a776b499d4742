"""Domain models. Pure business entities."""

from app.domain.models.authorization import (
    CRUD_ACTIONS,
    UNKNOWN_RESOURCE,
    WILDCARD_VALUES,
    AuthorizationDecision,
    DecisionTier,
    PermissionAction,
    Principal,
)

__all__ = [
    "CRUD_ACTIONS",
    "UNKNOWN_RESOURCE",
    "WILDCARD_VALUES",
    "AuthorizationDecision",
    "DecisionTier",
    "PermissionAction",
    "Principal",
]
