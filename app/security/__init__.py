"""Security: authentication, role defaults, permission resolution. No FastAPI."""

from app.security.authentication import create_access_token, decode_principal
from app.security.permission_resolver import PermissionResolver
from app.security.role_policy import RolePolicy, build_default_role_policy

__all__ = [
    "PermissionResolver",
    "RolePolicy",
    "build_default_role_policy",
    "create_access_token",
    "decode_principal",
]
