"""JWT bearer token handling: issue access tokens and turn them into a Principal. No FastAPI."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from app.domain.models.authorization import Principal
from app.security.exceptions import AuthenticationError

BEARER_PREFIX = "bearer "

# Claim names carried by access tokens.
CLAIM_USER_ID = "sub"
CLAIM_EMAIL = "email"
CLAIM_ROLE = "role"
CLAIM_TENANT_ID = "tenant_id"


def _claim(payload: Dict[str, Any], name: str) -> Optional[str]:
    value = payload.get(name)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def create_access_token(
    *,
    user_id: str,
    email: str,
    role: str,
    tenant_id: str,
    secret: str,
    algorithm: str = "HS256",
    expires_minutes: int = 60,
) -> str:
    """Create a signed access token carrying the identity claims."""
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode = {
        CLAIM_USER_ID: str(user_id),
        CLAIM_EMAIL: email,
        CLAIM_ROLE: role,
        CLAIM_TENANT_ID: str(tenant_id),
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(to_encode, secret, algorithm=algorithm)


def decode_principal(token: str, secret: str, algorithm: str = "HS256") -> Principal:
    """Decode and validate a token. Raises AuthenticationError if invalid or expired."""
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except JWTError as e:
        raise AuthenticationError(f"Invalid or expired token: {e}") from e
    return Principal(
        user_id=_claim(payload, CLAIM_USER_ID),
        email=_claim(payload, CLAIM_EMAIL),
        role=_claim(payload, CLAIM_ROLE),
        tenant_id=_claim(payload, CLAIM_TENANT_ID),
    )


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token from an 'Authorization: Bearer <token>' header value, or None."""
    if not authorization or not authorization.lower().startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None
