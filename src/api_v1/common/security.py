from __future__ import annotations

from typing import Any

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import ExpiredSignatureError, InvalidTokenError
from jwt.exceptions import MissingRequiredClaimError

from core.config import settings

from .errors import JsonApiError

_bearer_scheme = HTTPBearer(auto_error=False)


# NOTE: using explicit security dependency so Swagger UI sends Authorization header
async def require_service_token(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
) -> dict[str, Any]:
    secret_key = settings.json_api.secret_key
    algorithm = settings.json_api.algorithm

    if not secret_key:
        raise JsonApiError(503, 5001, "JSON API secret key is not configured")
    if not credentials or credentials.scheme.lower() != "bearer":
        raise JsonApiError(401, 4001, "Missing or invalid Authorization header")

    try:
        return jwt.decode(
            credentials.credentials.strip(),
            secret_key,
            algorithms=[algorithm],
            options={"require": ["exp"]},
        )
    except ExpiredSignatureError:
        raise JsonApiError(401, 4005, "Token expired")
    except MissingRequiredClaimError:
        raise JsonApiError(401, 4003, "Token missing required claim")
    except InvalidTokenError:
        raise JsonApiError(401, 4002, "Unauthorized")
