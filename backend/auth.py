import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from fastapi import Depends, Header, Request

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class Unauthorized(Exception):
    """Missing, malformed, forged or expired bearer token."""


class TokenService:
    def __init__(self, secret: Optional[str], expires_days: int = 30):
        self.secret = secret
        self.expires_in = timedelta(days=expires_days)

    def _key(self) -> str:
        if not self.secret:
            raise RuntimeError("ACCESS_TOKEN_SECRET is not configured")
        return self.secret

    def issue(self, payload: Dict[str, Any]) -> str:
        claims = dict(payload)
        claims["exp"] = datetime.now(timezone.utc) + self.expires_in
        return jwt.encode(claims, self._key(), algorithm=ALGORITHM)

    def verify(self, token: str) -> Dict[str, Any]:
        if not self.secret:
            logger.error("Cannot verify token: ACCESS_TOKEN_SECRET is not configured")
            raise Unauthorized()
        try:
            return jwt.decode(token, self.secret, algorithms=[ALGORITHM])
        except jwt.PyJWTError as e:
            logger.debug("Rejected token: %s", e)
            raise Unauthorized() from e


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split(" ")
    if len(parts) < 2 or parts[0] != "Bearer" or not parts[1]:
        return None
    return parts[1]


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def verify_jwt(
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
    tokens: TokenService = Depends(get_token_service),
) -> Dict[str, Any]:
    token = bearer_token(authorization)
    if token is None:
        raise Unauthorized()
    return tokens.verify(token)
