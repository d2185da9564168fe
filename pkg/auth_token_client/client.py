from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

ACCESS = "access"
REFRESH = "refresh"


@dataclass
class TokenPayload:
    user_id: str
    role: str = "MEMBER"
    email: str | None = None

    def claims(self) -> dict:
        return {"user_id": str(self.user_id), "role": self.role, "email": self.email}


class TokenClient:
    """Signs and verifies the access/refresh pair. Each kind has its own secret and a `typ` claim."""

    ALGORITHM = "HS256"
    ACCESS_TOKEN_TTL = timedelta(hours=24)
    REFRESH_TOKEN_TTL = timedelta(days=14)

    def __init__(self, secret_key: str, refresh_secret_key: str, leeway_seconds: int = 10):
        self._secrets = {ACCESS: secret_key, REFRESH: refresh_secret_key}
        # Allow small clock skew when decoding tokens
        self.leeway_seconds = leeway_seconds

    def create_tokens(self, payload: TokenPayload) -> dict[str, str]:
        """Create access and refresh tokens"""
        claims = payload.claims()
        return {
            "access_token": self._encode(claims, ACCESS, self.ACCESS_TOKEN_TTL),
            "refresh_token": self._encode(claims, REFRESH, self.REFRESH_TOKEN_TTL),
        }

    def _encode(self, claims: dict, kind: str, ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        body = {**claims, "typ": kind, "iat": int(now.timestamp()), "exp": now + ttl}
        return jwt.encode(body, self._secrets[kind], algorithm=self.ALGORITHM)

    def decode_token(self, token: str, is_refresh: bool = False) -> dict:
        """Decode and verify a token; raises ValueError on any problem."""
        kind = REFRESH if is_refresh else ACCESS
        try:
            payload = jwt.decode(
                token,
                self._secrets[kind],
                algorithms=[self.ALGORITHM],
                leeway=self.leeway_seconds,
            )
        except jwt.ExpiredSignatureError:
            raise ValueError("Token has expired")
        except jwt.InvalidTokenError:
            raise ValueError("Invalid token")

        if payload.get("typ") != kind:
            raise ValueError("Invalid token")
        return payload
