import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import jwt

from app.core.errors import InvalidSessionError, QuotaExceededError, UnauthorizedError
from app.core.logger import get_logger
from app.guest.entity.session import GuestAuthorization, GuestSession

logger = get_logger("GuestSessionManager")


class GuestSessionManager:
    """
    Issues and validates guest tokens.

    A guest token is an HS256 JWT whose payload is the JSON record
    ``{"jti", "messagesUsed", "iat", "exp"}``. Expiry is fixed at issuance and
    carried over unchanged when usage is recorded. The manager keeps no state
    between calls; callers pass the GuestSession in and get a new one back.
    """

    ALGORITHM = "HS256"

    def __init__(self, secret_key: str, max_messages: int, session_duration_seconds: int):
        self.secret_key = secret_key
        self.max_messages = max_messages
        self.session_duration = timedelta(seconds=session_duration_seconds)

    def issue(self) -> Tuple[GuestSession, str]:
        now = datetime.now(timezone.utc).replace(microsecond=0)
        session = GuestSession(
            token_id=str(uuid.uuid4()),
            messages_used=0,
            issued_at=now,
            expires_at=now + self.session_duration,
        )
        logger.info(f"Issued guest session {session.token_id}")
        return session, self.encode(session)

    def encode(self, session: GuestSession) -> str:
        payload = {
            "jti": session.token_id,
            "messagesUsed": session.messages_used,
            "iat": int(session.issued_at.timestamp()),
            "exp": int(session.expires_at.timestamp()),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.ALGORITHM)

    def decode(self, token: str) -> GuestSession:
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.ALGORITHM],
                options={"require": ["jti", "iat", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidSessionError("Guest session has expired. Please start a new guest session.")
        except jwt.InvalidTokenError:
            raise InvalidSessionError()

        messages_used = payload.get("messagesUsed")
        if type(messages_used) is not int or messages_used < 0:
            raise InvalidSessionError()

        return GuestSession(
            token_id=str(payload["jti"]),
            messages_used=messages_used,
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )

    def remaining(self, session: GuestSession) -> int:
        return max(0, self.max_messages - session.messages_used)

    def authorize(self, token: Optional[str]) -> GuestAuthorization:
        """Check a guest token against the quota. Raises on every rejection."""
        if not token:
            raise UnauthorizedError()

        session = self.decode(token)
        if session.messages_used >= self.max_messages:
            logger.info(f"Guest session {session.token_id} exhausted its quota")
            raise QuotaExceededError(self.max_messages)

        return GuestAuthorization(allowed=True, remaining=self.remaining(session), session=session)

    def record_usage(self, session: GuestSession) -> Tuple[GuestSession, str]:
        updated = session.model_copy(update={"messages_used": session.messages_used + 1})
        logger.debug(
            f"Guest session {updated.token_id} used {updated.messages_used}/{self.max_messages} messages"
        )
        return updated, self.encode(updated)
