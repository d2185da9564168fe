import bcrypt
from fastapi import HTTPException
from app.user.service.user_service import UserService
import logging
from pkg.auth_token_client.client import TokenClient, TokenPayload


class AuthService:
    def __init__(
        self,
        user_service: UserService,
        token_client: TokenClient,
        logger: logging.Logger,
    ):
        self.user_service = user_service
        self.token_client = token_client
        self.logger = logger

    def _hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt()
        return bcrypt.hashpw(password.encode(), salt).decode()

    def _verify_password(self, password: str, hashed: str | None) -> bool:
        if not hashed:
            return False
        return bcrypt.checkpw(password.encode(), hashed.encode())

    def _create_tokens(self, user_id: str, email: str, role: str = "MEMBER") -> dict[str, str]:
        payload = TokenPayload(user_id=user_id, role=role, email=email)
        return self.token_client.create_tokens(payload)

    async def register_with_email(self, email: str, password: str, name: str) -> dict[str, str]:
        """Register a new user and sign them in"""
        try:
            email = email.strip().lower()
            hashed_password = self._hash_password(password)
            user_aggregate = await self.user_service.create_user(email, hashed_password, name)
            self.logger.info(f"Registered user {user_aggregate.user.id}")
            return self._create_tokens(user_id=user_aggregate.user.id, email=email)
        except HTTPException:
            raise
        except Exception as e:
            self.logger.error(f"Error during registration: {e!s}")
            raise HTTPException(status_code=500, detail="Registration failed")

    async def login_with_email(self, email: str, password: str) -> dict[str, str]:
        try:
            user_aggregate = await self.user_service.get_user_by_email(email.strip().lower())
            if not user_aggregate or not user_aggregate.user:
                raise HTTPException(status_code=401, detail="The email is not registered. Please register first.")

            if not self._verify_password(password, user_aggregate.user.password_hash):
                raise HTTPException(status_code=401, detail="The password is incorrect. Please try again.")

            return self._create_tokens(user_id=user_aggregate.user.id, email=user_aggregate.user.email)
        except HTTPException:
            raise
        except Exception as e:
            self.logger.error(f"Error during login: {e!s}")
            raise HTTPException(status_code=500, detail="Login failed")

    async def refresh_token(self, refresh_token: str) -> dict[str, str]:
        try:
            payload = self.token_client.decode_token(refresh_token, is_refresh=True)

            user_aggregate = await self.user_service.get_user_by_id(payload["user_id"])
            if not user_aggregate or not user_aggregate.user:
                raise HTTPException(status_code=401, detail="User not found")

            return self._create_tokens(
                user_id=user_aggregate.user.id,
                email=user_aggregate.user.email,
                role=payload.get("role", "MEMBER"),
            )
        except ValueError as e:
            if "expired" in str(e).lower():
                raise HTTPException(status_code=401, detail="Refresh token has expired")
            raise HTTPException(status_code=400, detail=str(e))
        except HTTPException:
            raise
        except Exception as e:
            self.logger.error(f"Error refreshing token: {e!s}")
            raise HTTPException(status_code=500, detail="Token refresh failed")

    async def verify_token(self, token: str) -> dict:
        """Decode an access token and check the user still exists."""
        try:
            payload = self.token_client.decode_token(token, is_refresh=False)
        except ValueError:
            raise HTTPException(status_code=401, detail="Invalid or expired token")

        user_id = payload.get("user_id")
        if not user_id:
            raise HTTPException(status_code=401, detail="Invalid or expired token")

        try:
            user_aggregate = await self.user_service.get_user_by_id(user_id)
        except Exception as e:
            # If database query fails, treat as invalid token (don't expose DB errors)
            self.logger.error(f"Error fetching user during token verification: {e!s}")
            raise HTTPException(status_code=401, detail="Invalid or expired token")

        if not user_aggregate or not user_aggregate.user:
            raise HTTPException(status_code=401, detail="Invalid or expired token")

        return payload
