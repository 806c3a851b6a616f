"""Authentication service for signup, login and JWT token operations."""
from sqlalchemy.ext.asyncio import AsyncSession
from eventhub.schemas import UserCreate, LoginRequest
from eventhub.db.models.user import User
from eventhub.db.repositories import (
    create_user as db_create_user,
    get_credential_account as db_get_credential_account,
    get_user_by_email as db_get_user_by_email,
)
from eventhub.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    revoke_token,
    validate_password,
    verify_password,
)
from eventhub.core.logging import logger
from fastapi import HTTPException, status


class AuthService:
    """
    Identity operations: registration, login, token refresh and logout.

    The rest of the application only consumes the user id and display
    fields this service vouches for.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def register(self, payload: UserCreate) -> User:
        """
        Register a new user with a credential account.

        Raises:
            HTTPException: 400 if the password is weak or the email is taken
        """
        try:
            validate_password(payload.password)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        existing = await db_get_user_by_email(self.session, payload.email)
        if existing:
            raise HTTPException(status_code=400, detail="Email already registered")

        user = await db_create_user(self.session, payload)
        logger.info(f"User {user.id} registered")
        return user

    async def login(self, form_data: LoginRequest) -> dict:
        """
        Check credentials and issue access and refresh tokens.

        Raises:
            HTTPException: 401 if the credentials are wrong
        """
        user = await db_get_user_by_email(self.session, form_data.email)
        account = await db_get_credential_account(self.session, user.id) if user else None
        if not account or not account.hashed_password or not verify_password(form_data.password, account.hashed_password):
            raise HTTPException(status_code=401, detail="Incorrect credentials")

        token_data = {"sub": user.id, "name": user.name}
        return {
            "access_token": create_access_token(token_data),
            "refresh_token": create_refresh_token(token_data),
            "token_type": "bearer",
        }

    async def refresh_access_token(self, refresh_token: str) -> dict:
        try:
            token_data = decode_token(refresh_token)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid refresh token"
            )

        if token_data.get("type") != "refresh":
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token type"
            )

        access_token = create_access_token({"sub": token_data["sub"], "name": token_data.get("name")})
        return {"access_token": access_token, "token_type": "bearer"}

    async def logout(self, token: str) -> None:
        await revoke_token(token)
