"""
Authentication for the FastAPI API: signup/signin flow and the bearer token gate.
"""

from typing import Optional

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from api.database import Repository, get_session
from api.exceptions import (
    ConflictError, ForbiddenError, InvalidCredentialsError,
    MisconfigurationError, NotFoundError, UnauthorizedError
)
from api.models import AuthResponse, CrmCardDetailResponse, SigninResponse, UserResponse
from api.security import InvalidTokenError, PasswordHasher, TokenClaims, TokenManager
from storage.models import CrmCard, User, UserType

logger = structlog.get_logger(__name__)

# Security scheme; a missing header is reported by the gate itself
security = HTTPBearer(auto_error=False)


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_token_manager(request: Request) -> TokenManager:
    return request.app.state.token_manager


class AuthService:
    """Signup and signin on top of the user, user type and CRM card tables."""

    def __init__(self, session: AsyncSession, hasher: PasswordHasher, tokens: TokenManager):
        self.session = session
        self.hasher = hasher
        self.tokens = tokens
        self.users = Repository(session, User)
        self.user_types = Repository(session, UserType)
        self.crm_cards = Repository(session, CrmCard, (selectinload(CrmCard.user_type),))

    async def signup(self, login: str, password: str) -> AuthResponse:
        """
        Register a user and give them a CRM card with the default user type.

        Args:
            login: Requested login
            password: Plain-text password

        Returns:
            The new user (without password) and CRM card

        Raises:
            ConflictError: If the login is taken
            MisconfigurationError: If no user type is flagged as the default role
        """
        if await self.users.find_one(User.login == login) is not None:
            logger.warning("Signup rejected, login taken", login=login)
            raise ConflictError(f"User with login '{login}' already exists")

        user = User(login=login, password=self.hasher.hash(password))
        self.session.add(user)
        try:
            await self.session.flush()
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning("Signup rejected by store", login=login, error=str(e.orig))
            raise ConflictError(f"User with login '{login}' already exists") from e

        user_type = await self.user_types.find_one(UserType.is_user.is_(True))
        if user_type is None:
            await self.session.rollback()
            logger.error("No default user type configured")
            raise MisconfigurationError("UserType not found")

        card = CrmCard(user_id=user.id, user_type_id=user_type.id)
        self.session.add(card)
        await self.session.commit()

        card = await self.crm_cards.find_by_id(card.id)
        logger.info("User signed up", user_id=user.id, login=login)
        return AuthResponse(
            user=UserResponse.model_validate(user),
            user_crm=CrmCardDetailResponse.model_validate(card),
        )

    async def signin(self, login: str, password: str) -> SigninResponse:
        """
        Authenticate a user and issue an access token.

        Raises:
            NotFoundError: If the login is unknown
            InvalidCredentialsError: If the password does not match
        """
        user = await self.users.find_one(User.login == login)
        if user is None:
            logger.warning("Signin failed, unknown login", login=login)
            raise NotFoundError("User not found")

        if not self.hasher.verify(password, user.password):
            logger.warning("Signin failed, wrong password", login=login)
            raise InvalidCredentialsError("Invalid password")

        card = await self.crm_cards.find_one(CrmCard.user_id == user.id)
        token = self.tokens.issue(user.id, user.login)

        logger.info("User signed in", user_id=user.id)
        return SigninResponse(
            user=UserResponse.model_validate(user),
            user_crm=CrmCardDetailResponse.model_validate(card) if card else None,
            access_token=token,
        )


def get_auth_service(
    session: AsyncSession = Depends(get_session),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenManager = Depends(get_token_manager),
) -> AuthService:
    return AuthService(session, hasher, tokens)


async def authenticate(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    tokens: TokenManager = Depends(get_token_manager),
) -> TokenClaims:
    """
    Verify the bearer token of a protected request.

    Args:
        request: Current request; receives the claims on request.state.user
        credentials: HTTP authorization credentials, None if absent

    Returns:
        Decoded token claims

    Raises:
        UnauthorizedError: If no bearer token was sent
        ForbiddenError: If the token is invalid or expired
    """
    if credentials is None or not credentials.credentials:
        logger.info("Request without token rejected", path=request.url.path)
        raise UnauthorizedError("Token required")

    try:
        claims = tokens.verify(credentials.credentials)
    except InvalidTokenError as e:
        logger.warning("Invalid token", path=request.url.path, error=str(e))
        raise ForbiddenError("Invalid or expired token") from e

    request.state.user = claims
    return claims
