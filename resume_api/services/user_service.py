import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from resume_api.auth.jwt_handler import decode_refresh_token, hash_password, verify_password
from resume_api.exceptions import ConflictError, UnauthorizedError
from resume_api.models.user import User
from resume_api.repositories.user_repository import UserRepository
from resume_api.services.resume_service import ResumeService
from resume_api.services.token_service import TokenPair, TokenService

logger = logging.getLogger(__name__)


class UserService:
    def __init__(
        self,
        user_repository: UserRepository,
        resume_service: ResumeService,
        token_service: TokenService,
    ):
        self.users = user_repository
        self.resumes = resume_service
        self.tokens = token_service

    async def register(self, email: str, password: str, name: str) -> User:
        if await self.users.get_by_email(email) is not None:
            raise ConflictError("Email already registered")
        try:
            user = await self.users.create(email=email, name=name, hashed_password=hash_password(password))
            await self.users.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent registration for the same email.
            await self.users.rollback()
            logger.info("Registration integrity error for %s: %s", email, e.orig)
            raise ConflictError("Email already registered") from e
        return user

    async def login(self, email: str, password: str) -> TokenPair:
        user = await self.users.get_by_email(email)
        if user is None or not verify_password(password, user.hashed_password):
            raise UnauthorizedError("Invalid email or password")
        return await self.tokens.issue_token_pair(user)

    async def refresh(self, presented_refresh_token: str) -> TokenPair:
        """Exchange the refresh-token cookie for new credentials."""
        payload = decode_refresh_token(presented_refresh_token)
        if payload is None:
            raise UnauthorizedError("Invalid or expired refresh token")
        try:
            user_id = UUID(payload["sub"])
        except ValueError as e:
            raise UnauthorizedError("Invalid token payload") from e
        pair = await self.tokens.validate_and_refresh(user_id, presented_refresh_token)
        if pair is None:
            raise UnauthorizedError("Refresh token not recognized")
        return pair

    async def logout(self, user_id: UUID) -> dict:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise UnauthorizedError("User not found")
        await self.tokens.revoke(user)
        return {"message": "Logged out"}

    async def change_password(self, user_id: UUID, current_password: str, new_password: str) -> dict:
        """Replace the password and revoke the refresh token, forcing re-login elsewhere."""
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise UnauthorizedError("User not found")
        if not verify_password(current_password, user.hashed_password):
            raise UnauthorizedError("Current password is incorrect")
        await self.users.update_password(user, hash_password(new_password))
        await self.tokens.revoke(user)
        return {"message": "Password changed"}

    async def withdraw(self, user_id: UUID) -> dict:
        """Delete every résumé the user owns (with files), then the user."""
        resumes = await self.resumes.list_resumes(user_id)
        for resume in resumes:
            await self.resumes.delete_resume(user_id, resume.id)
        await self.users.delete(user_id)
        await self.users.commit()
        logger.info("User %s withdrew (%d resumes deleted)", user_id, len(resumes))
        return {"message": "Account deleted"}
