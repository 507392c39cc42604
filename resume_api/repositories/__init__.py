from .resume_repository import ResumeRepository
from .user_repository import UserRepository

__all__ = ["ResumeRepository", "UserRepository"]
