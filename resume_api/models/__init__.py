from .user import User
from .resume import Education, Experience, Portfolio, Resume, Skill

__all__ = [
    "User",
    "Resume",
    "Education",
    "Experience",
    "Skill",
    "Portfolio",
]
