"""
Resume Repository
"""
from typing import Any, Iterable, Optional, TypeVar
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from resume_api.models.resume import Education, Experience, Portfolio, Resume, Skill

ChildT = TypeVar("ChildT", Education, Experience, Skill, Portfolio)

# Child tables wiped by a full replace or a cascade delete. Portfolios are
# handled separately because their stored files must go first.
ATTRIBUTE_CHILDREN = (Education, Experience, Skill)


class ResumeRepository:
    """Resume aggregate data access layer. Writes are flushed; callers own the commit."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # --- Resume ---

    async def create_resume(self, user_id: UUID, data: dict[str, Any]) -> Resume:
        resume = Resume(user_id=user_id, **data)
        self.db.add(resume)
        await self.db.flush()
        return resume

    async def get_resume(self, resume_id: UUID) -> Optional[Resume]:
        """Load a résumé with every child collection, overwriting stale identity-map state."""
        result = await self.db.execute(
            select(Resume)
            .where(Resume.id == resume_id)
            .options(
                selectinload(Resume.educations),
                selectinload(Resume.experiences),
                selectinload(Resume.skills),
                selectinload(Resume.portfolios),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_by_user(self, user_id: UUID) -> list[Resume]:
        result = await self.db.execute(
            select(Resume)
            .where(Resume.user_id == user_id)
            .order_by(Resume.created_at.asc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def update_resume(self, resume: Resume, data: dict[str, Any]) -> Resume:
        for key, value in data.items():
            setattr(resume, key, value)
        await self.db.flush()
        return resume

    async def delete_resume(self, resume_id: UUID) -> None:
        await self.db.execute(delete(Resume).where(Resume.id == resume_id))

    # --- Generic child helpers ---

    async def _add_child(self, model: type[ChildT], resume_id: UUID, data: dict[str, Any]) -> ChildT:
        child = model(resume_id=resume_id, **data)
        self.db.add(child)
        await self.db.flush()
        return child

    async def add_children(self, model: type[ChildT], resume_id: UUID, rows: Iterable[dict[str, Any]]) -> list[ChildT]:
        """Insert many children of one kind in a single flush."""
        children = [model(resume_id=resume_id, **row) for row in rows]
        if children:
            self.db.add_all(children)
            await self.db.flush()
        return children

    async def _get_child(self, model: type[ChildT], resume_id: UUID, child_id: UUID) -> Optional[ChildT]:
        result = await self.db.execute(
            select(model).where(model.id == child_id, model.resume_id == resume_id)
        )
        return result.scalar_one_or_none()

    async def _update_child(self, child: ChildT, data: dict[str, Any]) -> ChildT:
        for key, value in data.items():
            setattr(child, key, value)
        await self.db.flush()
        return child

    async def _delete_child(self, model: type[ChildT], child_id: UUID) -> None:
        await self.db.execute(delete(model).where(model.id == child_id))

    async def delete_children(self, resume_id: UUID) -> None:
        """Remove every education, experience and skill row of a résumé."""
        for model in ATTRIBUTE_CHILDREN:
            await self.db.execute(delete(model).where(model.resume_id == resume_id))

    # --- Education ---

    async def add_education(self, resume_id: UUID, data: dict[str, Any]) -> Education:
        return await self._add_child(Education, resume_id, data)

    async def get_education(self, resume_id: UUID, education_id: UUID) -> Optional[Education]:
        return await self._get_child(Education, resume_id, education_id)

    async def update_education(self, education: Education, data: dict[str, Any]) -> Education:
        return await self._update_child(education, data)

    async def delete_education(self, education_id: UUID) -> None:
        await self._delete_child(Education, education_id)

    # --- Experience ---

    async def add_experience(self, resume_id: UUID, data: dict[str, Any]) -> Experience:
        return await self._add_child(Experience, resume_id, data)

    async def get_experience(self, resume_id: UUID, experience_id: UUID) -> Optional[Experience]:
        return await self._get_child(Experience, resume_id, experience_id)

    async def update_experience(self, experience: Experience, data: dict[str, Any]) -> Experience:
        return await self._update_child(experience, data)

    async def delete_experience(self, experience_id: UUID) -> None:
        await self._delete_child(Experience, experience_id)

    # --- Skill ---

    async def add_skill(self, resume_id: UUID, data: dict[str, Any]) -> Skill:
        return await self._add_child(Skill, resume_id, data)

    async def get_skill(self, resume_id: UUID, skill_id: UUID) -> Optional[Skill]:
        return await self._get_child(Skill, resume_id, skill_id)

    async def update_skill(self, skill: Skill, data: dict[str, Any]) -> Skill:
        return await self._update_child(skill, data)

    async def delete_skill(self, skill_id: UUID) -> None:
        await self._delete_child(Skill, skill_id)

    # --- Portfolio ---

    async def add_portfolio(self, resume_id: UUID, data: dict[str, Any]) -> Portfolio:
        return await self._add_child(Portfolio, resume_id, data)

    async def get_portfolio(self, resume_id: UUID, portfolio_id: UUID) -> Optional[Portfolio]:
        return await self._get_child(Portfolio, resume_id, portfolio_id)

    async def get_portfolio_by_name(self, resume_id: UUID, original_name: str) -> Optional[Portfolio]:
        result = await self.db.execute(
            select(Portfolio).where(
                Portfolio.resume_id == resume_id,
                Portfolio.original_name == original_name,
            )
        )
        return result.scalar_one_or_none()

    async def list_portfolios(self, resume_id: UUID) -> list[Portfolio]:
        result = await self.db.execute(
            select(Portfolio).where(Portfolio.resume_id == resume_id).order_by(Portfolio.created_at.asc())
        )
        return list(result.scalars().all())

    async def update_portfolio(self, portfolio: Portfolio, data: dict[str, Any]) -> Portfolio:
        return await self._update_child(portfolio, data)

    async def delete_portfolio(self, portfolio_id: UUID) -> None:
        await self._delete_child(Portfolio, portfolio_id)

    async def delete_portfolios(self, portfolio_ids: list[UUID]) -> None:
        if portfolio_ids:
            await self.db.execute(delete(Portfolio).where(Portfolio.id.in_(portfolio_ids)))

    async def commit(self) -> None:
        await self.db.commit()
