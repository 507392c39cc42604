"""Résumé aggregate operations: ownership checks, child CRUD, portfolio files,
composite writes and cascade delete.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import AsyncIterator, Optional, Sequence
from uuid import UUID

from resume_api.config import Settings
from resume_api.exceptions import NotFoundError, UnauthorizedError, ValidationError
from resume_api.models.base import utcnow
from resume_api.models.resume import Education, Experience, Portfolio, Resume, Skill
from resume_api.repositories.resume_repository import ResumeRepository
from resume_api.schemas.resume import (
    CompleteResumeRequest,
    EducationIn,
    ExperienceIn,
    ResumeCreate,
    ResumeUpdate,
    SkillIn,
)
from resume_api.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


@dataclass
class FileUpload:
    filename: str
    content: bytes
    content_type: Optional[str] = None


def _safe_filename(filename: Optional[str]) -> str:
    """Strip any directory components a client put in the file name."""
    name = PurePosixPath((filename or "").replace("\\", "/")).name.strip()
    if not name or name in (".", ".."):
        raise ValidationError("File name is required")
    return name


class ResumeService:
    def __init__(self, repository: ResumeRepository, object_store: ObjectStore, settings: Settings):
        self.repo = repository
        self.store = object_store
        self.settings = settings

    # --- Résumé ---

    async def get_resume(self, user_id: UUID, resume_id: UUID) -> Resume:
        """Fetch a résumé the caller owns. Every other operation goes through here first."""
        resume = await self.repo.get_resume(resume_id)
        if resume is None:
            raise NotFoundError("Resume not found")
        if resume.user_id != user_id:
            raise UnauthorizedError("You do not have access to this resume")
        return resume

    async def list_resumes(self, user_id: UUID) -> list[Resume]:
        return await self.repo.list_by_user(user_id)

    async def create_resume(self, user_id: UUID, payload: ResumeCreate) -> Resume:
        resume = await self.repo.create_resume(user_id, payload.model_dump())
        await self.repo.commit()
        return await self.get_resume(user_id, resume.id)

    async def update_resume(self, user_id: UUID, resume_id: UUID, payload: ResumeUpdate) -> Resume:
        resume = await self.get_resume(user_id, resume_id)
        await self.repo.update_resume(resume, payload.model_dump(exclude_unset=True))
        await self.repo.commit()
        return await self.get_resume(user_id, resume_id)

    async def delete_resume(self, user_id: UUID, resume_id: UUID) -> dict:
        """Delete a résumé, its children and its stored files.

        File deletions run concurrently and are best-effort: a failure is
        logged and the rows are removed anyway. The résumé row goes last.
        """
        resume = await self.get_resume(user_id, resume_id)
        portfolios = list(resume.portfolios)

        results = await asyncio.gather(*(self._delete_stored_file(p.storage_key) for p in portfolios))
        failed = results.count(False)
        if failed:
            logger.warning(
                "Resume %s: %d of %d portfolio files could not be deleted from storage",
                resume_id, failed, len(portfolios),
            )

        await self.repo.delete_portfolios([p.id for p in portfolios])
        await self.repo.delete_children(resume_id)
        await self.repo.delete_resume(resume_id)
        await self.repo.commit()
        logger.info("Deleted resume %s for user %s", resume_id, user_id)
        return {"message": "Resume deleted"}

    async def _delete_stored_file(self, storage_key: str) -> bool:
        try:
            await self.store.delete(storage_key)
            return True
        except Exception as e:
            logger.warning("Failed to delete stored file %s: %s", storage_key, e)
            return False

    # --- Composite writes ---

    async def create_complete_resume(
        self,
        user_id: UUID,
        payload: CompleteResumeRequest,
        files: Sequence[FileUpload] = (),
    ) -> Resume:
        uploads = self._validate_uploads(files)
        resume = await self.repo.create_resume(user_id, payload.basic_info.model_dump())
        await self._insert_children(resume.id, payload)
        await self._store_portfolios(resume.id, uploads)
        await self.repo.commit()
        return await self.get_resume(user_id, resume.id)

    async def update_complete_resume(
        self,
        user_id: UUID,
        resume_id: UUID,
        payload: CompleteResumeRequest,
        files: Sequence[FileUpload] = (),
    ) -> Resume:
        """Replace basic info and every education, experience and skill row.

        Children missing from ``payload`` are discarded, not merged. Uploaded
        files are upserted by name; existing portfolios are kept.
        """
        resume = await self.get_resume(user_id, resume_id)
        uploads = self._validate_uploads(files)
        await self.repo.update_resume(resume, payload.basic_info.model_dump())
        await self.repo.delete_children(resume_id)
        await self._insert_children(resume_id, payload)
        await self._store_portfolios(resume_id, uploads)
        await self.repo.commit()
        return await self.get_resume(user_id, resume_id)

    async def _insert_children(self, resume_id: UUID, payload: CompleteResumeRequest) -> None:
        await self.repo.add_children(Education, resume_id, (e.model_dump() for e in payload.educations))
        await self.repo.add_children(Experience, resume_id, (e.model_dump() for e in payload.experiences))
        await self.repo.add_children(Skill, resume_id, (s.model_dump() for s in payload.skills))

    # --- Education ---

    async def add_education(self, user_id: UUID, resume_id: UUID, payload: EducationIn) -> Education:
        await self.get_resume(user_id, resume_id)
        education = await self.repo.add_education(resume_id, payload.model_dump())
        await self.repo.commit()
        return education

    async def update_education(
        self, user_id: UUID, resume_id: UUID, education_id: UUID, payload: EducationIn
    ) -> Education:
        await self.get_resume(user_id, resume_id)
        education = await self.repo.get_education(resume_id, education_id)
        if education is None:
            raise NotFoundError("Education not found")
        await self.repo.update_education(education, payload.model_dump())
        await self.repo.commit()
        return education

    async def delete_education(self, user_id: UUID, resume_id: UUID, education_id: UUID) -> dict:
        await self.get_resume(user_id, resume_id)
        if await self.repo.get_education(resume_id, education_id) is None:
            raise NotFoundError("Education not found")
        await self.repo.delete_education(education_id)
        await self.repo.commit()
        return {"message": "Education deleted"}

    # --- Experience ---

    async def add_experience(self, user_id: UUID, resume_id: UUID, payload: ExperienceIn) -> Experience:
        await self.get_resume(user_id, resume_id)
        experience = await self.repo.add_experience(resume_id, payload.model_dump())
        await self.repo.commit()
        return experience

    async def update_experience(
        self, user_id: UUID, resume_id: UUID, experience_id: UUID, payload: ExperienceIn
    ) -> Experience:
        await self.get_resume(user_id, resume_id)
        experience = await self.repo.get_experience(resume_id, experience_id)
        if experience is None:
            raise NotFoundError("Experience not found")
        await self.repo.update_experience(experience, payload.model_dump())
        await self.repo.commit()
        return experience

    async def delete_experience(self, user_id: UUID, resume_id: UUID, experience_id: UUID) -> dict:
        await self.get_resume(user_id, resume_id)
        if await self.repo.get_experience(resume_id, experience_id) is None:
            raise NotFoundError("Experience not found")
        await self.repo.delete_experience(experience_id)
        await self.repo.commit()
        return {"message": "Experience deleted"}

    # --- Skill ---

    async def add_skill(self, user_id: UUID, resume_id: UUID, payload: SkillIn) -> Skill:
        await self.get_resume(user_id, resume_id)
        skill = await self.repo.add_skill(resume_id, payload.model_dump())
        await self.repo.commit()
        return skill

    async def update_skill(self, user_id: UUID, resume_id: UUID, skill_id: UUID, payload: SkillIn) -> Skill:
        await self.get_resume(user_id, resume_id)
        skill = await self.repo.get_skill(resume_id, skill_id)
        if skill is None:
            raise NotFoundError("Skill not found")
        await self.repo.update_skill(skill, payload.model_dump())
        await self.repo.commit()
        return skill

    async def delete_skill(self, user_id: UUID, resume_id: UUID, skill_id: UUID) -> dict:
        await self.get_resume(user_id, resume_id)
        if await self.repo.get_skill(resume_id, skill_id) is None:
            raise NotFoundError("Skill not found")
        await self.repo.delete_skill(skill_id)
        await self.repo.commit()
        return {"message": "Skill deleted"}

    # --- Portfolio ---

    def _validate_uploads(self, files: Sequence[FileUpload]) -> list[FileUpload]:
        """Check sizes and names up front so nothing is stored for a rejected request.

        Later files win when two share a name.
        """
        by_name: dict[str, FileUpload] = {}
        for upload in files:
            name = _safe_filename(upload.filename)
            if len(upload.content) > self.settings.max_portfolio_size:
                raise ValidationError(
                    f"{name} exceeds the maximum portfolio size of {self.settings.max_portfolio_size} bytes"
                )
            by_name[name] = FileUpload(name, upload.content, upload.content_type or DEFAULT_MIME_TYPE)
        return list(by_name.values())

    def _storage_key(self, resume_id: UUID, original_name: str) -> str:
        return f"{self.settings.s3_key_prefix}/{resume_id}/{original_name}"

    async def _store_portfolios(self, resume_id: UUID, uploads: list[FileUpload]) -> list[Portfolio]:
        """Put every file concurrently, then upsert one row per (résumé, file name)."""
        if not uploads:
            return []
        keys = [self._storage_key(resume_id, u.filename) for u in uploads]
        urls = await asyncio.gather(
            *(self.store.put(key, u.content, u.content_type) for key, u in zip(keys, uploads))
        )
        portfolios = []
        for upload, key, url in zip(uploads, keys, urls):
            portfolios.append(await self._upsert_portfolio(resume_id, upload, key, url))
        return portfolios

    async def _upsert_portfolio(self, resume_id: UUID, upload: FileUpload, key: str, url: str) -> Portfolio:
        data = {
            "storage_key": key,
            "file_url": url,
            "mime_type": upload.content_type,
            "file_size": len(upload.content),
            # Identical bytes leave every other column unchanged, so no UPDATE
            # (and no onupdate) would fire without this.
            "updated_at": utcnow(),
        }
        existing = await self.repo.get_portfolio_by_name(resume_id, upload.filename)
        if existing is not None:
            logger.info("Portfolio %s overwritten (resume=%s, file=%s)", existing.id, resume_id, upload.filename)
            return await self.repo.update_portfolio(existing, data)
        portfolio = await self.repo.add_portfolio(resume_id, {"original_name": upload.filename, **data})
        logger.info("Portfolio %s created (resume=%s, file=%s)", portfolio.id, resume_id, upload.filename)
        return portfolio

    async def upload_portfolio(self, user_id: UUID, resume_id: UUID, upload: FileUpload) -> Portfolio:
        await self.get_resume(user_id, resume_id)
        (portfolio,) = await self._store_portfolios(resume_id, self._validate_uploads([upload]))
        await self.repo.commit()
        return portfolio

    async def list_portfolios(self, user_id: UUID, resume_id: UUID) -> list[Portfolio]:
        await self.get_resume(user_id, resume_id)
        return await self.repo.list_portfolios(resume_id)

    async def _owned_portfolio(self, user_id: UUID, resume_id: UUID, portfolio_id: UUID) -> Portfolio:
        await self.get_resume(user_id, resume_id)
        portfolio = await self.repo.get_portfolio(resume_id, portfolio_id)
        if portfolio is None:
            raise NotFoundError("Portfolio not found")
        return portfolio

    async def get_portfolio(self, user_id: UUID, resume_id: UUID, portfolio_id: UUID) -> tuple[Portfolio, str]:
        """Return the portfolio row and a time-limited download URL."""
        portfolio = await self._owned_portfolio(user_id, resume_id, portfolio_id)
        url = await self.store.presigned_get_url(portfolio.storage_key, self.settings.presigned_url_ttl_seconds)
        return portfolio, url

    async def download_portfolio(
        self, user_id: UUID, resume_id: UUID, portfolio_id: UUID
    ) -> tuple[Portfolio, AsyncIterator[bytes]]:
        portfolio = await self._owned_portfolio(user_id, resume_id, portfolio_id)
        stream, _ = await self.store.get_stream(portfolio.storage_key)
        return portfolio, stream

    async def delete_portfolio(self, user_id: UUID, resume_id: UUID, portfolio_id: UUID) -> dict:
        portfolio = await self._owned_portfolio(user_id, resume_id, portfolio_id)
        await self.store.delete(portfolio.storage_key)
        await self.repo.delete_portfolio(portfolio.id)
        await self.repo.commit()
        return {"message": "Portfolio deleted"}
