"""Résumé CRUD, nested sub-resources, composite writes and portfolio files."""
import logging
from urllib.parse import quote
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import StreamingResponse
from pydantic import ValidationError as PydanticValidationError

from resume_api.dependencies import get_current_user, get_resume_service
from resume_api.exceptions import ValidationError, first_error_message
from resume_api.models.user import User
from resume_api.schemas.base import MessageResponse
from resume_api.schemas.resume import (
    CompleteResumeRequest,
    EducationIn,
    EducationOut,
    ExperienceIn,
    ExperienceOut,
    PortfolioDetail,
    PortfolioOut,
    ResumeCreate,
    ResumeOut,
    ResumeUpdate,
    SkillIn,
    SkillOut,
)
from resume_api.services.resume_service import FileUpload, ResumeService

logger = logging.getLogger(__name__)

router = APIRouter()


async def _read_uploads(files: list[UploadFile]) -> list[FileUpload]:
    return [
        FileUpload(filename=f.filename or "", content=await f.read(), content_type=f.content_type)
        for f in files
    ]


def _parse_complete_payload(data: str) -> CompleteResumeRequest:
    """The multipart variants carry the JSON body in a `data` form field."""
    try:
        return CompleteResumeRequest.model_validate_json(data)
    except PydanticValidationError as e:
        raise ValidationError(first_error_message(e.errors(), prefix="data.")) from e


# --- Résumé ---

@router.post("", response_model=ResumeOut, status_code=status.HTTP_201_CREATED)
async def create_resume(
    payload: ResumeCreate,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
) -> ResumeOut:
    resume = await service.create_resume(current_user.id, payload)
    return ResumeOut.model_validate(resume)


@router.get("", response_model=list[ResumeOut])
async def list_resumes(
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
):
    return [ResumeOut.model_validate(r) for r in await service.list_resumes(current_user.id)]


# --- Fixed-path endpoints BEFORE /{resume_id} ---

@router.post("/complete", response_model=ResumeOut, status_code=status.HTTP_201_CREATED)
async def create_complete_resume(
    payload: CompleteResumeRequest,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
) -> ResumeOut:
    """Create a résumé with all of its education, experience and skill entries at once."""
    resume = await service.create_complete_resume(current_user.id, payload)
    return ResumeOut.model_validate(resume)


@router.post("/complete-with-files", response_model=ResumeOut, status_code=status.HTTP_201_CREATED)
async def create_complete_resume_with_files(
    data: str = Form(..., description="CompleteResumeRequest as JSON"),
    files: list[UploadFile] = File(default=[]),
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
) -> ResumeOut:
    """Multipart variant of /complete; every file part becomes a portfolio."""
    payload = _parse_complete_payload(data)
    resume = await service.create_complete_resume(current_user.id, payload, await _read_uploads(files))
    return ResumeOut.model_validate(resume)


# --- Parametric endpoints ---

@router.get("/{resume_id}", response_model=ResumeOut)
async def get_resume(
    resume_id: UUID,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
) -> ResumeOut:
    return ResumeOut.model_validate(await service.get_resume(current_user.id, resume_id))


@router.put("/{resume_id}", response_model=ResumeOut)
async def update_resume(
    resume_id: UUID,
    payload: ResumeUpdate,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
) -> ResumeOut:
    resume = await service.update_resume(current_user.id, resume_id, payload)
    return ResumeOut.model_validate(resume)


@router.delete("/{resume_id}", response_model=MessageResponse)
async def delete_resume(
    resume_id: UUID,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
) -> MessageResponse:
    """Delete the résumé with all child rows and stored portfolio files."""
    return MessageResponse(**await service.delete_resume(current_user.id, resume_id))


@router.put("/{resume_id}/complete", response_model=ResumeOut)
async def update_complete_resume(
    resume_id: UUID,
    payload: CompleteResumeRequest,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
) -> ResumeOut:
    """Replace basic info and every education, experience and skill entry."""
    resume = await service.update_complete_resume(current_user.id, resume_id, payload)
    return ResumeOut.model_validate(resume)


@router.put("/{resume_id}/complete-with-files", response_model=ResumeOut)
async def update_complete_resume_with_files(
    resume_id: UUID,
    data: str = Form(..., description="CompleteResumeRequest as JSON"),
    files: list[UploadFile] = File(default=[]),
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
) -> ResumeOut:
    payload = _parse_complete_payload(data)
    resume = await service.update_complete_resume(
        current_user.id, resume_id, payload, await _read_uploads(files)
    )
    return ResumeOut.model_validate(resume)


# --- Education ---

@router.post("/{resume_id}/education", response_model=EducationOut, status_code=status.HTTP_201_CREATED)
async def add_education(
    resume_id: UUID,
    payload: EducationIn,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
) -> EducationOut:
    return EducationOut.model_validate(await service.add_education(current_user.id, resume_id, payload))


@router.put("/{resume_id}/education/{education_id}", response_model=EducationOut)
async def update_education(
    resume_id: UUID,
    education_id: UUID,
    payload: EducationIn,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
) -> EducationOut:
    education = await service.update_education(current_user.id, resume_id, education_id, payload)
    return EducationOut.model_validate(education)


@router.delete("/{resume_id}/education/{education_id}", response_model=MessageResponse)
async def delete_education(
    resume_id: UUID,
    education_id: UUID,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
) -> MessageResponse:
    return MessageResponse(**await service.delete_education(current_user.id, resume_id, education_id))


# --- Experience ---

@router.post("/{resume_id}/experience", response_model=ExperienceOut, status_code=status.HTTP_201_CREATED)
async def add_experience(
    resume_id: UUID,
    payload: ExperienceIn,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
) -> ExperienceOut:
    return ExperienceOut.model_validate(await service.add_experience(current_user.id, resume_id, payload))


@router.put("/{resume_id}/experience/{experience_id}", response_model=ExperienceOut)
async def update_experience(
    resume_id: UUID,
    experience_id: UUID,
    payload: ExperienceIn,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
) -> ExperienceOut:
    experience = await service.update_experience(current_user.id, resume_id, experience_id, payload)
    return ExperienceOut.model_validate(experience)


@router.delete("/{resume_id}/experience/{experience_id}", response_model=MessageResponse)
async def delete_experience(
    resume_id: UUID,
    experience_id: UUID,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
) -> MessageResponse:
    return MessageResponse(**await service.delete_experience(current_user.id, resume_id, experience_id))


# --- Skill ---

@router.post("/{resume_id}/skills", response_model=SkillOut, status_code=status.HTTP_201_CREATED)
async def add_skill(
    resume_id: UUID,
    payload: SkillIn,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
) -> SkillOut:
    return SkillOut.model_validate(await service.add_skill(current_user.id, resume_id, payload))


@router.put("/{resume_id}/skills/{skill_id}", response_model=SkillOut)
async def update_skill(
    resume_id: UUID,
    skill_id: UUID,
    payload: SkillIn,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
) -> SkillOut:
    return SkillOut.model_validate(await service.update_skill(current_user.id, resume_id, skill_id, payload))


@router.delete("/{resume_id}/skills/{skill_id}", response_model=MessageResponse)
async def delete_skill(
    resume_id: UUID,
    skill_id: UUID,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
) -> MessageResponse:
    return MessageResponse(**await service.delete_skill(current_user.id, resume_id, skill_id))


# --- Portfolio ---

@router.post("/{resume_id}/portfolios", response_model=PortfolioOut, status_code=status.HTTP_201_CREATED)
async def upload_portfolio(
    resume_id: UUID,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
) -> PortfolioOut:
    """Upload a portfolio file. Re-uploading the same file name replaces the existing one."""
    (upload,) = await _read_uploads([file])
    portfolio = await service.upload_portfolio(current_user.id, resume_id, upload)
    return PortfolioOut.model_validate(portfolio)


@router.get("/{resume_id}/portfolios", response_model=list[PortfolioOut])
async def list_portfolios(
    resume_id: UUID,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
):
    return [PortfolioOut.model_validate(p) for p in await service.list_portfolios(current_user.id, resume_id)]


@router.get("/{resume_id}/portfolios/{portfolio_id}", response_model=PortfolioDetail)
async def get_portfolio(
    resume_id: UUID,
    portfolio_id: UUID,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
) -> PortfolioDetail:
    portfolio, download_url = await service.get_portfolio(current_user.id, resume_id, portfolio_id)
    return PortfolioDetail.model_validate(
        {**PortfolioOut.model_validate(portfolio).model_dump(), "download_url": download_url}
    )


@router.get("/{resume_id}/portfolios/{portfolio_id}/download")
async def download_portfolio(
    resume_id: UUID,
    portfolio_id: UUID,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
):
    """Stream the stored file as an attachment under its original name."""
    portfolio, stream = await service.download_portfolio(current_user.id, resume_id, portfolio_id)
    logger.info("Streaming portfolio %s (%d bytes) to user %s", portfolio.id, portfolio.file_size, current_user.id)
    return StreamingResponse(
        stream,
        media_type=portfolio.mime_type,
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(portfolio.original_name, safe='')}",
        },
    )


@router.delete("/{resume_id}/portfolios/{portfolio_id}", response_model=MessageResponse)
async def delete_portfolio(
    resume_id: UUID,
    portfolio_id: UUID,
    current_user: User = Depends(get_current_user),
    service: ResumeService = Depends(get_resume_service),
) -> MessageResponse:
    return MessageResponse(**await service.delete_portfolio(current_user.id, resume_id, portfolio_id))
