from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import ConfigDict, Field, field_validator

from .base import CamelModel


class ResumeCreate(CamelModel):
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "name": "Jane Doe's resume",
                    "gender": "female",
                    "birthDate": "1990-01-01",
                    "address": "Seoul, Gangnam-gu",
                    "phone": "010-1234-5678",
                    "jobStatus": "seeking",
                }
            ]
        }
    )
    name: str = Field(..., max_length=255)
    gender: str = Field(..., max_length=50)
    birth_date: date
    address: str = Field(..., max_length=500)
    phone: str = Field(..., max_length=50)
    job_status: str = Field(..., max_length=50)
    photo: Optional[str] = None
    description: Optional[str] = None


class ResumeUpdate(CamelModel):
    name: Optional[str] = Field(None, max_length=255)
    gender: Optional[str] = Field(None, max_length=50)
    birth_date: Optional[date] = None
    address: Optional[str] = Field(None, max_length=500)
    phone: Optional[str] = Field(None, max_length=50)
    job_status: Optional[str] = Field(None, max_length=50)
    photo: Optional[str] = None
    description: Optional[str] = None

    @field_validator("name", "gender", "birth_date", "address", "phone", "job_status")
    @classmethod
    def reject_null(cls, v):
        # Omit a field to leave it unchanged; only photo and description can be cleared.
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


class EducationIn(CamelModel):
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "startDate": "2010-03-01",
                    "endDate": "2014-02-28",
                    "schoolName": "Seoul National University",
                    "major": "Computer Science",
                    "location": "Seoul",
                    "type": "bachelor",
                }
            ]
        }
    )
    start_date: date
    end_date: date
    school_name: str = Field(..., max_length=255)
    major: str = Field(..., max_length=255)
    location: str = Field(..., max_length=255)
    type: str = Field(..., max_length=50)


class ExperienceIn(CamelModel):
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "companyName": "Naver",
                    "position": "Senior Engineer",
                    "department": "Platform",
                    "jobRole": "Backend",
                    "location": "Pangyo",
                    "startDate": "2015-03-01",
                    "endDate": "2020-02-29",
                    "description": "Designed and built backend systems",
                }
            ]
        }
    )
    company_name: str = Field(..., max_length=255)
    position: str = Field(..., max_length=255)
    department: str = Field(..., max_length=255)
    job_role: str = Field(..., max_length=255)
    location: str = Field(..., max_length=255)
    start_date: date
    end_date: date
    description: str


class SkillIn(CamelModel):
    model_config = ConfigDict(
        json_schema_extra={"examples": [{"skillName": "Python", "level": "advanced"}]}
    )
    skill_name: str = Field(..., max_length=255)
    level: str = Field(..., max_length=50)


class EducationOut(EducationIn):
    id: UUID
    resume_id: UUID


class ExperienceOut(ExperienceIn):
    id: UUID
    resume_id: UUID


class SkillOut(SkillIn):
    id: UUID
    resume_id: UUID


class PortfolioOut(CamelModel):
    id: UUID
    resume_id: UUID
    original_name: str
    file_url: str
    mime_type: str
    file_size: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PortfolioDetail(PortfolioOut):
    download_url: str


class ResumeOut(CamelModel):
    id: UUID
    user_id: UUID
    name: str
    gender: str
    birth_date: date
    address: str
    phone: str
    job_status: str
    photo: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    educations: list[EducationOut] = []
    experiences: list[ExperienceOut] = []
    skills: list[SkillOut] = []
    portfolios: list[PortfolioOut] = []


class CompleteResumeRequest(CamelModel):
    """Basic info plus every child collection, written in one operation."""

    basic_info: ResumeCreate
    educations: list[EducationIn] = []
    experiences: list[ExperienceIn] = []
    skills: list[SkillIn] = []
