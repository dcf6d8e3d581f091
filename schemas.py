from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """JSON uses camelCase (resumeId, matchScore, ...), Python uses snake_case."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Job descriptions
class Salary(CamelModel):
    min: Optional[float] = None
    max: Optional[float] = None
    currency: str = "USD"


class JobIn(CamelModel):
    # required fields are checked by the route so missing ones give a 400
    title: Optional[str] = None
    company: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    requirements: List[str] = []
    preferences: List[str] = []
    salary: Optional[Salary] = None


class JobUpdate(CamelModel):
    title: Optional[str] = None
    company: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    requirements: Optional[List[str]] = None
    preferences: Optional[List[str]] = None
    salary: Optional[Salary] = None


class JobOut(CamelModel):
    id: int
    user_id: str
    title: str
    company: str
    description: str
    location: str
    requirements: List[str] = []
    preferences: List[str] = []
    salary: Optional[Salary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Resumes
class TailoredVersion(CamelModel):
    id: int
    job_title: Optional[str] = None
    company: Optional[str] = None
    match_score: Optional[int] = None
    created_at: Optional[datetime] = None


class ResumeOut(CamelModel):
    id: int
    user_id: str
    title: Optional[str] = None
    content: Optional[str] = None
    original_content: Optional[str] = None
    file_name: Optional[str] = None
    file_type: Optional[Literal["pdf", "docx", "text"]] = None
    skills: List[str] = []
    contact: Dict[str, Optional[str]] = {}
    status: Optional[str] = None
    version: int = 1
    tailored_versions: List[TailoredVersion] = []
    upload_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ResumeUpdate(CamelModel):
    title: Optional[str] = None
    content: Optional[str] = None
    status: Optional[str] = None
    skills: Optional[List[str]] = None


class UploadResult(CamelModel):
    success: bool = True
    data: ResumeOut


# Tailoring
class SuggestedChange(CamelModel):
    type: Literal["addition", "removal", "modification"]
    section: str
    description: str


class TailorRequest(CamelModel):
    resume_id: Optional[int] = None
    job_id: Optional[int] = None


class TailoredResumeOut(CamelModel):
    id: int
    user_id: str
    original_resume_id: int
    job_description_id: int
    job_title: Optional[str] = None
    company: Optional[str] = None
    original_content: Optional[str] = None
    tailored_content: str
    match_score: int
    model_score: Optional[float] = None
    suggested_changes: List[SuggestedChange] = []
    matched_keywords: List[str] = []
    missing_keywords: List[str] = []
    created_at: Optional[datetime] = None


# Users and sessions
class UserPreferences(CamelModel):
    email_notifications: bool = True
    theme: Literal["light", "dark"] = "light"
    language: str = "en"


class UserOut(CamelModel):
    id: str
    email: Optional[str] = None
    preferences: UserPreferences = UserPreferences()
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MagicLinkRequest(CamelModel):
    email: str


class SessionOut(CamelModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    user: Dict[str, Any]


class DashboardStats(CamelModel):
    total_resumes: int
    total_jobs: int
    tailored_resumes: int
    avg_match_score: int
    this_week: int
