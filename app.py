from __future__ import annotations
import logging
import re
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional

from fastapi import Cookie, Depends, FastAPI, File, Form, Header, HTTPException, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import SQLAlchemyError

import storage
from auth import (
    ACCESS_TOKEN_COOKIE,
    AuthError,
    AuthUser,
    bearer_token,
    get_current_user,
    get_supabase,
    send_magic_link,
    sign_out,
    upsert_user,
    verify_callback,
)
from config import get_settings
from db import DocumentSession, UserSession, dispose_databases, init_databases
from models import JobDescription, Resume, TailoredResume, User
from parsers.basic_extract import extract_contact_info, extract_skills
from parsers.extract import ExtractionError, UnsupportedFileType, extract_file_content
from parsers.jd_extract import extract_jd_details
from schemas import (
    DashboardStats,
    JobIn,
    JobOut,
    JobUpdate,
    MagicLinkRequest,
    ResumeOut,
    ResumeUpdate,
    SessionOut,
    TailoredResumeOut,
    TailorRequest,
    UploadResult,
    UserOut,
    UserPreferences,
)
from tailoring.llm_gemini import TailoringError
from tailoring.pipeline import tailor_resume as run_tailoring

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open both databases on startup, release them on shutdown."""
    init_databases(get_settings())
    yield
    dispose_databases()
    logger.info("Application shutting down.")


app = FastAPI(title="Resume Tailor API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    response = await call_next(request)
    logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
    return response


@app.exception_handler(SQLAlchemyError)
async def database_error(request: Request, exc: SQLAlchemyError):
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Database connection failed"})


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------
def _resume_out(r: Resume) -> ResumeOut:
    return ResumeOut(
        id=r.id,
        user_id=r.user_id,
        title=r.title,
        content=r.content,
        original_content=r.original_content,
        file_name=r.file_name,
        file_type=r.file_type,
        skills=r.skills or [],
        contact=r.contact or {},
        status=r.status,
        version=r.version or 1,
        tailored_versions=r.tailored_versions or [],
        upload_date=r.upload_date,
        created_at=r.created_at,
        updated_at=r.updated_at,
    )


def _job_out(j: JobDescription) -> JobOut:
    return JobOut(
        id=j.id,
        user_id=j.user_id,
        title=j.title,
        company=j.company,
        description=j.description,
        location=j.location,
        requirements=j.requirements or [],
        preferences=j.preferences or [],
        salary=j.salary,
        created_at=j.created_at,
        updated_at=j.updated_at,
    )


def _tailored_out(t: TailoredResume) -> TailoredResumeOut:
    return TailoredResumeOut(
        id=t.id,
        user_id=t.user_id,
        original_resume_id=t.original_resume_id,
        job_description_id=t.job_description_id,
        job_title=t.job_title,
        company=t.company,
        original_content=t.original_content,
        tailored_content=t.tailored_content or "",
        match_score=t.match_score or 0,
        model_score=t.model_score,
        suggested_changes=t.suggested_changes or [],
        matched_keywords=t.matched_keywords or [],
        missing_keywords=t.missing_keywords or [],
        created_at=t.created_at,
    )


def _user_out(u: User) -> UserOut:
    return UserOut(
        id=u.id,
        email=u.email,
        preferences=u.preferences or {},
        created_at=u.created_at,
        updated_at=u.updated_at,
    )


def _owned(s, model, record_id: int, user_id: str, detail: str):
    """Fetch a record owned by the caller; anything else is a 404."""
    record = s.get(model, record_id)
    if record is None or record.user_id != user_id:
        raise HTTPException(status_code=404, detail=detail)
    return record


def _job_fields(j: JobDescription) -> dict:
    return {
        "title": j.title,
        "company": j.company,
        "description": j.description,
        "location": j.location,
        "requirements": j.requirements or [],
        "preferences": j.preferences or [],
    }


def _attachment_name(job_title: Optional[str], company: Optional[str]) -> str:
    name = f"{job_title or 'tailored-resume'}-{company or 'job'}.txt"
    return re.sub(r"[^a-z0-9.-]", "_", name, flags=re.IGNORECASE).lower()


# -------------------------------------------------------------------
# Health
# -------------------------------------------------------------------
@app.get("/health")
def health():
    settings = get_settings()
    return {
        "status": "ok",
        "auth_configured": get_supabase() is not None,
        "ai_configured": bool(settings.gemini_api_key),
        "model": settings.gemini_model,
    }


# -------------------------------------------------------------------
# Auth & users
# -------------------------------------------------------------------
@app.post("/auth/magic-link")
def request_magic_link(body: MagicLinkRequest):
    email = body.email.strip()
    if not EMAIL_RE.match(email):
        raise HTTPException(status_code=400, detail="A valid email address is required.")
    try:
        send_magic_link(email)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Magic link error for %s: %s", email, e)
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True}


@app.get("/auth/callback", response_model=SessionOut)
def auth_callback(
    response: Response,
    token_hash: Optional[str] = None,
    otp_type: str = Query("email", alias="type"),
):
    if not token_hash:
        raise HTTPException(status_code=400, detail="no_code")
    try:
        session = verify_callback(token_hash, otp_type)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e))

    user = upsert_user(AuthUser(id=str(session.user.id), email=session.user.email))
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        session.access_token,
        max_age=session.expires_in,
        httponly=True,
        samesite="lax",
    )
    return SessionOut(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_in=session.expires_in,
        user={"id": user.id, "email": user.email},
    )


@app.post("/auth/sign-out")
def auth_sign_out(
    response: Response,
    user: AuthUser = Depends(get_current_user),
    authorization: Optional[str] = Header(None),
    access_token: Optional[str] = Cookie(None, alias=ACCESS_TOKEN_COOKIE),
):
    try:
        sign_out(bearer_token(authorization, access_token))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Sign-out failed for %s: %s", user.id, e)
        raise HTTPException(status_code=502, detail="Failed to sign out")
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    return {"success": True}


@app.get("/me", response_model=UserOut)
def read_me(user: AuthUser = Depends(get_current_user)):
    with UserSession() as s:
        return _user_out(s.get(User, user.id))


@app.put("/me/preferences", response_model=UserOut)
def update_preferences(prefs: UserPreferences, user: AuthUser = Depends(get_current_user)):
    with UserSession() as s:
        record = s.get(User, user.id)
        record.preferences = prefs.model_dump(by_alias=True)
        record.updated_at = datetime.utcnow()
        s.commit()
        s.refresh(record)
        return _user_out(record)


# -------------------------------------------------------------------
# Upload
# -------------------------------------------------------------------
@app.post("/upload", response_model=UploadResult)
async def upload_resume(
    file: Optional[UploadFile] = File(None),
    text: Optional[str] = Form(None),
    user: AuthUser = Depends(get_current_user),
):
    settings = get_settings()
    if file is None and not (text and text.strip()):
        raise HTTPException(status_code=400, detail="No content provided")

    file_name = None
    file_type = "text"
    storage_path = None
    content = (text or "").strip()

    if file is not None:
        data = await file.read()
        if len(data) > settings.max_upload_bytes:
            raise HTTPException(status_code=413, detail="File is too large.")
        try:
            content, file_type = await run_in_threadpool(
                extract_file_content, data, file.filename, file.content_type
            )
        except (UnsupportedFileType, ExtractionError) as e:
            raise HTTPException(status_code=400, detail=str(e))
        file_name = file.filename
        storage_path = await run_in_threadpool(
            storage.upload_file, user.id, file.filename or "resume", data,
            file.content_type or "application/octet-stream",
        )

    data = await run_in_threadpool(
        _store_resume, user.id, content, file_name, file_type, storage_path, settings.phone_region
    )
    return UploadResult(success=True, data=data)


def _store_resume(
    user_id: str,
    content: str,
    file_name: Optional[str],
    file_type: str,
    storage_path: Optional[str],
    phone_region: str,
) -> ResumeOut:
    """Profile the text and insert the resume; blocking, so upload runs it off the event loop."""
    now = datetime.utcnow()
    with DocumentSession() as s:
        r = Resume(
            user_id=user_id,
            title=Path(file_name).stem if file_name else "Text Resume",
            content=content,
            original_content=content,
            file_name=file_name,
            file_type=file_type,
            storage_path=storage_path,
            skills=extract_skills(content),
            contact=extract_contact_info(content, phone_region),
            status="uploaded",
            version=1,
            tailored_versions=[],
            upload_date=now,
            created_at=now,
            updated_at=now,
        )
        s.add(r)
        s.commit()
        s.refresh(r)
        logger.info("Stored resume %s for user %s (%s, %d chars)", r.id, user_id, file_type, len(content))
        return _resume_out(r)


# -------------------------------------------------------------------
# Resumes
# -------------------------------------------------------------------
@app.get("/resumes/history", response_model=List[ResumeOut])
def list_resumes(user: AuthUser = Depends(get_current_user)):
    with DocumentSession() as s:
        rows = (
            s.query(Resume)
            .filter(Resume.user_id == user.id)
            .order_by(Resume.created_at.desc(), Resume.id.desc())
            .all()
        )
        return [_resume_out(r) for r in rows]


@app.post("/resumes/tailor", response_model=TailoredResumeOut)
def tailor(req: TailorRequest, user: AuthUser = Depends(get_current_user)):
    if req.resume_id is None or req.job_id is None:
        raise HTTPException(status_code=400, detail="Resume ID and Job ID are required")

    settings = get_settings()
    if not settings.gemini_api_key:
        raise HTTPException(status_code=500, detail="Gemini API key is not configured.")

    with DocumentSession() as s:
        resume = _owned(s, Resume, req.resume_id, user.id, "Resume not found")
        job = _owned(s, JobDescription, req.job_id, user.id, "Job description not found")
        resume_text = resume.content or resume.original_content or ""
        original_content = resume.original_content
        job_data = _job_fields(job)

    # the model call runs outside any database session
    try:
        result = run_tailoring(
            resume_text,
            job_data,
            settings.gemini_api_key,
            model=settings.gemini_model,
            timeout=settings.gemini_timeout,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TailoringError as e:
        raise HTTPException(status_code=502, detail=str(e))

    now = datetime.utcnow()
    with DocumentSession() as s:
        resume = _owned(s, Resume, req.resume_id, user.id, "Resume not found")
        t = TailoredResume(
            user_id=user.id,
            original_resume_id=resume.id,
            job_description_id=req.job_id,
            job_title=job_data["title"],
            company=job_data["company"],
            original_content=original_content,
            tailored_content=result.content,
            match_score=result.match_score,
            model_score=result.model_score,
            suggested_changes=result.suggested_changes,
            matched_keywords=result.matched_keywords,
            missing_keywords=result.missing_keywords,
            created_at=now,
        )
        s.add(t)
        s.flush()

        # reassign so the JSON column is marked dirty
        resume.tailored_versions = list(resume.tailored_versions or []) + [{
            "id": t.id,
            "jobTitle": job_data["title"],
            "company": job_data["company"],
            "matchScore": result.match_score,
            "createdAt": now.isoformat(),
        }]
        resume.updated_at = now
        s.commit()
        s.refresh(t)
        logger.info("Tailored resume %s -> %s (job %s, score %d)", resume.id, t.id, req.job_id, t.match_score)
        return _tailored_out(t)


@app.get("/resumes/tailored", response_model=List[TailoredResumeOut])
def list_tailored(user: AuthUser = Depends(get_current_user)):
    with DocumentSession() as s:
        rows = (
            s.query(TailoredResume)
            .filter(TailoredResume.user_id == user.id)
            .order_by(TailoredResume.created_at.desc(), TailoredResume.id.desc())
            .all()
        )
        return [_tailored_out(t) for t in rows]


@app.get("/resumes/tailored/{tailored_id}", response_model=TailoredResumeOut)
def get_tailored(tailored_id: int, user: AuthUser = Depends(get_current_user)):
    with DocumentSession() as s:
        return _tailored_out(_owned(s, TailoredResume, tailored_id, user.id, "Tailored resume not found"))


@app.delete("/resumes/tailored/{tailored_id}")
def delete_tailored(tailored_id: int, user: AuthUser = Depends(get_current_user)):
    with DocumentSession() as s:
        t = _owned(s, TailoredResume, tailored_id, user.id, "Tailored resume not found")
        original = s.get(Resume, t.original_resume_id) if t.original_resume_id else None
        if original is not None and original.user_id == user.id:
            original.tailored_versions = [
                v for v in original.tailored_versions or [] if v.get("id") != tailored_id
            ]
            original.updated_at = datetime.utcnow()
        s.delete(t)
        s.commit()
    return {"success": True}


@app.get("/resumes/tailored/{tailored_id}/download")
def download_tailored(tailored_id: int, user: AuthUser = Depends(get_current_user)):
    with DocumentSession() as s:
        t = _owned(s, TailoredResume, tailored_id, user.id, "Tailored resume not found")
        content = t.tailored_content or t.original_content or ""
        file_name = _attachment_name(t.job_title, t.company)
    return Response(
        content=content,
        media_type="text/plain",
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )


@app.get("/resumes/{resume_id}", response_model=ResumeOut)
def get_resume(resume_id: int, user: AuthUser = Depends(get_current_user)):
    with DocumentSession() as s:
        return _resume_out(_owned(s, Resume, resume_id, user.id, "Resume not found"))


@app.put("/resumes/{resume_id}", response_model=ResumeOut)
def update_resume(resume_id: int, body: ResumeUpdate, user: AuthUser = Depends(get_current_user)):
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    with DocumentSession() as s:
        r = _owned(s, Resume, resume_id, user.id, "Resume not found")
        for key, value in changes.items():
            setattr(r, key, value)
        r.updated_at = datetime.utcnow()
        s.commit()
        s.refresh(r)
        return _resume_out(r)


@app.delete("/resumes/{resume_id}")
def delete_resume(resume_id: int, user: AuthUser = Depends(get_current_user)):
    with DocumentSession() as s:
        r = _owned(s, Resume, resume_id, user.id, "Resume not found")
        storage_path = r.storage_path
        s.delete(r)
        s.commit()
    storage.remove_file(storage_path)
    return {"success": True}


@app.get("/resumes/{resume_id}/download")
def download_resume(resume_id: int, user: AuthUser = Depends(get_current_user)):
    with DocumentSession() as s:
        payload = _resume_out(_owned(s, Resume, resume_id, user.id, "Resume not found"))
    return Response(
        content=payload.model_dump_json(by_alias=True, indent=2),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="resume-{resume_id}.json"'},
    )


# -------------------------------------------------------------------
# Job descriptions
# -------------------------------------------------------------------
@app.get("/jobs", response_model=List[JobOut])
def list_jobs(user: AuthUser = Depends(get_current_user)):
    with DocumentSession() as s:
        rows = (
            s.query(JobDescription)
            .filter(JobDescription.user_id == user.id)
            .order_by(JobDescription.created_at.desc(), JobDescription.id.desc())
            .all()
        )
        return [_job_out(j) for j in rows]


@app.post("/jobs", response_model=JobOut)
def create_job(job: JobIn, user: AuthUser = Depends(get_current_user)):
    fields = {k: (getattr(job, k) or "").strip() for k in ("title", "company", "description", "location")}
    if not all(fields.values()):
        raise HTTPException(status_code=400, detail="Missing required fields")

    requirements = [r.strip() for r in job.requirements if r.strip()]
    preferences = [p.strip() for p in job.preferences if p.strip()]
    if not requirements or not preferences:
        extracted = extract_jd_details(fields["description"])
        requirements = requirements or extracted["requirements"]
        preferences = preferences or extracted["preferences"]

    now = datetime.utcnow()
    with DocumentSession() as s:
        j = JobDescription(
            user_id=user.id,
            requirements=requirements,
            preferences=preferences,
            salary=job.salary.model_dump() if job.salary else None,
            created_at=now,
            updated_at=now,
            **fields,
        )
        s.add(j)
        s.commit()
        s.refresh(j)
        return _job_out(j)


@app.get("/jobs/{job_id}", response_model=JobOut)
def get_job(job_id: int, user: AuthUser = Depends(get_current_user)):
    with DocumentSession() as s:
        return _job_out(_owned(s, JobDescription, job_id, user.id, "Job description not found"))


@app.put("/jobs/{job_id}", response_model=JobOut)
def update_job(job_id: int, body: JobUpdate, user: AuthUser = Depends(get_current_user)):
    changes = body.model_dump(exclude_unset=True)
    for key in ("title", "company", "description", "location"):
        if key in changes and not (changes[key] or "").strip():
            raise HTTPException(status_code=400, detail=f"{key} cannot be empty.")

    with DocumentSession() as s:
        j = _owned(s, JobDescription, job_id, user.id, "Job description not found")
        for key, value in changes.items():
            if key in ("requirements", "preferences"):
                value = [v.strip() for v in value or [] if v.strip()]
            elif isinstance(value, str):
                value = value.strip()
            setattr(j, key, value)
        j.updated_at = datetime.utcnow()
        s.commit()
        s.refresh(j)
        return _job_out(j)


@app.delete("/jobs/{job_id}")
def delete_job(job_id: int, user: AuthUser = Depends(get_current_user)):
    with DocumentSession() as s:
        s.delete(_owned(s, JobDescription, job_id, user.id, "Job description not found"))
        s.commit()
    return {"success": True}


# -------------------------------------------------------------------
# Dashboard
# -------------------------------------------------------------------
@app.get("/dashboard/stats", response_model=DashboardStats)
def dashboard_stats(user: AuthUser = Depends(get_current_user)):
    week_ago = datetime.utcnow() - timedelta(days=7)
    with DocumentSession() as s:
        resumes = s.query(Resume).filter(Resume.user_id == user.id).all()
        jobs = s.query(JobDescription).filter(JobDescription.user_id == user.id).count()
        tailored = s.query(TailoredResume).filter(TailoredResume.user_id == user.id).all()

    scores = [t.match_score for t in tailored if t.match_score is not None]
    recent = [x for x in resumes + tailored if x.created_at and x.created_at > week_ago]
    return DashboardStats(
        total_resumes=len(resumes),
        total_jobs=jobs,
        tailored_resumes=len(tailored),
        avg_match_score=round(sum(scores) / len(scores)) if scores else 0,
        this_week=len(recent),
    )
