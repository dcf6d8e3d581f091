from datetime import datetime
import json

from sqlalchemy import Column, DateTime, Float, Integer, String, Text, TypeDecorator
from sqlalchemy.orm import declarative_base

# resumes, job descriptions and tailored resumes live in the document store,
# users in the auth store
DocumentBase = declarative_base()
UserBase = declarative_base()


class JSONType(TypeDecorator):
    """Custom JSON type that works reliably with SQLite."""
    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        """Convert Python object to JSON string for storage."""
        if value is None:
            return None
        return json.dumps(value, default=str)

    def process_result_value(self, value, dialect):
        """Convert JSON string back to Python object."""
        if value is None:
            return None
        return json.loads(value)


class Resume(DocumentBase):
    __tablename__ = "resumes"
    id = Column(Integer, primary_key=True)
    user_id = Column(String, index=True, nullable=False)
    title = Column(String)
    content = Column(Text)
    original_content = Column(Text)
    file_name = Column(String, nullable=True)
    file_type = Column(String, default="text")
    storage_path = Column(String, nullable=True)
    skills = Column(JSONType, default=list)
    contact = Column(JSONType, default=dict)
    status = Column(String, default="uploaded")
    version = Column(Integer, default=1)
    tailored_versions = Column(JSONType, default=list)
    upload_date = Column(DateTime, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)


class JobDescription(DocumentBase):
    __tablename__ = "job_descriptions"
    id = Column(Integer, primary_key=True)
    user_id = Column(String, index=True, nullable=False)
    title = Column(String, nullable=False)
    company = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    requirements = Column(JSONType, default=list)
    preferences = Column(JSONType, default=list)
    location = Column(String, nullable=False)
    salary = Column(JSONType, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)


class TailoredResume(DocumentBase):
    __tablename__ = "tailored_resumes"
    id = Column(Integer, primary_key=True)
    user_id = Column(String, index=True, nullable=False)
    original_resume_id = Column(Integer, index=True)
    job_description_id = Column(Integer, index=True)
    job_title = Column(String)
    company = Column(String)
    original_content = Column(Text)
    tailored_content = Column(Text)
    match_score = Column(Integer)
    model_score = Column(Float, nullable=True)
    suggested_changes = Column(JSONType, default=list)
    matched_keywords = Column(JSONType, default=list)
    missing_keywords = Column(JSONType, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)


class User(UserBase):
    __tablename__ = "users"
    id = Column(String, primary_key=True)
    email = Column(String, index=True)
    preferences = Column(JSONType, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)
    last_seen_at = Column(DateTime, default=datetime.utcnow)
