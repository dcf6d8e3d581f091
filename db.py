import logging
import os

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from config import Settings
from models import DocumentBase, UserBase

logger = logging.getLogger(__name__)

DocumentSession = sessionmaker(autoflush=False, autocommit=False, future=True)
UserSession = sessionmaker(autoflush=False, autocommit=False, future=True)

_engines = {}


def _make_engine(url: str):
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, future=True, connect_args=connect_args)


def init_databases(settings: Settings) -> None:
    """Create engines and tables for the document store and the user store."""
    os.makedirs(settings.base_dir, exist_ok=True)
    logger.info("Using base directory: %s", settings.base_dir)

    dispose_databases()
    documents = _make_engine(settings.documents_db_url)
    users = _make_engine(settings.users_db_url)

    DocumentSession.configure(bind=documents)
    UserSession.configure(bind=users)

    DocumentBase.metadata.create_all(documents)
    UserBase.metadata.create_all(users)

    _engines["documents"] = documents
    _engines["users"] = users
    logger.info("Databases ready (documents=%s, users=%s)", documents.url, users.url)


def dispose_databases() -> None:
    for name in list(_engines):
        _engines.pop(name).dispose()
