"""
Pytest configuration and shared fixtures.
"""

import os
import tempfile

# Keep log files out of the working tree; must run before talentdesk modules import the logger
os.environ.setdefault("TALENTDESK_LOG_DIR", tempfile.mkdtemp(prefix="talentdesk-logs-"))

import pytest
from datetime import datetime
from pathlib import Path
from types import SimpleNamespace
from typing import Dict, Any

from fastapi.testclient import TestClient

from talentdesk.api import create_app
from talentdesk.client import CandidateClient
from talentdesk.database import init_database, get_session
from talentdesk.env import Settings


@pytest.fixture
def valid_candidate() -> Dict[str, Any]:
    """Valid candidate payload in API format."""
    return {
        "firstName": "Jane",
        "lastName": "Doe",
        "email": "jane.doe@example.com",
        "address": "12 Main St, Springfield",
        "available": True,
        "education": [
            {"institution": "State University", "title": "Computer Science", "degree": "BSc", "years": 4},
        ],
        "experience": [
            {
                "role": "Backend Engineer",
                "company": "Acme Corp",
                "industry": "Software",
                "startDate": "2018-01-01",
                "endDate": "2020-01-01",
            },
        ],
    }


@pytest.fixture
def minimal_candidate() -> Dict[str, Any]:
    """Candidate payload without nested arrays."""
    return {
        "firstName": "John",
        "lastName": "Smith",
        "email": "john.smith@example.com",
        "address": "1 Elm Rd",
    }


@pytest.fixture
def db_path(tmp_path) -> Path:
    path = tmp_path / "test.db"
    init_database(path)
    return path


@pytest.fixture
def db_session(db_path):
    """Session on a fresh temporary database."""
    session = get_session(db_path)
    yield session
    session.close()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        db_path=tmp_path / "api.db",
        upload_dir=tmp_path / "uploads",
        max_resume_bytes=1024,
    )


@pytest.fixture
def api(settings):
    """TestClient on a fresh app and database."""
    app = create_app(settings)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def candidate_client(api) -> CandidateClient:
    """CandidateClient that talks to the in-process app through TestClient."""
    return CandidateClient("http://testserver", session=api, max_retries=0)


def make_experience(start, end=None, role="Engineer", company="Acme", industry="Software"):
    return SimpleNamespace(role=role, company=company, industry=industry, start_date=start, end_date=end)


def make_education(degree="BSc", title="Computer Science", institution="State University", years=None):
    return SimpleNamespace(degree=degree, title=title, institution=institution, years=years)


def make_candidate(first="Jane", last="Doe", email="jane@example.com", available=True,
                   experience=None, education=None):
    return SimpleNamespace(
        first_name=first,
        last_name=last,
        email=email,
        available=available,
        experience=experience or [],
        education=education or [],
    )


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 6, 1)
