"""Pytest configuration for phased testing.

Tests are organized by phase (f1, f2, ..., f5):
- f1: storage (schema, hierarchy, contents, users)
- f2: policy, accounts and validators
- f3: Web API (auth, categories, admin, files)
- f4: uploads and page rendering
- f5: navigation, browse view and CLI

Only tests for the current phase and completed phases should run.
Future phase tests are automatically skipped.
"""

import itertools
from pathlib import Path

import fitz
import pytest
from fastapi.testclient import TestClient

from portal.config.app_config import (
    AppConfig,
    DatabaseConfig,
    UploadConfig,
    clear_config_cache,
)
from portal.core import auth
from portal.core.hierarchy import Level
from portal.db.database import init_db
from portal.db.hierarchy_repository import create_node
from portal.web.api import create_app

# Current implementation phase
CURRENT_PHASE = 5


def pytest_collection_modifyitems(config, items):
    """Skip tests from phases that haven't been implemented yet."""
    for item in items:
        # Extract phase from path (tests/f2/... -> 2)
        parts = item.fspath.strpath.split("/")
        for part in parts:
            if part.startswith("f") and part[1:].isdigit():
                test_phase = int(part[1:])
                if test_phase > CURRENT_PHASE:
                    item.add_marker(
                        pytest.mark.skip(
                            reason=f"Phase F{test_phase} not yet implemented (current: F{CURRENT_PHASE})"
                        )
                    )
                break


@pytest.fixture(autouse=True)
def fresh_config_cache():
    """Never leak a cached AppConfig between tests."""
    clear_config_cache()
    yield
    clear_config_cache()


def make_pdf(path: Path, pages: int = 1, text: str = "Lesson page") -> Path:
    """Write a small real PDF with `pages` pages."""
    doc = fitz.open()
    for number in range(1, pages + 1):
        page = doc.new_page()
        page.insert_text((72, 72), f"{text} {number}")
    doc.save(str(path))
    doc.close()
    return path


@pytest.fixture
def pdf_factory(tmp_path):
    """Build PDFs on disk: pdf_factory(pages=2) -> Path."""
    counter = itertools.count(1)

    def _make(pages: int = 1, text: str = "Lesson page") -> Path:
        return make_pdf(tmp_path / f"generated-{next(counter)}.pdf", pages, text)

    return _make


@pytest.fixture
def pdf_bytes(tmp_path) -> bytes:
    """Bytes of a one-page PDF."""
    return make_pdf(tmp_path / "sample.pdf").read_bytes()


@pytest.fixture
def temp_db(tmp_path) -> Path:
    """Initialized database in a temp directory."""
    db_path = tmp_path / "db" / "portal.db"
    init_db(db_path)
    return db_path


@pytest.fixture
def hierarchy(temp_db) -> dict:
    """One node per level: Almaty > KBTU > Fall 2024 > Group A > Algebra."""
    city = create_node(Level.CITY, "Almaty", "almaty")
    school = create_node(Level.SCHOOL, "KBTU", "kbtu", city.id)
    semester = create_node(Level.SEMESTER, "Fall 2024", "fall-2024", school.id)
    group = create_node(Level.GROUP, "Group A", "group-a", semester.id)
    subject = create_node(Level.SUBJECT, "Algebra", "algebra", group.id)
    return {
        "city": city,
        "school": school,
        "semester": semester,
        "group": group,
        "subject": subject,
    }


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    """AppConfig pointing at temp database and uploads directories."""
    return AppConfig(
        database=DatabaseConfig(path=str(tmp_path / "db" / "portal.db")),
        uploads=UploadConfig(dir=str(tmp_path / "uploads")),
    )


@pytest.fixture
def client(app_config, temp_db):
    """Test client with lifespan (schema, uploads dir) started."""
    app = create_app(app_config)
    with TestClient(app) as test_client:
        yield test_client


def _login(client: TestClient, username: str, password: str) -> dict:
    response = client.post(
        "/api/login", data={"username": username, "password": password}
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def login_headers(client):
    """Log in through the API; returns the Authorization header."""

    def _headers(username: str, password: str) -> dict:
        return _login(client, username, password)

    return _headers


@pytest.fixture
def accounts(client) -> dict:
    """Admin, two teachers and a student, with their login headers."""
    result = {}
    for username, role in [
        ("admin", "admin"),
        ("teacher", "teacher"),
        ("other_teacher", "teacher"),
        ("student", "student"),
    ]:
        user = auth.register_user(username, "secret123", role=role)
        result[username] = {
            "user": user,
            "headers": _login(client, username, "secret123"),
        }
    return result
