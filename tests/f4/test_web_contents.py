"""Tests for content endpoints: upload, detail, listing, delete (F4)."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from portal.config.app_config import AppConfig, DatabaseConfig, UploadConfig
from portal.core import auth
from portal.core.pages import (
    PLACEHOLDER_IMAGE_PATH,
    PlaceholderPageRenderer,
    PyMuPdfPageRenderer,
)
from portal.web.api import create_app


def _upload(client, headers, subject_id, pdf, title="Algebra I", type="lesson", **extra):
    data = {"title": title, "type": type, "subject_id": str(subject_id), **extra}
    files = {"pdf": ("algebra.pdf", pdf, "application/pdf")} if pdf is not None else None
    return client.post("/api/contents", data=data, files=files, headers=headers)


def _teacher_headers(client):
    auth.register_user("teacher", "secret123", role="teacher")
    response = client.post(
        "/api/login", data={"username": "teacher", "password": "secret123"}
    )
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


class LoopRecordingRenderer(PlaceholderPageRenderer):
    """Records, per call, whether render() ran inside a running event loop."""

    def __init__(self):
        self.calls = []

    def render(self, pdf_path, output_dir):
        try:
            asyncio.get_running_loop()
            self.calls.append(True)
        except RuntimeError:
            self.calls.append(False)
        return super().render(pdf_path, output_dir)


@pytest.fixture
def teacher(accounts):
    return accounts["teacher"]["headers"]


@pytest.fixture
def subject_id(hierarchy):
    return hierarchy["subject"].id


class TestUpload:
    def test_teacher_uploads_lesson(self, client, teacher, subject_id, pdf_bytes, accounts):
        response = _upload(client, teacher, subject_id, pdf_bytes, description="Week 1")

        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Algebra I"
        assert data["type"] == "lesson"
        assert data["description"] == "Week 1"
        assert data["subject_id"] == subject_id
        assert data["uploaded_by"] == accounts["teacher"]["user"].id
        assert data["original_file_name"] == "algebra.pdf"
        assert [p["page_number"] for p in data["pages"]] == [1]
        assert data["pages"][0]["image_path"] == PLACEHOLDER_IMAGE_PATH

        detail = client.get(f"/api/contents/{data['id']}")
        assert detail.status_code == 200
        assert len(detail.json()["pages"]) == 1

    def test_stored_pdf_is_served(self, client, teacher, subject_id, pdf_bytes):
        data = _upload(client, teacher, subject_id, pdf_bytes).json()

        response = client.get(data["file_path"])

        assert response.status_code == 200
        assert response.content == pdf_bytes

    def test_admin_uploads_exercise(self, client, accounts, subject_id, pdf_bytes):
        response = _upload(
            client, accounts["admin"]["headers"], subject_id, pdf_bytes, type="exercise"
        )
        assert response.status_code == 201
        assert response.json()["type"] == "exercise"

    def test_student_forbidden(self, client, accounts, subject_id, pdf_bytes, app_config):
        response = _upload(client, accounts["student"]["headers"], subject_id, pdf_bytes)
        assert response.status_code == 403
        assert response.json()["detail"] == "Students cannot upload content"
        assert client.get(f"/api/subjects/{subject_id}/contents").json() == []
        assert list(app_config.upload_dir.iterdir()) == []

    def test_anonymous(self, client, subject_id, pdf_bytes):
        assert _upload(client, {}, subject_id, pdf_bytes).status_code == 401

    def test_missing_file(self, client, teacher, subject_id):
        response = _upload(client, teacher, subject_id, None)
        assert response.status_code == 400
        assert response.json()["detail"] == "PDF file is required"

    def test_non_pdf_rejected(self, client, teacher, subject_id, app_config):
        response = client.post(
            "/api/contents",
            data={"title": "Notes", "type": "lesson", "subject_id": str(subject_id)},
            files={"pdf": ("notes.txt", b"plain text", "text/plain")},
            headers=teacher,
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Only PDF files are allowed"
        assert list(app_config.upload_dir.iterdir()) == []

    def test_fake_pdf_rejected(self, client, teacher, subject_id, app_config):
        response = _upload(client, teacher, subject_id, b"not a pdf at all")
        assert response.status_code == 400
        assert list(app_config.upload_dir.iterdir()) == []

    def test_invalid_type(self, client, teacher, subject_id, pdf_bytes):
        response = _upload(client, teacher, subject_id, pdf_bytes, type="video")
        assert response.status_code == 422

    def test_out_of_range_subject(self, client, teacher, hierarchy, pdf_bytes, app_config):
        response = _upload(client, teacher, 99999999999999999999, pdf_bytes)
        assert response.status_code == 422
        assert list(app_config.upload_dir.iterdir()) == []

    def test_unknown_subject(self, client, teacher, hierarchy, pdf_bytes, app_config):
        response = _upload(client, teacher, 999, pdf_bytes)
        assert response.status_code == 400
        assert list(app_config.upload_dir.iterdir()) == []

    def test_too_large(self, tmp_path, hierarchy, pdf_bytes):
        config = AppConfig(
            database=DatabaseConfig(path=str(tmp_path / "db" / "portal.db")),
            uploads=UploadConfig(dir=str(tmp_path / "uploads"), max_bytes=64),
        )
        with TestClient(create_app(config)) as small_client:
            response = _upload(
                small_client,
                _teacher_headers(small_client),
                hierarchy["subject"].id,
                pdf_bytes,
            )

        assert response.status_code == 413
        assert list((tmp_path / "uploads").iterdir()) == []


class TestRenderedUpload:
    def test_pages_follow_the_pdf(self, tmp_path, app_config, hierarchy, pdf_factory):
        app = create_app(app_config, page_renderer=PyMuPdfPageRenderer(dpi=40))
        with TestClient(app) as client:
            headers = _teacher_headers(client)

            pdf = pdf_factory(pages=3).read_bytes()
            data = _upload(client, headers, hierarchy["subject"].id, pdf).json()

            assert [p["page_number"] for p in data["pages"]] == [1, 2, 3]
            image = client.get(data["pages"][1]["image_path"])
            assert image.status_code == 200
            assert image.headers["content-type"] == "image/png"

            response = client.delete(f"/api/contents/{data['id']}", headers=headers)
            assert response.status_code == 200

        assert list(app_config.upload_dir.iterdir()) == []

    def test_rendering_runs_off_the_event_loop(self, app_config, hierarchy, pdf_bytes):
        renderer = LoopRecordingRenderer()
        app = create_app(app_config, page_renderer=renderer)
        with TestClient(app) as client:
            headers = _teacher_headers(client)
            response = _upload(client, headers, hierarchy["subject"].id, pdf_bytes)

        assert response.status_code == 201
        assert renderer.calls == [False]


class TestListing:
    def test_list_by_subject_sorted_by_title(self, client, teacher, subject_id, pdf_bytes):
        _upload(client, teacher, subject_id, pdf_bytes, title="Matrices")
        _upload(client, teacher, subject_id, pdf_bytes, title="Determinants")

        response = client.get(f"/api/subjects/{subject_id}/contents")

        assert response.status_code == 200
        assert [c["title"] for c in response.json()] == ["Determinants", "Matrices"]
        assert "pages" not in response.json()[0]

    def test_list_empty_subject(self, client, subject_id):
        assert client.get(f"/api/subjects/{subject_id}/contents").json() == []

    def test_detail_not_found(self, client):
        response = client.get("/api/contents/999")
        assert response.status_code == 404
        assert response.json()["detail"] == "Content not found"

    @pytest.mark.parametrize(
        "url",
        [
            "/api/contents/99999999999999999999",
            "/api/subjects/99999999999999999999/contents",
        ],
    )
    def test_out_of_range_id(self, client, url):
        assert client.get(url).status_code == 422

    def test_my_contents(self, client, accounts, subject_id, pdf_bytes):
        _upload(client, accounts["teacher"]["headers"], subject_id, pdf_bytes, title="Mine")
        _upload(
            client, accounts["other_teacher"]["headers"], subject_id, pdf_bytes, title="Theirs"
        )

        response = client.get("/api/my-contents", headers=accounts["teacher"]["headers"])

        assert response.status_code == 200
        assert [c["title"] for c in response.json()] == ["Mine"]

    def test_my_contents_requires_login(self, client):
        assert client.get("/api/my-contents").status_code == 401


class TestDelete:
    @pytest.fixture
    def content(self, client, teacher, subject_id, pdf_bytes):
        return _upload(client, teacher, subject_id, pdf_bytes).json()

    def test_owner_deletes(self, client, teacher, content, app_config):
        response = client.delete(f"/api/contents/{content['id']}", headers=teacher)

        assert response.status_code == 200
        assert client.get(f"/api/contents/{content['id']}").status_code == 404
        assert list(app_config.upload_dir.iterdir()) == []

    def test_other_teacher_forbidden(self, client, accounts, content):
        response = client.delete(
            f"/api/contents/{content['id']}",
            headers=accounts["other_teacher"]["headers"],
        )
        assert response.status_code == 403
        assert response.json()["detail"] == "You can only delete your own content"
        assert client.get(f"/api/contents/{content['id']}").status_code == 200

    def test_student_forbidden(self, client, accounts, content):
        response = client.delete(
            f"/api/contents/{content['id']}", headers=accounts["student"]["headers"]
        )
        assert response.status_code == 403
        assert client.get(f"/api/contents/{content['id']}").status_code == 200

    def test_admin_deletes_any(self, client, accounts, content):
        response = client.delete(
            f"/api/contents/{content['id']}", headers=accounts["admin"]["headers"]
        )
        assert response.status_code == 200

    def test_missing(self, client, teacher):
        assert client.delete("/api/contents/999", headers=teacher).status_code == 404

    def test_anonymous(self, client, content):
        assert client.delete(f"/api/contents/{content['id']}").status_code == 401
