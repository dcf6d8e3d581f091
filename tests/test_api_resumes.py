"""API tests for uploading and managing resumes."""

from types import SimpleNamespace

import storage
from auth import AuthUser


def upload_text(client, text):
    r = client.post("/upload", data={"text": text})
    assert r.status_code == 200, r.text
    return r.json()["data"]


def test_health(client):
    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert body["auth_configured"] is False
    assert body["ai_configured"] is True


def test_upload_text(client, resume_text):
    data = upload_text(client, resume_text)
    assert data["title"] == "Text Resume"
    assert data["fileType"] == "text"
    assert data["userId"] == "user-1"
    assert data["status"] == "uploaded"
    assert data["version"] == 1
    assert data["content"] == data["originalContent"] == resume_text.strip()
    assert data["contact"]["email"] == "jane.doe@example.com"
    assert {"python", "flask", "git", "sql"} <= set(data["skills"])
    assert data["tailoredVersions"] == []


def test_upload_file(client, resume_text):
    r = client.post("/upload", files={"file": ("Jane Doe CV.txt", resume_text.encode(), "text/plain")})
    assert r.status_code == 200, r.text
    data = r.json()["data"]
    assert data["title"] == "Jane Doe CV"
    assert data["fileName"] == "Jane Doe CV.txt"
    assert data["fileType"] == "text"


def test_upload_requires_content(client):
    r = client.post("/upload", data={"text": "   "})
    assert r.status_code == 400
    assert r.json()["detail"] == "No content provided"


def test_upload_rejects_unsupported_type(client):
    r = client.post("/upload", files={"file": ("photo.png", b"\x89PNG\r\n", "image/png")})
    assert r.status_code == 400
    assert "Unsupported file type" in r.json()["detail"]


def test_upload_rejects_empty_file(client):
    r = client.post("/upload", files={"file": ("empty.txt", b"\n\n", "text/plain")})
    assert r.status_code == 400
    assert "No readable content" in r.json()["detail"]


def test_upload_size_limit(client, monkeypatch):
    monkeypatch.setenv("MAX_UPLOAD_MB", "0.001")
    r = client.post("/upload", files={"file": ("big.txt", b"x" * 5000, "text/plain")})
    assert r.status_code == 413


def test_storage_failure_does_not_fail_upload(client, monkeypatch, resume_text):
    class BrokenBucket:
        def upload(self, *args, **kwargs):
            raise RuntimeError("bucket missing")

    fake = SimpleNamespace(storage=SimpleNamespace(from_=lambda bucket: BrokenBucket()))
    monkeypatch.setattr(storage, "get_supabase_admin", lambda: fake)

    r = client.post("/upload", files={"file": ("cv.txt", resume_text.encode(), "text/plain")})
    assert r.status_code == 200


def test_delete_removes_stored_file(client, monkeypatch, resume_text):
    removed = []

    class Bucket:
        def upload(self, path, data, options):
            return {"Key": path}

        def remove(self, paths):
            removed.extend(paths)

    fake = SimpleNamespace(storage=SimpleNamespace(from_=lambda bucket: Bucket()))
    monkeypatch.setattr(storage, "get_supabase_admin", lambda: fake)

    r = client.post("/upload", files={"file": ("my cv.txt", resume_text.encode(), "text/plain")})
    resume_id = r.json()["data"]["id"]

    assert client.delete(f"/resumes/{resume_id}").json() == {"success": True}
    assert len(removed) == 1
    assert removed[0].startswith("user-1/")
    assert removed[0].endswith("-my_cv.txt")
    assert client.get(f"/resumes/{resume_id}").status_code == 404


def test_history_is_newest_first_and_scoped(client, current_user):
    first = upload_text(client, "First resume text")
    second = upload_text(client, "Second resume text")

    current_user["user"] = AuthUser(id="user-2")
    upload_text(client, "Someone else")

    current_user["user"] = AuthUser(id="user-1")
    ids = [r["id"] for r in client.get("/resumes/history").json()]
    assert ids == [second["id"], first["id"]]


def test_get_update_resume(client):
    created = upload_text(client, "Original text")

    r = client.put(f"/resumes/{created['id']}", json={"title": "Backend CV", "content": "Edited text"})
    assert r.status_code == 200
    body = r.json()
    assert body["title"] == "Backend CV"
    assert body["content"] == "Edited text"
    assert body["originalContent"] == "Original text"

    fetched = client.get(f"/resumes/{created['id']}").json()
    assert fetched["title"] == "Backend CV"


def test_other_users_resume_is_not_found(client, current_user):
    created = upload_text(client, "Private resume")
    current_user["user"] = AuthUser(id="intruder")

    assert client.get(f"/resumes/{created['id']}").status_code == 404
    assert client.put(f"/resumes/{created['id']}", json={"title": "x"}).status_code == 404
    assert client.delete(f"/resumes/{created['id']}").status_code == 404


def test_download_resume_json(client):
    created = upload_text(client, "Downloadable text")
    r = client.get(f"/resumes/{created['id']}/download")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/json")
    assert r.headers["content-disposition"] == f'attachment; filename="resume-{created["id"]}.json"'
    assert r.json()["content"] == "Downloadable text"


def test_upload_blocking_work_runs_in_threadpool(client, monkeypatch, resume_text):
    import app as app_module

    seen = []
    real = app_module.run_in_threadpool

    async def recording(func, *args, **kwargs):
        seen.append(func.__name__)
        return await real(func, *args, **kwargs)

    monkeypatch.setattr(app_module, "run_in_threadpool", recording)

    r = client.post("/upload", files={"file": ("cv.txt", resume_text.encode(), "text/plain")})
    assert r.status_code == 200
    assert seen == ["extract_file_content", "upload_file", "_store_resume"]
    assert r.json()["data"]["contact"]["email"] == "jane.doe@example.com"
