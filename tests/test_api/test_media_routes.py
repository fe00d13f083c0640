# tests/test_api/test_media_routes.py

from fastapi.testclient import TestClient
from jose import jwt

from scoop_media.services.media_service import MediaService
from tests.fixtures.app import build_app
from tests.fixtures.fakes import FakeS3, FakeTranscoder

MB = 1024 * 1024
SOURCE_KEY = "uploads/u123/171_abcd.mp4"


def _client(scratch_dir, *, s3=None, transcoder=None, user_id="u123", configured=True) -> TestClient:
    storage = (s3 or FakeS3()) if configured else None
    service = MediaService(storage, transcoder or FakeTranscoder(), tmp_dir=scratch_dir)
    return TestClient(build_app(service, user_id=user_id))


def _assert_no_store(resp):
    assert resp.headers["cache-control"] == "no-store"
    assert resp.headers["pragma"] == "no-cache"


# ─────────────────────────────────────────────────────────────
# Upload URLs
# ─────────────────────────────────────────────────────────────

def test_upload_url_video(client):
    r = client.post("/upload-url", json={"contentType": "video/mp4"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["key"].startswith("uploads/u123/") and body["key"].endswith(".mp4")
    assert body["url"].startswith("https://signed.example/uploads/u123/")
    _assert_no_store(r)
    assert r.headers.get("x-request-id")


def test_upload_url_without_body_defaults_to_jpeg(client):
    r = client.post("/upload-url")
    assert r.status_code == 200, r.text
    assert r.json()["key"].endswith(".jpg")


def test_upload_url_with_non_string_content_type(client):
    r = client.post("/upload-url", json={"contentType": 42})
    assert r.status_code == 200, r.text
    assert r.json()["key"].endswith(".jpg")


def test_avatar_url(client):
    r = client.post("/avatar-url", json={"contentType": "image/png"})
    assert r.status_code == 200, r.text
    key = r.json()["key"]
    assert key.startswith("avatars/u123/") and key.endswith(".png")


def test_not_configured_is_501(scratch_dir):
    c = _client(scratch_dir, configured=False)
    for method, path, payload in [
        ("post", "/upload-url", {"contentType": "image/png"}),
        ("post", "/avatar-url", {}),
        ("post", "/process-video", {"key": SOURCE_KEY, "startTime": 0, "endTime": 3}),
    ]:
        r = getattr(c, method)(path, json=payload)
        assert r.status_code == 501
        assert r.json()["message"] == "Media storage not configured"
    assert c.delete(f"/media/{SOURCE_KEY}").status_code == 501


# ─────────────────────────────────────────────────────────────
# Authentication
# ─────────────────────────────────────────────────────────────

def test_missing_bearer_is_401(scratch_dir):
    c = _client(scratch_dir, user_id=None)
    r = c.post("/upload-url", json={"contentType": "image/png"})
    assert r.status_code == 401
    assert r.json()["message"] == "Unauthorized"
    _assert_no_store(r)


def test_bearer_token_identity_is_used(scratch_dir):
    c = _client(scratch_dir, user_id=None)
    token = jwt.encode({"sub": "rider-7", "cognito:username": "rider"}, "issuer-key", algorithm="HS256")
    r = c.post("/upload-url", json={}, headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200, r.text
    assert r.json()["key"].startswith("uploads/rider-7/")


def test_token_without_sub_is_401(scratch_dir):
    c = _client(scratch_dir, user_id=None)
    token = jwt.encode({"email": "a@b.c"}, "issuer-key", algorithm="HS256")
    r = c.post("/avatar-url", json={}, headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


# ─────────────────────────────────────────────────────────────
# Process video
# ─────────────────────────────────────────────────────────────

def test_process_video_reencodes(scratch_dir):
    s3 = FakeS3(source_bytes=20 * MB)
    c = _client(scratch_dir, s3=s3)
    r = c.post("/process-video", json={"key": SOURCE_KEY, "startTime": 2, "endTime": 10})
    assert r.status_code == 200, r.text
    assert r.json() == {"key": "uploads/u123/171_abcd_processed.mp4", "processed": True}
    assert s3.uploads[0]["content_type"] == "video/mp4"
    _assert_no_store(r)
    assert list(scratch_dir.iterdir()) == []


def test_process_video_falls_back_when_ffmpeg_missing(scratch_dir):
    c = _client(scratch_dir, transcoder=FakeTranscoder(available=False))
    r = c.post("/process-video", json={"key": SOURCE_KEY, "startTime": 0, "endTime": 3})
    assert r.status_code == 200
    assert r.json() == {"key": SOURCE_KEY, "processed": False}


def test_process_video_falls_back_when_transcode_fails(scratch_dir):
    c = _client(scratch_dir, transcoder=FakeTranscoder(returncode=1))
    r = c.post("/process-video", json={"key": SOURCE_KEY, "startTime": 0, "endTime": 3})
    assert r.status_code == 200
    assert r.json() == {"key": SOURCE_KEY, "processed": False}


def test_process_video_missing_fields_is_400(client):
    r = client.post("/process-video", json={"key": SOURCE_KEY})
    assert r.status_code == 400
    assert r.json()["message"] == "Key, startTime, and endTime required"


def test_process_video_empty_body_is_400(client):
    r = client.post("/process-video")
    assert r.status_code == 400
    assert r.json()["message"] == "Key, startTime, and endTime required"


def test_process_video_bad_range_is_400(client):
    r = client.post("/process-video", json={"key": SOURCE_KEY, "startTime": 5, "endTime": 1})
    assert r.status_code == 400


def test_process_video_forbidden(scratch_dir):
    c = _client(scratch_dir, user_id="u999")
    r = c.post("/process-video", json={"key": SOURCE_KEY, "startTime": 0, "endTime": 3})
    assert r.status_code == 403
    assert r.json()["message"] == "Forbidden"


# ─────────────────────────────────────────────────────────────
# Delete
# ─────────────────────────────────────────────────────────────

def test_delete_with_slashes_in_path(scratch_dir):
    s3 = FakeS3()
    r = _client(scratch_dir, s3=s3).delete(f"/media/{SOURCE_KEY}")
    assert r.status_code == 200, r.text
    assert r.json() == {"success": True}
    assert s3.deletes == [SOURCE_KEY]
    _assert_no_store(r)


def test_delete_with_encoded_key(scratch_dir):
    s3 = FakeS3()
    r = _client(scratch_dir, s3=s3).delete("/media/uploads%2Fu123%2F171_abcd.mp4")
    assert r.status_code == 200, r.text
    assert s3.deletes == [SOURCE_KEY]


def test_delete_forbidden(scratch_dir):
    s3 = FakeS3()
    r = _client(scratch_dir, s3=s3, user_id="u999").delete(f"/media/{SOURCE_KEY}")
    assert r.status_code == 403
    assert s3.deletes == []


def test_delete_storage_failure_is_500(scratch_dir):
    r = _client(scratch_dir, s3=FakeS3(delete_ok=False)).delete(f"/media/{SOURCE_KEY}")
    assert r.status_code == 500
    assert r.json()["message"] == "Failed to delete media"


# ─────────────────────────────────────────────────────────────
# Routing & meta
# ─────────────────────────────────────────────────────────────

def test_unknown_route_is_404(client):
    r = client.get("/nope")
    assert r.status_code == 404
    assert r.json()["message"] == "Not found"


def test_healthz(client):
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_metrics_exposes_media_counters(client):
    client.post("/upload-url", json={"contentType": "image/png"})
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "media_presigns_total" in r.text
