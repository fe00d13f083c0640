# tests/test_core/test_config.py

from scoop_media.core.config import Settings
from scoop_media.main import build_media_service
from scoop_media.media.ownership import OwnershipMode
from scoop_media.media.transcoder import FFmpegTranscoder
from scoop_media.utils.aws import S3Client


def test_defaults():
    cfg = Settings(_env_file=None, MEDIA_BUCKET="")
    assert cfg.MEDIA_BUCKET is None
    assert cfg.media_configured is False
    assert cfg.FFMPEG_PATH == "/opt/bin/ffmpeg"
    assert cfg.MEDIA_PRESIGN_TTL_SECONDS == 300
    assert cfg.MEDIA_TRANSCODE_TIMEOUT_SECONDS == 60
    assert cfg.MEDIA_TRANSCODE_MAX_BUFFER_BYTES == 50 * 1024 * 1024
    assert cfg.frontend_origins_list == ["https://app.scooterbooter.com", "http://localhost:5173"]


def test_frontend_origins_csv_is_trimmed():
    cfg = Settings(_env_file=None, FRONTEND_ORIGINS=" https://a.example , ,https://b.example ")
    assert cfg.frontend_origins_list == ["https://a.example", "https://b.example"]


def test_build_service_without_bucket():
    svc = build_media_service(Settings(_env_file=None, MEDIA_BUCKET="  "))
    assert svc.storage is None
    assert isinstance(svc.transcoder, FFmpegTranscoder)
    assert svc.transcoder.binary == "/opt/bin/ffmpeg"


def test_build_service_with_bucket(tmp_path):
    cfg = Settings(
        _env_file=None,
        MEDIA_BUCKET="media-bucket",
        AWS_REGION="eu-west-1",
        FFMPEG_PATH="/usr/bin/ffmpeg",
        MEDIA_TRANSCODE_TIMEOUT_SECONDS=30,
        MEDIA_REENCODE_THRESHOLD_MBPS=2.0,
        MEDIA_TMP_DIR=str(tmp_path),
        MEDIA_OWNERSHIP_MODE="segment",
    )
    svc = build_media_service(cfg)
    assert isinstance(svc.storage, S3Client)
    assert svc.storage.bucket == "media-bucket"
    assert svc.transcoder.binary == "/usr/bin/ffmpeg"
    assert svc.transcoder.timeout_seconds == 30
    assert svc.reencode_threshold_mbps == 2.0
    assert svc.tmp_dir == tmp_path
    assert svc.ownership_mode is OwnershipMode.SEGMENT
