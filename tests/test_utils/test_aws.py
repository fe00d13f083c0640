# tests/test_utils/test_aws.py

import io

import boto3
import pytest
from botocore.response import StreamingBody
from botocore.stub import ANY, Stubber

from scoop_media.utils.aws import S3Client, S3StorageError

BUCKET = "unit-test-bucket"


@pytest.fixture()
def stubbed():
    client = boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
    with Stubber(client) as stub:
        yield S3Client(BUCKET, client=client), stub
        stub.assert_no_pending_responses()


def test_requires_bucket():
    with pytest.raises(S3StorageError):
        S3Client("")


def test_presigned_put_signs_key(stubbed):
    s3, _ = stubbed
    url = s3.presigned_put("uploads/u1/171_abcd.jpg", content_type="image/jpeg", expires_in=300)
    assert BUCKET in url
    assert "uploads/u1/171_abcd.jpg" in url


@pytest.mark.parametrize("bad", ["", "   ", "uploads/../etc/passwd", "uploads/u1/a?.jpg"])
def test_presigned_put_rejects_bad_keys(stubbed, bad):
    s3, _ = stubbed
    with pytest.raises(S3StorageError):
        s3.presigned_put(bad, content_type="image/jpeg")


def test_download_to_streams_body(stubbed, tmp_path):
    s3, stub = stubbed
    data = b"\x00\x01" * 5000
    stub.add_response(
        "get_object",
        {"Body": StreamingBody(io.BytesIO(data), len(data)), "ContentLength": len(data)},
        {"Bucket": BUCKET, "Key": "uploads/u1/a.mp4"},
    )
    target = tmp_path / "input.mp4"
    assert s3.download_to("uploads/u1/a.mp4", target) == len(data)
    assert target.read_bytes() == data


def test_download_to_wraps_errors(stubbed, tmp_path):
    s3, stub = stubbed
    stub.add_client_error("get_object", service_error_code="NoSuchKey", http_status_code=404)
    with pytest.raises(S3StorageError):
        s3.download_to("uploads/u1/missing.mp4", tmp_path / "input.mp4")


def test_upload_file_sets_content_type(stubbed, tmp_path):
    s3, stub = stubbed
    src = tmp_path / "output.mp4"
    src.write_bytes(b"video")
    stub.add_response(
        "put_object",
        {"ETag": '"abc"'},
        {"Bucket": "other", "Key": "uploads/u1/a_processed.mp4", "Body": ANY, "ContentType": "video/mp4"},
    )
    s3.upload_file("uploads/u1/a_processed.mp4", src, content_type="video/mp4", bucket="other")


def test_delete_success(stubbed):
    s3, stub = stubbed
    stub.add_response("delete_object", {}, {"Bucket": BUCKET, "Key": "uploads/u1/a.jpg"})
    assert s3.delete("uploads/u1/a.jpg") is True


def test_delete_service_error_returns_false(stubbed):
    s3, stub = stubbed
    stub.add_client_error("delete_object", service_error_code="AccessDenied", http_status_code=403)
    assert s3.delete("uploads/u1/a.jpg") is False


def test_delete_invalid_key_returns_false_without_call(stubbed):
    s3, _ = stubbed
    assert s3.delete("../secret") is False
