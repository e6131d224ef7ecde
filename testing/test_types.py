"""Unit tests for acquisition value objects and errors."""

import pytest
from pydantic import ValidationError

from scorereview.acquisition import (
    AcquisitionConfig,
    AcquisitionRequest,
    AcquisitionResult,
    FetchError,
    TransportKind,
    UploadError,
)


class TestAcquisitionRequest:
    def test_strips_whitespace(self):
        request = AcquisitionRequest(source_url="  https://a.example/x ", destination_key=" bach ")
        assert request.source_url == "https://a.example/x"
        assert request.destination_key == "bach"

    @pytest.mark.parametrize(
        "source_url,destination_key",
        [("", "bach"), ("https://a.example/x", ""), ("   ", "bach")],
    )
    def test_rejects_blank_fields(self, source_url, destination_key):
        with pytest.raises(ValidationError):
            AcquisitionRequest(source_url=source_url, destination_key=destination_key)


class TestAcquisitionResult:
    def test_ok_response_shape(self):
        result = AcquisitionResult.ok("https://bucket.s3.us-east-1.amazonaws.com/k.pdf")
        assert result.to_response() == {
            "success": True,
            "url": "https://bucket.s3.us-east-1.amazonaws.com/k.pdf",
        }

    def test_failed_response_shape(self):
        result = AcquisitionResult.failed({"message": "boom", "type": "FetchError"})
        assert result.to_response() == {
            "success": False,
            "error": "Failed to process PDF",
            "details": {"message": "boom", "type": "FetchError"},
        }

    def test_success_requires_url(self):
        with pytest.raises(ValidationError):
            AcquisitionResult(success=True)

    def test_failure_rejects_url(self):
        with pytest.raises(ValidationError):
            AcquisitionResult(
                success=False,
                public_url="https://x.example/a.pdf",
                error_detail={"message": "boom"},
            )


class TestErrors:
    def test_fetch_error_details(self):
        error = FetchError("HTTP 404", url="https://a.example", reason="non_2xx", status=404)
        details = error.to_details()
        assert details["type"] == "FetchError"
        assert details["stage"] == "fetching"
        assert details["reason"] == "non_2xx"
        assert details["status"] == 404

    def test_upload_error_carries_key(self):
        details = UploadError("denied", key="prefix/bach.pdf").to_details()
        assert details["stage"] == "uploading"
        assert details["key"] == "prefix/bach.pdf"
        assert "url" not in details


class TestAcquisitionConfig:
    def test_defaults(self, monkeypatch):
        for name in ("SCORE_S3_BUCKET", "SCORE_S3_REGION", "SCORE_S3_PREFIX", "ACQUIRE_TRANSPORT"):
            monkeypatch.delenv(name, raising=False)

        config = AcquisitionConfig()
        assert config.bucket == "tonebase-emails"
        assert config.region == "us-east-1"
        assert config.prefix == "Q2_2021/Q2W4/Scores/general"
        assert config.transport == TransportKind.BROWSER

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("SCORE_S3_PREFIX", "/scores/2024/")
        monkeypatch.setenv("ACQUIRE_TRANSPORT", "HTTP")
        monkeypatch.setenv("ACQUIRE_TIMEOUT", "45")

        config = AcquisitionConfig()
        assert config.prefix == "scores/2024"
        assert config.transport == TransportKind.HTTP
        assert config.timeout == 45.0
