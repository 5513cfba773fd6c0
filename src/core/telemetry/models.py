"""
Request models for telemetry ingestion.

These mirror the JSON body posted by device shims:

    {
        "minio_setting": {
            "end_point": "minio.local:9000",
            "bucket": "telemetry",
            "file_name": "device-a/reading.bin",
            "file_extension": "bin",
            "api_id": "...",
            "api_key": "...",
            "secret": "minio-credentials"
        },
        "raw_data": "<base64>"
    }

UploadSettings is mutable on purpose: credential injection fills in
api_id/api_key after the request has been decoded.
"""

import base64
import binascii
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class UploadSettings(BaseModel):
    """Where and how to upload a telemetry payload."""

    end_point: Optional[str] = Field(default=None, description="Object store endpoint (host[:port] or URL)")
    bucket: Optional[str] = Field(default=None, description="Target bucket name")
    file_name: Optional[str] = Field(default=None, description="Object key; derived from device name if absent")
    file_extension: Optional[str] = Field(default=None, description="Extension used for derived object keys")
    api_id: Optional[str] = Field(default=None, description="Access key id")
    api_key: Optional[str] = Field(default=None, description="Secret access key")
    secret: Optional[str] = Field(default=None, description="Name of the secret holding api_id/api_key")

    def missing_required_fields(self) -> list[str]:
        """Names of required fields that are unset or empty."""
        required = {
            "bucket": self.bucket,
            "end_point": self.end_point,
            "file_extension": (self.file_extension or "").lstrip("."),
        }
        return [name for name, value in required.items() if not value]


class TelemetryRequest(BaseModel):
    """A single telemetry upload: settings plus the raw payload."""

    minio_setting: Optional[UploadSettings] = None
    raw_data: bytes = b""

    @field_validator("raw_data", mode="before")
    @classmethod
    def decode_raw_data(cls, value: Any) -> Any:
        """Byte arrays travel as base64 text in JSON."""
        if value is None:
            return b""
        if isinstance(value, str):
            try:
                return base64.b64decode(value, validate=True)
            except (binascii.Error, ValueError) as e:
                raise ValueError(f"raw_data is not valid base64: {e}")
        return value
