"""
Telemetry ingestion endpoint.

A device shim posts a JSON body holding MinIO settings and a raw
payload. The handler walks one linear path:

    parse -> inject credentials -> build client -> upload

and stops at the first failure with a 400 and a one-line plain-text
message. Success is an empty 200.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from ...config.settings import Settings
from ...core.errors import (
    ConfigurationError,
    RequestDecodeError,
    TelemetryServiceError,
)
from ...core.telemetry.credentials import inject_credentials
from ...core.telemetry.models import TelemetryRequest, UploadSettings
from ...core.telemetry.upload import upload_object
from ...infrastructure.secrets.store import SecretResolver
from ...infrastructure.storage.client import ObjectStoreConfig
from ..dependencies import (
    ObjectStoreClientFactory,
    ObjectStoreFactoryDep,
    SecretResolverDep,
    SettingsDep,
)

logger = logging.getLogger(__name__)

router = APIRouter()

DEVICE_NAME_HEADER = "device_name"

DECODE_ERROR_MESSAGE = "Unexpected end of JSON input"
MISSING_SETTINGS_MESSAGE = "Bucket or EndPoint or FileExtension cant be nil"
MISSING_DEVICE_NAME_MESSAGE = "Fail to get device name from header"


# ---------------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------------

def error_response(message: str) -> PlainTextResponse:
    """Single-line plain-text 400, newline terminated."""
    return PlainTextResponse(f"{message}\n", status_code=status.HTTP_400_BAD_REQUEST)


def decode_request(body: bytes) -> TelemetryRequest:
    try:
        return TelemetryRequest.model_validate_json(body)
    except ValidationError as e:
        logger.error("Error to unmarshal request body", extra={"error": str(e)})
        raise RequestDecodeError(DECODE_ERROR_MESSAGE)


def resolve_object_key(setting: UploadSettings, device_name: Optional[str]) -> str:
    """
    Object key for this upload.

    An explicit file_name wins. Otherwise the key is
    {device_name}/{UTC timestamp}.{file_extension}.
    """
    if setting.file_name:
        return setting.file_name

    if not device_name:
        raise ConfigurationError(MISSING_DEVICE_NAME_MESSAGE)

    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
    extension = setting.file_extension.lstrip(".")
    return f"{device_name}/{timestamp}.{extension}"


def ingest_telemetry(
    telemetry: TelemetryRequest,
    device_name: Optional[str],
    resolver: SecretResolver,
    client_factory: ObjectStoreClientFactory,
    settings: Settings,
) -> None:
    """
    Inject credentials, build a client and upload the payload.

    Blocking; run it off the event loop.

    Raises:
        TelemetryServiceError: any step failed; message is user-facing
    """
    setting = telemetry.minio_setting
    if setting is None or setting.missing_required_fields():
        logger.error(
            "Missing MinIO settings",
            extra={"missing": setting.missing_required_fields() if setting else ["minio_setting"]},
        )
        raise ConfigurationError(MISSING_SETTINGS_MESSAGE)

    injection = inject_credentials(
        setting,
        resolver,
        username_field=settings.secret_username_field,
        password_field=settings.secret_password_field,
    )
    logger.debug(
        "Credential injection finished",
        extra={"api_id": injection.api_id.value, "api_key": injection.api_key.value},
    )

    client = client_factory(ObjectStoreConfig(
        endpoint=setting.end_point,
        access_key_id=setting.api_id or "",
        secret_access_key=setting.api_key or "",
        secure=settings.minio_secure,
        region=settings.minio_region,
    ))

    key = resolve_object_key(setting, device_name)

    upload_object(
        client,
        setting.bucket,
        key,
        telemetry.raw_data,
        staging_dir=settings.staging_dir,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/minio",
    status_code=status.HTTP_200_OK,
    summary="Upload telemetry to MinIO",
    description="Store a raw telemetry payload as one object in a MinIO bucket",
    responses={400: {"description": "Plain-text error message"}},
)
async def upload_telemetry_to_minio(
    request: Request,
    resolver: SecretResolverDep,
    client_factory: ObjectStoreFactoryDep,
    settings: SettingsDep,
) -> Response:
    try:
        body = await request.body()
        telemetry = decode_request(body)
    except RequestDecodeError as e:
        return error_response(e.message)

    device_name = request.headers.get(DEVICE_NAME_HEADER)

    logger.info(
        "Telemetry upload started",
        extra={
            "device_name": device_name or "unknown",
            "size_bytes": len(telemetry.raw_data),
        },
    )

    try:
        await run_in_threadpool(
            ingest_telemetry,
            telemetry,
            device_name,
            resolver,
            client_factory,
            settings,
        )
    except TelemetryServiceError as e:
        logger.error(
            "Telemetry upload failed",
            extra={"error_type": type(e).__name__, "error": e.message},
        )
        return error_response(e.message)

    return Response(status_code=status.HTTP_200_OK)
