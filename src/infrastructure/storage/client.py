"""
Object store client factory for telemetry uploads.

Targets MinIO through its S3-compatible API, so boto3 does the work and
any S3-compatible backend can stand in. A fresh client is built per
request from that request's endpoint and credentials; construction is
purely local and makes no network call.

Mock mode keeps uploaded objects in memory, enabling API testing without
a running object store.
"""

import logging
from dataclasses import dataclass
from typing import Any, BinaryIO, Protocol
from urllib.parse import urlparse

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError

from ...core.errors import ClientConstructionError, MissingCredentialsError

logger = logging.getLogger(__name__)


@dataclass
class ObjectStoreConfig:
    """
    Connection details for one S3-compatible endpoint.

    endpoint may be a full URL or a bare host[:port] as MinIO clients
    usually take it; bare endpoints get a scheme from `secure`.
    """
    endpoint: str
    access_key_id: str
    secret_access_key: str
    secure: bool = True
    region: str = "us-east-1"  # MinIO's default region

    @property
    def endpoint_url(self) -> str:
        if "://" in self.endpoint:
            return self.endpoint
        scheme = "https" if self.secure else "http"
        return f"{scheme}://{self.endpoint}"


class ObjectStoreClient(Protocol):
    """
    The slice of the S3 client API the upload pipeline uses.

    boto3's S3 client satisfies it, as does MockObjectStoreClient.
    """

    def put_object(
        self,
        *,
        Bucket: str,
        Key: str,
        Body: BinaryIO,
        ContentLength: int,
        ContentType: str,
    ) -> dict[str, Any]:
        ...


def validate_object_store_config(config: ObjectStoreConfig) -> str:
    """
    Check endpoint and credentials, returning the normalized endpoint URL.

    Raises:
        MissingCredentialsError: access key id or secret is empty
        ClientConstructionError: endpoint is empty or malformed
    """
    if not config.access_key_id or not config.secret_access_key:
        raise MissingCredentialsError("Fail to get APIId or APIKey")

    if not config.endpoint:
        raise ClientConstructionError("Fail to create client: empty endpoint")

    endpoint_url = config.endpoint_url
    parsed = urlparse(endpoint_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ClientConstructionError(f"Fail to create client: invalid endpoint {config.endpoint}")

    return endpoint_url


def create_object_store_client(config: ObjectStoreConfig) -> ObjectStoreClient:
    """
    Build an S3 client bound to one endpoint with static credentials.

    Raises the same errors as validate_object_store_config, plus
    ClientConstructionError when boto3 rejects the configuration.
    """
    endpoint_url = validate_object_store_config(config)

    # MinIO requires v4 signatures and path-style bucket addressing.
    # A failed put is terminal: one attempt, no retries.
    boto_config = Config(
        signature_version="s3v4",
        s3={"addressing_style": "path"},
        retries={"total_max_attempts": 1, "mode": "standard"},
    )

    try:
        client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            region_name=config.region,
            config=boto_config,
        )
    except (BotoCoreError, ValueError) as e:
        raise ClientConstructionError(f"Fail to create client: {e}")

    logger.debug(
        "Created object store client",
        extra={"endpoint": endpoint_url},
    )

    return client


# ---------------------------------------------------------------------------
# Mock Object Store for Local Development
# ---------------------------------------------------------------------------

class MockObjectStoreClient:
    """
    In-memory object store.

    Objects are kept as {(bucket, key): bytes}, along with the declared
    length and content type of each put, so tests can inspect exactly
    what the pipeline sent.
    """

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str], bytes] = {}
        self.puts: list[dict[str, Any]] = []
        logger.info("Initialized mock object store client (in-memory)")

    def put_object(
        self,
        *,
        Bucket: str,
        Key: str,
        Body: BinaryIO,
        ContentLength: int,
        ContentType: str,
    ) -> dict[str, Any]:
        data = Body.read()
        self.objects[(Bucket, Key)] = data
        self.puts.append({
            "bucket": Bucket,
            "key": Key,
            "content_length": ContentLength,
            "content_type": ContentType,
        })

        logger.debug(
            "Stored object in mock storage",
            extra={"bucket": Bucket, "key": Key, "size_bytes": len(data)},
        )

        return {"ETag": f'"mock-{len(self.puts)}"'}

