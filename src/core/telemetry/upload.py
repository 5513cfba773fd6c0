"""
Staged upload of a telemetry payload.

The payload is written to a temporary file before upload so the put
call gets a seekable body with a known content length. The staging
file is named by tempfile, never by the object key, so concurrent
requests for the same key cannot remove each other's files.
"""

import logging
import os
import tempfile
from contextlib import contextmanager
from typing import BinaryIO, Iterator, Optional

from ...infrastructure.storage.client import ObjectStoreClient
from ..errors import RemoteUploadError, StagingIOError, TelemetryServiceError

logger = logging.getLogger(__name__)

OCTET_STREAM = "application/octet-stream"
STAGING_PREFIX = "telemetry-"


@contextmanager
def staged_payload(
    content: bytes,
    directory: Optional[str] = None,
) -> Iterator[tuple[BinaryIO, int]]:
    """
    Stage content in a temporary file and yield (file, size).

    The file is positioned at offset 0. It is closed and removed when
    the block exits, whether or not the block raised. Failures during
    cleanup are logged and never replace the block's own outcome.

    Raises:
        StagingIOError: the file could not be created, written or stat'ed
    """
    try:
        file = tempfile.NamedTemporaryFile(
            mode="w+b",
            prefix=STAGING_PREFIX,
            dir=directory,
            delete=False,
        )
    except OSError as e:
        raise StagingIOError(f"Fail to create temp file: {e}")

    try:
        try:
            file.write(content)
            file.flush()
        except OSError as e:
            raise StagingIOError(f"Fail to load file content: {e}")

        try:
            size = os.fstat(file.fileno()).st_size
            file.seek(0)
        except OSError as e:
            raise StagingIOError(f"Fail to get file stat: {e}")

        yield file, size
    finally:
        _release(file)


def _release(file: BinaryIO) -> None:
    """Close and remove a staging file, logging rather than raising."""
    try:
        file.close()
    except OSError as e:
        logger.warning("Close MinIO temp file fail", extra={"path": file.name, "error": str(e)})

    try:
        os.remove(file.name)
    except OSError as e:
        logger.warning("Remove MinIO temp file fail", extra={"path": file.name, "error": str(e)})


def upload_object(
    client: ObjectStoreClient,
    bucket: str,
    key: str,
    content: bytes,
    staging_dir: Optional[str] = None,
) -> None:
    """
    Upload content as a single object at bucket/key.

    Empty payloads are uploaded as zero-length objects. Nothing is
    retried; the first failure is raised to the caller.

    Raises:
        StagingIOError: the local staging file failed
        RemoteUploadError: the object store put failed
    """
    with staged_payload(content, staging_dir) as (file, size):
        try:
            client.put_object(
                Bucket=bucket,
                Key=key,
                Body=file,
                ContentLength=size,
                ContentType=OCTET_STREAM,
            )
        except TelemetryServiceError:
            raise
        except Exception as e:
            raise RemoteUploadError(f"Upload object error: {e}")

    logger.info(
        "Upload file success",
        extra={"bucket": bucket, "key": key, "size_bytes": size},
    )
