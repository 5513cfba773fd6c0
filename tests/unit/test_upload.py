"""
Unit tests for the staged upload pipeline.

The key guarantee: the staging file is gone after every call, whether
the upload succeeded or failed.
"""

import os

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError
from botocore.stub import ANY, Stubber

from src.core.errors import ConfigurationError, RemoteUploadError, StagingIOError
from src.core.telemetry.upload import OCTET_STREAM, staged_payload, upload_object
from src.infrastructure.storage.client import (
    MockObjectStoreClient,
    ObjectStoreConfig,
    create_object_store_client,
)


class RecordingClient:
    """Object store fake that remembers the staging file it was handed."""

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.staged_path: str | None = None
        self.staged_existed = False
        self.body = b""
        self.kwargs: dict = {}

    def put_object(self, **kwargs):
        body = kwargs["Body"]
        self.staged_path = body.name
        self.staged_existed = os.path.exists(body.name)
        self.body = body.read()
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return {}


def put_error(code: str = "NoSuchBucket") -> ClientError:
    return ClientError(
        {"Error": {"Code": code, "Message": "The specified bucket does not exist"}},
        "PutObject",
    )


class TestStagedPayload:
    """Tests for the staging file context manager."""

    def test_yields_rewound_file_with_exact_size(self, tmp_path):
        with staged_payload(b"telemetry", str(tmp_path)) as (file, size):
            assert size == 9
            assert file.read() == b"telemetry"

    def test_file_removed_after_block(self, tmp_path):
        with staged_payload(b"data", str(tmp_path)) as (file, _):
            path = file.name
            assert os.path.exists(path)

        assert not os.path.exists(path)
        assert os.listdir(tmp_path) == []

    def test_file_removed_when_block_raises(self, tmp_path):
        with pytest.raises(RuntimeError):
            with staged_payload(b"data", str(tmp_path)):
                raise RuntimeError("boom")

        assert os.listdir(tmp_path) == []

    def test_file_already_removed_is_not_an_error(self, tmp_path):
        """Cleanup failures are logged, never raised."""
        with staged_payload(b"data", str(tmp_path)) as (file, _):
            os.remove(file.name)

    def test_unique_names_per_call(self, tmp_path):
        with staged_payload(b"a", str(tmp_path)) as (first, _):
            with staged_payload(b"b", str(tmp_path)) as (second, _):
                assert first.name != second.name

    def test_create_failure(self, tmp_path):
        with pytest.raises(StagingIOError, match="Fail to create temp file"):
            with staged_payload(b"data", str(tmp_path / "missing-dir")):
                pass


class TestUploadObject:
    """Tests for upload_object."""

    def test_unexpected_client_error_is_remote_error(self, tmp_path):
        """Any failure of the put surfaces as RemoteUploadError."""
        client = RecordingClient(error=ValueError("bad response"))

        with pytest.raises(RemoteUploadError, match="Upload object error: bad response"):
            upload_object(client, "test-bucket", "key", b"test", str(tmp_path))

        assert os.listdir(tmp_path) == []

    def test_service_error_from_client_passes_through(self, tmp_path):
        client = RecordingClient(error=ConfigurationError("bucket not allowed"))

        with pytest.raises(ConfigurationError, match="bucket not allowed"):
            upload_object(client, "test-bucket", "key", b"test", str(tmp_path))

    def test_puts_payload_with_declared_length(self, tmp_path):
        client = RecordingClient()

        upload_object(client, "test-bucket", "device/reading.bin", b"test", str(tmp_path))

        assert client.body == b"test"
        assert client.kwargs["Bucket"] == "test-bucket"
        assert client.kwargs["Key"] == "device/reading.bin"
        assert client.kwargs["ContentLength"] == 4
        assert client.kwargs["ContentType"] == OCTET_STREAM

    def test_staging_name_is_not_the_object_key(self, tmp_path):
        client = RecordingClient()

        upload_object(client, "test-bucket", "reading.bin", b"test", str(tmp_path))

        assert client.staged_existed
        assert os.path.basename(client.staged_path) != "reading.bin"

    def test_staging_file_removed_after_success(self, tmp_path):
        client = RecordingClient()

        upload_object(client, "test-bucket", "key", b"test", str(tmp_path))

        assert not os.path.exists(client.staged_path)
        assert os.listdir(tmp_path) == []

    def test_staging_file_removed_after_failure(self, tmp_path):
        client = RecordingClient(error=put_error())

        with pytest.raises(RemoteUploadError):
            upload_object(client, "test-bucket", "key", b"test", str(tmp_path))

        assert not os.path.exists(client.staged_path)
        assert os.listdir(tmp_path) == []

    def test_empty_payload_uploads_zero_length(self, tmp_path):
        client = MockObjectStoreClient()

        upload_object(client, "test-bucket", "empty", b"", str(tmp_path))

        assert client.objects[("test-bucket", "empty")] == b""
        assert client.puts[0]["content_length"] == 0

    def test_remote_error_message(self, tmp_path):
        client = RecordingClient(error=put_error("AccessDenied"))

        with pytest.raises(RemoteUploadError) as exc_info:
            upload_object(client, "test-bucket", "key", b"test", str(tmp_path))

        assert exc_info.value.message.startswith("Upload object error:")
        assert "AccessDenied" in exc_info.value.message

    def test_connection_error_is_remote_error(self, tmp_path):
        client = RecordingClient(error=EndpointConnectionError(endpoint_url="http://test-end-point"))

        with pytest.raises(RemoteUploadError, match="Upload object error"):
            upload_object(client, "test-bucket", "key", b"test", str(tmp_path))

    def test_staging_failure_never_calls_store(self, tmp_path):
        client = RecordingClient()

        with pytest.raises(StagingIOError):
            upload_object(client, "test-bucket", "key", b"test", str(tmp_path / "missing-dir"))

        assert client.staged_path is None


class TestUploadWithBoto3Client:
    """The pipeline against a real boto3 client, stubbed at the wire."""

    @pytest.fixture
    def s3(self):
        return create_object_store_client(ObjectStoreConfig(
            endpoint="test-end-point:9000",
            access_key_id="test-api-id",
            secret_access_key="test-api-key",
            secure=False,
        ))

    def test_put_object_call(self, s3, tmp_path):
        with Stubber(s3) as stubber:
            stubber.add_response(
                "put_object",
                {"ETag": '"etag"'},
                expected_params={
                    "Bucket": "test-bucket",
                    "Key": "test-file-name",
                    "Body": ANY,
                    "ContentLength": 4,
                    "ContentType": "application/octet-stream",
                },
            )

            upload_object(s3, "test-bucket", "test-file-name", b"test", str(tmp_path))

            stubber.assert_no_pending_responses()

    def test_put_object_failure(self, s3, tmp_path):
        with Stubber(s3) as stubber:
            stubber.add_client_error("put_object", service_error_code="NoSuchBucket")

            with pytest.raises(RemoteUploadError, match="NoSuchBucket"):
                upload_object(s3, "test-bucket", "test-file-name", b"", str(tmp_path))

        assert os.listdir(tmp_path) == []

    def test_failed_put_is_not_retried(self, tmp_path):
        """A refused connection is reported after a single attempt."""
        s3 = create_object_store_client(ObjectStoreConfig(
            endpoint="127.0.0.1:1",
            access_key_id="test-api-id",
            secret_access_key="test-api-key",
            secure=False,
        ))
        attempts = []
        s3.meta.events.register(
            "before-send.s3.PutObject",
            lambda request, **kwargs: attempts.append(request.url),
        )

        with pytest.raises(RemoteUploadError, match="Upload object error"):
            upload_object(s3, "test-bucket", "test-file-name", b"test", str(tmp_path))

        assert len(attempts) == 1
        assert os.listdir(tmp_path) == []
