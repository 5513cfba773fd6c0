"""
Unit tests for best-effort credential injection.

Injection must never raise: every failure leaves the settings as they
were (apart from fields that did resolve) and reports what happened.
"""

import pytest

from src.core.errors import SecretStoreUnavailable
from src.core.telemetry.credentials import (
    CredentialOutcome,
    InjectionResult,
    inject_credentials,
)
from src.core.telemetry.models import UploadSettings
from src.infrastructure.secrets.store import MockSecretStore, MountedSecretStore, SecretResolver


class UnavailableStore:
    """A secret store that cannot be reached."""

    def get_secret(self, name: str) -> dict[str, str]:
        raise SecretStoreUnavailable("connection refused")


@pytest.fixture
def resolver() -> SecretResolver:
    return SecretResolver(MockSecretStore({
        "empty-secret": {},
        "id-only": {"username": "overwrite"},
        "id-and-key": {"username": "overwrite", "password": "overwrite"},
    }))


class TestInjectCredentials:
    """Tests for inject_credentials."""

    def test_no_settings_is_not_an_error(self, resolver):
        """A request without settings gets a NOT_CONFIGURED result."""
        result = inject_credentials(None, resolver)

        assert result == InjectionResult.uniform(CredentialOutcome.NOT_CONFIGURED)

    def test_no_secret_reference_leaves_credentials_unset(self, resolver):
        settings = UploadSettings()

        result = inject_credentials(settings, resolver)

        assert settings.api_id is None
        assert settings.api_key is None
        assert result.api_id is CredentialOutcome.NOT_CONFIGURED

    def test_no_secret_reference_keeps_direct_credentials(self, resolver):
        settings = UploadSettings(api_id="direct-id", api_key="direct-key")

        inject_credentials(settings, resolver)

        assert settings.api_id == "direct-id"
        assert settings.api_key == "direct-key"

    def test_missing_secret_is_lookup_failure(self, resolver):
        settings = UploadSettings(secret="test-secret")

        result = inject_credentials(settings, resolver)

        assert settings.api_id is None
        assert settings.api_key is None
        assert result == InjectionResult.uniform(CredentialOutcome.LOOKUP_FAILED)

    def test_unavailable_store_is_lookup_failure(self):
        settings = UploadSettings(secret="test-secret", api_id="kept")

        result = inject_credentials(settings, SecretResolver(UnavailableStore()))

        assert settings.api_id == "kept"
        assert result.api_id is CredentialOutcome.LOOKUP_FAILED

    def test_undecodable_mounted_secret_is_lookup_failure(self, tmp_path):
        secret_dir = tmp_path / "minio-credentials"
        secret_dir.mkdir()
        (secret_dir / "username").write_bytes(b"\xff\xfe")
        (secret_dir / "password").write_text("key")
        settings = UploadSettings(secret="minio-credentials")

        result = inject_credentials(settings, SecretResolver(MountedSecretStore(tmp_path)))

        assert settings.api_id is None
        assert settings.api_key is None
        assert result == InjectionResult.uniform(CredentialOutcome.LOOKUP_FAILED)

    def test_secret_without_fields(self, resolver):
        settings = UploadSettings(secret="empty-secret")

        result = inject_credentials(settings, resolver)

        assert settings.api_id is None
        assert settings.api_key is None
        assert result == InjectionResult.uniform(CredentialOutcome.ABSENT_IN_SECRET)

    def test_secret_with_only_id_populates_only_id(self, resolver):
        settings = UploadSettings(secret="id-only")

        result = inject_credentials(settings, resolver)

        assert settings.api_id == "overwrite"
        assert settings.api_key is None
        assert result.api_id is CredentialOutcome.RESOLVED
        assert result.api_key is CredentialOutcome.ABSENT_IN_SECRET
        assert not result.fully_resolved

    def test_secret_overwrites_existing_credentials(self, resolver):
        settings = UploadSettings(secret="id-and-key", api_id="old-id", api_key="old-key")

        result = inject_credentials(settings, resolver)

        assert settings.api_id == "overwrite"
        assert settings.api_key == "overwrite"
        assert result.fully_resolved

    def test_custom_field_names(self):
        resolver = SecretResolver(MockSecretStore({
            "minio": {"accesskey": "AK", "secretkey": "SK"},
        }))
        settings = UploadSettings(secret="minio")

        inject_credentials(settings, resolver, username_field="accesskey", password_field="secretkey")

        assert settings.api_id == "AK"
        assert settings.api_key == "SK"
