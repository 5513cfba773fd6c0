"""
Secret store access for object store credentials.

Credentials are never baked into the service. Each request names a
secret, and the secret is read fresh from the store every time so that
rotated credentials take effect without a restart.

Two stores are provided:
- MountedSecretStore reads secrets projected onto disk, one directory
  per secret and one file per field (the Kubernetes secret volume layout)
- MockSecretStore keeps secrets in memory for local development and tests
"""

import logging
from pathlib import Path
from typing import Optional, Protocol

from ...core.errors import SecretNotFound, SecretStoreUnavailable

logger = logging.getLogger(__name__)


class SecretStore(Protocol):
    """Read-only key/value secret store."""

    def get_secret(self, name: str) -> dict[str, str]:
        """Return the field/value mapping stored under name."""
        ...


class MountedSecretStore:
    """
    Secrets mounted as files under a root directory.

    Layout: {root}/{secret_name}/{field}. Kubernetes also creates hidden
    bookkeeping entries (..data, ..2024_01_01...) inside secret volumes;
    those are skipped.
    """

    def __init__(self, root: Path) -> None:
        self._root = Path(root)
        logger.info(
            "Initialized mounted secret store",
            extra={"root": str(self._root)},
        )

    def get_secret(self, name: str) -> dict[str, str]:
        if not self._root.is_dir():
            raise SecretStoreUnavailable(f"Secret store root not available: {self._root}")

        # secret names never contain path separators
        if not name or "/" in name or name in (".", ".."):
            raise SecretNotFound(f"Secret not found: {name}")

        secret_dir = self._root / name
        if not secret_dir.is_dir():
            raise SecretNotFound(f"Secret not found: {name}")

        data: dict[str, str] = {}
        try:
            for entry in secret_dir.iterdir():
                if entry.name.startswith(".") or not entry.is_file():
                    continue
                data[entry.name] = entry.read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError) as e:
            raise SecretStoreUnavailable(f"Fail to read secret {name}: {e}")

        return data


class MockSecretStore:
    """In-memory secret store."""

    def __init__(self, secrets: Optional[dict[str, dict[str, str]]] = None) -> None:
        self._secrets: dict[str, dict[str, str]] = dict(secrets or {})
        logger.info("Initialized mock secret store (in-memory)")

    def put_secret(self, name: str, data: dict[str, str]) -> None:
        self._secrets[name] = dict(data)

    def get_secret(self, name: str) -> dict[str, str]:
        if name not in self._secrets:
            raise SecretNotFound(f"Secret not found: {name}")
        return dict(self._secrets[name])


class SecretResolver:
    """
    Looks up credential secrets by reference name.

    The store is injected so tests can substitute a fake one. The
    resolver keeps no state between calls and does no caching.
    """

    def __init__(self, store: SecretStore) -> None:
        self._store = store

    def get_secret(self, name: str) -> dict[str, str]:
        """
        Resolve a secret.

        Raises:
            SecretNotFound: no secret with this name
            SecretStoreUnavailable: the store could not be read
        """
        secret = self._store.get_secret(name)
        logger.debug(
            "Resolved secret",
            extra={"secret": name, "fields": sorted(secret.keys())},
        )
        return secret


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_secret_store(
    root: Optional[Path] = None,
    mock_mode: bool = False,
) -> SecretStore:
    """
    Create a secret store based on configuration.

    Args:
        root: Directory secrets are mounted under (required if not mock_mode)
        mock_mode: If True, return an empty in-memory store

    Returns:
        SecretStore implementation (mounted or mock)
    """
    if mock_mode:
        return MockSecretStore()

    if root is None:
        raise ValueError("root is required when not in mock mode")

    return MountedSecretStore(root)
