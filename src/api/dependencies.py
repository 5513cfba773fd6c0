"""
FastAPI dependency injection.

Dependencies provide the secret resolver and the object store client
factory to route handlers. Tests replace them through
app.dependency_overrides to substitute in-memory fakes.
"""

import logging
from typing import Annotated, Callable, Optional

from fastapi import Depends

from ..config.settings import Settings, get_settings
from ..infrastructure.secrets.store import (
    SecretResolver,
    SecretStore,
    create_secret_store,
)
from ..infrastructure.storage.client import (
    MockObjectStoreClient,
    ObjectStoreClient,
    ObjectStoreConfig,
    create_object_store_client,
    validate_object_store_config,
)

logger = logging.getLogger(__name__)

# Builds a fresh client for one request's endpoint and credentials
ObjectStoreClientFactory = Callable[[ObjectStoreConfig], ObjectStoreClient]

# Global mock instances (shared across requests for testing)
_mock_secret_store: Optional[SecretStore] = None
_mock_object_store: Optional[MockObjectStoreClient] = None


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_secret_store(
    settings: Annotated[Settings, Depends(get_settings)],
) -> SecretStore:
    """
    Provide the secret store.

    In mock mode the same in-memory store is reused across requests so
    secrets added during a development session persist.
    """
    global _mock_secret_store

    if settings.secret_store_mock_mode:
        if _mock_secret_store is None:
            _mock_secret_store = create_secret_store(mock_mode=True)
            logger.info("Created shared mock secret store for session")
        return _mock_secret_store

    return create_secret_store(root=settings.secret_store_dir)


def get_secret_resolver(
    store: Annotated[SecretStore, Depends(get_secret_store)],
) -> SecretResolver:
    """Provide a resolver over the configured secret store."""
    return SecretResolver(store)


def get_object_store_factory(
    settings: Annotated[Settings, Depends(get_settings)],
) -> ObjectStoreClientFactory:
    """
    Provide the object store client factory.

    The real factory builds a boto3 client per request. In mock mode the
    configuration is still validated, so missing credentials fail the
    same way, but every request shares one in-memory store.
    """
    global _mock_object_store

    if not settings.minio_mock_mode:
        return create_object_store_client

    if _mock_object_store is None:
        _mock_object_store = MockObjectStoreClient()
        logger.info("Created shared mock object store for session")

    mock_store = _mock_object_store

    def mock_factory(config: ObjectStoreConfig) -> ObjectStoreClient:
        validate_object_store_config(config)
        return mock_store

    return mock_factory


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

SecretResolverDep = Annotated[SecretResolver, Depends(get_secret_resolver)]
ObjectStoreFactoryDep = Annotated[ObjectStoreClientFactory, Depends(get_object_store_factory)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
