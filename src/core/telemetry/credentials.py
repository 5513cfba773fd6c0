"""
Best-effort credential injection.

Fills api_id/api_key on UploadSettings from the referenced secret. This
step never fails a request: anything that goes wrong is logged and the
field is left as it was. Missing credentials surface later, when the
object store client is built, with a clearer message than a raw lookup
error would give.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ...infrastructure.secrets.store import SecretResolver
from ..errors import SecretResolutionError
from .models import UploadSettings

logger = logging.getLogger(__name__)

USERNAME_SECRET_FIELD = "username"
PASSWORD_SECRET_FIELD = "password"


class CredentialOutcome(Enum):
    """What happened to a single credential field during injection."""
    NOT_CONFIGURED = "not_configured"      # no settings or no secret reference
    RESOLVED = "resolved"
    ABSENT_IN_SECRET = "absent_in_secret"
    LOOKUP_FAILED = "lookup_failed"


@dataclass(frozen=True)
class InjectionResult:
    """Per-field outcome of one injection attempt."""
    api_id: CredentialOutcome
    api_key: CredentialOutcome

    @classmethod
    def uniform(cls, outcome: CredentialOutcome) -> "InjectionResult":
        return cls(api_id=outcome, api_key=outcome)

    @property
    def fully_resolved(self) -> bool:
        return (
            self.api_id is CredentialOutcome.RESOLVED
            and self.api_key is CredentialOutcome.RESOLVED
        )


def inject_credentials(
    settings: Optional[UploadSettings],
    resolver: SecretResolver,
    username_field: str = USERNAME_SECRET_FIELD,
    password_field: str = PASSWORD_SECRET_FIELD,
) -> InjectionResult:
    """
    Populate api_id and api_key from the secret named by settings.secret.

    Resolved values overwrite anything supplied directly in the request.
    Each field is handled on its own: a secret holding only the id
    still populates the id.
    """
    if settings is None:
        logger.warning("Empty MinIO service setting")
        return InjectionResult.uniform(CredentialOutcome.NOT_CONFIGURED)

    if not settings.secret:
        logger.warning("Empty MinIO secret setting")
        return InjectionResult.uniform(CredentialOutcome.NOT_CONFIGURED)

    try:
        secret = resolver.get_secret(settings.secret)
    except SecretResolutionError as e:
        logger.error(
            "Fail to get secret",
            extra={"secret": settings.secret, "error": e.message},
        )
        return InjectionResult.uniform(CredentialOutcome.LOOKUP_FAILED)

    id_outcome = CredentialOutcome.ABSENT_IN_SECRET
    if username_field in secret:
        settings.api_id = secret[username_field]
        id_outcome = CredentialOutcome.RESOLVED
    else:
        logger.error("Fail to get APIId from secret", extra={"secret": settings.secret})

    key_outcome = CredentialOutcome.ABSENT_IN_SECRET
    if password_field in secret:
        settings.api_key = secret[password_field]
        key_outcome = CredentialOutcome.RESOLVED
    else:
        logger.error("Fail to get APIKey from secret", extra={"secret": settings.secret})

    result = InjectionResult(api_id=id_outcome, api_key=key_outcome)
    if result.fully_resolved:
        logger.info("MinIO loaded APIId & APIKey from secret", extra={"secret": settings.secret})

    return result
