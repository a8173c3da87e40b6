"""Credential value objects and the remote service contracts."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol, Sequence

from .errors import ServiceUnavailable
from .models import BioSample, FingerPosition

JSONWebToken = str

FINGERPRINTS_CREDENTIAL_ID = "AC184A13-60AB-40e5-A514-E10F777EC2F9"


@dataclass(slots=True, frozen=True)
class User:
    name: str
    name_type: int = 0


@dataclass(slots=True, frozen=True)
class Ticket:
    """Opaque credential wrapper carrying a JSON web token."""

    jwt: JSONWebToken


def _sample_json(sample: BioSample | Mapping[str, Any] | str) -> Any:
    if isinstance(sample, BioSample):
        return sample.to_json()
    if isinstance(sample, Mapping):
        return dict(sample)
    return sample


@dataclass(slots=True, frozen=True)
class Credential:
    id: str
    data: str = ""

    @classmethod
    def fingerprints(
        cls,
        samples: Sequence[BioSample | Mapping[str, Any] | str],
        position: Optional[FingerPosition] = None,
    ) -> Credential:
        """Build a fingerprint credential from acquired samples.

        When a finger position is given (enrollment and deletion), the data
        wraps the samples together with the position.
        """

        encoded = [_sample_json(sample) for sample in samples]
        if position is None:
            return cls(FINGERPRINTS_CREDENTIAL_ID, json.dumps(encoded))
        return cls(
            FINGERPRINTS_CREDENTIAL_ID,
            json.dumps({"position": int(position), "samples": encoded}),
        )


class AuthService(Protocol):
    """Remote authentication service."""

    async def authenticate_user(self, user: User, credential: Credential) -> Ticket:
        ...

    async def identify_user(self, credential: Credential) -> Ticket:
        ...

    async def get_enrollment_data(self, user: User, credential_id: str) -> str:
        """Return the base64url encoded enrollment data for the credential."""
        ...


class EnrollService(Protocol):
    """Remote enrollment service."""

    async def is_enrollment_allowed(
        self, officer: Ticket, user: User, credential_id: str
    ) -> None:
        ...

    async def enroll_user_credentials(
        self, officer: Ticket, user: Ticket, credential: Credential
    ) -> None:
        ...

    async def delete_user_credentials(
        self, officer: Ticket, user: Ticket, credential: Credential
    ) -> None:
        ...


class MissingAuthService:
    """Stand-in used when no authentication service was supplied."""

    name = "authService"

    async def authenticate_user(self, user: User, credential: Credential) -> Ticket:
        raise ServiceUnavailable(self.name)

    async def identify_user(self, credential: Credential) -> Ticket:
        raise ServiceUnavailable(self.name)

    async def get_enrollment_data(self, user: User, credential_id: str) -> str:
        raise ServiceUnavailable(self.name)


class MissingEnrollService:
    """Stand-in used when no enrollment service was supplied."""

    name = "enrollService"

    async def is_enrollment_allowed(
        self, officer: Ticket, user: User, credential_id: str
    ) -> None:
        raise ServiceUnavailable(self.name)

    async def enroll_user_credentials(
        self, officer: Ticket, user: Ticket, credential: Credential
    ) -> None:
        raise ServiceUnavailable(self.name)

    async def delete_user_credentials(
        self, officer: Ticket, user: Ticket, credential: Credential
    ) -> None:
        raise ServiceUnavailable(self.name)
