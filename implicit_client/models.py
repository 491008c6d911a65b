"""
Data model: provider metadata, the established session, user profile and the redirect-back outcome.
Session fields keep the wire types (expires_in is a string) so the persisted record matches what the provider sent.
"""
import enum
import json
from dataclasses import asdict, dataclass, field
from typing import Any

from implicit_client.errors import ImplicitFlowError

_REQUIRED_ENDPOINTS = ("authorization_endpoint", "userinfo_endpoint", "end_session_endpoint")


@dataclass(frozen=True)
class DiscoveryDocument:
    authorization_endpoint: str
    userinfo_endpoint: str
    end_session_endpoint: str
    issuer: str | None = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_json(cls, payload: dict) -> "DiscoveryDocument":
        """Build from the provider's JSON. Raises ValueError if an endpoint we use is missing."""
        if not isinstance(payload, dict):
            raise ValueError("discovery document must be a JSON object")
        missing = [k for k in _REQUIRED_ENDPOINTS if not payload.get(k)]
        if missing:
            raise ValueError(f"discovery document missing: {', '.join(missing)}")
        known = set(_REQUIRED_ENDPOINTS) | {"issuer"}
        return cls(
            authorization_endpoint=payload["authorization_endpoint"],
            userinfo_endpoint=payload["userinfo_endpoint"],
            end_session_endpoint=payload["end_session_endpoint"],
            issuer=payload.get("issuer"),
            extra={k: v for k, v in payload.items() if k not in known},
        )


@dataclass
class Session:
    access_token: str
    id_token: str
    token_type: str = ""
    scope: str = ""
    expires_in: str = ""
    issued_at: int = 0

    @classmethod
    def from_response(cls, params: dict[str, str], issued_at: int) -> "Session":
        """Session from a validated redirect-back; issued_at is always the local clock."""
        return cls(
            access_token=params.get("access_token", ""),
            id_token=params.get("id_token", ""),
            token_type=params.get("token_type", ""),
            scope=params.get("scope", ""),
            expires_in=params.get("expires_in", ""),
            issued_at=issued_at,
        )

    def expires_at(self) -> int:
        """issued_at + expires_in in epoch seconds. Raises ValueError for non-integer fields."""
        return int(self.issued_at) + int(self.expires_in)

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> "Session":
        """Parse a persisted record. Raises ValueError on anything that is not a session object."""
        data = json.loads(raw)
        if not isinstance(data, dict) or not data.get("access_token"):
            raise ValueError("persisted session has no access_token")
        return cls(
            access_token=str(data["access_token"]),
            id_token=str(data.get("id_token") or ""),
            token_type=str(data.get("token_type") or ""),
            scope=str(data.get("scope") or ""),
            expires_in=str(data.get("expires_in") or ""),
            issued_at=int(data.get("issued_at") or 0),
        )


@dataclass(frozen=True)
class UserInfo:
    sub: str
    name: str | None = None
    preferred_username: str | None = None
    given_name: str | None = None
    family_name: str | None = None
    email: str | None = None
    phone_number: str | None = None
    address: dict | None = None
    claims: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_json(cls, payload: dict) -> "UserInfo":
        if not isinstance(payload, dict) or "sub" not in payload:
            raise ValueError("userinfo response has no sub claim")
        address = payload.get("address")
        return cls(
            sub=str(payload["sub"]),
            name=payload.get("name"),
            preferred_username=payload.get("preferred_username"),
            given_name=payload.get("given_name"),
            family_name=payload.get("family_name"),
            email=payload.get("email"),
            phone_number=payload.get("phone_number"),
            address=address if isinstance(address, dict) else None,
            claims=dict(payload),
        )

    @property
    def display_name(self) -> str:
        return self.name or self.preferred_username or self.email or self.sub


class CallbackOutcome(enum.Enum):
    NOOP = "noop"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


@dataclass(frozen=True)
class CallbackResult:
    """Outcome of processing the redirect-back fragment. Exactly one of session/error is set unless NOOP."""

    outcome: CallbackOutcome
    session: Session | None = None
    error: ImplicitFlowError | None = None

    @classmethod
    def noop(cls) -> "CallbackResult":
        return cls(CallbackOutcome.NOOP)

    @classmethod
    def authenticated(cls, session: Session) -> "CallbackResult":
        return cls(CallbackOutcome.AUTHENTICATED, session=session)

    @classmethod
    def failed(cls, error: ImplicitFlowError) -> "CallbackResult":
        return cls(CallbackOutcome.FAILED, error=error)

    @property
    def ok(self) -> bool:
        return self.outcome is not CallbackOutcome.FAILED

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error
