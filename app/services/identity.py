"""
Identity Service - resolves bearer tokens into submitter/operator identities.

Authentication itself happens elsewhere (Firebase Auth on the mobile client);
this service only verifies the token it is handed and answers two questions:
who is calling, and may they act as an operator.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, Optional
import logging

from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions

from app.core.settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    user_id: str
    is_operator: bool = False
    email: Optional[str] = None


class IdentityProvider(ABC):

    @abstractmethod
    def resolve(self, token: str) -> Optional[Identity]:
        """Return the identity for a valid token, None otherwise. Never raises."""
        raise NotImplementedError

    @abstractmethod
    def public_profile(self, user_id: str) -> Optional[Dict[str, Optional[str]]]:
        """Public fields shown next to a report: {id, email}."""
        raise NotImplementedError


class FirebaseIdentityProvider(IdentityProvider):
    """
    Verifies Firebase ID tokens.

    Operator if the token carries an `operator: true` custom claim or the uid
    is listed in OPERATOR_UIDS.
    """

    def __init__(self, operator_uids: Iterable[str] = ()):
        self.operator_uids = set(operator_uids)

    def resolve(self, token: str) -> Optional[Identity]:
        try:
            claims = firebase_auth.verify_id_token(token)
        except (ValueError, firebase_auth.InvalidIdTokenError, firebase_auth.CertificateFetchError) as e:
            logger.info(f"Rejected ID token: {e.__class__.__name__}")
            return None

        uid = claims["uid"]
        return Identity(
            user_id=uid,
            is_operator=bool(claims.get("operator")) or uid in self.operator_uids,
            email=claims.get("email"),
        )

    def public_profile(self, user_id: str) -> Optional[Dict[str, Optional[str]]]:
        try:
            user = firebase_auth.get_user(user_id)
        except firebase_auth.UserNotFoundError:
            return None
        except firebase_exceptions.FirebaseError as e:
            logger.warning(f"Failed to load profile for user {user_id}: {e}")
            return {"id": user_id, "email": None}
        return {"id": user.uid, "email": user.email}


class StaticTokenIdentityProvider(IdentityProvider):
    """
    Fixed token table for local development and tests.

    Spec string: "token=uid[:operator][:email],..."
    e.g. "dev-user=user-1,dev-op=op-1:operator:ops@city.gov"
    """

    def __init__(self, tokens: Dict[str, Identity]):
        self.tokens = dict(tokens)
        self._profiles = {i.user_id: i for i in self.tokens.values()}

    @classmethod
    def from_spec(cls, spec: str, operator_uids: Iterable[str] = ()) -> "StaticTokenIdentityProvider":
        operators = set(operator_uids)
        tokens: Dict[str, Identity] = {}
        for entry in spec.split(","):
            entry = entry.strip()
            if not entry or "=" not in entry:
                continue
            token, rest = entry.split("=", 1)
            parts = [p.strip() for p in rest.split(":")]
            uid = parts[0]
            flags = parts[1:]
            is_operator = "operator" in flags or uid in operators
            email = next((p for p in flags if "@" in p), None)
            tokens[token.strip()] = Identity(user_id=uid, is_operator=is_operator, email=email)
        return cls(tokens)

    def resolve(self, token: str) -> Optional[Identity]:
        return self.tokens.get(token)

    def public_profile(self, user_id: str) -> Optional[Dict[str, Optional[str]]]:
        identity = self._profiles.get(user_id)
        if identity is None:
            return None
        return {"id": identity.user_id, "email": identity.email}


def get_identity_provider(settings: Settings) -> IdentityProvider:
    """
    Resolve the identity provider based on settings.

    AUTH_PROVIDER='static' or mock DB mode → StaticTokenIdentityProvider.
    Otherwise Firebase ID token verification (requires firebase_admin to be initialized).
    """
    provider_name = (settings.AUTH_PROVIDER or "firebase").lower()
    if provider_name == "static" or settings.USE_MOCK_DB:
        logger.info("Identity provider initialized: static tokens")
        return StaticTokenIdentityProvider.from_spec(settings.STATIC_TOKENS, settings.operator_uids)

    logger.info("Identity provider initialized: firebase")
    return FirebaseIdentityProvider(settings.operator_uids)
