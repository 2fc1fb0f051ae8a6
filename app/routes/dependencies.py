"""
Request-scoped dependencies: application context, intake service, caller identity.
"""

from typing import Optional

from fastapi import Depends, Header, Request

from app.core.context import AppContext
from app.core.errors import AuthenticationRequired, OperatorRequired
from app.services.identity import Identity
from app.services.report_service import ReportIntakeService


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_intake(context: AppContext = Depends(get_context)) -> ReportIntakeService:
    return context.intake


def optional_identity(
    authorization: Optional[str] = Header(None),
    context: AppContext = Depends(get_context),
) -> Optional[Identity]:
    """
    Caller identity from an `Authorization: Bearer <token>` header.

    No header → anonymous (None). A header with a bad token is rejected
    rather than silently treated as anonymous.
    """
    if not authorization:
        return None

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationRequired("Authorization header must be 'Bearer <token>'")

    identity = context.identity.resolve(token.strip())
    if identity is None:
        raise AuthenticationRequired("Invalid or expired token")
    return identity


def require_identity(identity: Optional[Identity] = Depends(optional_identity)) -> Identity:
    if identity is None:
        raise AuthenticationRequired()
    return identity


def require_operator(identity: Identity = Depends(require_identity)) -> Identity:
    if not identity.is_operator:
        raise OperatorRequired()
    return identity
