# admission control over screens, decided from session status and role
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from api.models import Role
from state.session import SessionStatus

HOME_MODE = "products"
ADMIN_HOME_MODE = "admin_dashboard"
LOGIN_MODE = "login"


class Access(str, Enum):
    PUBLIC = "public"
    AUTHENTICATED = "authenticated"
    ADMIN = "admin"
    CONSUMER = "consumer"  # any signed in user except admins


class Verdict(str, Enum):
    LOADING = "loading"
    LOGIN = "login"
    REDIRECT = "redirect"
    ADMIT = "admit"


@dataclass(frozen=True)
class Admission:
    verdict: Verdict
    redirect: Optional[str] = None

    @property
    def admitted(self) -> bool:
        return self.verdict == Verdict.ADMIT


def admit(status: SessionStatus, role: Optional[Role], access: Access) -> Admission:
    """
    Loading is checked first, then authentication, then the role exclusions,
    so a role check never runs for a session that is unresolved or anonymous.
    """
    if access == Access.PUBLIC:
        return Admission(Verdict.ADMIT)

    if status in (SessionStatus.UNINITIALIZED, SessionStatus.LOADING):
        return Admission(Verdict.LOADING)

    if status != SessionStatus.AUTHENTICATED or role is None:
        return Admission(Verdict.LOGIN, LOGIN_MODE)

    if access == Access.ADMIN and role != Role.ADMIN:
        return Admission(Verdict.REDIRECT, HOME_MODE)

    if access == Access.CONSUMER and role == Role.ADMIN:
        return Admission(Verdict.REDIRECT, ADMIN_HOME_MODE)

    return Admission(Verdict.ADMIT)


def landing_mode(role: Optional[Role]) -> str:
    return ADMIN_HOME_MODE if role == Role.ADMIN else HOME_MODE
