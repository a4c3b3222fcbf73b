"""Role to capability mapping, resolved once per request."""

import enum
from dataclasses import dataclass
from typing import Dict, FrozenSet

from dentalce.models.user import User


ADMIN = "admin"
STAFF = "staff"
ATTENDEE = "attendee"

ALL_ROLES = (ADMIN, STAFF, ATTENDEE)


class Capability(str, enum.Enum):
    VIEW_ADMIN = "view_admin"
    MANAGE_SEMINARS = "manage_seminars"
    MANAGE_REGISTRATIONS = "manage_registrations"
    REVIEW_MAKEUP = "review_makeup"
    CHECK_IN = "check_in"
    MANAGE_CREDITS = "manage_credits"
    ISSUE_CERTIFICATES = "issue_certificates"


ROLE_CAPABILITIES: Dict[str, FrozenSet[Capability]] = {
    ADMIN: frozenset(Capability),
    STAFF: frozenset({
        Capability.VIEW_ADMIN,
        Capability.MANAGE_REGISTRATIONS,
        Capability.REVIEW_MAKEUP,
        Capability.CHECK_IN,
    }),
    ATTENDEE: frozenset(),
}


def capabilities_for_role(role: str) -> FrozenSet[Capability]:
    return ROLE_CAPABILITIES.get((role or "").strip().lower(), frozenset())


@dataclass(frozen=True)
class RequestContext:
    user: User
    capabilities: FrozenSet[Capability]

    @property
    def user_id(self) -> int:
        return self.user.user_id

    def can(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def can_act_for(self, user_id: int, capability: Capability) -> bool:
        """Owners act on their own rows; everyone else needs the capability."""
        return self.user.user_id == user_id or self.can(capability)
