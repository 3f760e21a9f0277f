"""
Session context for dashboard and notification calls.

The caller's identity is passed explicitly into every service call instead
of being read from ambient state. Authentication itself happens upstream;
by the time a request reaches this service the gateway has already
established who the user is and forwards it in headers.
"""
from dataclasses import dataclass
from typing import Optional

from portal.models.user import UserRole


class NoSessionContextError(Exception):
    """Raised when a call requires an identity but none was provided."""
    pass


@dataclass(frozen=True)
class SessionContext:
    user_id: str
    role: UserRole
    name: Optional[str] = None

    @property
    def is_manager(self) -> bool:
        return self.role == UserRole.MANAGER

    @property
    def is_agent(self) -> bool:
        return self.role == UserRole.AGENT

    @classmethod
    def from_values(cls, user_id: Optional[str], role: Optional[str], name: Optional[str] = None) -> "SessionContext":
        """Build a context from raw header values."""
        if not user_id or not role:
            raise NoSessionContextError("Both user id and role are required")
        try:
            parsed_role = UserRole(role.strip().lower())
        except ValueError:
            raise NoSessionContextError(f"Unknown role: {role}")
        return cls(user_id=user_id.strip(), role=parsed_role, name=name)
