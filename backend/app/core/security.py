"""
Staff credential table.

Staff authenticate with a shared secret sent in the X-Admin-Password header.
Each secret maps to one identity (role, display label, badge color). The table
comes from configuration and is looked up in constant time per entry.
"""
from dataclasses import dataclass, asdict
from typing import Dict, Mapping, Optional
import secrets

from fastapi.security import APIKeyHeader

from app.core.config import settings

STAFF_CREDENTIAL_HEADER = "X-Admin-Password"

# Reads the header without raising so a missing credential gets the same 401 as a wrong one
staff_credential_header = APIKeyHeader(name=STAFF_CREDENTIAL_HEADER, auto_error=False)

DEFAULT_BADGE_COLOR = "#6B7280"

# Roles that may hold credentials today
STAFF_ROLES = ("executive", "press_secretary", "network_secretary", "developer")

# Roles retired from the credential table; their ledger entries can be purged
DEPRECATED_ROLES = (
    "president",
    "vice_president",
    "cote_governor",
    "coed_governor",
    "admin",
    "executive_admin",
)


@dataclass(frozen=True)
class StaffIdentity:
    role: str
    label: str
    color: str = DEFAULT_BADGE_COLOR

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


class StaffDirectory:
    """Maps staff secrets to identities"""

    def __init__(self, accounts: Mapping[str, Mapping[str, str]], privileged_role: str = "developer"):
        self._accounts: Dict[str, StaffIdentity] = {
            secret: StaffIdentity(
                role=entry["role"],
                label=entry["label"],
                color=entry.get("color") or DEFAULT_BADGE_COLOR,
            )
            for secret, entry in accounts.items()
            if secret
        }
        self.privileged_role = privileged_role

    @classmethod
    def from_settings(cls) -> "StaffDirectory":
        return cls(settings.STAFF_ACCOUNT_MAP, privileged_role=settings.PRIVILEGED_ROLE)

    def resolve(self, credential: Optional[str]) -> Optional[StaffIdentity]:
        """Return the identity for a secret, or None when it is missing or unknown"""
        if not credential:
            return None
        match = None
        for secret, identity in self._accounts.items():
            if secrets.compare_digest(secret.encode("utf-8"), credential.encode("utf-8")):
                match = identity
        return match

    def is_privileged(self, identity: StaffIdentity) -> bool:
        return identity.role == self.privileged_role

    def __len__(self) -> int:
        return len(self._accounts)
