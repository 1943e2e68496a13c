import logging
from typing import Dict, Set

from .errors import InvalidAddress, Unauthorized
from .params import ADMIN_ROLE, MINTER_ROLE, ZERO_ADDRESS

logger = logging.getLogger(__name__)


class RoleRegistry:
    """Explicitly owned admin/minter membership sets."""

    def __init__(self, admin: str, component: str = "SCORCH"):
        if not admin or admin == ZERO_ADDRESS:
            raise InvalidAddress(f"{component}: Initial admin cannot be the zero address")
        self.component = component
        self._members: Dict[str, Set[str]] = {ADMIN_ROLE: {admin}, MINTER_ROLE: set()}

    def has_role(self, role: str, address: str) -> bool:
        return address in self._members.get(role, ())

    def members(self, role: str) -> Set[str]:
        return set(self._members.get(role, ()))

    def grant(self, role: str, address: str) -> bool:
        """Add membership; returns False when it was already held."""
        if not address or address == ZERO_ADDRESS:
            raise InvalidAddress(f"{self.component}: Cannot grant {role} to the zero address")
        members = self._members.setdefault(role, set())
        if address in members:
            return False
        members.add(address)
        return True

    def revoke(self, role: str, address: str) -> bool:
        """Remove membership; returns False when it was not held."""
        members = self._members.setdefault(role, set())
        if address not in members:
            return False
        members.discard(address)
        return True

    def require(self, role: str, caller: str, message: str) -> None:
        if not self.has_role(role, caller):
            logger.warning("%s: call from %s rejected, missing %s role", self.component, caller, role)
            raise Unauthorized(message)
