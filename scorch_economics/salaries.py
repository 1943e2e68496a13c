import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence

from .clock import Clock
from .errors import (
    ContributorInactive,
    InvalidAddress,
    InvalidAmount,
    PaymentIntervalNotReached,
    TierExists,
    TierInactive,
    UnknownContributor,
    UnknownTier,
)
from .events import ContributorUpdated, Event, SalaryPaid, TierUpdated
from .fixed_point import require_uint
from .ledger import Ledger
from .params import ADMIN_ROLE, SALARIES_ADDRESS, SALARY_PAYMENT_INTERVAL, ZERO_ADDRESS
from .roles import RoleRegistry
from .serial import SerialGuard

logger = logging.getLogger(__name__)


@dataclass
class Tier:
    salary_amount: int
    is_active: bool = True


@dataclass
class Contributor:
    tier_id: int
    is_active: bool = True
    last_paid: int = 0  # 0 = never paid


class AutomatedSalaries:
    """
    Tiered recurring payroll minted through the ledger.

    A keeper calls ``distribute_salaries_batch`` on a timer; each active
    contributor is paid their tier salary at most once per payment
    interval.
    """

    def __init__(
        self,
        ledger: Ledger,
        clock: Clock,
        admin: str,
        address: str = SALARIES_ADDRESS,
        payment_interval: int = SALARY_PAYMENT_INTERVAL,
    ):
        if ledger is None:
            raise InvalidAddress("Salaries: Zero address for token")
        if payment_interval <= 0:
            raise ValueError("Salaries: Payment interval must be positive")
        self.ledger = ledger
        self.clock = clock
        self.address = address
        self.payment_interval = payment_interval
        self.roles = RoleRegistry(admin, component="Salaries")
        self._tiers: Dict[int, Tier] = {}
        self._contributors: Dict[str, Contributor] = {}
        self.events: List[Event] = []
        self._guard = SerialGuard("Salaries")

    def _require_admin(self, caller: str) -> None:
        self.roles.require(ADMIN_ROLE, caller, "Salaries: Caller is not an admin")

    # Reads

    def tier(self, tier_id: int) -> Optional[Tier]:
        with self._guard:
            tier = self._tiers.get(tier_id)
            return replace(tier) if tier else None

    def contributor(self, address: str) -> Optional[Contributor]:
        with self._guard:
            contributor = self._contributors.get(address)
            return replace(contributor) if contributor else None

    def contributors(self) -> List[str]:
        with self._guard:
            return list(self._contributors)

    # Tiers

    def add_tier(self, caller: str, tier_id: int, salary_amount: int) -> None:
        with self._guard:
            self._require_admin(caller)
            if tier_id in self._tiers:
                raise TierExists("Salaries: Tier already exists")
            if require_uint(salary_amount, "salary_amount") == 0:
                raise InvalidAmount("Salaries: Salary must be greater than zero")
            self._tiers[tier_id] = Tier(salary_amount=salary_amount)
            self.events.append(TierUpdated(tier_id=tier_id, salary_amount=salary_amount, is_active=True))
            logger.info("Tier %s added: %d", tier_id, salary_amount)

    def update_tier(self, caller: str, tier_id: int, salary_amount: int, is_active: bool) -> None:
        with self._guard:
            self._require_admin(caller)
            if tier_id not in self._tiers:
                raise UnknownTier("Salaries: Tier does not exist")
            if require_uint(salary_amount, "salary_amount") == 0:
                raise InvalidAmount("Salaries: Salary must be greater than zero")
            self._tiers[tier_id] = Tier(salary_amount=salary_amount, is_active=bool(is_active))
            self.events.append(TierUpdated(tier_id=tier_id, salary_amount=salary_amount, is_active=bool(is_active)))

    # Contributors

    def add_contributor(self, caller: str, address: str, tier_id: int) -> None:
        with self._guard:
            self._require_admin(caller)
            if not address or address == ZERO_ADDRESS:
                raise InvalidAddress("Salaries: Contributor cannot be the zero address")
            tier = self._tiers.get(tier_id)
            if tier is None or not tier.is_active:
                raise TierInactive("Salaries: Tier is not active")
            previous = self._contributors.get(address)
            self._contributors[address] = Contributor(
                tier_id=tier_id,
                last_paid=previous.last_paid if previous else 0,
            )
            self.events.append(ContributorUpdated(contributor=address, tier_id=tier_id, is_active=True))

    def update_contributor(self, caller: str, address: str, tier_id: int, is_active: bool) -> None:
        with self._guard:
            self._require_admin(caller)
            contributor = self._contributors.get(address)
            if contributor is None:
                raise UnknownContributor("Salaries: Contributor does not exist")
            if tier_id not in self._tiers:
                raise UnknownTier("Salaries: Tier does not exist")
            contributor.tier_id = tier_id
            contributor.is_active = bool(is_active)
            self.events.append(ContributorUpdated(contributor=address, tier_id=tier_id, is_active=bool(is_active)))

    # Distribution

    def _due(self, address: str, now: int) -> int:
        contributor = self._contributors.get(address)
        if contributor is None:
            raise UnknownContributor("Salaries: Contributor does not exist")
        if not contributor.is_active:
            raise ContributorInactive("Salaries: Contributor is not active")
        tier = self._tiers.get(contributor.tier_id)
        if tier is None or not tier.is_active:
            raise TierInactive("Salaries: Contributor's tier is not active")
        if contributor.last_paid and now < contributor.last_paid + self.payment_interval:
            raise PaymentIntervalNotReached("Salaries: Payment interval not reached")
        return tier.salary_amount

    def distribute_salary(self, caller: str, address: str) -> int:
        return self.distribute_salaries_batch(caller, [address])

    def distribute_salaries_batch(self, caller: str, addresses: Sequence[str]) -> int:
        """Pay every listed contributor, or nobody if any of them is not due."""
        with self._guard:
            self._require_admin(caller)
            now = self.clock.now()
            if len(set(addresses)) != len(addresses):
                raise PaymentIntervalNotReached("Salaries: Payment interval not reached")

            payouts = [(address, self._due(address, now)) for address in addresses]
            total = self.ledger.mint_batch(self.address, payouts)

            for address, amount in payouts:
                contributor = self._contributors[address]
                contributor.last_paid = now
                self.events.append(
                    SalaryPaid(contributor=address, tier_id=contributor.tier_id, amount=amount, timestamp=now)
                )
            logger.info("Paid %d base units of salary to %d contributor(s)", total, len(payouts))
            return total
