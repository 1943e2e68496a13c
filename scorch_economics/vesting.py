"""
Presale entitlement accrual and cliff-gated linear release.

Buyers pay in an external payment asset at the current phase price and
accrue an entitlement; nothing is minted at purchase time. Entitlements
unlock linearly from the single global start time, with nothing
releasable before the cliff and everything releasable once the full
vesting duration has elapsed. Claims mint the releasable delta through
the ledger.
"""
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from .clock import Clock
from .errors import (
    AlreadyStarted,
    ArithmeticFault,
    InvalidAddress,
    InvalidAmount,
    InvalidState,
    LastPhase,
    NotActive,
    NothingToClaim,
    PhaseExhausted,
)
from .events import Event, PhaseAdvanced, TokensClaimed, TokensPurchased, VestingStarted
from .fixed_point import checked_add, checked_sub, mul_div, require_uint
from .ledger import Ledger
from .params import (
    ADMIN_ROLE,
    DEFAULT_PHASES,
    PRESALE_ADDRESS,
    VESTING_CLIFF,
    VESTING_TOTAL,
    WAD,
    ZERO_ADDRESS,
)
from .payment import PaymentSplitter
from .roles import RoleRegistry
from .serial import SerialGuard

logger = logging.getLogger(__name__)


class VestingState(Enum):
    NOT_STARTED = "not_started"
    ACTIVE = "active"


@dataclass
class Phase:
    price: int  # payment base units per whole token
    tokens_available: int
    sold: int = 0

    @property
    def remaining(self) -> int:
        return self.tokens_available - self.sold


@dataclass
class VestingInfo:
    total_amount: int = 0
    claimed_amount: int = 0


def vested_at(total_amount: int, start: int, now: int, cliff: int = VESTING_CLIFF, duration: int = VESTING_TOTAL) -> int:
    """Unlocked part of ``total_amount`` at ``now``; a zero ``start`` means not started."""
    if start == 0 or now < start + cliff:
        return 0
    elapsed = now - start
    if elapsed >= duration:
        return total_amount
    return mul_div(total_amount, elapsed, duration)


class VestingSchedule:
    def __init__(
        self,
        ledger: Ledger,
        payment: PaymentSplitter,
        clock: Clock,
        admin: str,
        address: str = PRESALE_ADDRESS,
        phases: Optional[Sequence[Tuple[int, int]]] = None,
        cliff: int = VESTING_CLIFF,
        duration: int = VESTING_TOTAL,
    ):
        phases = DEFAULT_PHASES if phases is None else phases
        if not phases:
            raise InvalidState("Presale: At least one phase is required")
        cliff = require_uint(cliff, "cliff")
        duration = require_uint(duration, "duration")
        if duration == 0 or cliff > duration:
            raise InvalidState(f"Presale: Invalid vesting window (cliff {cliff}, duration {duration})")

        self._phases: List[Phase] = []
        for price, tokens_available in phases:
            if require_uint(price, "price") == 0 or require_uint(tokens_available, "tokens_available") == 0:
                raise InvalidAmount("Presale: Phase price and capacity must be positive")
            self._phases.append(Phase(price=price, tokens_available=tokens_available))

        self.ledger = ledger
        self.payment = payment
        self.clock = clock
        self.address = address
        self.cliff = cliff
        self.duration = duration
        self.roles = RoleRegistry(admin, component="Presale")

        self._current_phase = 0
        self._start_time = 0
        self._vesting: Dict[str, VestingInfo] = {}
        self.events: List[Event] = []
        self._guard = SerialGuard("Presale")

    # Reads

    @property
    def state(self) -> VestingState:
        with self._guard:
            return VestingState.ACTIVE if self._start_time else VestingState.NOT_STARTED

    @property
    def vesting_start_time(self) -> int:
        with self._guard:
            return self._start_time

    @property
    def current_phase(self) -> int:
        with self._guard:
            return self._current_phase

    @property
    def phases(self) -> List[Phase]:
        with self._guard:
            return [replace(p) for p in self._phases]

    def phase(self, index: int) -> Phase:
        with self._guard:
            return replace(self._phases[index])

    def vesting_info(self, beneficiary: str) -> VestingInfo:
        with self._guard:
            return replace(self._vesting.get(beneficiary, VestingInfo()))

    def beneficiaries(self) -> List[str]:
        with self._guard:
            return list(self._vesting)

    def quote(self, payment_amount: int) -> int:
        """Tokens a payment would buy at the current phase price."""
        with self._guard:
            price = self._phases[self._current_phase].price
            return mul_div(require_uint(payment_amount, "payment_amount"), WAD, price)

    def vested_amount(self, beneficiary: str, at: Optional[int] = None) -> int:
        with self._guard:
            return self._vested(self._vesting.get(beneficiary, VestingInfo()), self._at(at))

    def releasable_amount(self, beneficiary: str, at: Optional[int] = None) -> int:
        with self._guard:
            return self._releasable(self._vesting.get(beneficiary, VestingInfo()), self._at(at))

    def _at(self, at: Optional[int]) -> int:
        return self.clock.now() if at is None else at

    def _vested(self, info: VestingInfo, now: int) -> int:
        return vested_at(info.total_amount, self._start_time, now, self.cliff, self.duration)

    def _releasable(self, info: VestingInfo, now: int) -> int:
        vested = self._vested(info, now)
        # a hypothetical time earlier than the last claim releases nothing
        if vested <= info.claimed_amount:
            return 0
        return checked_sub(vested, info.claimed_amount)

    # Admin

    def start(self, caller: str) -> int:
        with self._guard:
            self.roles.require(ADMIN_ROLE, caller, "Presale: Caller is not an admin")
            if self._start_time:
                raise AlreadyStarted("Presale: Vesting already started")
            now = self.clock.now()
            if now <= 0:
                raise InvalidState("Presale: Clock has not been initialised")
            self._start_time = now
            self.events.append(VestingStarted(start_time=now))
            logger.info("Vesting started at %d", now)
            return now

    def advance_phase(self, caller: str) -> int:
        with self._guard:
            self.roles.require(ADMIN_ROLE, caller, "Presale: Caller is not an admin")
            if self._current_phase >= len(self._phases) - 1:
                raise LastPhase("Presale: Already at the last phase")
            previous = self._current_phase
            self._current_phase += 1
            self.events.append(PhaseAdvanced(previous_phase=previous, new_phase=self._current_phase))
            logger.info("Presale advanced to phase %d", self._current_phase)
            return self._current_phase

    # Purchase and claim

    def purchase(self, buyer: str, payment_amount: int) -> int:
        """
        Buy an entitlement at the current phase price.

        Returns the token amount credited to the buyer's entitlement.
        The payment is settled only after every check has passed; a
        failed settlement leaves phase and entitlement untouched.
        """
        with self._guard:
            payment_amount = require_uint(payment_amount, "payment_amount")
            now = self.clock.now()
            if not self._start_time or now < self._start_time:
                raise NotActive("Presale: Presale is not active")
            if not buyer or buyer == ZERO_ADDRESS:
                raise InvalidAddress("Presale: Buyer cannot be the zero address")
            if payment_amount == 0:
                raise InvalidAmount("Presale: Payment amount must be greater than zero")

            index = self._current_phase
            phase = self._phases[index]
            amount = mul_div(payment_amount, WAD, phase.price)
            if amount == 0:
                raise PhaseExhausted("Presale: Payment too small for the current phase price")
            if amount > phase.remaining:
                raise PhaseExhausted("Presale: Not enough tokens left in the current phase")
            new_sold = checked_add(phase.sold, amount)

            info = self._vesting.get(buyer, VestingInfo())
            new_total = checked_add(info.total_amount, amount)

            settled = self.payment.settle(buyer, self.address, payment_amount)

            phase.sold = new_sold
            info.total_amount = new_total
            self._vesting[buyer] = info
            self.events.append(settled)
            self.events.append(
                TokensPurchased(
                    buyer=buyer,
                    phase=index,
                    payment_amount=payment_amount,
                    token_amount=amount,
                    timestamp=now,
                )
            )
            logger.debug("Purchase by %s in phase %d: %d paid, %d accrued", buyer, index, payment_amount, amount)
            return amount

    def claim(self, caller: str, beneficiary: Optional[str] = None) -> int:
        """Mint the releasable amount to ``beneficiary`` (the caller by default)."""
        beneficiary = beneficiary or caller
        with self._guard:
            now = self.clock.now()
            info = self._vesting.get(beneficiary, VestingInfo())
            amount = self._releasable(info, now)
            if amount == 0:
                raise NothingToClaim("Presale: Nothing to claim")
            new_claimed = checked_add(info.claimed_amount, amount)

            self.ledger.mint(self.address, beneficiary, amount)

            info.claimed_amount = new_claimed
            self.events.append(TokensClaimed(beneficiary=beneficiary, amount=amount, timestamp=now))
            logger.info("Claimed %d for %s", amount, beneficiary)
            return amount

    def validate_state(self) -> None:
        with self._guard:
            for beneficiary, info in self._vesting.items():
                if info.claimed_amount > info.total_amount:
                    raise ArithmeticFault(f"Claimed exceeds entitlement for {beneficiary}")
            for index, phase in enumerate(self._phases):
                if phase.sold > phase.tokens_available:
                    raise ArithmeticFault(f"Phase {index} oversold")
            if not 0 <= self._current_phase < len(self._phases):
                raise ArithmeticFault(f"Invalid phase cursor {self._current_phase}")
