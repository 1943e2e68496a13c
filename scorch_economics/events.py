from dataclasses import asdict, dataclass
from typing import Optional


@dataclass(frozen=True)
class Event:
    def to_dict(self) -> dict:
        return {"event": type(self).__name__, **asdict(self)}


# Ledger
@dataclass(frozen=True)
class Transfer(Event):
    sender: str
    recipient: str
    value: int


@dataclass(frozen=True)
class TokensBurnedWithTax(Event):
    sender: str
    recipient: str
    value_transferred: int
    tax_amount_burned: int


@dataclass(frozen=True)
class Approval(Event):
    owner: str
    spender: str
    value: int


@dataclass(frozen=True)
class MinterAdded(Event):
    account: str
    admin: str


@dataclass(frozen=True)
class MinterRemoved(Event):
    account: str
    admin: str


# Presale and vesting
@dataclass(frozen=True)
class VestingStarted(Event):
    start_time: int


@dataclass(frozen=True)
class PaymentSettled(Event):
    payer: str
    amount: int
    burned: int
    forwarded: int
    operations_address: str


@dataclass(frozen=True)
class TokensPurchased(Event):
    buyer: str
    phase: int
    payment_amount: int
    token_amount: int
    timestamp: int


@dataclass(frozen=True)
class TokensClaimed(Event):
    beneficiary: str
    amount: int
    timestamp: int


@dataclass(frozen=True)
class PhaseAdvanced(Event):
    previous_phase: int
    new_phase: int


# Airdrop
@dataclass(frozen=True)
class Airdropped(Event):
    recipient: str
    amount: int
    campaign_id: Optional[int] = None


@dataclass(frozen=True)
class AirdropReset(Event):
    campaign_id: int
    recipient: str


@dataclass(frozen=True)
class StuckTokensWithdrawn(Event):
    asset: str
    recipient: str
    amount: int


# Salaries
@dataclass(frozen=True)
class TierUpdated(Event):
    tier_id: int
    salary_amount: int
    is_active: bool


@dataclass(frozen=True)
class ContributorUpdated(Event):
    contributor: str
    tier_id: int
    is_active: bool


@dataclass(frozen=True)
class SalaryPaid(Event):
    contributor: str
    tier_id: int
    amount: int
    timestamp: int
