"""SCORCH token economics: taxed ledger, capped issuance and presale vesting."""

from .airdrop import Airdrop
from .clock import ManualClock, SystemClock
from .errors import (
    ArithmeticFault,
    InsufficientResource,
    InvalidState,
    ScorchError,
    Unauthorized,
)
from .ledger import Ledger
from .payment import InMemoryPaymentAsset, PaymentSplitter
from .salaries import AutomatedSalaries
from .vesting import VestingSchedule, VestingState

__version__ = "0.1.0"

__all__ = [
    "Airdrop",
    "ArithmeticFault",
    "AutomatedSalaries",
    "InMemoryPaymentAsset",
    "InsufficientResource",
    "InvalidState",
    "Ledger",
    "ManualClock",
    "PaymentSplitter",
    "ScorchError",
    "SystemClock",
    "Unauthorized",
    "VestingSchedule",
    "VestingState",
]
