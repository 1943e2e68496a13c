import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List

from dotenv import load_dotenv

from .errors import ScorchError
from .fixed_point import to_base_units
from .params import (
    DEFAULT_PHASES,
    PAYMENT_BURN_DENOMINATOR,
    PAYMENT_BURN_NUMERATOR,
    SALARY_PAYMENT_INTERVAL,
    SECONDS_PER_DAY,
    VESTING_CLIFF,
    VESTING_TOTAL,
    ZERO_ADDRESS,
)

load_dotenv()  # loads .env when present

LOCAL_MODE = os.getenv("LOCAL_MODE", "true").lower() == "true"
OUTPUT_DIR = os.getenv("OUTPUT_DIR", "output")  # where local JSON reports go
S3_BUCKET = os.getenv("S3_BUCKET", "")
S3_PATH = os.getenv("S3_PATH", "scorch-reports")
LOG_LEVEL = os.getenv("SCORCH_LOG_LEVEL", "INFO").upper()

SCENARIO_ACTIONS = {
    "add_minter": {"account"},
    "remove_minter": {"account"},
    "mint": {"caller", "to", "amount"},
    "transfer": {"sender", "to", "amount"},
    "burn": {"holder", "amount"},
    "start": set(),
    "purchase": {"buyer", "payment"},
    "advance_phase": set(),
    "claim": {"beneficiary"},
    "airdrop": {"recipients", "amounts"},
    "add_tier": {"tier_id", "salary"},
    "add_contributor": {"address", "tier_id"},
    "pay_salaries": {"addresses"},
}


class ConfigValidationError(ValueError):
    """Custom exception for configuration validation errors"""
    pass


@dataclass
class PhaseConfig:
    """A presale phase: payment base units per whole token, capacity in base units"""
    price: int
    tokens_available: int

    def validate(self) -> None:
        for value, name in [(self.price, "price"), (self.tokens_available, "tokens_available")]:
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigValidationError(f"Phase {name} must be an integer")
            if value <= 0:
                raise ConfigValidationError(f"Phase {name} must be positive")


@dataclass
class ScenarioStep:
    day: int
    action: str
    params: Dict[str, Any] = field(default_factory=dict)

    def validate(self) -> None:
        if not isinstance(self.day, int) or self.day < 0:
            raise ConfigValidationError(f"Scenario day must be a non-negative integer, got {self.day!r}")
        if self.action not in SCENARIO_ACTIONS:
            raise ConfigValidationError(f"Unknown scenario action: {self.action}")
        missing = SCENARIO_ACTIONS[self.action] - set(self.params)
        if missing:
            raise ConfigValidationError(f"Scenario action {self.action} is missing {sorted(missing)}")


@dataclass
class EconomicsConfig:
    # Identities
    admin: str
    operations_address: str

    # Presale
    phases: List[PhaseConfig] = field(
        default_factory=lambda: [PhaseConfig(price, cap) for price, cap in DEFAULT_PHASES]
    )
    payment_symbol: str = "PAY"
    payment_balances: Dict[str, int] = field(default_factory=dict)
    burn_numerator: int = PAYMENT_BURN_NUMERATOR
    burn_denominator: int = PAYMENT_BURN_DENOMINATOR

    # Time (days)
    start_timestamp: int = 1_700_000_000
    vesting_cliff_days: int = VESTING_CLIFF // SECONDS_PER_DAY
    vesting_total_days: int = VESTING_TOTAL // SECONDS_PER_DAY
    salary_interval_days: int = SALARY_PAYMENT_INTERVAL // SECONDS_PER_DAY

    scenario: List[ScenarioStep] = field(default_factory=list)

    @property
    def vesting_cliff(self) -> int:
        return self.vesting_cliff_days * SECONDS_PER_DAY

    @property
    def vesting_total(self) -> int:
        return self.vesting_total_days * SECONDS_PER_DAY

    @property
    def salary_interval(self) -> int:
        return self.salary_interval_days * SECONDS_PER_DAY

    def validate(self) -> None:
        """Validate configuration parameters"""
        for value, name in [(self.admin, "admin"), (self.operations_address, "operations_address")]:
            if not value or value == ZERO_ADDRESS:
                raise ConfigValidationError(f"{name} cannot be empty or the zero address")

        if not self.phases:
            raise ConfigValidationError("At least one presale phase is required")
        for phase in self.phases:
            phase.validate()

        for name in (
            "burn_numerator",
            "burn_denominator",
            "start_timestamp",
            "vesting_cliff_days",
            "vesting_total_days",
            "salary_interval_days",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigValidationError(f"{name} must be an integer, got {value!r}")

        if self.burn_denominator <= 0 or not 0 <= self.burn_numerator <= self.burn_denominator:
            raise ConfigValidationError(
                f"Burn fraction must lie in [0, 1], got {self.burn_numerator}/{self.burn_denominator}"
            )

        if self.start_timestamp <= 0:
            raise ConfigValidationError("start_timestamp must be positive")
        if self.vesting_total_days <= 0:
            raise ConfigValidationError("vesting_total_days must be positive")
        if not 0 <= self.vesting_cliff_days <= self.vesting_total_days:
            raise ConfigValidationError(
                f"vesting_cliff_days ({self.vesting_cliff_days}) must lie between 0 and "
                f"vesting_total_days ({self.vesting_total_days})"
            )
        if self.salary_interval_days <= 0:
            raise ConfigValidationError("salary_interval_days must be positive")

        for address, balance in self.payment_balances.items():
            if isinstance(balance, bool) or not isinstance(balance, int) or balance < 0:
                raise ConfigValidationError(f"Invalid payment balance for {address}: {balance!r}")

        for step in self.scenario:
            step.validate()

    def build(self):
        """Wire clock, ledger, payment asset and the three minting components"""
        from .simulation import build_economy

        return build_economy(self)


def _token_amount(value, name: str) -> int:
    try:
        return to_base_units(value)
    except ScorchError as e:
        raise ConfigValidationError(f"Invalid {name}: {e}")


def _parse_step(raw: Dict[str, Any]) -> ScenarioStep:
    params = {k: v for k, v in raw.items() if k not in ("day", "action")}
    return ScenarioStep(day=raw.get("day", 0), action=raw.get("action", ""), params=params)


def config_from_dict(data: Dict[str, Any]) -> EconomicsConfig:
    """Token quantities are whole-token decimal strings; prices and payments are payment base units"""
    try:
        phases = [
            PhaseConfig(
                price=phase["price"],
                tokens_available=_token_amount(phase["tokens_available"], "tokens_available"),
            )
            for phase in data.get("phases", [])
        ]
        payment = data.get("payment_asset", {})

        config = EconomicsConfig(
            admin=data["admin"],
            operations_address=data["operations_address"],
            payment_symbol=payment.get("symbol", "PAY"),
            payment_balances=dict(payment.get("balances", {})),
            scenario=[_parse_step(step) for step in data.get("scenario", [])],
        )
    except KeyError as e:
        raise ConfigValidationError(f"Missing required configuration key: {e}")

    if phases:
        config.phases = phases
    for key in (
        "start_timestamp",
        "vesting_cliff_days",
        "vesting_total_days",
        "salary_interval_days",
        "burn_numerator",
        "burn_denominator",
    ):
        if key in data:
            setattr(config, key, data[key])

    config.validate()
    return config


def load_configuration(config_file: str) -> EconomicsConfig:
    """Load token economics configuration from JSON file"""
    with open(config_file, 'r') as f:
        data = json.load(f)
    return config_from_dict(data)
