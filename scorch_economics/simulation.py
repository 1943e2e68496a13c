import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .airdrop import Airdrop
from .clock import ManualClock
from .errors import ScorchError
from .fixed_point import to_base_units
from .ledger import Ledger
from .metrics import LedgerMetrics
from .params import SECONDS_PER_DAY
from .payment import InMemoryPaymentAsset, PaymentSplitter
from .salaries import AutomatedSalaries
from .vesting import VestingSchedule

logger = logging.getLogger(__name__)


@dataclass
class Economy:
    admin: str
    clock: ManualClock
    ledger: Ledger
    payment_asset: InMemoryPaymentAsset
    presale: VestingSchedule
    airdrop: Airdrop
    salaries: AutomatedSalaries
    start_timestamp: int
    metrics: LedgerMetrics = field(default_factory=LedgerMetrics)

    def day(self) -> int:
        return (self.clock.now() - self.start_timestamp) // SECONDS_PER_DAY

    def validate_state(self) -> None:
        self.ledger.validate_state()
        self.presale.validate_state()


def build_economy(config) -> Economy:
    """Create every component from a validated ``EconomicsConfig`` and grant them minting rights."""
    clock = ManualClock(config.start_timestamp)
    ledger = Ledger(config.admin)

    payment_asset = InMemoryPaymentAsset(config.payment_symbol)
    for address, balance in config.payment_balances.items():
        payment_asset.credit(address, balance)
    splitter = PaymentSplitter(
        payment_asset,
        config.operations_address,
        burn_numerator=config.burn_numerator,
        burn_denominator=config.burn_denominator,
    )

    presale = VestingSchedule(
        ledger,
        splitter,
        clock,
        config.admin,
        phases=[(p.price, p.tokens_available) for p in config.phases],
        cliff=config.vesting_cliff,
        duration=config.vesting_total,
    )
    airdrop = Airdrop(ledger, config.admin)
    salaries = AutomatedSalaries(ledger, clock, config.admin, payment_interval=config.salary_interval)

    for component in (presale, airdrop, salaries):
        ledger.add_minter(config.admin, component.address)

    return Economy(
        admin=config.admin,
        clock=clock,
        ledger=ledger,
        payment_asset=payment_asset,
        presale=presale,
        airdrop=airdrop,
        salaries=salaries,
        start_timestamp=config.start_timestamp,
    )


def execute_step(economy: Economy, action: str, params: Dict[str, Any]) -> Any:
    admin = economy.admin
    ledger = economy.ledger

    if action == "add_minter":
        return ledger.add_minter(admin, params["account"])
    if action == "remove_minter":
        return ledger.remove_minter(admin, params["account"])
    if action == "mint":
        return ledger.mint(params["caller"], params["to"], to_base_units(params["amount"]))
    if action == "transfer":
        return ledger.transfer(params["sender"], params["to"], to_base_units(params["amount"]))
    if action == "burn":
        return ledger.burn(params["holder"], to_base_units(params["amount"]))
    if action == "start":
        return economy.presale.start(admin)
    if action == "purchase":
        # the buyer pre-approves exactly the payment, as a wallet would
        economy.payment_asset.approve(params["buyer"], economy.presale.address, params["payment"])
        return economy.presale.purchase(params["buyer"], params["payment"])
    if action == "advance_phase":
        return economy.presale.advance_phase(admin)
    if action == "claim":
        return economy.presale.claim(params.get("caller", params["beneficiary"]), params["beneficiary"])
    if action == "airdrop":
        amounts = [to_base_units(a) for a in params["amounts"]]
        return economy.airdrop.airdrop_batch(admin, params["recipients"], amounts)
    if action == "add_tier":
        return economy.salaries.add_tier(admin, params["tier_id"], to_base_units(params["salary"]))
    if action == "add_contributor":
        return economy.salaries.add_contributor(admin, params["address"], params["tier_id"])
    if action == "pay_salaries":
        return economy.salaries.distribute_salaries_batch(admin, params["addresses"])
    raise ValueError(f"Unknown scenario action: {action}")


def run_scenario(economy: Economy, steps, until_day: Optional[int] = None, strict: bool = False) -> List[Dict]:
    """
    Replay scenario steps in day order against ``economy``.

    Rejected operations are recorded with their error and the replay
    continues, unless ``strict`` is set. A metrics snapshot is stored for
    every day on which something happened.
    """
    results = []
    last_day = None

    for step in sorted(steps, key=lambda s: s.day):
        if until_day is not None and step.day > until_day:
            break
        if last_day is not None and step.day != last_day:
            economy.metrics.record_epoch(economy.ledger, epoch=last_day)

        target = economy.start_timestamp + step.day * SECONDS_PER_DAY
        if target > economy.clock.now():
            economy.clock.set(target)

        outcome = {"day": step.day, "action": step.action, "status": "ok", "result": None}
        try:
            outcome["result"] = execute_step(economy, step.action, step.params)
        except ScorchError as e:
            if strict:
                raise
            outcome["status"] = "failed"
            outcome["error"] = f"{type(e).__name__}: {e}"
            logger.warning("Day %d %s rejected: %s", step.day, step.action, e)
        results.append(outcome)
        last_day = step.day

    if until_day is not None:
        target = economy.start_timestamp + until_day * SECONDS_PER_DAY
        if target > economy.clock.now():
            economy.clock.set(target)
    if last_day is not None:
        economy.metrics.record_epoch(economy.ledger, epoch=last_day)

    economy.validate_state()
    return results
