from collections import defaultdict
from dataclasses import dataclass, field
from typing import DefaultDict, Dict, Optional

import numpy as np

from .events import Event, TokensBurnedWithTax, Transfer
from .ledger import Ledger
from .params import ZERO_ADDRESS


@dataclass
class LedgerMetrics:
    """Tracks key indicators folded from a ledger's event log"""
    # Flow
    transfer_volume: int = 0
    transfer_count: int = 0
    unique_senders: set = field(default_factory=set)
    unique_recipients: set = field(default_factory=set)
    token_velocity: float = 0.0

    # Supply
    minted: int = 0
    burned: int = 0  # every destroyed unit, tax included
    tax_burned: int = 0
    total_supply: int = 0

    # Historical metrics (per epoch)
    historical_metrics: DefaultDict[int, Dict] = field(
        default_factory=lambda: defaultdict(dict)
    )
    _history_counter: int = field(default=0)
    _cursor: int = field(default=0)

    def update_from_ledger(self, ledger: Ledger) -> None:
        """Consume events appended since the previous update"""
        events = ledger.events[self._cursor:]
        self._cursor += len(events)
        for event in events:
            self._apply(event)

        self.total_supply = ledger.total_supply()
        if self.total_supply > 0:
            self.token_velocity = self.transfer_volume / self.total_supply

    def _apply(self, event: Event) -> None:
        if isinstance(event, TokensBurnedWithTax):
            self.tax_burned += event.tax_amount_burned
        elif isinstance(event, Transfer):
            if event.sender == ZERO_ADDRESS:
                self.minted += event.value
            elif event.recipient == ZERO_ADDRESS:
                self.burned += event.value
            else:
                self.transfer_volume += event.value
                self.transfer_count += 1
                self.unique_senders.add(event.sender)
                self.unique_recipients.add(event.recipient)

    def record_epoch(self, ledger: Ledger, epoch: Optional[int] = None) -> Dict:
        """Update from the ledger and store a snapshot for historical analysis"""
        self.update_from_ledger(ledger)

        tracking_id = epoch if epoch is not None else self._history_counter
        self._history_counter += 1 if epoch is None else 0

        snapshot = {
            'token_velocity': self.token_velocity,
            'transfer_volume': self.transfer_volume,
            'tax_burned': self.tax_burned,
            'minted': self.minted,
            'burned': self.burned,
            'total_supply': self.total_supply,
            'holders': len(ledger.balances()),
        }
        self.historical_metrics[tracking_id] = snapshot
        return snapshot

    def get_current_metrics(self) -> Dict:
        return {
            'transfer_volume': self.transfer_volume,
            'transfer_count': self.transfer_count,
            'unique_participants': len(self.unique_senders | self.unique_recipients),
            'token_velocity': self.token_velocity,
            'minted': self.minted,
            'burned': self.burned,
            'tax_burned': self.tax_burned,
            'explicit_burned': self.burned - self.tax_burned,
            'total_supply': self.total_supply,
            # share of transferred value destroyed by the tax
            'effective_tax_rate': self.tax_burned / self.transfer_volume if self.transfer_volume > 0 else 0.0,
        }

    def get_historical_analysis(self, num_epochs: int = 10) -> Dict:
        """Get trend analysis for recent epochs"""
        recent_epochs = sorted(self.historical_metrics.keys())[-num_epochs:]
        if not recent_epochs:
            return {}

        velocity = [self.historical_metrics[epoch]['token_velocity'] for epoch in recent_epochs]
        supply = [self.historical_metrics[epoch]['total_supply'] for epoch in recent_epochs]
        tax = [self.historical_metrics[epoch]['tax_burned'] for epoch in recent_epochs]

        return {
            'epochs': recent_epochs,
            'velocity_trend': velocity,
            'average_velocity': float(np.mean(velocity)),
            'supply_trend': supply,
            'tax_burned_trend': tax,
            'tax_burned_per_epoch': [after - before for before, after in zip([0] + tax, tax)],
        }
