import logging
from typing import Dict, Iterable, List, Sequence, Set

from .errors import AlreadyAirdropped, InvalidAddress, InvalidAmount, LengthMismatch, ProtectedAsset
from .events import AirdropReset, Airdropped, Event, StuckTokensWithdrawn
from .fixed_point import require_uint
from .ledger import Ledger
from .params import ADMIN_ROLE, AIRDROP_ADDRESS, ZERO_ADDRESS
from .payment import PaymentAsset
from .roles import RoleRegistry
from .serial import SerialGuard

logger = logging.getLogger(__name__)


class Airdrop:
    """Admin-driven batch distribution minted through the ledger."""

    def __init__(self, ledger: Ledger, admin: str, address: str = AIRDROP_ADDRESS):
        if ledger is None:
            raise InvalidAddress("Airdrop: Zero address for token")
        self.ledger = ledger
        self.address = address
        self.roles = RoleRegistry(admin, component="Airdrop")
        self._claimed: Dict[int, Set[str]] = {}
        self.events: List[Event] = []
        self._guard = SerialGuard("Airdrop")

    def _require_admin(self, caller: str) -> None:
        self.roles.require(ADMIN_ROLE, caller, "Airdrop: Caller is not an admin")

    @staticmethod
    def _check_recipient(recipient: str) -> None:
        if not recipient or recipient == ZERO_ADDRESS:
            raise InvalidAddress("Airdrop: Cannot airdrop to zero address")

    def airdrop_batch(self, caller: str, recipients: Sequence[str], amounts: Sequence[int]) -> int:
        """Mint ``amounts[i]`` to ``recipients[i]``, all or nothing."""
        with self._guard:
            self._require_admin(caller)
            if len(recipients) != len(amounts):
                raise LengthMismatch("Airdrop: Array lengths must match")
            for recipient, amount in zip(recipients, amounts):
                self._check_recipient(recipient)
                if require_uint(amount) == 0:
                    raise InvalidAmount("Airdrop: Amount must be greater than zero")

            total = self.ledger.mint_batch(self.address, list(zip(recipients, amounts)))
            for recipient, amount in zip(recipients, amounts):
                self.events.append(Airdropped(recipient=recipient, amount=amount))
            logger.info("Airdropped %d base units to %d recipients", total, len(recipients))
            return total

    def airdrop_from_snapshot(self, caller: str, campaign_id: int, recipients: Sequence[str], amount: int) -> int:
        """Mint the same amount to every snapshot recipient, once per campaign."""
        with self._guard:
            self._require_admin(caller)
            if require_uint(amount) == 0:
                raise InvalidAmount("Airdrop: Amount must be greater than zero")

            claimed = self._claimed.get(campaign_id, set())
            seen = set()
            for recipient in recipients:
                self._check_recipient(recipient)
                if recipient in claimed or recipient in seen:
                    raise AlreadyAirdropped("Airdrop: Recipient already claimed")
                seen.add(recipient)

            total = self.ledger.mint_batch(self.address, [(r, amount) for r in recipients])
            self._claimed.setdefault(campaign_id, set()).update(recipients)
            for recipient in recipients:
                self.events.append(Airdropped(recipient=recipient, amount=amount, campaign_id=campaign_id))
            logger.info("Campaign %s: airdropped %d base units to %d recipients", campaign_id, total, len(recipients))
            return total

    def is_airdropped(self, campaign_id: int, recipient: str) -> bool:
        with self._guard:
            return recipient in self._claimed.get(campaign_id, ())

    def reset_airdrop_status(self, caller: str, campaign_id: int, recipients: Iterable[str]) -> None:
        with self._guard:
            self._require_admin(caller)
            claimed = self._claimed.get(campaign_id, set())
            for recipient in recipients:
                if recipient in claimed:
                    claimed.discard(recipient)
                    self.events.append(AirdropReset(campaign_id=campaign_id, recipient=recipient))

    def withdraw_stuck_tokens(self, caller: str, asset: PaymentAsset) -> int:
        """Return any foreign asset held by this component to the calling admin."""
        with self._guard:
            self._require_admin(caller)
            if asset is self.ledger:
                raise ProtectedAsset("Airdrop: Cannot withdraw SCORCH token")
            amount = asset.balance_of(self.address)
            if amount:
                asset.transfer(self.address, caller, amount)
                self.events.append(
                    StuckTokensWithdrawn(asset=getattr(asset, "symbol", type(asset).__name__), recipient=caller, amount=amount)
                )
                logger.info("Withdrew %d stuck %s to %s", amount, getattr(asset, "symbol", "tokens"), caller)
            return amount
