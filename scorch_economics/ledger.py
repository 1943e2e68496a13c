import logging
from typing import Dict, Iterable, List, Tuple

from .errors import (
    ArithmeticFault,
    InsufficientAllowance,
    InsufficientBalance,
    InvalidAddress,
    SupplyCapExceeded,
)
from .events import Approval, Event, MinterAdded, MinterRemoved, TokensBurnedWithTax, Transfer
from .fixed_point import checked_add, checked_sub, mul_div, require_uint
from .params import (
    ADMIN_ROLE,
    DECIMALS,
    MAX_SUPPLY,
    MINTER_ROLE,
    TAX_DENOMINATOR,
    TAX_NUMERATOR,
    TOKEN_NAME,
    TOKEN_SYMBOL,
    ZERO_ADDRESS,
)
from .roles import RoleRegistry
from .serial import SerialGuard

logger = logging.getLogger(__name__)


class Ledger:
    """
    SCORCH balance and supply accounting.

    Every transfer burns a 1% tax on top of the transferred value: the
    sender is debited ``amount + tax``, the recipient credited ``amount``
    and the tax is removed from total supply. Minting is restricted to
    the minter set and capped at ``MAX_SUPPLY``.

    Every public operation runs under a single guard, so callers never
    observe a half-applied debit, credit or supply change.
    """

    def __init__(self, admin: str):
        self.name = TOKEN_NAME
        self.symbol = TOKEN_SYMBOL
        self.decimals = DECIMALS
        self.max_supply = MAX_SUPPLY
        self.admin = admin

        self.roles = RoleRegistry(admin, component="SCORCH")
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}
        self._total_supply = 0
        self.events: List[Event] = []
        self._guard = SerialGuard("SCORCH")

    # Reads

    def balance_of(self, address: str) -> int:
        with self._guard:
            return self._balances.get(address, 0)

    def total_supply(self) -> int:
        with self._guard:
            return self._total_supply

    def allowance(self, owner: str, spender: str) -> int:
        with self._guard:
            return self._allowances.get((owner, spender), 0)

    def is_minter(self, address: str) -> bool:
        with self._guard:
            return self.roles.has_role(MINTER_ROLE, address)

    def has_role(self, role: str, address: str) -> bool:
        with self._guard:
            return self.roles.has_role(role, address)

    def balances(self) -> Dict[str, int]:
        """Snapshot of every non-zero balance."""
        with self._guard:
            return {addr: bal for addr, bal in self._balances.items() if bal > 0}

    @staticmethod
    def tax_for(amount: int) -> int:
        """Floor of 1% of ``amount``; transfers under 100 base units pay nothing."""
        return mul_div(require_uint(amount), TAX_NUMERATOR, TAX_DENOMINATOR)

    # Role management

    def add_minter(self, caller: str, account: str) -> bool:
        with self._guard:
            self.roles.require(ADMIN_ROLE, caller, "SCORCH: Caller is not an admin")
            changed = self.roles.grant(MINTER_ROLE, account)
            if changed:
                self.events.append(MinterAdded(account=account, admin=caller))
                logger.info("Minter added: %s", account)
            return changed

    def remove_minter(self, caller: str, account: str) -> bool:
        with self._guard:
            self.roles.require(ADMIN_ROLE, caller, "SCORCH: Caller is not an admin")
            changed = self.roles.revoke(MINTER_ROLE, account)
            if changed:
                self.events.append(MinterRemoved(account=account, admin=caller))
                logger.info("Minter removed: %s", account)
            return changed

    # Issuance

    def mint(self, caller: str, to: str, amount: int) -> None:
        self.mint_batch(caller, [(to, amount)])

    def mint_batch(self, caller: str, allocations: Iterable[Tuple[str, int]]) -> int:
        """
        Mint several ``(to, amount)`` pairs as one operation.

        Addresses, amounts and the supply cap are all checked before any
        balance changes. Returns the total minted.
        """
        allocations = list(allocations)
        with self._guard:
            self.roles.require(MINTER_ROLE, caller, "SCORCH: Caller is not a minter")

            total = 0
            credits: Dict[str, int] = {}
            for to, amount in allocations:
                amount = require_uint(amount)
                if not to or to == ZERO_ADDRESS:
                    raise InvalidAddress("SCORCH: Cannot mint to the zero address")
                total = checked_add(total, amount)
                credits[to] = checked_add(credits.get(to, 0), amount)

            new_supply = checked_add(self._total_supply, total)
            if new_supply > self.max_supply:
                raise SupplyCapExceeded("SCORCH: Minting would exceed max supply")

            new_balances = {
                to: checked_add(self._balances.get(to, 0), credit)
                for to, credit in credits.items()
            }

            self._balances.update(new_balances)
            self._total_supply = new_supply
            for to, amount in allocations:
                self.events.append(Transfer(sender=ZERO_ADDRESS, recipient=to, value=amount))

            logger.info("Minted %d base units to %d account(s) (caller %s)", total, len(credits), caller)
            return total

    # Transfers

    def transfer(self, sender: str, to: str, amount: int) -> int:
        """Move ``amount`` from ``sender`` to ``to``; returns the tax burned."""
        with self._guard:
            return self._transfer(sender, to, amount)

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> int:
        """Spend an allowance. The tax is charged to the owner's balance, not the allowance."""
        with self._guard:
            amount = require_uint(amount)
            current = self._allowances.get((owner, spender), 0)
            if current < amount:
                raise InsufficientAllowance("SCORCH: Insufficient allowance")
            remaining = checked_sub(current, amount)

            tax = self._transfer(owner, to, amount)
            if amount:
                self._allowances[(owner, spender)] = remaining
            return tax

    def approve(self, owner: str, spender: str, amount: int) -> None:
        with self._guard:
            amount = require_uint(amount)
            if not spender or spender == ZERO_ADDRESS:
                raise InvalidAddress("SCORCH: Cannot approve the zero address")
            self._allowances[(owner, spender)] = amount
            self.events.append(Approval(owner=owner, spender=spender, value=amount))

    def burn(self, holder: str, amount: int) -> None:
        with self._guard:
            self._burn(holder, require_uint(amount))

    def _transfer(self, sender: str, to: str, amount: int) -> int:
        amount = require_uint(amount)
        if not sender or sender == ZERO_ADDRESS:
            raise InvalidAddress("SCORCH: Cannot transfer from the zero address")
        if amount == 0:
            return 0
        if not to:
            raise InvalidAddress("SCORCH: Missing recipient")
        if to == ZERO_ADDRESS:
            # burn path: untaxed
            self._burn(sender, amount)
            return 0

        tax = self.tax_for(amount)
        debit = checked_add(amount, tax)
        balance = self._balances.get(sender, 0)
        if balance < debit:
            raise InsufficientBalance("SCORCH: Balance too low for transfer")

        if to == sender:
            new_balances = {sender: checked_sub(balance, tax)}
        else:
            new_balances = {
                sender: checked_sub(balance, debit),
                to: checked_add(self._balances.get(to, 0), amount),
            }
        new_supply = checked_sub(self._total_supply, tax)

        self._balances.update(new_balances)
        self._total_supply = new_supply

        self.events.append(Transfer(sender=sender, recipient=to, value=amount))
        if tax > 0:
            self.events.append(Transfer(sender=sender, recipient=ZERO_ADDRESS, value=tax))
            self.events.append(
                TokensBurnedWithTax(
                    sender=sender,
                    recipient=to,
                    value_transferred=amount,
                    tax_amount_burned=tax,
                )
            )
        logger.debug("Transfer %s -> %s: %d (tax %d)", sender, to, amount, tax)
        return tax

    def _burn(self, holder: str, amount: int) -> None:
        balance = self._balances.get(holder, 0)
        if balance < amount:
            raise InsufficientBalance("SCORCH: Burn amount exceeds balance")
        new_balance = checked_sub(balance, amount)
        new_supply = checked_sub(self._total_supply, amount)

        self._balances[holder] = new_balance
        self._total_supply = new_supply
        self.events.append(Transfer(sender=holder, recipient=ZERO_ADDRESS, value=amount))
        logger.debug("Burned %d from %s", amount, holder)

    # Invariants

    def validate_state(self) -> None:
        """Check ``sum(balances) == total_supply <= MAX_SUPPLY``."""
        with self._guard:
            if any(balance < 0 for balance in self._balances.values()):
                raise ArithmeticFault("Balance cannot be negative")
            held = sum(self._balances.values())
            if held != self._total_supply:
                raise ArithmeticFault(
                    f"Sum of balances ({held}) does not match total supply ({self._total_supply})"
                )
            if self._total_supply > self.max_supply:
                raise ArithmeticFault(
                    f"Total supply ({self._total_supply}) exceeds max supply ({self.max_supply})"
                )
