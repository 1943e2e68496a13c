import logging
from typing import Dict, Protocol, Tuple

from .errors import InsufficientAllowance, InsufficientBalance, InvalidAddress
from .events import PaymentSettled
from .fixed_point import checked_add, checked_sub, mul_div, require_uint
from .params import PAYMENT_BURN_DENOMINATOR, PAYMENT_BURN_NUMERATOR, ZERO_ADDRESS
from .serial import SerialGuard

logger = logging.getLogger(__name__)


class PaymentAsset(Protocol):
    """External asset accepted as presale payment."""

    symbol: str

    def balance_of(self, address: str) -> int:
        ...

    def allowance(self, owner: str, spender: str) -> int:
        ...

    def transfer(self, sender: str, to: str, amount: int) -> None:
        ...

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> None:
        ...

    def burn(self, holder: str, amount: int) -> None:
        ...


class InMemoryPaymentAsset:
    """Plain, untaxed asset ledger used for simulations and tests."""

    def __init__(self, symbol: str = "PAY"):
        self.symbol = symbol
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}
        self.total_burned = 0
        self._guard = SerialGuard(symbol)

    def balance_of(self, address: str) -> int:
        with self._guard:
            return self._balances.get(address, 0)

    def allowance(self, owner: str, spender: str) -> int:
        with self._guard:
            return self._allowances.get((owner, spender), 0)

    def credit(self, address: str, amount: int) -> None:
        """Fund an account out of thin air (simulation faucet)."""
        with self._guard:
            self._balances[address] = checked_add(self._balances.get(address, 0), require_uint(amount))

    def approve(self, owner: str, spender: str, amount: int) -> None:
        with self._guard:
            self._allowances[(owner, spender)] = require_uint(amount)

    def transfer(self, sender: str, to: str, amount: int) -> None:
        with self._guard:
            self._move(sender, to, require_uint(amount))

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> None:
        with self._guard:
            amount = require_uint(amount)
            current = self._allowances.get((owner, spender), 0)
            if current < amount:
                raise InsufficientAllowance(f"{self.symbol}: Insufficient allowance")
            remaining = checked_sub(current, amount)
            self._move(owner, to, amount)
            self._allowances[(owner, spender)] = remaining

    def burn(self, holder: str, amount: int) -> None:
        with self._guard:
            amount = require_uint(amount)
            balance = self._balances.get(holder, 0)
            if balance < amount:
                raise InsufficientBalance(f"{self.symbol}: Burn amount exceeds balance")
            self._balances[holder] = checked_sub(balance, amount)
            self.total_burned = checked_add(self.total_burned, amount)

    def _move(self, sender: str, to: str, amount: int) -> None:
        balance = self._balances.get(sender, 0)
        if balance < amount:
            raise InsufficientBalance(f"{self.symbol}: Transfer amount exceeds balance")
        if sender == to:
            return
        new_recipient = checked_add(self._balances.get(to, 0), amount)
        self._balances[sender] = checked_sub(balance, amount)
        self._balances[to] = new_recipient


class PaymentSplitter:
    """
    Settles presale payments: pulls the approved amount from the payer,
    burns the burn fraction and forwards the remainder to operations.
    """

    def __init__(
        self,
        asset: PaymentAsset,
        operations_address: str,
        burn_numerator: int = PAYMENT_BURN_NUMERATOR,
        burn_denominator: int = PAYMENT_BURN_DENOMINATOR,
    ):
        if not operations_address or operations_address == ZERO_ADDRESS:
            raise InvalidAddress("Presale: Operations address cannot be the zero address")
        if burn_denominator <= 0 or not 0 <= burn_numerator <= burn_denominator:
            raise ValueError(f"Invalid burn fraction {burn_numerator}/{burn_denominator}")
        self.asset = asset
        self.operations_address = operations_address
        self.burn_numerator = burn_numerator
        self.burn_denominator = burn_denominator

    def split(self, amount: int) -> Tuple[int, int]:
        """Return ``(burned, forwarded)`` for a payment."""
        burned = mul_div(amount, self.burn_numerator, self.burn_denominator)
        return burned, checked_sub(amount, burned)

    def check(self, payer: str, collector: str, amount: int) -> None:
        if self.asset.allowance(payer, collector) < amount:
            raise InsufficientAllowance(f"Presale: Insufficient {self.asset.symbol} allowance")
        if self.asset.balance_of(payer) < amount:
            raise InsufficientBalance(f"Presale: Insufficient {self.asset.symbol} balance")

    def settle(self, payer: str, collector: str, amount: int) -> PaymentSettled:
        amount = require_uint(amount)
        self.check(payer, collector, amount)
        burned, forwarded = self.split(amount)

        self.asset.transfer_from(collector, payer, collector, amount)
        if burned:
            self.asset.burn(collector, burned)
        if forwarded:
            self.asset.transfer(collector, self.operations_address, forwarded)

        logger.debug(
            "Settled %d %s from %s: burned %d, forwarded %d",
            amount, self.asset.symbol, payer, burned, forwarded,
        )
        return PaymentSettled(
            payer=payer,
            amount=amount,
            burned=burned,
            forwarded=forwarded,
            operations_address=self.operations_address,
        )
