import threading

import pytest

from scorch_economics.errors import ReentrantCall
from scorch_economics.payment import InMemoryPaymentAsset, PaymentSplitter
from scorch_economics.serial import SerialGuard
from scorch_economics.vesting import VestingSchedule

from .conftest import ADMIN, DAY, MINTER, OPS, START, USER1, USER2, USER3, buy


class CallbackAsset(InMemoryPaymentAsset):
    """Payment asset that calls back into the presale while settling."""

    def __init__(self, symbol="EVIL"):
        super().__init__(symbol)
        self.callback = None

    def transfer_from(self, spender, owner, to, amount):
        if self.callback:
            self.callback()
        super().transfer_from(spender, owner, to, amount)


def test_guard_rejects_reentry():
    guard = SerialGuard("Test")
    with guard:
        assert guard.held
        with pytest.raises(ReentrantCall, match="Test: Reentrant call"):
            with guard:
                pass
    assert not guard.held
    with guard:
        pass


def test_guard_releases_on_error():
    guard = SerialGuard("Test")
    with pytest.raises(RuntimeError):
        with guard:
            raise RuntimeError("boom")
    with guard:
        assert guard.held


@pytest.mark.parametrize("reenter", ["purchase", "claim"])
def test_payment_callback_cannot_reenter_presale(ledger, clock, reenter):
    asset = CallbackAsset()
    asset.credit(USER1, 1_000_000)
    presale = VestingSchedule(ledger, PaymentSplitter(asset, OPS), clock, ADMIN)
    ledger.add_minter(ADMIN, presale.address)
    presale.start(ADMIN)

    if reenter == "purchase":
        asset.callback = lambda: presale.purchase(USER1, 1000)
    else:
        asset.callback = lambda: presale.claim(USER1)

    with pytest.raises(ReentrantCall, match="Presale: Reentrant call"):
        buy(presale, asset, USER1, 1000)

    assert presale.vesting_info(USER1).total_amount == 0
    assert presale.phase(0).sold == 0
    assert asset.balance_of(USER1) == 1_000_000

    asset.callback = None
    assert buy(presale, asset, USER1, 1000) == presale.quote(1000)


def test_concurrent_transfers_keep_supply_consistent(ledger):
    accounts = [USER1, USER2, USER3, "0xuser4"]
    for account in accounts:
        ledger.mint(MINTER, account, 1_000_000)
    rounds = 200
    errors = []

    def worker(index):
        sender = accounts[index]
        recipient = accounts[(index + 1) % len(accounts)]
        try:
            for _ in range(rounds):
                # 100 base units pay exactly 1 unit of tax
                ledger.transfer(sender, recipient, 100)
        except Exception as e:  # surfaced through the assertion below
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(len(accounts))]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    ledger.validate_state()
    assert ledger.total_supply() == 4 * 1_000_000 - len(accounts) * rounds
    for account in accounts:
        assert ledger.balance_of(account) == 1_000_000 - rounds


def test_concurrent_claims_never_double_mint(started, payment_asset, ledger, clock):
    buy(started, payment_asset, USER1, 1_000_000)
    clock.set(START + 200 * DAY)
    entitled = started.releasable_amount(USER1)
    claimed = []
    lock = threading.Lock()

    def worker():
        try:
            amount = started.claim(USER1)
        except Exception:
            return
        with lock:
            claimed.append(amount)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert claimed == [entitled]
    assert ledger.balance_of(USER1) == entitled
    started.validate_state()
