from pathlib import Path

import pytest

from scorch_economics.clock import ManualClock
from scorch_economics.ledger import Ledger
from scorch_economics.params import WAD
from scorch_economics.payment import InMemoryPaymentAsset, PaymentSplitter
from scorch_economics.vesting import VestingSchedule

ADMIN = "0xadmin"
MINTER = "0xminter"
USER1 = "0xuser1"
USER2 = "0xuser2"
USER3 = "0xuser3"
OPS = "0xoperations"

START = 1_700_000_000
DAY = 86_400

CONFIG_PATH = Path(__file__).resolve().parents[1] / "config" / "economics.json"


def tokens(amount) -> int:
    return int(amount * WAD)


@pytest.fixture
def clock():
    return ManualClock(START)


@pytest.fixture
def ledger():
    token = Ledger(ADMIN)
    token.add_minter(ADMIN, MINTER)
    return token


@pytest.fixture
def payment_asset():
    asset = InMemoryPaymentAsset("USDC")
    asset.credit(USER1, 10_000_000)
    asset.credit(USER2, 10_000_000)
    return asset


@pytest.fixture
def splitter(payment_asset):
    return PaymentSplitter(payment_asset, OPS)


@pytest.fixture
def schedule(ledger, splitter, clock):
    presale = VestingSchedule(ledger, splitter, clock, ADMIN)
    ledger.add_minter(ADMIN, presale.address)
    return presale


@pytest.fixture
def started(schedule):
    schedule.start(ADMIN)
    return schedule


def buy(schedule, payment_asset, buyer, payment):
    payment_asset.approve(buyer, schedule.address, payment)
    return schedule.purchase(buyer, payment)
