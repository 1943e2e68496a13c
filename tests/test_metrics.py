import pytest

from scorch_economics.metrics import LedgerMetrics

from .conftest import MINTER, USER1, USER2, tokens


def test_metrics_fold_ledger_events(ledger):
    metrics = LedgerMetrics()
    ledger.mint(MINTER, USER1, tokens(1000))
    ledger.transfer(USER1, USER2, tokens(100))
    ledger.burn(USER2, tokens(10))
    metrics.update_from_ledger(ledger)

    assert metrics.minted == tokens(1000)
    assert metrics.transfer_volume == tokens(100)
    assert metrics.transfer_count == 1
    assert metrics.tax_burned == tokens(1)
    assert metrics.burned == tokens(11)
    assert metrics.total_supply == tokens(989)
    assert metrics.token_velocity == pytest.approx(100 / 989)

    current = metrics.get_current_metrics()
    assert current['explicit_burned'] == tokens(10)
    assert current['effective_tax_rate'] == pytest.approx(0.01)
    assert current['unique_participants'] == 2


def test_update_is_incremental(ledger):
    metrics = LedgerMetrics()
    ledger.mint(MINTER, USER1, tokens(10))
    metrics.update_from_ledger(ledger)
    metrics.update_from_ledger(ledger)
    assert metrics.minted == tokens(10)


def test_historical_analysis(ledger):
    metrics = LedgerMetrics()
    assert metrics.get_historical_analysis() == {}

    ledger.mint(MINTER, USER1, tokens(1000))
    metrics.record_epoch(ledger)
    ledger.transfer(USER1, USER2, tokens(100))
    snapshot = metrics.record_epoch(ledger)
    assert snapshot['holders'] == 2

    ledger.transfer(USER2, USER1, tokens(50))
    metrics.record_epoch(ledger, epoch=7)

    analysis = metrics.get_historical_analysis()
    assert analysis['epochs'] == [0, 1, 7]
    assert analysis['supply_trend'] == [tokens(1000), tokens(999), tokens(9985) // 10]
    assert analysis['tax_burned_per_epoch'] == [0, tokens(1), tokens(1) // 2]
    assert analysis['average_velocity'] == pytest.approx(
        sum(analysis['velocity_trend']) / 3
    )
    assert metrics.get_historical_analysis(num_epochs=1)['epochs'] == [7]
