"""
Test suite for the bounded in-memory alert ledger.
"""

import threading

import pytest

from agency_metrics.models import Alert, AlertSeverity
from agency_metrics.services.alert_store import AlertStore


def make_alert(index: int) -> Alert:
    return Alert(
        id=f'Impressions-{index}',
        title=f'Impressions: +{index}% vs 7d avg',
        severity=AlertSeverity.MED,
        createdAt='2024-03-08T12:53:20.000Z',
    )


class TestAlertStore:

    def test_capacity_bound_newest_first(self, alert_store: AlertStore) -> None:
        for index in range(105):
            alert_store.add_alert(make_alert(index))

        alerts = alert_store.list_alerts(200)

        assert len(alerts) == 100
        assert alerts[0].id == 'Impressions-104'
        assert alerts[-1].id == 'Impressions-5'

    def test_default_limit_is_twenty(self, alert_store: AlertStore) -> None:
        for index in range(30):
            alert_store.add_alert(make_alert(index))

        assert len(alert_store.list_alerts()) == 20

    def test_listing_does_not_mutate(self, alert_store: AlertStore) -> None:
        for index in range(3):
            alert_store.add_alert(make_alert(index))

        first = alert_store.list_alerts(2)
        second = alert_store.list_alerts(2)

        assert first == second
        assert len(alert_store) == 3

    def test_non_positive_limit_returns_nothing(self, alert_store: AlertStore) -> None:
        alert_store.add_alert(make_alert(1))

        assert alert_store.list_alerts(0) == []
        assert alert_store.list_alerts(-5) == []

    def test_clear(self, alert_store: AlertStore) -> None:
        alert_store.add_alert(make_alert(1))
        alert_store.clear()

        assert alert_store.list_alerts() == []

    def test_capacity_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            AlertStore(capacity=0)

    def test_alerts_are_immutable(self) -> None:
        alert = make_alert(1)

        with pytest.raises(Exception):
            alert.title = 'changed'

    def test_concurrent_inserts_respect_capacity(self) -> None:
        store = AlertStore(capacity=50)

        def insert(offset: int) -> None:
            for index in range(100):
                store.add_alert(make_alert(offset * 1000 + index))

        threads = [threading.Thread(target=insert, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(store) == 50
