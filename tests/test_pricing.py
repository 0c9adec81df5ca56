"""
Tests for pricing, the cost ledger and usage reporting.
"""

import logging
import os
import sqlite3
import tempfile
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import Mock

import pytest

from dashai.core.cost_ledger import CostLedger
from dashai.core.pricing import DEFAULT_PRICE_PER_1K_TOKENS, calculate_cost
from dashai.core.usage_reporter import UsageReporter
from dashai.storage.repository import LedgerRepository, initialize_schema

NOW = datetime(2026, 10, 19, 15, 0, tzinfo=timezone.utc)


class TestCalculateCost:
    """Test the flat per-token cost formula."""

    def test_default_price(self):
        """1,000 tokens at $0.002 per 1K cost $0.002."""
        assert DEFAULT_PRICE_PER_1K_TOKENS == Decimal("0.002")
        assert calculate_cost(1000) == Decimal("0.002")

    def test_partial_thousand(self):
        """Cost is exact, with no rounding to cents."""
        assert calculate_cost(150) == Decimal("0.0003")
        assert calculate_cost(1) == Decimal("0.000002")

    def test_zero_tokens(self):
        assert calculate_cost(0) == Decimal("0")

    def test_custom_price(self):
        assert calculate_cost(2500, Decimal("0.01")) == Decimal("0.025")

    def test_negative_tokens_rejected(self):
        with pytest.raises(ValueError, match="tokens_used must be >= 0"):
            calculate_cost(-1)


class TestCostLedger:
    """Test ledger recording against SQLite."""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.db_path = os.path.join(self.temp_dir, "test.db")
        initialize_schema(self.db_path)
        self.repository = LedgerRepository(self.db_path)
        self.ledger = CostLedger(self.repository, clock=lambda: NOW)

    def teardown_method(self):
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_records_sum_on_same_day(self):
        """Recording (t1, c1) then (t2, c2) stores t1 + t2 and c1 + c2."""
        self.ledger.record(120, Decimal("0.00024"))
        self.ledger.record(380, Decimal("0.00076"))

        daily = self.repository.get_daily_cost("2026-10-19")
        assert daily.tokens == 500
        assert daily.cost == Decimal("0.001")
        assert daily.calls == 2

        monthly = self.repository.get_monthly_cost("2026-10")
        assert monthly.total_tokens == 500
        assert monthly.total_cost == Decimal("0.001")
        assert monthly.call_count == 2

    def test_day_and_month_keys_differ(self):
        """Day key and month key use distinct formats."""
        self.ledger.record(10, Decimal("0.00002"))

        assert self.repository.get_daily_cost("2026-10-19") is not None
        assert self.repository.get_monthly_cost("2026-10") is not None
        assert self.repository.get_daily_cost("2026-10") is None

    def test_write_failure_is_swallowed_and_logged(self, caplog):
        """A failed write never propagates."""
        repository = Mock()
        repository.add_cost.side_effect = sqlite3.OperationalError("database is locked")
        ledger = CostLedger(repository, clock=lambda: NOW)

        with caplog.at_level(logging.ERROR, logger="dashai.core.cost_ledger"):
            ledger.record(100, Decimal("0.0002"))

        assert "ledger will undercount" in caplog.text


class TestUsageReporter:
    """Test cost derivation and ledger hand-off."""

    def test_report_returns_cost_and_records(self):
        ledger = Mock()
        reporter = UsageReporter(ledger)

        cost = reporter.report(1500)

        assert cost == Decimal("0.003")
        ledger.record.assert_called_once_with(1500, Decimal("0.003"))

    def test_report_survives_ledger_failure(self):
        """Ledger errors don't reach the reporter's caller."""
        repository = Mock()
        repository.add_cost.side_effect = RuntimeError("boom")
        reporter = UsageReporter(CostLedger(repository, clock=lambda: NOW), Decimal("0.002"))

        assert reporter.report(500) == Decimal("0.001")
