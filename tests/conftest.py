"""
Shared fixtures.
"""

import os
import tempfile

# Keep settings, logs and reports away from the user's home directory
os.environ.setdefault("TREASURY_BASE_PATH", tempfile.mkdtemp(prefix="treasury_test_"))

from datetime import date, timedelta

import pytest

from treasury_recon.categorization import CategorizationChain
from treasury_recon.config import Settings
from treasury_recon.models import (
    AgingEntry,
    AgingKind,
    Family,
    Transaction,
)
from treasury_recon.reconciliation import (
    ReconciliationOrchestrator,
    build_family_definitions,
)
from treasury_recon.storage import InMemoryCandidateRepository, InMemoryItemRepository
from treasury_recon.utils import AuditLogger, InProcessEventBus

# A Sunday, a banking day under the default Friday/Saturday weekend
BASE_DATE = date(2024, 3, 10)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        data_dir=tmp_path / "data",
        reports_dir=tmp_path / "reports",
        log_dir=tmp_path / "logs",
        classifier_enabled=False,
    )


@pytest.fixture
def base_date():
    return BASE_DATE


@pytest.fixture
def credit_txn():
    """Factory for credit transactions; amounts in cents."""
    def _make(id="t1", amount_cents=2_500_000, description="Payment from ABC Corporation INV-2024-001",
              on=BASE_DATE, reference=None, account_id="ACC-1"):
        return Transaction(
            id=id,
            transaction_date=on,
            description=description,
            credit_cents=amount_cents,
            reference=reference,
            account_id=account_id,
        )
    return _make


@pytest.fixture
def debit_txn():
    """Factory for debit transactions; amounts in cents."""
    def _make(id="d1", amount_cents=1_000_000, description="Vendor payment",
              on=BASE_DATE, reference=None, account_id="ACC-1"):
        return Transaction(
            id=id,
            transaction_date=on,
            description=description,
            debit_cents=amount_cents,
            reference=reference,
            account_id=account_id,
        )
    return _make


@pytest.fixture
def abc_receivable():
    """Open receivable matching the default credit transaction."""
    return AgingEntry(
        id="ar-001",
        amount_cents=2_500_000,
        counterparty_id="cust-001",
        counterparty_name="ABC Corporation",
        invoice_number="INV-2024-001",
        due_date=BASE_DATE - timedelta(days=1),
        kind=AgingKind.RECEIVABLE,
    )


@pytest.fixture
def candidates():
    return InMemoryCandidateRepository()


@pytest.fixture
def items():
    return InMemoryItemRepository()


@pytest.fixture
def audit(settings):
    return AuditLogger(session_id="test")


@pytest.fixture
def bus():
    return InProcessEventBus()


@pytest.fixture
def definitions(settings):
    return build_family_definitions(settings)


@pytest.fixture
def make_orchestrator(definitions, candidates, items, audit, bus, settings):
    def _make(family: Family, **overrides):
        kwargs = dict(
            definition=definitions[family],
            candidates=candidates,
            items=items,
            audit_sink=audit,
            event_bus=bus,
            categorizer=CategorizationChain(
                confidence_floor=settings.categorization_confidence_floor
            ),
            settings=settings,
        )
        kwargs.update(overrides)
        return ReconciliationOrchestrator(**kwargs)
    return _make


@pytest.fixture
def credit_orchestrator(make_orchestrator):
    return make_orchestrator(Family.CREDIT_TRANSACTIONS)
