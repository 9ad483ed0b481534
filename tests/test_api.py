"""
Tests for the HTTP API.
"""

import pytest
from fastapi.testclient import TestClient

from treasury_recon.api import create_app
from treasury_recon.categorization import CategorizationChain

ABC_RECEIVABLE = {
    "id": "ar-001",
    "amount_cents": 2_500_000,
    "counterparty_name": "ABC Corporation",
    "invoice_number": "INV-2024-001",
    "due_date": "2024-03-09",
    "kind": "receivable",
}

ABC_PAYMENT = {
    "id": "t1",
    "transaction_date": "2024-03-10",
    "description": "Payment from ABC Corporation INV-2024-001",
    "credit_cents": 2_500_000,
    "account_id": "ACC-1",
}


@pytest.fixture
def client(candidates, items, audit, bus, settings):
    app = create_app(
        candidates=candidates,
        items=items,
        audit=audit,
        event_bus=bus,
        categorizer=CategorizationChain(confidence_floor=0.6),
        settings=settings,
    )
    return TestClient(app)


@pytest.fixture
def matched(client):
    client.put("/api/candidates/aging", json={"records": [ABC_RECEIVABLE]})
    response = client.post("/api/credit_transactions/extract", json={"transactions": [ABC_PAYMENT]})
    return response.json()["items"][0]


class TestReconciliationEndpoints:
    """Test suite for the per-family routes."""

    def test_health(self, client):
        """Test the health endpoint reports healthy."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_extract_and_auto_match(self, client, matched):
        """Test extraction over HTTP auto-matches the open receivable."""
        assert matched["id"] == "CR_t1"
        assert matched["reconciliation_status"] == "auto_matched"
        assert matched["matched_entity"]["candidate_id"] == "ar-001"
        assert matched["amount"] == 25_000.0

    def test_extract_reports_each_transaction(self, client, matched):
        """Test each posted transaction gets its own result entry."""
        response = client.post("/api/credit_transactions/extract", json={
            "transactions": [
                ABC_PAYMENT,
                {**ABC_PAYMENT, "id": "t2", "credit_cents": 0, "debit_cents": 500},
            ],
        })

        body = response.json()
        assert [r["status"] for r in body["results"]] == ["duplicate", "skipped"]
        assert body["created"] == 0

    def test_negative_amount_is_rejected(self, client):
        """Test negative amounts fail request validation."""
        response = client.post("/api/credit_transactions/extract", json={
            "transactions": [{**ABC_PAYMENT, "credit_cents": -5}],
        })

        assert response.status_code == 422

    def test_list_and_get(self, client, matched):
        """Test listing by status and fetching a single item."""
        listing = client.get("/api/credit_transactions/items", params={"status": "auto_matched"})
        single = client.get("/api/credit_transactions/items/CR_t1")

        assert listing.json()["total"] == 1
        assert single.json()["id"] == "CR_t1"

    def test_missing_item_is_404(self, client):
        """Test an unknown item id returns 404."""
        response = client.get("/api/credit_transactions/items/CR_nope")

        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_unknown_family_is_422(self, client):
        """Test an unknown family in the path fails validation."""
        assert client.get("/api/petty_cash/items").status_code == 422

    def test_confirm_then_conflict(self, client, matched):
        """Test confirming twice returns 409 with both statuses."""
        first = client.post("/api/credit_transactions/items/CR_t1/confirm", json={"verified_by": "bob"})
        second = client.post("/api/credit_transactions/items/CR_t1/confirm", json={"verified_by": "bob"})

        assert first.status_code == 200
        assert first.json()["item"]["reconciliation_status"] == "confirmed"
        assert second.status_code == 409
        assert second.json()["current"] == "confirmed"
        assert second.json()["target"] == "confirmed"

    def test_auto_reconcile_on_manual_item_conflicts(self, client, matched):
        """Test auto reconciliation of a manual match returns 409."""
        client.post("/api/credit_transactions/items/CR_t1/manual-reconcile", json={
            "candidate_id": "ar-001",
            "variant": "aging",
        })

        response = client.post("/api/credit_transactions/items/CR_t1/auto-reconcile")

        assert response.status_code == 409
        assert response.json()["current"] == "manually_matched"

    def test_manual_with_missing_candidate_is_404(self, client, matched):
        """Test a manual match against a missing candidate returns 404."""
        response = client.post("/api/credit_transactions/items/CR_t1/manual-reconcile", json={
            "candidate_id": "ar-999",
            "variant": "aging",
        })

        assert response.status_code == 404

    def test_manual_with_foreign_variant_is_400(self, client, matched):
        """Test a manual match with another family's variant returns 400."""
        response = client.post("/api/credit_transactions/items/CR_t1/manual-reconcile", json={
            "candidate_id": "pr-1",
            "variant": "payroll",
        })

        assert response.status_code == 400

    def test_reopen_and_amend(self, client, matched):
        """Test reopening a confirmed item and amending its notes."""
        client.post("/api/credit_transactions/items/CR_t1/confirm", json={"verified_by": "bob"})

        reopened = client.post("/api/credit_transactions/items/CR_t1/reopen", json={
            "actor": "carol",
            "reason": "Wrong invoice",
        })
        amended = client.patch("/api/credit_transactions/items/CR_t1", json={
            "observations": "Awaiting remittance advice",
        })

        assert reopened.json()["item"]["reconciliation_status"] == "pending"
        assert amended.json()["item"]["observations"] == "Awaiting remittance advice"
        assert amended.json()["item"]["reconciliation_status"] == "pending"

    def test_summary(self, client, matched):
        """Test the summary endpoint counts and rates."""
        response = client.get("/api/credit_transactions/summary")

        body = response.json()
        assert body["total"] == 1
        assert body["auto_matched"] == 1
        assert body["match_rate"] == 100.0

    def test_invalid_candidate_is_422(self, client):
        """Test candidate records with unknown fields are rejected."""
        response = client.put("/api/candidates/aging", json={"records": [{"id": "ar-1", "colour": "blue"}]})

        assert response.status_code == 422

    def test_audit_trail(self, client, matched):
        """Test the audit endpoint filters by entity."""
        response = client.get("/api/audit", params={"entity_id": "CR_t1"})

        body = response.json()
        assert [e["action"] for e in body["entries"]] == ["item_extracted", "auto_reconciled"]
        assert body["summary"]["total_entries"] == 2


class TestInvestmentEndpoint:
    """Test suite for investment suggestions over HTTP."""

    def test_suggestions_ranked(self, client):
        """Test investment suggestions come back ranked by term."""
        response = client.post("/api/investments/suggestions", json={
            "account_id": "ACC-1",
            "balance_cents": 500_000_000,
            "buffer_cents": 100_000_000,
            "as_of": "2024-03-10",
            "obligations": [
                {"amount_cents": 200_000_000, "due_date": "2024-03-30", "criticality": "critical"},
            ],
        })

        body = response.json()
        assert body["count"] == 3
        assert [s["term_days"] for s in body["suggestions"]] == [90, 60, 30]
        assert body["suggestions"][0]["weekend"]["alternate_term_days"] == 88

    def test_holidays_use_custom_calendar(self, client):
        """Test request holidays move the maturity date."""
        response = client.post("/api/investments/suggestions", json={
            "account_id": "ACC-1",
            "balance_cents": 500_000_000,
            "buffer_cents": 100_000_000,
            "as_of": "2024-03-10",
            "holidays": ["2024-04-09"],
        })

        thirty = next(s for s in response.json()["suggestions"] if s["term_days"] == 30)
        assert thirty["weekend"]["lands_on_non_banking_day"] is True
        assert thirty["weekend"]["adjusted_maturity_date"] == "2024-04-10"

    def test_calendar_without_banking_days_is_422(self, client):
        """Test a week of weekend days is rejected."""
        response = client.post("/api/investments/suggestions", json={
            "account_id": "ACC-1",
            "balance_cents": 500_000_000,
            "weekend_days": [0, 1, 2, 3, 4, 5, 6],
        })

        assert response.status_code == 422


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
