from datetime import datetime, timedelta

import pytest

from inala.core.exceptions import BusinessRuleError, PermissionDeniedError, ValidationError
from inala.services import loan_service, customer_service, pos_service, user_service


@pytest.fixture
async def borrower(lender):
    return await customer_service.add_customer(lender["id"], {"name": "Bongani Dlamini"})


@pytest.fixture
async def treasurer(lender):
    return await user_service.create_user({
        "id": "u_treasurer", "name": "Nomsa Treasurer", "email": "nomsa@example.com",
        "role": "TREASURER", "tenant_id": lender["id"],
    }, send_welcome=False)


def test_total_repayable_is_flat_interest():
    assert loan_service.calculate_total_repayable(1000, 20) == 1200.0
    assert loan_service.calculate_total_repayable(500, 0) == 500.0


async def test_disburse_creates_active_loan_and_ledger_entry(lender, borrower):
    due = datetime.utcnow() + timedelta(days=30)
    loan = await loan_service.disburse_loan(lender["id"], borrower["id"], 1000, 20, due)

    assert loan["status"] == "ACTIVE"
    assert loan["total_repayable"] == 1200.0
    assert loan["balance_remaining"] == 1200.0

    entries = await pos_service.list_transactions(lender["id"], tx_type="LOAN_DISBURSEMENT")
    assert len(entries) == 1
    assert entries[0]["loan_id"] == loan["id"]


async def test_repayment_splits_interest_and_closes_loan(lender, borrower):
    due = datetime.utcnow() + timedelta(days=30)
    loan = await loan_service.disburse_loan(lender["id"], borrower["id"], 1000, 20, due)

    first = await loan_service.record_repayment(lender["id"], loan["id"], 600)
    assert first["loan"]["balance_remaining"] == 600.0
    assert first["transaction"]["interest_part"] == 100.0
    assert first["transaction"]["principal_part"] == 500.0

    second = await loan_service.record_repayment(lender["id"], loan["id"], 700)
    assert second["loan"]["balance_remaining"] == 0
    assert second["loan"]["status"] == "PAID"

    with pytest.raises(BusinessRuleError):
        await loan_service.record_repayment(lender["id"], loan["id"], 10)


async def test_application_needs_approver_role(lender, borrower):
    loan = await loan_service.apply_for_loan(lender["id"], borrower["id"], 500, None, "2030-01-31")
    assert loan["status"] == "PENDING_APPROVAL"
    assert loan["interest_rate"] == 20.0

    member = {"id": "u_member", "role": "MEMBER"}
    with pytest.raises(PermissionDeniedError):
        await loan_service.approve_loan(lender["id"], loan["id"], member)


async def test_approval_then_activation(lender, borrower, treasurer):
    loan = await loan_service.apply_for_loan(lender["id"], borrower["id"], 500, 10, "2030-01-31")

    approved = await loan_service.approve_loan(lender["id"], loan["id"], treasurer)
    assert approved["status"] == "APPROVED"
    assert approved["approvals"][0]["user_id"] == treasurer["id"]

    active = await loan_service.activate_approved_loan(lender["id"], loan["id"])
    assert active["status"] == "ACTIVE"

    disbursements = await pos_service.list_transactions(lender["id"], tx_type="LOAN_DISBURSEMENT")
    assert len(disbursements) == 1


async def test_single_rejection_rejects(lender, borrower, treasurer):
    loan = await loan_service.apply_for_loan(lender["id"], borrower["id"], 500, 10, "2030-01-31")
    rejected = await loan_service.approve_loan(lender["id"], loan["id"], treasurer, approved=False)
    assert rejected["status"] == "REJECTED"

    with pytest.raises(BusinessRuleError):
        await loan_service.activate_approved_loan(lender["id"], loan["id"])


async def test_overdue_sweep_compounds_once_per_day(lender, borrower):
    now = datetime(2025, 3, 10, 8, 0, 0)
    loan = await loan_service.disburse_loan(lender["id"], borrower["id"], 1000, 10, datetime(2025, 3, 1))

    assert await loan_service.run_overdue_sweep(lender["id"], now) == 1
    swept = await loan_service.get_loan(lender["id"], loan["id"])
    assert swept["status"] == "DEFAULTED"
    assert swept["balance_remaining"] == 1210.0
    assert swept["total_repayable"] == 1210.0

    # Already defaulted, so a second sweep leaves it alone
    assert await loan_service.run_overdue_sweep(lender["id"], now + timedelta(hours=2)) == 0


async def test_sweep_skips_loans_not_yet_due(lender, borrower):
    await loan_service.disburse_loan(lender["id"], borrower["id"], 1000, 10, datetime(2030, 1, 1))
    assert await loan_service.run_overdue_sweep(lender["id"], datetime(2025, 3, 10)) == 0


async def test_portfolio_summary(lender, borrower):
    due = datetime.utcnow() + timedelta(days=30)
    loan = await loan_service.disburse_loan(lender["id"], borrower["id"], 1000, 20, due)
    await loan_service.record_repayment(lender["id"], loan["id"], 200)
    await loan_service.apply_for_loan(lender["id"], borrower["id"], 300, 20, due)

    summary = await loan_service.loan_portfolio_summary(lender["id"])
    assert summary["active_value"] == 1000.0
    assert summary["active_count"] == 1
    assert summary["pending_approvals"] == 1
    assert summary["collected_this_cycle"] == 200.0


async def test_list_loans_filters_by_status(lender, borrower):
    due = datetime.utcnow() + timedelta(days=30)
    await loan_service.disburse_loan(lender["id"], borrower["id"], 500, 20, due)
    await loan_service.apply_for_loan(lender["id"], borrower["id"], 300, 20, due)

    pending = await loan_service.list_loans(lender["id"], "PENDING_APPROVAL")
    assert [l["amount"] for l in pending] == [300.0]

    with pytest.raises(ValidationError, match="Unknown loan status"):
        await loan_service.list_loans(lender["id"], "LATE")
