import pytest

from inala.core.exceptions import BusinessRuleError
from inala.services import stokvel_service, loan_service, customer_service, pos_service


@pytest.fixture
async def members(stokvel):
    names = [("Ayanda", 500), ("Busi", 500), ("Chris", 1000)]
    return [
        await stokvel_service.add_member(stokvel["id"], {"name": name, "monthly_pledge": pledge})
        for name, pledge in names
    ]


async def test_members_join_back_of_queue(stokvel, members):
    assert [m["payout_queue_position"] for m in members] == [1, 2, 3]
    assert members[0]["total_contributed"] == 0


async def test_contribution_status_and_running_total(stokvel, members):
    full = await stokvel_service.record_contribution(stokvel["id"], members[0]["id"], 500, "2025-03")
    partial = await stokvel_service.record_contribution(stokvel["id"], members[2]["id"], 400, "2025-03")

    assert full["status"] == "PAID"
    assert partial["status"] == "PARTIAL"

    member = await stokvel_service.get_member(stokvel["id"], members[0]["id"])
    assert member["total_contributed"] == 500.0

    ledger = await pos_service.list_transactions(stokvel["id"], tx_type="CONTRIBUTION")
    assert len(ledger) == 2


async def test_payout_requires_paid_contribution(stokvel, members):
    check = await stokvel_service.check_payout_eligibility(stokvel["id"], "2025-03")
    assert check["recipient"]["id"] == members[0]["id"]
    assert check["eligible"] is False
    assert check["amount"] == 2000.0

    with pytest.raises(BusinessRuleError):
        await stokvel_service.process_payout(stokvel["id"], "2025-03")


async def test_payout_rotates_recipient_to_back(stokvel, members):
    await stokvel_service.record_contribution(stokvel["id"], members[0]["id"], 500, "2025-03")

    payout = await stokvel_service.process_payout(stokvel["id"], "2025-03")
    assert payout["member_id"] == members[0]["id"]
    assert payout["amount"] == 2000.0

    queue = await stokvel_service.get_payout_queue(stokvel["id"])
    assert [m["id"] for m in queue] == [members[1]["id"], members[2]["id"], members[0]["id"]]
    assert [m["payout_queue_position"] for m in queue] == [1, 2, 3]


async def test_inactive_members_leave_queue(stokvel, members):
    await stokvel_service.update_member(stokvel["id"], members[0]["id"], {"status": "INACTIVE"})
    queue = await stokvel_service.get_payout_queue(stokvel["id"])
    assert members[0]["id"] not in [m["id"] for m in queue]


async def test_dashboard(stokvel, members):
    await stokvel_service.record_contribution(stokvel["id"], members[0]["id"], 500, "2025-03")
    await stokvel_service.record_contribution(stokvel["id"], members[1]["id"], 500, "2025-03")

    stats = await stokvel_service.stokvel_dashboard(stokvel["id"], "2025-03")
    assert stats["member_count"] == 3
    assert stats["total_pool"] == 1000.0
    assert stats["collection_rate"] == 50.0
    assert stats["target"] == 10000.0
    assert stats["target_progress"] == 10.0


async def test_hybrid_metrics_ignore_voided_entries(stokvel, members):
    await stokvel_service.record_contribution(stokvel["id"], members[0]["id"], 2000, "2025-03")
    borrower = await customer_service.add_customer(stokvel["id"], {"name": "Busi"})
    loan = await loan_service.disburse_loan(stokvel["id"], borrower["id"], 1000, 10, "2030-01-01")
    repayment = await loan_service.record_repayment(stokvel["id"], loan["id"], 550)

    metrics = await stokvel_service.calculate_hybrid_metrics(stokvel["id"])
    assert metrics["total_contributions"] == 2000.0
    assert metrics["liquid_capital"] == 1550.0
    assert metrics["realized_interest"] == 50.0
    assert metrics["active_principal"] == 1000.0
    assert metrics["active_book_value"] == 550.0
    assert metrics["effective_roi"] == 5.0

    admin = {"id": "u_admin", "name": "Admin", "role": "TENANT_ADMIN"}
    await pos_service.void_transaction(stokvel["id"], repayment["transaction"]["id"], admin, "reversed")

    metrics = await stokvel_service.calculate_hybrid_metrics(stokvel["id"])
    assert metrics["liquid_capital"] == 1000.0
    assert metrics["realized_interest"] == 0
