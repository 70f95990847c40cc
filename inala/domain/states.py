"""
inala/domain/states.py

Purpose: Defines every status and role used across the ERP

- Enums for roles, tenant types, transactions, payments and documents
- Single source of truth for status values stored in the database
- Loan lifecycle transition validation
"""

from enum import Enum
from typing import Dict, List


class UserRole(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    TENANT_ADMIN = "TENANT_ADMIN"
    BRANCH_MANAGER = "BRANCH_MANAGER"
    TREASURER = "TREASURER"
    CASHIER = "CASHIER"
    MEMBER = "MEMBER"


class TenantType(str, Enum):
    BUSINESS = "BUSINESS"
    STOKVEL = "STOKVEL"
    LENDING = "LENDING"


class SubscriptionTier(str, Enum):
    BASIC = "BASIC"
    PRO = "PRO"
    ENTERPRISE = "ENTERPRISE"


class TransactionType(str, Enum):
    SALE = "SALE"
    LOAN_DISBURSEMENT = "LOAN_DISBURSEMENT"
    LOAN_REPAYMENT = "LOAN_REPAYMENT"
    EXPENSE = "EXPENSE"
    CAPITAL_INJECTION = "CAPITAL_INJECTION"
    CONTRIBUTION = "CONTRIBUTION"
    PAYOUT = "PAYOUT"
    DEBT_PAYMENT = "DEBT_PAYMENT"


class TransactionStatus(str, Enum):
    COMPLETED = "COMPLETED"
    PENDING = "PENDING"
    FAILED = "FAILED"
    VOIDED = "VOIDED"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    EFT = "EFT"
    MOMO = "MOMO"
    CREDIT = "CREDIT"


class LoanStatus(str, Enum):
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    ACTIVE = "ACTIVE"
    PAID = "PAID"
    DEFAULTED = "DEFAULTED"
    REJECTED = "REJECTED"


class POPStatus(str, Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"


class ContributionStatus(str, Enum):
    PAID = "PAID"
    PENDING = "PENDING"
    OVERDUE = "OVERDUE"
    PARTIAL = "PARTIAL"


class PayoutStatus(str, Enum):
    PAID = "PAID"
    SCHEDULED = "SCHEDULED"
    PENDING = "PENDING"


class MemberStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class ExpenseStatus(str, Enum):
    PAID = "PAID"
    PENDING = "PENDING"


class EmailFolder(str, Enum):
    INBOX = "INBOX"
    SENT = "SENT"


class EmailStatus(str, Enum):
    READ = "READ"
    UNREAD = "UNREAD"
    SENT = "SENT"
    FAILED = "FAILED"


class MailTriggerType(str, Enum):
    ACTIVATION_EMAIL = "ACTIVATION_EMAIL"
    PASSWORD_RESET = "PASSWORD_RESET"
    PERMISSION_CHANGE = "PERMISSION_CHANGE"


class MailTriggerStatus(str, Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"
    IGNORED = "IGNORED"


ADMIN_ROLES = (UserRole.SUPER_ADMIN, UserRole.TENANT_ADMIN)

# Roles allowed to vote on a loan application
LOAN_APPROVER_ROLES = (UserRole.SUPER_ADMIN, UserRole.TENANT_ADMIN, UserRole.TREASURER)

# Loans whose balance still counts towards the active portfolio
OPEN_LOAN_STATUSES = (LoanStatus.ACTIVE, LoanStatus.DEFAULTED)


# Valid loan transitions - prevents e.g. repaying a rejected application
LOAN_TRANSITIONS: Dict[LoanStatus, List[LoanStatus]] = {
    LoanStatus.PENDING_APPROVAL: [
        LoanStatus.APPROVED,
        LoanStatus.REJECTED,
    ],
    LoanStatus.APPROVED: [
        LoanStatus.ACTIVE,
        LoanStatus.REJECTED,
    ],
    LoanStatus.ACTIVE: [
        LoanStatus.PAID,
        LoanStatus.DEFAULTED,
        LoanStatus.ACTIVE,
    ],
    LoanStatus.DEFAULTED: [
        LoanStatus.PAID,
    ],
    LoanStatus.PAID: [],
    LoanStatus.REJECTED: [],
}


def is_valid_loan_transition(from_status: LoanStatus, to_status: LoanStatus) -> bool:
    """
    Checks if a loan status transition is valid.

    Args:
        from_status: Current status
        to_status: Target status

    Returns:
        True if transition is allowed, False otherwise
    """
    return to_status in LOAN_TRANSITIONS.get(LoanStatus(from_status), [])


def is_admin_role(role: str) -> bool:
    """Super admins and tenant admins may perform administrative voids."""
    return role in {r.value for r in ADMIN_ROLES}
