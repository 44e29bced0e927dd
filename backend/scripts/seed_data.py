"""
Seed Data Script - Creates sample accounts and approvals for testing
Run: python -m scripts.seed_data
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from approval_desk.domain.enums import Role, Decision
from approval_desk.domain.models import FileAttachment
from approval_desk.repositories.store_provider import get_record_store
from approval_desk.repositories.user_repo import UserRepository
from approval_desk.services.onboarding_service import OnboardingService
from approval_desk.services.approval_service import ApprovalService
from approval_desk.utils.passwords import hash_password

SAMPLE_PASSWORD = "password123"

SAMPLE_USERS = [
    ("Dana Approver", "approver@company.com", Role.APPROVER),
    ("Riley Requester", "requester@company.com", Role.REQUESTER),
    ("Sam Requester", "sam@company.com", Role.REQUESTER),
]


def seed_users(users: UserRepository) -> dict:
    """Create sample accounts, skipping emails that already exist"""
    created = {}
    for name, email, role in SAMPLE_USERS:
        existing = users.find_user_by_email(email)
        if existing:
            print(f"  = {email} already exists")
            created[email] = existing
            continue
        created[email] = users.create_user(name, email, hash_password(SAMPLE_PASSWORD), role)
        print(f"  + {email} ({role.value})")
    return created


def seed_approvals(approvals: ApprovalService, accounts: dict) -> None:
    """Create one pending and one approved sample request"""
    requester = accounts["requester@company.com"].to_actor()
    approver = accounts["approver@company.com"]

    if approvals.list_my_requests(requester):
        print("  Requester already has approvals. Skipping.")
        return

    pending = approvals.submit_request(
        requester,
        title="Conference travel",
        description="Flights and hotel for the spring developer conference",
        assigned_approver_id=approver.id,
        files=[FileAttachment(name="quote.txt", content_handle="data:text/plain;base64,UXVvdGU=")]
    )
    print(f"  + {pending.id} pending")

    decided = approvals.submit_request(
        requester,
        title="Laptop replacement",
        description="Current laptop battery no longer holds a charge",
        assigned_approver_id=approver.id
    )
    approvals.process_request(
        approver.to_actor(),
        decided.id,
        Decision.APPROVED,
        feedback="Approved, order through IT",
        signed_files=[FileAttachment(name="signed.txt", content_handle="data:text/plain;base64,U2lnbmVk")]
    )
    print(f"  + {decided.id} approved")


def main():
    store = get_record_store()
    store.ensure_indexes()

    print("=== Bootstrap Admin ===")
    admin = OnboardingService(store).ensure_bootstrap_admin()
    print(f"  + {admin.email}" if admin else "  Admin already present.")

    print("=== Users ===")
    accounts = seed_users(UserRepository(store))

    print("=== Approvals ===")
    seed_approvals(ApprovalService(store), accounts)

    print()
    print(f"Sample accounts use the password: {SAMPLE_PASSWORD}")


if __name__ == "__main__":
    main()
