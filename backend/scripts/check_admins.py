"""
Check current admin users
Run: python -m scripts.check_admins
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from approval_desk.config.settings import settings
from approval_desk.domain.enums import Role
from approval_desk.repositories.store_provider import get_record_store
from approval_desk.repositories.user_repo import UserRepository


def main():
    users = UserRepository(get_record_store())

    print(f"=== Current Admin Users ({settings.store_backend}) ===")
    admins = users.list_users(roles=[Role.ADMIN])
    if admins:
        for admin in admins:
            print(f"  - {admin.email}")
            print(f"    Name: {admin.name}")
            print(f"    Status: {admin.status.value}")
    else:
        print("  No admin users configured.")
        print("  Start the server once to create the bootstrap admin.")

    print()
    print("=== Setup Status ===")
    print(f"  Approved Admins: {users.count_admins()}")
    print(f"  Pending Signups: {users.count_pending_users()}")
    print(f"  Requires Bootstrap: {users.count_admins() == 0}")


if __name__ == "__main__":
    main()
