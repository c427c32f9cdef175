"""Example: drive the leave workflow through the service layer (no Flask).

Controllers are a thin layer; the rules live in the services. Run against a
database prepared with scripts/init_db.py and scripts/seed_db.py.
"""

import importlib

from config import get_settings_module

from src.leave_portal.leave_portal.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)
    service = container.leave_service

    # Tuesday 09:10 WIB, during the seeded Matematika period
    permit = service.create_permit(
        requester_user_id=6,
        leave_type="Individual",
        reason="Mengambil buku di perpustakaan daerah",
        start_time="2025-10-28T02:10:00Z",
    )
    print(permit.status.value, [(a.approver_user_id, a.approver_role.value) for a in permit.approvals])

    service.start_approval(permit.permit_id, verified_by=5)
    for approval in permit.approvals:
        permit = service.give_approval(permit.permit_id, approver_user_id=approval.approver_user_id, status="Approved")
    print(service.finalize_permit(permit.permit_id, printed_by_id=5, notes="Kembali pukul 10.30").status.value)


if __name__ == "__main__":
    main()
