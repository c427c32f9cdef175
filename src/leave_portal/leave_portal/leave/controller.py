from __future__ import annotations

from functools import wraps

from flask import Flask, g, jsonify, request, session

from ..core.enums import Capability
from ..core.exceptions import AuthorizationError, ValidationError
from ..container import Container

API_PREFIX = "/leave-permits"


def register(app: Flask, container: Container) -> None:
    def capability_required(*capabilities: Capability):
        """Resolve the caller from the session and require one of ``capabilities``."""

        def decorator(view):
            @wraps(view)
            def wrapper(*args, **kwargs):
                current = container.identity_service.resolve(session.get("user_id"))
                if not any(current.can(c) for c in capabilities):
                    raise AuthorizationError("Anda tidak punya hak akses untuk sumber daya ini")
                g.current_user = current
                return view(*args, **kwargs)

            return wrapper

        return decorator

    def _json_body() -> dict:
        body = request.get_json(silent=True)
        if body is None:
            return {}
        if not isinstance(body, dict):
            raise ValidationError("Body permintaan harus berupa objek JSON")
        return body

    @app.route(API_PREFIX, methods=["POST"], endpoint="create_leave_permit")
    @capability_required(Capability.SUBMIT_PERMIT)
    def create_leave_permit():
        body = _json_body()
        permit = container.leave_service.create_permit(
            requester_user_id=g.current_user.user_id,
            leave_type=body.get("leave_type"),
            reason=body.get("reason"),
            start_time=body.get("start_time"),
            estimated_return=body.get("estimated_return"),
            group_member_ids=body.get("group_member_ids"),
        )
        return (
            jsonify(
                {
                    "message": "Pengajuan izin berhasil. Segera temui guru piket untuk verifikasi.",
                    "data": permit.to_dict(),
                }
            ),
            201,
        )

    @app.route(f"{API_PREFIX}/<int:permit_id>/start-approval", methods=["POST", "PATCH"], endpoint="start_leave_approval")
    @capability_required(Capability.VERIFY_PERMIT)
    def start_leave_approval(permit_id: int):
        permit = container.leave_service.start_approval(permit_id, verified_by=g.current_user.user_id)
        return jsonify({"message": "Proses persetujuan telah dimulai.", "data": permit.to_dict()}), 200

    @app.route(f"{API_PREFIX}/<int:permit_id>/approval", methods=["POST"], endpoint="give_leave_approval")
    @capability_required(Capability.DECIDE_APPROVAL)
    def give_leave_approval(permit_id: int):
        body = _json_body()
        permit = container.leave_service.give_approval(
            permit_id,
            approver_user_id=g.current_user.user_id,
            status=body.get("status"),
            notes=body.get("notes"),
        )
        return jsonify({"message": "Keputusan berhasil disimpan.", "data": permit.to_dict()}), 200

    @app.route(f"{API_PREFIX}/<int:permit_id>/print", methods=["POST"], endpoint="print_leave_permit")
    @capability_required(Capability.FINALIZE_PERMIT)
    def print_leave_permit(permit_id: int):
        body = _json_body()
        permit = container.leave_service.finalize_permit(
            permit_id,
            printed_by_id=g.current_user.user_id,
            notes=body.get("notes"),
        )
        return jsonify({"message": "Status izin berhasil difinalisasi.", "data": permit.to_dict()}), 200

    @app.route(API_PREFIX, methods=["GET"], endpoint="list_leave_permits")
    @capability_required(Capability.VIEW_ALL_PERMITS)
    def list_leave_permits():
        result = container.leave_service.list_permits(
            status=request.args.get("status"),
            q=request.args.get("q"),
            page=request.args.get("page", 1),
            limit=request.args.get("limit", app.config.get("DEFAULT_PAGE_SIZE", 10)),
        )
        return jsonify(result), 200

    @app.route(f"{API_PREFIX}/me", methods=["GET"], endpoint="my_leave_permits")
    @capability_required(Capability.SUBMIT_PERMIT)
    def my_leave_permits():
        data = container.leave_service.list_my_permits(requester_user_id=g.current_user.user_id)
        return jsonify({"data": data}), 200

    @app.route(f"{API_PREFIX}/my-approvals", methods=["GET"], endpoint="my_leave_approvals")
    @capability_required(Capability.VIEW_APPROVAL_TASKS)
    def my_leave_approvals():
        data = container.leave_service.list_my_approvals(approver_user_id=g.current_user.user_id)
        return jsonify({"data": data}), 200

    @app.route(f"{API_PREFIX}/<int:permit_id>", methods=["GET"], endpoint="leave_permit_detail")
    @capability_required(Capability.VIEW_PERMIT)
    def leave_permit_detail(permit_id: int):
        data = container.leave_service.get_permit_detail(permit_id, viewer=g.current_user)
        return jsonify(data), 200
