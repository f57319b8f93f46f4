from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_permission
from ..services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/dashboard")
@require_auth
@require_permission("VIEW_DASHBOARD")
def dashboard_report():
    return jsonify(reporting_service.dashboard_stats()), 200


@reports_bp.get("/sales")
@require_auth
@require_permission("VIEW_REPORTS")
def sales_report():
    range_key = request.args.get("range", "month")
    top_n = request.args.get("top", 10, type=int)

    try:
        report = reporting_service.sales_report(range_key, top_n=max(1, min(top_n, 100)))
        return jsonify(report), 200
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400
