# Overview: Flask API routes for reports; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request, g

from ..decorators import require_auth, require_permission
from ..services import report_service
from ..validation import ValidationError, coerce_optional_int, coerce_business_date


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/dashboard")
@require_auth
@require_permission("dashboard:view")
def dashboard():
    """
    Dashboard figures from closures.

    Query params: days (default from the reports settings range), end
    (YYYY-MM-DD, default today), store_id.
    """
    try:
        end = request.args.get("end")
        stats = report_service.dashboard_stats(
            g.current_user,
            days=coerce_optional_int(request.args.get("days"), "days"),
            end=coerce_business_date(end, "end") if end else None,
            store_id=coerce_optional_int(request.args.get("store_id"), "store_id"),
        )
        return jsonify(stats), 200
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400
    except report_service.ReportAccessError as exc:
        return jsonify({"error": str(exc)}), 403
    except report_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400
