# Overview: Flask API routes for reports and report exports.

"""
Report routes.

Period parameters (sales report and exports):
- start, end: YYYY-MM-DD, inclusive (end covers the whole day)
- days: rolling window ending today when start/end are absent (default 30)
- cost_basis: "current" (default) or "historical"

Storage failures surface as 503 {"error", "retryable": true} through the
application-wide DataUnavailableError handler, never as an empty report.
"""

from io import BytesIO

from flask import Blueprint, g, jsonify, request, send_file

from ..decorators import require_auth
from ..services import export_service, reporting_service
from ..services.aggregation import COST_BASIS_CURRENT
from ..services.reporting_service import ReportError


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _days_arg(default: int | None = None) -> int | None:
    days = request.args.get("days")
    if days is None:
        return default
    try:
        return int(days)
    except ValueError:
        raise ReportError("days must be an integer")


def _period_args() -> dict:
    days = _days_arg()
    return {
        "start": request.args.get("start") or None,
        "end": request.args.get("end") or None,
        "days": days,
        "cost_basis": request.args.get("cost_basis", COST_BASIS_CURRENT),
    }


@reports_bp.get("/sales")
@require_auth
def sales_report():
    try:
        report = reporting_service.sales_report(g.company_id, **_period_args())
    except ReportError as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify(report), 200


@reports_bp.get("/expiry")
@require_auth
def expiry_report():
    return jsonify(reporting_service.expiry_report(g.company_id)), 200


@reports_bp.get("/stock")
@require_auth
def stock_report():
    return jsonify(reporting_service.stock_report(g.company_id)), 200


@reports_bp.get("/daily-sales")
@require_auth
def daily_sales():
    try:
        items = reporting_service.daily_sales(g.company_id, days=_days_arg(7))
    except ReportError as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify({"items": items}), 200


@reports_bp.get("/dashboard")
@require_auth
def dashboard():
    return jsonify(reporting_service.dashboard(g.company_id)), 200


def _send(export: export_service.ExportFile):
    return send_file(
        BytesIO(export.content),
        mimetype=export.mimetype,
        as_attachment=True,
        download_name=export.filename,
    )


@reports_bp.get("/export/pdf")
@require_auth
def export_pdf():
    try:
        stats, _, _ = reporting_service.build_statistics(g.company_id, **_period_args())
    except ReportError as exc:
        return jsonify({"error": str(exc)}), 400
    return _send(export_service.export_pdf(stats))


@reports_bp.get("/export/excel")
@require_auth
def export_excel():
    try:
        stats, products, movements = reporting_service.build_statistics(g.company_id, **_period_args())
    except ReportError as exc:
        return jsonify({"error": str(exc)}), 400
    return _send(export_service.export_excel(stats, products, movements))
