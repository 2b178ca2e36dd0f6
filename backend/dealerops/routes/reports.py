# Overview: Flask API routes for reports operations; parses input and returns JSON responses.

# backend/dealerops/routes/reports.py
"""
Report routes.

All reports are read-only aggregations over vehicles, expenses and ARB
records. Date filters are ISO dates (YYYY-MM-DD); bad input is a 400.

SECURITY:
- sales requires reports.weekly_profit_loss
- summary requires weekly or monthly profit & loss
- arbitration requires reports.arb_activity
- missing-titles requires reports.missing_titles
- profit-per-car requires reports.profit_per_car
"""
from flask import Blueprint, request, jsonify, current_app

from ..services import reporting_service
from ..services.reporting_service import ReportError
from ..decorators import require_auth, require_permission, require_any_permission

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _arg(name: str):
    return request.args.get(name) or None


def _run(label: str, fn, **kwargs):
    try:
        return jsonify({"data": fn(**kwargs)}), 200
    except ReportError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to build %s report", label)
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/sales")
@require_auth
@require_permission("reports.weekly_profit_loss")
def sales_report_route():
    """
    Sold vehicles grouped by ISO sale week.

    Query params: dateFrom, dateTo, location, buyerName, make, model
    """
    return _run(
        "sales",
        reporting_service.sales_report,
        date_from=_arg("dateFrom"),
        date_to=_arg("dateTo"),
        location=_arg("location"),
        buyer_name=_arg("buyerName"),
        make=_arg("make"),
        model=_arg("model"),
    )


@reports_bp.get("/summary")
@require_auth
@require_any_permission("reports.weekly_profit_loss", "reports.monthly_profit_loss")
def summary_report_route():
    """Query params: period (weekly|monthly, default weekly), dateFrom, dateTo"""
    return _run(
        "summary",
        reporting_service.summary_report,
        period=request.args.get("period", "weekly"),
        date_from=_arg("dateFrom"),
        date_to=_arg("dateTo"),
    )


@reports_bp.get("/arbitration")
@require_auth
@require_permission("reports.arb_activity")
def arbitration_report_route():
    return _run(
        "arbitration",
        reporting_service.arbitration_report,
        date_from=_arg("dateFrom"),
        date_to=_arg("dateTo"),
    )


@reports_bp.get("/missing-titles")
@require_auth
@require_permission("reports.missing_titles")
def missing_titles_route():
    """Query params: section (inventory|sold|arb|all, default all)"""
    return _run(
        "missing titles",
        reporting_service.missing_titles_report,
        section=_arg("section"),
    )


@reports_bp.get("/profit-per-car")
@require_auth
@require_permission("reports.profit_per_car")
def profit_per_car_route():
    """Query params: make, model, location, dateFrom, dateTo"""
    return _run(
        "profit per car",
        reporting_service.profit_per_car,
        make=_arg("make"),
        model=_arg("model"),
        location=_arg("location"),
        date_from=_arg("dateFrom"),
        date_to=_arg("dateTo"),
    )
