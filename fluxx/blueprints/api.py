"""JSON API blueprint: /api/*

Thin handlers over the relational and credential stores. Every response
uses the same envelope: { success: true, data: ... } or
{ success: false, error: "..." }.

Route Map:
  GET  /api/accounts?referenceid=<ref>             active accounts for an agent
  GET  /api/pending-sales-orders?referenceid=<ref>  pending SO report page
  GET  /api/user?id=<user_id>                       user profile
  POST /api/activities                              persist an activity record
"""

import logging

from flask import Blueprint, jsonify, request

from fluxx.extensions import db
from fluxx.services import account_service, activity_service, report_service

api_bp = Blueprint("api", __name__, url_prefix="/api")

logger = logging.getLogger(__name__)


def _error(message, status):
    return jsonify(success=False, error=message), status


def _reference_id():
    """The owning agent, from ?referenceid= or its ?id= alias."""
    return (request.args.get("referenceid") or request.args.get("id") or "").strip()


# ──────────────────────────────────────────────
# GET /api/accounts?referenceid=<ref>
# ──────────────────────────────────────────────

@api_bp.route("/accounts", methods=["GET"])
def fetch_accounts():
    """Accounts owned by the agent, excluding those with status Inactive."""
    reference_id = _reference_id()
    logger.info(f"Fetching accounts for reference ID: {reference_id or '(none)'}")

    if not reference_id:
        return _error("Missing reference ID.", 400)

    try:
        accounts = account_service.fetch_active_accounts(reference_id)
    except Exception as e:
        logger.exception(f"Error fetching accounts for {reference_id}")
        return _error(str(e) or "Failed to fetch accounts.", 500)

    if not accounts:
        return _error("No accounts found with the provided reference ID.", 404)

    return jsonify(success=True, data=[a.to_dict() for a in accounts]), 200


# ──────────────────────────────────────────────
# GET /api/pending-sales-orders?referenceid=<ref>
# ──────────────────────────────────────────────

@api_bp.route("/pending-sales-orders", methods=["GET"])
def pending_sales_orders():
    """Pending SO report: date filter, amount sort, one page.

    Optional: start_date, end_date, page, per_page.
    """
    reference_id = _reference_id()
    if not reference_id:
        return _error("Missing reference ID.", 400)

    try:
        orders = account_service.fetch_pending_sales_orders(reference_id)
        report = report_service.build_report(
            [o.to_dict() for o in orders],
            start_date=request.args.get("start_date", ""),
            end_date=request.args.get("end_date", ""),
            page=request.args.get("page", 1),
            per_page=request.args.get("per_page", report_service.DEFAULT_PAGE_SIZE),
        )
    except Exception as e:
        logger.exception(f"Error fetching pending sales orders for {reference_id}")
        return _error(str(e) or "Failed to fetch sales orders.", 500)

    return jsonify(success=True, **report.to_dict()), 200


# ──────────────────────────────────────────────
# GET /api/user?id=<user_id>
# ──────────────────────────────────────────────

@api_bp.route("/user", methods=["GET"])
def fetch_user():
    user_id = (request.args.get("id") or "").strip()
    if not user_id:
        return _error("Missing user ID.", 400)

    try:
        user = account_service.get_user(user_id)
    except Exception as e:
        logger.exception(f"Error fetching user {user_id}")
        return _error(str(e) or "Failed to fetch user.", 500)

    if user is None:
        return _error("User not found.", 404)

    return jsonify(success=True, data=user.to_dict()), 200


# ──────────────────────────────────────────────
# POST /api/activities
# ──────────────────────────────────────────────

@api_bp.route("/activities", methods=["POST"])
def add_activity():
    """Persist one activity record.

    Expects the activity form payload as JSON. Failures come back as plain
    text, which the form shows as-is.
    """
    payload = request.get_json(silent=True)
    if not payload:
        return "Invalid request.", 400

    try:
        activity = activity_service.create_activity(payload)
        db.session.commit()
    except ValueError as e:
        db.session.rollback()
        return str(e), 400
    except Exception:
        db.session.rollback()
        logger.exception("Error saving activity")
        return "Failed to save activity.", 500

    logger.info(
        f"Activity logged: {activity.reference_id} {activity.activity_status} "
        f"({activity.start_date.isoformat()} to {activity.end_date.isoformat()})"
    )
    return jsonify(success=True, data=activity.to_dict()), 201
