from __future__ import annotations

import logging

from flask import Blueprint, Response, current_app, jsonify, request

from .comparison import describe_changes, diff
from .errors import SimulationError
from .expressions import ExpressionError, evaluate
from .overrides import OverrideStore
from .profiles import ProfileError, ProfileIdentity
from .simulation import build_plan
from .transfer import (
    ImportFormatError,
    export_debts_json,
    export_schedule_csv,
    import_debts_json,
    schedule_filename,
)


logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)


class PayloadError(ValueError):
    pass


def _payload() -> dict:
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        raise PayloadError("Payload must be an object")
    return data


def _error(message: str, status: int = 400):
    return jsonify({"error": message}), status


def _profiles():
    return current_app.extensions["debtplanner"]["profiles"]


def _plan(data: dict):
    debts = data.get("debts", [])
    if not isinstance(debts, list) or not all(isinstance(item, dict) for item in debts):
        raise PayloadError("debts must be a list of objects")
    try:
        overrides = OverrideStore.from_dict(data.get("overrides"))
    except ValueError as exc:
        raise PayloadError(str(exc)) from exc

    budget = data.get("budget", current_app.config["DEFAULT_BUDGET"])
    min_percent = data.get("minPercent", current_app.config["DEFAULT_MIN_PERCENT"])

    baseline = build_plan(debts, budget, min_percent)
    if overrides.is_empty():
        report = baseline
    else:
        report = build_plan(debts, budget, min_percent, overrides)
    logger.info(
        "Planned %d debts: %d months (baseline %d), %d edited months",
        len(report.original_columns),
        report.total_months,
        baseline.total_months,
        len(overrides.touched_months()),
    )
    return baseline, report, overrides


@api_bp.errorhandler(PayloadError)
@api_bp.errorhandler(SimulationError)
@api_bp.errorhandler(ImportFormatError)
@api_bp.errorhandler(ExpressionError)
@api_bp.errorhandler(ProfileError)
def handle_input_error(exc: ValueError):
    return _error(str(exc))


@api_bp.route("/plan", methods=["POST"])
def plan():
    baseline, report, overrides = _plan(_payload())
    comparison = diff(baseline, report, overrides)
    return jsonify(
        {
            "baseline": baseline.to_dict(),
            "report": report.to_dict(),
            "comparison": comparison.to_dict(),
            "summary": describe_changes(comparison, overrides),
        }
    )


@api_bp.route("/plan/csv", methods=["POST"])
def plan_csv():
    data = _payload()
    _, report, _ = _plan(data)
    return Response(
        export_schedule_csv(report).encode("utf-8"),
        mimetype="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename={schedule_filename(data.get('userName'))}"
        },
    )


@api_bp.route("/debts/import", methods=["POST"])
def import_debts():
    debts = import_debts_json(request.get_data(as_text=True))
    return jsonify(debts)


@api_bp.route("/debts/export", methods=["POST"])
def export_debts():
    debts = _payload().get("debts", [])
    if not isinstance(debts, list) or not all(isinstance(item, dict) for item in debts):
        raise PayloadError("debts must be a list of objects")
    return Response(
        export_debts_json(debts),
        mimetype="application/json",
        headers={"Content-Disposition": "attachment; filename=debts.json"},
    )


@api_bp.route("/evaluate", methods=["POST"])
def evaluate_expression():
    value = evaluate(_payload().get("expression"))
    return jsonify({"value": str(value)})


@api_bp.route("/profiles/<kind>/<path:identifier>", methods=["GET"])
def get_profile(kind: str, identifier: str):
    profile = _profiles().load(ProfileIdentity.parse(kind, identifier))
    if profile is None:
        return _error("Profile not found", 404)
    return jsonify(profile)


@api_bp.route("/profiles/<kind>/<path:identifier>", methods=["PUT"])
def save_profile(kind: str, identifier: str):
    data = _payload()
    profile = _profiles().save(
        ProfileIdentity.parse(kind, identifier),
        budget=data.get("budget"),
        min_percent=data.get("minPercent"),
        debts=data.get("debts"),
    )
    return jsonify(profile)
