"""
Strategic Scorecard Service
Scorecard blueprint: ORD and functional trees plus inline field updates.

Endpoints:
    GET  /api/v1/scorecard[?quarter=q3_2025]               ORD tree
    POST /api/v1/scorecard/update                          field-path update → ORD tree
    GET  /api/v1/functional-scorecard[?function=&quarter=] functional tree
    GET  /api/v1/functional-scorecard/functions            distinct functions
    POST /api/v1/functional-scorecard/update               field-path update → functional tree

Update body:
    {"update_type": "program-objective",
     "field_path": ["pillar-001", "category-001", "goal-001", "program-001"],
     "new_value": "Ship v2",
     "quarter": "q3_2025",
     "changed_by": "jane@example.com"}
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from scorecard.blueprints import json_body
from scorecard.core.quarters import normalize_quarter
from scorecard.services import field_update_service, hierarchy_service
from scorecard.utils.errors import register_error_handlers

logger = logging.getLogger(__name__)

scorecard_bp = Blueprint("scorecard", __name__, url_prefix="/api/v1")
register_error_handlers(scorecard_bp)


def _selected_quarter():
    raw = request.args.get("quarter")
    if not raw:
        return None
    return normalize_quarter(raw, current_app.config["SCORECARD_DEFAULT_YEAR"])


def _update_args(data: dict) -> dict:
    return {
        "update_type": data.get("update_type") or data.get("type"),
        "field_path": data.get("field_path"),
        "new_value": data.get("new_value"),
        "quarter": data.get("quarter"),
        "changed_by": data.get("changed_by"),
    }


# ═════════════════════════════════════════════════════════════════════════════
# ORD scorecard
# ═════════════════════════════════════════════════════════════════════════════


@scorecard_bp.route("/scorecard", methods=["GET"])
def get_scorecard():
    return jsonify(hierarchy_service.get_scorecard_data(_selected_quarter()))


@scorecard_bp.route("/scorecard/update", methods=["POST"])
def update_scorecard():
    tree = field_update_service.perform_update(**_update_args(json_body()))
    return jsonify({"success": True, "data": tree})


# ═════════════════════════════════════════════════════════════════════════════
# Functional scorecard
# ═════════════════════════════════════════════════════════════════════════════


@scorecard_bp.route("/functional-scorecard", methods=["GET"])
def get_functional_scorecard():
    function = request.args.get("function") or None
    return jsonify(hierarchy_service.get_functional_scorecard_data(function, _selected_quarter()))


@scorecard_bp.route("/functional-scorecard/functions", methods=["GET"])
def list_functions():
    return jsonify({"functions": hierarchy_service.get_distinct_functions()})


@scorecard_bp.route("/functional-scorecard/update", methods=["POST"])
def update_functional_scorecard():
    tree = field_update_service.perform_functional_update(**_update_args(json_body()))
    return jsonify({"success": True, "data": tree})
