"""
Strategic Scorecard Service
Alignment blueprint: links between functional and ORD nodes.

Endpoints:
    GET    /api/v1/alignments?type=&id=[&source=]   edges touching one node
    POST   /api/v1/alignments                       create (201)
    PATCH  /api/v1/alignments?id=                   update strength / rationale
    DELETE /api/v1/alignments?id=                   delete
    POST   /api/v1/alignments/bulk                  {"alignments": [...]}
    PATCH  /api/v1/alignments/bulk                  {"updates": [{"id", ...}]}
    DELETE /api/v1/alignments/bulk                  {"ids": [...]}
    GET    /api/v1/alignments/search?q=             link candidates (&exclude_type=&exclude_id=)
    GET    /api/v1/alignments/count?type=&id=       edge count
    GET    /api/v1/alignments/hierarchy             both trees, light view
    GET    /api/v1/alignments/all[?limit=]          recent edges
    GET    /api/v1/alignments/unaligned             nodes without edges

Bulk responses are 200 when every item succeeded and 207 otherwise.
"""

import logging

from flask import Blueprint, jsonify, request

from scorecard.blueprints import json_body
from scorecard.core.exceptions import ValidationError
from scorecard.services import alignment_service, hierarchy_service
from scorecard.utils.errors import register_error_handlers
from scorecard.utils.helpers import parse_int

logger = logging.getLogger(__name__)

alignment_bp = Blueprint("alignment", __name__, url_prefix="/api/v1/alignments")
register_error_handlers(alignment_bp)


def _required_arg(name: str) -> str:
    value = request.args.get(name)
    if not value:
        raise ValidationError(f"{name} is required", details={name: "missing"})
    return value


def _bulk_response(result: dict):
    return jsonify(result), 200 if result["success"] else 207


# ═════════════════════════════════════════════════════════════════════════════
# Single edge
# ═════════════════════════════════════════════════════════════════════════════


@alignment_bp.route("", methods=["GET"])
def get_alignments():
    alignments = alignment_service.get_alignments(
        _required_arg("type"), _required_arg("id"), request.args.get("source"),
    )
    return jsonify({"alignments": alignments})


@alignment_bp.route("", methods=["POST"])
def create_alignment():
    return jsonify(alignment_service.create_alignment(json_body())), 201


@alignment_bp.route("", methods=["PATCH"])
def update_alignment():
    data = json_body()
    alignment_id = request.args.get("id") or data.get("id")
    if alignment_id is None:
        raise ValidationError("id is required", details={"id": "missing"})
    return jsonify(alignment_service.update_alignment(alignment_id, data))


@alignment_bp.route("", methods=["DELETE"])
def delete_alignment():
    alignment_service.delete_alignment(_required_arg("id"))
    return jsonify({"success": True})


# ═════════════════════════════════════════════════════════════════════════════
# Bulk
# ═════════════════════════════════════════════════════════════════════════════


@alignment_bp.route("/bulk", methods=["POST"])
def bulk_create():
    return _bulk_response(alignment_service.bulk_create_alignments(json_body().get("alignments")))


@alignment_bp.route("/bulk", methods=["PATCH"])
def bulk_update():
    return _bulk_response(alignment_service.bulk_update_alignments(json_body().get("updates")))


@alignment_bp.route("/bulk", methods=["DELETE"])
def bulk_delete():
    return _bulk_response(alignment_service.bulk_delete_alignments(json_body().get("ids")))


# ═════════════════════════════════════════════════════════════════════════════
# Lookups
# ═════════════════════════════════════════════════════════════════════════════


@alignment_bp.route("/search", methods=["GET"])
def search():
    results = alignment_service.search_alignment_targets(
        request.args.get("q", ""),
        exclude_type=request.args.get("exclude_type"),
        exclude_id=request.args.get("exclude_id"),
    )
    return jsonify({"results": results})


@alignment_bp.route("/count", methods=["GET"])
def count():
    total = alignment_service.get_alignment_count(
        _required_arg("type"), _required_arg("id"), request.args.get("source"),
    )
    return jsonify({"count": total})


@alignment_bp.route("/hierarchy", methods=["GET"])
def hierarchy():
    return jsonify(hierarchy_service.get_alignment_hierarchy())


@alignment_bp.route("/all", methods=["GET"])
def list_all():
    alignments = alignment_service.list_alignments(parse_int(request.args.get("limit"), 100))
    return jsonify({"alignments": alignments, "total": len(alignments)})


@alignment_bp.route("/unaligned", methods=["GET"])
def unaligned():
    return jsonify(alignment_service.get_unaligned_items())
