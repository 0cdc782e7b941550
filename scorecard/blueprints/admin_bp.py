"""
Strategic Scorecard Service
Admin blueprint: table console for the hierarchy tables.

Endpoints:
    GET    /api/v1/admin/<table>            paginated list
                                            ?page=&limit=&sort_column=&sort_direction=
                                            &search=&search_columns=a,b
    POST   /api/v1/admin/<table>            create (201)
    PUT    /api/v1/admin/<table>            update; id in body or ?id=
    DELETE /api/v1/admin/<table>?id=        delete one
    DELETE /api/v1/admin/<table>?bulk=true  delete {"ids": [...]} all-or-nothing
    GET    /api/v1/admin/options?type=      dropdown options (&pillar_id=&category_id=)
    GET    /api/v1/admin/progress-history   progress audit feed (&program_id=&limit=&page=)

Tables: pillars, categories, goals, programs, functional-programs.
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from scorecard.blueprints import json_body
from scorecard.core.exceptions import ValidationError
from scorecard.services import admin_service, table_service
from scorecard.utils.errors import register_error_handlers
from scorecard.utils.helpers import parse_bool, parse_int

logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin", __name__, url_prefix="/api/v1/admin")
register_error_handlers(admin_bp)


# ── Options & history ────────────────────────────────────────────────────────


@admin_bp.route("/options", methods=["GET"])
def get_options():
    option_type = request.args.get("type")
    if not option_type:
        raise ValidationError("type is required", details={"type": "missing"})
    options = admin_service.get_options(
        option_type,
        pillar_id=request.args.get("pillar_id"),
        category_id=request.args.get("category_id"),
    )
    return jsonify({"options": options})


@admin_bp.route("/progress-history", methods=["GET"])
def get_progress_history():
    history = admin_service.get_progress_history(
        program_id=request.args.get("program_id"),
        limit=parse_int(request.args.get("limit"), 50),
        page=parse_int(request.args.get("page"), 1),
    )
    return jsonify({"history": history})


# ═════════════════════════════════════════════════════════════════════════════
# Table CRUD
# ═════════════════════════════════════════════════════════════════════════════


@admin_bp.route("/<table>", methods=["GET"])
def list_rows(table):
    search_columns = request.args.get("search_columns")
    result = table_service.get_paginated_data(
        table,
        page=parse_int(request.args.get("page"), 1),
        limit=parse_int(request.args.get("limit"), table_service.DEFAULT_PAGE_LIMIT),
        sort_column=request.args.get("sort_column") or None,
        sort_direction=request.args.get("sort_direction") or "ASC",
        search=request.args.get("search"),
        search_columns=[c.strip() for c in search_columns.split(",") if c.strip()]
        if search_columns else None,
        max_limit=current_app.config["ADMIN_MAX_PAGE_LIMIT"],
    )
    return jsonify(result)


@admin_bp.route("/<table>", methods=["POST"])
def create_row(table):
    row = admin_service.create_row(table, json_body())
    return jsonify(row), 201


@admin_bp.route("/<table>", methods=["PUT"])
def update_row(table):
    data = dict(json_body())
    row_id = data.pop("id", None) or request.args.get("id")
    if not row_id:
        raise ValidationError("id is required", details={"id": "missing"})
    changed_by = data.pop("changed_by", None)
    row = admin_service.update_row(table, row_id, data, changed_by=changed_by)
    return jsonify(row)


@admin_bp.route("/<table>", methods=["DELETE"])
def delete_row(table):
    if parse_bool(request.args.get("bulk")):
        ids = json_body().get("ids")
        deleted = table_service.bulk_delete(table, ids)
        return jsonify({"success": True, "deleted": deleted})

    row_id = request.args.get("id")
    if not row_id:
        raise ValidationError("id is required", details={"id": "missing"})
    admin_service.delete_row(table, row_id)
    return jsonify({"success": True, "deleted": 1})
