"""
Strategic Scorecard Service
Content blueprint: instruction pages as raw markdown.

Endpoints:
    GET /api/v1/markdown/<name>   text/plain; allowlisted names only
"""

import logging
import os

from flask import Blueprint, Response, current_app, jsonify

logger = logging.getLogger(__name__)

content_bp = Blueprint("content", __name__, url_prefix="/api/v1")

ALLOWED_DOCUMENTS = frozenset({"main-instructions", "ai-usage", "ooda-ai-integration"})


@content_bp.route("/markdown/<name>", methods=["GET"])
def get_markdown(name):
    stem = name[:-3] if name.endswith(".md") else name
    if stem not in ALLOWED_DOCUMENTS:
        return jsonify({"error": "Document not found"}), 404

    path = os.path.join(current_app.config["INSTRUCTIONS_DIR"], f"{stem}.md")
    try:
        with open(path, encoding="utf-8") as f:
            body = f.read()
    except OSError as exc:
        logger.warning("Cannot read markdown document %s: %s", path, exc)
        return jsonify({"error": "Document not found"}), 404
    return Response(body, mimetype="text/plain")
