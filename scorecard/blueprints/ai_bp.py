"""
Strategic Scorecard Service
AI assist blueprint.

Endpoints:
    POST /api/v1/chat
        JSON      {"messages": [...], "context": {...}, "flow": "chat"}
                  {"flow": "compare-goals", "goals": [...], "prompt": "..."}
        multipart prompt, program_context, files[]   → reprioritize flow
    POST /api/v1/generate-update
        JSON or multipart: content, instructions, program_context, files[]

Upstream model failures map to 502.
"""

import logging

from flask import Blueprint, jsonify, request

from scorecard.ai.gateway import LLMUpstreamError
from scorecard.ai.prompts import FLOW_CHAT, FLOW_COMPARE_GOALS
from scorecard.blueprints import json_body, read_uploaded_texts
from scorecard.services import chat_service
from scorecard.utils.errors import E, api_error, register_error_handlers

logger = logging.getLogger(__name__)

ai_bp = Blueprint("ai", __name__, url_prefix="/api/v1")
register_error_handlers(ai_bp)


@ai_bp.errorhandler(LLMUpstreamError)
def _handle_upstream(error: LLMUpstreamError):
    logger.error("AI request failed upstream: %s", error)
    return api_error(E.UPSTREAM, "AI provider request failed")


def _is_multipart() -> bool:
    return "multipart/form-data" in (request.content_type or "")


@ai_bp.route("/chat", methods=["POST"])
def chat():
    if _is_multipart():
        result = chat_service.reprioritize(
            request.form.get("prompt"),
            request.form.get("program_context") or request.form.get("programContext"),
            read_uploaded_texts(),
        )
        return jsonify(result)

    data = json_body()
    flow = data.get("flow") or FLOW_CHAT
    if flow == FLOW_COMPARE_GOALS and "goals" in data:
        result = chat_service.compare_goals(data["goals"], data.get("prompt"), data.get("context"))
    else:
        result = chat_service.chat(data.get("messages"), data.get("context"), flow=flow)
    return jsonify(result)


@ai_bp.route("/generate-update", methods=["POST"])
def generate_update():
    if _is_multipart():
        fields = request.form
        attachments = read_uploaded_texts()
    else:
        fields = json_body()
        attachments = None
    result = chat_service.generate_progress_update(
        content=fields.get("content"),
        instructions=fields.get("instructions"),
        program_context=fields.get("program_context") or fields.get("programContext"),
        attachments=attachments,
    )
    return jsonify(result)
