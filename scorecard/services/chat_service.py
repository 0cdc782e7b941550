"""AI assist service: chat flows and progress-update drafting.

Every flow builds ``[system, *messages]`` where the system message is the
flow's markdown prompt followed by the scorecard context serialised as
JSON and bounded to ``CHAT_CONTEXT_MAX_CHARS``.  The LLM call goes through
the app-wide ``LLMGateway``; nothing here talks to a provider directly.
"""
import json
import logging

from flask import current_app

from scorecard.ai.gateway import LLMGateway
from scorecard.ai.prompts import (
    CHAT_FLOWS,
    COMPARE_GOALS_TEMPLATE,
    FLOW_CHAT,
    FLOW_COMPARE_GOALS,
    FLOW_PROGRESS_UPDATE,
    FLOW_REPRIORITIZE,
    PROGRESS_UPDATE_TEMPLATE,
    REPRIORITIZE_TEMPLATE,
    PromptLibrary,
)
from scorecard.core.exceptions import ValidationError
from scorecard.utils.helpers import truncate

logger = logging.getLogger(__name__)

CHAT_ROLES = ("user", "assistant")
TRUNCATION_MARKER = "...[truncated]"


# ── App-scoped singletons ────────────────────────────────────────────────────

def get_gateway() -> LLMGateway:
    if not hasattr(current_app, "_ai_gateway"):
        current_app._ai_gateway = LLMGateway(
            api_key=current_app.config.get("OPENAI_API_KEY"),
            default_model=current_app.config["LLM_DEFAULT_CHAT_MODEL"],
            temperature=current_app.config["LLM_TEMPERATURE"],
        )
    return current_app._ai_gateway


def get_prompt_library() -> PromptLibrary:
    if not hasattr(current_app, "_prompt_library"):
        current_app._prompt_library = PromptLibrary(current_app.config.get("PROMPTS_DIR"))
    return current_app._prompt_library


# ── Message assembly ─────────────────────────────────────────────────────────

def validate_messages(messages) -> list[dict]:
    """Return a clean copy of the conversation or raise ValidationError."""
    if not isinstance(messages, list) or not messages:
        raise ValidationError("messages must be a non-empty list", details={"messages": "invalid"})
    clean = []
    for index, message in enumerate(messages):
        if not isinstance(message, dict):
            raise ValidationError(f"messages[{index}] must be an object")
        role = message.get("role")
        content = message.get("content")
        if role not in CHAT_ROLES:
            raise ValidationError(
                f"messages[{index}].role must be one of {', '.join(CHAT_ROLES)}",
                details={"index": index, "role": role},
            )
        if not isinstance(content, str):
            raise ValidationError(
                f"messages[{index}].content must be a string", details={"index": index},
            )
        clean.append({"role": role, "content": content})
    return clean


def serialize_context(context, max_chars: int | None = None) -> str:
    if max_chars is None:
        max_chars = current_app.config["CHAT_CONTEXT_MAX_CHARS"]
    text = json.dumps(context if context is not None else {}, default=str)
    return truncate(text, max_chars, TRUNCATION_MARKER)


def build_system_message(flow: str, context) -> dict:
    prompt = get_prompt_library().system_prompt(flow)
    return {
        "role": "system",
        "content": f"{prompt}\n\nHere is the context of the scorecard data: {serialize_context(context)}",
    }


def _attachments_text(attachments) -> str:
    """``[(filename, text), ...]`` → one block with per-file headers."""
    return "\n".join(
        f"--- Content from {name} ---\n{text}\n" for name, text in (attachments or [])
    )


def _block(label: str, value) -> str:
    return f"{label}{value}\n\n" if value else ""


def build_reprioritization_message(prompt: str | None, program_context: str | None,
                                   attachments=None) -> str:
    return REPRIORITIZE_TEMPLATE.render(
        request_block=_block("User Request: ", prompt),
        context_block=_block("Strategic Program Context: ", program_context),
        attachments_block=_block("Attached Documents:\n", _attachments_text(attachments)),
    )


def build_comparison_message(goals, prompt: str | None = None) -> str:
    """Render the compare-goals request.

    ``goals`` is a list of goal dicts (as found in the scorecard tree) or
    plain strings; at least two are required.
    """
    if not isinstance(goals, list) or len(goals) < 2:
        raise ValidationError("At least two goals are required for a comparison")
    lines = []
    for index, goal in enumerate(goals, start=1):
        if isinstance(goal, dict):
            label = goal.get("text") or goal.get("name") or goal.get("id") or "?"
            lines.append(f"{index}. {label} (id: {goal.get('id', '-')}, status: {goal.get('status') or '-'})")
        else:
            lines.append(f"{index}. {goal}")
    return COMPARE_GOALS_TEMPLATE.render(
        request_block=_block("User Request: ", prompt),
        goals="\n".join(lines),
    )


def _parse_context(raw):
    if raw is None or isinstance(raw, (dict, list)):
        return raw or {}
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return {"program_context": raw}


# ── Flows ────────────────────────────────────────────────────────────────────

def chat(messages, context=None, flow: str = FLOW_CHAT) -> dict:
    """Run one chat turn for ``flow``.

    Returns:
        {"response": str, "flow": str, "is_reprioritization": bool, "model": str}

    Raises:
        ValidationError: unknown flow or malformed messages.
        LLMUpstreamError: the provider failed after retries.
    """
    if flow not in CHAT_FLOWS:
        raise ValidationError(
            f"Unknown flow: {flow}", details={"flow": flow, "allowed": list(CHAT_FLOWS)},
        )
    conversation = validate_messages(messages)
    system = build_system_message(flow, context)

    result = get_gateway().chat([system, *conversation], purpose=flow)
    return {
        "response": result["content"],
        "flow": flow,
        "is_reprioritization": flow == FLOW_REPRIORITIZE,
        "model": result["model"],
    }


def reprioritize(prompt, program_context, attachments=None) -> dict:
    """Multipart reprioritisation request → chat turn on the reprioritize flow."""
    message = build_reprioritization_message(prompt, program_context, attachments)
    return chat(
        [{"role": "user", "content": message}],
        context=_parse_context(program_context),
        flow=FLOW_REPRIORITIZE,
    )


def compare_goals(goals, prompt=None, context=None) -> dict:
    message = build_comparison_message(goals, prompt)
    return chat([{"role": "user", "content": message}], context=context, flow=FLOW_COMPARE_GOALS)


def generate_progress_update(content=None, instructions=None, program_context=None,
                             attachments=None) -> dict:
    """Draft or improve a program's progress update.

    Returns:
        {"success": True, "update": str}
    """
    if not any((content, instructions, program_context, attachments)):
        raise ValidationError("Provide content, instructions, program context or files")
    user_message = PROGRESS_UPDATE_TEMPLATE.render(
        content_block=_block("Current progress update content:\n", content),
        instructions_block=_block("User instructions:\n", instructions),
        context_block=_block("Strategic program context:\n", program_context),
        attachments_block=_block("Attached documents:\n", _attachments_text(attachments)),
    )
    messages = [
        {"role": "system", "content": get_prompt_library().system_prompt(FLOW_PROGRESS_UPDATE)},
        {"role": "user", "content": user_message},
    ]
    result = get_gateway().chat(messages, purpose=FLOW_PROGRESS_UPDATE)
    logger.info("Generated progress update (%d chars)", len(result["content"]))
    return {"success": True, "update": result["content"]}
