"""
Strategic Scorecard Service
Prompt library.

System prompts are plain markdown files in ``PROMPTS_DIR``; a built-in
default is used for any file that is missing.  User messages for the
structured flows are ``PromptTemplate`` objects rendered with
``{{variable}}`` substitution.

Usage:
    from scorecard.ai.prompts import PromptLibrary, REPRIORITIZE_TEMPLATE
    library = PromptLibrary("prompts/")
    system = library.system_prompt("reprioritize")
    user = REPRIORITIZE_TEMPLATE.render(prompt="Focus on Q3", ...)
"""

import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)


# ── Flow → prompt file ────────────────────────────────────────────────────────

FLOW_CHAT = "chat"
FLOW_REPRIORITIZE = "reprioritize"
FLOW_COMPARE_GOALS = "compare-goals"
FLOW_AI_FLOWS = "ai-flows"
FLOW_PROGRESS_UPDATE = "progress-update"

CHAT_FLOWS = (FLOW_CHAT, FLOW_REPRIORITIZE, FLOW_COMPARE_GOALS, FLOW_AI_FLOWS)

PROMPT_FILES = {
    FLOW_CHAT: "chat-system-prompt.md",
    FLOW_REPRIORITIZE: "reprioritize-goals-system-prompt.md",
    FLOW_COMPARE_GOALS: "compare-goals-system-prompt.md",
    FLOW_AI_FLOWS: "ai-flows-system-prompt.md",
    FLOW_PROGRESS_UPDATE: "progress-updates-system-prompt.md",
}

_DEFAULT_PROMPTS = {
    FLOW_CHAT: (
        "You are a strategic planning assistant. Answer questions about the "
        "scorecard: pillars, categories, strategic goals, programs, their "
        "quarterly objectives, statuses and sponsors. Only use the data in the "
        "supplied context and say so when the answer is not in it."
    ),
    FLOW_REPRIORITIZE: (
        "You help reprioritize the quarterly objectives of one strategic "
        "program. Propose a revised order with a short rationale per quarter "
        "and call out dependencies and risks."
    ),
    FLOW_COMPARE_GOALS: (
        "You compare strategic goals. Identify overlap, gaps and conflicts "
        "between them, and suggest where programs could be consolidated."
    ),
    FLOW_AI_FLOWS: (
        "You run guided analyses over the scorecard such as status roll-ups, "
        "risk scans and sponsor workload summaries. Be concise and cite the "
        "programs you refer to by name."
    ),
    FLOW_PROGRESS_UPDATE: (
        "You write progress updates for strategic programs. Produce a short, "
        "factual progress update in plain prose: what was achieved, what is "
        "next and any blockers. Keep the author's facts; do not invent dates."
    ),
}


class PromptTemplate:
    """A user-message template with ``{{var}}`` placeholders."""

    def __init__(self, name: str, template: str):
        self.name = name
        self.template = template

    def render(self, **variables) -> str:
        return self._substitute(self.template, variables).strip()

    @staticmethod
    def _substitute(template: str, variables: dict) -> str:
        """Replace {{var}} placeholders with values; unknown names render empty."""
        def replacer(match):
            key = match.group(1).strip()
            value = variables.get(key)
            return "" if value is None else str(value)
        return re.sub(r'\{\{(\s*\w+\s*)\}\}', replacer, template)


class PromptLibrary:
    """
    Loads the markdown system prompts once per instance.

    Files are read from ``prompts_dir``; anything missing or unreadable is
    replaced by the built-in default for that flow.
    """

    def __init__(self, prompts_dir: str | None = None):
        self._prompts_dir = Path(prompts_dir) if prompts_dir else None
        self._prompts: dict[str, str] = dict(_DEFAULT_PROMPTS)
        self._load_from_dir()

    def _load_from_dir(self):
        if self._prompts_dir is None or not self._prompts_dir.is_dir():
            logger.info("Prompts directory not found: %s. Using defaults only.", self._prompts_dir)
            return
        for flow, filename in PROMPT_FILES.items():
            path = self._prompts_dir / filename
            if not path.is_file():
                logger.info("Prompt file %s missing, using default", filename)
                continue
            try:
                text = path.read_text(encoding="utf-8").strip()
            except OSError as e:
                logger.error("Failed to load prompt %s: %s", filename, e)
                continue
            if text:
                self._prompts[flow] = text
                logger.debug("Loaded prompt %s from %s", flow, path)

    def system_prompt(self, flow: str) -> str:
        """Return the system prompt for ``flow``; raises KeyError for unknown flows."""
        return self._prompts[flow]

    def list_flows(self) -> list[str]:
        return sorted(self._prompts)


# ── User message templates ───────────────────────────────────────────────────

REPRIORITIZE_TEMPLATE = PromptTemplate(
    "reprioritize",
    "Please analyze and reprioritize the quarterly objectives for this strategic program.\n\n"
    "{{request_block}}"
    "{{context_block}}"
    "{{attachments_block}}",
)

COMPARE_GOALS_TEMPLATE = PromptTemplate(
    "compare-goals",
    "Please compare the following strategic goals.\n\n"
    "{{request_block}}"
    "Goals:\n{{goals}}\n",
)

PROGRESS_UPDATE_TEMPLATE = PromptTemplate(
    "progress-update",
    "{{content_block}}"
    "{{instructions_block}}"
    "{{context_block}}"
    "{{attachments_block}}"
    "Please generate or improve the progress update based on the provided information.",
)
