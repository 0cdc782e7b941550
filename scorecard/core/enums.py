"""
Shared closed vocabularies.

Every enum-like value the API validates lives here: hierarchy node types,
alignment strengths, statuses, tracked quarters and the quarterly column
map.  Blueprints and services import from this module; nothing else
defines its own copy.

Usage:
    from scorecard.core.enums import ALIGNMENT_STRENGTHS, quarter_column_name
"""

# ── Hierarchy ────────────────────────────────────────────────────────────────

NODE_TYPES = ("pillar", "category", "goal", "program")

SOURCE_ORD = "ord"
SOURCE_FUNCTIONAL = "functional"
SOURCES = (SOURCE_ORD, SOURCE_FUNCTIONAL)

# ── Alignment ────────────────────────────────────────────────────────────────

ALIGNMENT_STRENGTHS = ("strong", "moderate", "weak", "informational")

DEFAULT_CREATED_BY = "system"
BULK_CREATED_BY = "bulk-import"

# ── Status ───────────────────────────────────────────────────────────────────

STATUS_EXCEEDED = "exceeded"
STATUS_ON_TRACK = "on-track"
STATUS_DELAYED = "delayed"
STATUS_MISSED = "missed"

STATUSES = (STATUS_EXCEEDED, STATUS_ON_TRACK, STATUS_DELAYED, STATUS_MISSED)

STATUS_LABELS = {
    STATUS_EXCEEDED: "Exceeded",
    STATUS_ON_TRACK: "On Track",
    STATUS_DELAYED: "Delayed",
    STATUS_MISSED: "Missed",
}

# Blue / Red / Amber / Green spreadsheet colours → internal status
BRAG_STATUS_MAP = {
    "green": STATUS_ON_TRACK,
    "blue": STATUS_EXCEEDED,
    "amber": STATUS_DELAYED,
    "red": STATUS_MISSED,
}

# ── Quarters ─────────────────────────────────────────────────────────────────

TRACKED_YEARS = (2025, 2026)
QUARTER_NUMBERS = (1, 2, 3, 4)

# "q1_2025" … "q4_2026", chronological
QUARTER_KEYS = tuple(
    f"q{q}_{year}" for year in TRACKED_YEARS for q in QUARTER_NUMBERS
)

KIND_OBJECTIVE = "objective"
KIND_STATUS = "status"
KIND_PROGRESS = "progress"
QUARTER_FIELD_KINDS = (KIND_OBJECTIVE, KIND_STATUS, KIND_PROGRESS)

# Goals track objective + status; programs add per-quarter progress.
GOAL_QUARTER_KINDS = (KIND_OBJECTIVE, KIND_STATUS)
PROGRAM_QUARTER_KINDS = (KIND_OBJECTIVE, KIND_STATUS, KIND_PROGRESS)

# (quarter_key, kind) → column name.  The only way a quarter reaches SQL.
QUARTER_COLUMNS = {
    (quarter, kind): f"{quarter}_{kind}"
    for quarter in QUARTER_KEYS
    for kind in QUARTER_FIELD_KINDS
}

GOAL_QUARTER_COLUMNS = tuple(
    QUARTER_COLUMNS[(q, k)] for q in QUARTER_KEYS for k in GOAL_QUARTER_KINDS
)
PROGRAM_QUARTER_COLUMNS = tuple(
    QUARTER_COLUMNS[(q, k)] for q in QUARTER_KEYS for k in PROGRAM_QUARTER_KINDS
)


def quarter_column_name(quarter_key: str, kind: str) -> str:
    """Return the column for a normalised quarter key and field kind.

    Raises KeyError for anything outside the closed map; callers translate
    that into a ValidationError.
    """
    return QUARTER_COLUMNS[(quarter_key, kind)]


# ── Field-path update types ──────────────────────────────────────────────────

ORD_UPDATE_TYPES = (
    "program",
    "program-text",
    "program-objective",
    "program-progress",
    "program-quarter-progress",
    "category",
    "category-name",
    "goal",
    "goal-quarter",
    "goal-text",
)

FUNCTIONAL_UPDATE_TYPES = (
    "functional-program",
    "functional-program-text",
    "functional-program-objective",
    "functional-program-progress",
    "functional-program-quarter-progress",
)

# ── Admin console ────────────────────────────────────────────────────────────

ID_PREFIXES = {
    "pillars": "pillar",
    "categories": "category",
    "goals": "goal",
    "programs": "program",
    "functional-programs": "functional",
}

ADMIN_TABLES = tuple(ID_PREFIXES)

# Alignment node type a row of each admin table is linked as
NODE_TYPE_BY_TABLE = {
    "pillars": "pillar",
    "categories": "category",
    "goals": "goal",
    "programs": "program",
    "functional-programs": "program",
}

OPTION_TYPES = ("pillars", "categories", "goals", "status-options")
