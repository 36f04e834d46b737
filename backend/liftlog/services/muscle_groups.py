from __future__ import annotations

from liftlog.models import MUSCLE_GROUPS

# Checked in order; the first hit wins
_ALIASES: list[tuple[str, tuple[str, ...]]] = [
    ("Chest", ("chest", "pec")),
    ("Back", ("back", "lat")),
    ("Shoulders", ("shoulder", "delt")),
    ("Arms", ("arm", "bicep", "tricep")),
    ("Legs", ("leg", "quad", "ham", "glute", "calf")),
    ("Core", ("core", "ab")),
    ("Other", ("other",)),
]

_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("Chest", (
        "bench", "chest", "fly", "flye", "pec", "dip", "push-up", "pushup",
        "cable cross", "incline press", "decline press",
    )),
    ("Shoulders", (
        "shoulder", "delt", "ohp", "military", "overhead press", "lateral raise",
        "front raise", "rear delt", "arnold", "upright row",
    )),
    ("Back", (
        "deadlift", "row", "pull up", "pull-up", "pullup", "chin up", "chin-up", "chinup",
        "lat", "back", "pulldown", "pull down", "shrug", "hyperextension", "face pull", "reverse fly",
    )),
    # Leg curls and extensions would otherwise land in Arms
    ("Legs", ("leg curl", "leg extension", "hamstring", "nordic", "quad extension")),
    ("Arms", (
        "curl", "bicep", "tricep", "extension", "pushdown", "push down", "hammer",
        "preacher", "skullcrusher", "skull crusher", "kickback", "forearm", "wrist",
    )),
    ("Core", (
        "crunch", "sit-up", "situp", "plank", "ab ", "abs", "core", "oblique",
        "russian twist", "leg raise", "hanging", "wood chop",
    )),
    ("Legs", (
        "squat", "leg", "lunge", "calf", "glute", "ham", "quad", "hip", "rdl",
        "romanian", "step up", "split squat", "thrust", "bridge",
    )),
]

# Session label keyword -> muscle groups it usually trains
WORKOUT_TYPE_GROUPS: dict[str, tuple[str, ...]] = {
    "push": ("Chest", "Shoulders", "Arms"),
    "pull": ("Back", "Arms"),
    "leg": ("Legs",),
    "chest": ("Chest",),
    "back": ("Back",),
    "shoulder": ("Shoulders",),
    "arm": ("Arms",),
    "bicep": ("Arms",),
    "tricep": ("Arms",),
    "core": ("Core",),
    "ab": ("Core",),
    "upper": ("Chest", "Back", "Shoulders", "Arms"),
    "lower": ("Legs", "Core"),
    "full": ("Chest", "Back", "Shoulders", "Arms", "Legs", "Core"),
}


def normalize_muscle_group(value: str | None) -> str | None:
    """Map a loosely-worded group ("pecs", "Lats") onto the closed set, or None."""
    if not value or not value.strip():
        return None
    lowered = value.strip().lower()
    for group, aliases in _ALIASES:
        if any(a in lowered for a in aliases):
            return group
    for group in MUSCLE_GROUPS:
        if group.lower() == lowered:
            return group
    return None


def guess_muscle_group(exercise_name: str) -> str:
    lowered = exercise_name.lower()
    for group, keywords in _KEYWORDS:
        if any(k in lowered for k in keywords):
            return group
    # A bare "press" with no leg context is most likely a chest press
    if "press" in lowered and "leg" not in lowered:
        return "Chest"
    return "Other"


def groups_for_label(label: str) -> set[str]:
    lowered = label.lower()
    found: set[str] = set()
    for keyword, groups in WORKOUT_TYPE_GROUPS.items():
        if keyword in lowered:
            found.update(groups)
    return found
