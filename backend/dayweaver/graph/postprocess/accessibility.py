import math
from typing import Mapping, Optional

from dayweaver.models.entities import AccessibilityAttributes, AccessibilityInput

# Weights sum to 1
WEIGHTS = {
    "entrance": 0.40,
    "restroom": 0.25,
    "parking": 0.20,
    "seating": 0.15,
}


def compute_accessibility_score(attrs: AccessibilityInput) -> Optional[int]:
    """
    Collapse wheelchair-accessibility attributes into a 0-100 score.

    Only attributes with a known value count; the score is normalised over the
    weight of those attributes. Returns None when nothing is known, which is
    "no data", not "inaccessible".
    """
    if attrs is None:
        return None
    if isinstance(attrs, AccessibilityAttributes):
        values: Mapping[str, Optional[bool]] = attrs.model_dump()
    else:
        values = attrs

    score = 0.0
    total_weight = 0.0
    for key, weight in WEIGHTS.items():
        value = values.get(key)
        if value is None:
            continue
        total_weight += weight
        score += weight * (1 if value else 0)

    if total_weight == 0:
        return None

    normalized = 100 * score / total_weight
    # half-up, not banker's rounding
    return max(0, min(100, int(math.floor(normalized + 0.5))))
