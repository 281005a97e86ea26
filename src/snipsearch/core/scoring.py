"""String distance and weighted relevance scoring for fuzzy matching.

Scores produced here are only meaningful relative to each other within the
fuzzy family of strategies (fuzzy and semantic). They are clamped to [0, 1]
per field and normalized by field weight across fields.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Sequence

from snipsearch.core.text import escape_regex

# Field importance for the weighted aggregate. title > tags > description > code.
FIELD_WEIGHTS: Dict[str, float] = {
    "title": 3.0,
    "tags": 2.5,
    "description": 2.0,
    "code": 1.0,
    "content": 1.0,
}
DEFAULT_FIELD_WEIGHT = 1.0

START_BONUS = 0.2
WORD_BOUNDARY_BONUS = 0.1
PARTIAL_MATCH_FACTOR = 0.5


@dataclass
class FieldScore:
    """Score of one field for one item."""
    field: str
    score: float
    weight: float


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance with unit insert/delete/substitute costs.

    Uses the full len(a) x len(b) dynamic-programming matrix.
    """
    rows, cols = len(b) + 1, len(a) + 1
    matrix = [[0] * cols for _ in range(rows)]
    for i in range(rows):
        matrix[i][0] = i
    for j in range(cols):
        matrix[0][j] = j

    for i in range(1, rows):
        for j in range(1, cols):
            if b[i - 1] == a[j - 1]:
                matrix[i][j] = matrix[i - 1][j - 1]
            else:
                matrix[i][j] = min(
                    matrix[i - 1][j - 1] + 1,  # substitute
                    matrix[i][j - 1] + 1,      # insert
                    matrix[i - 1][j] + 1,      # delete
                )
    return matrix[rows - 1][cols - 1]


def calculate_similarity(a: str, b: str) -> float:
    """Normalized edit similarity in [0, 1]; 1.0 means identical.

    Empty inputs follow the same formula as non-empty ones: two empty
    strings are identical (1.0), one empty string shares nothing (0.0).
    """
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / longest


def calculate_partial_match(text: str, term: str) -> float:
    """Best fraction of positionally equal characters over term-sized windows.

    This is alignment at fixed offsets, not subsequence matching: "vue" vs
    "vae" scores 2/3, "vue" vs "uve" scores 1/3.
    """
    if not term or len(term) > len(text):
        return 0.0

    size = len(term)
    best = 0.0
    for start in range(len(text) - size + 1):
        matches = sum(1 for offset in range(size) if text[start + offset] == term[offset])
        best = max(best, matches / size)
        if best == 1.0:
            break
    return best


def calculate_fuzzy_score(text: str, terms: Sequence[str]) -> float:
    """Score how well the lower-cased query terms match one field's text.

    Literal hits contribute term/text length plus start and word-boundary
    bonuses; misses contribute half of their best partial match.
    """
    if not text:
        return 0.0

    text_lower = text.lower()
    score = 0.0

    for term in terms:
        if not term:
            continue
        if term in text_lower:
            score += len(term) / len(text)
            if text_lower.startswith(term):
                score += START_BONUS
            if re.search(r"\b" + escape_regex(term), text, re.IGNORECASE):
                score += WORD_BOUNDARY_BONUS
        else:
            score += calculate_partial_match(text_lower, term) * PARTIAL_MATCH_FACTOR

    return min(max(score, 0.0), 1.0)


def get_field_weight(field: str) -> float:
    return FIELD_WEIGHTS.get(field, DEFAULT_FIELD_WEIGHT)


def weighted_aggregate(scores: List[FieldScore]) -> float:
    """Weight-normalized mean over the fields that matched at all."""
    total_weight = sum(s.weight for s in scores)
    if total_weight <= 0:
        return 0.0
    return sum(s.score * s.weight for s in scores) / total_weight
