"""Character-level accuracy for OCR evaluation

Texts are normalized before comparison (NFKC, lower case, punctuation and
whitespace removed) so that layout and punctuation differences between the
ground truth and the recognizer do not count as errors.
"""

import unicodedata
from typing import Dict, Tuple

import numpy as np

# ASCII and full-width punctuation, CJK brackets and a few symbols
PUNCTUATION = (
    "＂＃＄％＆＇（）＊＋，－．／：；＜＝＞？＠［＼］＾＿｀｛｜｝～"
    "·｜「」『』《》〈〉（）"
    ".,;:!?\"'()[]{}<>@#$%^&*-_=+|\\`~"
    "●"
)
WHITESPACE = " \t\n\r\f\v"

_REMOVE_TABLE = str.maketrans("", "", PUNCTUATION + WHITESPACE)


def normalize_text(text: str) -> str:
    """
    Normalize text for character accuracy

    Args:
        text: Raw text

    Returns:
        NFKC-normalized, lower-cased text without punctuation or whitespace
    """
    if not isinstance(text, str):
        return ""

    text = unicodedata.normalize("NFKC", text)
    text = text.lower()
    return text.translate(_REMOVE_TABLE)


def levenshtein_distance(ref: str, hyp: str) -> int:
    """
    Calculate Levenshtein distance between two strings

    Args:
        ref: Reference (ground truth) string
        hyp: Hypothesis (predicted) string

    Returns:
        Edit distance
    """
    if len(ref) == 0:
        return len(hyp)
    if len(hyp) == 0:
        return len(ref)

    matrix = np.zeros((len(ref) + 1, len(hyp) + 1), dtype=int)
    matrix[:, 0] = np.arange(len(ref) + 1)
    matrix[0, :] = np.arange(len(hyp) + 1)

    for i in range(1, len(ref) + 1):
        for j in range(1, len(hyp) + 1):
            cost = 0 if ref[i - 1] == hyp[j - 1] else 1
            matrix[i][j] = min(
                matrix[i - 1][j] + 1,         # deletion
                matrix[i][j - 1] + 1,         # insertion
                matrix[i - 1][j - 1] + cost,  # substitution
            )

    return int(matrix[len(ref)][len(hyp)])


def levenshtein_ops(ref: str, hyp: str) -> Tuple[int, int, int]:
    """
    Get operation counts from Levenshtein alignment

    Args:
        ref: Reference string
        hyp: Hypothesis string

    Returns:
        Tuple of (insertions, deletions, substitutions)
    """
    m, n = len(ref), len(hyp)
    dp = [[0] * (n + 1) for _ in range(m + 1)]

    for i in range(m + 1):
        dp[i][0] = i
    for j in range(n + 1):
        dp[0][j] = j

    for i in range(1, m + 1):
        for j in range(1, n + 1):
            if ref[i - 1] == hyp[j - 1]:
                dp[i][j] = dp[i - 1][j - 1]
            else:
                dp[i][j] = 1 + min(dp[i - 1][j], dp[i][j - 1], dp[i - 1][j - 1])

    i, j = m, n
    insertions = deletions = substitutions = 0

    while i > 0 or j > 0:
        if i > 0 and j > 0 and ref[i - 1] == hyp[j - 1]:
            i -= 1
            j -= 1
        elif i > 0 and j > 0 and dp[i][j] == dp[i - 1][j - 1] + 1:
            substitutions += 1
            i -= 1
            j -= 1
        elif i > 0 and dp[i][j] == dp[i - 1][j] + 1:
            deletions += 1
            i -= 1
        else:
            insertions += 1
            j -= 1

    return insertions, deletions, substitutions


def calculate_cer(reference: str, hypothesis: str) -> float:
    """
    Character Error Rate on already normalized text

    Args:
        reference: Ground truth text
        hypothesis: Predicted text

    Returns:
        CER as a fraction (may exceed 1.0 for long hypotheses)
    """
    if not reference:
        return 1.0 if hypothesis else 0.0

    return levenshtein_distance(reference, hypothesis) / len(reference)


def calculate_character_metrics(reference: str, hypothesis: str) -> Dict[str, float]:
    """
    Character accuracy and supporting counts for one image

    Args:
        reference: Ground truth text (raw)
        hypothesis: Recognized text (raw)

    Returns:
        Dictionary with ``character_accuracy`` in [0, 1], ``character_error_rate``
        and alignment details
    """
    ref_norm = normalize_text(reference)
    hyp_norm = normalize_text(hypothesis)

    if len(ref_norm) == 0:
        return {
            "character_accuracy": 1.0 if len(hyp_norm) == 0 else 0.0,
            "character_error_rate": 0.0 if len(hyp_norm) == 0 else 1.0,
            "reference_length": 0,
            "hypothesis_length": len(hyp_norm),
            "substitutions": 0,
            "insertions": len(hyp_norm),
            "deletions": 0,
        }

    cer = calculate_cer(ref_norm, hyp_norm)
    insertions, deletions, substitutions = levenshtein_ops(ref_norm, hyp_norm)

    return {
        "character_accuracy": max(0.0, 1.0 - cer),
        "character_error_rate": cer,
        "reference_length": len(ref_norm),
        "hypothesis_length": len(hyp_norm),
        "substitutions": substitutions,
        "insertions": insertions,
        "deletions": deletions,
    }
