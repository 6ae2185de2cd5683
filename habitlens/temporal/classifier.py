"""Keyword heuristics mapping suggestion text to pattern types and labels.

Each pattern type has a relevance test (does this suggestion touch the
construct at all?) and an ordered list of labels (which variant of the
construct is it?). The first matching label wins; relevant text with no
matching label is labelled ``unknown``.

Matching is plain case-insensitive substring search. The detector only
depends on the ``PatternClassifier`` protocol, so a tokenizer-based
classifier can replace this one without touching windowing or detection.
"""

from __future__ import annotations

from typing import Protocol

UNKNOWN_PATTERN = "unknown"

PATTERN_TYPES: tuple[str, ...] = (
    "variable_declaration",  # var -> let/const
    "function_syntax",  # function() -> arrow functions
    "import_style",  # require() -> import
    "async_patterns",  # callbacks -> promises -> async/await
    "error_handling",
    "testing_approach",
)


class PatternClassifier(Protocol):
    def is_relevant(self, text: str, pattern_type: str) -> bool: ...

    def classify(self, text: str, pattern_type: str) -> str: ...


# ---------------------------------------------------------------------------
# Keyword tables
# ---------------------------------------------------------------------------

_RELEVANCE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "variable_declaration": ("var ", "let ", "const "),
    "function_syntax": ("function", "=>", "arrow"),
    "import_style": ("import", "require", "from"),
    "async_patterns": ("async", "await", "promise", "callback"),
    "error_handling": ("try", "catch", "throw", "error"),
    "testing_approach": ("test", "expect", "assert", "mock"),
}

# (label, keywords) in priority order. Types without entries only ever
# produce UNKNOWN_PATTERN.
_LABEL_RULES: dict[str, tuple[tuple[str, tuple[str, ...]], ...]] = {
    "variable_declaration": (
        ("const", ("const ",)),
        ("let", ("let ",)),
        ("var", ("var ",)),
    ),
    "function_syntax": (
        ("arrow", ("=>",)),
        ("function", ("function",)),
    ),
    "import_style": (
        ("import", ("import",)),
        ("require", ("require",)),
    ),
    "async_patterns": (
        ("async_await", ("async", "await")),
        ("promise", ("promise",)),
        ("callback", ("callback",)),
    ),
}


# ---------------------------------------------------------------------------
# Classifier
# ---------------------------------------------------------------------------


class KeywordPatternClassifier:
    """Substring-based classifier over the fixed keyword tables."""

    def is_relevant(self, text: str, pattern_type: str) -> bool:
        keywords = _RELEVANCE_KEYWORDS.get(pattern_type, ())
        lowered = text.lower()
        return any(k in lowered for k in keywords)

    def classify(self, text: str, pattern_type: str) -> str:
        lowered = text.lower()
        for label, keywords in _LABEL_RULES.get(pattern_type, ()):
            if any(k in lowered for k in keywords):
                return label
        return UNKNOWN_PATTERN
