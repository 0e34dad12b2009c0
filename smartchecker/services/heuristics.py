"""
Heuristic rule table for the local lint engine.

Each entry maps a pattern (or a named line predicate) to the diagnostic it
produces. The character-level scanners in `local_linter` decide *where* a rule
may run (code context only, per line, basic mode); the rules themselves stay
small and testable on plain strings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import FrozenSet, Optional, Pattern

from ..models.linting import Diagnostic, FileType, LintSeverity

LOCAL_SOURCE = "Local Checker"
JSON_SOURCE = "JSON Parser"
PERFORMANCE_SOURCE = "Performance"

JS_FAMILY = frozenset({FileType.JAVASCRIPT, FileType.TYPESCRIPT})
PYTHON_ONLY = frozenset({FileType.PYTHON})

BRACKET_PAIRS = {")": "(", "]": "[", "}": "{"}
OPENING_BRACKETS = frozenset(BRACKET_PAIRS.values())
BRACKET_NAMES = {
    "(": "parenthesis",
    ")": "parenthesis",
    "[": "bracket",
    "]": "bracket",
    "{": "brace",
    "}": "brace",
}


@dataclass(frozen=True)
class HeuristicRule:
    rule_id: Optional[str]
    message: str
    severity: LintSeverity
    pattern: Optional[Pattern[str]] = None
    file_types: FrozenSet[FileType] = frozenset()
    source: str = LOCAL_SOURCE
    # Also runs in basic mode (large files, languages without a scanner)
    basic: bool = False
    # Lines matching this are skipped by `search`
    exclude: Optional[Pattern[str]] = None

    def applies_to(self, file_type: FileType) -> bool:
        return not self.file_types or file_type in self.file_types

    def match_at(self, line: str, index: int) -> bool:
        """True when the pattern matches starting exactly at `index`."""
        if self.pattern is None:
            return False
        return self.pattern.match(line, index) is not None

    def search(self, line: str) -> Optional[int]:
        """Column of the first match in `line`, or None."""
        if self.pattern is None:
            return None
        if self.exclude is not None and self.exclude.search(line):
            return None
        match = self.pattern.search(line)
        return match.start() if match else None

    def diagnostic(self, line: int, column: int, **fields: str) -> Diagnostic:
        return Diagnostic(
            line=max(line, 0),
            column=max(column, 0),
            message=self.message.format(**fields) if fields else self.message,
            severity=self.severity,
            source=self.source,
            rule=self.rule_id,
        )


# -- Bracket matching (JS/TS state machine) ----------------------------------

EXTRA_CLOSING = HeuristicRule(
    rule_id="extra-closing-bracket",
    message="Extra closing {name}",
    severity=LintSeverity.ERROR,
    file_types=JS_FAMILY,
)

UNCLOSED_BRACKET = HeuristicRule(
    rule_id="unclosed-bracket",
    message="Unclosed {name}",
    severity=LintSeverity.ERROR,
    file_types=JS_FAMILY,
)

# -- Code-context patterns ---------------------------------------------------

LOOSE_EQUALITY = HeuristicRule(
    rule_id="eqeqeq",
    message="Suggest using === instead of ==",
    severity=LintSeverity.WARNING,
    pattern=re.compile(r" == "),
    file_types=JS_FAMILY,
    basic=True,
    exclude=re.compile(r" === "),
)

# Whitespace run between a value-like token end and a value-like token start
JS_MISSING_COMMA = HeuristicRule(
    rule_id="comma-dangle",
    message="Missing comma in array or object",
    severity=LintSeverity.WARNING,
    pattern=re.compile(r"(?<=[\w\"'`\])}])[ \t]+(?=[\w\"'`\[{])"),
    file_types=JS_FAMILY,
)

# Words that legitimately sit next to a value without a separator
JS_KEYWORDS = frozenset({
    "as", "async", "await", "case", "class", "const", "default", "delete",
    "do", "else", "export", "extends", "from", "function", "get", "implements",
    "import", "in", "instanceof", "interface", "keyof", "let", "new", "of",
    "private", "protected", "public", "readonly", "return", "set", "static",
    "throw", "type", "typeof", "var", "void", "yield",
})

# -- End-of-line predicates --------------------------------------------------

MISSING_SEMICOLON = HeuristicRule(
    rule_id="semi",
    message="Suggest adding semicolon",
    severity=LintSeverity.INFO,
    file_types=JS_FAMILY,
)

SEMICOLON_TERMINATORS = (";", "{", "}")
SEMICOLON_EXEMPT_FRAGMENTS = ("function", "if", "for", "while", "=>")

# -- Python ------------------------------------------------------------------

MIXED_INDENTATION = HeuristicRule(
    rule_id="mixed-indentation",
    message="Mixed tabs and spaces",
    severity=LintSeverity.WARNING,
    pattern=re.compile(r"^(?=.*\t)(?=.* {4})"),
    file_types=PYTHON_ONLY,
)

PY_MISSING_COMMA = HeuristicRule(
    rule_id="missing-comma",
    message="Missing comma in list or tuple",
    severity=LintSeverity.WARNING,
    pattern=re.compile(r"[0-9\"'][ \t]+[0-9\"']"),
    file_types=PYTHON_ONLY,
)

PY_EXPECTED_INDENT = HeuristicRule(
    rule_id="expected-indent",
    message="Expected an indented block after ':'",
    severity=LintSeverity.WARNING,
    file_types=PYTHON_ONLY,
)

# -- JSON / engine-level -----------------------------------------------------

JSON_SYNTAX = HeuristicRule(
    rule_id="json-syntax",
    message="JSON syntax error: {detail}",
    severity=LintSeverity.ERROR,
    file_types=frozenset({FileType.JSON}),
    source=JSON_SOURCE,
)

LARGE_FILE = HeuristicRule(
    rule_id=None,
    message="File too large for detailed analysis. Using basic checks only.",
    severity=LintSeverity.INFO,
    source=PERFORMANCE_SOURCE,
)

RULES = (
    EXTRA_CLOSING,
    UNCLOSED_BRACKET,
    LOOSE_EQUALITY,
    JS_MISSING_COMMA,
    MISSING_SEMICOLON,
    MIXED_INDENTATION,
    PY_MISSING_COMMA,
    PY_EXPECTED_INDENT,
    JSON_SYNTAX,
    LARGE_FILE,
)

BASIC_RULES = tuple(rule for rule in RULES if rule.basic)


def bracket_name(char: str) -> str:
    return BRACKET_NAMES.get(char, "bracket")


def needs_semicolon(trimmed: str) -> bool:
    """End-of-line semicolon suggestion for an already stripped JS/TS line."""
    if not trimmed or trimmed.startswith("//"):
        return False
    if trimmed.endswith(SEMICOLON_TERMINATORS):
        return False
    return not any(fragment in trimmed for fragment in SEMICOLON_EXEMPT_FRAGMENTS)


def is_python_missing_comma(line: str) -> bool:
    """`[1, 2 3`-style open list/tuple line with adjacent values and no comma."""
    trimmed = line.strip()
    if not trimmed.startswith(("[", "(")):
        return False
    if trimmed.endswith(("]", ")")) or "," in trimmed:
        return False
    return PY_MISSING_COMMA.search(trimmed) is not None


def leading_indent(line: str) -> int:
    return len(line) - len(line.lstrip())
