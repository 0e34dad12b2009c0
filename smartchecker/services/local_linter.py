"""
Local heuristic lint engine (offline, best-effort, no parser).

Design intent:
- Give useful structural feedback (brackets, loose equality, indentation, JSON
  syntax) when no remote checker is reachable or remote checking is off.
- Stay cheap: a single left-to-right pass per buffer, a hard cap for large
  buffers, and a short-lived single-slot cache for identical content.
- Never raise to the caller. Any failure degrades to an empty list.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from ..models.linting import Diagnostic, FileType
from .heuristics import (
    BASIC_RULES,
    BRACKET_PAIRS,
    EXTRA_CLOSING,
    JS_FAMILY,
    JS_KEYWORDS,
    JS_MISSING_COMMA,
    JSON_SYNTAX,
    LARGE_FILE,
    LOOSE_EQUALITY,
    MISSING_SEMICOLON,
    MIXED_INDENTATION,
    OPENING_BRACKETS,
    PY_EXPECTED_INDENT,
    PY_MISSING_COMMA,
    UNCLOSED_BRACKET,
    bracket_name,
    is_python_missing_comma,
    leading_indent,
    needs_semicolon,
)

logger = logging.getLogger(__name__)

QUOTES = ("\"", "'", "`")


@dataclass(frozen=True)
class _EngineCache:
    content: str
    file_type: FileType
    results: Tuple[Diagnostic, ...]
    timestamp: float


@dataclass(frozen=True)
class _BracketEntry:
    char: str
    line: int
    column: int


class LocalLintEngine:
    """
    Per-language heuristic scanner with a debounce gate and a result cache.

    `scan()` is the asynchronous contract used by the orchestrator:
    cache lookup, debounce gate, then `analyze()` off the event loop under a
    fixed timeout. `analyze()` is the synchronous core and is safe to call
    directly (it never raises).
    """

    LARGE_FILE_LINES = 1000
    CACHE_TTL_MS = 1000
    SCAN_TIMEOUT_MS = 3000
    DEBOUNCE_MS = 300

    def __init__(
        self,
        debounce_ms: int = DEBOUNCE_MS,
        scan_timeout_ms: int = SCAN_TIMEOUT_MS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._debounce_s = max(debounce_ms, 0) / 1000
        self._timeout_s = max(scan_timeout_ms, 0) / 1000
        self._clock = clock
        self._cache: Optional[_EngineCache] = None
        self._generation = 0
        self._pending: Optional[asyncio.Future] = None

    async def scan(self, content: str, file_type: FileType) -> List[Diagnostic]:
        """
        Lint `content` as `file_type`.

        Returns:
            Diagnostics (possibly empty). Identical content within
            CACHE_TTL_MS returns the cached list without re-scanning.
        """
        cached = self._read_cache(content, file_type)
        if cached is not None:
            logger.debug("💾 Local check cache hit")
            return cached

        self._generation += 1
        generation = self._generation
        if self._pending is None:
            self._pending = asyncio.get_running_loop().create_future()
        pending = self._pending

        try:
            if self._debounce_s:
                await asyncio.sleep(self._debounce_s)
        except asyncio.CancelledError:
            if generation == self._generation and not pending.done():
                # Nobody newer will resolve the shared future
                self._pending = None
                pending.cancel()
            raise

        if generation != self._generation:
            logger.debug("Local check superseded by a newer request")
            try:
                return list(await asyncio.shield(pending))
            except asyncio.CancelledError:
                if pending.cancelled():
                    return []
                raise

        self._pending = None
        try:
            results = await self._run_guarded(content, file_type)
        except asyncio.CancelledError:
            if not pending.done():
                pending.cancel()
            raise
        if not pending.done():
            pending.set_result(results)
        return list(results)

    def analyze(self, content: str, file_type: FileType) -> List[Diagnostic]:
        """Synchronous scan. Internal failures are logged and yield []."""
        try:
            return self._analyze(content, file_type)
        except Exception as e:
            logger.error(f"Local check error: {e}")
            return []

    def invalidate_cache(self) -> None:
        self._cache = None

    def _read_cache(self, content: str, file_type: FileType) -> Optional[List[Diagnostic]]:
        cache = self._cache
        if cache is None or cache.content != content or cache.file_type != file_type:
            return None
        age_ms = (self._clock() - cache.timestamp) * 1000
        if age_ms >= self.CACHE_TTL_MS:
            return None
        return list(cache.results)

    async def _run_guarded(self, content: str, file_type: FileType) -> List[Diagnostic]:
        loop = asyncio.get_running_loop()
        try:
            results = await asyncio.wait_for(
                loop.run_in_executor(None, self._analyze, content, file_type),
                timeout=self._timeout_s,
            )
        except asyncio.TimeoutError:
            logger.warning("⏱️ Local check timeout")
            return []
        except Exception as e:
            logger.error(f"Local check error: {e}")
            return []

        # Cache is read and written only here, inside one scan invocation
        self._cache = _EngineCache(
            content=content,
            file_type=file_type,
            results=tuple(results),
            timestamp=self._clock(),
        )
        logger.info(f"💻 Local check returned {len(results)} issues")
        return list(results)

    def _analyze(self, content: str, file_type: FileType) -> List[Diagnostic]:
        if not content or not content.strip():
            return []
        if file_type is FileType.UNKNOWN:
            return []

        lines = content.split("\n")

        # Hard cap: large buffers only get the basic checks
        if len(lines) > self.LARGE_FILE_LINES:
            return [LARGE_FILE.diagnostic(0, 0)] + self._basic_lint(lines, file_type)

        if file_type in JS_FAMILY:
            return self._lint_javascript(lines)
        if file_type is FileType.PYTHON:
            return self._lint_python(lines)
        if file_type is FileType.JSON:
            return self._lint_json(content, lines)
        return self._basic_lint(lines, file_type)

    @staticmethod
    def _lint_javascript(lines: List[str]) -> List[Diagnostic]:
        """
        Character-level pass shared by JavaScript and TypeScript.

        String and block-comment state carries across lines; the bracket
        stack spans the whole file. Pattern heuristics run in code context only.
        """
        issues: List[Diagnostic] = []
        in_block_comment = False
        in_string = False
        string_delimiter = ""
        bracket_stack: List[_BracketEntry] = []

        for line_number, line in enumerate(lines):
            has_code = False
            i = 0
            length = len(line)

            while i < length:
                char = line[i]
                next_char = line[i + 1] if i + 1 < length else ""

                if in_string:
                    if char == "\\":
                        i += 2
                        continue
                    if char == string_delimiter:
                        in_string = False
                        string_delimiter = ""
                    i += 1
                    continue

                if in_block_comment:
                    if char == "*" and next_char == "/":
                        in_block_comment = False
                        i += 2
                        continue
                    i += 1
                    continue

                # Code context
                if char == "/" and next_char == "/":
                    break
                if char == "/" and next_char == "*":
                    in_block_comment = True
                    i += 2
                    continue
                if not char.isspace():
                    has_code = True
                if char in QUOTES:
                    in_string = True
                    string_delimiter = char
                    i += 1
                    continue

                if char in OPENING_BRACKETS:
                    bracket_stack.append(_BracketEntry(char, line_number, i))
                elif char in BRACKET_PAIRS:
                    if bracket_stack:
                        bracket_stack.pop()
                    else:
                        issues.append(EXTRA_CLOSING.diagnostic(line_number, i, name=bracket_name(char)))

                if LOOSE_EQUALITY.match_at(line, i):
                    issues.append(LOOSE_EQUALITY.diagnostic(line_number, i))

                if char in " \t" and _is_missing_separator(line, i):
                    issues.append(JS_MISSING_COMMA.diagnostic(line_number, i))

                i += 1

            if has_code and not in_string and not in_block_comment and needs_semicolon(line.strip()):
                issues.append(MISSING_SEMICOLON.diagnostic(line_number, len(line) - 1))

        for entry in bracket_stack:
            issues.append(UNCLOSED_BRACKET.diagnostic(entry.line, entry.column, name=bracket_name(entry.char)))

        return issues

    @staticmethod
    def _lint_python(lines: List[str]) -> List[Diagnostic]:
        issues: List[Diagnostic] = []

        for line_number, line in enumerate(lines):
            if MIXED_INDENTATION.search(line) is not None:
                issues.append(MIXED_INDENTATION.diagnostic(line_number, 0))

            if is_python_missing_comma(line):
                issues.append(PY_MISSING_COMMA.diagnostic(line_number, len(line) - 1))

            stripped = line.strip()
            if stripped.endswith(":") and not stripped.startswith("#"):
                if line_number + 1 < len(lines):
                    next_line = lines[line_number + 1]
                    if next_line.strip() and leading_indent(next_line) <= leading_indent(line):
                        issues.append(PY_EXPECTED_INDENT.diagnostic(line_number + 1, 0))

        return issues

    @staticmethod
    def _lint_json(content: str, lines: List[str]) -> List[Diagnostic]:
        def reject_constant(name: str):
            # NaN / Infinity are Python extensions, not JSON
            raise json.JSONDecodeError(f"Invalid constant {name}", content, _constant_offset(content, name))

        try:
            json.loads(content, parse_constant=reject_constant)
        except json.JSONDecodeError as e:
            line, column = offset_to_position(lines, e.pos)
            return [JSON_SYNTAX.diagnostic(line, column, detail=e.msg)]
        except RecursionError:
            return [JSON_SYNTAX.diagnostic(0, 0, detail="Nesting too deep")]
        return []

    @staticmethod
    def _basic_lint(lines: List[str], file_type: FileType) -> List[Diagnostic]:
        issues: List[Diagnostic] = []
        for rule in BASIC_RULES:
            if not rule.applies_to(file_type):
                continue
            for line_number, line in enumerate(lines):
                column = rule.search(line)
                if column is not None:
                    issues.append(rule.diagnostic(line_number, column))
        return issues


def offset_to_position(lines: List[str], offset: int) -> Tuple[int, int]:
    """
    Translate a character offset into a 0-based (line, column).

    Walks line lengths (+1 per newline) until the offset falls inside a line.
    Offsets past the end clamp to the end of the last line.
    """
    start = 0
    for index, line in enumerate(lines):
        end = start + len(line)
        if offset <= end:
            return index, max(offset - start, 0)
        start = end + 1
    if not lines:
        return 0, 0
    return len(lines) - 1, len(lines[-1])


_JSON_CONSTANT_TOKENS = re.compile(r'"(?:\\.|[^"\\])*"|(-?Infinity|NaN)')


def _constant_offset(content: str, name: str) -> int:
    """Offset of the first `name` outside string literals (the one the parser hit first)."""
    for match in _JSON_CONSTANT_TOKENS.finditer(content):
        if match.group(1) == name:
            return match.start(1)
    return 0


def _collection_context(line: str, index: int) -> Optional[str]:
    before = line[:index]
    if before.count("{") > before.count("}"):
        return "object"
    if before.count("[") > before.count("]"):
        return "array"
    return None


def _word_before(line: str, index: int) -> str:
    start = index
    while start > 0 and (line[start - 1].isalnum() or line[start - 1] in "_$"):
        start -= 1
    return line[start:index]


def _word_after(line: str, index: int) -> str:
    end = index
    while end < len(line) and (line[end].isalnum() or line[end] in "_$"):
        end += 1
    return line[index:end]


def _is_missing_separator(line: str, index: int) -> bool:
    """Two value-like tokens separated only by whitespace inside an open `{`/`[`."""
    if _collection_context(line, index) is None:
        return False
    match = JS_MISSING_COMMA.pattern.match(line, index)
    if match is None:
        return False
    if _word_before(line, index) in JS_KEYWORDS:
        return False
    return _word_after(line, match.end()) not in JS_KEYWORDS
