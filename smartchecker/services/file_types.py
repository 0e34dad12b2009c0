"""
File type helpers for checked buffers.

Why this exists:
- Every downstream choice (which scanner, which remote capability) is keyed on a
  closed `FileType`, so detection must be stable and case-insensitive.
- Multi-dot names like `app.min.js` or `component.test.tsx` should classify by
  their last extension only.

This module intentionally does NOT attempt to sniff file contents.
"""

from __future__ import annotations

from pathlib import PurePath
from typing import List, Optional

from ..models.linting import FileType


EXTENSION_MAP = {
    # JavaScript
    "js": FileType.JAVASCRIPT,
    "jsx": FileType.JAVASCRIPT,
    "mjs": FileType.JAVASCRIPT,
    "cjs": FileType.JAVASCRIPT,
    # TypeScript
    "ts": FileType.TYPESCRIPT,
    "tsx": FileType.TYPESCRIPT,
    # Python
    "py": FileType.PYTHON,
    "pyw": FileType.PYTHON,
    # Markup / styles
    "html": FileType.HTML,
    "htm": FileType.HTML,
    "xhtml": FileType.HTML,
    "css": FileType.CSS,
    "scss": FileType.CSS,
    "sass": FileType.CSS,
    "less": FileType.CSS,
    # Data
    "json": FileType.JSON,
    # Others
    "lua": FileType.LUA,
    "c": FileType.C,
    "h": FileType.C,
    "cpp": FileType.CPP,
    "cc": FileType.CPP,
    "cxx": FileType.CPP,
    "hpp": FileType.CPP,
    "hxx": FileType.CPP,
    "cs": FileType.CSHARP,
}

LANGUAGE_NAMES = {
    FileType.JAVASCRIPT: "JavaScript",
    FileType.TYPESCRIPT: "TypeScript",
    FileType.PYTHON: "Python",
    FileType.JSON: "JSON",
    FileType.HTML: "HTML",
    FileType.CSS: "CSS",
    FileType.LUA: "Lua",
    FileType.C: "C",
    FileType.CPP: "C++",
    FileType.CSHARP: "C#",
}


def get_effective_extension(filename: Optional[str]) -> str:
    """Return the lower-cased last extension of `filename`, without the dot."""
    name = (filename or "").strip()
    if not name:
        return ""
    return PurePath(name).suffix.lower().lstrip(".")


def detect_file_type(filename: Optional[str]) -> FileType:
    """
    Classify a filename into the closed `FileType` set.

    A missing filename or an unmapped extension yields `FileType.UNKNOWN`,
    which the orchestrator treats as "do not check".
    """
    return EXTENSION_MAP.get(get_effective_extension(filename), FileType.UNKNOWN)


def is_supported(filename: Optional[str]) -> bool:
    return detect_file_type(filename) is not FileType.UNKNOWN


def get_supported_extensions() -> List[str]:
    return sorted(EXTENSION_MAP)


def get_language_name(file_type: FileType) -> str:
    """Human-readable language name (falls back to the enum value)."""
    return LANGUAGE_NAMES.get(file_type, file_type.value)
