#!/usr/bin/env python3
"""Security & PII gate for runtime source files.

Fails if:
- print( found in runtime code (src/**, except operations/ CLIs)
- A logger call mentions guest data (contact fields, submissions, raw XML)
  without going through safe_log_context / redact_*

Usage:
    python scripts/gate_security_pii.py
"""

import re
import sys
from pathlib import Path

# Guest data and raw protocol documents must never be logged verbatim
SENSITIVE_KEYWORDS = (
    "payload",
    "request.json",
    "email",
    "phone",
    "first_name",
    "last_name",
    "comments",
    "echo_data",
    "xml",
)

# Command line entry points print their result on purpose
PRINT_ALLOWED_DIRS = ("operations",)

PRINT_PATTERN = re.compile(r"\bprint\s*\(")

LOGGER_CALL_PATTERN = re.compile(
    r"logger\.(debug|info|warning|error|critical|exception)\s*\("
)

REDACTION_PATTERNS = (
    "safe_log_context",
    "redact_value",
    "redact_string",
)


def _print_allowed(filepath: Path) -> bool:
    return any(part in PRINT_ALLOWED_DIRS for part in filepath.parts)


def check_file(filepath: Path) -> list[str]:
    """Check a single file for violations. Returns list of error messages."""
    errors = []
    try:
        content = filepath.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return []

    for lineno, line in enumerate(content.splitlines(), start=1):
        code_part = line.split("#")[0]
        if not code_part.strip():
            continue

        if PRINT_PATTERN.search(code_part) and not _print_allowed(filepath):
            errors.append(f"{filepath}:{lineno}: print() not allowed in runtime code")

        if LOGGER_CALL_PATTERN.search(code_part):
            line_lower = code_part.lower()
            has_redaction = any(rp in code_part for rp in REDACTION_PATTERNS)
            for keyword in SENSITIVE_KEYWORDS:
                if keyword in line_lower and not has_redaction:
                    errors.append(
                        f"{filepath}:{lineno}: logger call with '{keyword}' "
                        "must use redaction (safe_log_context/redact_value)"
                    )

    return errors


def check_tree(src_dir: Path) -> list[str]:
    """Check every Python file under src_dir."""
    all_errors: list[str] = []
    for pyfile in sorted(src_dir.rglob("*.py")):
        all_errors.extend(check_file(pyfile))
    return all_errors


def main() -> int:
    """Run gate check on the src directory."""
    src_dir = Path("src")
    if not src_dir.exists():
        src_dir = Path(__file__).parent.parent / "src"
    if not src_dir.exists():
        sys.stderr.write("Error: src directory not found\n")
        return 1

    all_errors = check_tree(src_dir)
    if all_errors:
        sys.stderr.write("PII gate FAILED - violations found:\n")
        for err in all_errors:
            sys.stderr.write(f"  {err}\n")
        return 1

    sys.stdout.write("PII gate PASSED - no violations found\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
