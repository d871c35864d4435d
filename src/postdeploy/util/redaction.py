from __future__ import annotations

"""Redaction utility.

CONTRACT
- Inputs: text strings (captured command output)
- Outputs:
  - redacted text string
- Invariants:
  - Replaces Laravel APP_KEY values, password assignments and common token
    formats with [REDACTED]
  - Best-effort; does not guarantee all secrets are caught
- Failure:
  - None (returns original text when nothing matches)
"""

import re
from dataclasses import dataclass, field

REDACTED = "[REDACTED]"

DEFAULT_PATTERNS = [
    # Laravel application keys
    re.compile(r"base64:[A-Za-z0-9+/=]{16,}"),
    # Common token patterns (rough)
    re.compile(r"ghp_[A-Za-z0-9]{20,}"),
    re.compile(r"github_pat_[A-Za-z0-9_]{20,}"),
    re.compile(r"sk-[A-Za-z0-9]{20,}"),
]

# KEY=value style secrets; the key is kept so logs stay readable.
_ASSIGNMENT_RE = re.compile(
    r"(?i)\b([A-Z0-9_]*(?:PASSWORD|SECRET|TOKEN)[A-Z0-9_]*)(\s*[=:]\s*)(\S+)"
)


@dataclass(frozen=True)
class Redactor:
    patterns: list[re.Pattern] = field(default_factory=lambda: list(DEFAULT_PATTERNS))
    redact_assignments: bool = True

    def redact(self, text: str) -> str:
        out = text
        for pat in self.patterns:
            out = pat.sub(REDACTED, out)
        if self.redact_assignments:
            out = _ASSIGNMENT_RE.sub(lambda m: f"{m.group(1)}{m.group(2)}{REDACTED}", out)
        return out
