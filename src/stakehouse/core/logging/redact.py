from __future__ import annotations

import re

_SECRET_VALUE_RE = re.compile(r"(?i)(token|key|secret|seed)(\s*[=:]\s*)([^\s,;]+)")
_BEARER_RE = re.compile(r"(?i)(bearer\s+)([^\s]+)")
# Stellar secret seeds: "S" followed by 55 base32 characters.
_STELLAR_SEED_RE = re.compile(r"\bS[A-Z2-7]{55}\b")


def redact_string(s: str) -> str:
    redacted = _STELLAR_SEED_RE.sub("S***", s)
    redacted = _SECRET_VALUE_RE.sub(lambda m: f"{m.group(1)}{m.group(2)}***", redacted)
    redacted = _BEARER_RE.sub(lambda m: f"{m.group(1)}***", redacted)
    return redacted
