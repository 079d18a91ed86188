"""Best-effort conversion of free-form provider text into a structured record.

Providers are asked for bare JSON but routinely wrap it in apologies, code
fences, or trailing commas. ``normalize`` strips that noise, extracts the JSON
object, checks the required fields and fills defaults for the optional ones.
It never raises; failures come back as ``Normalized(ok=False)``.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Mapping
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

# Order matters: preambles are anchored to the start of the (stripped) text.
_PREAMBLE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^I'?m sorry[^{]*", re.IGNORECASE),
    re.compile(r"^I apologi[sz]e[^{]*", re.IGNORECASE),
    re.compile(r"^Here is[^{]*", re.IGNORECASE),
    re.compile(r"^Here's[^{]*", re.IGNORECASE),
    re.compile(r"^Sure[^{]*", re.IGNORECASE),
    re.compile(r"^다음은[^{]*"),
    re.compile(r"^아래는[^{]*"),
    re.compile(r"^JSON 응답[^{]*"),
    re.compile(r"^분석 결과[^{]*"),
)

_FENCE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"```json\s*", re.IGNORECASE),
    re.compile(r"```\s*"),
)

_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")


class MalformedResponseError(Exception):
    """Raised internally when a provider body cannot be normalized."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error


@dataclass(frozen=True)
class Normalized:
    """Result of normalizing one provider body."""

    ok: bool
    record: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    def __post_init__(self) -> None:
        if self.ok and self.error is not None:
            raise ValueError("error must be None when ok=True")
        if not self.ok and self.error is None:
            raise ValueError("error is required when ok=False")


def normalize(
    raw_text: str,
    required_fields: Iterable[str],
    defaults: Mapping[str, Any] | None = None,
) -> Normalized:
    """Normalize raw provider text into a record with the required fields.

    Args:
        raw_text: Provider response body.
        required_fields: Keys that must be present and non-empty.
        defaults: Optional keys filled in when absent.

    Returns:
        ``Normalized(ok=True, record=...)`` or ``Normalized(ok=False, error=...)``.
    """
    try:
        record = _normalize_or_raise(raw_text, required_fields, defaults or {})
    except MalformedResponseError as e:
        logger.debug("Normalization failed: %s", e)
        return Normalized(ok=False, error=str(e))
    except Exception as e:  # noqa: BLE001 - contract: normalize never raises
        logger.debug("Normalization failed unexpectedly: %s", e)
        return Normalized(ok=False, error=f"unexpected normalization error: {e}")
    return Normalized(ok=True, record=record)


def _normalize_or_raise(
    raw_text: str,
    required_fields: Iterable[str],
    defaults: Mapping[str, Any],
) -> dict[str, Any]:
    if not isinstance(raw_text, str):
        raise MalformedResponseError(f"expected text, got {type(raw_text).__name__}")

    content = strip_noise(raw_text)
    content = extract_json_object(content)
    content = _TRAILING_COMMA_RE.sub(r"\1", content)

    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"invalid JSON: {e}", e) from e

    if not isinstance(parsed, dict):
        raise MalformedResponseError(
            f"expected a JSON object, got {type(parsed).__name__}"
        )

    missing = [name for name in required_fields if _is_missing(parsed.get(name))]
    if missing:
        raise MalformedResponseError(f"missing required fields: {', '.join(sorted(missing))}")

    for name, default in defaults.items():
        if parsed.get(name) is None:
            parsed[name] = deepcopy(default)

    return parsed


def strip_noise(text: str) -> str:
    """Remove known preamble phrases and code-fence markers."""
    content = text.strip()
    for pattern in _PREAMBLE_PATTERNS:
        content = pattern.sub("", content)
    for pattern in _FENCE_PATTERNS:
        content = pattern.sub("", content)
    return content.strip()


def extract_json_object(text: str) -> str:
    """Return the first balanced ``{...}`` object in ``text``.

    The scan tracks string literals so braces inside quoted values do not
    affect depth. When no balanced object exists (e.g. a truncated body) the
    slice from the first ``{`` to the last ``}`` is returned instead, and
    when there is no ``{`` at all the text is returned unchanged.
    """
    start = text.find("{")
    if start == -1:
        return text

    depth = 0
    in_string = False
    escaped = False
    for idx in range(start, len(text)):
        ch = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : idx + 1]

    end = text.rfind("}")
    if end > start:
        return text[start : end + 1]
    return text[start:]


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, dict)) and not value:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False
