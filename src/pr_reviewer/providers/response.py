import json
import logging
import re
from typing import Any
from pydantic import ValidationError
from pr_reviewer.models.review import Finding, ReviewResult


logger = logging.getLogger(__name__)

FENCED_JSON = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)


def _load_json_object(text: str) -> dict[str, Any] | None:
    candidates = []

    # Extract JSON from response (may be wrapped in ```json or just ```)
    fenced = FENCED_JSON.search(text)
    if fenced:
        candidates.append(fenced.group(1))
    candidates.append(text.strip())

    # Fall back to the outermost brace span
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start:end + 1])

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
    return None


def parse_review_response(text: str) -> ReviewResult:
    """Recover a ReviewResult from raw model output.

    Issues that fail validation are skipped individually. Raises ValueError
    only if no JSON object can be found at all.
    """
    data = _load_json_object(text or "")
    if data is None:
        raise ValueError(f"No JSON object in model response: {(text or '')[:200]!r}")

    raw_issues = next(
        (data[key] for key in ("issues", "comments", "security_issues") if data.get(key) is not None),
        [],
    )
    if not isinstance(raw_issues, list):
        logger.warning(f"Ignoring non-list issues payload: {type(raw_issues).__name__}")
        raw_issues = []

    issues = []
    for raw in raw_issues:
        if not isinstance(raw, dict):
            logger.warning(f"Skipping malformed issue: {raw!r}")
            continue
        try:
            issues.append(Finding.model_validate(raw))
        except ValidationError as e:
            logger.warning(f"Skipping invalid issue: {e}")

    return ReviewResult(
        issues=issues,
        summary=str(data.get("summary") or ""),
        overall_quality=data.get("overall_quality") or data.get("overall_security_score"),
    )
