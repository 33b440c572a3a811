import logging
from pr_reviewer.models.config import SEVERITY_ORDER, Severity
from pr_reviewer.models.diff import DiffAnalysis
from pr_reviewer.models.review import AnnotationKind, Finding, ReconciledAnnotation


logger = logging.getLogger(__name__)

SEVERITY_EMOJI = {
    Severity.CRITICAL: "🚨",
    Severity.HIGH: "⚠️",
    Severity.MEDIUM: "💡",
    Severity.LOW: "ℹ️",
}


def filter_by_confidence(findings: list[Finding], threshold: float) -> list[Finding]:
    """Keep findings with confidence >= threshold."""
    kept = [f for f in findings if f.confidence >= threshold]
    if len(kept) < len(findings):
        logger.info(f"Dropped {len(findings) - len(kept)} findings below confidence {threshold}")
    return kept


def format_finding(index: int, finding: Finding) -> str:
    text = (
        f"{index}. {SEVERITY_EMOJI[finding.severity]} **{finding.type.value.upper()}** "
        f"`{finding.severity.value}` (Confidence: {round(finding.confidence * 100)}%): "
        f"{finding.description}"
    )
    if finding.suggestion:
        text += f"\n   💡 **Suggestion:** {finding.suggestion}"
    return text


def _lead_finding(findings: list[Finding]) -> Finding:
    # max() keeps the first of equal keys
    return max(findings, key=lambda f: (SEVERITY_ORDER[f.severity], f.confidence))


def _group_annotation(
    file_path: str,
    line: int,
    findings: list[Finding],
    source_text: str,
    reviewer_name: str,
) -> ReconciledAnnotation:
    header = f"**{reviewer_name}** | {len(findings)} issue(s) on line {line}"
    items = "\n".join(format_finding(i, f) for i, f in enumerate(findings, start=1))
    return ReconciledAnnotation(
        file=file_path,
        line=line,
        text=f"{header}\n\n{items}\n\n```\n{source_text}\n```",
        type=_lead_finding(findings).type,
        confidence=max(f.confidence for f in findings),
        is_new_issue=all(f.is_new_issue for f in findings),
    )


def _file_level_annotation(file_path: str, finding: Finding, reviewer_name: str) -> ReconciledAnnotation:
    text = f"**{reviewer_name}** | File: `{file_path}`\n\n{format_finding(1, finding)}"
    if finding.line_number:
        text += f"\n\n_Reported near line {finding.line_number}, which is not a changed line._"
    return ReconciledAnnotation(
        file=file_path,
        line=None,
        text=text,
        type=finding.type,
        confidence=finding.confidence,
        is_new_issue=finding.is_new_issue,
    )


def _praise_annotation(
    file_path: str,
    finding: Finding,
    analysis: DiffAnalysis,
    reviewer_name: str,
) -> ReconciledAnnotation:
    line = finding.line_number if finding.line_number in analysis.changed_set else None
    location = "" if line is not None else f" in `{file_path}`"
    return ReconciledAnnotation(
        file=file_path,
        line=line,
        text=f"**{reviewer_name}** | ✅ **Fixed**{location}\n\n{finding.description}",
        type=finding.type,
        confidence=finding.confidence,
        is_new_issue=False,
        kind=AnnotationKind.PRAISE,
    )


def aggregate_findings(
    file_path: str,
    reconciled: list[tuple[Finding, int]],
    analysis: DiffAnalysis,
    file_lines: list[str],
    reviewer_name: str = "AI Review",
) -> list[ReconciledAnnotation]:
    """Turn (finding, reconciled line) pairs into postable annotations.

    Findings sharing a line become one annotation. A finding whose line is 0
    (or not a changed line) is demoted to a file-level annotation. Fixed
    findings become praise, placed on their reported line when it changed.
    """
    groups: dict[int, list[Finding]] = {}
    praise: list[ReconciledAnnotation] = []
    file_level: list[ReconciledAnnotation] = []
    changed = analysis.changed_set

    for finding, line in reconciled:
        if finding.is_fixed:
            praise.append(_praise_annotation(file_path, finding, analysis, reviewer_name))
        elif line > 0 and line in changed:
            groups.setdefault(line, []).append(finding)
        else:
            file_level.append(_file_level_annotation(file_path, finding, reviewer_name))

    annotations = []
    for line in sorted(groups):
        source_text = analysis.changed_content.get(line)
        if source_text is None:
            source_text = file_lines[line - 1] if line <= len(file_lines) else ""
        annotations.append(_group_annotation(file_path, line, groups[line], source_text, reviewer_name))

    return annotations + praise + file_level
