import pytest
from pr_reviewer.models.config import FindingType, Severity
from pr_reviewer.models.diff import DiffAnalysis
from pr_reviewer.models.review import AnnotationKind, Finding
from pr_reviewer.review.aggregator import aggregate_findings, filter_by_confidence, format_finding


ANALYSIS = DiffAnalysis(
    added_lines=[3, 7],
    changed_content={3: "value = load()", 7: "    items.append(x)"},
)

FILE_LINES = [f"line {i}" for i in range(1, 11)]


@pytest.mark.unit
def test_findings_on_same_line_are_merged():
    bug = Finding(type=FindingType.BUG, severity=Severity.HIGH, description="Off by one", confidence=0.8)
    style = Finding(
        type=FindingType.STYLE,
        severity=Severity.LOW,
        description="Prefer extend",
        confidence=0.95,
        is_new_issue=False,
    )

    annotations = aggregate_findings("src/app.py", [(bug, 7), (style, 7)], ANALYSIS, FILE_LINES)

    assert len(annotations) == 1
    annotation = annotations[0]
    assert annotation.line == 7
    assert annotation.type == FindingType.BUG
    assert annotation.confidence == 0.95
    assert annotation.is_new_issue is False
    assert "2 issue(s) on line 7" in annotation.text
    assert "1. ⚠️ **BUG**" in annotation.text
    assert "2. ℹ️ **STYLE**" in annotation.text
    assert "```\n    items.append(x)\n```" in annotation.text


@pytest.mark.unit
def test_groups_are_ordered_by_line():
    first = Finding(description="a", confidence=0.9)
    second = Finding(description="b", confidence=0.9)

    annotations = aggregate_findings("f.py", [(first, 7), (second, 3)], ANALYSIS, FILE_LINES)

    assert [a.line for a in annotations] == [3, 7]


@pytest.mark.unit
def test_unreconciled_finding_becomes_file_level():
    finding = Finding(line_number=40, description="Missing error handling", confidence=0.9, suggestion="Wrap in try")

    annotations = aggregate_findings("src/app.py", [(finding, 0)], ANALYSIS, FILE_LINES)

    assert len(annotations) == 1
    annotation = annotations[0]
    assert annotation.line is None
    assert not annotation.is_inline
    assert "File: `src/app.py`" in annotation.text
    assert "Reported near line 40" in annotation.text
    assert "**Suggestion:** Wrap in try" in annotation.text


@pytest.mark.unit
def test_line_outside_diff_is_demoted():
    finding = Finding(description="x", confidence=0.9)

    annotations = aggregate_findings("f.py", [(finding, 5)], ANALYSIS, FILE_LINES)

    assert annotations[0].line is None


@pytest.mark.unit
def test_fixed_findings_become_praise():
    on_diff = Finding(line_number=3, description="Null check added", confidence=0.9, is_fixed=True)
    elsewhere = Finding(line_number=9, description="Leak closed", confidence=0.9, is_fixed=True)
    issue = Finding(description="Unrelated", confidence=0.9)

    annotations = aggregate_findings("f.py", [(issue, 0), (on_diff, 0), (elsewhere, 0)], ANALYSIS, FILE_LINES)

    assert [a.kind for a in annotations] == [AnnotationKind.PRAISE, AnnotationKind.PRAISE, AnnotationKind.ISSUE]
    assert annotations[0].line == 3
    assert annotations[1].line is None
    assert all(a.is_new_issue is False for a in annotations[:2])
    assert "✅ **Fixed**" in annotations[0].text


@pytest.mark.unit
def test_reviewer_name_in_header():
    finding = Finding(description="x", confidence=0.9)

    annotations = aggregate_findings("f.py", [(finding, 3)], ANALYSIS, FILE_LINES, reviewer_name="Bot")

    assert annotations[0].text.startswith("**Bot** | 1 issue(s) on line 3")


@pytest.mark.unit
def test_filter_by_confidence_is_inclusive():
    findings = [Finding(confidence=0.69), Finding(confidence=0.7), Finding(confidence=0.95)]

    assert [f.confidence for f in filter_by_confidence(findings, 0.7)] == [0.7, 0.95]
    assert filter_by_confidence(findings, 0.0) == findings
    assert filter_by_confidence(findings, 1.0) == []


@pytest.mark.unit
def test_format_finding_rounds_confidence():
    finding = Finding(type="security", severity="critical", description="SQL injection", confidence=0.876)

    assert format_finding(1, finding) == "1. 🚨 **SECURITY** `critical` (Confidence: 88%): SQL injection"
