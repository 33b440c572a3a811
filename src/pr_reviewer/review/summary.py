from pydantic import BaseModel, Field
from pr_reviewer.models.config import FindingType
from pr_reviewer.models.review import Finding


CRITICAL_TYPES = (FindingType.SECURITY, FindingType.BUG)


class ReviewSummary(BaseModel):
    overall_assessment: str
    files_reviewed: int
    total_issues: int
    critical_issues: int
    new_issues: int
    counts: dict[FindingType, int] = Field(default_factory=dict)
    requires_changes: bool
    summary: str
    recommendations: str
    file_summaries: list[str] = Field(default_factory=list)

    @property
    def can_approve(self) -> bool:
        return not self.requires_changes


def generate_summary_text(findings: list[Finding]) -> str:
    if not findings:
        return "No issues found. The code appears to be well-written and follows best practices."

    critical = [f for f in findings if f.type in CRITICAL_TYPES]
    improvements = [f for f in findings if f.type in (FindingType.IMPROVEMENT, FindingType.STYLE)]

    summary = f"Found {len(findings)} issues that need attention. "
    if critical:
        summary += f"There are {len(critical)} critical issues that must be addressed before approval. "
    if improvements:
        summary += f"There are {len(improvements)} improvement suggestions to enhance code quality. "
    summary += f"Overall, the PR {'requires changes' if critical else 'can be approved with suggestions'}."
    return summary


def generate_recommendations(findings: list[Finding]) -> str:
    if not findings:
        return "No specific recommendations at this time."

    def count(finding_type: FindingType) -> int:
        return sum(1 for f in findings if f.type == finding_type)

    recommendations = []
    if count(FindingType.SECURITY):
        recommendations.append(f"🔒 Address {count(FindingType.SECURITY)} security vulnerabilities before merging")
    if count(FindingType.BUG):
        recommendations.append(f"🐛 Fix {count(FindingType.BUG)} identified bugs to ensure functionality")
    if count(FindingType.TEST):
        recommendations.append("🧪 Add or improve tests for better code coverage")
    if count(FindingType.STYLE):
        recommendations.append("🎨 Consider code style improvements for better readability")
    return "\n".join(recommendations)


def build_summary(findings: list[Finding], files_reviewed: int, file_summaries: list[str] | None = None) -> ReviewSummary:
    """Summarize all reported (non-fixed) findings of a run."""
    critical = sum(1 for f in findings if f.type in CRITICAL_TYPES)

    if critical:
        assessment = "request_changes"
    elif len(findings) > 5:
        assessment = "approve_with_suggestions"
    else:
        assessment = "approve"

    return ReviewSummary(
        overall_assessment=assessment,
        files_reviewed=files_reviewed,
        total_issues=len(findings),
        critical_issues=critical,
        new_issues=sum(1 for f in findings if f.is_new_issue),
        counts={t: sum(1 for f in findings if f.type == t) for t in FindingType},
        requires_changes=critical > 0,
        summary=generate_summary_text(findings),
        recommendations=generate_recommendations(findings),
        file_summaries=file_summaries or [],
    )


def format_summary_comment(summary: ReviewSummary, reviewer_name: str = "AI Review") -> str:
    status = "❌ Changes Required" if summary.requires_changes else "✅ Ready for Review"
    text = f"""## 🔍 PR Review Summary

**Overall Assessment:** {summary.overall_assessment.upper()}
**Status:** {status}

### 📊 Review Statistics
- **Files Reviewed:** {summary.files_reviewed}
- **Total Issues Found:** {summary.total_issues}
- **New Issues:** {summary.new_issues}
- **Critical Issues:** {summary.critical_issues}
- **Security Issues:** {summary.counts.get(FindingType.SECURITY, 0)}
- **Bug Issues:** {summary.counts.get(FindingType.BUG, 0)}
- **Improvement Issues:** {summary.counts.get(FindingType.IMPROVEMENT, 0)}
- **Style Issues:** {summary.counts.get(FindingType.STYLE, 0)}
- **Test Issues:** {summary.counts.get(FindingType.TEST, 0)}

### 📝 Summary
{summary.summary}

### 💡 Recommendations
{summary.recommendations}
"""
    if summary.file_summaries:
        text += "\n### 📁 Files\n" + "\n\n".join(summary.file_summaries) + "\n"
    return text + f"\n---\n*This review was performed by {reviewer_name}*"
