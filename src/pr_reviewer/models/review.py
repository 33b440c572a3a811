from enum import Enum
from typing import Any
from pydantic import AliasChoices, BaseModel, Field, field_validator
from .config import FindingType, Severity


TYPE_ALIASES = {
    "bugs": FindingType.BUG,
    "logic": FindingType.BUG,
    "vulnerability": FindingType.SECURITY,
    "readability": FindingType.STYLE,
    "tests": FindingType.TEST,
    "performance": FindingType.IMPROVEMENT,
    "best-practices": FindingType.IMPROVEMENT,
}


class Finding(BaseModel):
    """A single issue reported by the language model.

    Model output is loosely shaped, so the validators coerce rather than
    reject: unknown types fall back to ``improvement``, unknown severities
    to ``medium``, and confidence is clamped to [0, 1].
    """

    type: FindingType = Field(
        default=FindingType.IMPROVEMENT,
        validation_alias=AliasChoices("type", "category"),
    )
    severity: Severity = Severity.MEDIUM
    description: str = Field(default="", validation_alias=AliasChoices("description", "comment"))
    line_number: int | None = Field(
        default=None,
        validation_alias=AliasChoices("line_number", "lineNumber", "line"),
    )
    code_snippet: str | None = Field(
        default=None,
        validation_alias=AliasChoices("code_snippet", "codeSnippet", "snippet"),
    )
    confidence: float = 0.0
    suggestion: str | None = Field(
        default=None,
        validation_alias=AliasChoices("suggestion", "recommendation"),
    )
    is_new_issue: bool = Field(default=True, validation_alias=AliasChoices("is_new_issue", "isNewIssue"))
    is_fixed: bool = Field(default=False, validation_alias=AliasChoices("is_fixed", "isFixed"))

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, v: Any) -> FindingType:
        if isinstance(v, FindingType):
            return v
        value = str(v or "").strip().lower()
        if value in TYPE_ALIASES:
            return TYPE_ALIASES[value]
        try:
            return FindingType(value)
        except ValueError:
            return FindingType.IMPROVEMENT

    @field_validator("severity", mode="before")
    @classmethod
    def coerce_severity(cls, v: Any) -> Severity:
        if isinstance(v, Severity):
            return v
        try:
            return Severity(str(v or "").strip().lower())
        except ValueError:
            return Severity.MEDIUM

    @field_validator("description", mode="before")
    @classmethod
    def coerce_description(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("line_number", mode="before")
    @classmethod
    def coerce_line_number(cls, v: Any) -> int | None:
        if v is None or isinstance(v, bool):
            return None
        try:
            line = int(v)
        except (TypeError, ValueError):
            return None
        return line if line > 0 else None

    @field_validator("code_snippet", "suggestion", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> str | None:
        if v is None:
            return None
        text = str(v)
        return text if text.strip() else None

    @field_validator("confidence", mode="before")
    @classmethod
    def coerce_confidence(cls, v: Any) -> float:
        try:
            value = float(v)
        except (TypeError, ValueError):
            return 0.0
        # Some models answer in percent
        if 1.0 < value <= 100.0:
            value = value / 100.0
        return max(0.0, min(1.0, value))


class ReviewResult(BaseModel):
    issues: list[Finding] = Field(default_factory=list)
    summary: str = ""
    overall_quality: str | None = None


class AnnotationKind(str, Enum):
    ISSUE = "issue"
    PRAISE = "praise"


class ReconciledAnnotation(BaseModel):
    """An annotation ready to post.

    ``line`` is a changed line of the file's diff, or ``None`` for a
    file-level annotation that is posted as a general comment.
    """

    file: str
    line: int | None = None
    text: str
    type: FindingType
    confidence: float
    is_new_issue: bool = True
    kind: AnnotationKind = AnnotationKind.ISSUE

    @property
    def is_inline(self) -> bool:
        return self.line is not None
