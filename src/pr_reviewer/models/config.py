from enum import Enum
from pydantic import BaseModel, Field


class FindingType(str, Enum):
    BUG = "bug"
    IMPROVEMENT = "improvement"
    SECURITY = "security"
    STYLE = "style"
    TEST = "test"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


SEVERITY_ORDER = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


class RepoConfig(BaseModel):
    language: str = "en"
    checks: list[FindingType] = Field(
        default_factory=lambda: [
            FindingType.BUG,
            FindingType.IMPROVEMENT,
            FindingType.SECURITY,
            FindingType.STYLE,
            FindingType.TEST,
        ]
    )
    exclude: list[str] = Field(
        default_factory=lambda: [
            "*.md",
            "*.lock",
            "*.min.js",
            "*.min.css",
            "*.generated.*",
            "package-lock.json",
            "yarn.lock",
            "pnpm-lock.yaml",
        ]
    )
    auto_review: bool = True
    # Overrides Settings.enable_security_scanning when set
    security_scan: bool | None = None
    min_severity: Severity = Severity.LOW
    # Overrides Settings.review_threshold when set
    review_threshold: float | None = Field(default=None, ge=0.0, le=1.0)
