# src/pr_reviewer/review/pipeline.py
import logging
from dataclasses import dataclass, field
from pr_reviewer.config import Settings
from pr_reviewer.models.config import RepoConfig
from pr_reviewer.models.diff import DiffAnalysis
from pr_reviewer.models.review import Finding, ReconciledAnnotation
from .aggregator import aggregate_findings, filter_by_confidence
from .dedup import DuplicateGuard
from .parser import split_lines
from .reconciler import LineReconciler, LineValidator


logger = logging.getLogger(__name__)


@dataclass
class ReconciliationParams:
    review_threshold: float = 0.7
    context_radius: int = 2
    snippet_overlap_ratio: float = 0.5
    keyword_min_length: int = 3
    reviewer_name: str = "AI Review"

    @classmethod
    def from_settings(cls, settings: Settings, repo_config: RepoConfig | None = None) -> "ReconciliationParams":
        threshold = settings.review_threshold
        if repo_config is not None and repo_config.review_threshold is not None:
            threshold = repo_config.review_threshold
        return cls(
            review_threshold=threshold,
            context_radius=settings.context_radius,
            snippet_overlap_ratio=settings.snippet_overlap_ratio,
            keyword_min_length=settings.keyword_min_length,
            reviewer_name=settings.reviewer_name,
        )


@dataclass
class FilePassResult:
    file_path: str
    analysis: DiffAnalysis
    annotations: list[ReconciledAnnotation] = field(default_factory=list)
    suppressed: list[ReconciledAnnotation] = field(default_factory=list)
    findings: list[Finding] = field(default_factory=list)
    unreconciled: int = 0

    @property
    def inline(self) -> list[ReconciledAnnotation]:
        return [a for a in self.annotations if a.is_inline]

    @property
    def general(self) -> list[ReconciledAnnotation]:
        return [a for a in self.annotations if not a.is_inline]


def run_file_pass(
    file_path: str,
    analysis: DiffAnalysis,
    file_content: str | None,
    findings: list[Finding],
    params: ReconciliationParams,
    guard: DuplicateGuard | None = None,
) -> FilePassResult:
    """Reconcile, aggregate and de-duplicate the findings for one file.

    Pure and synchronous: every finding is reconciled before aggregation,
    and aggregation completes before duplicate checking.
    """
    file_lines = split_lines(file_content)
    kept = filter_by_confidence(findings, params.review_threshold)

    reconciler = LineReconciler(
        LineValidator(
            overlap_ratio=params.snippet_overlap_ratio,
            keyword_min_length=params.keyword_min_length,
        )
    )
    reconciled = [
        (finding, 0 if finding.is_fixed else reconciler.reconcile(finding, analysis, file_content))
        for finding in kept
    ]
    unreconciled = sum(1 for finding, line in reconciled if not finding.is_fixed and line == 0)
    if unreconciled:
        logger.info(f"{file_path}: {unreconciled} findings could not be placed inline")

    candidates = aggregate_findings(file_path, reconciled, analysis, file_lines, params.reviewer_name)

    result = FilePassResult(
        file_path=file_path,
        analysis=analysis,
        findings=[f for f in kept if not f.is_fixed],
        unreconciled=unreconciled,
    )
    for annotation in candidates:
        if guard is not None and guard.is_duplicate(annotation):
            logger.info(f"Skipping duplicate comment on {file_path}:{annotation.line}")
            result.suppressed.append(annotation)
        else:
            result.annotations.append(annotation)

    return result
