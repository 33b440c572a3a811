from .parser import parse_file_diff, split_patch, build_fallback_diff, split_lines
from .context import build_changed_blocks
from .reconciler import LineReconciler, LineValidator
from .aggregator import aggregate_findings, filter_by_confidence
from .dedup import DuplicateGuard
from .pipeline import run_file_pass, ReconciliationParams, FilePassResult
from .prompts import build_review_prompt, build_security_prompt
from .session import ReviewSession
from .engine import ReviewEngine, EngineReviewResult

__all__ = [
    "parse_file_diff",
    "split_patch",
    "build_fallback_diff",
    "split_lines",
    "build_changed_blocks",
    "LineReconciler",
    "LineValidator",
    "aggregate_findings",
    "filter_by_confidence",
    "DuplicateGuard",
    "run_file_pass",
    "ReconciliationParams",
    "FilePassResult",
    "build_review_prompt",
    "build_security_prompt",
    "ReviewSession",
    "ReviewEngine",
    "EngineReviewResult",
]
