from .config import RepoConfig, FindingType, Severity
from .comments import ExistingComment, CommentAuthor, LineCoordinates
from .diff import DiffAnalysis, ChangedBlock, BlockLine, LineKind, LineRecord
from .pull_request import PullRequestDetails, FileContent
from .review import Finding, ReviewResult, ReconciledAnnotation, AnnotationKind
from .webhook import AzureDevOpsPREvent

__all__ = [
    "RepoConfig",
    "FindingType",
    "Severity",
    "ExistingComment",
    "CommentAuthor",
    "LineCoordinates",
    "DiffAnalysis",
    "ChangedBlock",
    "BlockLine",
    "LineKind",
    "LineRecord",
    "PullRequestDetails",
    "FileContent",
    "Finding",
    "ReviewResult",
    "ReconciledAnnotation",
    "AnnotationKind",
    "AzureDevOpsPREvent",
]
