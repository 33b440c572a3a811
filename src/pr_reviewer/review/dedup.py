import logging
from datetime import datetime, timedelta, timezone
from pr_reviewer.models.comments import ExistingComment
from pr_reviewer.models.config import FindingType
from pr_reviewer.models.review import AnnotationKind, ReconciledAnnotation


logger = logging.getLogger(__name__)

TYPE_SYNONYMS = {
    FindingType.BUG: ("bug", "defect", "error"),
    FindingType.IMPROVEMENT: ("improvement", "refactor", "enhancement"),
    FindingType.SECURITY: ("security", "vulnerability", "vulnerable"),
    FindingType.STYLE: ("style", "formatting", "naming"),
    FindingType.TEST: ("test", "coverage"),
}

SUMMARY_MARKERS = ("PR Review Summary", "Review Statistics", "Overall Assessment")
SUMMARY_WINDOW = timedelta(hours=24)


def normalize_path(path: str | None) -> str | None:
    if not path:
        return None
    return path if path.startswith("/") else f"/{path}"


class DuplicateGuard:
    """Decide whether a new annotation repeats a comment already on the PR.

    Built from the existing-comment snapshot fetched once per run.
    """

    def __init__(self, existing_comments: list[ExistingComment], build_service_marker: str = "build"):
        self.existing_comments = existing_comments
        self.build_service_marker = build_service_marker.lower()

    def is_duplicate(self, annotation: ReconciledAnnotation) -> bool:
        # General comments and fix acknowledgements are always posted
        if annotation.line is None or annotation.kind is AnnotationKind.PRAISE:
            return False

        path = normalize_path(annotation.file)
        return any(
            self._same_location(comment, path, annotation.line)
            and self._same_topic(comment, annotation.type)
            and self._from_build_service(comment)
            and not comment.is_deleted
            and not comment.resolved
            for comment in self.existing_comments
        )

    def has_recent_summary(self, now: datetime | None = None, window: timedelta = SUMMARY_WINDOW) -> bool:
        now = now or datetime.now(timezone.utc)
        for comment in self.existing_comments:
            if not any(marker in comment.content for marker in SUMMARY_MARKERS):
                continue
            if comment.published_at is None:
                continue
            published = comment.published_at
            if published.tzinfo is None:
                published = published.replace(tzinfo=timezone.utc)
            if now - published < window:
                return True
        return False

    def _same_location(self, comment: ExistingComment, path: str | None, line: int) -> bool:
        if comment.line_coordinates is None or normalize_path(comment.file_path) != path:
            return False
        return line in comment.line_coordinates.endpoints()

    def _same_topic(self, comment: ExistingComment, finding_type: FindingType) -> bool:
        content = comment.content.lower()
        keywords = (finding_type.value,) + TYPE_SYNONYMS.get(finding_type, ())
        return any(keyword in content for keyword in keywords)

    def _from_build_service(self, comment: ExistingComment) -> bool:
        unique_name = (comment.author.unique_name or "").lower()
        display_name = (comment.author.display_name or "").lower()
        return (
            bool(self.build_service_marker) and self.build_service_marker in unique_name
        ) or "build service" in display_name
