from datetime import datetime, timedelta, timezone

import pytest
from pr_reviewer.models.comments import CommentAuthor, ExistingComment, LineCoordinates
from pr_reviewer.models.config import FindingType
from pr_reviewer.models.review import AnnotationKind, ReconciledAnnotation
from pr_reviewer.review.dedup import DuplicateGuard, normalize_path


BUILD_SERVICE = CommentAuthor(unique_name="Build\\6f1c2a", display_name="Project Build Service (org)")
HUMAN = CommentAuthor(unique_name="jane@example.com", display_name="Jane Doe")


def _annotation(line=7, file="src/app.py", finding_type=FindingType.BUG):
    return ReconciledAnnotation(file=file, line=line, text="...", type=finding_type, confidence=0.9)


def _comment(**overrides):
    data = dict(
        file_path="/src/app.py",
        line_coordinates=LineCoordinates(right_start=7, right_end=7),
        author=BUILD_SERVICE,
        content="⚠️ **BUG** off by one",
    )
    data.update(overrides)
    return ExistingComment(**data)


@pytest.mark.unit
def test_matching_build_service_comment_is_duplicate():
    guard = DuplicateGuard([_comment()])

    assert guard.is_duplicate(_annotation()) is True


@pytest.mark.unit
@pytest.mark.parametrize("overrides", [
    {"line_coordinates": LineCoordinates(right_start=8, right_end=9)},
    {"line_coordinates": None},
    {"file_path": "/src/other.py"},
    {"content": "Consider renaming"},
    {"author": HUMAN},
    {"is_deleted": True},
    {"resolved": True},
])
def test_any_failing_condition_allows_posting(overrides):
    guard = DuplicateGuard([_comment(**overrides)])

    assert guard.is_duplicate(_annotation()) is False


@pytest.mark.unit
def test_left_side_endpoints_count_as_same_location():
    comment = _comment(line_coordinates=LineCoordinates(left_start=7, left_end=7))

    assert DuplicateGuard([comment]).is_duplicate(_annotation()) is True


@pytest.mark.unit
def test_type_synonym_matches_topic():
    comment = _comment(content="Possible vulnerability: token is logged")

    assert DuplicateGuard([comment]).is_duplicate(_annotation(finding_type=FindingType.SECURITY)) is True


@pytest.mark.unit
def test_display_name_identifies_build_service():
    author = CommentAuthor(unique_name="svc-account", display_name="Contoso Build Service")

    assert DuplicateGuard([_comment(author=author)]).is_duplicate(_annotation()) is True


@pytest.mark.unit
def test_build_service_marker_is_configurable():
    author = CommentAuthor(unique_name="review-bot@svc", display_name="Review Bot")
    guard = DuplicateGuard([_comment(author=author)], build_service_marker="review-bot")

    assert guard.is_duplicate(_annotation()) is True
    assert DuplicateGuard([_comment(author=author)]).is_duplicate(_annotation()) is False


@pytest.mark.unit
def test_file_level_annotation_is_never_duplicate():
    assert DuplicateGuard([_comment()]).is_duplicate(_annotation(line=None)) is False


@pytest.mark.unit
def test_no_existing_comments():
    assert DuplicateGuard([]).is_duplicate(_annotation()) is False


@pytest.mark.unit
def test_normalize_path():
    assert normalize_path("src/a.py") == "/src/a.py"
    assert normalize_path("/src/a.py") == "/src/a.py"
    assert normalize_path("") is None
    assert normalize_path(None) is None


@pytest.mark.unit
def test_recent_summary_detected_within_window():
    now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    recent = ExistingComment(content="## 🔍 PR Review Summary\n...", published_at=now - timedelta(hours=3))
    stale = ExistingComment(content="## 🔍 PR Review Summary\n...", published_at=now - timedelta(hours=30))

    assert DuplicateGuard([recent]).has_recent_summary(now=now) is True
    assert DuplicateGuard([stale]).has_recent_summary(now=now) is False


@pytest.mark.unit
def test_recent_summary_ignores_other_comments_and_naive_timestamps_are_utc():
    now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    other = ExistingComment(content="LGTM", published_at=now)
    undated = ExistingComment(content="### 📊 Review Statistics")
    naive = ExistingComment(content="Overall Assessment: approve", published_at=datetime(2024, 5, 1, 11, 0))

    assert DuplicateGuard([other, undated]).has_recent_summary(now=now) is False
    assert DuplicateGuard([naive]).has_recent_summary(now=now) is True


@pytest.mark.unit
def test_fix_acknowledgement_is_never_duplicate():
    praise = ReconciledAnnotation(
        file="src/app.py",
        line=7,
        text="✅ **Fixed**",
        type=FindingType.BUG,
        confidence=0.9,
        kind=AnnotationKind.PRAISE,
    )

    assert DuplicateGuard([_comment()]).is_duplicate(praise) is False
