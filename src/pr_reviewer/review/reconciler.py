# src/pr_reviewer/review/reconciler.py
import logging
import re
from collections.abc import Collection, Iterable, Iterator
from pr_reviewer.models.config import FindingType
from pr_reviewer.models.diff import DiffAnalysis
from pr_reviewer.models.review import Finding
from .parser import split_lines


logger = logging.getLogger(__name__)

DEFAULT_OVERLAP_RATIO = 0.5
DEFAULT_KEYWORD_MIN_LENGTH = 3

_PUNCTUATION = "\"'`.,;:!?()[]{}<>"

# (description terms, line markers) per finding type
TYPE_PATTERNS: dict[FindingType, list[tuple[re.Pattern, re.Pattern]]] = {
    FindingType.SECURITY: [
        (
            re.compile(r"\b(log|logs|logged|logger|logging|console|print)\b", re.IGNORECASE),
            re.compile(
                r"(console\.(log|error|warn|info|debug)|\blog(ger|ging)?\.\w+\s*\(|\bprint(ln|f)?\s*\(|System\.out\.print)",
                re.IGNORECASE,
            ),
        ),
        (
            re.compile(r"\b(endpoint|endpoints|url|urls|uri|uris|http|https)\b", re.IGNORECASE),
            re.compile(r"(https?://|\burl\b|\buri\b|endpoint)", re.IGNORECASE),
        ),
        (
            re.compile(r"\b(credential|credentials|password|passwords|secret|secrets|token|tokens|key|keys)\b", re.IGNORECASE),
            re.compile(r"(api[_-]?key|\bkey\b|token|secret|password|passwd|credential)", re.IGNORECASE),
        ),
    ],
    FindingType.BUG: [
        (
            re.compile(r"\bsyntax\b", re.IGNORECASE),
            re.compile(
                r"([{}()\[\];]|\b(function|def|class|const|let|var|return|import|export|public|private)\b)"
            ),
        ),
    ],
}


def extract_keywords(text: str | None, min_length: int = DEFAULT_KEYWORD_MIN_LENGTH) -> list[str]:
    """Lowercased words longer than ``min_length``, punctuation stripped, in order."""
    keywords: list[str] = []
    for word in (text or "").lower().split():
        word = word.strip(_PUNCTUATION)
        if len(word) > min_length and word not in keywords:
            keywords.append(word)
    return keywords


def _snippet_needle(snippet: str | None) -> str:
    """First non-blank line of a snippet, stripped."""
    for line in (snippet or "").split("\n"):
        if line.strip():
            return line.strip()
    return ""


class LineValidator:
    """Shared acceptance test for candidate lines.

    A candidate must be inside the file and one of the changed lines, and
    the line text must carry evidence of the finding: enough snippet words,
    or failing a snippet, at least one description keyword.
    """

    def __init__(
        self,
        overlap_ratio: float = DEFAULT_OVERLAP_RATIO,
        keyword_min_length: int = DEFAULT_KEYWORD_MIN_LENGTH,
    ):
        self.overlap_ratio = overlap_ratio
        self.keyword_min_length = keyword_min_length

    def validate(
        self,
        finding: Finding,
        line: int,
        file_lines: list[str],
        changed_lines: Collection[int],
    ) -> bool:
        if line < 1 or line > len(file_lines) or line not in changed_lines:
            return False

        text = file_lines[line - 1].lower()

        snippet = (finding.code_snippet or "").strip()
        if snippet:
            snippet_words = snippet.lower().split()
            line_words = text.split()
            # Only long line words may match inside a snippet word
            long_words = [other for other in line_words if len(other) > self.keyword_min_length]
            matched = sum(
                1
                for word in snippet_words
                if any(word in other for other in line_words)
                or any(other in word for other in long_words)
            )
            return matched >= len(snippet_words) * self.overlap_ratio

        keywords = extract_keywords(finding.description, self.keyword_min_length)
        if not keywords:
            return False
        return self.keyword_hit(keywords, text)

    def keyword_hit(self, keywords: list[str], text: str) -> bool:
        """True if any keyword appears in ``text`` or a long word of ``text`` appears in a keyword."""
        lowered = text.lower()
        line_words = [
            word
            for word in (w.strip(_PUNCTUATION) for w in lowered.split())
            if len(word) > self.keyword_min_length
        ]
        return any(
            keyword in lowered or any(word in keyword for word in line_words)
            for keyword in keywords
        )


class LineReconciler:
    """Map a finding onto a changed line of the diff.

    Strategies run from strongest to weakest evidence and every candidate
    goes through the same validator. Returns 0 when no line qualifies.
    """

    def __init__(self, validator: LineValidator | None = None):
        self.validator = validator or LineValidator()

    def reconcile(self, finding: Finding, analysis: DiffAnalysis, file_content: str | None) -> int:
        file_lines = split_lines(file_content)
        changed = analysis.changed_set
        if not changed or not file_lines:
            return 0

        for strategy, candidates in self._strategies(finding, analysis, file_lines):
            for line in candidates:
                if self.validator.validate(finding, line, file_lines, changed):
                    logger.debug(f"Finding reconciled to line {line} via {strategy}")
                    return line

        logger.debug(f"Finding not reconcilable: {finding.description[:80]!r}")
        return 0

    def _strategies(
        self,
        finding: Finding,
        analysis: DiffAnalysis,
        file_lines: list[str],
    ) -> Iterator[tuple[str, Iterable[int]]]:
        if finding.line_number:
            yield "line_number", [finding.line_number]

        needle = _snippet_needle(finding.code_snippet)
        if needle:
            yield "snippet_in_diff", (
                n for n in analysis.added_lines if needle in analysis.changed_content[n]
            )
            yield "snippet_in_file", (
                n for n, text in enumerate(file_lines, start=1) if needle in text
            )

        keywords = extract_keywords(finding.description, self.validator.keyword_min_length)
        if keywords:
            yield "keywords_in_diff", (
                n
                for n in analysis.added_lines
                if self.validator.keyword_hit(keywords, analysis.changed_content[n])
            )
            yield "keywords_in_file", (
                n
                for n, text in enumerate(file_lines, start=1)
                if self.validator.keyword_hit(keywords, text)
            )

        markers = self._type_markers(finding)
        if markers:
            changed = analysis.changed_set
            yield "type_pattern", (
                n
                for n, text in enumerate(file_lines, start=1)
                if n in changed and any(marker.search(text) for marker in markers)
            )

    def _type_markers(self, finding: Finding) -> list[re.Pattern]:
        return [
            marker
            for terms, marker in TYPE_PATTERNS.get(finding.type, [])
            if terms.search(finding.description)
        ]
