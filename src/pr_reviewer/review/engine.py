# src/pr_reviewer/review/engine.py
import fnmatch
import logging
import re
import yaml
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from pr_reviewer.config import Settings
from pr_reviewer.models.comments import ExistingComment
from pr_reviewer.models.config import SEVERITY_ORDER, FindingType, RepoConfig, Severity
from pr_reviewer.models.diff import ChangedBlock
from pr_reviewer.models.pull_request import PullRequestDetails
from pr_reviewer.models.review import Finding, ReconciledAnnotation
from pr_reviewer.platforms.base import RepositoryService
from pr_reviewer.providers.base import LLMProvider
from .context import build_changed_blocks
from .dedup import DuplicateGuard
from .parser import parse_file_diff, split_lines
from .pipeline import FilePassResult, ReconciliationParams, run_file_pass
from .prompts import build_review_prompt, build_security_prompt
from .session import ReviewSession
from .summary import build_summary, format_summary_comment


logger = logging.getLogger(__name__)

BINARY_EXTENSIONS = (
    ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".ico", ".svg",
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    ".zip", ".rar", ".7z", ".tar", ".gz",
    ".exe", ".dll", ".so", ".dylib", ".jar", ".war",
    ".mp3", ".mp4", ".avi", ".mov", ".wav",
)


@dataclass
class EngineReviewResult:
    """Result of running review on a pull request."""
    files_reviewed: int
    comments_posted: int
    general_comments_posted: int
    duplicates_skipped: int
    llm_calls_used: int
    requires_changes: bool
    summary: str


def is_binary_path(file_path: str) -> bool:
    return file_path.lower().endswith(BINARY_EXTENSIONS)


class ReviewEngine:
    def __init__(
        self,
        repository: RepositoryService,
        provider: LLMProvider,
        settings: Settings,
        session: ReviewSession | None = None,
    ):
        self.repository = repository
        self.provider = provider
        self.settings = settings
        self.reviewer_name = settings.reviewer_name
        self.session = session or ReviewSession(max_llm_calls=settings.max_llm_calls)
        self.log_dir = Path(settings.log_dir) if settings.log_dir else None
        if self.log_dir:
            self.log_dir.mkdir(parents=True, exist_ok=True)

    async def review_pull_request(self, automatic: bool = False) -> EngineReviewResult:
        """Run AI review on the repository's pull request.

        ``automatic`` marks webhook-triggered runs, which repositories can
        turn off with ``auto_review: false``.
        """
        pr = await self.repository.get_pull_request()
        config = await self._load_config(pr.source_branch)
        if automatic and not config.auto_review:
            logger.info(f"auto_review disabled for PR {pr.pull_request_id}, skipping")
            return EngineReviewResult(
                files_reviewed=0,
                comments_posted=0,
                general_comments_posted=0,
                duplicates_skipped=0,
                llm_calls_used=0,
                requires_changes=False,
                summary="",
            )

        params = ReconciliationParams.from_settings(self.settings, config)
        changed_files = await self.repository.get_changed_files()
        guard = DuplicateGuard(
            await self._load_existing_comments(),
            build_service_marker=self.settings.build_service_marker,
        )

        results: list[FilePassResult] = []
        summaries: list[str] = []
        prompt_logs: list[str] = []

        for file_path in changed_files:
            if self._is_excluded(file_path, config.exclude) or is_binary_path(file_path):
                logger.info(f"Skipping {file_path}")
                continue

            if self.session.exhausted:
                logger.warning(f"Maximum LLM calls ({self.session.max_llm_calls}) reached. Stopping review.")
                break

            result = await self._review_file(file_path, pr, config, params, guard, summaries, prompt_logs)
            if result is not None:
                results.append(result)

        self._save_review_log(pr.pull_request_id, prompt_logs)

        comments_posted = 0
        general_posted = 0
        for result in results:
            inline, general = await self._post_file_annotations(result)
            comments_posted += inline
            general_posted += general

        all_findings = [finding for result in results for finding in result.findings]
        summary = build_summary(all_findings, files_reviewed=len(results), file_summaries=summaries)
        if guard.has_recent_summary():
            logger.info("Recent summary comment exists, skipping duplicate")
        else:
            try:
                await self.repository.post_general_comment(format_summary_comment(summary, self.reviewer_name))
            except Exception as e:
                logger.error(f"Failed to post summary comment: {e}")

        return EngineReviewResult(
            files_reviewed=len(results),
            comments_posted=comments_posted,
            general_comments_posted=general_posted,
            duplicates_skipped=sum(len(result.suppressed) for result in results),
            llm_calls_used=self.session.llm_calls,
            requires_changes=summary.requires_changes,
            summary=summary.summary,
        )

    async def _review_file(
        self,
        file_path: str,
        pr: PullRequestDetails,
        config: RepoConfig,
        params: ReconciliationParams,
        guard: DuplicateGuard,
        summaries: list[str],
        prompt_logs: list[str],
    ) -> FilePassResult | None:
        try:
            file = await self.repository.get_file_content(file_path, pr.source_branch)
        except Exception as e:
            logger.warning(f"Could not get file content for {file_path}: {e}")
            file = None

        if file is not None and file.is_binary:
            logger.info(f"Skipping binary file content: {file_path}")
            return None
        file_content = file.content if file is not None else ""

        try:
            diff_text = await self.repository.get_file_diff(file_path, pr.target_branch, pr.source_branch)
        except Exception as e:
            logger.warning(f"Could not get diff for {file_path}: {e}")
            diff_text = f"File {file_path} has changes (diff unavailable)"

        analysis = parse_file_diff(diff_text)
        blocks = build_changed_blocks(analysis.added_lines, split_lines(file_content), params.context_radius)

        prompt = build_review_prompt(
            file_path=file_path,
            blocks=blocks,
            diff_content=diff_text,
            config=config,
            pr_title=pr.title,
            pr_description=pr.description,
        )
        prompt_logs.append(self._strip_file_content(file_path, prompt))

        if not await self.session.try_acquire_call():
            logger.warning(f"LLM call budget exhausted before {file_path}")
            return None

        try:
            review = await self.provider.review(prompt)
        except Exception as e:
            logger.error(f"LLM review failed for {file_path}: {e}")
            return None

        issues = list(review.issues)
        if self._security_scan_enabled(config):
            issues.extend(await self._security_scan(file_path, blocks, diff_text, config, prompt_logs))

        findings = [
            finding
            for finding in issues
            if finding.type in config.checks
            and self._passes_severity_threshold(finding.severity, config.min_severity)
        ]
        if review.summary:
            summaries.append(f"**{file_path}**: {review.summary}")

        result = run_file_pass(file_path, analysis, file_content, findings, params, guard)
        logger.info(
            f"{file_path}: {len(result.inline)} inline, {len(result.general)} general, "
            f"{len(result.suppressed)} duplicates"
        )
        return result

    async def _security_scan(
        self,
        file_path: str,
        blocks: list[ChangedBlock],
        diff_text: str,
        config: RepoConfig,
        prompt_logs: list[str],
    ) -> list[Finding]:
        """Second model pass looking only for vulnerabilities. Findings come back typed security."""
        if not await self.session.try_acquire_call():
            logger.info(f"LLM call budget exhausted, skipping security scan of {file_path}")
            return []

        prompt = build_security_prompt(file_path, blocks, diff_text, config)
        prompt_logs.append(self._strip_file_content(f"{file_path} (security)", prompt))
        try:
            scan = await self.provider.review(prompt)
        except Exception as e:
            logger.error(f"Security scan failed for {file_path}: {e}")
            return []

        logger.info(f"{file_path}: security scan reported {len(scan.issues)} issues")
        return [finding.model_copy(update={"type": FindingType.SECURITY}) for finding in scan.issues]

    def _security_scan_enabled(self, config: RepoConfig) -> bool:
        if FindingType.SECURITY not in config.checks:
            return False
        if config.security_scan is not None:
            return config.security_scan
        return self.settings.enable_security_scanning

    async def _post_file_annotations(self, result: FilePassResult) -> tuple[int, int]:
        """Post one file's annotations. Returns (inline, general) counts.

        Inline annotations the platform rejects are collected into a single
        general comment for the file.
        """
        inline_posted = 0
        general_posted = 0
        failed: list[ReconciledAnnotation] = []

        for annotation in result.annotations:
            if annotation.is_inline:
                try:
                    await self.repository.post_inline_comment(annotation.file, annotation.text, annotation.line)
                    inline_posted += 1
                except Exception as e:
                    logger.error(f"Failed to post inline comment on {annotation.file}:{annotation.line}: {e}")
                    failed.append(annotation)
                continue

            if await self._post_general(annotation.text, annotation.file):
                general_posted += 1

        if failed and await self._post_general(self._fallback_text(result.file_path, failed), result.file_path):
            general_posted += 1

        return inline_posted, general_posted

    async def _post_general(self, text: str, file_path: str) -> bool:
        try:
            await self.repository.post_general_comment(text)
            return True
        except Exception as e:
            logger.error(f"Failed to post general comment for {file_path}: {e}")
            return False

    def _fallback_text(self, file_path: str, failed: list[ReconciledAnnotation]) -> str:
        """General comment carrying the inline annotations that could not be posted."""
        return f"**File: {file_path}**\n\n" + "\n\n---\n\n".join(a.text for a in failed)

    async def _load_existing_comments(self) -> list[ExistingComment]:
        try:
            comments = await self.repository.list_existing_comments()
            logger.info(f"Found {len(comments)} existing comments")
            return comments
        except Exception as e:
            logger.warning(f"Could not fetch existing comments, assuming no duplicates: {e}")
            return []

    async def _load_config(self, ref: str) -> RepoConfig:
        """Load .ai-review.yaml from repo or use defaults."""
        try:
            yaml_content = await self.repository.get_repo_config(ref)
        except Exception as e:
            logger.warning(f"Could not fetch .ai-review.yaml: {e}")
            return RepoConfig()
        if yaml_content is None:
            return RepoConfig()

        try:
            data = yaml.safe_load(yaml_content) or {}
            return RepoConfig(**data)
        except Exception as e:
            logger.warning(f"Invalid .ai-review.yaml: {e}")
            return RepoConfig()

    def _is_excluded(self, file_path: str, patterns: list[str]) -> bool:
        """Check if file matches any exclude pattern."""
        path = file_path.lstrip("/")
        for pattern in patterns:
            if fnmatch.fnmatch(path, pattern):
                return True
        return False

    def _passes_severity_threshold(self, severity: Severity, threshold: Severity) -> bool:
        """Check if finding severity meets threshold."""
        return SEVERITY_ORDER[severity] >= SEVERITY_ORDER[threshold]

    def _strip_file_content(self, file_path: str, prompt: str) -> str:
        """Strip the numbered listing from prompt, keep everything else."""
        stripped = re.sub(
            r"(Changed regions with line numbers \(> marks changed lines\):\n```\n).*?(\n```)",
            r"\1[file content omitted]\2",
            prompt,
            flags=re.DOTALL,
        )
        return f"{'=' * 60}\nFILE: {file_path}\n{'=' * 60}\n\n{stripped}"

    def _save_review_log(self, pull_request_id: int, prompt_logs: list[str]) -> None:
        """Save all prompts from one review run into a single log file."""
        if not self.log_dir or not prompt_logs:
            return
        try:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            log_path = self.log_dir / f"{timestamp}_pr{pull_request_id}.txt"

            header = f"Review: pr={pull_request_id}\nTime: {timestamp}\nFiles: {len(prompt_logs)}\n\n"
            log_path.write_text(header + "\n\n".join(prompt_logs), encoding="utf-8")
            logger.info(f"Review log saved: {log_path}")
        except Exception as e:
            logger.warning(f"Failed to save review log: {e}")
