# src/pr_reviewer/main.py
import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from fastapi import FastAPI, Header, HTTPException, BackgroundTasks, Request
from pydantic import BaseModel, Field, ValidationError

from pr_reviewer.config import Settings
from pr_reviewer.models.comments import ExistingComment
from pr_reviewer.models.review import Finding, ReconciledAnnotation
from pr_reviewer.models.webhook import AzureDevOpsPREvent
from pr_reviewer.platforms.azure_devops import AzureDevOpsClient
from pr_reviewer.providers.azure_openai import AzureOpenAIProvider
from pr_reviewer.providers.base import LLMProvider
from pr_reviewer.providers.gemini import GeminiProvider
from pr_reviewer.review.dedup import DuplicateGuard
from pr_reviewer.review.engine import ReviewEngine
from pr_reviewer.review.parser import parse_file_diff, split_patch
from pr_reviewer.review.pipeline import ReconciliationParams, run_file_pass


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

REVIEW_EVENTS = ("git.pullrequest.created", "git.pullrequest.updated")


@lru_cache
def get_settings() -> Settings:
    return Settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())
    logger.info("AI PR Reviewer starting...")
    yield
    logger.info("AI PR Reviewer shutting down...")


app = FastAPI(title="AI PR Reviewer", lifespan=lifespan)


class WebhookResponse(BaseModel):
    status: str
    message: str | None = None


class ReviewRequest(BaseModel):
    pull_request_id: int = Field(gt=0)
    repository: str | None = None


class ReviewResponse(BaseModel):
    status: str
    pull_request_id: int | None = None
    files_reviewed: int | None = None
    comments_posted: int | None = None
    general_comments_posted: int | None = None
    duplicates_skipped: int | None = None
    llm_calls_used: int | None = None
    summary: str | None = None
    error: str | None = None


class ReconcileRequest(BaseModel):
    patch: str
    files: dict[str, str] = Field(default_factory=dict)
    findings: dict[str, list[Finding]] = Field(default_factory=dict)
    existing_comments: list[ExistingComment] = Field(default_factory=list)
    review_threshold: float | None = Field(default=None, ge=0.0, le=1.0)


class FileReconciliation(BaseModel):
    file_path: str
    added_lines: list[int]
    annotations: list[ReconciledAnnotation]
    suppressed: int
    unreconciled: int


class ReconcileResponse(BaseModel):
    files: list[FileReconciliation]


def get_provider(settings: Settings) -> LLMProvider | None:
    """Get LLM provider based on settings."""
    if (
        settings.default_provider == "azure_openai"
        and settings.azure_openai_endpoint
        and settings.azure_openai_api_key
    ):
        return AzureOpenAIProvider(
            endpoint=settings.azure_openai_endpoint,
            api_key=settings.azure_openai_api_key,
            deployment=settings.azure_openai_deployment,
            api_version=settings.azure_openai_api_version,
        )
    elif settings.default_provider == "gemini" and settings.gemini_api_key:
        return GeminiProvider(api_key=settings.gemini_api_key)
    return None


def get_repository(settings: Settings, pull_request_id: int, repository: str | None = None) -> AzureDevOpsClient:
    return AzureDevOpsClient(
        token=settings.azure_devops_token,
        org_url=settings.azure_devops_org_url,
        project=settings.azure_devops_project,
        repository=repository or settings.azure_devops_repository,
        pull_request_id=pull_request_id,
    )


@app.get("/health")
async def health():
    return {"status": "ok", "version": "0.1.0"}


@app.post("/webhook/azure-devops", response_model=WebhookResponse)
async def azure_devops_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_webhook_secret: str = Header(...),
):
    settings = get_settings()

    # Verify shared secret configured on the service hook
    if x_webhook_secret != settings.webhook_secret:
        raise HTTPException(status_code=401, detail="Invalid webhook secret")

    body = await request.json()
    if body.get("eventType") not in REVIEW_EVENTS:
        return WebhookResponse(status="ignored", message="Event not relevant")

    try:
        event = AzureDevOpsPREvent(**body)
    except ValidationError as e:
        logger.warning(f"Malformed pull request event: {e}")
        raise HTTPException(status_code=422, detail="Invalid pull request event payload")
    pr = event.resource
    if pr.is_draft or (pr.status and pr.status != "active"):
        return WebhookResponse(status="ignored", message="Pull request not active")

    background_tasks.add_task(
        run_review,
        pull_request_id=pr.pull_request_id,
        repository=pr.repository.name,
    )
    return WebhookResponse(status="accepted", message="Review scheduled")


@app.post("/api/review", response_model=ReviewResponse)
async def trigger_review(request: ReviewRequest):
    """Manually trigger a review for a pull request."""
    settings = get_settings()

    try:
        provider = get_provider(settings)
        if not provider:
            return ReviewResponse(
                status="error",
                error="No LLM provider configured",
            )

        repository = get_repository(settings, request.pull_request_id, request.repository)
        engine = ReviewEngine(repository=repository, provider=provider, settings=settings)
        result = await engine.review_pull_request()

        return ReviewResponse(
            status="completed",
            pull_request_id=request.pull_request_id,
            files_reviewed=result.files_reviewed,
            comments_posted=result.comments_posted,
            general_comments_posted=result.general_comments_posted,
            duplicates_skipped=result.duplicates_skipped,
            llm_calls_used=result.llm_calls_used,
            summary=result.summary or "No issues found",
        )

    except Exception as e:
        logger.exception(f"Review failed: {e}")
        return ReviewResponse(status="error", pull_request_id=request.pull_request_id, error=str(e))


@app.post("/api/reconcile", response_model=ReconcileResponse)
async def reconcile(request: ReconcileRequest):
    """Place findings on the changed lines of a patch without posting anything."""
    settings = get_settings()
    params = ReconciliationParams.from_settings(settings)
    if request.review_threshold is not None:
        params.review_threshold = request.review_threshold

    diffs = split_patch(request.patch)
    if not diffs and len(request.files) == 1:
        # Bare single-file diff without ---/+++ headers
        diffs = {next(iter(request.files)): request.patch}

    guard = DuplicateGuard(request.existing_comments, build_service_marker=settings.build_service_marker)

    results = []
    for file_path, findings in request.findings.items():
        analysis = parse_file_diff(diffs.get(file_path.lstrip("/"), diffs.get(file_path)))
        result = run_file_pass(
            file_path,
            analysis,
            request.files.get(file_path, ""),
            findings,
            params,
            guard,
        )
        results.append(FileReconciliation(
            file_path=file_path,
            added_lines=analysis.added_lines,
            annotations=result.annotations,
            suppressed=len(result.suppressed),
            unreconciled=result.unreconciled,
        ))

    return ReconcileResponse(files=results)


async def run_review(pull_request_id: int, repository: str | None = None):
    """Background task to run the review."""
    settings = get_settings()

    provider = get_provider(settings)
    if not provider:
        logger.error("No LLM provider configured")
        return

    engine = ReviewEngine(
        repository=get_repository(settings, pull_request_id, repository),
        provider=provider,
        settings=settings,
    )

    try:
        await engine.review_pull_request(automatic=True)
        logger.info(f"Review completed for PR !{pull_request_id}")
    except Exception as e:
        logger.exception(f"Review failed for PR !{pull_request_id}: {e}")
