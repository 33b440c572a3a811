# src/pr_reviewer/platforms/azure_devops.py
import logging
from typing import Any
from urllib.parse import quote
import httpx
from .base import RepositoryService
from pr_reviewer.models.comments import CommentAuthor, ExistingComment, LineCoordinates
from pr_reviewer.models.pull_request import FileContent, PullRequestDetails
from pr_reviewer.review.parser import build_fallback_diff


logger = logging.getLogger(__name__)

API_VERSION = "7.0"
RESOLVED_THREAD_STATUSES = {"fixed", "wontFix", "closed", "byDesign"}
CONFIG_FILE = ".ai-review.yaml"


def strip_ref(ref: str) -> str:
    return ref.removeprefix("refs/heads/")


def _line(position: dict[str, Any] | None) -> int | None:
    if not position:
        return None
    return position.get("line")


class AzureDevOpsClient(RepositoryService):
    def __init__(
        self,
        token: str,
        org_url: str,
        project: str,
        repository: str,
        pull_request_id: int,
    ):
        self.token = token
        self.org_url = org_url.rstrip("/")
        self.project = project
        self.repository = repository
        self.pull_request_id = pull_request_id
        self.repo_url = (
            f"{self.org_url}/{quote(project, safe='')}/_apis/git/repositories/{quote(repository, safe='')}"
        )
        self.pr_url = f"{self.repo_url}/pullRequests/{pull_request_id}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(auth=httpx.BasicAuth("", self.token), timeout=30.0)

    async def get_pull_request(self) -> PullRequestDetails:
        async with self._client() as client:
            response = await client.get(self.pr_url, params={"api-version": API_VERSION})
            response.raise_for_status()
            data = response.json()

        return PullRequestDetails(
            pull_request_id=data["pullRequestId"],
            title=data.get("title") or "",
            description=data.get("description") or "",
            author=(data.get("createdBy") or {}).get("displayName") or "",
            source_branch=strip_ref(data["sourceRefName"]),
            target_branch=strip_ref(data["targetRefName"]),
        )

    async def get_changed_files(self) -> list[str]:
        """Paths changed in the latest iteration, deletions and folders excluded."""
        async with self._client() as client:
            response = await client.get(f"{self.pr_url}/iterations", params={"api-version": API_VERSION})
            response.raise_for_status()
            iterations = response.json().get("value", [])
            if not iterations:
                return []

            latest = max(iteration["id"] for iteration in iterations)
            response = await client.get(
                f"{self.pr_url}/iterations/{latest}/changes",
                params={"api-version": API_VERSION},
            )
            response.raise_for_status()
            entries = response.json().get("changeEntries", [])

        files = []
        for entry in entries:
            item = entry.get("item") or {}
            path = item.get("path")
            if not path or item.get("gitObjectType", "blob") != "blob":
                continue
            if "delete" in (entry.get("changeType") or ""):
                continue
            files.append(path)
        return files

    async def get_file_content(self, file_path: str, ref: str) -> FileContent:
        async with self._client() as client:
            response = await client.get(
                f"{self.repo_url}/items",
                params={
                    "path": file_path,
                    "versionDescriptor.version": strip_ref(ref),
                    "versionDescriptor.versionType": "branch",
                    "includeContent": "true",
                    "$format": "json",
                    "api-version": API_VERSION,
                },
            )
            response.raise_for_status()
            data = response.json()

        content = data.get("content") or ""
        return FileContent(path=file_path, content=content, is_binary="\x00" in content)

    async def get_file_diff(self, file_path: str, base_ref: str, target_ref: str) -> str:
        """Unified diff of a file between two branches.

        Azure DevOps has no unified diff endpoint, so the diff is built from
        both versions. A file missing on the base branch diffs as new.
        """
        try:
            base = (await self.get_file_content(file_path, base_ref)).content
        except httpx.HTTPStatusError as e:
            if e.response.status_code != 404:
                raise
            base = ""

        target = (await self.get_file_content(file_path, target_ref)).content
        return build_fallback_diff(base, target, file_path)

    async def get_repo_config(self, ref: str) -> str | None:
        """Get .ai-review.yaml content, returns None if not found."""
        try:
            return (await self.get_file_content(CONFIG_FILE, ref)).content
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                return None
            raise

    async def list_existing_comments(self) -> list[ExistingComment]:
        async with self._client() as client:
            response = await client.get(f"{self.pr_url}/threads", params={"api-version": API_VERSION})
            response.raise_for_status()
            threads = response.json().get("value", [])

        comments = []
        for thread in threads:
            context = thread.get("threadContext") or {}
            coordinates = None
            if context:
                coordinates = LineCoordinates(
                    right_start=_line(context.get("rightFileStart")),
                    right_end=_line(context.get("rightFileEnd")),
                    left_start=_line(context.get("leftFileStart")),
                    left_end=_line(context.get("leftFileEnd")),
                )
            for comment in thread.get("comments") or []:
                author = comment.get("author") or {}
                comments.append(ExistingComment(
                    file_path=context.get("filePath"),
                    line_coordinates=coordinates,
                    author=CommentAuthor(
                        unique_name=author.get("uniqueName"),
                        display_name=author.get("displayName"),
                    ),
                    content=comment.get("content") or "",
                    is_deleted=bool(thread.get("isDeleted") or comment.get("isDeleted")),
                    resolved=thread.get("status") in RESOLVED_THREAD_STATUSES,
                    published_at=comment.get("publishedDate") or comment.get("lastUpdatedDate"),
                ))
        return comments

    async def _create_thread(self, body: dict[str, Any]) -> None:
        async with self._client() as client:
            response = await client.post(
                f"{self.pr_url}/threads",
                params={"api-version": API_VERSION},
                json=body,
            )
            response.raise_for_status()

    async def post_inline_comment(self, file_path: str, comment: str, line: int) -> None:
        path = file_path if file_path.startswith("/") else f"/{file_path}"
        await self._create_thread({
            "comments": [{"parentCommentId": 0, "content": comment, "commentType": 1}],
            "status": 1,
            "threadContext": {
                "filePath": path,
                "rightFileStart": {"line": line, "offset": 1},
                "rightFileEnd": {"line": line, "offset": 1},
            },
        })

    async def post_general_comment(self, comment: str) -> None:
        await self._create_thread({
            "comments": [{"parentCommentId": 0, "content": comment, "commentType": 1}],
            "status": 1,
        })
