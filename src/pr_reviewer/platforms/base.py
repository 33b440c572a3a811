from abc import ABC, abstractmethod
from pr_reviewer.models.comments import ExistingComment
from pr_reviewer.models.pull_request import FileContent, PullRequestDetails


class RepositoryService(ABC):
    """Pull-request scoped access to a hosted repository."""

    @abstractmethod
    async def get_pull_request(self) -> PullRequestDetails:
        pass

    @abstractmethod
    async def get_changed_files(self) -> list[str]:
        pass

    @abstractmethod
    async def get_file_content(self, file_path: str, ref: str) -> FileContent:
        pass

    @abstractmethod
    async def get_file_diff(self, file_path: str, base_ref: str, target_ref: str) -> str:
        pass

    @abstractmethod
    async def get_repo_config(self, ref: str) -> str | None:
        pass

    @abstractmethod
    async def list_existing_comments(self) -> list[ExistingComment]:
        pass

    @abstractmethod
    async def post_inline_comment(self, file_path: str, comment: str, line: int) -> None:
        pass

    @abstractmethod
    async def post_general_comment(self, comment: str) -> None:
        pass
