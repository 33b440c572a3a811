from pydantic import BaseModel


class PullRequestDetails(BaseModel):
    pull_request_id: int
    title: str = ""
    description: str = ""
    author: str = ""
    source_branch: str
    target_branch: str


class FileContent(BaseModel):
    path: str
    content: str = ""
    is_binary: bool = False
