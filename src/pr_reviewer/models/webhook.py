from pydantic import BaseModel, Field


class AzureDevOpsProject(BaseModel):
    id: str
    name: str


class AzureDevOpsRepository(BaseModel):
    id: str
    name: str
    project: AzureDevOpsProject


class AzureDevOpsIdentity(BaseModel):
    display_name: str | None = Field(default=None, alias="displayName")
    unique_name: str | None = Field(default=None, alias="uniqueName")


class AzureDevOpsPullRequest(BaseModel):
    pull_request_id: int = Field(alias="pullRequestId")
    title: str = ""
    description: str | None = None
    status: str | None = None
    is_draft: bool = Field(default=False, alias="isDraft")
    source_ref_name: str = Field(alias="sourceRefName")
    target_ref_name: str = Field(alias="targetRefName")
    repository: AzureDevOpsRepository
    created_by: AzureDevOpsIdentity | None = Field(default=None, alias="createdBy")


class AzureDevOpsPREvent(BaseModel):
    event_type: str = Field(alias="eventType")  # "git.pullrequest.created" / "git.pullrequest.updated"
    resource: AzureDevOpsPullRequest
