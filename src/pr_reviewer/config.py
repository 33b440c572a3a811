# src/pr_reviewer/config.py
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    # Azure DevOps
    azure_devops_org_url: str = "https://dev.azure.com/org"
    azure_devops_project: str = ""
    azure_devops_repository: str = ""
    azure_devops_token: str
    webhook_secret: str

    # LLM Providers
    azure_openai_endpoint: str | None = None
    azure_openai_api_key: str | None = None
    azure_openai_deployment: str = "gpt-4o"
    azure_openai_api_version: str = "2024-02-15-preview"
    gemini_api_key: str | None = None

    # Review
    default_provider: str = "azure_openai"
    reviewer_name: str = "AI Review"
    max_llm_calls: int = Field(default=100, ge=0)
    review_threshold: float = Field(default=0.7, ge=0.0, le=1.0)

    # Line reconciliation
    context_radius: int = Field(default=2, ge=0)
    snippet_overlap_ratio: float = Field(default=0.5, gt=0.0, le=1.0)
    keyword_min_length: int = Field(default=3, ge=0)
    build_service_marker: str = "build"

    # Second, security-only model pass per file
    enable_security_scanning: bool = True

    log_dir: str | None = None
    log_level: str = "INFO"
