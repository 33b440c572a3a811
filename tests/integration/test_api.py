# tests/integration/test_api.py
import pytest
from httpx import AsyncClient, ASGITransport
from unittest.mock import patch, AsyncMock
from pr_reviewer.config import Settings
from pr_reviewer.main import app
from pr_reviewer.review.engine import EngineReviewResult


PATCH = """diff --git a/src/app.py b/src/app.py
--- a/src/app.py
+++ b/src/app.py
@@ -1,3 +1,5 @@
 import os
+token = os.environ["TOKEN"]
+print(token)

 def main():
"""

CONTENT = 'import os\ntoken = os.environ["TOKEN"]\nprint(token)\n\ndef main():\n'


def _settings(**overrides):
    return Settings(azure_devops_token="test-token", webhook_secret="test-secret", _env_file=None, **overrides)


@pytest.mark.integration
@pytest.mark.asyncio
async def test_health():
    transport = ASGITransport(app=app)

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_trigger_review():
    transport = ASGITransport(app=app)

    with patch("pr_reviewer.main.get_settings") as mock_settings, \
         patch("pr_reviewer.main.get_repository") as mock_get_repository, \
         patch("pr_reviewer.main.get_provider") as mock_get_provider, \
         patch("pr_reviewer.main.ReviewEngine") as mock_engine_cls:

        mock_settings.return_value = _settings()
        mock_get_provider.return_value = AsyncMock()
        mock_engine_cls.return_value.review_pull_request = AsyncMock(return_value=EngineReviewResult(
            files_reviewed=2,
            comments_posted=3,
            general_comments_posted=1,
            duplicates_skipped=1,
            llm_calls_used=2,
            requires_changes=False,
            summary="Found 4 issues that need attention.",
        ))

        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post("/api/review", json={"pull_request_id": 42, "repository": "web"})

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "completed"
    assert data["pull_request_id"] == 42
    assert data["comments_posted"] == 3
    assert data["duplicates_skipped"] == 1
    mock_get_repository.assert_called_once_with(mock_settings.return_value, 42, "web")


@pytest.mark.integration
@pytest.mark.asyncio
async def test_trigger_review_validation_error():
    transport = ASGITransport(app=app)

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.post("/api/review", json={})

    assert response.status_code == 422


@pytest.mark.integration
@pytest.mark.asyncio
async def test_trigger_review_no_provider():
    transport = ASGITransport(app=app)

    with patch("pr_reviewer.main.get_settings") as mock_settings, \
         patch("pr_reviewer.main.get_provider") as mock_get_provider:

        mock_settings.return_value = _settings()
        mock_get_provider.return_value = None

        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post("/api/review", json={"pull_request_id": 42})

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "error"
    assert "No LLM provider" in data["error"]


@pytest.mark.integration
@pytest.mark.asyncio
async def test_trigger_review_failure_is_reported():
    transport = ASGITransport(app=app)

    with patch("pr_reviewer.main.get_settings") as mock_settings, \
         patch("pr_reviewer.main.get_provider") as mock_get_provider, \
         patch("pr_reviewer.main.ReviewEngine") as mock_engine_cls:

        mock_settings.return_value = _settings()
        mock_get_provider.return_value = AsyncMock()
        mock_engine_cls.return_value.review_pull_request = AsyncMock(side_effect=RuntimeError("401 Unauthorized"))

        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post("/api/review", json={"pull_request_id": 42})

    data = response.json()
    assert data["status"] == "error"
    assert data["error"] == "401 Unauthorized"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_reconcile_places_findings():
    transport = ASGITransport(app=app)

    with patch("pr_reviewer.main.get_settings") as mock_settings:
        mock_settings.return_value = _settings()

        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post("/api/reconcile", json={
                "patch": PATCH,
                "files": {"/src/app.py": CONTENT},
                "findings": {
                    "/src/app.py": [
                        {
                            "type": "security",
                            "severity": "high",
                            "description": "Secret token is printed",
                            "lineNumber": 5,
                            "codeSnippet": "print(token)",
                            "confidence": 0.9,
                        },
                        {"type": "style", "description": "Prefer pathlib", "confidence": 0.3},
                    ]
                },
            })

    assert response.status_code == 200
    [file] = response.json()["files"]
    assert file["added_lines"] == [2, 3]
    assert [a["line"] for a in file["annotations"]] == [3]
    assert file["annotations"][0]["type"] == "security"
    assert file["suppressed"] == 0
    assert file["unreconciled"] == 0


@pytest.mark.integration
@pytest.mark.asyncio
async def test_reconcile_suppresses_existing_comment():
    transport = ASGITransport(app=app)

    with patch("pr_reviewer.main.get_settings") as mock_settings:
        mock_settings.return_value = _settings()

        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post("/api/reconcile", json={
                "patch": PATCH,
                "files": {"src/app.py": CONTENT},
                "findings": {
                    "src/app.py": [
                        {"type": "security", "description": "token printed", "codeSnippet": "print(token)", "confidence": 0.9},
                    ]
                },
                "existing_comments": [{
                    "file_path": "/src/app.py",
                    "line_coordinates": {"right_start": 3, "right_end": 3},
                    "author": {"unique_name": "Build\\abc", "display_name": "Shop Build Service"},
                    "content": "SECURITY: token printed",
                }],
            })

    [file] = response.json()["files"]
    assert file["annotations"] == []
    assert file["suppressed"] == 1
