# src/pr_reviewer/providers/azure_openai.py
import logging
from openai import AsyncAzureOpenAI
from .base import LLMProvider
from .response import parse_review_response
from pr_reviewer.models.review import ReviewResult


logger = logging.getLogger(__name__)


class AzureOpenAIProvider(LLMProvider):
    def __init__(self, endpoint: str, api_key: str, deployment: str, api_version: str = "2024-02-15-preview"):
        self.deployment = deployment
        self.client = AsyncAzureOpenAI(
            azure_endpoint=endpoint,
            api_key=api_key,
            api_version=api_version,
            timeout=60.0,
        )

    async def review(self, prompt: str) -> ReviewResult:
        response = await self.client.chat.completions.create(
            model=self.deployment,
            messages=[{"role": "user", "content": prompt}],
            temperature=0.1,
            max_tokens=4000,
        )

        text = response.choices[0].message.content or ""
        logger.info(f"Azure OpenAI response length: {len(text)} chars")

        if not text.strip():
            raise ValueError("Azure OpenAI returned empty response")

        return parse_review_response(text)
