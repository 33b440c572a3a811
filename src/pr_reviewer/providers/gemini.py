# src/pr_reviewer/providers/gemini.py
import httpx
from .base import LLMProvider
from .response import parse_review_response
from pr_reviewer.models.review import ReviewResult


class GeminiProvider(LLMProvider):
    API_URL = "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.5-flash:generateContent"

    def __init__(self, api_key: str):
        self.api_key = api_key

    async def review(self, prompt: str) -> ReviewResult:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{self.API_URL}?key={self.api_key}",
                json={
                    "contents": [{
                        "parts": [{"text": prompt}]
                    }],
                    "generationConfig": {"temperature": 0.1},
                },
                timeout=60.0
            )
            response.raise_for_status()

        data = response.json()
        text = data["candidates"][0]["content"]["parts"][0]["text"]
        return parse_review_response(text)
