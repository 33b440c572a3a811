# src/pr_reviewer/providers/__init__.py
from .base import LLMProvider
from .azure_openai import AzureOpenAIProvider
from .gemini import GeminiProvider
from .response import parse_review_response

__all__ = ["LLMProvider", "AzureOpenAIProvider", "GeminiProvider", "parse_review_response"]
