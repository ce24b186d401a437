"""
LLM adapters package.
"""

from tierscope.adapters.llm.gemini_adapter import GeminiAdapter

__all__ = ["GeminiAdapter"]
