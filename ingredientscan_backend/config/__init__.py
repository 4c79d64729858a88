"""Static configuration shipped with the codebase."""

# LLM defaults are in a dedicated module for clarity and reuse.
from .llm import DEFAULT_ANALYSIS_PROMPT, DEFAULT_LLM_MODEL

__all__ = ["DEFAULT_ANALYSIS_PROMPT", "DEFAULT_LLM_MODEL"]
