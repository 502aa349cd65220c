"""
Utility functions for parsing and validating LLM output.
"""

from .json_utils import LLMOutputError, parse_llm_json, strip_code_fences
