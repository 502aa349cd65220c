"""
Core module for the interview prep API.

Configuration, the error taxonomy, the request admission pipeline and the
upstream LLM client live here.
"""

from .config import ConfigError, Settings, load_settings
from .errors import ApiError
