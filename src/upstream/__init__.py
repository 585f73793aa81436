"""Upstream client for the LLM provider.

Handles authentication and maps failed calls to stage errors.
"""

from upstream.client import UpstreamClient

__all__ = ["UpstreamClient"]
