"""Asana task board adapter."""

from __future__ import annotations

from .client import AsanaAPIError, AsanaClient, project_url
from .roles import find_best_user_match, role_matches
from .schema import is_template_payload

__all__ = [
    "AsanaAPIError",
    "AsanaClient",
    "find_best_user_match",
    "is_template_payload",
    "project_url",
    "role_matches",
]
