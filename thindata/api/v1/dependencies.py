"""
Shared dependency injection functions for API endpoints.
"""

from fastapi import Request

from thindata.services.registry import SourceRegistry


def get_registry(request: Request) -> SourceRegistry:
    """Return the source registry built during application startup."""
    return request.app.state.registry
