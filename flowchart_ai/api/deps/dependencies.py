"""
Dependency injection container.

Factory functions for FastAPI dependencies.

Dependencies: flowchart_ai.configs, flowchart_ai.application, flowchart_ai.boundary
System role: DI container for service injection
"""

import logging
from functools import lru_cache

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from flowchart_ai.application.services import (
    CanvasService,
    TurnService,
    UsageService,
    resolve_identity,
)
from flowchart_ai.boundary.db import get_async_db, get_async_session_factory
from flowchart_ai.configs import Settings, get_settings
from flowchart_ai.core.orchestration import ConversationOrchestrator, LangChainInferenceClient
from flowchart_ai.models.usage import Identity

logger = logging.getLogger(__name__)


class ServiceCache:
    """Container for cached service instances."""

    def __init__(self) -> None:
        self._orchestrator: ConversationOrchestrator | None = None
        self._canvas_service: CanvasService | None = None

    @property
    def orchestrator(self) -> ConversationOrchestrator:
        """
        Get cached conversation orchestrator.

        Raises:
            ConfigurationError: If no model credential is configured (nothing is cached)
        """
        if self._orchestrator is None:
            settings = get_settings()
            self._orchestrator = ConversationOrchestrator(
                inference=LangChainInferenceClient.from_settings(settings.llm),
                max_continuations=settings.llm.llm_max_continuations,
            )
        return self._orchestrator

    @property
    def canvas_service(self) -> CanvasService:
        if self._canvas_service is None:
            self._canvas_service = CanvasService()
        return self._canvas_service

    def clear(self) -> None:
        """Clear all cached instances."""
        self._orchestrator = None
        self._canvas_service = None


# Global service cache
_service_cache = ServiceCache()


def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


@lru_cache
def get_settings_dependency() -> Settings:
    """Get settings singleton."""
    return get_settings()


def get_identity(
    request: Request,
    settings: Settings = Depends(get_settings_dependency),
) -> Identity:
    """
    Classify the caller from forwarded auth headers.

    Args:
        request: Incoming request
        settings: Application settings (injected)

    Returns:
        Identity: Anonymous or authenticated caller identity
    """
    peer_host = request.client.host if request.client else None
    return resolve_identity(request.headers, settings.quota, peer_host)


def get_turn_service(settings: Settings = Depends(get_settings_dependency)) -> TurnService:
    """
    Get turn service instance.

    Raises:
        ConfigurationError: If the chat model credential is missing
    """
    return TurnService(
        orchestrator=get_service_cache().orchestrator,
        session_factory=get_async_session_factory(),
        quota_settings=settings.quota,
        model_id=settings.llm.llm_model_id,
    )


def get_usage_service(
    db: AsyncSession = Depends(get_async_db),
    settings: Settings = Depends(get_settings_dependency),
) -> UsageService:
    """
    Get usage service instance.

    Args:
        db: Async database session (injected via Depends)
        settings: Application settings (injected)

    Returns:
        UsageService: Usage service instance
    """
    return UsageService(db=db, settings=settings.quota)


def get_canvas_service() -> CanvasService:
    return get_service_cache().canvas_service
