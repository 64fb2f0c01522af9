from functools import lru_cache
from typing import Callable, Optional

from skulabels.config import settings
from skulabels.models.domain import RemoteProvider
from skulabels.services.orchestrator import Orchestrator, build_orchestrator

OrchestratorFactory = Callable[[Optional[RemoteProvider]], Orchestrator]


@lru_cache(maxsize=None)
def orchestrator_for(provider: Optional[RemoteProvider] = None) -> Orchestrator:
    """One orchestrator per remote provider; ``None`` uses the configured one."""
    return build_orchestrator(settings, provider)


def get_orchestrator_factory() -> OrchestratorFactory:
    return orchestrator_for
