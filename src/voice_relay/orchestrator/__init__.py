"""
Orchestrator module for request sequencing.

The orchestrator is the single owner of conversation memory and the
response cache.
"""

from voice_relay.orchestrator.relay_orchestrator import (
    HEARING_FALLBACK_TEXT,
    RelayOrchestrator,
    transient_artifact,
)
from voice_relay.orchestrator.schemas import RelayResult, RequestContext, RequestState

__all__ = [
    "HEARING_FALLBACK_TEXT",
    "RelayOrchestrator",
    "RelayResult",
    "RequestContext",
    "RequestState",
    "transient_artifact",
]
