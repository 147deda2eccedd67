"""Multi-provider generation router.

Provides daily-quota bookkeeping, round-robin rotation, failure
classification, and failover with a deterministic local fallback.
"""

from chat_backend.shared.providers.clock import QuotaClock
from chat_backend.shared.providers.gateway import FailoverOrchestrator
from chat_backend.shared.providers.invoker import GenerationInvoker, classify_error
from chat_backend.shared.providers.registry import ProviderRegistry
from chat_backend.shared.providers.rotation import RotationSelector
from chat_backend.shared.providers.status import StatusReporter
from chat_backend.shared.providers.types import (
    BackendError,
    Provider,
    ProviderConfig,
    ProviderSnapshot,
    RegistryStatus,
    Reply,
)

__all__ = [
    "BackendError",
    "FailoverOrchestrator",
    "GenerationInvoker",
    "Provider",
    "ProviderConfig",
    "ProviderRegistry",
    "ProviderSnapshot",
    "QuotaClock",
    "RegistryStatus",
    "Reply",
    "RotationSelector",
    "StatusReporter",
    "classify_error",
]
