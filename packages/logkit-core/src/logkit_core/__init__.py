"""logkit-core -- Shared primitives for the logkit framework.

Re-exports all public types: errors, models, and protocols.
"""

from logkit_core.errors import BaseIngestError, CoreErrorCode
from logkit_core.models import DataPoint, Dataset, VariableConfig
from logkit_core.protocols import ProgressCallback

__all__ = [
    # Errors
    "CoreErrorCode",
    "BaseIngestError",
    # Models
    "DataPoint",
    "Dataset",
    "VariableConfig",
    # Protocols
    "ProgressCallback",
]
