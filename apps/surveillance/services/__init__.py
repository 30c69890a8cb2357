from .conflict_service import ConflictLogService, ConflictResolutionService
from .metrics_service import MetricsService

__all__ = ["ConflictLogService", "ConflictResolutionService", "MetricsService"]
