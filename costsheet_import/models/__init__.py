"""Domain models for the cost sheet importer."""

from .config_models import DatabaseConfig, ImportConfig, ReconciliationConfig
from .cost_record import Category, CostLineItem, CostRecord, OperationLineItem, SectionTag
from .save_result import SaveResult

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "ImportConfig",
    "ReconciliationConfig",
    # Cost sheet models
    "Category",
    "CostLineItem",
    "CostRecord",
    "OperationLineItem",
    "SectionTag",
    "SaveResult",
]
