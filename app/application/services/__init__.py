"""Application services: rank keys, condition trees, trigger graph validation, config schemas."""

from app.application.services.automation_config_validator import (
    get_config_schema,
    validate_automation_config,
)
from app.application.services.condition_tree_flattener import (
    flatten_condition_tree,
    reconstruct_condition_tree,
)
from app.application.services.rank import rank_between
from app.application.services.trigger_graph import InMemoryTriggerGraph
from app.application.services.trigger_graph_validator import TriggerGraphValidator

__all__ = [
    "InMemoryTriggerGraph",
    "TriggerGraphValidator",
    "flatten_condition_tree",
    "get_config_schema",
    "rank_between",
    "reconstruct_condition_tree",
    "validate_automation_config",
]
