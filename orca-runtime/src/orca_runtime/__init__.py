"""
This package is the dispatch core of the Orca orchestrator: it classifies
task envelopes by risk, applies the autonomy gate, runs tasks on worker agents,
validates and corrects their responses, and retries transient failures.

The public API is exposed through ``__all__`` and loaded lazily via
``__getattr__``, so importing the package does not pull in the HTTP client or
the configuration layer until they are used.
"""

from importlib import import_module
from typing import Any, Dict, Tuple

__all__ = [
    "AutonomyConfig",
    "AutonomyLevel",
    "ActionClassification",
    "GateDecision",
    "ValidationConfig",
    "DispatchContext",
    "WorkerClient",
    "dispatch_to_agent",
    "classify_action",
    "determine_gate",
    "enforce_pre_dispatch_gate",
    "validate_message",
    "validate_with_retry",
    "should_auto_retry",
    "execute_with_retry",
    "HttpWorkerClient",
    "ScriptedWorkerClient",
    "QuestionRegistry",
    "QuestionResult",
]


_ATTR_MODULE_MAP: Dict[str, Tuple[str, str]] = {
    "AutonomyConfig": ("autonomy", "AutonomyConfig"),
    "AutonomyLevel": ("types", "AutonomyLevel"),
    "ActionClassification": ("types", "ActionClassification"),
    "GateDecision": ("types", "GateDecision"),
    "ValidationConfig": ("types", "ValidationConfig"),
    "DispatchContext": ("dispatch", "DispatchContext"),
    "WorkerClient": ("dispatch", "WorkerClient"),
    "dispatch_to_agent": ("dispatch", "dispatch_to_agent"),
    "classify_action": ("autonomy", "classify_action"),
    "determine_gate": ("autonomy", "determine_gate"),
    "enforce_pre_dispatch_gate": ("gates", "enforce_pre_dispatch_gate"),
    "validate_message": ("validation", "validate_message"),
    "validate_with_retry": ("validation", "validate_with_retry"),
    "should_auto_retry": ("retry", "should_auto_retry"),
    "execute_with_retry": ("retry", "execute_with_retry"),
    "HttpWorkerClient": ("worker_client", "HttpWorkerClient"),
    "ScriptedWorkerClient": ("mock", "ScriptedWorkerClient"),
    "QuestionRegistry": ("questions", "QuestionRegistry"),
    "QuestionResult": ("questions", "QuestionResult"),
}


def __getattr__(name: str) -> Any:
    """
    Lazily load attributes from submodules of the ``orca_runtime`` package.

    Args:
        name: The name of the attribute to load.

    Returns:
        The requested attribute.

    Raises:
        AttributeError: If the attribute is not part of the public API.
    """
    try:
        module_name, attribute = _ATTR_MODULE_MAP[name]
    except KeyError as exc:
        raise AttributeError(f"module 'orca_runtime' has no attribute {name!r}") from exc

    module = import_module(f".{module_name}", __name__)
    value = getattr(module, attribute)
    globals()[name] = value  # Cache for future lookups
    return value
