"""
Structured logging for the flowchart import pipeline.

Each module logs through get_logger(__name__, component=...), where the
component is one of the pipeline parts in COMPONENTS. Records then carry a
"component" field next to their "event", so a single import reads as
cli -> importer -> loader -> evidence -> ge_slots -> reconcile.
"""

import logging
from typing import Optional

# Pipeline parts, in the order one import passes through them
COMPONENTS = ("cli", "importer", "loader", "evidence", "ge_slots", "reconcile")


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """
    Adds the component, plus any bound audit fields, to every record.

    Fields given in a call's extra win over bound ones.
    """

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs

    def bind(self, **fields) -> "ComponentLoggerAdapter":
        """Adapter on the same logger with more fields, e.g. bind(stage="completion")."""
        return ComponentLoggerAdapter(self.logger, {**self.extra, **fields})

    @property
    def component(self) -> str:
        return self.extra["component"]


def get_logger(name: str, component: Optional[str] = None):
    """
    Logger for a flowaudit module.

    Args:
        name: Logger name (typically __name__)
        component: Pipeline part, one of COMPONENTS

    Returns:
        logging.Logger without a component, ComponentLoggerAdapter with one

    Raises:
        ValueError: If component is not a known pipeline part
    """
    logger = logging.getLogger(name)
    if component is None:
        return logger
    if component not in COMPONENTS:
        raise ValueError(
            f"Unknown log component: {component!r}. Must be one of: {', '.join(COMPONENTS)}"
        )
    return ComponentLoggerAdapter(logger, {"component": component})


__all__ = ["COMPONENTS", "ComponentLoggerAdapter", "get_logger"]
