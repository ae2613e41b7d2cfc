"""Orchestrator / coder delegation."""

from .coder import Coder
from .modes import MODES, ModeDefinition, get_mode
from .orchestrator import SEND_TO_CODER, Orchestrator

__all__ = ["Coder", "MODES", "ModeDefinition", "Orchestrator", "SEND_TO_CODER", "get_mode"]
