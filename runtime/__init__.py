"""
Runtime module - infrastructure shared by the dialog and editor layers.

Exports:
- EventBus, Event: Typed publish/subscribe
- Debouncer, ScheduledTask: Keyed last-call-wins scheduling
- EditorConfig, ValidationLimits: Configuration
"""

from runtime.events import EventBus, Event
from runtime.scheduler import Debouncer, ScheduledTask
from runtime.config import EditorConfig, ValidationLimits

__all__ = [
    "EventBus",
    "Event",
    "Debouncer",
    "ScheduledTask",
    "EditorConfig",
    "ValidationLimits",
]
