"""
Event System
=============

A simple event system for decoupled communication between the sync
controller and whatever front end is showing the note.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Any, Optional
from enum import Enum, auto

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Available event types."""
    STATUS_UPDATED = auto()
    ERROR_OCCURRED = auto()
    CONTENT_REPLACED = auto()
    NOTE_ID_CHANGED = auto()
    LOCATION_CHANGED = auto()
    NOTE_SAVED = auto()


class Event:
    """Base event class."""

    def __init__(self, event_type: EventType, data: Any = None):
        self.event_type = event_type
        self.data = data


@dataclass
class ContentReplacement:
    """Payload of CONTENT_REPLACED."""
    content: str
    # True when the content is that of a note the store just created
    new_note: bool = False


class EventDispatcher:
    """Manages event registration and dispatch."""

    def __init__(self):
        self._listeners: Dict[EventType, List[Callable[[Event], None]]] = {}

    def add_listener(
        self,
        event_type: EventType,
        listener: Callable[[Event], None]
    ) -> None:
        """
        Add a listener for a specific event type.

        Args:
            event_type: Type of event to listen for
            listener: Callback function to be called when event occurs
        """
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        self._listeners[event_type].append(listener)

    def remove_listener(
        self,
        event_type: EventType,
        listener: Callable[[Event], None]
    ) -> None:
        """
        Remove a listener for a specific event type.

        Args:
            event_type: Type of event the listener is registered for
            listener: Callback function to remove
        """
        listeners = self._listeners.get(event_type)
        if listeners and listener in listeners:
            listeners.remove(listener)
            if not listeners:
                del self._listeners[event_type]

    def dispatch(self, event: Event) -> None:
        """
        Dispatch an event to all registered listeners.
        A failing listener is logged and does not stop the others.

        Args:
            event: Event object to dispatch
        """
        for listener in list(self._listeners.get(event.event_type, [])):
            try:
                listener(event)
            except Exception:
                logger.exception("Error in %s listener", event.event_type.name)

    def dispatch_status(self, message: str) -> None:
        """Dispatch a status update event."""
        self.dispatch(Event(EventType.STATUS_UPDATED, message))

    def dispatch_error(self, error: str) -> None:
        """Dispatch an error event."""
        self.dispatch(Event(EventType.ERROR_OCCURRED, error))

    def dispatch_content_replaced(self, content: str, new_note: bool = False) -> None:
        """
        Ask the front end to replace the editable content.

        Args:
            content: New text for the content area
            new_note: Whether the content belongs to a just-created note
        """
        self.dispatch(
            Event(EventType.CONTENT_REPLACED, ContentReplacement(content, new_note=new_note))
        )

    def dispatch_note_id_changed(self, note_id: Optional[str]) -> None:
        """Dispatch the identity that should be displayed (None hides it)."""
        self.dispatch(Event(EventType.NOTE_ID_CHANGED, note_id))

    def dispatch_location_changed(self, href: str) -> None:
        self.dispatch(Event(EventType.LOCATION_CHANGED, href))

    def dispatch_note_saved(self, note_id: str) -> None:
        self.dispatch(Event(EventType.NOTE_SAVED, note_id))
