# ABOUTME: Press/release recording into an owned, per-session keystroke event log
import logging
from typing import Any, Dict, List, Optional, Tuple

from .keymap import get_placement
from .models import KeystrokeEvent
from .utils import CaptureCallback

# Distinguishes "argument not given" from an explicit None override
_UNSET: Any = object()


class TypingSession:
    """Mutable state for one typing exercise bound to one expected text."""

    def __init__(self, expected_text: str = ""):
        self.expected_text = expected_text
        self.events: List[KeystrokeEvent] = []
        self.pending_presses: Dict[str, float] = {}
        self.last_release_time: Optional[float] = None
        # Advanced by the caller from the real input state
        self.current_position = 0

    def reset(self, expected_text: Optional[str] = None) -> None:
        """Clear every buffer so the session can be reused."""
        self.events = []
        self.pending_presses.clear()
        self.last_release_time = None
        self.current_position = 0
        if expected_text is not None:
            self.expected_text = expected_text

    def closed_events(self) -> Tuple[KeystrokeEvent, ...]:
        """Snapshot of the event log for analysis."""
        return tuple(self.events)


class KeystrokeRecorder:
    """Turns raw key-down/key-up callbacks into keystroke events."""

    def __init__(self, session: Optional[TypingSession] = None, expected_text: str = ""):
        self.session = session if session is not None else TypingSession(expected_text)
        self.dropped_releases = 0

    @property
    def events(self) -> List[KeystrokeEvent]:
        return self.session.events

    def on_key_down(self, key: str, code: str, timestamp: float) -> None:
        """Handle key press; repeats of a held key keep the first press time."""
        if key not in self.session.pending_presses:
            self.session.pending_presses[key] = timestamp

    def on_key_up(
        self,
        key: str,
        code: str,
        timestamp: float,
        is_correct: bool,
        expected_override: Any = _UNSET,
        position_override: Any = _UNSET,
    ) -> Optional[KeystrokeEvent]:
        """Handle key release and create the keystroke record."""
        session = self.session
        press_time = session.pending_presses.get(key)
        if press_time is None:
            self.dropped_releases += 1
            logging.debug(f"Dropping release of {key!r} at {timestamp} with no matching press")
            return None

        flight_time = (
            press_time - session.last_release_time
            if session.last_release_time is not None
            else None
        )

        if expected_override is _UNSET:
            expected_key = self._expected_at(session.current_position)
        else:
            expected_key = expected_override

        position = (
            position_override
            if isinstance(position_override, int) and not isinstance(position_override, bool)
            else session.current_position
        )

        placement = get_placement(key, code)
        event = KeystrokeEvent(
            key=key,
            code=code,
            press_time=press_time,
            release_time=timestamp,
            dwell_time=timestamp - press_time,
            flight_time=flight_time,
            is_correct=is_correct,
            expected_key=expected_key,
            position=position,
            finger=placement.finger.value if placement else None,
            hand=placement.hand.value if placement else None,
        )

        session.events.append(event)
        del session.pending_presses[key]
        session.last_release_time = timestamp
        return event

    def replay(self, callbacks: List[CaptureCallback]) -> int:
        """Feed a recorded callback stream through the recorder."""
        recorded = 0
        for callback in callbacks:
            if callback.kind == "down":
                self.on_key_down(callback.key, callback.code, callback.timestamp)
                continue

            kwargs: Dict[str, Any] = {}
            if callback.has_expected:
                kwargs["expected_override"] = callback.expected
            if callback.position is not None:
                kwargs["position_override"] = callback.position
            event = self.on_key_up(
                callback.key, callback.code, callback.timestamp, callback.is_correct, **kwargs
            )
            if event is not None:
                recorded += 1
                # A replay stands in for the input handler's cursor
                self.session.current_position = event.position + 1

        logging.info(
            f"Replayed {len(callbacks)} callbacks into {recorded} events "
            f"({self.dropped_releases} releases dropped)"
        )
        return recorded

    def reset(self, expected_text: Optional[str] = None) -> None:
        self.session.reset(expected_text)
        self.dropped_releases = 0

    def _expected_at(self, position: int) -> Optional[str]:
        text = self.session.expected_text
        if 0 <= position < len(text):
            return text[position]
        return None
