# ABOUTME: QWERTY finger and hand assignment for physical key codes and characters
from enum import Enum
from typing import Dict, NamedTuple, Optional, Tuple


class Finger(str, Enum):
    LEFT_PINKY = "Left Pinky"
    LEFT_RING = "Left Ring"
    LEFT_MIDDLE = "Left Middle"
    LEFT_INDEX = "Left Index"
    LEFT_THUMB = "Left Thumb"
    RIGHT_INDEX = "Right Index"
    RIGHT_MIDDLE = "Right Middle"
    RIGHT_RING = "Right Ring"
    RIGHT_PINKY = "Right Pinky"
    RIGHT_THUMB = "Right Thumb"
    THUMBS = "Thumbs"


class Hand(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    BOTH = "both"


class KeyPlacement(NamedTuple):
    finger: Finger
    hand: Hand


_L = Hand.LEFT
_R = Hand.RIGHT

# (physical code, characters produced with and without shift, finger, hand)
_LAYOUT: Tuple[Tuple[str, str, Finger, Hand], ...] = (
    # Left hand - number row
    ("Backquote", "`~", Finger.LEFT_PINKY, _L),
    ("Digit1", "1!", Finger.LEFT_PINKY, _L),
    ("Digit2", "2@", Finger.LEFT_RING, _L),
    ("Digit3", "3#", Finger.LEFT_MIDDLE, _L),
    ("Digit4", "4$", Finger.LEFT_INDEX, _L),
    ("Digit5", "5%", Finger.LEFT_INDEX, _L),
    # Left hand - letter rows
    ("KeyQ", "qQ", Finger.LEFT_PINKY, _L),
    ("KeyW", "wW", Finger.LEFT_RING, _L),
    ("KeyE", "eE", Finger.LEFT_MIDDLE, _L),
    ("KeyR", "rR", Finger.LEFT_INDEX, _L),
    ("KeyT", "tT", Finger.LEFT_INDEX, _L),
    ("KeyA", "aA", Finger.LEFT_PINKY, _L),
    ("KeyS", "sS", Finger.LEFT_RING, _L),
    ("KeyD", "dD", Finger.LEFT_MIDDLE, _L),
    ("KeyF", "fF", Finger.LEFT_INDEX, _L),
    ("KeyG", "gG", Finger.LEFT_INDEX, _L),
    ("KeyZ", "zZ", Finger.LEFT_PINKY, _L),
    ("KeyX", "xX", Finger.LEFT_RING, _L),
    ("KeyC", "cC", Finger.LEFT_MIDDLE, _L),
    ("KeyV", "vV", Finger.LEFT_INDEX, _L),
    ("KeyB", "bB", Finger.LEFT_INDEX, _L),
    # Left hand - control keys
    ("Tab", "\t", Finger.LEFT_PINKY, _L),
    ("CapsLock", "", Finger.LEFT_PINKY, _L),
    ("ShiftLeft", "", Finger.LEFT_PINKY, _L),
    ("ControlLeft", "", Finger.LEFT_PINKY, _L),
    ("AltLeft", "", Finger.LEFT_THUMB, _L),
    ("MetaLeft", "", Finger.LEFT_THUMB, _L),
    ("Escape", "", Finger.LEFT_PINKY, _L),
    # Right hand - number row
    ("Digit6", "6^", Finger.RIGHT_INDEX, _R),
    ("Digit7", "7&", Finger.RIGHT_INDEX, _R),
    ("Digit8", "8*", Finger.RIGHT_MIDDLE, _R),
    ("Digit9", "9(", Finger.RIGHT_RING, _R),
    ("Digit0", "0)", Finger.RIGHT_PINKY, _R),
    ("Minus", "-_", Finger.RIGHT_PINKY, _R),
    ("Equal", "=+", Finger.RIGHT_PINKY, _R),
    ("Backspace", "", Finger.RIGHT_PINKY, _R),
    # Right hand - letter rows
    ("KeyY", "yY", Finger.RIGHT_INDEX, _R),
    ("KeyU", "uU", Finger.RIGHT_INDEX, _R),
    ("KeyI", "iI", Finger.RIGHT_MIDDLE, _R),
    ("KeyO", "oO", Finger.RIGHT_RING, _R),
    ("KeyP", "pP", Finger.RIGHT_PINKY, _R),
    ("BracketLeft", "[{", Finger.RIGHT_PINKY, _R),
    ("BracketRight", "]}", Finger.RIGHT_PINKY, _R),
    ("Backslash", "\\|", Finger.RIGHT_PINKY, _R),
    ("KeyH", "hH", Finger.RIGHT_INDEX, _R),
    ("KeyJ", "jJ", Finger.RIGHT_INDEX, _R),
    ("KeyK", "kK", Finger.RIGHT_MIDDLE, _R),
    ("KeyL", "lL", Finger.RIGHT_RING, _R),
    ("Semicolon", ";:", Finger.RIGHT_PINKY, _R),
    ("Quote", "'\"", Finger.RIGHT_PINKY, _R),
    ("Enter", "\n", Finger.RIGHT_PINKY, _R),
    ("KeyN", "nN", Finger.RIGHT_INDEX, _R),
    ("KeyM", "mM", Finger.RIGHT_INDEX, _R),
    ("Comma", ",<", Finger.RIGHT_MIDDLE, _R),
    ("Period", ".>", Finger.RIGHT_RING, _R),
    ("Slash", "/?", Finger.RIGHT_PINKY, _R),
    ("ShiftRight", "", Finger.RIGHT_PINKY, _R),
    # Right hand - control keys
    ("ControlRight", "", Finger.RIGHT_PINKY, _R),
    ("AltRight", "", Finger.RIGHT_THUMB, _R),
    ("MetaRight", "", Finger.RIGHT_THUMB, _R),
    ("ArrowUp", "", Finger.RIGHT_INDEX, _R),
    ("ArrowDown", "", Finger.RIGHT_INDEX, _R),
    ("ArrowLeft", "", Finger.RIGHT_INDEX, _R),
    ("ArrowRight", "", Finger.RIGHT_INDEX, _R),
    # Space bar counts for both hands
    ("Space", " ", Finger.THUMBS, Hand.BOTH),
)


def _compile() -> Tuple[Dict[str, KeyPlacement], Dict[str, KeyPlacement], Dict[str, str]]:
    by_code: Dict[str, KeyPlacement] = {}
    by_char: Dict[str, KeyPlacement] = {}
    char_codes: Dict[str, str] = {}
    for code, chars, finger, hand in _LAYOUT:
        placement = KeyPlacement(finger, hand)
        by_code[code] = placement
        for char in chars:
            by_char[char] = placement
            char_codes[char] = code
    return by_code, by_char, char_codes


CODE_PLACEMENTS, CHAR_PLACEMENTS, CHAR_CODES = _compile()


def code_for_char(char: str) -> str:
    """Physical code that produces `char`, or "" for characters off the layout."""
    return CHAR_CODES.get(char, "")


def get_placement(key: str, code: Optional[str] = None) -> Optional[KeyPlacement]:
    """Resolve finger and hand by physical code, then by character."""
    if code and code in CODE_PLACEMENTS:
        return CODE_PLACEMENTS[code]
    if key in CHAR_PLACEMENTS:
        return CHAR_PLACEMENTS[key]
    if key.upper() in CHAR_PLACEMENTS:
        return CHAR_PLACEMENTS[key.upper()]
    return None


def get_finger_for_key(key: str, code: Optional[str] = None) -> Optional[str]:
    """Get finger label for a key, or None when the key is unmapped."""
    placement = get_placement(key, code)
    return placement.finger.value if placement else None


def get_hand_for_key(key: str, code: Optional[str] = None) -> Optional[str]:
    placement = get_placement(key, code)
    return placement.hand.value if placement else None
