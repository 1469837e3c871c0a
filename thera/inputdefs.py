"""Identifiers and data shapes for input bindings."""

from __future__ import annotations

import enum


class Output(enum.IntEnum):
    """Number of components in a binding's output."""

    SCALAR = 1
    VECTOR2 = 2
    VECTOR3 = 3


class Precision(enum.IntEnum):
    """Size in bytes of each output component."""

    SINGLE = 4
    DOUBLE = 8


class Component(enum.IntEnum):
    """Signed axis a constituent contributes to within a composite binding."""

    NEG_X = 0
    POS_X = 1
    NEG_Y = 2
    POS_Y = 3
    NEG_Z = 4
    POS_Z = 5


_OUTPUT_NAMES = {
    Output.SCALAR: "Scalar",
    Output.VECTOR2: "Vector2",
    Output.VECTOR3: "Vector3",
}

_PRECISION_NAMES = {
    Precision.SINGLE: "Single",
    Precision.DOUBLE: "Double",
}

FIRST_KEY = 0


class Key(enum.IntEnum):
    """Keyboard input IDs."""

    ESCAPE = 0
    F1 = enum.auto()
    F2 = enum.auto()
    F3 = enum.auto()
    F4 = enum.auto()
    F5 = enum.auto()
    F6 = enum.auto()
    F7 = enum.auto()
    F8 = enum.auto()
    F9 = enum.auto()
    F10 = enum.auto()
    F11 = enum.auto()
    F12 = enum.auto()
    F13 = enum.auto()
    F14 = enum.auto()
    F15 = enum.auto()
    F16 = enum.auto()
    F17 = enum.auto()
    F18 = enum.auto()
    F19 = enum.auto()
    F20 = enum.auto()
    F21 = enum.auto()
    F22 = enum.auto()
    F23 = enum.auto()
    F24 = enum.auto()
    F25 = enum.auto()
    PRINT_SCREEN = enum.auto()
    SCROLL_LOCK = enum.auto()
    PAUSE = enum.auto()
    GRAVE = enum.auto()
    ALPHA1 = enum.auto()
    ALPHA2 = enum.auto()
    ALPHA3 = enum.auto()
    ALPHA4 = enum.auto()
    ALPHA5 = enum.auto()
    ALPHA6 = enum.auto()
    ALPHA7 = enum.auto()
    ALPHA8 = enum.auto()
    ALPHA9 = enum.auto()
    ALPHA0 = enum.auto()
    MINUS = enum.auto()
    EQUAL = enum.auto()
    BACKSPACE = enum.auto()
    INSERT = enum.auto()
    HOME = enum.auto()
    PAGE_UP = enum.auto()
    TAB = enum.auto()
    Q = enum.auto()
    W = enum.auto()
    E = enum.auto()
    R = enum.auto()
    T = enum.auto()
    Y = enum.auto()
    U = enum.auto()
    I = enum.auto()  # noqa: E741
    O = enum.auto()  # noqa: E741
    P = enum.auto()
    BRACKET_LEFT = enum.auto()
    BRACKET_RIGHT = enum.auto()
    BACKSLASH = enum.auto()
    DELETE = enum.auto()
    END = enum.auto()
    PAGE_DOWN = enum.auto()
    CAPS_LOCK = enum.auto()
    A = enum.auto()
    S = enum.auto()
    D = enum.auto()
    F = enum.auto()
    G = enum.auto()
    H = enum.auto()
    J = enum.auto()
    K = enum.auto()
    L = enum.auto()
    SEMICOLON = enum.auto()
    APOSTROPHE = enum.auto()
    ENTER = enum.auto()
    SHIFT_LEFT = enum.auto()
    Z = enum.auto()
    X = enum.auto()
    C = enum.auto()
    V = enum.auto()
    B = enum.auto()
    N = enum.auto()
    M = enum.auto()
    COMMA = enum.auto()
    PERIOD = enum.auto()
    SLASH = enum.auto()
    SHIFT_RIGHT = enum.auto()
    CONTROL_LEFT = enum.auto()
    SUPER_LEFT = enum.auto()
    ALT_LEFT = enum.auto()
    SPACE = enum.auto()
    ALT_RIGHT = enum.auto()
    SUPER_RIGHT = enum.auto()
    MENU = enum.auto()
    CONTROL_RIGHT = enum.auto()
    UP = enum.auto()
    DOWN = enum.auto()
    LEFT = enum.auto()
    RIGHT = enum.auto()
    NUM_LOCK = enum.auto()
    KEYPAD_SLASH = enum.auto()
    KEYPAD_ASTERISK = enum.auto()
    KEYPAD_MINUS = enum.auto()
    KEYPAD7 = enum.auto()
    KEYPAD8 = enum.auto()
    KEYPAD9 = enum.auto()
    KEYPAD_PLUS = enum.auto()
    KEYPAD4 = enum.auto()
    KEYPAD5 = enum.auto()
    KEYPAD6 = enum.auto()
    KEYPAD1 = enum.auto()
    KEYPAD2 = enum.auto()
    KEYPAD3 = enum.auto()
    KEYPAD_ENTER = enum.auto()
    KEYPAD0 = enum.auto()
    KEYPAD_PERIOD = enum.auto()


FIRST_MOUSE = int(Key.KEYPAD_PERIOD) + 1


class Mouse(enum.IntEnum):
    """Mouse input IDs, numbered after the last key."""

    BUTTON_LEFT = FIRST_MOUSE
    BUTTON_RIGHT = enum.auto()
    BUTTON_MIDDLE = enum.auto()
    BUTTON4 = enum.auto()
    BUTTON5 = enum.auto()
    BUTTON6 = enum.auto()
    BUTTON7 = enum.auto()
    BUTTON8 = enum.auto()
    POSITION = enum.auto()
    DELTA = enum.auto()


LAST_BINDING = int(Mouse.DELTA)
"""Last built-in input ID."""


def output_to_string(output: Output | int) -> str:
    """Name of an output kind; raise ValueError for an unknown value."""
    return _OUTPUT_NAMES[Output(output)]


def precision_to_string(precision: Precision | int) -> str:
    """Name of a precision; raise ValueError for an unknown value."""
    return _PRECISION_NAMES[Precision(precision)]


def data_size(output: Output | int, precision: Precision | int) -> int:
    """Number of bytes needed to hold one value of the given shape."""
    return int(Output(output)) * int(Precision(precision))