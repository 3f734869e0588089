"""Value types: status enumerations, model identifiers and command modifiers."""

from .status import LedColor, MotorStatus, SafeModeStatus, LedBlinking, Model
from .modifiers import (
    CommandModifier,
    Speed,
    SpeedDegrees,
    Timed,
    CurrentHold,
    CurrentLimp,
    NoModifier,
    Custom,
    encode_modifier,
    encode_modifiers,
)
