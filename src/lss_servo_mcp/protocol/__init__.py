"""Protocol layer: command catalogue, frame building and response parsing."""

from .commands import Command, CATALOGUE
from .framing import build_frame, parse_frame, BROADCAST_ID
