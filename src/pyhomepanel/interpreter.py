"""Voice command interpreter.

Maps a free-text transcript to at most one device write. The transcript is
lower-cased and tested against an ordered phrase table by substring
containment; the first matching phrase wins and nothing else is checked.
Text that contains none of the phrases is not an error, it simply yields
no command.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

from pyhomepanel.models.device import Device, DeviceCommand

_logger = logging.getLogger(__name__)


class CommandRule(NamedTuple):
    phrase: str
    command: DeviceCommand


COMMAND_RULES: tuple[CommandRule, ...] = (
    CommandRule("door open", DeviceCommand(device=Device.DOOR, state="open")),
    CommandRule("door closed", DeviceCommand(device=Device.DOOR, state="closed")),
    CommandRule("light on", DeviceCommand(device=Device.LIGHT, state="on")),
    CommandRule("light off", DeviceCommand(device=Device.LIGHT, state="off")),
    CommandRule("window open", DeviceCommand(device=Device.WINDOW, state="open")),
    CommandRule("window closed", DeviceCommand(device=Device.WINDOW, state="closed")),
)


def interpret(transcript: str, rules: tuple[CommandRule, ...] = COMMAND_RULES) -> DeviceCommand | None:
    """Return the command for the first rule whose phrase occurs in *transcript*."""
    text = transcript.lower()
    for rule in rules:
        if rule.phrase in text:
            return rule.command
    _logger.debug("No command matched transcript %r", transcript)
    return None
