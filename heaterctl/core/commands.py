"""AT command encoding for the heater wire protocol."""

from __future__ import annotations

from heaterctl.core.model import Command, RawCommand

TERMINATOR = "\r\n"

_WIRE_COMMANDS: dict[Command, str] = {
    Command.STATUS: "ATSTATUS",
    Command.TEMPERATURE: "ATTEMP",
    Command.VOLTAGE: "ATVOLT",
    Command.ERRORS: "ATERRORS",
    Command.START: "ATSTART",
    Command.STOP: "ATSTOP",
    Command.RESET: "ATRESET",
}

_BY_NAME: dict[str, Command] = {}
for _command in Command:
    _BY_NAME[_command.value] = _command
    _BY_NAME[_command.name] = _command


def lookup_command(name: str) -> Command | None:
    """Resolve a logical command name case-insensitively."""
    return _BY_NAME.get(name.strip().upper())


def encode(command: Command | RawCommand | str) -> str:
    """Return the exact wire string for ``command``.

    Plain strings naming a known command are encoded as that command; any
    other string is passed through unchanged as a raw command.
    """
    if isinstance(command, RawCommand):
        return command.text + TERMINATOR
    if isinstance(command, str):
        resolved = lookup_command(command)
        if resolved is None:
            return command + TERMINATOR
        command = resolved
    return _WIRE_COMMANDS[command] + TERMINATOR


def encode_bytes(command: Command | RawCommand | str) -> bytes:
    return encode(command).encode("utf-8")
