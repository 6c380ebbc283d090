"""
Exceptions raised by the emulator core.
"""


class GameBoyError(Exception):
    """Base class for all core errors."""


class LoadError(GameBoyError, ValueError):
    """The cartridge image could not be loaded."""


class UnmappedOpcodeError(GameBoyError):
    """The CPU fetched an opcode that has no handler."""

    def __init__(self, opcode, address):
        self.opcode = opcode
        self.address = address
        super().__init__(f"Invalid opcode 0x{opcode:02X} at 0x{address:04X}")
