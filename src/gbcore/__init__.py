"""
gbcore: Game Boy (DMG) emulator core.
"""

from .config import Config
from .emulator import GameBoy, load_cartridge
from .errors import GameBoyError, LoadError, UnmappedOpcodeError
from .joypad import Button

__all__ = [
    'Button',
    'Config',
    'GameBoy',
    'GameBoyError',
    'LoadError',
    'UnmappedOpcodeError',
    'load_cartridge',
]

__version__ = '0.1.0'
