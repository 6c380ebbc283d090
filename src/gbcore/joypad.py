"""
Game Boy joypad (P1/JOYP, 0xFF00)
Two rows of four keys multiplexed onto the low nibble; 0 means pressed.
"""

from enum import IntEnum


class Button(IntEnum):
    RIGHT = 0
    LEFT = 1
    UP = 2
    DOWN = 3
    A = 4
    B = 5
    SELECT = 6
    START = 7


SELECT_DIRECTIONS = 0x10  # bit 4 low selects the direction row
SELECT_BUTTONS = 0x20     # bit 5 low selects the button row


class Joypad:
    def __init__(self):
        self.directions = 0x0F  # Right, Left, Up, Down (all released)
        self.buttons = 0x0F     # A, B, Select, Start (all released)
        self.select = 0x30

    def reset(self):
        self.directions = 0x0F
        self.buttons = 0x0F
        self.select = 0x30

    def write(self, value):
        """Only the row select bits are writable"""
        self.select = value & 0x30

    def read(self):
        nibble = 0x0F
        if not self.select & SELECT_DIRECTIONS:
            nibble &= self.directions
        if not self.select & SELECT_BUTTONS:
            nibble &= self.buttons
        return 0xC0 | self.select | nibble

    def set_state(self, button, pressed):
        """Update one key; returns True on a released -> pressed edge"""
        button = Button(button)
        mask = 1 << (button & 0x03)
        row = 'directions' if button < Button.A else 'buttons'
        state = getattr(self, row)
        was_pressed = not state & mask
        if pressed:
            state &= ~mask & 0x0F
        else:
            state |= mask
        setattr(self, row, state)
        return bool(pressed) and not was_pressed
