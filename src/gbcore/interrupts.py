"""
Game Boy interrupt controller
Resolves the highest-priority pending interrupt and redirects the CPU through
the vector table.

The interrupt master enable is modelled as a short queue of one-shot check
signals: each call to ``process`` consumes one entry and only a True entry
triggers a priority scan. EI, DI and RETI rewrite the queue so the change
lands after the right number of instructions.
"""

import logging
from collections import deque
from enum import IntEnum

from .constants import INTERRUPT_ENABLE_ADDRESS, INTERRUPT_FLAG_ADDRESS, INTERRUPT_VECTORS

logger = logging.getLogger(__name__)

DISPATCH_EXTRA_CYCLES = 8


class Interrupt(IntEnum):
    """Interrupt sources, by bit number and priority"""
    VBLANK = 0
    LCD_STAT = 1
    TIMER = 2
    SERIAL = 3
    JOYPAD = 4

    @property
    def vector(self):
        return INTERRUPT_VECTORS[self]


class InterruptController:
    def __init__(self, memory, debug=False):
        self.memory = memory
        self.debug = debug
        self.signals = deque()

    def reset(self):
        self.signals.clear()

    @property
    def enabled(self):
        """True while a priority scan is still scheduled"""
        return any(self.signals)

    def request(self, interrupt):
        self.memory.request_interrupt(int(interrupt))

    def pending(self):
        """Bits that are both enabled and requested"""
        data = self.memory.data
        return data[INTERRUPT_ENABLE_ADDRESS] & data[INTERRUPT_FLAG_ADDRESS] & 0x1F

    # === Instruction hooks ===

    def enable_after_next(self):
        """EI: interrupts are checked after the following instruction"""
        self.signals.clear()
        self.signals.extend((False, True))

    def disable_after_next(self):
        """DI: one more check, then interrupts stay off"""
        self.signals.clear()
        self.signals.extend((True, False))

    def enable_now(self):
        """RETI"""
        self.signals.clear()
        self.signals.append(True)

    def arm(self):
        """HALT: make sure the next step checks for a wake-up"""
        if not self.signals:
            self.signals.append(True)

    # === Dispatch ===

    def process(self, cpu):
        """Service at most one interrupt; returns cycles charged"""
        if not self.signals or not self.signals.popleft():
            return 0

        pending = self.pending()
        if not pending:
            # Keep checking on later steps until interrupts are disabled
            self.arm()
            return 0

        for interrupt in Interrupt:
            if pending & (1 << interrupt):
                break

        self.memory.data[INTERRUPT_FLAG_ADDRESS] &= ~(1 << interrupt) & 0x1F
        self.signals.clear()

        if self.debug:
            logger.debug("Servicing %s interrupt at PC=0x%04X", interrupt.name, cpu.registers.pc)

        cycles = cpu.call_interrupt(interrupt.vector)
        cpu.halted = False
        return cycles + cpu.idle(DISPATCH_EXTRA_CYCLES)
