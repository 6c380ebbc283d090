"""
Game Boy Timer Implementation
Handles the DIV, TIMA, TMA and TAC registers from elapsed CPU cycles.
"""

import logging

import cython

from .config import Config
from .constants import (
    DIVIDER_FREQUENCY, TIMER_FREQUENCIES,
    TIMER_COUNTER_ADDRESS, TIMER_MODULO_ADDRESS, TIMER_CONTROL_ADDRESS,
)
from .interrupts import Interrupt

logger = logging.getLogger(__name__)


class Timer:
    def __init__(self, memory, config=None, debug: cython.bint = False):
        self.memory = memory
        self.config = config if config is not None else Config()
        self.debug: cython.bint = debug

        self.cycles_per_divider: cython.int = self.config.cycles_per_second // DIVIDER_FREQUENCY
        self.cycles_per_timer: cython.int = self.config.cycles_per_second // TIMER_FREQUENCIES[0]
        self.divider_counter: cython.int = 0
        self.timer_counter: cython.int = 0
        self.timer_enabled: cython.bint = False

    def reset(self):
        self.divider_counter = 0
        self.timer_counter = 0
        self.update_frequency(self.memory.data[TIMER_CONTROL_ADDRESS])

    def reset_divider(self):
        """DIV was written: restart the divider phase"""
        self.divider_counter = 0

    def update_frequency(self, tac: cython.int) -> None:
        """
        Bit 2    - Timer enable
        Bits 1-0 - Input clock select (4096 / 262144 / 65536 / 16384 Hz)
        """
        self.timer_enabled = bool(tac & 0x04)
        self.cycles_per_timer = self.config.cycles_per_second // TIMER_FREQUENCIES[tac & 0x03]
        if self.debug:
            logger.debug("TAC=0x%02X: timer %s, %d cycles per tick",
                         tac, "on" if self.timer_enabled else "off", self.cycles_per_timer)

    def step(self, cycles: cython.int) -> None:
        """Advance DIV and TIMA by the given number of cycles"""
        # DIV runs regardless of TAC
        self.divider_counter += cycles
        while self.divider_counter >= self.cycles_per_divider:
            self.divider_counter -= self.cycles_per_divider
            self.memory.increment_divider()

        if not self.timer_enabled:
            return

        data = self.memory.data
        self.timer_counter += cycles
        while self.timer_counter >= self.cycles_per_timer:
            self.timer_counter -= self.cycles_per_timer
            tima: cython.int = data[TIMER_COUNTER_ADDRESS] + 1
            if tima > 0xFF:
                # Overflow: reload from TMA and request the interrupt together
                tima = data[TIMER_MODULO_ADDRESS]
                self.memory.request_interrupt(Interrupt.TIMER)
                if self.debug:
                    logger.debug("TIMA overflow, reloaded with TMA=0x%02X", tima)
            data[TIMER_COUNTER_ADDRESS] = tima

    @property
    def frequency(self):
        """Current timer frequency in Hz"""
        return TIMER_FREQUENCIES[self.memory.data[TIMER_CONTROL_ADDRESS] & 0x03]
