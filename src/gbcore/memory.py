"""
Game Boy Memory Management Unit (MMU)
64KB address space with region-dependent read/write rules, I/O register
side effects and a pluggable cartridge controller.
"""

import logging

import cython

from .constants import (
    MEMORY_SIZE, ECHO_RAM_START, ECHO_RAM_END, UNUSABLE_START, UNUSABLE_END,
    EXTERNAL_RAM_START, WORK_RAM_START, OAM_START, DMA_LENGTH, INTERRUPT_MASK,
    JOYPAD_ADDRESS, DIVIDER_ADDRESS, TIMER_CONTROL_ADDRESS, INTERRUPT_FLAG_ADDRESS,
    LCD_STATUS_ADDRESS, SCANLINE_ADDRESS, DMA_ADDRESS, INTERRUPT_ENABLE_ADDRESS,
)
from .interrupts import Interrupt
from .joypad import Joypad

logger = logging.getLogger(__name__)


class Memory:
    def __init__(self, debug: cython.bint = False):
        self.debug: cython.bint = debug

        # Flat backing store for the whole map; regions are interpreted by
        # read_byte/write_byte
        self.data = bytearray(MEMORY_SIZE)

        self.cartridge = None  # Set by load_cartridge
        self.timer = None      # Will be set by emulator
        self.joypad = Joypad()

    def reset(self):
        """Clear all storage; the cartridge image is copied in again"""
        self.data[:] = bytes(MEMORY_SIZE)
        self.joypad.reset()
        if self.cartridge is not None:
            self.cartridge.reset()
            self.cartridge.load_into(self.data)

    def load_cartridge(self, cartridge):
        self.cartridge = cartridge
        cartridge.load_into(self.data)

    def read_byte(self, address: cython.int) -> cython.int:
        """Read a byte from the specified memory address"""
        address &= 0xFFFF

        if address < 0x8000 or EXTERNAL_RAM_START <= address < WORK_RAM_START:
            # Cartridge ROM / external RAM
            if self.cartridge is not None:
                value = self.cartridge.read(address)
                if value is not None:
                    return value
            return self.data[address]
        elif ECHO_RAM_START <= address <= ECHO_RAM_END:
            # Echo RAM (mirrors work RAM)
            return self.data[address - 0x2000]
        elif address == JOYPAD_ADDRESS:
            return self.joypad.read()

        return self.data[address]

    def write_byte(self, address: cython.int, value: cython.int) -> None:
        """Write a byte to the specified memory address"""
        address &= 0xFFFF
        value &= 0xFF

        if address < 0x8000:
            # ROM area: bank control for MBCs, otherwise discarded
            if self.cartridge is not None:
                self.cartridge.write(address, value)
        elif EXTERNAL_RAM_START <= address < WORK_RAM_START:
            # External RAM
            if self.cartridge is None or not self.cartridge.write(address, value):
                self.data[address] = value
        elif ECHO_RAM_START <= address <= ECHO_RAM_END:
            # Echo RAM (mirrors work RAM)
            self.data[address] = value
            self.data[address - 0x2000] = value
        elif UNUSABLE_START <= address <= UNUSABLE_END:
            # Restricted area - ignore writes
            pass
        elif address >= 0xFF00:
            self._write_io(address, value)
        else:
            self.data[address] = value

    def _write_io(self, address: cython.int, value: cython.int) -> None:
        if address == JOYPAD_ADDRESS:
            self.joypad.write(value)
            self.data[address] = value & 0x30
        elif address == DIVIDER_ADDRESS:
            # Any write resets the divider
            self.data[address] = 0
            if self.timer is not None:
                self.timer.reset_divider()
        elif address == TIMER_CONTROL_ADDRESS:
            self.data[address] = value
            if self.timer is not None:
                self.timer.update_frequency(value)
        elif address == SCANLINE_ADDRESS:
            # LY is read-only; writing resets it
            self.data[address] = 0
        elif address == LCD_STATUS_ADDRESS:
            # Mode and coincidence bits are read-only
            self.data[address] = (value & 0xF8) | (self.data[address] & 0x07)
        elif address == DMA_ADDRESS:
            self.data[address] = value
            self.dma_transfer(value)
        elif address == INTERRUPT_FLAG_ADDRESS or address == INTERRUPT_ENABLE_ADDRESS:
            if self.debug:
                logger.debug("%s write: 0x%02X -> 0x%02X",
                             "IF" if address == INTERRUPT_FLAG_ADDRESS else "IE",
                             self.data[address], value & INTERRUPT_MASK)
            self.data[address] = value & INTERRUPT_MASK
        else:
            self.data[address] = value

    def read_word(self, address):
        """Read a 16-bit word from memory (little-endian)"""
        low = self.read_byte(address)
        high = self.read_byte(address + 1)
        return (high << 8) | low

    def write_word(self, address, value):
        """Write a 16-bit word to memory (little-endian)"""
        self.write_byte(address, value & 0xFF)
        self.write_byte(address + 1, (value >> 8) & 0xFF)

    def dma_transfer(self, value: cython.int) -> None:
        """Copy 160 bytes from value * 0x100 into OAM"""
        source = value << 8
        if self.debug:
            logger.debug("DMA transfer from 0x%04X", source)
        for i in range(DMA_LENGTH):
            self.data[OAM_START + i] = self.read_byte(source + i)

    # === Hooks for the timer, PPU and joypad ===

    def request_interrupt(self, bit: cython.int) -> None:
        self.data[INTERRUPT_FLAG_ADDRESS] |= (1 << bit) & INTERRUPT_MASK

    def increment_divider(self) -> None:
        self.data[DIVIDER_ADDRESS] = (self.data[DIVIDER_ADDRESS] + 1) & 0xFF

    def set_scanline(self, line: cython.int) -> None:
        self.data[SCANLINE_ADDRESS] = line

    def set_lcd_status(self, value: cython.int) -> None:
        """Update STAT including its read-only bits"""
        self.data[LCD_STATUS_ADDRESS] = value & 0xFF

    def set_button_state(self, button, pressed):
        """Returns True when the key was newly pressed (joypad interrupt raised)"""
        pressed_edge = self.joypad.set_state(button, pressed)
        if pressed_edge:
            self.request_interrupt(Interrupt.JOYPAD)
        return pressed_edge
