"""
Pytest configuration and shared fixtures for Game Boy emulator core tests
"""
import pytest
import sys
import os

# Add src to Python path so we can import gbcore modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from gbcore.cartridge import compute_header_checksum
from gbcore.cpu import CPU
from gbcore.emulator import GameBoy
from gbcore.memory import Memory
from gbcore.timer import Timer

# Programs in tests run from work RAM
PROGRAM_START = 0xC000


def make_rom(cartridge_type=0x00, rom_size_code=0x00, ram_size_code=0x00,
             title=b"TEST", program=b"", banks=None):
    """Build a ROM image with a valid header.

    ``program`` is placed at the 0x0100 entry point. Each 16KB bank is filled
    with its own bank number (outside the header area) so bank switching is
    easy to observe.
    """
    if banks is None:
        banks = 2 << rom_size_code if rom_size_code <= 0x08 else 2
    rom = bytearray()
    for bank in range(banks):
        rom += bytes([bank & 0xFF]) * 0x4000

    rom[0x100:0x150] = bytes(0x50)
    rom[0x100:0x100 + len(program)] = program
    rom[0x134:0x134 + len(title)] = title
    rom[0x147] = cartridge_type
    rom[0x148] = rom_size_code
    rom[0x149] = ram_size_code
    rom[0x14D] = compute_header_checksum(rom)
    return bytes(rom)


def load_program(cpu, program, address=PROGRAM_START):
    """Copy machine code into memory and point PC at it."""
    for offset, byte in enumerate(program):
        cpu.memory.write_byte(address + offset, byte)
    cpu.registers.pc = address


@pytest.fixture
def memory():
    """Create a fresh Memory instance for testing."""
    return Memory()


@pytest.fixture
def cpu(memory):
    """Create a CPU instance with memory for testing."""
    cpu = CPU(memory, debug=False)
    cpu.registers.sp = 0xFFFE
    return cpu


@pytest.fixture
def timer(memory):
    timer = Timer(memory)
    memory.timer = timer
    return timer


@pytest.fixture
def rom():
    return make_rom()


@pytest.fixture
def gameboy(rom):
    """GameBoy with a ROM-only cartridge loaded, in the post-boot state."""
    return GameBoy().load_cartridge(rom)
