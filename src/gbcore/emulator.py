"""
Main Game Boy Emulator class
Coordinates CPU, memory, timer, PPU and interrupts behind a small host-facing
interface: load a cartridge, step, service interrupts, press buttons and read
the frame buffer.
"""

import logging

from .cartridge import CartridgeController, CartridgeHeader
from .config import Config
from .cpu import CPU
from .errors import LoadError
from .interrupts import InterruptController
from .memory import Memory
from .post_boot_init import init_post_boot_dmg
from .ppu import PPU
from .timer import Timer

logger = logging.getLogger(__name__)


class GameBoy:
    def __init__(self, config=None):
        self.config = config if config is not None else Config()
        self.debug = self.config.debug

        self.memory = Memory(self.debug)
        self.timer = Timer(self.memory, self.config, self.debug)
        self.ppu = PPU(self.memory, self.debug)
        self.interrupts = InterruptController(self.memory, self.debug)
        self.cpu = CPU(self.memory, timer=self.timer, ppu=self.ppu,
                       interrupts=self.interrupts, debug=self.debug)

        # Link the timer to memory for DIV/TAC writes
        self.memory.timer = self.timer

        self.cartridge = None
        self.running = True

    @property
    def header(self):
        return self.cartridge.header if self.cartridge is not None else None

    def load_cartridge(self, data):
        """Load a ROM image and reset to the post-boot state.

        The header is validated before anything is touched, so a LoadError
        leaves the emulator as it was.
        """
        cartridge = CartridgeController.from_image(data, debug=self.debug)

        self.cartridge = cartridge
        self.memory.cartridge = cartridge
        self.reset()
        return self

    def load_rom(self, rom_path):
        """Load ROM file into memory"""
        try:
            with open(rom_path, 'rb') as f:
                rom_data = f.read()
        except FileNotFoundError:
            raise LoadError(f"ROM file not found: {rom_path}")

        self.load_cartridge(rom_data)
        logger.info("Loaded ROM: %s (%d bytes)", rom_path, len(rom_data))
        return self

    def reset(self):
        """Power-up: clear memory, reload the cartridge, apply boot ROM state"""
        self.memory.reset()
        init_post_boot_dmg(self.cpu, self.memory, self.timer, self.ppu)
        self.running = True

    def step(self):
        """Execute one instruction; timer and PPU advance in lockstep"""
        return self.cpu.step()

    def process_interrupts(self):
        """Service a pending interrupt, if any; returns the cycles charged"""
        return self.interrupts.process(self.cpu)

    def set_button_state(self, button, pressed):
        if self.memory.set_button_state(button, pressed):
            # A key press ends STOP mode
            self.cpu.stopped = False

    def frame_buffer(self):
        """Read-only view of the 160x144 grayscale frame"""
        view = self.ppu.frame_buffer.view()
        view.flags.writeable = False
        return view

    def run_frame(self):
        """Run until the PPU completes a frame; returns cycles executed.

        With the display switched off no frame ever completes, so the loop
        also stops after two frames worth of cycles.
        """
        self.ppu.frame_ready = False
        cycles = 0
        limit = self.config.cycles_per_frame
        while not self.ppu.frame_ready and cycles < limit * 2:
            cycles += self.step()
            cycles += self.process_interrupts()
        return cycles

    def stop(self):
        """Stop the emulator"""
        self.running = False


def load_cartridge(data, config=None):
    """Build a GameBoy with the given ROM image loaded (raises LoadError)"""
    CartridgeHeader.parse(data)
    return GameBoy(config).load_cartridge(data)
