"""
Game Boy cartridge: header parsing and memory bank controllers
Supports ROM-only cartridges and the MBC1 family.
"""

import logging
from enum import IntEnum

import cython

from .constants import ROM_BANK_SIZE, RAM_BANK_SIZE
from .errors import LoadError

logger = logging.getLogger(__name__)

HEADER_END = 0x150

# Header field offsets
TITLE_OFFSET = 0x134
MANUFACTURER_OFFSET = 0x13F
CGB_FLAG_OFFSET = 0x143
NEW_LICENSEE_OFFSET = 0x144
SGB_FLAG_OFFSET = 0x146
CARTRIDGE_TYPE_OFFSET = 0x147
ROM_SIZE_OFFSET = 0x148
RAM_SIZE_OFFSET = 0x149
DESTINATION_OFFSET = 0x14A
OLD_LICENSEE_OFFSET = 0x14B
VERSION_OFFSET = 0x14C
HEADER_CHECKSUM_OFFSET = 0x14D
GLOBAL_CHECKSUM_OFFSET = 0x14E

# ROM size code -> number of 16KB banks
ROM_BANKS = {
    0x00: 2,
    0x01: 4,
    0x02: 8,
    0x03: 16,
    0x04: 32,
    0x05: 64,
    0x06: 128,
    0x52: 72,
    0x53: 80,
    0x54: 96,
}

# RAM size code -> external RAM size in bytes
RAM_SIZES = {
    0x00: 0,
    0x01: 0x800,     # 2KB
    0x02: 0x2000,    # 8KB
    0x03: 0x8000,    # 32KB
}


class CartridgeKind(IntEnum):
    ROM_ONLY = 0
    MBC1 = 1


class BankingMode(IntEnum):
    ROM = 0
    RAM = 1


# Cartridge type byte -> (controller kind, battery backed)
CARTRIDGE_TYPES = {
    0x00: (CartridgeKind.ROM_ONLY, False),   # ROM ONLY
    0x01: (CartridgeKind.MBC1, False),       # MBC1
    0x02: (CartridgeKind.MBC1, False),       # MBC1+RAM
    0x03: (CartridgeKind.MBC1, True),        # MBC1+RAM+BATTERY
    0x08: (CartridgeKind.ROM_ONLY, False),   # ROM+RAM
    0x09: (CartridgeKind.ROM_ONLY, True),    # ROM+RAM+BATTERY
}


def compute_header_checksum(data):
    """Checksum over 0x134-0x14C as computed by the boot ROM"""
    checksum = 0
    for address in range(TITLE_OFFSET, HEADER_CHECKSUM_OFFSET):
        checksum = (checksum - data[address] - 1) & 0xFF
    return checksum


class CartridgeHeader:
    """Fields found at fixed offsets in the first 0x150 bytes of a ROM image"""

    def __init__(self, title, manufacturer_code, cgb_flag, new_licensee_code,
                 sgb_flag, cartridge_type, rom_size_code, ram_size_code,
                 destination_code, old_licensee_code, version,
                 header_checksum, global_checksum, computed_checksum=None):
        self.title = title
        self.manufacturer_code = manufacturer_code
        self.cgb_flag = cgb_flag
        self.new_licensee_code = new_licensee_code
        self.sgb_flag = sgb_flag
        self.cartridge_type = cartridge_type
        self.rom_size_code = rom_size_code
        self.ram_size_code = ram_size_code
        self.destination_code = destination_code
        self.old_licensee_code = old_licensee_code
        self.version = version
        self.header_checksum = header_checksum
        self.global_checksum = global_checksum
        self.computed_checksum = computed_checksum

        self.kind, self.has_battery = CARTRIDGE_TYPES[cartridge_type]

    @classmethod
    def parse(cls, data):
        """Parse the header of a ROM image.

        Raises LoadError if the image is missing, too short to hold a header,
        or declares a cartridge type that has no controller here.
        """
        if not data:
            raise LoadError("No cartridge data")
        if len(data) < HEADER_END:
            raise LoadError(
                f"Cartridge image too short for a header: {len(data)} bytes "
                f"(need at least 0x{HEADER_END:X})")

        cartridge_type = data[CARTRIDGE_TYPE_OFFSET]
        if cartridge_type not in CARTRIDGE_TYPES:
            raise LoadError(f"Unsupported cartridge type 0x{cartridge_type:02X}")

        raw_title = bytes(data[TITLE_OFFSET:TITLE_OFFSET + 16])
        title = raw_title.split(b'\x00', 1)[0].decode('ascii', errors='replace').strip()

        return cls(
            title=title,
            manufacturer_code=bytes(data[MANUFACTURER_OFFSET:MANUFACTURER_OFFSET + 2]),
            cgb_flag=data[CGB_FLAG_OFFSET],
            new_licensee_code=bytes(data[NEW_LICENSEE_OFFSET:NEW_LICENSEE_OFFSET + 2]),
            sgb_flag=data[SGB_FLAG_OFFSET],
            cartridge_type=cartridge_type,
            rom_size_code=data[ROM_SIZE_OFFSET],
            ram_size_code=data[RAM_SIZE_OFFSET],
            destination_code=data[DESTINATION_OFFSET],
            old_licensee_code=data[OLD_LICENSEE_OFFSET],
            version=data[VERSION_OFFSET],
            header_checksum=data[HEADER_CHECKSUM_OFFSET],
            global_checksum=(data[GLOBAL_CHECKSUM_OFFSET] << 8) | data[GLOBAL_CHECKSUM_OFFSET + 1],
            computed_checksum=compute_header_checksum(data),
        )

    @property
    def rom_banks(self):
        return ROM_BANKS.get(self.rom_size_code, 0)

    @property
    def rom_size(self):
        return self.rom_banks * ROM_BANK_SIZE

    @property
    def ram_size(self):
        return RAM_SIZES.get(self.ram_size_code, 0)

    @property
    def has_ram(self):
        return self.ram_size > 0

    @property
    def header_checksum_valid(self):
        return self.computed_checksum == self.header_checksum

    def __repr__(self):
        return (f"CartridgeHeader(title={self.title!r}, type=0x{self.cartridge_type:02X}, "
                f"kind={self.kind.name}, rom_banks={self.rom_banks}, ram_size={self.ram_size})")


class CartridgeController:
    """Memory bank controller for one cartridge.

    The controller kind is fixed when the cartridge is loaded. ``read`` returns
    ``None`` for addresses the controller does not back, so the bus falls
    through to its own storage; ``write`` returns whether it consumed the
    write.
    """

    def __init__(self, rom, header, debug: cython.bint = False):
        self.rom = bytes(rom)
        self.header = header
        self.kind = header.kind
        self.debug: cython.bint = debug

        ram_size = header.ram_size if self.kind == CartridgeKind.ROM_ONLY else max(header.ram_size, RAM_BANK_SIZE)
        self.ram = bytearray(ram_size)

        self.rom_bank_low: cython.int = 1
        self.rom_bank_high: cython.int = 0
        self.ram_bank: cython.int = 0
        self.banking_mode = BankingMode.ROM
        self.ram_enabled: cython.bint = False

    @classmethod
    def from_image(cls, data, debug=False):
        header = CartridgeHeader.parse(data)
        logger.info("Cartridge '%s': type 0x%02X (%s), %d ROM banks, %d bytes RAM",
                    header.title, header.cartridge_type, header.kind.name,
                    header.rom_banks, header.ram_size)
        if not header.header_checksum_valid:
            logger.warning("Header checksum mismatch: 0x%02X != 0x%02X",
                           header.header_checksum, header.computed_checksum)
        return cls(data, header, debug=debug)

    def reset(self):
        self.rom_bank_low = 1
        self.rom_bank_high = 0
        self.ram_bank = 0
        self.banking_mode = BankingMode.ROM
        self.ram_enabled = False

    @property
    def rom_bank(self) -> cython.int:
        """Bank currently mapped at 0x4000-0x7FFF"""
        if self.banking_mode == BankingMode.ROM:
            return (self.rom_bank_high << 5) | self.rom_bank_low
        return self.rom_bank_low

    def load_into(self, data):
        """Copy the fixed part of the image into bus storage at load"""
        length = 0x8000 if self.kind == CartridgeKind.ROM_ONLY else ROM_BANK_SIZE
        chunk = self.rom[:length]
        data[0:len(chunk)] = chunk

    def read(self, address: cython.int):
        if self.kind == CartridgeKind.ROM_ONLY:
            return None

        if 0x4000 <= address < 0x8000:
            offset = (address & 0x3FFF) + self.rom_bank * ROM_BANK_SIZE
            return self.rom[offset % len(self.rom)]
        if 0xA000 <= address < 0xC000 and self.ram_enabled:
            return self.ram[self._ram_offset(address)]
        return None

    def write(self, address: cython.int, value: cython.int) -> cython.bint:
        if self.kind == CartridgeKind.ROM_ONLY:
            # ROM is read-only; external RAM lives in bus storage
            return address < 0x8000

        if address < 0x2000:
            self.ram_enabled = (value & 0x0F) == 0x0A
        elif address < 0x4000:
            bank = value & 0x1F
            self.rom_bank_low = bank if bank else 1
            if self.debug:
                logger.debug("MBC1 ROM bank -> 0x%02X", self.rom_bank)
        elif address < 0x6000:
            if self.banking_mode == BankingMode.ROM:
                self.rom_bank_high = value & 0x03
            else:
                self.ram_bank = value & 0x03
            if self.debug:
                logger.debug("MBC1 upper bank bits 0x%X (mode %s)", value & 0x03, self.banking_mode.name)
        elif address < 0x8000:
            self.banking_mode = BankingMode(value & 0x01)
            if self.banking_mode == BankingMode.RAM:
                self.ram_bank = 0
            if self.debug:
                logger.debug("MBC1 banking mode -> %s", self.banking_mode.name)
        elif 0xA000 <= address < 0xC000 and self.ram_enabled:
            self.ram[self._ram_offset(address)] = value
        else:
            return False
        return True

    def _ram_offset(self, address: cython.int) -> cython.int:
        bank = self.ram_bank if self.banking_mode == BankingMode.RAM else 0
        return ((address & 0x1FFF) + bank * RAM_BANK_SIZE) % len(self.ram)
