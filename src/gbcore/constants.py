"""
Game Boy hardware constants
Memory map boundaries, I/O register addresses and display geometry.
"""

# Memory map
ROM_BANK_0_START = 0x0000
ROM_BANK_N_START = 0x4000
VRAM_START = 0x8000
EXTERNAL_RAM_START = 0xA000
WORK_RAM_START = 0xC000
ECHO_RAM_START = 0xE000
ECHO_RAM_END = 0xFDFF
OAM_START = 0xFE00
OAM_SIZE = 0xA0
UNUSABLE_START = 0xFEA0
UNUSABLE_END = 0xFEFF
IO_START = 0xFF00
HIGH_RAM_START = 0xFF80

ROM_BANK_SIZE = 0x4000   # 16KB
RAM_BANK_SIZE = 0x2000   # 8KB
MEMORY_SIZE = 0x10000    # 64KB

# I/O registers
JOYPAD_ADDRESS = 0xFF00           # P1/JOYP
DIVIDER_ADDRESS = 0xFF04          # DIV
TIMER_COUNTER_ADDRESS = 0xFF05    # TIMA
TIMER_MODULO_ADDRESS = 0xFF06     # TMA
TIMER_CONTROL_ADDRESS = 0xFF07    # TAC
INTERRUPT_FLAG_ADDRESS = 0xFF0F   # IF
LCD_CONTROL_ADDRESS = 0xFF40      # LCDC
LCD_STATUS_ADDRESS = 0xFF41       # STAT
SCROLL_Y_ADDRESS = 0xFF42         # SCY
SCROLL_X_ADDRESS = 0xFF43         # SCX
SCANLINE_ADDRESS = 0xFF44         # LY
SCANLINE_COMPARE_ADDRESS = 0xFF45  # LYC
DMA_ADDRESS = 0xFF46              # DMA
BG_PALETTE_ADDRESS = 0xFF47       # BGP
OBJ_PALETTE_0_ADDRESS = 0xFF48    # OBP0
OBJ_PALETTE_1_ADDRESS = 0xFF49    # OBP1
WINDOW_Y_ADDRESS = 0xFF4A         # WY
WINDOW_X_ADDRESS = 0xFF4B         # WX
INTERRUPT_ENABLE_ADDRESS = 0xFFFF  # IE

INTERRUPT_MASK = 0x1F
DMA_LENGTH = 160

# Interrupt vectors, in priority order (V-Blank, LCD STAT, Timer, Serial, Joypad)
INTERRUPT_VECTORS = (0x0040, 0x0048, 0x0050, 0x0058, 0x0060)

# Display
SCREEN_WIDTH = 160
SCREEN_HEIGHT = 144
SCANLINES_PER_FRAME = 154
CYCLES_PER_SCANLINE = 456
MODE_2_CYCLES = 80    # OAM search
MODE_3_CYCLES = 172   # Pixel transfer
MODE_0_CYCLES = 204   # H-Blank
TILE_SIZE = 16        # bytes per tile
SPRITE_COUNT = 40
SPRITES_PER_LINE = 10

# Output levels for shades 0-3 (white, light grey, dark grey, black)
GRAYSCALE_LEVELS = (255, 192, 96, 0)

# Timing
CPU_FREQUENCY = 4194304   # 4.194304 MHz
FRAME_RATE = 59.7         # ~59.7 Hz
DIVIDER_FREQUENCY = 16384
TIMER_FREQUENCIES = (4096, 262144, 65536, 16384)
