"""
Game Boy PPU (Picture Processing Unit)
Handles LCD mode timing, STAT/V-Blank interrupts and scanline rendering
into a grayscale frame buffer.
"""

import logging

import cython
import numpy

from .constants import (
    SCREEN_WIDTH, SCREEN_HEIGHT, SCANLINES_PER_FRAME, CYCLES_PER_SCANLINE,
    MODE_2_CYCLES, MODE_3_CYCLES, TILE_SIZE, SPRITE_COUNT, SPRITES_PER_LINE,
    GRAYSCALE_LEVELS, OAM_START,
    LCD_CONTROL_ADDRESS, LCD_STATUS_ADDRESS, SCROLL_Y_ADDRESS, SCROLL_X_ADDRESS,
    SCANLINE_ADDRESS, SCANLINE_COMPARE_ADDRESS, BG_PALETTE_ADDRESS,
    OBJ_PALETTE_0_ADDRESS, OBJ_PALETTE_1_ADDRESS, WINDOW_Y_ADDRESS, WINDOW_X_ADDRESS,
)
from .interrupts import Interrupt

logger = logging.getLogger(__name__)

# LCDC bits
LCDC_BG_ENABLE = 0x01
LCDC_SPRITE_ENABLE = 0x02
LCDC_SPRITE_SIZE = 0x04
LCDC_BG_MAP = 0x08
LCDC_TILE_DATA = 0x10
LCDC_WINDOW_ENABLE = 0x20
LCDC_WINDOW_MAP = 0x40
LCDC_DISPLAY_ENABLE = 0x80

# STAT bits
STAT_COINCIDENCE = 0x04
STAT_HBLANK_INTERRUPT = 0x08
STAT_VBLANK_INTERRUPT = 0x10
STAT_OAM_INTERRUPT = 0x20
STAT_COINCIDENCE_INTERRUPT = 0x40

# LCD modes
MODE_HBLANK = 0
MODE_VBLANK = 1
MODE_OAM = 2
MODE_TRANSFER = 3

# Sprite attribute bits
SPRITE_PALETTE = 0x10
SPRITE_X_FLIP = 0x20
SPRITE_Y_FLIP = 0x40
SPRITE_BG_PRIORITY = 0x80

SHADES = numpy.array(GRAYSCALE_LEVELS, dtype=numpy.uint8)


class PPU:
    def __init__(self, memory, debug: cython.bint = False):
        self.memory = memory
        self.debug: cython.bint = debug

        # LCD specifications
        self.screen_width = SCREEN_WIDTH
        self.screen_height = SCREEN_HEIGHT

        # PPU state
        self.scanline_counter: cython.int = 0
        self.mode: cython.int = MODE_OAM
        self.coincidence: cython.bint = False

        # Frame buffer (one grayscale byte per pixel)
        self.frame_buffer = numpy.full((SCREEN_HEIGHT, SCREEN_WIDTH), GRAYSCALE_LEVELS[0], dtype=numpy.uint8)
        self.frame_count: cython.int = 0
        self.frame_ready: cython.bint = False

    def reset(self):
        self.scanline_counter = 0
        self.mode = MODE_OAM
        self.coincidence = False
        self.frame_buffer.fill(GRAYSCALE_LEVELS[0])
        self.frame_count = 0
        self.frame_ready = False

    # === TIMING ===

    def step(self, cycles: cython.int) -> None:
        """Update PPU state based on CPU cycles"""
        data = self.memory.data

        if not data[LCD_CONTROL_ADDRESS] & LCDC_DISPLAY_ENABLE:
            # Display off: hold LY at 0 in mode 0, no interrupts
            self.scanline_counter = 0
            self.mode = MODE_HBLANK
            self.memory.set_scanline(0)
            self.memory.set_lcd_status(data[LCD_STATUS_ADDRESS] & 0xFC)
            return

        self.scanline_counter += cycles
        self.update_lcd_status()

        while self.scanline_counter >= CYCLES_PER_SCANLINE:
            self.scanline_counter -= CYCLES_PER_SCANLINE
            self._next_scanline()
            self.update_lcd_status()

    def _next_scanline(self):
        line: cython.int = self.memory.data[SCANLINE_ADDRESS]
        if line < SCREEN_HEIGHT:
            self.render_scanline(line)

        line += 1
        if line == SCREEN_HEIGHT:
            # Entering V-Blank: the frame is complete
            self.memory.request_interrupt(Interrupt.VBLANK)
            self.frame_ready = True
            self.frame_count += 1
            if self.debug:
                logger.debug("Frame %d complete", self.frame_count)
        elif line >= SCANLINES_PER_FRAME:
            line = 0
        self.memory.set_scanline(line)

    def update_lcd_status(self):
        """Derive the mode from LY and the scanline counter; raise STAT interrupts"""
        data = self.memory.data
        line: cython.int = data[SCANLINE_ADDRESS]
        stat: cython.int = data[LCD_STATUS_ADDRESS]

        if line >= SCREEN_HEIGHT:
            mode = MODE_VBLANK
            interrupt_enabled = stat & STAT_VBLANK_INTERRUPT
        elif self.scanline_counter < MODE_2_CYCLES:
            mode = MODE_OAM
            interrupt_enabled = stat & STAT_OAM_INTERRUPT
        elif self.scanline_counter < MODE_2_CYCLES + MODE_3_CYCLES:
            mode = MODE_TRANSFER
            interrupt_enabled = 0
        else:
            mode = MODE_HBLANK
            interrupt_enabled = stat & STAT_HBLANK_INTERRUPT

        if mode != self.mode and interrupt_enabled:
            self.memory.request_interrupt(Interrupt.LCD_STAT)
        self.mode = mode

        coincidence = line == data[SCANLINE_COMPARE_ADDRESS]
        if coincidence:
            stat |= STAT_COINCIDENCE
            if not self.coincidence and stat & STAT_COINCIDENCE_INTERRUPT:
                self.memory.request_interrupt(Interrupt.LCD_STAT)
        else:
            stat &= ~STAT_COINCIDENCE
        self.coincidence = coincidence

        self.memory.set_lcd_status((stat & 0xFC) | mode)

    # === RENDERING ===

    def render_scanline(self, line: cython.int) -> None:
        """Render background, window and sprites for one visible line"""
        data = self.memory.data
        lcdc: cython.int = data[LCD_CONTROL_ADDRESS]

        # Raw colour indices (for sprite priority) and final shades
        indices = [0] * SCREEN_WIDTH
        shades = [0] * SCREEN_WIDTH

        if lcdc & LCDC_BG_ENABLE:
            self._render_background(line, lcdc, indices, shades)
        if lcdc & LCDC_WINDOW_ENABLE:
            self._render_window(line, lcdc, indices, shades)

        if lcdc & LCDC_SPRITE_ENABLE:
            self._render_sprites(line, lcdc, indices, shades)

        self.frame_buffer[line] = SHADES[shades]

    def _tile_row_address(self, tile_index: cython.int, lcdc: cython.int, row: cython.int) -> cython.int:
        if lcdc & LCDC_TILE_DATA:
            base = 0x8000 + tile_index * TILE_SIZE
        else:
            # 0x8800 addressing: signed index, offset by 128
            base = 0x8800 + ((tile_index + 128) & 0xFF) * TILE_SIZE
        return base + row * 2

    def _render_background(self, line, lcdc, indices, shades):
        data = self.memory.data
        scy = data[SCROLL_Y_ADDRESS]
        scx = data[SCROLL_X_ADDRESS]
        bgp = data[BG_PALETTE_ADDRESS]
        map_base = 0x9C00 if lcdc & LCDC_BG_MAP else 0x9800

        y = (line + scy) & 0xFF
        map_row = map_base + (y >> 3) * 32

        for x in range(SCREEN_WIDTH):
            pixel_x = (x + scx) & 0xFF
            tile_index = data[map_row + (pixel_x >> 3)]
            address = self._tile_row_address(tile_index, lcdc, y & 7)
            color = _pixel_color(data[address], data[address + 1], 7 - (pixel_x & 7))
            indices[x] = color
            shades[x] = (bgp >> (color * 2)) & 0x03

    def _render_window(self, line, lcdc, indices, shades):
        data = self.memory.data
        wy = data[WINDOW_Y_ADDRESS]
        wx = data[WINDOW_X_ADDRESS] - 7
        if line < wy or wx >= SCREEN_WIDTH:
            return

        bgp = data[BG_PALETTE_ADDRESS]
        map_base = 0x9C00 if lcdc & LCDC_WINDOW_MAP else 0x9800
        window_line = line - wy
        map_row = map_base + (window_line >> 3) * 32

        for x in range(max(0, wx), SCREEN_WIDTH):
            window_x = x - wx
            tile_index = data[map_row + (window_x >> 3)]
            address = self._tile_row_address(tile_index, lcdc, window_line & 7)
            color = _pixel_color(data[address], data[address + 1], 7 - (window_x & 7))
            indices[x] = color
            shades[x] = (bgp >> (color * 2)) & 0x03

    def visible_sprites(self, line, height):
        """OAM indices of the sprites on this line, first ten by OAM order"""
        data = self.memory.data
        sprites = []
        for index in range(SPRITE_COUNT):
            top = data[OAM_START + index * 4] - 16
            if top <= line < top + height:
                sprites.append(index)
                if len(sprites) == SPRITES_PER_LINE:
                    break
        return sprites

    def _render_sprites(self, line, lcdc, indices, shades):
        data = self.memory.data
        height = 16 if lcdc & LCDC_SPRITE_SIZE else 8

        # Lower OAM indices are drawn last so they end up on top
        for index in reversed(self.visible_sprites(line, height)):
            oam = OAM_START + index * 4
            top = data[oam] - 16
            left = data[oam + 1] - 8
            tile_index = data[oam + 2]
            attributes = data[oam + 3]

            row = line - top
            if attributes & SPRITE_Y_FLIP:
                row = height - 1 - row
            if height == 16:
                tile_index &= 0xFE

            # Sprites always use 0x8000 addressing
            address = 0x8000 + tile_index * TILE_SIZE + row * 2
            low = data[address]
            high = data[address + 1]
            palette = data[OBJ_PALETTE_1_ADDRESS if attributes & SPRITE_PALETTE else OBJ_PALETTE_0_ADDRESS]

            for pixel in range(8):
                x = left + pixel
                if x < 0 or x >= SCREEN_WIDTH:
                    continue
                bit = pixel if attributes & SPRITE_X_FLIP else 7 - pixel
                color = _pixel_color(low, high, bit)
                if color == 0:
                    continue  # transparent
                if attributes & SPRITE_BG_PRIORITY and indices[x] != 0:
                    continue
                shades[x] = (palette >> (color * 2)) & 0x03


def _pixel_color(low: cython.int, high: cython.int, bit: cython.int) -> cython.int:
    """Two-bit colour index from a tile row's bitplanes"""
    return (((high >> bit) & 1) << 1) | ((low >> bit) & 1)
