"""
pygame window for the emulator core: draws frames, maps keys to buttons and
paces emulation to the configured frame rate.
"""

import logging

import numpy
import pygame

from .joypad import Button

logger = logging.getLogger(__name__)

KEY_MAP = {
    pygame.K_z: Button.A,
    pygame.K_x: Button.B,
    pygame.K_LSHIFT: Button.SELECT,
    pygame.K_RSHIFT: Button.SELECT,
    pygame.K_RETURN: Button.START,
    pygame.K_KP_ENTER: Button.START,
    pygame.K_RIGHT: Button.RIGHT,
    pygame.K_LEFT: Button.LEFT,
    pygame.K_UP: Button.UP,
    pygame.K_DOWN: Button.DOWN,
}


class Frontend:
    def __init__(self, gameboy, scale=None, caption="Game Boy Emulator"):
        self.gameboy = gameboy
        self.scale = scale if scale is not None else gameboy.config.scale
        self.frame_rate = gameboy.config.frame_rate

        pygame.init()
        self.screen = pygame.display.set_mode((
            gameboy.ppu.screen_width * self.scale,
            gameboy.ppu.screen_height * self.scale,
        ))
        title = gameboy.header.title if gameboy.header is not None else ""
        pygame.display.set_caption(f"{caption} - {title}" if title else caption)
        self.clock = pygame.time.Clock()

        print(f"Pygame window created: {self.screen.get_width()}x{self.screen.get_height()}")
        print("Controls: Z=A, X=B, Shift=Select, Enter=Start, Arrow Keys=D-Pad, ESC=Quit")

    def handle_events(self):
        """Forward key events to the joypad; returns False when the user quits"""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                return False
            if event.type in (pygame.KEYDOWN, pygame.KEYUP):
                if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                    return False
                button = KEY_MAP.get(event.key)
                if button is not None:
                    self.gameboy.set_button_state(button, event.type == pygame.KEYDOWN)
                elif self.gameboy.debug:
                    logger.debug("Unmapped key: %s", pygame.key.name(event.key))
        return True

    def draw(self):
        frame = self.gameboy.frame_buffer()
        # Grayscale to RGB; surfarray expects (width, height, 3)
        rgb = numpy.repeat(frame[:, :, numpy.newaxis], 3, axis=2).swapaxes(0, 1)
        surface = pygame.surfarray.make_surface(rgb)
        scaled = pygame.transform.scale(surface, self.screen.get_size())
        self.screen.blit(scaled, (0, 0))
        pygame.display.flip()

    def run(self, max_frames=None):
        """Main loop: one emulated frame per displayed frame"""
        frames = 0
        try:
            while self.gameboy.running:
                if not self.handle_events():
                    break
                self.gameboy.run_frame()
                self.draw()
                self.clock.tick(self.frame_rate)

                frames += 1
                if max_frames is not None and frames >= max_frames:
                    break
        except KeyboardInterrupt:
            logger.info("Emulation interrupted after %d frames", frames)
        finally:
            pygame.quit()
        return frames
