#!/usr/bin/env python3
"""
Game Boy Emulator
Runs a ROM in a pygame window, or headless for a fixed number of frames.
"""

import argparse
import logging
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), 'src'))

from gbcore import Config, GameBoy, GameBoyError, LoadError  # noqa: E402


def main(argv=None):
    parser = argparse.ArgumentParser(description='Game Boy Emulator')
    parser.add_argument('rom_file', help='Path to the Game Boy ROM file')
    parser.add_argument('--debug', action='store_true', help='Enable debug mode (instruction trace)')
    parser.add_argument('--scale', type=int, default=4, help='Window scale factor')
    parser.add_argument('--frames', type=int, default=None, help='Stop after this many frames')
    parser.add_argument('--headless', action='store_true', help='Run without a window')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
    )

    try:
        print("Starting Game Boy emulator...")
        config = Config(debug=args.debug, scale=args.scale)
        gameboy = GameBoy(config)

        print("Loading ROM...")
        gameboy.load_rom(args.rom_file)

        print("Starting emulation...")
        if args.headless:
            frames = 0
            while gameboy.running and (args.frames is None or frames < args.frames):
                gameboy.run_frame()
                frames += 1
        else:
            from gbcore.frontend import Frontend
            frames = Frontend(gameboy).run(max_frames=args.frames)
        print(f"Emulation finished after {frames} frames.")
    except LoadError as e:
        print(f"Error: {e}")
        sys.exit(1)
    except GameBoyError as e:
        logging.exception("Emulation stopped")
        print(f"Error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nEmulation stopped.")


if __name__ == "__main__":
    main()
