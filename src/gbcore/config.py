"""
Emulator configuration
Built once by the host and handed to the core at construction time.
"""
from .constants import CPU_FREQUENCY, FRAME_RATE


class Config:
    def __init__(self, cycles_per_second=CPU_FREQUENCY, frame_rate=FRAME_RATE,
                 debug=False, scale=4):
        if cycles_per_second <= 0:
            raise ValueError(f"cycles_per_second must be positive, got {cycles_per_second}")
        if frame_rate <= 0:
            raise ValueError(f"frame_rate must be positive, got {frame_rate}")

        self.cycles_per_second = int(cycles_per_second)
        self.frame_rate = frame_rate
        self.debug = debug
        self.scale = scale  # Window scale factor for the frontend

    @property
    def cycles_per_frame(self):
        """~70224 cycles per frame at the default clock"""
        return int(self.cycles_per_second / self.frame_rate)

    def __repr__(self):
        return (f"Config(cycles_per_second={self.cycles_per_second}, "
                f"frame_rate={self.frame_rate}, debug={self.debug}, scale={self.scale})")
