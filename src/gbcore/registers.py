"""
Game Boy CPU (Sharp LR35902) registers
Four 16-bit pairs (AF, BC, DE, HL), each readable as a high/low byte,
plus the stack pointer and program counter.
"""

# Flag bits in F
FLAG_Z = 0x80  # Zero flag
FLAG_N = 0x40  # Subtract flag
FLAG_H = 0x20  # Half carry flag
FLAG_C = 0x10  # Carry flag


class RegisterPair:
    """16-bit register with high/low byte views.

    The value is stored once; ``high`` and ``low`` are computed with shifts
    and masks so ``value == (high << 8) | low`` always holds. ``low_mask``
    restricts which bits of the low byte can be stored (0xF0 for AF).
    """

    __slots__ = ('_value', '_mask')

    def __init__(self, value=0, low_mask=0xFF):
        self._mask = 0xFF00 | low_mask
        self._value = value & self._mask

    @property
    def value(self):
        return self._value

    @value.setter
    def value(self, value):
        self._value = value & self._mask

    @property
    def high(self):
        return self._value >> 8

    @high.setter
    def high(self, value):
        self._value = ((value & 0xFF) << 8) | (self._value & 0xFF)

    @property
    def low(self):
        return self._value & 0xFF

    @low.setter
    def low(self, value):
        self._value = (self._value & 0xFF00) | (value & self._mask & 0xFF)

    def __repr__(self):
        return f"RegisterPair(0x{self._value:04X})"


class RegisterFile:
    def __init__(self):
        self.af = RegisterPair(low_mask=0xF0)
        self.bc = RegisterPair()
        self.de = RegisterPair()
        self.hl = RegisterPair()
        self.sp = 0x0000  # Stack pointer
        self.pc = 0x0000  # Program counter

    def reset(self):
        """Register values after the boot ROM hands over (DMG)"""
        self.af.value = 0x01B0
        self.bc.value = 0x0013
        self.de.value = 0x00D8
        self.hl.value = 0x014D
        self.sp = 0xFFFE
        self.pc = 0x0100

    # 8-bit views

    @property
    def a(self):
        return self.af.high

    @a.setter
    def a(self, value):
        self.af.high = value

    @property
    def f(self):
        return self.af.low

    @f.setter
    def f(self, value):
        self.af.low = value

    @property
    def b(self):
        return self.bc.high

    @b.setter
    def b(self, value):
        self.bc.high = value

    @property
    def c(self):
        return self.bc.low

    @c.setter
    def c(self, value):
        self.bc.low = value

    @property
    def d(self):
        return self.de.high

    @d.setter
    def d(self, value):
        self.de.high = value

    @property
    def e(self):
        return self.de.low

    @e.setter
    def e(self, value):
        self.de.low = value

    @property
    def h(self):
        return self.hl.high

    @h.setter
    def h(self, value):
        self.hl.high = value

    @property
    def l(self):  # noqa: E743
        return self.hl.low

    @l.setter
    def l(self, value):  # noqa: E743
        self.hl.low = value

    # Flags

    @property
    def flag_z(self):
        return bool(self.af.low & FLAG_Z)

    @property
    def flag_n(self):
        return bool(self.af.low & FLAG_N)

    @property
    def flag_h(self):
        return bool(self.af.low & FLAG_H)

    @property
    def flag_c(self):
        return bool(self.af.low & FLAG_C)

    def __repr__(self):
        return (f"AF=0x{self.af.value:04X} BC=0x{self.bc.value:04X} "
                f"DE=0x{self.de.value:04X} HL=0x{self.hl.value:04X} "
                f"SP=0x{self.sp:04X} PC=0x{self.pc:04X}")
