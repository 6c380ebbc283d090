"""
Register file tests: pair/byte views, flag byte masking, power-up values
"""
from gbcore.registers import RegisterPair, RegisterFile, FLAG_Z, FLAG_C


class TestRegisterPair:
    def test_value_splits_into_high_and_low(self):
        pair = RegisterPair(0x1234)
        assert pair.high == 0x12
        assert pair.low == 0x34

    def test_byte_writes_update_value(self):
        pair = RegisterPair()
        pair.high = 0xAB
        pair.low = 0xCD
        assert pair.value == 0xABCD

    def test_writes_are_truncated(self):
        pair = RegisterPair()
        pair.value = 0x12345
        assert pair.value == 0x2345
        pair.high = 0x1FF
        assert pair.high == 0xFF
        assert pair.low == 0x45

    def test_low_mask_keeps_flag_nibble_zero(self):
        pair = RegisterPair(low_mask=0xF0)
        pair.value = 0x12FF
        assert pair.value == 0x12F0
        pair.low = 0x0F
        assert pair.low == 0x00


class TestRegisterFile:
    def test_byte_registers_alias_pairs(self):
        regs = RegisterFile()
        regs.b = 0x12
        regs.c = 0x34
        regs.h = 0xC0
        regs.l = 0x01
        assert regs.bc.value == 0x1234
        assert regs.hl.value == 0xC001

        regs.de.value = 0xBEEF
        assert regs.d == 0xBE
        assert regs.e == 0xEF

    def test_f_low_bits_always_zero(self):
        regs = RegisterFile()
        regs.f = 0xFF
        assert regs.f == 0xF0
        regs.af.value = 0xFFFF
        assert regs.a == 0xFF
        assert regs.f == 0xF0

    def test_flag_properties(self):
        regs = RegisterFile()
        regs.f = FLAG_Z | FLAG_C
        assert regs.flag_z
        assert not regs.flag_n
        assert not regs.flag_h
        assert regs.flag_c

    def test_reset_values(self):
        regs = RegisterFile()
        regs.reset()
        assert regs.af.value == 0x01B0
        assert regs.bc.value == 0x0013
        assert regs.de.value == 0x00D8
        assert regs.hl.value == 0x014D
        assert regs.sp == 0xFFFE
        assert regs.pc == 0x0100
