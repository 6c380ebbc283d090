"""
Game Boy ALU
Pure arithmetic/logic helpers. Each function takes operand values (and the
current F register where the old flags matter) and returns ``(result, flags)``
with ``flags`` already packed into the F register layout.
"""

from .registers import FLAG_Z, FLAG_N, FLAG_H, FLAG_C


def _zero(value):
    return FLAG_Z if value == 0 else 0


# === 8-BIT ARITHMETIC ===

def add8(a, b, carry=0):
    """ADD / ADC"""
    total = a + b + carry
    result = total & 0xFF
    flags = _zero(result)
    if (a & 0x0F) + (b & 0x0F) + carry > 0x0F:
        flags |= FLAG_H
    if total > 0xFF:
        flags |= FLAG_C
    return result, flags


def sub8(a, b, carry=0):
    """SUB / SBC"""
    total = a - b - carry
    result = total & 0xFF
    flags = _zero(result) | FLAG_N
    if (a & 0x0F) < (b & 0x0F) + carry:
        flags |= FLAG_H
    if total < 0:
        flags |= FLAG_C
    return result, flags


def cp8(a, b):
    """CP: subtraction whose result is discarded"""
    _, flags = sub8(a, b)
    return a, flags


def and8(a, b):
    result = a & b
    return result, _zero(result) | FLAG_H


def or8(a, b):
    result = a | b
    return result, _zero(result)


def xor8(a, b):
    result = a ^ b
    return result, _zero(result)


def inc8(value, f):
    """INC r: carry flag untouched"""
    result = (value + 1) & 0xFF
    flags = (f & FLAG_C) | _zero(result)
    if (value & 0x0F) == 0x0F:
        flags |= FLAG_H
    return result, flags


def dec8(value, f):
    """DEC r: carry flag untouched"""
    result = (value - 1) & 0xFF
    flags = (f & FLAG_C) | _zero(result) | FLAG_N
    if (value & 0x0F) == 0x00:
        flags |= FLAG_H
    return result, flags


# === 16-BIT ARITHMETIC ===

def add16_hl(hl, value, f):
    """ADD HL,rr: Z untouched, H from bit 11, C from bit 15"""
    total = hl + value
    flags = f & FLAG_Z
    if (hl & 0x0FFF) + (value & 0x0FFF) > 0x0FFF:
        flags |= FLAG_H
    if total > 0xFFFF:
        flags |= FLAG_C
    return total & 0xFFFF, flags


def add_sp_offset(sp, offset):
    """ADD SP,e / LD HL,SP+e

    ``offset`` is the raw immediate byte. H and C come from the unsigned
    addition of the low byte of SP and the offset byte; Z and N are cleared.
    """
    signed = offset - 0x100 if offset & 0x80 else offset
    flags = 0
    if (sp & 0x0F) + (offset & 0x0F) > 0x0F:
        flags |= FLAG_H
    if (sp & 0xFF) + (offset & 0xFF) > 0xFF:
        flags |= FLAG_C
    return (sp + signed) & 0xFFFF, flags


# === MISC ===

def daa(a, f):
    """Decimal adjust A after a BCD add or subtract"""
    correction = 0
    carry = f & FLAG_C
    if f & FLAG_N:
        if f & FLAG_H:
            correction |= 0x06
        if carry:
            correction |= 0x60
        result = (a - correction) & 0xFF
    else:
        if (f & FLAG_H) or (a & 0x0F) > 0x09:
            correction |= 0x06
        if carry or a > 0x99:
            correction |= 0x60
            carry = FLAG_C
        result = (a + correction) & 0xFF
    flags = _zero(result) | (f & FLAG_N) | (FLAG_C if carry else 0)
    return result, flags


def cpl(a, f):
    return a ^ 0xFF, (f & (FLAG_Z | FLAG_C)) | FLAG_N | FLAG_H


def scf(f):
    return (f & FLAG_Z) | FLAG_C


def ccf(f):
    return (f & FLAG_Z) | ((f & FLAG_C) ^ FLAG_C)


# === ROTATES AND SHIFTS (CB-prefixed forms set Z from the result) ===

def rlc(value):
    carry = value >> 7
    result = ((value << 1) | carry) & 0xFF
    return result, _zero(result) | (FLAG_C if carry else 0)


def rrc(value):
    carry = value & 0x01
    result = (value >> 1) | (carry << 7)
    return result, _zero(result) | (FLAG_C if carry else 0)


def rl(value, f):
    carry_in = 1 if f & FLAG_C else 0
    result = ((value << 1) | carry_in) & 0xFF
    return result, _zero(result) | (FLAG_C if value & 0x80 else 0)


def rr(value, f):
    carry_in = 0x80 if f & FLAG_C else 0
    result = (value >> 1) | carry_in
    return result, _zero(result) | (FLAG_C if value & 0x01 else 0)


def sla(value):
    result = (value << 1) & 0xFF
    return result, _zero(result) | (FLAG_C if value & 0x80 else 0)


def sra(value):
    result = (value >> 1) | (value & 0x80)
    return result, _zero(result) | (FLAG_C if value & 0x01 else 0)


def srl(value):
    result = value >> 1
    return result, _zero(result) | (FLAG_C if value & 0x01 else 0)


def swap(value):
    result = ((value & 0x0F) << 4) | (value >> 4)
    return result, _zero(result)


def bit(n, value, f):
    """BIT n,r: Z set when the bit is clear, carry untouched"""
    flags = (f & FLAG_C) | FLAG_H
    if not (value >> n) & 0x01:
        flags |= FLAG_Z
    return flags


# Accumulator rotates (RLCA, RRCA, RLA, RRA) always clear Z
def rlca(a):
    result, flags = rlc(a)
    return result, flags & FLAG_C


def rrca(a):
    result, flags = rrc(a)
    return result, flags & FLAG_C


def rla(a, f):
    result, flags = rl(a, f)
    return result, flags & FLAG_C


def rra(a, f):
    result, flags = rr(a, f)
    return result, flags & FLAG_C
