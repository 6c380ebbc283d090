"""
Game Boy CPU (Sharp LR35902) emulation
Based on the Z80 architecture with some modifications.

Instructions are dispatched through two 256-entry tables (unprefixed and
CB-prefixed). Every bus access costs 4 cycles and is forwarded immediately
to the timer and PPU, so peripherals observe the same clock as the CPU.
"""

import logging

import cython

from . import alu
from .errors import UnmappedOpcodeError
from .interrupts import InterruptController
from .registers import RegisterFile, FLAG_Z, FLAG_C

logger = logging.getLogger(__name__)

# Operand encoding shared by most opcode blocks
R8 = ('B', 'C', 'D', 'E', 'H', 'L', '(HL)', 'A')
R8_ATTRS = ('b', 'c', 'd', 'e', 'h', 'l', None, 'a')
HL_INDIRECT = 6
R16 = ('BC', 'DE', 'HL', 'SP')
R16_STACK = ('BC', 'DE', 'HL', 'AF')
CONDITIONS = ('NZ', 'Z', 'NC', 'C')

# Opcodes with no instruction on the DMG
ILLEGAL_OPCODES = (0xD3, 0xDB, 0xDD, 0xE3, 0xE4, 0xEB, 0xEC, 0xED, 0xF4, 0xFC, 0xFD)

# 0x80-0xBF and the immediate forms: (mnemonic, fn(a, value, f) -> (a, f))
ALU_OPERATIONS = (
    ('ADD', lambda a, v, f: alu.add8(a, v)),
    ('ADC', lambda a, v, f: alu.add8(a, v, 1 if f & FLAG_C else 0)),
    ('SUB', lambda a, v, f: alu.sub8(a, v)),
    ('SBC', lambda a, v, f: alu.sub8(a, v, 1 if f & FLAG_C else 0)),
    ('AND', lambda a, v, f: alu.and8(a, v)),
    ('XOR', lambda a, v, f: alu.xor8(a, v)),
    ('OR', lambda a, v, f: alu.or8(a, v)),
    ('CP', lambda a, v, f: alu.cp8(a, v)),
)

# CB 0x00-0x3F: (mnemonic, fn(value, f) -> (value, f))
SHIFT_OPERATIONS = (
    ('RLC', lambda v, f: alu.rlc(v)),
    ('RRC', lambda v, f: alu.rrc(v)),
    ('RL', lambda v, f: alu.rl(v, f)),
    ('RR', lambda v, f: alu.rr(v, f)),
    ('SLA', lambda v, f: alu.sla(v)),
    ('SRA', lambda v, f: alu.sra(v)),
    ('SWAP', lambda v, f: alu.swap(v)),
    ('SRL', lambda v, f: alu.srl(v)),
)


class CPU:
    def __init__(self, memory, timer=None, ppu=None, interrupts=None, debug: cython.bint = False):
        self.memory = memory
        self.timer = timer
        self.ppu = ppu
        self.interrupts = interrupts if interrupts is not None else InterruptController(memory, debug)
        self.debug: cython.bint = debug

        self.registers = RegisterFile()

        # Cycle count (total, and within the current step)
        self.cycles: cython.longlong = 0
        self.step_cycles: cython.int = 0

        self.halted: cython.bint = False
        self.stopped: cython.bint = False

        self.opcodes = self._build_instruction_table()
        self.cb_opcodes = self._build_cb_instruction_table()

    def reset(self):
        """Post-boot register state"""
        self.registers.reset()
        self.halted = False
        self.stopped = False
        self.cycles = 0
        self.interrupts.reset()

    # === BUS ACCESS (4 cycles each) ===

    def _tick(self, cycles: cython.int) -> None:
        self.step_cycles += cycles
        self.cycles += cycles
        if self.timer is not None:
            self.timer.step(cycles)
        if self.ppu is not None:
            self.ppu.step(cycles)

    def idle(self, cycles: cython.int = 4) -> cython.int:
        """Internal machine cycles with no bus access"""
        self._tick(cycles)
        return cycles

    def read_byte(self, address: cython.int) -> cython.int:
        value = self.memory.read_byte(address)
        self._tick(4)
        return value

    def write_byte(self, address: cython.int, value: cython.int) -> None:
        self.memory.write_byte(address, value)
        self._tick(4)

    def fetch_byte(self) -> cython.int:
        """Fetch next byte from memory at PC"""
        value = self.read_byte(self.registers.pc)
        self.registers.pc = (self.registers.pc + 1) & 0xFFFF
        return value

    def fetch_word(self) -> cython.int:
        """Fetch next word (16-bit) from memory at PC"""
        low = self.fetch_byte()
        high = self.fetch_byte()
        return (high << 8) | low

    def fetch_signed(self) -> cython.int:
        value = self.fetch_byte()
        return value - 0x100 if value & 0x80 else value

    def push_word(self, value: cython.int) -> None:
        """Push word onto stack (high byte first)"""
        r = self.registers
        r.sp = (r.sp - 1) & 0xFFFF
        self.write_byte(r.sp, (value >> 8) & 0xFF)
        r.sp = (r.sp - 1) & 0xFFFF
        self.write_byte(r.sp, value & 0xFF)

    def pop_word(self) -> cython.int:
        """Pop word from stack"""
        r = self.registers
        low = self.read_byte(r.sp)
        r.sp = (r.sp + 1) & 0xFFFF
        high = self.read_byte(r.sp)
        r.sp = (r.sp + 1) & 0xFFFF
        return (high << 8) | low

    def call_interrupt(self, vector):
        """Push PC and jump to an interrupt vector; returns cycles spent"""
        self.push_word(self.registers.pc)
        self.registers.pc = vector
        return 8

    # === EXECUTION ===

    def step(self) -> cython.int:
        """Execute one instruction; returns the cycles it took"""
        self.step_cycles = 0

        if self.stopped:
            # Idle until a button press clears the stopped state
            self.idle()
            return self.step_cycles

        if self.halted:
            # HALT is re-executed in place until an interrupt wakes the CPU
            self.idle()
            self.interrupts.arm()
            return self.step_cycles

        pc = self.registers.pc
        opcode = self.fetch_byte()
        entry = self.opcodes[opcode]
        if entry is None:
            logger.error("Invalid opcode 0x%02X at 0x%04X", opcode, pc)
            raise UnmappedOpcodeError(opcode, pc)

        mnemonic, handler = entry
        if self.debug:
            logger.debug("0x%04X: %02X %-12s %r", pc, opcode, mnemonic, self.registers)
        handler()
        return self.step_cycles

    def process_interrupts(self):
        return self.interrupts.process(self)

    # === OPERAND HELPERS ===

    def _read_r8(self, index: cython.int) -> cython.int:
        if index == HL_INDIRECT:
            return self.read_byte(self.registers.hl.value)
        return getattr(self.registers, R8_ATTRS[index])

    def _write_r8(self, index: cython.int, value: cython.int) -> None:
        if index == HL_INDIRECT:
            self.write_byte(self.registers.hl.value, value)
        else:
            setattr(self.registers, R8_ATTRS[index], value)

    def _read_r16(self, index):
        if index == 3:
            return self.registers.sp
        return getattr(self.registers, R16[index].lower()).value

    def _write_r16(self, index, value):
        if index == 3:
            self.registers.sp = value & 0xFFFF
        else:
            getattr(self.registers, R16[index].lower()).value = value

    def _condition(self, cc: cython.int) -> cython.bint:
        f = self.registers.f
        if cc == 0:
            return not f & FLAG_Z
        if cc == 1:
            return bool(f & FLAG_Z)
        if cc == 2:
            return not f & FLAG_C
        return bool(f & FLAG_C)

    # === INSTRUCTION TABLES ===

    def _build_instruction_table(self):
        """Build the table for all 256 unprefixed opcodes (None = illegal)"""
        table = [None] * 256

        # 0x00-0x3F: Misc, 16-bit loads, INC/DEC, rotates on A, relative jumps
        table[0x00] = ('NOP', self._nop)
        table[0x08] = ('LD (nn),SP', self._ld_nn_sp)
        table[0x10] = ('STOP', self._stop)
        table[0x18] = ('JR e', self._jr)
        for cc, name in enumerate(CONDITIONS):
            table[0x20 + cc * 8] = (f'JR {name},e', lambda c=cc: self._jr_cc(c))

        for i, name in enumerate(R16):
            table[0x01 + i * 16] = (f'LD {name},nn', lambda i=i: self._ld_rr_nn(i))
            table[0x03 + i * 16] = (f'INC {name}', lambda i=i: self._inc_rr(i))
            table[0x09 + i * 16] = (f'ADD HL,{name}', lambda i=i: self._add_hl_rr(i))
            table[0x0B + i * 16] = (f'DEC {name}', lambda i=i: self._dec_rr(i))

        table[0x02] = ('LD (BC),A', lambda: self._ld_indirect_a(self.registers.bc.value))
        table[0x12] = ('LD (DE),A', lambda: self._ld_indirect_a(self.registers.de.value))
        table[0x22] = ('LD (HL+),A', lambda: self._ld_indirect_a(self._hl_post(1)))
        table[0x32] = ('LD (HL-),A', lambda: self._ld_indirect_a(self._hl_post(-1)))
        table[0x0A] = ('LD A,(BC)', lambda: self._ld_a_indirect(self.registers.bc.value))
        table[0x1A] = ('LD A,(DE)', lambda: self._ld_a_indirect(self.registers.de.value))
        table[0x2A] = ('LD A,(HL+)', lambda: self._ld_a_indirect(self._hl_post(1)))
        table[0x3A] = ('LD A,(HL-)', lambda: self._ld_a_indirect(self._hl_post(-1)))

        for i, name in enumerate(R8):
            table[0x04 + i * 8] = (f'INC {name}', lambda i=i: self._inc_r(i))
            table[0x05 + i * 8] = (f'DEC {name}', lambda i=i: self._dec_r(i))
            table[0x06 + i * 8] = (f'LD {name},n', lambda i=i: self._ld_r_n(i))

        table[0x07] = ('RLCA', self._rlca)
        table[0x0F] = ('RRCA', self._rrca)
        table[0x17] = ('RLA', self._rla)
        table[0x1F] = ('RRA', self._rra)
        table[0x27] = ('DAA', self._daa)
        table[0x2F] = ('CPL', self._cpl)
        table[0x37] = ('SCF', self._scf)
        table[0x3F] = ('CCF', self._ccf)

        # 0x40-0x7F: LD r,r' (0x76 is HALT)
        for dst, dst_name in enumerate(R8):
            for src, src_name in enumerate(R8):
                table[0x40 + dst * 8 + src] = (f'LD {dst_name},{src_name}',
                                               lambda d=dst, s=src: self._ld_r_r(d, s))
        table[0x76] = ('HALT', self._halt)

        # 0x80-0xBF: 8-bit arithmetic on A
        for op_index, (op_name, operation) in enumerate(ALU_OPERATIONS):
            for reg, reg_name in enumerate(R8):
                table[0x80 + op_index * 8 + reg] = (f'{op_name} {reg_name}',
                                                    lambda o=operation, r=reg: self._alu_r(o, r))
            table[0xC6 + op_index * 8] = (f'{op_name} n', lambda o=operation: self._alu_n(o))

        # 0xC0-0xFF: Control flow, stack, high-page loads
        for cc, name in enumerate(CONDITIONS):
            table[0xC0 + cc * 8] = (f'RET {name}', lambda c=cc: self._ret_cc(c))
            table[0xC2 + cc * 8] = (f'JP {name},nn', lambda c=cc: self._jp_cc(c))
            table[0xC4 + cc * 8] = (f'CALL {name},nn', lambda c=cc: self._call_cc(c))

        for i, name in enumerate(R16_STACK):
            table[0xC1 + i * 16] = (f'POP {name}', lambda i=i: self._pop(i))
            table[0xC5 + i * 16] = (f'PUSH {name}', lambda i=i: self._push(i))

        for n in range(8):
            table[0xC7 + n * 8] = (f'RST {n * 8:02X}H', lambda v=n * 8: self._rst(v))

        table[0xC3] = ('JP nn', self._jp)
        table[0xC9] = ('RET', self._ret)
        table[0xCB] = ('PREFIX CB', self._prefix_cb)
        table[0xCD] = ('CALL nn', self._call)
        table[0xD9] = ('RETI', self._reti)
        table[0xE0] = ('LDH (n),A', self._ldh_n_a)
        table[0xE2] = ('LD (C),A', lambda: self._ld_indirect_a(0xFF00 | self.registers.c))
        table[0xE8] = ('ADD SP,e', self._add_sp_e)
        table[0xE9] = ('JP (HL)', self._jp_hl)
        table[0xEA] = ('LD (nn),A', lambda: self._ld_indirect_a(self.fetch_word()))
        table[0xF0] = ('LDH A,(n)', self._ldh_a_n)
        table[0xF2] = ('LD A,(C)', lambda: self._ld_a_indirect(0xFF00 | self.registers.c))
        table[0xF3] = ('DI', self._di)
        table[0xF8] = ('LD HL,SP+e', self._ld_hl_sp_e)
        table[0xF9] = ('LD SP,HL', self._ld_sp_hl)
        table[0xFA] = ('LD A,(nn)', lambda: self._ld_a_indirect(self.fetch_word()))
        table[0xFB] = ('EI', self._ei)

        for opcode in ILLEGAL_OPCODES:
            table[opcode] = None

        return table

    def _build_cb_instruction_table(self):
        """Build the table for all 256 CB-prefixed opcodes"""
        table = [None] * 256

        # 0x00-0x3F: Rotates, shifts and SWAP
        for op_index, (op_name, operation) in enumerate(SHIFT_OPERATIONS):
            for reg, reg_name in enumerate(R8):
                table[op_index * 8 + reg] = (f'{op_name} {reg_name}',
                                             lambda o=operation, r=reg: self._shift_r(o, r))

        # 0x40-0xFF: BIT / RES / SET
        for bit in range(8):
            for reg, reg_name in enumerate(R8):
                table[0x40 + bit * 8 + reg] = (f'BIT {bit},{reg_name}',
                                               lambda b=bit, r=reg: self._bit(b, r))
                table[0x80 + bit * 8 + reg] = (f'RES {bit},{reg_name}',
                                               lambda b=bit, r=reg: self._res(b, r))
                table[0xC0 + bit * 8 + reg] = (f'SET {bit},{reg_name}',
                                               lambda b=bit, r=reg: self._set(b, r))

        return table

    # === CONTROL ===

    def _nop(self):
        pass

    def _prefix_cb(self):
        cb_opcode = self.fetch_byte()
        mnemonic, handler = self.cb_opcodes[cb_opcode]
        if self.debug:
            logger.debug("  CB %02X %s", cb_opcode, mnemonic)
        handler()

    def _halt(self):
        self.halted = True
        self.interrupts.arm()

    def _stop(self):
        # STOP is followed by a padding byte that is skipped without a fetch
        self.stopped = True
        self.registers.pc = (self.registers.pc + 1) & 0xFFFF
        if self.debug:
            logger.debug("STOP at 0x%04X", (self.registers.pc - 2) & 0xFFFF)

    def _di(self):
        self.interrupts.disable_after_next()

    def _ei(self):
        self.interrupts.enable_after_next()

    # === 8-BIT LOADS ===

    def _ld_r_r(self, dst, src):
        self._write_r8(dst, self._read_r8(src))

    def _ld_r_n(self, dst):
        self._write_r8(dst, self.fetch_byte())

    def _ld_indirect_a(self, address):
        self.write_byte(address, self.registers.a)

    def _ld_a_indirect(self, address):
        self.registers.a = self.read_byte(address)

    def _hl_post(self, delta):
        """Current HL, then HL += delta (for the HL+/HL- forms)"""
        address = self.registers.hl.value
        self.registers.hl.value = (address + delta) & 0xFFFF
        return address

    def _ldh_n_a(self):
        offset = self.fetch_byte()
        self.write_byte(0xFF00 | offset, self.registers.a)

    def _ldh_a_n(self):
        offset = self.fetch_byte()
        self.registers.a = self.read_byte(0xFF00 | offset)

    # === 16-BIT LOADS AND STACK ===

    def _ld_rr_nn(self, index):
        self._write_r16(index, self.fetch_word())

    def _ld_nn_sp(self):
        address = self.fetch_word()
        sp = self.registers.sp
        self.write_byte(address, sp & 0xFF)
        self.write_byte((address + 1) & 0xFFFF, sp >> 8)

    def _ld_sp_hl(self):
        self.registers.sp = self.registers.hl.value
        self.idle()

    def _ld_hl_sp_e(self):
        offset = self.fetch_byte()
        self.registers.hl.value, self.registers.f = alu.add_sp_offset(self.registers.sp, offset)
        self.idle()

    def _push(self, index):
        pair = getattr(self.registers, R16_STACK[index].lower())
        self.idle()
        self.push_word(pair.value)

    def _pop(self, index):
        pair = getattr(self.registers, R16_STACK[index].lower())
        pair.value = self.pop_word()

    # === 8-BIT ARITHMETIC ===

    def _alu_r(self, operation, reg):
        value = self._read_r8(reg)
        r = self.registers
        r.a, r.f = operation(r.a, value, r.f)

    def _alu_n(self, operation):
        value = self.fetch_byte()
        r = self.registers
        r.a, r.f = operation(r.a, value, r.f)

    def _inc_r(self, reg):
        value = self._read_r8(reg)
        result, self.registers.f = alu.inc8(value, self.registers.f)
        self._write_r8(reg, result)

    def _dec_r(self, reg):
        value = self._read_r8(reg)
        result, self.registers.f = alu.dec8(value, self.registers.f)
        self._write_r8(reg, result)

    def _daa(self):
        r = self.registers
        r.a, r.f = alu.daa(r.a, r.f)

    def _cpl(self):
        r = self.registers
        r.a, r.f = alu.cpl(r.a, r.f)

    def _scf(self):
        self.registers.f = alu.scf(self.registers.f)

    def _ccf(self):
        self.registers.f = alu.ccf(self.registers.f)

    def _rlca(self):
        r = self.registers
        r.a, r.f = alu.rlca(r.a)

    def _rrca(self):
        r = self.registers
        r.a, r.f = alu.rrca(r.a)

    def _rla(self):
        r = self.registers
        r.a, r.f = alu.rla(r.a, r.f)

    def _rra(self):
        r = self.registers
        r.a, r.f = alu.rra(r.a, r.f)

    # === 16-BIT ARITHMETIC ===

    def _inc_rr(self, index):
        self._write_r16(index, (self._read_r16(index) + 1) & 0xFFFF)
        self.idle()

    def _dec_rr(self, index):
        self._write_r16(index, (self._read_r16(index) - 1) & 0xFFFF)
        self.idle()

    def _add_hl_rr(self, index):
        r = self.registers
        r.hl.value, r.f = alu.add16_hl(r.hl.value, self._read_r16(index), r.f)
        self.idle()

    def _add_sp_e(self):
        offset = self.fetch_byte()
        self.registers.sp, self.registers.f = alu.add_sp_offset(self.registers.sp, offset)
        self.idle(8)

    # === JUMPS, CALLS AND RETURNS ===

    def _jp(self):
        address = self.fetch_word()
        self.registers.pc = address
        self.idle()

    def _jp_cc(self, cc):
        address = self.fetch_word()
        if self._condition(cc):
            self.registers.pc = address
            self.idle()

    def _jp_hl(self):
        self.registers.pc = self.registers.hl.value

    def _jr(self):
        offset = self.fetch_signed()
        self.registers.pc = (self.registers.pc + offset) & 0xFFFF
        self.idle()

    def _jr_cc(self, cc):
        offset = self.fetch_signed()
        if self._condition(cc):
            self.registers.pc = (self.registers.pc + offset) & 0xFFFF
            self.idle()

    def _call(self):
        address = self.fetch_word()
        self.idle()
        self.push_word(self.registers.pc)
        self.registers.pc = address

    def _call_cc(self, cc):
        address = self.fetch_word()
        if self._condition(cc):
            self.idle()
            self.push_word(self.registers.pc)
            self.registers.pc = address

    def _ret(self):
        self.registers.pc = self.pop_word()
        self.idle()

    def _ret_cc(self, cc):
        self.idle()
        if self._condition(cc):
            self._ret()

    def _reti(self):
        self._ret()
        self.interrupts.enable_now()

    def _rst(self, vector):
        self.idle()
        self.push_word(self.registers.pc)
        self.registers.pc = vector

    # === CB-PREFIXED ===

    def _shift_r(self, operation, reg):
        value = self._read_r8(reg)
        result, self.registers.f = operation(value, self.registers.f)
        self._write_r8(reg, result)

    def _bit(self, bit, reg):
        value = self._read_r8(reg)
        self.registers.f = alu.bit(bit, value, self.registers.f)

    def _res(self, bit, reg):
        self._write_r8(reg, self._read_r8(reg) & ~(1 << bit) & 0xFF)

    def _set(self, bit, reg):
        self._write_r8(reg, self._read_r8(reg) | (1 << bit))
