"""
Timer/divider tests
"""
import pytest

from gbcore.config import Config
from gbcore.constants import (
    DIVIDER_ADDRESS, TIMER_COUNTER_ADDRESS, TIMER_MODULO_ADDRESS, TIMER_CONTROL_ADDRESS,
    INTERRUPT_FLAG_ADDRESS,
)
from gbcore.timer import Timer


class TestDivider:
    def test_increments_every_256_cycles(self, memory, timer):
        timer.step(252)
        assert memory.read_byte(DIVIDER_ADDRESS) == 0
        timer.step(4)
        assert memory.read_byte(DIVIDER_ADDRESS) == 1
        timer.step(256 * 3)
        assert memory.read_byte(DIVIDER_ADDRESS) == 4

    def test_runs_with_timer_disabled(self, memory, timer):
        memory.write_byte(TIMER_CONTROL_ADDRESS, 0x00)
        timer.step(1024)
        assert memory.read_byte(DIVIDER_ADDRESS) == 4

    def test_wraps(self, memory, timer):
        timer.step(256 * 256)
        assert memory.read_byte(DIVIDER_ADDRESS) == 0

    def test_write_resets_value_and_phase(self, memory, timer):
        timer.step(256 + 200)
        memory.write_byte(DIVIDER_ADDRESS, 0x80)
        assert memory.read_byte(DIVIDER_ADDRESS) == 0
        timer.step(100)
        assert memory.read_byte(DIVIDER_ADDRESS) == 0

    def test_follows_configured_clock(self, memory):
        timer = Timer(memory, Config(cycles_per_second=16384 * 8))
        timer.step(8)
        assert memory.read_byte(DIVIDER_ADDRESS) == 1


class TestTimerCounter:
    def test_disabled_timer_does_not_count(self, memory, timer):
        memory.write_byte(TIMER_CONTROL_ADDRESS, 0x01)  # fast clock, but bit 2 clear
        timer.step(1000)
        assert memory.read_byte(TIMER_COUNTER_ADDRESS) == 0

    @pytest.mark.parametrize("tac,period", [(0x04, 1024), (0x05, 16), (0x06, 64), (0x07, 256)])
    def test_clock_select(self, memory, timer, tac, period):
        memory.write_byte(TIMER_CONTROL_ADDRESS, tac)
        timer.step(period - 4)
        assert memory.read_byte(TIMER_COUNTER_ADDRESS) == 0
        timer.step(4)
        assert memory.read_byte(TIMER_COUNTER_ADDRESS) == 1

    def test_overflow_reloads_modulo_and_requests_interrupt(self, memory, timer):
        memory.write_byte(TIMER_MODULO_ADDRESS, 0xAB)
        memory.write_byte(TIMER_COUNTER_ADDRESS, 0xFF)
        memory.write_byte(TIMER_CONTROL_ADDRESS, 0x05)

        timer.step(16)

        assert memory.read_byte(TIMER_COUNTER_ADDRESS) == 0xAB
        assert memory.read_byte(INTERRUPT_FLAG_ADDRESS) & 0x04

    def test_no_interrupt_before_overflow(self, memory, timer):
        memory.write_byte(TIMER_COUNTER_ADDRESS, 0xFE)
        memory.write_byte(TIMER_CONTROL_ADDRESS, 0x05)
        timer.step(16)
        assert memory.read_byte(TIMER_COUNTER_ADDRESS) == 0xFF
        assert memory.read_byte(INTERRUPT_FLAG_ADDRESS) & 0x04 == 0

    def test_multiple_ticks_in_one_step(self, memory, timer):
        memory.write_byte(TIMER_CONTROL_ADDRESS, 0x05)
        timer.step(16 * 10 + 8)
        assert memory.read_byte(TIMER_COUNTER_ADDRESS) == 10
        timer.step(8)
        assert memory.read_byte(TIMER_COUNTER_ADDRESS) == 11

    def test_frequency_property(self, memory, timer):
        memory.write_byte(TIMER_CONTROL_ADDRESS, 0x06)
        assert timer.frequency == 65536
