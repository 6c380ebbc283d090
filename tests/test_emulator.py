"""
End-to-end tests through the GameBoy facade
"""
import pytest

from conftest import make_rom
from gbcore import Button, Config, GameBoy, LoadError, UnmappedOpcodeError, load_cartridge
from gbcore.cartridge import CartridgeKind
from gbcore.constants import (
    INTERRUPT_ENABLE_ADDRESS, INTERRUPT_FLAG_ADDRESS, LCD_CONTROL_ADDRESS, BG_PALETTE_ADDRESS,
    SCANLINE_ADDRESS,
)


class TestLoading:
    def test_post_boot_state(self, gameboy):
        r = gameboy.cpu.registers
        assert r.af.value == 0x01B0
        assert r.bc.value == 0x0013
        assert r.de.value == 0x00D8
        assert r.hl.value == 0x014D
        assert r.sp == 0xFFFE
        assert r.pc == 0x0100
        assert gameboy.memory.read_byte(LCD_CONTROL_ADDRESS) == 0x91
        assert gameboy.memory.read_byte(BG_PALETTE_ADDRESS) == 0xFC
        assert gameboy.memory.read_byte(INTERRUPT_ENABLE_ADDRESS) == 0x00

    def test_mbc1_image(self):
        rom = make_rom(cartridge_type=0x01, rom_size_code=0x02)
        gameboy = load_cartridge(rom)
        assert gameboy.header.kind == CartridgeKind.MBC1
        assert gameboy.header.rom_banks == 8
        for address in (0x0000, 0x0100, 0x0147, 0x3FFF):
            assert gameboy.memory.read_byte(address) == rom[address]
        assert gameboy.memory.read_byte(0x4000) == 0x01

    @pytest.mark.parametrize("data", [None, b"", bytes(0x100)])
    def test_bad_image_rejected(self, data):
        with pytest.raises(LoadError):
            load_cartridge(data)

    def test_failed_load_keeps_current_cartridge(self, gameboy):
        cartridge = gameboy.cartridge
        with pytest.raises(LoadError):
            gameboy.load_cartridge(make_rom(cartridge_type=0x19))
        assert gameboy.cartridge is cartridge

    def test_load_rom_from_file(self, tmp_path):
        path = tmp_path / "test.gb"
        path.write_bytes(make_rom(title=b"FILE"))
        gameboy = GameBoy().load_rom(str(path))
        assert gameboy.header.title == "FILE"

    def test_load_rom_missing_file(self, tmp_path):
        with pytest.raises(LoadError):
            GameBoy().load_rom(str(tmp_path / "missing.gb"))


class TestExecution:
    def test_first_instructions(self):
        gameboy = load_cartridge(make_rom(program=bytes([0x3E, 0x05, 0x3C])))  # LD A,5; INC A
        cycles = gameboy.step() + gameboy.step()
        assert gameboy.cpu.registers.a == 0x06
        assert gameboy.cpu.registers.pc == 0x0103
        assert cycles == 12
        assert gameboy.cpu.cycles == 12

    def test_illegal_opcode(self):
        gameboy = load_cartridge(make_rom(program=bytes([0xD3])))
        with pytest.raises(UnmappedOpcodeError) as excinfo:
            gameboy.step()
        assert excinfo.value.address == 0x0100

    def test_run_frame(self):
        gameboy = load_cartridge(make_rom(program=bytes([0x18, 0xFE])))  # JR -2
        cycles = gameboy.run_frame()

        assert gameboy.ppu.frame_ready
        assert gameboy.ppu.frame_count == 1
        assert gameboy.memory.read_byte(SCANLINE_ADDRESS) == 144
        assert 144 * 456 <= cycles < 144 * 456 + 16
        assert (gameboy.frame_buffer() == 255).all()

        cycles = gameboy.run_frame()
        assert gameboy.ppu.frame_count == 2
        assert 154 * 456 - 16 < cycles < 154 * 456 + 16

    def test_run_frame_with_display_off(self):
        # XOR A; LDH (0x40),A; JR -2
        gameboy = load_cartridge(make_rom(program=bytes([0xAF, 0xE0, 0x40, 0x18, 0xFE])))
        cycles = gameboy.run_frame()
        assert not gameboy.ppu.frame_ready
        assert cycles >= 2 * gameboy.config.cycles_per_frame

    def test_vblank_interrupt_dispatched(self):
        # LD A,1; LDH (0xFF),A; EI; JR -2
        program = bytes([0x3E, 0x01, 0xE0, 0xFF, 0xFB, 0x18, 0xFE])
        gameboy = load_cartridge(make_rom(program=program))
        gameboy.run_frame()

        assert gameboy.cpu.registers.pc == 0x0040
        assert gameboy.cpu.registers.sp == 0xFFFC
        assert gameboy.memory.read_word(0xFFFC) == 0x0105
        assert gameboy.memory.read_byte(INTERRUPT_FLAG_ADDRESS) & 0x01 == 0
        assert not gameboy.interrupts.enabled

    def test_reset_restores_post_boot_state(self):
        gameboy = load_cartridge(make_rom(cartridge_type=0x01, rom_size_code=0x02))
        gameboy.memory.write_byte(0x2000, 0x05)
        gameboy.memory.write_byte(0xC000, 0x77)
        gameboy.step()

        gameboy.reset()

        assert gameboy.cpu.registers.pc == 0x0100
        assert gameboy.cpu.cycles == 0
        assert gameboy.cartridge.rom_bank == 1
        assert gameboy.memory.read_byte(0xC000) == 0x00

    def test_stop(self, gameboy):
        gameboy.stop()
        assert not gameboy.running


class TestHostInterface:
    def test_frame_buffer_is_read_only(self, gameboy):
        frame = gameboy.frame_buffer()
        assert frame.shape == (144, 160)
        with pytest.raises(ValueError):
            frame[0, 0] = 0
        assert gameboy.ppu.frame_buffer.flags.writeable

    def test_button_press_ends_stop(self, gameboy):
        gameboy.cpu.stopped = True
        gameboy.set_button_state(Button.START, True)
        assert not gameboy.cpu.stopped
        assert gameboy.memory.read_byte(INTERRUPT_FLAG_ADDRESS) & 0x10

    def test_button_release_keeps_stop(self, gameboy):
        gameboy.set_button_state(Button.A, True)
        gameboy.cpu.stopped = True
        gameboy.set_button_state(Button.A, False)
        assert gameboy.cpu.stopped

    def test_button_visible_to_program(self, gameboy):
        gameboy.set_button_state(Button.DOWN, True)
        gameboy.memory.write_byte(0xFF00, 0x20)
        assert gameboy.memory.read_byte(0xFF00) & 0x0F == 0x07


class TestConfig:
    def test_defaults(self):
        config = Config()
        assert config.cycles_per_second == 4194304
        assert 70000 < config.cycles_per_frame < 70300
        assert not config.debug

    @pytest.mark.parametrize("kwargs", [{"cycles_per_second": 0}, {"frame_rate": -1}])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            Config(**kwargs)

    def test_clock_feeds_timer(self):
        gameboy = GameBoy(Config(cycles_per_second=16384 * 64))
        assert gameboy.timer.cycles_per_divider == 64
