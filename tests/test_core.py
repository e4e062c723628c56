import logging

import pytest

from rvcore import AddressOutOfRange, Core, CoreConfig, DmaRequest, SimulationTimeout

import rv_encode as rv

E2E_PROGRAM = [
    rv.addi(1, 0, 5),        # 0x00
    rv.addi(2, 0, 10),       # 0x04
    rv.add(3, 1, 2),         # 0x08
    rv.sub(4, 1, 2),         # 0x0C
    rv.and_(5, 1, 2),        # 0x10
    rv.or_(6, 1, 2),         # 0x14
    rv.xor(7, 1, 2),         # 0x18
    rv.slt(8, 1, 2),         # 0x1C
    rv.sltu(9, 1, 2),        # 0x20
    rv.slli(10, 1, 3),       # 0x24
    rv.srli(11, 2, 1),       # 0x28
    rv.lui(12, 0x12345),     # 0x2C
    rv.sw(3, 0, 0x400),      # 0x30
    rv.lw(13, 0, 0x400),     # 0x34
    rv.beq(3, 13, 8),        # 0x38
    rv.addi(14, 0, 0xFF),    # 0x3C skipped
    rv.addi(15, 0, 0x42),    # 0x40
    rv.jal(16, 8),           # 0x44
    rv.addi(17, 0, 0xFF),    # 0x48 skipped
    rv.addi(18, 0, 0x55),    # 0x4C
    rv.mul(19, 1, 2),        # 0x50
    rv.mulh(20, 1, 2),       # 0x54
    rv.div(21, 2, 1),        # 0x58
    rv.rem(22, 2, 1),        # 0x5C
]


def test_end_to_end_program(make_core):
    core = make_core(E2E_PROGRAM)
    steps = core.run_to_pc(len(E2E_PROGRAM) * 4, max_cycles=100)
    assert steps == len(E2E_PROGRAM) - 2

    expected = {
        1: 5, 2: 10, 3: 15, 4: 0xFFFFFFFB, 5: 0, 6: 15, 7: 15, 8: 1, 9: 1,
        10: 40, 11: 5, 12: 0x12345000, 13: 15, 14: 0, 15: 0x42, 16: 0x48,
        17: 0, 18: 0x55, 19: 50, 20: 0, 21: 2, 22: 0,
    }
    for reg, value in expected.items():
        assert core.read_register(reg) == value, f"x{reg}"
    assert core.read_memory_word(0x400) == 15


def test_reads_see_previous_cycle_values(make_core):
    # rd == rs1: the addend is the value before this cycle's write
    core = make_core([rv.addi(1, 0, 3), rv.add(1, 1, 1), rv.add(1, 1, 1)])
    core.run(3)
    assert core.read_register(1) == 12


def test_auipc_uses_pc(make_core):
    core = make_core([rv.addi(0, 0, 0), rv.auipc(5, 1)])
    core.run(2)
    assert core.read_register(5) == 0x1004


def test_jalr_clears_low_bit(make_core):
    core = make_core([rv.addi(1, 0, 0x21), rv.jalr(2, 1, 0)])
    core.run(2)
    assert core.pc == 0x20
    assert core.read_register(2) == 8


def test_backward_branch_loop(make_core):
    program = [
        rv.addi(1, 0, 5),
        rv.addi(2, 2, 3),     # 0x04
        rv.addi(1, 1, -1),
        rv.bne(1, 0, -8),
    ]
    core = make_core(program)
    core.run_to_pc(0x10, max_cycles=100)
    assert core.read_register(2) == 15
    assert core.read_register(1) == 0


def test_sub_word_loads_and_stores(make_core):
    program = [
        rv.lui(1, 0x80000),       # x1 = 0x80000000
        rv.addi(1, 1, 0x7F),      # x1 = 0x8000007F
        rv.sb(1, 0, 0x101),
        rv.sh(1, 0, 0x102),
        rv.lb(2, 0, 0x101),
        rv.lbu(3, 0, 0x103),
        rv.lh(4, 0, 0x102),
        rv.lhu(5, 0, 0x102),
        rv.lw(6, 0, 0x100),
    ]
    core = make_core(program)
    core.run(len(program))
    assert core.read_memory_word(0x100) == 0x007F7F00
    assert core.read_register(2) == 0x7F
    assert core.read_register(3) == 0x00
    assert core.read_register(4) == 0x7F
    assert core.read_register(5) == 0x7F
    assert core.read_register(6) == 0x007F7F00


def test_signed_byte_load(make_core):
    core = make_core([rv.addi(1, 0, -128), rv.sb(1, 0, 0x200), rv.lb(2, 0, 0x200),
                      rv.lbu(3, 0, 0x200)])
    core.run(4)
    assert core.read_register(2) == 0xFFFFFF80
    assert core.read_register(3) == 0x80


def test_x0_is_invariant(make_core):
    program = [
        rv.addi(0, 0, 5),
        rv.lui(0, 0xFFFFF),
        rv.add(0, 0, 0),
        rv.sw(0, 0, 0x100),
        rv.lw(0, 0, 0x100),
        rv.mul(0, 0, 0),
        rv.jal(0, 4),
        rv.auipc(0, 1),
    ]
    core = make_core(program)
    before = core.regs.snapshot()
    for _ in program:
        core.step()
        assert core.read_register(0) == 0
    assert core.regs.snapshot() == before


def test_x0_destination_reports_no_write(make_core):
    core = make_core([rv.addi(0, 0, 5), rv.lui(0, 0xFFFFF), rv.addi(1, 0, 5)])
    assert core.step().reg_write is None
    assert core.step().reg_write is None
    assert core.step().reg_write == (1, 5)


def test_read_register_rejects_bad_index(core):
    with pytest.raises(ValueError):
        core.read_register(32)
    with pytest.raises(ValueError):
        core.read_register(-1)


def test_debug_log_carries_effects(make_core, caplog):
    core = make_core([rv.addi(3, 0, 15), rv.sw(3, 0, 0x400)])
    with caplog.at_level(logging.DEBUG, logger="rvcore.core"):
        core.run(2)
    assert "addi x3,x0,0xF;x3=0x0000000F" in caplog.text
    assert "mem[0x00000400]=0x0000000F" in caplog.text


def test_fence_and_system_are_noops(make_core):
    core = make_core([rv.FENCE, rv.ECALL, rv.EBREAK, 0xFFFFFFFF])
    before = core.regs.snapshot()
    core.run(4)
    assert core.pc == 16
    assert core.regs.snapshot() == before


class TestDma:
    def test_dma_stalls_pending_addi(self, make_core):
        core = make_core([rv.addi(1, 0, 7)])
        result = core.step(dma=DmaRequest(0x800))
        assert result.stalled
        assert result.dma_grant
        assert core.read_register(1) == 0
        assert core.pc == 0

        core.step()
        assert core.read_register(1) == 7
        assert core.pc == 4

    def test_dma_read_returns_data(self, make_core):
        core = make_core([rv.NOP])
        core.memory.write_word(0x800, 0x12345678)
        result = core.step(dma=DmaRequest(0x800))
        assert result.dma_read_data == 0x12345678

    def test_dma_write_commits_but_cpu_store_does_not(self, make_core):
        core = make_core([rv.addi(1, 0, 9), rv.sw(1, 0, 0x400)])
        core.step()
        result = core.step(dma=DmaRequest(0x800, 0xDEADBEEF, write_enable=True))
        assert result.stalled
        assert result.mem_write is None
        assert core.read_memory_word(0x800) == 0xDEADBEEF
        assert core.read_memory_word(0x400) == 0
        assert core.pc == 4

        core.step()
        assert core.read_memory_word(0x400) == 9

    def test_stalled_jump_does_not_link(self, make_core):
        core = make_core([rv.jal(1, 0x40)])
        for _ in range(3):
            core.step(dma=DmaRequest(0x100))
        assert core.pc == 0
        assert core.read_register(1) == 0
        core.step()
        assert core.pc == 0x40
        assert core.read_register(1) == 4

    def test_dma_starves_cpu_load(self, make_core):
        core = make_core([rv.lw(5, 0, 0x400)])
        core.memory.write_word(0x400, 0xCAFEF00D)
        core.memory.write_word(0x800, 0x11111111)
        result = core.step(dma=DmaRequest(0x800))
        assert result.stalled
        assert result.dma_read_data == 0x11111111
        assert core.read_register(5) == 0
        assert core.pc == 0

        core.step()
        assert core.read_register(5) == 0xCAFEF00D
        assert core.pc == 4

    def test_dma_starvation_has_no_progress_guarantee(self, make_core):
        core = make_core([rv.addi(1, 1, 1)])
        for _ in range(50):
            core.step(dma=DmaRequest(0x100))
        assert core.read_register(1) == 0
        assert core.cycles == 50


class TestIrq:
    def test_irq_vectors_pc_after_commit(self, make_core):
        core = make_core([rv.addi(1, 0, 3)])
        result = core.step(irq=True)
        assert result.irq
        assert core.pc == 0x100
        assert core.read_register(1) == 3

    def test_irq_keeps_in_flight_store(self, make_core):
        core = make_core([rv.addi(1, 0, 0x2A), rv.sw(1, 0, 0x400)])
        core.step()
        result = core.step(irq=True)
        assert result.irq
        assert result.mem_write is not None
        assert core.read_memory_word(0x400) == 0x2A
        assert core.pc == 0x100

    def test_irq_beats_jump(self, make_core):
        core = make_core([rv.jal(1, 0x40)])
        core.step(irq=True)
        assert core.pc == 0x100

    def test_stall_beats_irq(self, make_core):
        core = make_core([rv.NOP])
        core.step(irq=True, dma=DmaRequest(0x200))
        assert core.pc == 0

    def test_custom_vector(self, make_core):
        core = make_core([rv.NOP], irq_vector=0x200)
        core.step(irq=True)
        assert core.pc == 0x200


class TestFailures:
    def test_out_of_range_load_commits_nothing(self, make_core):
        core = make_core([rv.addi(1, 0, 0x400), rv.lw(2, 1, 0)], memory_words=256)
        core.step()
        with pytest.raises(AddressOutOfRange):
            core.step()
        assert core.pc == 4
        assert core.read_register(2) == 0

    def test_fetch_out_of_range(self, make_core):
        core = make_core([rv.NOP, rv.NOP], memory_words=2)
        core.run(2)
        with pytest.raises(AddressOutOfRange):
            core.step()

    def test_run_away_times_out(self, make_core):
        core = make_core([rv.jal(0, 0)])
        with pytest.raises(SimulationTimeout):
            core.run_to_pc(0x100, max_cycles=10)
        assert core.cycles == 10


def test_reset_returns_to_vector():
    core = Core(CoreConfig())
    core.load_program([rv.addi(1, 0, 1), rv.addi(2, 0, 2)])
    core.run(2)
    core.reset()
    assert core.pc == 0
    assert core.read_register(1) == 0
    assert core.cycles == 0
    # program image survives a reset
    core.run(2)
    assert core.read_register(2) == 2
