import pytest

from rvcore import Core, CoreConfig


@pytest.fixture
def core():
    return Core()


@pytest.fixture
def make_core():
    """Build a core with *program* loaded at address 0"""
    def _make(program, **config):
        c = Core(CoreConfig(**config))
        c.load_program(program)
        return c
    return _make
