"""
Core and harness configuration
"""

from dataclasses import dataclass

from .memory import DEFAULT_MEMORY_WORDS
from .pc import IRQ_VECTOR, RESET_VECTOR

# Safety limit on steps for a single run
DEFAULT_MAX_CYCLES = 1000000


@dataclass
class CoreConfig:
    memory_words: int = DEFAULT_MEMORY_WORDS
    reset_vector: int = RESET_VECTOR
    irq_vector: int = IRQ_VECTOR
    max_cycles: int = DEFAULT_MAX_CYCLES
    # Subtracted from ELF section addresses when placing them in memory
    text_base: int = 0

    def __post_init__(self):
        if self.memory_words <= 0:
            raise ValueError(f"memory_words must be positive, got {self.memory_words}")
        if self.max_cycles <= 0:
            raise ValueError(f"max_cycles must be positive, got {self.max_cycles}")
        if self.reset_vector % 4 or self.irq_vector % 4:
            raise ValueError("reset and IRQ vectors must be word aligned")
