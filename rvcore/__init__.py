"""
Cycle-level functional model of a single-cycle RV32IM core
"""

from .config import CoreConfig
from .core import Core, StepResult
from .decoder import ControlBundle, decode
from .errors import (AddressOutOfRange, ImageFormatError, SimulationTimeout,
                     SimulatorError)
from .memory import BusArbiter, DmaRequest, Memory, MemoryTransaction

__version__ = "0.1.0"
