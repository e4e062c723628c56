"""
Simulator exceptions
"""


class SimulatorError(Exception):
    """Base for errors raised by the simulator and its tools"""
    pass


class AddressOutOfRange(SimulatorError):
    def __init__(self, address: int, size_bytes: int):
        self.address = address
        self.size_bytes = size_bytes
        super().__init__(
            f"Address 0x{address:08X} outside memory (0x{size_bytes:X} bytes)")


class SimulationTimeout(SimulatorError):
    def __init__(self, cycles: int, pc: int):
        self.cycles = cycles
        self.pc = pc
        super().__init__(f"Cycle budget of {cycles} exhausted at PC 0x{pc:08X}")


class ImageFormatError(SimulatorError):
    """Program image could not be parsed"""
    pass
