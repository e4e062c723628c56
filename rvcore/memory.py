"""
Unified word memory and the bus arbiter in front of it

The array has a dedicated instruction read tap and one shared data port.
CPU loads/stores and the external DMA channel contend for the data port;
DMA always wins and the CPU stalls for that cycle.
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, List, Optional

from .errors import AddressOutOfRange
from .isa import MASK32, MemSize, sign_extend

logger = logging.getLogger(__name__)

DEFAULT_MEMORY_WORDS = 16384  # 64 KiB


@dataclass(frozen=True)
class MemoryTransaction:
    """One data-port access; *size* carries signedness for loads"""
    address: int
    size: MemSize = MemSize.WORD
    write_data: int = 0
    is_write: bool = False


@dataclass(frozen=True)
class DmaRequest:
    """External DMA request, sampled once per cycle. Always word sized."""
    address: int
    write_data: int = 0
    write_enable: bool = False

    def transaction(self) -> MemoryTransaction:
        return MemoryTransaction(self.address, MemSize.WORD,
                                 self.write_data & MASK32, self.write_enable)


class BusSource(IntEnum):
    NONE = 0
    DATA = 1
    DMA = 2


@dataclass(frozen=True)
class BusGrant:
    """Outcome of one cycle of data-port arbitration"""
    source: BusSource
    read_data: int = 0
    stall: bool = False
    dma_grant: bool = False
    write: Optional[MemoryTransaction] = None


class Memory:
    """Flat array of 32-bit words, byte addressed (little-endian lanes)"""

    def __init__(self, size_words: int = DEFAULT_MEMORY_WORDS):
        self.size_words = size_words
        self.words: List[int] = [0] * size_words

    @property
    def size_bytes(self) -> int:
        return self.size_words * 4

    def word_index(self, address: int) -> int:
        """Map a byte address to its word index, failing if out of range"""
        index = (address & MASK32) >> 2
        if index >= self.size_words:
            raise AddressOutOfRange(address, self.size_bytes)
        return index

    def reset(self):
        self.words = [0] * self.size_words

    def fetch(self, address: int) -> int:
        """Instruction read tap; low two address bits are ignored"""
        return self.words[self.word_index(address)]

    def read_word(self, address: int) -> int:
        return self.words[self.word_index(address)]

    def write_word(self, address: int, value: int):
        self.words[self.word_index(address)] = value & MASK32

    def load(self, address: int, size: MemSize) -> int:
        """Read *size* at *address* with sign or zero extension"""
        word = self.words[self.word_index(address)]
        if size.width == 1:
            value = (word >> ((address & 0b11) * 8)) & 0xFF
        elif size.width == 2:
            value = (word >> (((address >> 1) & 1) * 16)) & 0xFFFF
        else:
            return word
        if size.unsigned:
            return value
        return sign_extend(value, size.width * 8)

    def store(self, address: int, data: int, size: MemSize):
        """Write the low *size* bytes of *data*, touching only their lanes"""
        index = self.word_index(address)
        if size.width == 1:
            shift = (address & 0b11) * 8
            mask = 0xFF << shift
        elif size.width == 2:
            shift = ((address >> 1) & 1) * 16
            mask = 0xFFFF << shift
        else:
            self.words[index] = data & MASK32
            return
        self.words[index] = (self.words[index] & ~mask & MASK32) | ((data << shift) & mask)

    def load_words(self, words: Iterable[int], base_index: int = 0):
        """Copy a word image into the array starting at *base_index*"""
        for offset, word in enumerate(words):
            index = base_index + offset
            if index >= self.size_words:
                raise AddressOutOfRange(index * 4, self.size_bytes)
            self.words[index] = word & MASK32


def is_misaligned(address: int, size: MemSize) -> bool:
    return address % size.width != 0


class BusArbiter:
    """Static-priority arbiter for the shared data/DMA port"""

    def __init__(self, memory: Memory):
        self.memory = memory

    def arbitrate(self, data: Optional[MemoryTransaction],
                  dma: Optional[DmaRequest] = None) -> BusGrant:
        """Resolve this cycle's data-port access without committing writes.

        Reads are returned immediately. A winning write is validated and
        handed back in the grant so it can commit at the end of the cycle.
        """
        if dma is not None:
            if data is not None:
                logger.warning("DMA at 0x%08X starves CPU %s at 0x%08X",
                               dma.address,
                               "store" if data.is_write else "load",
                               data.address)
            txn = dma.transaction()
            read_data = self.memory.read_word(txn.address)
            return BusGrant(BusSource.DMA, read_data, stall=True,
                            dma_grant=True,
                            write=txn if txn.is_write else None)

        if data is None:
            return BusGrant(BusSource.NONE)

        if is_misaligned(data.address, data.size):
            logger.warning("Misaligned %s-byte %s at 0x%08X",
                           data.size.width,
                           "store" if data.is_write else "load",
                           data.address)

        if data.is_write:
            self.memory.word_index(data.address)
            return BusGrant(BusSource.DATA, write=data)
        return BusGrant(BusSource.DATA,
                        self.memory.load(data.address, data.size))

    def commit(self, grant: BusGrant):
        """Apply the granted write, if any"""
        if grant.write is not None:
            self.memory.store(grant.write.address, grant.write.write_data,
                              grant.write.size)
