"""
Program image loading (ELF and word-per-line hex)
"""

import logging
import sys
from typing import List, Optional, Tuple

try:
    from elftools.elf.elffile import ELFFile
    from elftools.common.exceptions import ELFError
except ImportError:
    print("Error: pyelftools not installed. Install with: pip install pyelftools")
    sys.exit(1)

from .errors import ImageFormatError
from .isa import MASK32

logger = logging.getLogger(__name__)

ELF_MAGIC = b'\x7fELF'
LOADED_SECTIONS = ['.text', '.data', '.rodata', '.sdata']


def load_hex_file(hex_file: str) -> List[int]:
    """Read a hex image: one 32-bit word per line (8 hex digits, no 0x prefix)"""
    words = []
    with open(hex_file, 'r') as f:
        for lineno, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                word = int(line, 16)
            except ValueError:
                raise ImageFormatError(f"{hex_file}:{lineno}: bad hex word {line!r}")
            if word > MASK32:
                raise ImageFormatError(f"{hex_file}:{lineno}: word wider than 32 bits")
            words.append(word)
    return words


def _find_entry(elf: ELFFile) -> int:
    """Address of _start if the symbol table has it, else the ELF entry"""
    symtab = elf.get_section_by_name('.symtab')
    if symtab is not None:
        for symbol in symtab.iter_symbols():
            if symbol.name == "_start":
                return symbol['st_value']
    return elf.header['e_entry']


def load_elf(elf_file: str, text_base: int = 0,
             max_bytes: Optional[int] = None) -> Tuple[List[int], int]:
    """Flatten the loadable sections of an ELF file into a word image.

    Sections are placed at sh_addr - text_base. Returns (words, entry) where
    entry is also relative to text_base.
    """
    with open(elf_file, 'rb') as f:
        try:
            elf = ELFFile(f)
        except ELFError as e:
            raise ImageFormatError(f"{elf_file}: {e}")

        if elf.get_section_by_name('.text') is None:
            raise ImageFormatError(f"{elf_file}: no .text section found")

        image = bytearray()
        for secname in LOADED_SECTIONS:
            section = elf.get_section_by_name(secname)
            if section is None or section.data_size == 0:
                continue
            base_addr = section['sh_addr'] - text_base
            data = section.data()
            if base_addr < 0:
                logger.warning("Section %s at 0x%x is below text base 0x%x, skipped",
                               secname, section['sh_addr'], text_base)
                continue
            end = base_addr + len(data)
            if max_bytes is not None and end > max_bytes:
                logger.warning("Section %s truncated to fit 0x%x bytes", secname, max_bytes)
                end = max_bytes
                data = data[:max(0, end - base_addr)]
            if len(image) < end:
                image.extend(b'\x00' * (end - len(image)))
            image[base_addr:base_addr + len(data)] = data

        entry = _find_entry(elf) - text_base

    if len(image) % 4:
        image.extend(b'\x00' * (4 - len(image) % 4))
    words = [int.from_bytes(image[i:i + 4], byteorder='little')
             for i in range(0, len(image), 4)]
    return words, entry


def load_image(path: str, fmt: Optional[str] = None, text_base: int = 0,
               max_bytes: Optional[int] = None) -> Tuple[List[int], int]:
    """Load an ELF or hex image; *fmt* None sniffs the ELF magic"""
    if fmt is None:
        with open(path, 'rb') as f:
            fmt = 'elf' if f.read(4) == ELF_MAGIC else 'hex'
    if fmt == 'elf':
        return load_elf(path, text_base, max_bytes)
    if fmt == 'hex':
        return load_hex_file(path), 0
    raise ImageFormatError(f"Unknown image format {fmt!r}")


def write_hex_image(words: List[int], path: str, depth: Optional[int] = None):
    """Write words as a hex image, zero padded to *depth* words"""
    if depth is not None and len(words) > depth:
        logger.warning("Image truncated to %d words", depth)
        words = words[:depth]
    count = depth if depth is not None else len(words)
    with open(path, 'w') as f:
        for i in range(count):
            word = words[i] if i < len(words) else 0
            f.write('{:08x}\n'.format(word & MASK32))
