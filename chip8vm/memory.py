# Memory - 4096 bytes holding the font table (from 0x000), and the
# program image (from 0x200). The call stack lives beside it as a fixed
# array of 16 return addresses.

import logging

from .errors import AddressOutOfRange, ImageTooLarge, StackOverflow, StackUnderflow

log = logging.getLogger(__name__)

MEMORY_SIZE = 4096
PROGRAM_START = 0x200
MAX_IMAGE_SIZE = MEMORY_SIZE - PROGRAM_START
FONT_START = 0x000
FONT_GLYPH_SIZE = 5
STACK_SIZE = 16

# Standard CHIP-8 fontset (80 bytes)
FONTSET = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])


def font_address(digit):
    """Address of the 5-byte glyph for hex digit ``digit`` (low nibble only)."""
    return FONT_START + (digit & 0xF) * FONT_GLYPH_SIZE


class Memory:
    """Flat byte store with bounds-checked access."""

    def __init__(self, image=b""):
        self._cells = bytearray(MEMORY_SIZE)
        self._cells[FONT_START:FONT_START + len(FONTSET)] = FONTSET
        if image:
            self.load_image(image)

    def __len__(self):
        return MEMORY_SIZE

    def _check(self, address):
        if not 0 <= address < MEMORY_SIZE:
            raise AddressOutOfRange(address)

    def read_byte(self, address):
        self._check(address)
        return self._cells[address]

    def write_byte(self, address, value):
        self._check(address)
        self._cells[address] = value & 0xFF

    def read_opcode(self, address):
        # big-endian: high byte at address, low byte at address + 1
        self._check(address)
        self._check(address + 1)
        return (self._cells[address] << 8) | self._cells[address + 1]

    def load_image(self, image):
        """Copy a raw program image to 0x200. Nothing is written if it doesn't fit."""
        data = bytes(image)
        if len(data) > MAX_IMAGE_SIZE:
            raise ImageTooLarge(len(data), MAX_IMAGE_SIZE)
        self._cells[PROGRAM_START:PROGRAM_START + len(data)] = data
        log.debug("Loaded program image: %d bytes", len(data))

    def dump(self):
        """Read-only copy of the whole address space for inspectors."""
        return bytes(self._cells)


class Stack:
    """Fixed 16-slot return-address stack. ``sp`` is the current depth."""

    def __init__(self):
        self._slots = [0] * STACK_SIZE
        self.sp = 0

    def __len__(self):
        return self.sp

    def push(self, address, pc):
        if self.sp >= STACK_SIZE:
            raise StackOverflow(pc)
        self._slots[self.sp] = address
        self.sp += 1

    def pop(self, pc):
        if self.sp == 0:
            raise StackUnderflow(pc)
        self.sp -= 1
        return self._slots[self.sp]

    def snapshot(self):
        return tuple(self._slots[:self.sp])
