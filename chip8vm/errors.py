# Error types raised by the CHIP-8 core. None of them are handled inside
# the core; the driver decides whether to stop or log and stop.


class Chip8Error(Exception):
    """Base class for every fatal condition the machine can report."""


class UnknownOpcode(Chip8Error):
    def __init__(self, opcode, pc):
        self.opcode = opcode
        self.pc = pc
        super().__init__("Unknown opcode 0x%04X at PC=0x%03X" % (opcode, pc))


class StackOverflow(Chip8Error):
    def __init__(self, pc):
        self.pc = pc
        super().__init__("Stack overflow on CALL at PC=0x%03X" % pc)


class StackUnderflow(Chip8Error):
    def __init__(self, pc):
        self.pc = pc
        super().__init__("Stack underflow on RET at PC=0x%03X" % pc)


class ImageTooLarge(Chip8Error):
    def __init__(self, size, limit):
        self.size = size
        self.limit = limit
        super().__init__(f"Program image too large: {size} bytes, max {limit}")


class AddressOutOfRange(Chip8Error):
    def __init__(self, address):
        self.address = address
        super().__init__(f"Address out of range: {address:#x}")
