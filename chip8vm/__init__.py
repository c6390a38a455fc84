from .clock import Driver, FixedRate
from .cpu import Chip8, CpuState, Quirks
from .decode import Instruction, Op, decode
from .errors import (
    AddressOutOfRange,
    Chip8Error,
    ImageTooLarge,
    StackOverflow,
    StackUnderflow,
    UnknownOpcode,
)

__version__ = "0.1.0"
