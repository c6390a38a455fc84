# CHIP-8 interpreter - Cowgod's CHIP-8 Technical reference
# http://devernay.free.fr/hacks/chip8/C8TECH10.HTM
#----------------------------------------------------------------------------------------------
# The interpreter owns every piece of machine state: 16 registers, I, PC,
# the stack, the timers, memory, the display buffer and the keypad. Hosts
# drive it through step() / tick_timers() / set_keys() and only get
# read-only snapshots back.

import logging
import random
import threading
from typing import NamedTuple

from .decode import Op, decode
from .display import Display
from .errors import UnknownOpcode
from .keypad import Keypad
from .memory import PROGRAM_START, Memory, Stack, font_address
from .timers import Timers

log = logging.getLogger(__name__)

REGISTER_COUNT = 16
VF = 0xF


class Quirks(NamedTuple):
    """Instructions where historical interpreters disagree.

    shift_uses_vy: 8xy6/8xyE shift Vy into Vx (COSMAC VIP) instead of Vx.
    jump_uses_vx:  Bnnn jumps to nnn + Vx (CHIP-48) instead of nnn + V0.
    """
    shift_uses_vy: bool = False
    jump_uses_vx: bool = False


class CpuState(NamedTuple):
    registers: tuple
    index: int
    pc: int
    sp: int
    stack: tuple
    opcode: int
    delay_timer: int
    sound_timer: int
    awaiting_key: bool
    keys: tuple


class Chip8:
    def __init__(self, image=b"", quirks=None, rng=None):
        self.quirks = quirks or Quirks()
        self._rng = rng or random.Random()
        self._lock = threading.RLock()

        # ---- Machine state ----
        self._memory = Memory(image)
        self._stack = Stack()
        self._timers = Timers()
        self._display = Display()
        self._keypad = Keypad()
        self._v = [0] * REGISTER_COUNT
        self._index = 0
        self._pc = PROGRAM_START
        self._next_pc = PROGRAM_START
        self._opcode = 0
        self._awaiting_key = False

        self.setup_funcmap()

    # ---- Read-only accessors ----
    @property
    def registers(self):
        return tuple(self._v)

    @property
    def index(self):
        return self._index

    @property
    def pc(self):
        return self._pc

    @property
    def sp(self):
        return self._stack.sp

    @property
    def opcode(self):
        return self._opcode

    @property
    def delay_timer(self):
        return self._timers.delay

    @property
    def sound_timer(self):
        return self._timers.sound

    @property
    def sound_active(self):
        return self._timers.sound_active

    @property
    def awaiting_key(self):
        return self._awaiting_key

    def snapshot(self):
        with self._lock:
            return CpuState(
                registers=tuple(self._v),
                index=self._index,
                pc=self._pc,
                sp=self._stack.sp,
                stack=self._stack.snapshot(),
                opcode=self._opcode,
                delay_timer=self._timers.delay,
                sound_timer=self._timers.sound,
                awaiting_key=self._awaiting_key,
                keys=self._keypad.snapshot(),
            )

    def display_snapshot(self):
        with self._lock:
            return self._display.snapshot()

    def display_changed(self):
        with self._lock:
            return self._display.consume_changed()

    def pixel(self, x, y):
        with self._lock:
            return self._display.pixel(x, y)

    def memory_dump(self):
        with self._lock:
            return self._memory.dump()

    def read_memory(self, address, length=1):
        with self._lock:
            return bytes(self._memory.read_byte(address + i) for i in range(length))

    # ---- Input ----
    def set_keys(self, states):
        with self._lock:
            self._keypad.set_state(states)

    def press_key(self, key):
        with self._lock:
            self._keypad.press(key)

    def release_key(self, key):
        with self._lock:
            self._keypad.release(key)

    # ---- Timers ----
    def tick_timers(self):
        """Decrement both timers once (call at 60 Hz). Returns True when
        the sound timer hits zero on this tick."""
        with self._lock:
            stopped = self._timers.tick()
        if stopped:
            log.debug("Sound timer reached zero")
        return stopped

    # ---- Cycle ----
    def step(self):
        """Fetch, decode and execute one instruction.

        Raises a Chip8Error subclass on unknown opcodes, stack misuse or
        out-of-range fetches. Returns the executed Instruction.
        """
        with self._lock:
            pc = self._pc
            self._opcode = self._memory.read_opcode(pc)
            ins = decode(self._opcode)
            if ins.op is Op.UNKNOWN:
                raise UnknownOpcode(ins.raw, pc)

            self._next_pc = (pc + 2) & 0xFFF
            self.funcmap[ins.op](ins)

            # Fx0A with no key held leaves PC on itself so it runs again
            if not self._awaiting_key:
                self._pc = self._next_pc
            return ins

    def run(self, cycles):
        for _ in range(cycles):
            self.step()

    # ---- Opcode function map ----
    def setup_funcmap(self):
        self.funcmap = {
            Op.CLS: self._00E0,         # Clear the display
            Op.RET: self._00EE,         # Return from a subroutine
            Op.SYS: self._0nnn,         # Machine code call, ignored
            Op.JP: self._1nnn,          # Jump to nnn
            Op.CALL: self._2nnn,        # Call subroutine at nnn
            Op.SE_VX_KK: self._3xkk,    # Skip if Vx == kk
            Op.SNE_VX_KK: self._4xkk,   # Skip if Vx != kk
            Op.SE_VX_VY: self._5xy0,    # Skip if Vx == Vy
            Op.LD_VX_KK: self._6xkk,    # Vx = kk
            Op.ADD_VX_KK: self._7xkk,   # Vx += kk, no carry
            Op.LD_VX_VY: self._8xy0,
            Op.OR: self._8xy1,
            Op.AND: self._8xy2,
            Op.XOR: self._8xy3,
            Op.ADD_VX_VY: self._8xy4,
            Op.SUB: self._8xy5,
            Op.SHR: self._8xy6,
            Op.SUBN: self._8xy7,
            Op.SHL: self._8xyE,
            Op.SNE_VX_VY: self._9xy0,   # Skip if Vx != Vy
            Op.LD_I: self._Annn,        # I = nnn
            Op.JP_V0: self._Bnnn,       # Jump to nnn + V0
            Op.RND: self._Cxkk,         # Vx = random byte & kk
            Op.DRW: self._Dxyn,         # Draw n-row sprite at (Vx, Vy)
            Op.SKP: self._Ex9E,         # Skip if key Vx is down
            Op.SKNP: self._ExA1,        # Skip if key Vx is up
            Op.LD_VX_DT: self._Fx07,
            Op.LD_VX_K: self._Fx0A,     # Wait for a key press
            Op.LD_DT_VX: self._Fx15,
            Op.LD_ST_VX: self._Fx18,
            Op.ADD_I_VX: self._Fx1E,
            Op.LD_F_VX: self._Fx29,     # I = font glyph for Vx
            Op.LD_B_VX: self._Fx33,     # BCD of Vx at I, I+1, I+2
            Op.LD_MEM_VX: self._Fx55,   # Store V0..Vx at I
            Op.LD_VX_MEM: self._Fx65,   # Load V0..Vx from I
        }

    def _skip(self):
        self._next_pc = (self._next_pc + 2) & 0xFFF

    def _set_index(self, value):
        self._index = value & 0xFFF

    # ---- Opcode Handlers ----

    def _00E0(self, ins):
        self._display.clear()
        log.debug("Clear the display")

    def _00EE(self, ins):
        self._next_pc = self._stack.pop(self._pc)
        log.debug("Return to %03X", self._next_pc)

    def _0nnn(self, ins):
        log.debug("SYS call ignored (%04X)", ins.raw)

    def _1nnn(self, ins):
        self._next_pc = ins.nnn
        log.debug("Jump to address %03X", ins.nnn)

    def _2nnn(self, ins):
        # the saved address is the instruction after the CALL
        self._stack.push(self._next_pc, self._pc)
        self._next_pc = ins.nnn
        log.debug("Call subroutine at %03X", ins.nnn)

    def _3xkk(self, ins):
        if self._v[ins.x] == ins.kk:
            self._skip()

    def _4xkk(self, ins):
        if self._v[ins.x] != ins.kk:
            self._skip()

    def _5xy0(self, ins):
        if self._v[ins.x] == self._v[ins.y]:
            self._skip()

    def _6xkk(self, ins):
        self._v[ins.x] = ins.kk
        log.debug("Set V%X = %d", ins.x, ins.kk)

    def _7xkk(self, ins):
        self._v[ins.x] = (self._v[ins.x] + ins.kk) & 0xFF

    # 8xy_ - the flag is written after the result, so VF as destination
    # ends up holding the flag.

    def _8xy0(self, ins):
        self._v[ins.x] = self._v[ins.y]

    def _8xy1(self, ins):
        self._v[ins.x] |= self._v[ins.y]

    def _8xy2(self, ins):
        self._v[ins.x] &= self._v[ins.y]

    def _8xy3(self, ins):
        self._v[ins.x] ^= self._v[ins.y]

    def _8xy4(self, ins):
        s = self._v[ins.x] + self._v[ins.y]
        self._v[ins.x] = s & 0xFF
        self._v[VF] = 1 if s > 0xFF else 0
        log.debug("Add V%X to V%X: result %d, carry=%d", ins.y, ins.x, self._v[ins.x], self._v[VF])

    def _8xy5(self, ins):
        vx, vy = self._v[ins.x], self._v[ins.y]
        self._v[ins.x] = (vx - vy) & 0xFF
        self._v[VF] = 1 if vx >= vy else 0

    def _shift_source(self, ins):
        return self._v[ins.y] if self.quirks.shift_uses_vy else self._v[ins.x]

    def _8xy6(self, ins):
        value = self._shift_source(ins)
        self._v[ins.x] = value >> 1
        self._v[VF] = value & 1

    def _8xy7(self, ins):
        vx, vy = self._v[ins.x], self._v[ins.y]
        self._v[ins.x] = (vy - vx) & 0xFF
        self._v[VF] = 1 if vy >= vx else 0

    def _8xyE(self, ins):
        value = self._shift_source(ins)
        self._v[ins.x] = (value << 1) & 0xFF
        self._v[VF] = (value >> 7) & 1

    def _9xy0(self, ins):
        if self._v[ins.x] != self._v[ins.y]:
            self._skip()

    def _Annn(self, ins):
        self._set_index(ins.nnn)
        log.debug("Set I = %03X", self._index)

    def _Bnnn(self, ins):
        base = self._v[ins.x] if self.quirks.jump_uses_vx else self._v[0]
        self._next_pc = (ins.nnn + base) & 0xFFF
        log.debug("Jump to address %03X + %d = %03X", ins.nnn, base, self._next_pc)

    def _Cxkk(self, ins):
        self._v[ins.x] = self._rng.getrandbits(8) & ins.kk

    def _Dxyn(self, ins):
        rows = [self._memory.read_byte((self._index + row) & 0xFFF) for row in range(ins.n)]
        # coordinates are read before VF is cleared, DFyn draws at the old VF
        x, y = self._v[ins.x], self._v[ins.y]
        self._v[VF] = 0
        if self._display.draw_sprite(x, y, rows):
            self._v[VF] = 1
        log.debug("Drew sprite at (%d, %d), collision=%d", x, y, self._v[VF])

    def _Ex9E(self, ins):
        if self._keypad.is_pressed(self._v[ins.x] & 0xF):
            self._skip()

    def _ExA1(self, ins):
        if not self._keypad.is_pressed(self._v[ins.x] & 0xF):
            self._skip()

    def _Fx07(self, ins):
        self._v[ins.x] = self._timers.delay

    def _Fx0A(self, ins):
        key = self._keypad.first_pressed()
        if key is None:
            if not self._awaiting_key:
                log.debug("Waiting for key press into V%X", ins.x)
            self._awaiting_key = True
            return
        self._v[ins.x] = key
        self._awaiting_key = False
        log.debug("Key %X pressed, stored in V%X", key, ins.x)

    def _Fx15(self, ins):
        self._timers.delay = self._v[ins.x]

    def _Fx18(self, ins):
        self._timers.sound = self._v[ins.x]

    def _Fx1E(self, ins):
        self._set_index(self._index + self._v[ins.x])

    def _Fx29(self, ins):
        self._set_index(font_address(self._v[ins.x]))

    def _Fx33(self, ins):
        value = self._v[ins.x]
        digits = (value // 100, (value // 10) % 10, value % 10)
        for offset, digit in enumerate(digits):
            self._memory.write_byte((self._index + offset) & 0xFFF, digit)

    def _Fx55(self, ins):
        for i in range(ins.x + 1):
            self._memory.write_byte((self._index + i) & 0xFFF, self._v[i])

    def _Fx65(self, ins):
        for i in range(ins.x + 1):
            self._v[i] = self._memory.read_byte((self._index + i) & 0xFFF)
