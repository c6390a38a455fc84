# ---- Configuration ----
# Defaults for the pyglet front end and the command line. The core
# machine takes everything it needs as constructor arguments.

from .display import HEIGHT, WIDTH

scale = 10
width, height = WIDTH, HEIGHT
cpu_hz = 500
timer_HZ = 60

beep_frequency = 440
beep_duration = 0.2
beep_sample_rate = 44100

# Keypad               Keyboard
# +-+-+-+-+            +-+-+-+-+
# |1|2|3|C|            |1|2|3|4|
# +-+-+-+-+            +-+-+-+-+
# |4|5|6|D|            |Q|W|E|R|
# +-+-+-+-+     =>     +-+-+-+-+
# |7|8|9|E|            |A|S|D|F|
# +-+-+-+-+            +-+-+-+-+
# |A|0|B|F|            |Z|X|C|V|
# +-+-+-+-+            +-+-+-+-+
# Keys are pyglet symbol names, resolved in the front end.
keymap = {
    "_1": 0x1, "_2": 0x2, "_3": 0x3, "_4": 0xC,
    "Q": 0x4, "W": 0x5, "E": 0x6, "R": 0xD,
    "A": 0x7, "S": 0x8, "D": 0x9, "F": 0xE,
    "Z": 0xA, "X": 0x0, "C": 0xB, "V": 0xF,
}
