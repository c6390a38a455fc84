# Text views of a CpuState for a terminal debugger. Nothing in here
# touches the machine; callers pass in snapshots.

RED = "\x1b[31m"
RESET = "\x1b[0m"

# physical keypad layout, row by row
KEYPAD_LAYOUT = (
    (0x1, 0x2, 0x3, 0xC),
    (0x4, 0x5, 0x6, 0xD),
    (0x7, 0x8, 0x9, 0xE),
    (0xA, 0x0, 0xB, 0xF),
)


def format_keypad(keys, color=True):
    border = "+-+-+-+-+"
    lines = [border]
    for row in KEYPAD_LAYOUT:
        cells = []
        for key in row:
            label = f"{key:X}"
            if keys[key]:
                label = f"{RED}{label}{RESET}" if color else "*"
            cells.append(label)
        lines.append("|" + "|".join(cells) + "|")
        lines.append(border)
    return "\n".join(lines)


def format_registers(state):
    return "\n".join(f"0x{i:x} : {val} 0x{val:x}" for i, val in enumerate(state.registers))


def format_misc(state):
    return "\n".join([
        f"PC: {state.pc:x}",
        f"I: {state.index:x}",
        f"op: {state.opcode:x}",
        f"SP: {state.sp:x}",
        f"DT: {state.delay_timer:x}",
        f"ST: {state.sound_timer:x}",
    ])


def format_memory(dump, start=0, length=None, width=32):
    data = dump[start:] if length is None else dump[start:start + length]
    lines = []
    for offset in range(0, len(data), width):
        chunk = data[offset:offset + width]
        lines.append(f"{start + offset:03X}: {chunk.hex()}")
    return "\n".join(lines)


def report(state, dump=None, color=True):
    sections = [
        "Keypad", format_keypad(state.keys, color=color),
        "Registers-V", format_registers(state),
        "Misc", format_misc(state),
    ]
    if dump is not None:
        sections += ["Memory", format_memory(dump)]
    return "\n".join(sections)
