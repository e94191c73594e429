"""Instruction decoding and disassembly."""

from chex import dataclass


@dataclass(frozen=True)
class DecodedInstruction:
    """Instruction word split into its operand fields."""
    raw: int
    family: int  # Top nibble, selects the primary table entry
    x: int       # VX register
    y: int       # VY register
    n: int       # Low nibble
    nn: int      # Low byte
    nnn: int     # 12-bit address


def decode(instruction: int) -> DecodedInstruction:
    """Decode 16-bit instruction into components.

    Works on Python ints as well as traced integer arrays.
    """
    return DecodedInstruction(
        raw=instruction,
        family=(instruction & 0xF000) >> 12,
        x=(instruction & 0x0F00) >> 8,
        y=(instruction & 0x00F0) >> 4,
        n=instruction & 0x000F,
        nn=instruction & 0x00FF,
        nnn=instruction & 0x0FFF
    )


_ALU_MNEMONICS = {
    0x0: "LD", 0x1: "OR", 0x2: "AND", 0x3: "XOR", 0x4: "ADD",
    0x5: "SUB", 0x6: "SHR", 0x7: "SUBN", 0x8: "SHL",
}

_MISC_FORMATS = {
    0x07: "LD V{x:X}, DT",
    0x0A: "LD V{x:X}, K",
    0x15: "LD DT, V{x:X}",
    0x18: "LD ST, V{x:X}",
    0x1E: "ADD I, V{x:X}",
    0x29: "LD F, V{x:X}",
    0x33: "LD B, V{x:X}",
    0x55: "LD [I], V{x:X}",
    0x65: "LD V{x:X}, [I]",
}


def disassemble(instruction: int) -> str:
    """Render a concrete instruction word as assembly text.

    Words with no defined meaning come back as a ``DW`` data directive.
    """
    instruction = int(instruction) & 0xFFFF
    d = decode(instruction)
    x, y = d.x, d.y

    if d.family == 0x0:
        text = {0xE0: "CLS", 0xEE: "RET"}.get(d.nn)
    elif d.family == 0x1:
        text = f"JP 0x{d.nnn:03X}"
    elif d.family == 0x2:
        text = f"CALL 0x{d.nnn:03X}"
    elif d.family == 0x3:
        text = f"SE V{x:X}, 0x{d.nn:02X}"
    elif d.family == 0x4:
        text = f"SNE V{x:X}, 0x{d.nn:02X}"
    elif d.family == 0x5:
        text = f"SE V{x:X}, V{y:X}"
    elif d.family == 0x6:
        text = f"LD V{x:X}, 0x{d.nn:02X}"
    elif d.family == 0x7:
        text = f"ADD V{x:X}, 0x{d.nn:02X}"
    elif d.family == 0x8:
        mnemonic = _ALU_MNEMONICS.get(d.n)
        text = f"{mnemonic} V{x:X}, V{y:X}" if mnemonic else None
    elif d.family == 0x9:
        text = f"SNE V{x:X}, V{y:X}"
    elif d.family == 0xA:
        text = f"LD I, 0x{d.nnn:03X}"
    elif d.family == 0xB:
        text = f"JP V0, 0x{d.nnn:03X}"
    elif d.family == 0xC:
        text = f"RND V{x:X}, 0x{d.nn:02X}"
    elif d.family == 0xD:
        text = f"DRW V{x:X}, V{y:X}, {d.n}"
    elif d.family == 0xE:
        text = {0x9E: f"SKP V{x:X}", 0xA1: f"SKNP V{x:X}"}.get(d.nn)
    else:
        fmt = _MISC_FORMATS.get(d.nn)
        text = fmt.format(x=x) if fmt else None

    return text if text is not None else f"DW 0x{instruction:04X}"
