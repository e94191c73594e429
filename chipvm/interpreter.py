"""Host-side driver owning a single machine.

``Interpreter`` keeps the current ``MachineState``, steps it with the jitted
engine and turns faults and tone events into logs, exceptions and callbacks.
Hosts that prefer to hold the state themselves can use the functions in
``chipvm.emulator`` directly.
"""

import os
from typing import Iterable, Optional, Sequence, Union

import jax

from chipvm.audio import ToneCallback
from chipvm.decode import disassemble
from chipvm.emulator import fetch, jit_step, run, report, cycle_events, load_program, load_rom
from chipvm.keypad import press_key, release_key, set_keys
from chipvm.logging import ConsoleLogger, get_logger
from chipvm.rendering import consume_frame
from chipvm.state import MachineState, create_state


class Interpreter:
    """Run a program one cycle, or many cycles, at a time.

    Args:
        seed: Seed for the random instruction
        index_increment: Advance I after FX55/FX65
        audio: Receiver for tone start/end events
        logger: Logger for faults and the DEBUG instruction trace
        strict: Raise on unimplemented opcodes instead of logging them
    """

    def __init__(
        self,
        seed: int = 0,
        index_increment: bool = False,
        audio: Optional[ToneCallback] = None,
        logger: Optional[ConsoleLogger] = None,
        strict: bool = False,
    ):
        self.seed = seed
        self.index_increment = index_increment
        self.audio = audio
        self.logger = logger or get_logger()
        self.strict = strict
        self.reset()

    def reset(self):
        """Discard the current machine and start from a fresh one."""
        self.state: MachineState = create_state(
            jax.random.PRNGKey(self.seed), index_increment=self.index_increment
        )
        self.cycles = 0

    def load(self, program: Union[bytes, bytearray, Sequence[int]]):
        """Load program bytes at 0x200. Raises LoadError."""
        self.state = load_program(self.state, program)
        self.logger.debug(f"Loaded {len(program)} bytes")

    def load_rom(self, filename: Union[str, os.PathLike]):
        """Load a ROM file at 0x200. Raises LoadError."""
        self.state = load_rom(self.state, filename)
        self.logger.info(f"Loaded {filename}")

    def cycle(self) -> MachineState:
        """Run a single cycle and report what happened in it."""
        if self.logger.is_enabled_for("DEBUG") and not bool(self.state.waiting_for_key):
            _, word = fetch(self.state)
            word = int(word)
            self.logger.debug(f"0x{int(self.state.pc):03X}: {word:04X}  {disassemble(word)}")

        self.state = jit_step(self.state)
        cycle = self.cycles
        self.cycles += 1
        report(cycle_events(self.state), self.audio, self.logger, self.strict, first_cycle=cycle)
        return self.state

    def run(self, num_cycles: int, progress: bool = False) -> MachineState:
        """Run ``num_cycles`` cycles in one jitted scan, then report them in order."""
        self.state, events = run(self.state, num_cycles, progress=progress)
        first = self.cycles
        self.cycles += num_cycles
        report(events, self.audio, self.logger, self.strict, first_cycle=first)
        return self.state

    def press(self, key: Optional[int]):
        self.state = press_key(self.state, key)

    def release(self, key: Optional[int]):
        self.state = release_key(self.state, key)

    def set_keys(self, pressed: Iterable[int]):
        self.state = set_keys(self.state, pressed)

    def frame(self, scale: int = 8, color_scheme: str = "mono"):
        """Return the RGB frame if the screen changed since the last call, else None."""
        self.state, image = consume_frame(self.state, scale, color_scheme)
        return image

    @property
    def halted(self) -> bool:
        return bool(self.state.halted)

    @property
    def waiting_for_key(self) -> bool:
        return bool(self.state.waiting_for_key)
