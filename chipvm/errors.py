"""Exceptions raised by the loader and the host driver."""


class VMError(Exception):
    """Base class for all interpreter errors."""


class LoadError(VMError):
    """Program bytes are missing, empty, or do not fit in memory."""


class ExecutionError(VMError):
    """A fault reported by the engine for the instruction at ``address``."""

    def __init__(self, opcode: int, address: int):
        self.opcode = opcode
        self.address = address
        super().__init__(f"{self.description}: 0x{opcode:04X} at 0x{address:03X}")

    description = "Execution fault"


class UnimplementedOpcode(ExecutionError):
    description = "Invalid opcode"


class StackError(ExecutionError):
    pass


class StackOverflow(StackError):
    description = "Stack overflow on call"


class StackUnderflow(StackError):
    description = "Stack underflow on return"
