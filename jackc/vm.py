"""
VM instruction model.

The code generator appends structured commands to a ``VMWriter``; text is
produced only when the finished command list is rendered.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List


class ArithmeticOp(Enum):
    """Arithmetic and logical operations."""

    ADD = "add"
    SUB = "sub"
    NEG = "neg"
    EQ = "eq"
    GT = "gt"
    LT = "lt"
    AND = "and"
    OR = "or"
    NOT = "not"


class Segment(Enum):
    """Memory segments."""

    CONSTANT = "constant"
    ARGUMENT = "argument"
    LOCAL = "local"
    STATIC = "static"
    THIS = "this"
    THAT = "that"
    POINTER = "pointer"
    TEMP = "temp"


@dataclass(frozen=True)
class VMCommand:
    """Base class for VM commands."""

    def render(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class PushCommand(VMCommand):
    segment: Segment
    index: int

    def render(self) -> str:
        return f"push {self.segment.value} {self.index}"


@dataclass(frozen=True)
class PopCommand(VMCommand):
    segment: Segment
    index: int

    def render(self) -> str:
        return f"pop {self.segment.value} {self.index}"


@dataclass(frozen=True)
class ArithmeticCommand(VMCommand):
    op: ArithmeticOp

    def render(self) -> str:
        return self.op.value


@dataclass(frozen=True)
class LabelCommand(VMCommand):
    name: str

    def render(self) -> str:
        return f"label {self.name}"


@dataclass(frozen=True)
class GotoCommand(VMCommand):
    label: str

    def render(self) -> str:
        return f"goto {self.label}"


@dataclass(frozen=True)
class IfGotoCommand(VMCommand):
    label: str

    def render(self) -> str:
        return f"if-goto {self.label}"


@dataclass(frozen=True)
class FunctionCommand(VMCommand):
    name: str
    num_locals: int

    def render(self) -> str:
        return f"function {self.name} {self.num_locals}"


@dataclass(frozen=True)
class CallCommand(VMCommand):
    name: str
    num_args: int

    def render(self) -> str:
        return f"call {self.name} {self.num_args}"


@dataclass(frozen=True)
class ReturnCommand(VMCommand):
    def render(self) -> str:
        return "return"


def render(commands: Iterable[VMCommand]) -> str:
    lines = [cmd.render() for cmd in commands]
    return "\n".join(lines) + "\n" if lines else ""


class VMWriter:
    """Append-only sink of VM commands."""

    def __init__(self):
        self.commands: List[VMCommand] = []

    def write_push(self, segment: Segment, index: int):
        self.commands.append(PushCommand(segment, index))

    def write_pop(self, segment: Segment, index: int):
        self.commands.append(PopCommand(segment, index))

    def write_arithmetic(self, op: ArithmeticOp):
        self.commands.append(ArithmeticCommand(op))

    def write_label(self, label: str):
        self.commands.append(LabelCommand(label))

    def write_goto(self, label: str):
        self.commands.append(GotoCommand(label))

    def write_if_goto(self, label: str):
        self.commands.append(IfGotoCommand(label))

    def write_function(self, name: str, num_locals: int):
        self.commands.append(FunctionCommand(name, num_locals))

    def write_call(self, name: str, num_args: int):
        self.commands.append(CallCommand(name, num_args))

    def write_return(self):
        self.commands.append(ReturnCommand())

    def get_output(self) -> str:
        return render(self.commands)
