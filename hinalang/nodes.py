"""Syntax tree nodes and their textual dump."""

from __future__ import annotations

import io
import sys
from dataclasses import dataclass, field
from typing import TextIO


def _stream(out: TextIO | None) -> TextIO:
    return sys.stdout if out is None else out


def _pad(out: TextIO, count: int) -> None:
    out.write("  " * count)


def _line(out: TextIO, level: int, text: str) -> None:
    """Write *text* after indentation of *level*."""
    _pad(out, level)
    out.write(text)


def _close(out: TextIO, level: int, closer: str = ")") -> None:
    _line(out, level, closer + "\n")


def _field(out: TextIO, indent: int, label: str, child) -> None:
    """Write a labelled child one level deeper than *indent*."""
    _line(out, indent + 1, f"{label}: ")
    child._write(indent + 1, out)


class Node:
    """An expression."""

    def dump(self, indent: int = 0, out: TextIO | None = None) -> None:
        self._write(indent, _stream(out))

    def _write(self, indent: int, out: TextIO) -> None:
        out.write("!!!BaseAST()\n")


@dataclass
class Equation(Node):
    lhs: Node
    rhs: Node
    op: str

    def _write(self, indent: int, out: TextIO) -> None:
        out.write(f"Equation(operator: {self.op}\n")
        _field(out, indent, "lhs", self.lhs)
        _field(out, indent, "rhs", self.rhs)
        _close(out, indent)


@dataclass
class ImmediateInt(Node):
    """An integer literal, kept as its decimal text."""

    value: str

    def _write(self, indent: int, out: TextIO) -> None:
        out.write(f"ImmediateInt(value: {self.value})\n")


@dataclass
class Variable(Node):
    name: str

    def _write(self, indent: int, out: TextIO) -> None:
        out.write(f"Variable(name: {self.name})\n")


@dataclass
class ImmediateString(Node):
    value: str

    def _write(self, indent: int, out: TextIO) -> None:
        out.write(f'ImmediateString(value: "{self.value}")\n')


@dataclass
class DefineVariable(Node):
    type_name: str
    dest: str
    value: Node

    def _write(self, indent: int, out: TextIO) -> None:
        out.write(f"DefineVariable(type: {self.type_name}, dest: {self.dest}\n")
        _field(out, indent, "value", self.value)
        _close(out, indent)


@dataclass
class Assign(Node):
    dest: str
    value: Node

    def _write(self, indent: int, out: TextIO) -> None:
        out.write(f"Assign(dest: {self.dest}\n")
        _field(out, indent, "value", self.value)
        _close(out, indent)


@dataclass
class FunctionCall(Node):
    name: str
    args: list[Node] = field(default_factory=list)

    def _write(self, indent: int, out: TextIO) -> None:
        out.write(f"FunctionCall(name: {self.name}\n")
        _line(out, indent + 1, "args: [\n")
        for arg in self.args:
            _pad(out, indent + 2)
            arg._write(indent + 2, out)
        _close(out, indent + 1, "]")
        _close(out, indent)


class Statement:
    """A statement inside a block."""

    def dump(self, indent: int = 0, out: TextIO | None = None) -> None:
        self._write(indent, _stream(out))

    def _write(self, indent: int, out: TextIO) -> None:
        out.write("!!!BaseStatement()\n")


@dataclass
class ExprStatement(Statement):
    expr: Node

    def _write(self, indent: int, out: TextIO) -> None:
        self.expr._write(indent, out)


@dataclass
class Block:
    statements: list[Statement] = field(default_factory=list)

    def dump(self, indent: int = 0, out: TextIO | None = None) -> None:
        self._write(indent, _stream(out))

    def _write(self, indent: int, out: TextIO) -> None:
        out.write("Block: [\n")
        for statement in self.statements:
            _pad(out, indent + 1)
            statement._write(indent + 1, out)
        _close(out, indent, "]")


@dataclass
class IfStatement(Statement):
    condition: Node
    block: Block
    else_block: Block = field(default_factory=Block)

    def _write(self, indent: int, out: TextIO) -> None:
        out.write("If(condition: ")
        self.condition._write(indent + 1, out)
        _field(out, indent, "true", self.block)
        _field(out, indent, "false", self.else_block)
        _close(out, indent)


@dataclass
class WhileStatement(Statement):
    condition: Node
    block: Block

    def _write(self, indent: int, out: TextIO) -> None:
        out.write("While(condition: ")
        self.condition._write(indent + 1, out)
        _field(out, indent, "block", self.block)
        _close(out, indent)


@dataclass
class ReturnStatement(Statement):
    expr: Node | None = None

    def _write(self, indent: int, out: TextIO) -> None:
        out.write("Return(expr: ")
        if self.expr is None:
            out.write("(void return)")
        else:
            self.expr._write(indent + 1, out)
        _close(out, indent)


@dataclass
class FunctionDefine(Statement):
    """A function definition; a prototype when block is None.

    Arguments map names to type names and are kept ordered by name.
    """

    name: str
    return_type: str
    arguments: dict[str, str] = field(default_factory=dict)
    block: Block | None = None

    def __post_init__(self) -> None:
        self.arguments = dict(sorted(self.arguments.items()))

    def _write(self, indent: int, out: TextIO) -> None:
        out.write("FunctionDef(\n")
        _line(out, indent + 1, f"name: {self.name}\n")
        _line(out, indent + 1, f"retType: {self.return_type}\n")
        _line(out, indent + 1, "args: [\n")
        for arg_name, arg_type in self.arguments.items():
            _line(out, indent + 2, f"Arg(type: {arg_type}, name: {arg_name})\n")
        _close(out, indent + 1, "]")
        if self.block is None:
            _line(out, indent + 1, "statements: \n")
        else:
            _field(out, indent, "statements", self.block)
        _close(out, indent)


@dataclass
class Program:
    block: Block = field(default_factory=Block)

    def dump(self, indent: int = 0, out: TextIO | None = None) -> None:
        self._write(indent, _stream(out))

    def _write(self, indent: int, out: TextIO) -> None:
        out.write("Program(\n")
        _field(out, indent, "block", self.block)
        _close(out, indent)


def dumps(node: Node | Statement | Block | Program) -> str:
    """Return the dump of *node* at indent level zero as a string."""
    buf = io.StringIO()
    node.dump(0, buf)
    return buf.getvalue()