"""Generation of textual LLVM IR from a hinalang syntax tree.

Every variable and argument lives in a stack slot (alloca), integer
constants are folded as they are built, and each defined function is
checked before the next one is generated.
"""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass, field
from typing import Callable, TextIO, Union

from .errors import CompileError, note
from .nodes import (
    Assign,
    Block,
    DefineVariable,
    Equation,
    ExprStatement,
    FunctionCall,
    FunctionDefine,
    IfStatement,
    ImmediateInt,
    ImmediateString,
    Node,
    Program,
    ReturnStatement,
    Statement,
    Variable,
    WhileStatement,
)

_TYPE_NAMES = {
    "void": "void",
    "bool": "i1",
    "i8": "i8",
    "i16": "i16",
    "i32": "i32",
    "i64": "i64",
    "i256": "i256",
    "ptr": "ptr",
}

_ALIGN = {"i1": 1, "i8": 1, "i16": 2, "i32": 4, "i64": 8, "i256": 8, "ptr": 8}

_ARITHMETIC = {
    "+": "add",
    "-": "sub",
    "*": "mul",
    "/": "sdiv",
    "%": "srem",
    "<<": "shl",
    ">>": "ashr",
}

_COMPARISON = {
    "==": "eq",
    "!=": "ne",
    "<": "slt",
    "<=": "sle",
    ">": "sgt",
    ">=": "sge",
}

_TERMINATORS = frozenset({"br", "condbr", "ret"})

_PLAIN_SYMBOL = re.compile(r"[-a-zA-Z$._][-a-zA-Z$._0-9]*\Z")


def _width(type_name: str) -> int | None:
    return int(type_name[1:]) if type_name.startswith("i") else None


def _wrap(value: int, width: int) -> int:
    """Reduce *value* to a signed integer of *width* bits."""
    value &= (1 << width) - 1
    if value >> (width - 1):
        value -= 1 << width
    return value


def _escape(data: bytes) -> str:
    return "".join(
        chr(b) if 0x20 <= b < 0x7F and b not in (0x22, 0x5C) else f"\\{b:02X}"
        for b in data
    )


def _symbol(name: str) -> str:
    if _PLAIN_SYMBOL.match(name):
        return "@" + name
    return '@"' + _escape(name.encode("utf-8", "surrogateescape")) + '"'


@dataclass(eq=False)
class _Const:
    type: str
    value: int


@dataclass(eq=False)
class _GlobalString:
    index: int
    data: bytes
    type: str = "ptr"


@dataclass(eq=False)
class _Argument:
    type: str


@dataclass(eq=False)
class _Instruction:
    type: str
    opcode: str
    operands: tuple = ()
    detail: object = None


_Value = Union[_Const, _GlobalString, _Argument, _Instruction]


@dataclass(eq=False)
class _BasicBlock:
    name: str
    instructions: list[_Instruction] = field(default_factory=list)

    @property
    def terminated(self) -> bool:
        return bool(self.instructions) and self.instructions[-1].opcode in _TERMINATORS


@dataclass(eq=False)
class _Function:
    name: str
    return_type: str
    params: list[_Argument]
    blocks: list[_BasicBlock] = field(default_factory=list)
    _names: set[str] = field(default_factory=set)
    _last_unique: int = 0

    def add_block(self, base: str) -> _BasicBlock:
        name = base
        while name in self._names:
            self._last_unique += 1
            name = f"{base}{self._last_unique}"
        self._names.add(name)
        block = _BasicBlock(name)
        self.blocks.append(block)
        return block


def _fold_arithmetic(opcode: str, a: int, b: int, width: int) -> int | None:
    if opcode == "add":
        return a + b
    if opcode == "sub":
        return a - b
    if opcode == "mul":
        return a * b
    if opcode in ("sdiv", "srem"):
        if b == 0 or (a == -(1 << (width - 1)) and b == -1):
            return None
        quotient = abs(a) // abs(b)
        if (a < 0) != (b < 0):
            quotient = -quotient
        return quotient if opcode == "sdiv" else a - b * quotient
    amount = b & ((1 << width) - 1)
    if amount >= width:
        return None
    return a << amount if opcode == "shl" else a >> amount


def _fold_comparison(predicate: str, a: int, b: int) -> bool:
    return {
        "eq": a == b,
        "ne": a != b,
        "slt": a < b,
        "sle": a <= b,
        "sgt": a > b,
        "sge": a >= b,
    }[predicate]


def _render_instruction(instr: _Instruction, ref: Callable[[_Value], str]) -> str:
    op, ops = instr.opcode, instr.operands
    if op == "alloca":
        return f"alloca {instr.detail}, align {_ALIGN[instr.detail]}"
    if op == "load":
        return f"load {instr.type}, ptr {ref(ops[0])}, align {_ALIGN[instr.type]}"
    if op == "store":
        value, slot = ops
        return f"store {value.type} {ref(value)}, ptr {ref(slot)}, align {_ALIGN[value.type]}"
    if op == "icmp":
        lhs, rhs = ops
        return f"icmp {instr.detail} {lhs.type} {ref(lhs)}, {ref(rhs)}"
    if op in ("sext", "trunc"):
        return f"{op} {ops[0].type} {ref(ops[0])} to {instr.type}"
    if op == "call":
        args = ", ".join(f"{a.type} {ref(a)}" for a in ops)
        return f"call {instr.type} {_symbol(instr.detail.name)}({args})"
    if op == "br":
        return f"br label %{instr.detail[0].name}"
    if op == "condbr":
        then_block, else_block = instr.detail
        cond = ops[0]
        return f"br {cond.type} {ref(cond)}, label %{then_block.name}, label %{else_block.name}"
    if op == "ret":
        return f"ret {ops[0].type} {ref(ops[0])}" if ops else "ret void"
    lhs, rhs = ops
    return f"{op} {instr.type} {ref(lhs)}, {ref(rhs)}"


def _render_function(fn: _Function) -> str:
    slots: dict[object, int] = {}
    for param in fn.params:
        slots[param] = len(slots)
    for block in fn.blocks:
        for instr in block.instructions:
            if instr.type != "void":
                slots[instr] = len(slots)

    def ref(value: _Value) -> str:
        if isinstance(value, _Const):
            if value.type == "i1":
                return "true" if value.value else "false"
            return str(value.value)
        if isinstance(value, _GlobalString):
            return f"@{value.index}"
        return f"%{slots[value]}"

    if not fn.blocks:
        params = ", ".join(p.type for p in fn.params)
        return f"declare {fn.return_type} {_symbol(fn.name)}({params})\n"

    params = ", ".join(f"{p.type} {ref(p)}" for p in fn.params)
    lines = [f"define {fn.return_type} {_symbol(fn.name)}({params}) {{"]
    for number, block in enumerate(fn.blocks):
        if number:
            lines.append("")
        lines.append(f"{block.name}:")
        for instr in block.instructions:
            text = _render_instruction(instr, ref)
            prefix = f"{ref(instr)} = " if instr.type != "void" else ""
            lines.append(f"  {prefix}{text}")
    lines.append("}")
    return "\n".join(lines) + "\n"


class IRGenerator:
    """Builds one IR module named 'main' from parsed programs."""

    def __init__(self) -> None:
        self.target_triple: str | None = None
        self._functions: dict[str, _Function] = {}
        self._globals: list[_GlobalString] = []
        self._current: _Function | None = None
        self._block: _BasicBlock | None = None

    # Types and values

    @staticmethod
    def _type(name: str) -> str:
        try:
            return _TYPE_NAMES[name]
        except KeyError:
            raise CompileError(f"Unexpected type name '{name}'.") from None

    def _insert(self, instr: _Instruction) -> _Instruction:
        self._block.instructions.append(instr)
        return instr

    def _int_cast(self, value: _Value, dest: str) -> _Value:
        if value.type == dest:
            return value
        src_width, dest_width = _width(value.type), _width(dest)
        if src_width is None or dest_width is None:
            raise CompileError(f"Cannot convert a value of type {value.type} to {dest}.")
        if isinstance(value, _Const):
            return _Const(dest, _wrap(value.value, dest_width))
        opcode = "trunc" if src_width > dest_width else "sext"
        return self._insert(_Instruction(dest, opcode, (value,)))

    def _alloca(self, type_name: str) -> _Instruction:
        if type_name == "void":
            raise CompileError("Cannot allocate a variable of type void.")
        return self._insert(_Instruction("ptr", "alloca", detail=type_name))

    def _store(self, value: _Value, slot: _Instruction) -> None:
        if value.type == "void":
            raise CompileError("Cannot store a void value.")
        self._insert(_Instruction("void", "store", (value, slot)))

    def _branch(self, target: _BasicBlock) -> None:
        self._insert(_Instruction("void", "br", detail=(target,)))

    def _cond_branch(self, cond: _Value, then_block: _BasicBlock, else_block: _BasicBlock) -> None:
        self._insert(_Instruction("void", "condbr", (cond,), (then_block, else_block)))

    # Module level

    def generate(self, program: Program) -> None:
        """Add every function of *program* to the module."""
        for statement in program.block.statements:
            if not isinstance(statement, FunctionDefine):
                raise CompileError("Unexpected root statements.")
            self._generate_function(statement)

    def module_text(self) -> str:
        """Return the module as LLVM IR assembly."""
        text = "; ModuleID = 'main'\nsource_filename = \"main\"\n"
        if self.target_triple is not None:
            text += f'target triple = "{self.target_triple}"\n'
        if self._globals:
            text += "\n" + "".join(
                f"@{g.index} = private unnamed_addr constant [{len(g.data) + 1} x i8] "
                f'c"{_escape(g.data)}\\00", align 1\n'
                for g in self._globals
            )
        for fn in self._functions.values():
            text += "\n" + _render_function(fn)
        return text

    def dump_ir(self, stream: TextIO | None = None) -> None:
        """Write the module text to *stream* (standard error by default)."""
        (sys.stderr if stream is None else stream).write(self.module_text())

    # Functions and statements

    def _generate_function(self, fn: FunctionDefine) -> None:
        if fn.name in self._functions:
            raise CompileError(f"Function '{fn.name}' is already defined.")

        param_types = [self._type(t) for t in fn.arguments.values()]
        if "void" in param_types:
            raise CompileError("Not a valid type for function argument.")
        function = _Function(fn.name, self._type(fn.return_type), [_Argument(t) for t in param_types])
        self._functions[fn.name] = function
        self._current = function

        if fn.block is None:
            return

        self._block = function.add_block("entry")
        variables: dict[str, _Instruction] = {}
        for name, param in zip(fn.arguments, function.params):
            slot = self._alloca(param.type)
            self._store(param, slot)
            variables[name] = slot

        self._generate_block(fn.block, variables)
        self._verify(function)

    @staticmethod
    def _verify(fn: _Function) -> None:
        problems = []
        for block in fn.blocks:
            instrs = block.instructions
            if not block.terminated:
                problems.append(f"Basic Block in function '{fn.name}' does not have terminator!")
            if any(i.opcode in _TERMINATORS for i in instrs[:-1]):
                problems.append("Terminator found in the middle of a basic block!")
            if any(i.opcode == "condbr" and i.operands[0].type != "i1" for i in instrs):
                problems.append("Branch condition is not 'i1' type!")
        if problems:
            for problem in problems:
                note(problem)
            raise CompileError(f"function '{fn.name}' verify failed.")

    def _generate_block(self, block: Block, variables: dict[str, _Instruction]) -> None:
        scope = dict(variables)
        for statement in block.statements:
            self._generate_statement(statement, scope)

    def _generate_statement(self, statement: Statement, scope: dict[str, _Instruction]) -> None:
        match statement:
            case ExprStatement(expr=expr):
                self._generate_expr(expr, scope)
            case IfStatement():
                self._generate_if(statement, scope)
            case WhileStatement():
                self._generate_while(statement, scope)
            case ReturnStatement():
                self._generate_return(statement, scope)
            case FunctionDefine():
                raise CompileError("Function definitions are not allowed inside a block.")
            case _:
                raise CompileError("Unexpected statement type.")

    def _generate_if(self, statement: IfStatement, scope: dict[str, _Instruction]) -> None:
        cond = self._int_cast(self._generate_expr(statement.condition, scope), "i1")
        then_block = self._current.add_block("then")
        else_block = self._current.add_block("else")
        end_block = self._current.add_block("end")
        self._cond_branch(cond, then_block, else_block)

        self._block = then_block
        self._generate_block(statement.block, scope)
        self._branch(end_block)

        self._block = else_block
        self._generate_block(statement.else_block, scope)
        self._branch(end_block)

        self._block = end_block

    def _generate_while(self, statement: WhileStatement, scope: dict[str, _Instruction]) -> None:
        cond_block = self._current.add_block("cond")
        body_block = self._current.add_block("body")
        end_block = self._current.add_block("end")
        self._branch(cond_block)

        self._block = cond_block
        cond = self._generate_expr(statement.condition, scope)
        self._cond_branch(cond, body_block, end_block)

        self._block = body_block
        self._generate_block(statement.block, scope)
        self._branch(cond_block)

        self._block = end_block

    def _generate_return(self, statement: ReturnStatement, scope: dict[str, _Instruction]) -> None:
        fn = self._current
        is_void = fn.return_type == "void"
        if is_void and statement.expr is not None:
            raise CompileError(f"void function '{fn.name}' should not return a value.")
        if not is_void and statement.expr is None:
            raise CompileError(f"non-void function '{fn.name}' should return a value")

        if statement.expr is None:
            self._insert(_Instruction("void", "ret"))
            return
        value = self._int_cast(self._generate_expr(statement.expr, scope), fn.return_type)
        self._insert(_Instruction("void", "ret", (value,)))

    # Expressions

    def _generate_expr(self, expr: Node, scope: dict[str, _Instruction]) -> _Value:
        match expr:
            case Equation():
                return self._generate_equation(expr, scope)
            case ImmediateInt(value=text):
                return _Const("i64", _wrap(int(text, 10), 64))
            case Variable(name=name):
                slot = self._lookup(name, scope)
                return self._insert(_Instruction(slot.detail, "load", (slot,)))
            case ImmediateString(value=text):
                string = _GlobalString(len(self._globals), text.encode("utf-8", "surrogateescape"))
                self._globals.append(string)
                return string
            case DefineVariable():
                return self._generate_define(expr, scope)
            case Assign(dest=dest, value=value_expr):
                slot = self._lookup(dest, scope)
                value = self._int_cast(self._generate_expr(value_expr, scope), slot.detail)
                self._store(value, slot)
                return value
            case FunctionCall():
                return self._generate_call(expr, scope)
        raise CompileError("Unexpected expr type.")

    @staticmethod
    def _lookup(name: str, scope: dict[str, _Instruction]) -> _Instruction:
        try:
            return scope[name]
        except KeyError:
            raise CompileError(f"Variable '{name}' is not defined.") from None

    def _generate_define(self, define: DefineVariable, scope: dict[str, _Instruction]) -> _Value:
        if define.dest in scope:
            raise CompileError(f"Variable '{define.dest}' is already exist.")
        type_name = self._type(define.type_name)
        slot = self._alloca(type_name)
        scope[define.dest] = slot
        value = self._int_cast(self._generate_expr(define.value, scope), type_name)
        self._store(value, slot)
        return value

    def _generate_equation(self, eq: Equation, scope: dict[str, _Instruction]) -> _Value:
        lhs = self._generate_expr(eq.lhs, scope)
        rhs = self._int_cast(self._generate_expr(eq.rhs, scope), lhs.type)

        if eq.op not in _ARITHMETIC and eq.op not in _COMPARISON:
            raise CompileError(f"Unexpected operator '{eq.op}'.")
        width = _width(lhs.type)
        if width is None:
            raise CompileError(f"Operator '{eq.op}' needs integer operands.")
        both_constant = isinstance(lhs, _Const) and isinstance(rhs, _Const)

        if eq.op in _COMPARISON:
            predicate = _COMPARISON[eq.op]
            if both_constant:
                return _Const("i1", -1 if _fold_comparison(predicate, lhs.value, rhs.value) else 0)
            return self._insert(_Instruction("i1", "icmp", (lhs, rhs), predicate))

        opcode = _ARITHMETIC[eq.op]
        if both_constant:
            folded = _fold_arithmetic(opcode, lhs.value, rhs.value, width)
            if folded is not None:
                return _Const(lhs.type, _wrap(folded, width))
        return self._insert(_Instruction(lhs.type, opcode, (lhs, rhs)))

    def _generate_call(self, call: FunctionCall, scope: dict[str, _Instruction]) -> _Value:
        fn = self._functions.get(call.name)
        if fn is None:
            raise CompileError(f"Function '{call.name}' is not defined.")
        if len(call.args) != len(fn.params):
            raise CompileError(
                f"Function '{call.name}' takes {len(fn.params)} arguments, "
                f"{len(call.args)} given."
            )
        args = tuple(
            self._int_cast(self._generate_expr(arg, scope), param.type)
            for arg, param in zip(call.args, fn.params)
        )
        return self._insert(_Instruction(fn.return_type, "call", args, fn))


def generate_ir(program: Program) -> str:
    """Return the LLVM IR text of *program*."""
    generator = IRGenerator()
    generator.generate(program)
    return generator.module_text()