import io
import re

import pytest

from hinalang.errors import CompileError
from hinalang.irgen import IRGenerator, generate_ir
from hinalang.parser import parse

_LABEL = re.compile(r"([A-Za-z_.][\w.]*):")


def _ir(source):
    return generate_ir(parse(source))


def _labels(text):
    return [m.group(1) for line in text.splitlines() if (m := _LABEL.fullmatch(line))]


def _blocks(text):
    blocks = []
    inside = False
    for line in text.splitlines():
        if line.startswith("define "):
            inside = True
        elif line == "}":
            inside = False
        elif inside and _LABEL.fullmatch(line):
            blocks.append([])
        elif inside and line.strip():
            blocks[-1].append(line.strip())
    return blocks


def test_module_header():
    assert _ir("").startswith("; ModuleID = 'main'\n")


def test_constants_are_folded():
    assert "ret i64 3" in _ir("fn f() -> i64 { return 1 + 2; }")


def test_prototype_is_declared():
    text = _ir("fn puts(ptr s) -> i32;")
    assert "declare i32 @puts(ptr)" in text
    assert "define" not in text


def test_string_literal_becomes_global():
    text = _ir('fn puts(ptr s) -> i32; fn main() -> i32 { puts("hi"); return 0; }')
    assert 'c"hi\\00"' in text
    assert sum(line.startswith("@") for line in text.splitlines()) == 1


def test_each_string_gets_its_own_global():
    text = _ir('fn puts(ptr s) -> i32; fn main() -> i32 { puts("a"); puts("a"); return 0; }')
    assert sum(line.startswith("@") for line in text.splitlines()) == 2


def test_if_block_labels():
    text = _ir("fn f(i32 a) -> i32 { if a { a = 1; } else { a = 2; } return a; }")
    assert _labels(text) == ["entry", "then", "else", "end"]


def test_nested_if_labels_are_unique():
    text = _ir("fn f(i32 a) -> i32 { if a { if a { a = 1; } } return a; }")
    labels = _labels(text)
    assert len(labels) == 7
    assert len(set(labels)) == len(labels)


def test_while_labels():
    text = _ir("fn f(i32 a) -> i32 { while a > 0 { a = a - 1; } return a; }")
    assert {"cond", "body", "end"} <= set(_labels(text))


def test_every_block_ends_with_terminator():
    source = (
        "fn f(i32 a, i32 b) -> i32 { while a < b { if a == 3 { b = b - 1; } "
        "a = a + 1; } return a * b; }"
    )
    blocks = _blocks(_ir(source))
    assert blocks
    for block in blocks:
        assert block[-1].startswith(("br ", "ret "))
        assert not any(line.startswith(("br ", "ret ")) for line in block[:-1])


def test_value_numbers_are_consecutive():
    text = _ir("fn f(i64 a, i64 b) -> i64 { i64 c = a + b; return c * a; }")
    numbers = [int(n) for n in re.findall(r"^\s+%(\d+) =", text, re.MULTILINE)]
    assert numbers == list(range(2, 2 + len(numbers)))


def test_dump_ir_matches_module_text():
    generator = IRGenerator()
    generator.generate(parse("fn f(i32 a) -> i32 { return a; }"))
    buf = io.StringIO()
    generator.dump_ir(buf)
    assert buf.getvalue() == generator.module_text()


def test_target_triple_is_written():
    generator = IRGenerator()
    generator.target_triple = "x86_64-pc-linux-gnu"
    generator.generate(parse("fn f() -> i32;"))
    assert 'target triple = "x86_64-pc-linux-gnu"' in generator.module_text()


def test_generate_ir_matches_generator():
    program = parse("fn f(i8 a) -> i64 { return a; }")
    generator = IRGenerator()
    generator.generate(program)
    assert generate_ir(program) == generator.module_text()


@pytest.mark.parametrize(
    ("source", "message"),
    [
        ("fn f() -> i32 { return 0; } fn f() -> i32 { return 0; }", "Function 'f' is already defined."),
        ("fn f() -> foo;", "Unexpected type name 'foo'."),
        ("fn f() -> i32 { return x; }", "Variable 'x' is not defined."),
        ("fn f() -> i32 { x = 1; return 0; }", "Variable 'x' is not defined."),
        ("fn f() -> i32 { i32 x = 1; i32 x = 2; return x; }", "Variable 'x' is already exist."),
        ("fn f() -> i32 { return g(); }", "Function 'g' is not defined."),
        ("fn f() -> void { return 1; }", "void function 'f' should not return a value."),
        ("fn f() -> i32 { return; }", "non-void function 'f' should return a value"),
        ("1;", "Unexpected root statements."),
        ("fn f() -> i32 { fn g() -> i32; return 0; }", "Function definitions are not allowed inside a block."),
        ("fn f() -> void { }", "function 'f' verify failed."),
    ],
)
def test_errors(source, message):
    with pytest.raises(CompileError) as info:
        _ir(source)
    assert str(info.value) == message


def test_variables_do_not_leak_out_of_blocks():
    with pytest.raises(CompileError) as info:
        _ir("fn f(i32 a) -> i32 { if a { i32 y = 1; } return y; }")
    assert str(info.value) == "Variable 'y' is not defined."


def test_return_inside_if_fails_verification():
    with pytest.raises(CompileError) as info:
        _ir("fn f(i32 a) -> i32 { if a { return 1; } return 0; }")
    assert str(info.value) == "function 'f' verify failed."


def test_wrong_argument_count():
    with pytest.raises(CompileError):
        _ir("fn g(i32 a) -> i32; fn f() -> i32 { return g(); }")


def test_pointer_arithmetic_is_rejected():
    with pytest.raises(CompileError):
        _ir('fn f() -> i32 { ptr p = "a"; p = p + p; return 0; }')