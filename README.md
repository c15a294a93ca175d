# hinalang

A small compiler front end for the hinalang language. It reads a source file,
splits it into tokens, parses it into a syntax tree, and generates LLVM IR in
text form. It has no dependencies outside the standard library.

## Installing

    pip install .

## The language

A program is a list of function definitions. A function declares its
arguments as `type name`, its return type after `->`, and either a body in
braces or a `;` for a prototype.

    fn puts(ptr s) -> i32;

    fn add(i32 a, i32 b) -> i32 {
        return a + b;
    }

    fn main() -> i32 {
        i32 x = add(1, 2);
        while x < 10 {
            x = x + 1;
        }
        if x == 10 {
            puts("done");
        } else {
            puts("odd");
        }
        return 0;
    }

- Types are `void`, `bool`, `i8`, `i16`, `i32`, `i64`, `i256` and `ptr`.
- Operators, from lowest to highest precedence: `<`, `<=`, `>`, `>=`, `==`,
  `!=`; then `<<`, `>>`; then `+`, `-`; then `*`, `/`, `%`. All are
  left-associative. Parentheses group.
- `type name = expr` defines a variable, `name = expr` assigns to one,
  `name(args)` calls a function defined earlier in the file.
- `if cond { ... } else { ... }` (the `else` part is optional),
  `while cond { ... }`, `return expr;` and `return;`.
- Integer literals are decimal and are 64-bit; values are sign-extended or
  truncated to the type they are stored in, passed as or returned as.
- String literals become private global byte arrays; a backslash and the
  character after it are kept as written.
- Comments use `//` and `/* ... */`.
- Function arguments are kept ordered by name, so the parameters of a
  function appear in the IR in that order.

## Command line

    hinalang program.hina --ast -o program.ast
    hinalang program.hina --ir -o program.ll

- `--ast` (also `-ast`) writes the parsed syntax tree.
- `--ir` (also `-ir`) writes the generated IR module.
- With neither, the IR module is written with a `target triple` line for
  the host.
- `-o filename` names the output file (default `out.o`).

Errors are printed to standard error as coloured `error:` lines and the
command exits with status 1.

## Library use

    from hinalang.parser import parse
    from hinalang.nodes import dumps
    from hinalang.irgen import IRGenerator, generate_ir

    program = parse(source_text)
    print(dumps(program))          # the syntax tree as text
    print(generate_ir(program))    # the IR module as text

    generator = IRGenerator()
    generator.generate(program)
    generator.dump_ir()            # to standard error by default

- `hinalang.lexer.tokenize(text)` yields the tokens of a text;
  `hinalang.lexer.Lexer` reads them one at a time with `lex()` and can step
  back one token with `push_back()`.
- `hinalang.parser.Parser(lexer).parse_program()` returns a
  `hinalang.nodes.Program`. Every node has `dump(indent, out)`.
- Problems in the source raise `hinalang.errors.CompileError`.
  `hinalang.errors.report` and `hinalang.errors.note` print diagnostics;
  `format_error` and `format_note` return them as strings.

The IR generator keeps every variable in a stack slot, folds constant
integer expressions, and checks each function body (every block ends in a
terminator, branch conditions are `i1`) before moving on.

## What it does not do

The package stops at textual IR. It does not run optimisation passes, does
not produce machine code or object files, and does not link. Even without
`--ir` the output file (`out.o` by default) holds IR text, which an LLVM
toolchain is needed to turn into an executable.