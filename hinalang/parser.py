"""Recursive-descent parser producing the syntax tree of a hinalang program."""

from __future__ import annotations

from .errors import CompileError
from .lexer import Lexer, Token, TokenKind
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

# Binary operator levels, loosest binding first; all are left-associative.
_LEVELS: tuple[frozenset[str], ...] = (
    frozenset({"<", "<=", ">", ">=", "==", "!="}),
    frozenset({"<<", ">>"}),
    frozenset({"+", "-"}),
    frozenset({"*", "/", "%"}),
)


def _is_keyword(token: Token, word: str) -> bool:
    return token.kind is TokenKind.KEYWORD and token.text == word


def _is_operator(token: Token, op: str) -> bool:
    return token.kind is TokenKind.OPERATOR and token.text == op


class Parser:
    """Builds a Program from the tokens of a Lexer."""

    def __init__(self, lexer: Lexer) -> None:
        self._lexer = lexer

    def _next(self) -> Token:
        return self._lexer.lex()

    def _back(self) -> None:
        self._lexer.push_back()

    def _expect(self, kind: TokenKind, message: str) -> Token:
        token = self._next()
        if token.kind is not kind:
            raise CompileError(message)
        return token

    def parse_program(self) -> Program:
        """Parse statements until the end of the input."""
        statements: list[Statement] = []
        while self._next().kind is not TokenKind.END:
            self._back()
            statements.append(self._parse_statement())
        return Program(Block(statements))

    def _parse_block(self) -> Block:
        self._expect(TokenKind.LEFT_BRACE, "Expected '{'.")
        statements: list[Statement] = []
        while self._next().kind is not TokenKind.RIGHT_BRACE:
            self._back()
            statements.append(self._parse_statement())
        return Block(statements)

    def _parse_statement(self) -> Statement:
        token = self._next()

        if _is_keyword(token, "if"):
            condition = self._parse_expr()
            block = self._parse_block()
            if _is_keyword(self._next(), "else"):
                return IfStatement(condition, block, self._parse_block())
            self._back()
            return IfStatement(condition, block, Block())

        if _is_keyword(token, "while"):
            condition = self._parse_expr()
            return WhileStatement(condition, self._parse_block())

        if _is_keyword(token, "return"):
            if self._next().kind is TokenKind.SEMICOLON:
                return ReturnStatement(None)
            self._back()
            expr = self._parse_expr()
            self._expect(TokenKind.SEMICOLON, "Expected ';'")
            return ReturnStatement(expr)

        if _is_keyword(token, "fn"):
            return self._parse_function_def()

        self._back()
        expr = self._parse_expr()
        if self._next().kind is not TokenKind.SEMICOLON:
            raise CompileError("Missing semicolon.")
        return ExprStatement(expr)

    def _parse_function_def(self) -> FunctionDefine:
        name = self._expect(TokenKind.KEYWORD, "Expected function name.").text
        self._expect(TokenKind.LEFT_BRACKET, "Expected '('")

        arguments: dict[str, str] = {}
        while True:
            token = self._next()
            if token.kind is TokenKind.RIGHT_BRACKET:
                break
            if token.kind is not TokenKind.KEYWORD:
                raise CompileError("Expected argument type.")
            arg_type = token.text
            arg_name = self._expect(TokenKind.KEYWORD, "Expected argument name.").text
            if arg_name in arguments:
                raise CompileError(f'Argument "{arg_name}" is already exist.')
            arguments[arg_name] = arg_type

            token = self._next()
            if token.kind is TokenKind.RIGHT_BRACKET:
                break
            if token.kind is not TokenKind.COMMA:
                raise CompileError("Expected ','.")

        self._expect(TokenKind.RIGHT_ARROW, "Expected '->'.")
        return_type = self._expect(TokenKind.KEYWORD, "Expected return type.").text

        if self._next().kind is TokenKind.SEMICOLON:
            return FunctionDefine(name, return_type, arguments, None)
        self._back()
        return FunctionDefine(name, return_type, arguments, self._parse_block())

    def _parse_expr(self, level: int = 0) -> Node:
        if level == len(_LEVELS):
            return self._parse_factor()
        operators = _LEVELS[level]
        lhs = self._parse_expr(level + 1)
        while True:
            token = self._next()
            if token.kind is not TokenKind.OPERATOR or token.text not in operators:
                self._back()
                return lhs
            rhs = self._parse_expr(level + 1)
            lhs = Equation(lhs, rhs, token.text)

    def _parse_factor(self) -> Node:
        token = self._next()

        if token.kind is TokenKind.NUMBER:
            return ImmediateInt(token.text)

        if token.kind is TokenKind.STRING:
            return ImmediateString(token.text)

        if token.kind is TokenKind.LEFT_BRACKET:
            expr = self._parse_expr()
            self._expect(TokenKind.RIGHT_BRACKET, "Expected ')'")
            return expr

        if token.kind is TokenKind.KEYWORD:
            return self._parse_name(token.text)

        raise CompileError(
            f"Invalid syntax. (lexer: {int(token.kind)}, buf: {token.text})"
        )

    def _parse_name(self, name: str) -> Node:
        token = self._next()

        if token.kind is TokenKind.KEYWORD:
            if not _is_operator(self._next(), "="):
                raise CompileError("Expected '='")
            return DefineVariable(name, token.text, self._parse_expr())

        if _is_operator(token, "="):
            return Assign(name, self._parse_expr())

        if token.kind is TokenKind.LEFT_BRACKET:
            return FunctionCall(name, self._parse_call_arguments())

        self._back()
        return Variable(name)

    def _parse_call_arguments(self) -> list[Node]:
        args: list[Node] = []
        while True:
            if self._next().kind is TokenKind.RIGHT_BRACKET:
                return args
            self._back()
            args.append(self._parse_expr())

            token = self._next()
            if token.kind is TokenKind.RIGHT_BRACKET:
                return args
            if token.kind is not TokenKind.COMMA:
                raise CompileError("Expected ',' or ')'.")


def parse(text: str) -> Program:
    """Parse hinalang source *text* into a Program."""
    return Parser(Lexer(text)).parse_program()