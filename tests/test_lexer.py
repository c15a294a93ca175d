import pytest

from hinalang.errors import CompileError
from hinalang.lexer import Lexer, Token, TokenKind, tokenize


def kinds(text):
    return [t.kind for t in tokenize(text)]


def texts(text):
    return [t.text for t in tokenize(text)]


def test_function_header():
    assert kinds("fn main() -> i32 { return 0; }") == [
        TokenKind.KEYWORD,
        TokenKind.KEYWORD,
        TokenKind.LEFT_BRACKET,
        TokenKind.RIGHT_BRACKET,
        TokenKind.RIGHT_ARROW,
        TokenKind.KEYWORD,
        TokenKind.LEFT_BRACE,
        TokenKind.KEYWORD,
        TokenKind.NUMBER,
        TokenKind.SEMICOLON,
        TokenKind.RIGHT_BRACE,
    ]
    assert texts("fn main() -> i32 { return 0; }") == [
        "fn", "main", "(", ")", "->", "i32", "{", "return", "0", ";", "}",
    ]


@pytest.mark.parametrize(
    "op",
    ["+", "-", "*", "/", "%", "<<", ">>", "<", "<=", ">", ">=", "==", "!=", "=", "!"],
)
def test_operators(op):
    tokens = list(tokenize(f"a {op} b"))
    assert tokens[1] == Token(TokenKind.OPERATOR, op)
    assert len(tokens) == 3


def test_operators_without_spaces():
    assert texts("a<=b>>c") == ["a", "<=", "b", ">>", "c"]


def test_minus_then_other_char():
    assert list(tokenize("-1")) == [
        Token(TokenKind.OPERATOR, "-"),
        Token(TokenKind.NUMBER, "1"),
    ]


def test_comma_token():
    assert kinds("a, b") == [TokenKind.KEYWORD, TokenKind.COMMA, TokenKind.KEYWORD]


def test_number_followed_by_letters_splits():
    assert list(tokenize("12ab")) == [
        Token(TokenKind.NUMBER, "12"),
        Token(TokenKind.KEYWORD, "ab"),
    ]


def test_keyword_allows_underscore_and_non_ascii():
    assert list(tokenize("_x9 変数")) == [
        Token(TokenKind.KEYWORD, "_x9"),
        Token(TokenKind.KEYWORD, "変数"),
    ]


def test_string_keeps_escapes_raw():
    assert list(tokenize('"a\\nb\\"c"')) == [Token(TokenKind.STRING, 'a\\nb\\"c')]


def test_unterminated_string_raises():
    with pytest.raises(CompileError, match='" is required.'):
        list(tokenize('"abc'))


def test_undefined_char_raises():
    with pytest.raises(CompileError, match="Undefined char '@'"):
        list(tokenize("a @ b"))


def test_carriage_return_is_not_whitespace():
    with pytest.raises(CompileError, match="Undefined char"):
        list(tokenize("a\r\nb"))


def test_line_comment_is_skipped():
    assert texts("a // ignore this\nb") == ["a", "b"]


def test_line_comment_at_end_of_text():
    assert texts("a // trailing") == ["a"]


def test_block_comment_is_skipped():
    assert texts("a /* x\ny */ b") == ["a", "b"]


def test_unterminated_block_comment_ends_input():
    assert texts("a /* never closed") == ["a"]


def test_end_token_repeats():
    lexer = Lexer("x")
    assert lexer.lex() == Token(TokenKind.KEYWORD, "x")
    assert lexer.lex() == Token(TokenKind.END, "")
    assert lexer.lex() == Token(TokenKind.END, "")


def test_empty_and_blank_text():
    assert list(tokenize("")) == []
    assert list(tokenize(" \t\n")) == []


def test_push_back_rereads_token():
    lexer = Lexer("  foo bar")
    first = lexer.lex()
    lexer.push_back()
    assert lexer.lex() == first
    assert lexer.lex() == Token(TokenKind.KEYWORD, "bar")


def test_push_back_after_end():
    lexer = Lexer("a")
    lexer.lex()
    assert lexer.lex().kind is TokenKind.END
    lexer.push_back()
    assert lexer.lex().kind is TokenKind.END


def test_lexed_kinds_carry_numeric_codes():
    lexer = Lexer("x }")
    assert lexer.lex().kind == 0
    assert lexer.lex().kind == len(TokenKind) - 2
    assert lexer.lex().kind == -1