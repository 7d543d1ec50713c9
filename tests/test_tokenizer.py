import pytest

from jackc.errors import JackSyntaxError, LexicalError
from jackc.tokenizer import JackTokenizer, Keyword, Punct, TokenStream, TokenType


def kinds_and_values(source):
    return [(t.type, t.value) for t in JackTokenizer(source).tokenize()]


def test_basic_statement():
    assert kinds_and_values("let x = 42;") == [
        (TokenType.KEYWORD, "let"),
        (TokenType.IDENTIFIER, "x"),
        (TokenType.SYMBOL, "="),
        (TokenType.INT_CONST, "42"),
        (TokenType.SYMBOL, ";"),
    ]


def test_keyword_prefix_is_identifier():
    tokens = JackTokenizer("field2 classy do_it").tokenize()
    assert [t.type for t in tokens] == [TokenType.IDENTIFIER] * 3
    assert [t.value for t in tokens] == ["field2", "classy", "do_it"]


def test_keyword_and_symbol_enums():
    field, lbrace = JackTokenizer("field{").tokenize()
    assert field.keyword == Keyword.FIELD
    assert field.is_keyword(Keyword.STATIC, Keyword.FIELD)
    assert lbrace.punct == Punct.LBRACE
    assert lbrace.keyword is None


def test_comments_and_whitespace_are_dropped():
    source = """
    // line comment
    /** doc
        comment */
    class /* inline */ Main { }  // trailing
    """
    assert [t.value for t in JackTokenizer(source).tokenize()] == [
        "class",
        "Main",
        "{",
        "}",
    ]


def test_token_texts_reconstruct_source_tokens():
    source = 'do Output.printString("hi there");'
    values = [t.value for t in JackTokenizer(source).tokenize()]
    assert values == ["do", "Output", ".", "printString", "(", "hi there", ")", ";"]


def test_string_constant_stops_at_first_quote():
    tokens = JackTokenizer('"a" + "b"').tokenize()
    assert [(t.type, t.value) for t in tokens] == [
        (TokenType.STRING_CONST, "a"),
        (TokenType.SYMBOL, "+"),
        (TokenType.STRING_CONST, "b"),
    ]


def test_integer_constant_is_at_most_five_digits():
    assert [t.value for t in JackTokenizer("1234567").tokenize()] == ["12345", "67"]


def test_eof_sentinel():
    tokenizer = JackTokenizer("  // nothing here\n")
    token = tokenizer.next()
    assert token.type == TokenType.EOF
    assert token.value == ""
    assert tokenizer.next().type == TokenType.EOF


def test_positions_are_tracked():
    tokens = JackTokenizer("class Main {\n  field int x;\n}").tokenize()
    field = tokens[3]
    assert (field.value, field.line, field.column) == ("field", 2, 3)
    assert (tokens[-1].line, tokens[-1].column) == (3, 1)


def test_unexpected_character_is_lexical_error():
    tokenizer = JackTokenizer("let x = 1;\nlet y = #;", "Main.jack")
    with pytest.raises(LexicalError) as excinfo:
        tokenizer.tokenize()
    assert excinfo.value.line == 2
    assert excinfo.value.column == 9
    assert str(excinfo.value).startswith("Main.jack:2:9:")


def test_unterminated_string_is_lexical_error():
    with pytest.raises(LexicalError):
        JackTokenizer('let s = "oops;\n').tokenize()


def test_unterminated_comment_is_lexical_error():
    with pytest.raises(LexicalError):
        JackTokenizer("class /* never closed").tokenize()


def test_stream_lookahead_does_not_consume():
    stream = TokenStream.from_source("a[1]")
    assert stream.peek().value == "a"
    assert stream.peek(1).value == "["
    assert stream.advance().value == "a"
    assert stream.peek().value == "["
    assert stream.peek(1).value == "1"


def test_stream_peek_past_end_returns_eof():
    stream = TokenStream.from_source("x")
    assert stream.peek(1).type == TokenType.EOF
    stream.advance()
    assert stream.at_end()
    with pytest.raises(JackSyntaxError, match="unexpected end of input"):
        stream.advance()


def test_stream_rejects_deep_lookahead():
    with pytest.raises(ValueError):
        TokenStream.from_source("x").peek(2)


def test_stream_expect_reports_position():
    stream = TokenStream.from_source("class\n  {", "Foo.jack")
    stream.expect_keyword(Keyword.CLASS)
    with pytest.raises(JackSyntaxError) as excinfo:
        stream.expect_identifier()
    assert (excinfo.value.line, excinfo.value.column) == (2, 3)
    assert "expected identifier, got '{'" in str(excinfo.value)
