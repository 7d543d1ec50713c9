"""
Syntax analyzer output: renders the token stream and the parse structure of a
Jack class as nested markup, without symbol resolution or code generation.
"""

from typing import List, Tuple

from jackc.tokenizer import JackTokenizer, Keyword, Punct, Token, TokenStream, TokenType

TAGS = {
    TokenType.KEYWORD: "keyword",
    TokenType.SYMBOL: "symbol",
    TokenType.INT_CONST: "integerConstant",
    TokenType.STRING_CONST: "stringConstant",
    TokenType.IDENTIFIER: "identifier",
}

KEYWORD_CONSTANTS = (Keyword.TRUE, Keyword.FALSE, Keyword.NULL, Keyword.THIS)
OPERATORS = tuple(Punct(c) for c in "+-*/&|<>=")


def xml_escape(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _terminal(token: Token) -> str:
    tag = TAGS[token.type]
    return f"<{tag}> {xml_escape(token.value)} </{tag}>"


def tokens_to_xml(tokens: List[Token]) -> str:
    lines = ["<tokens>"]
    lines.extend(_terminal(token) for token in tokens)
    lines.append("</tokens>")
    return "\n".join(lines) + "\n"


class CompilationEngine:
    """Recursive descent parser that writes the parse tree as markup."""

    def __init__(self, tokens: TokenStream):
        self.tokens = tokens
        self.indent = 0
        self.output: List[str] = []

    def compile(self) -> str:
        self.compile_class()
        if not self.tokens.at_end():
            raise self.tokens.error(
                f"unexpected {self.tokens.peek().describe()} after class body"
            )
        return "\n".join(self.output) + "\n"

    def _write(self, line: str):
        self.output.append("  " * self.indent + line)

    def _emit(self, token: Token):
        self._write(_terminal(token))

    def _advance(self):
        self._emit(self.tokens.advance())

    def _symbol(self, punct: Punct):
        self._emit(self.tokens.expect_symbol(punct))

    def _keyword(self, *keywords: Keyword):
        self._emit(self.tokens.expect_keyword(*keywords))

    def _identifier(self):
        self._emit(self.tokens.expect_identifier())

    def _open_tag(self, tag: str):
        self._write(f"<{tag}>")
        self.indent += 1

    def _close_tag(self, tag: str):
        self.indent -= 1
        self._write(f"</{tag}>")

    def compile_class(self):
        self._open_tag("class")
        self._keyword(Keyword.CLASS)
        self._identifier()
        self._symbol(Punct.LBRACE)

        while self.tokens.peek().is_keyword(Keyword.STATIC, Keyword.FIELD):
            self.compile_class_var_dec()

        while self.tokens.peek().is_keyword(
            Keyword.CONSTRUCTOR, Keyword.FUNCTION, Keyword.METHOD
        ):
            self.compile_subroutine()

        self._symbol(Punct.RBRACE)
        self._close_tag("class")

    def _compile_var_names(self):
        self._emit(self.tokens.expect_type())
        self._identifier()
        while self.tokens.peek().is_symbol(Punct.COMMA):
            self._advance()
            self._identifier()
        self._symbol(Punct.SEMICOLON)

    def compile_class_var_dec(self):
        self._open_tag("classVarDec")
        self._keyword(Keyword.STATIC, Keyword.FIELD)
        self._compile_var_names()
        self._close_tag("classVarDec")

    def compile_subroutine(self):
        self._open_tag("subroutineDec")
        self._keyword(Keyword.CONSTRUCTOR, Keyword.FUNCTION, Keyword.METHOD)
        self._emit(self.tokens.expect_type(allow_void=True))
        self._identifier()
        self._symbol(Punct.LPAREN)
        self.compile_parameter_list()
        self._symbol(Punct.RPAREN)
        self.compile_subroutine_body()
        self._close_tag("subroutineDec")

    def compile_parameter_list(self):
        self._open_tag("parameterList")
        if not self.tokens.peek().is_symbol(Punct.RPAREN):
            self._emit(self.tokens.expect_type())
            self._identifier()
            while self.tokens.peek().is_symbol(Punct.COMMA):
                self._advance()
                self._emit(self.tokens.expect_type())
                self._identifier()
        self._close_tag("parameterList")

    def compile_subroutine_body(self):
        self._open_tag("subroutineBody")
        self._symbol(Punct.LBRACE)

        while self.tokens.peek().is_keyword(Keyword.VAR):
            self._open_tag("varDec")
            self._keyword(Keyword.VAR)
            self._compile_var_names()
            self._close_tag("varDec")

        self.compile_statements()
        self._symbol(Punct.RBRACE)
        self._close_tag("subroutineBody")

    def compile_statements(self):
        dispatch = {
            Keyword.LET: self.compile_let,
            Keyword.IF: self.compile_if,
            Keyword.WHILE: self.compile_while,
            Keyword.DO: self.compile_do,
            Keyword.RETURN: self.compile_return,
        }
        self._open_tag("statements")
        while self.tokens.peek().keyword in dispatch:
            dispatch[self.tokens.peek().keyword]()
        self._close_tag("statements")

    def _compile_block(self):
        self._symbol(Punct.LBRACE)
        self.compile_statements()
        self._symbol(Punct.RBRACE)

    def compile_let(self):
        self._open_tag("letStatement")
        self._keyword(Keyword.LET)
        self._identifier()

        if self.tokens.peek().is_symbol(Punct.LBRACKET):
            self._advance()
            self.compile_expression()
            self._symbol(Punct.RBRACKET)

        self._symbol(Punct.EQ)
        self.compile_expression()
        self._symbol(Punct.SEMICOLON)
        self._close_tag("letStatement")

    def compile_if(self):
        self._open_tag("ifStatement")
        self._keyword(Keyword.IF)
        self._symbol(Punct.LPAREN)
        self.compile_expression()
        self._symbol(Punct.RPAREN)
        self._compile_block()

        if self.tokens.peek().is_keyword(Keyword.ELSE):
            self._advance()
            self._compile_block()

        self._close_tag("ifStatement")

    def compile_while(self):
        self._open_tag("whileStatement")
        self._keyword(Keyword.WHILE)
        self._symbol(Punct.LPAREN)
        self.compile_expression()
        self._symbol(Punct.RPAREN)
        self._compile_block()
        self._close_tag("whileStatement")

    def compile_do(self):
        self._open_tag("doStatement")
        self._keyword(Keyword.DO)
        self._identifier()
        self._compile_call_tail()
        self._symbol(Punct.SEMICOLON)
        self._close_tag("doStatement")

    def compile_return(self):
        self._open_tag("returnStatement")
        self._keyword(Keyword.RETURN)
        if not self.tokens.peek().is_symbol(Punct.SEMICOLON):
            self.compile_expression()
        self._symbol(Punct.SEMICOLON)
        self._close_tag("returnStatement")

    def _compile_call_tail(self):
        # The subroutine, class or variable name has already been written
        if self.tokens.peek().is_symbol(Punct.DOT):
            self._advance()
            self._identifier()
        self._symbol(Punct.LPAREN)
        self.compile_expression_list()
        self._symbol(Punct.RPAREN)

    def compile_expression(self):
        self._open_tag("expression")
        self.compile_term()
        while self.tokens.peek().is_symbol(*OPERATORS):
            self._advance()
            self.compile_term()
        self._close_tag("expression")

    def compile_term(self):
        self._open_tag("term")
        token = self.tokens.peek()

        if token.type in (TokenType.INT_CONST, TokenType.STRING_CONST):
            self._advance()
        elif token.is_keyword(*KEYWORD_CONSTANTS):
            self._advance()
        elif token.is_symbol(Punct.LPAREN):
            self._advance()
            self.compile_expression()
            self._symbol(Punct.RPAREN)
        elif token.is_symbol(Punct.MINUS, Punct.TILDE):
            self._advance()
            self.compile_term()
        elif token.type == TokenType.IDENTIFIER:
            following = self.tokens.peek(1)
            self._advance()
            if following.is_symbol(Punct.LBRACKET):
                self._advance()
                self.compile_expression()
                self._symbol(Punct.RBRACKET)
            elif following.is_symbol(Punct.LPAREN, Punct.DOT):
                self._compile_call_tail()
        else:
            raise self.tokens.error(f"expected expression, got {token.describe()}", token)

        self._close_tag("term")

    def compile_expression_list(self):
        self._open_tag("expressionList")
        if not self.tokens.peek().is_symbol(Punct.RPAREN):
            self.compile_expression()
            while self.tokens.peek().is_symbol(Punct.COMMA):
                self._advance()
                self.compile_expression()
        self._close_tag("expressionList")


def analyze_source(source: str, filename: str = "") -> Tuple[str, str]:
    """Return ``(token_xml, parse_xml)`` for the text of one ``.jack`` file."""
    tokens = JackTokenizer(source, filename).tokenize()
    parse_xml = CompilationEngine(TokenStream(tokens, filename)).compile()
    return tokens_to_xml(tokens), parse_xml
