"""
Jack compiler - single-pass parser and VM code generator.

Each ``compile_*`` method consumes the tokens of one grammar rule and appends
the matching VM commands as it goes; there is no intermediate tree.
"""

from typing import Iterable, List, Optional, Union

from jackc.errors import SemanticError
from jackc.symbol_table import ClassType, Symbol, SymbolKind, SymbolTable, var_type
from jackc.tokenizer import Keyword, Punct, Token, TokenStream, TokenType
from jackc.vm import ArithmeticOp, Segment, VMCommand, VMWriter

MAX_INT_CONSTANT = 32767

STATEMENT_KEYWORDS = (Keyword.LET, Keyword.IF, Keyword.WHILE, Keyword.DO, Keyword.RETURN)

BINARY_OPS = {
    Punct.PLUS: ArithmeticOp.ADD,
    Punct.MINUS: ArithmeticOp.SUB,
    Punct.AMP: ArithmeticOp.AND,
    Punct.PIPE: ArithmeticOp.OR,
    Punct.LT: ArithmeticOp.LT,
    Punct.GT: ArithmeticOp.GT,
    Punct.EQ: ArithmeticOp.EQ,
}

LIBRARY_OPS = {
    Punct.STAR: "Math.multiply",
    Punct.SLASH: "Math.divide",
}

UNARY_OPS = {
    Punct.MINUS: ArithmeticOp.NEG,
    Punct.TILDE: ArithmeticOp.NOT,
}

OPERATORS = tuple(BINARY_OPS) + tuple(LIBRARY_OPS)


class JackCompiler:
    """Compiles the one class of a Jack source unit into VM commands."""

    def __init__(self, tokens: Union[TokenStream, Iterable[Token]], filename: str = ""):
        if isinstance(tokens, TokenStream):
            self.tokens = tokens
        else:
            self.tokens = TokenStream(tokens, filename)
        self.filename = filename or self.tokens.filename
        self.symbols = SymbolTable(self.filename)
        self.vm = VMWriter()
        self.label_counter = 0
        self.class_name = ""

    def compile(self) -> List[VMCommand]:
        self.compile_class()
        if not self.tokens.at_end():
            raise self.tokens.error(
                f"unexpected {self.tokens.peek().describe()} after class body"
            )
        return self.vm.commands

    def _new_label(self) -> str:
        label = f"{self.class_name}{self.label_counter}"
        self.label_counter += 1
        return label

    def _resolve(self, token: Token) -> Symbol:
        return self.symbols.resolve(token.value, token.line, token.column)

    def _push_variable(self, symbol: Symbol):
        self.vm.write_push(symbol.kind.segment, symbol.index)

    # --- Class compilation ---

    def compile_class(self):
        # 'class' className '{' classVarDec* subroutineDec* '}'
        self.tokens.expect_keyword(Keyword.CLASS)
        self.class_name = self.tokens.expect_identifier().value
        self.tokens.expect_symbol(Punct.LBRACE)

        while self.tokens.peek().is_keyword(Keyword.STATIC, Keyword.FIELD):
            self.compile_class_var_dec()

        while self.tokens.peek().is_keyword(
            Keyword.CONSTRUCTOR, Keyword.FUNCTION, Keyword.METHOD
        ):
            self.compile_subroutine()

        self.tokens.expect_symbol(Punct.RBRACE)

    def compile_class_var_dec(self):
        # ('static' | 'field') type varName (',' varName)* ';'
        keyword = self.tokens.expect_keyword(Keyword.STATIC, Keyword.FIELD).keyword
        kind = SymbolKind.STATIC if keyword == Keyword.STATIC else SymbolKind.FIELD
        self._compile_var_names(kind)

    def _compile_var_names(self, kind: SymbolKind):
        type_ = var_type(self.tokens.expect_type().value)
        while True:
            name = self.tokens.expect_identifier()
            self.symbols.declare(name.value, kind, type_, name.line, name.column)
            if not self.tokens.peek().is_symbol(Punct.COMMA):
                break
            self.tokens.advance()
        self.tokens.expect_symbol(Punct.SEMICOLON)

    def compile_subroutine(self):
        # ('constructor' | 'function' | 'method') ('void' | type) subroutineName
        # '(' parameterList ')' subroutineBody
        subroutine_kind = self.tokens.expect_keyword(
            Keyword.CONSTRUCTOR, Keyword.FUNCTION, Keyword.METHOD
        ).keyword
        self.symbols.reset_subroutine_scope()

        if subroutine_kind == Keyword.METHOD:
            self.symbols.declare("this", SymbolKind.ARGUMENT, ClassType(self.class_name))

        self.tokens.expect_type(allow_void=True)
        name = self.tokens.expect_identifier().value

        self.tokens.expect_symbol(Punct.LPAREN)
        self.compile_parameter_list()
        self.tokens.expect_symbol(Punct.RPAREN)

        self.compile_subroutine_body(name, subroutine_kind)

    def compile_parameter_list(self):
        if self.tokens.peek().is_symbol(Punct.RPAREN):
            return
        while True:
            type_ = var_type(self.tokens.expect_type().value)
            name = self.tokens.expect_identifier()
            self.symbols.declare(
                name.value, SymbolKind.ARGUMENT, type_, name.line, name.column
            )
            if not self.tokens.peek().is_symbol(Punct.COMMA):
                break
            self.tokens.advance()

    def compile_subroutine_body(self, name: str, subroutine_kind: Keyword):
        self.tokens.expect_symbol(Punct.LBRACE)

        while self.tokens.peek().is_keyword(Keyword.VAR):
            self.compile_var_dec()

        num_locals = self.symbols.count_of(SymbolKind.LOCAL)
        self.vm.write_function(f"{self.class_name}.{name}", num_locals)

        if subroutine_kind == Keyword.CONSTRUCTOR:
            self.vm.write_push(Segment.CONSTANT, self.symbols.count_of(SymbolKind.FIELD))
            self.vm.write_call("Memory.alloc", 1)
            self.vm.write_pop(Segment.POINTER, 0)
        elif subroutine_kind == Keyword.METHOD:
            self.vm.write_push(Segment.ARGUMENT, 0)
            self.vm.write_pop(Segment.POINTER, 0)

        self.compile_statements()
        self.tokens.expect_symbol(Punct.RBRACE)

    def compile_var_dec(self):
        # 'var' type varName (',' varName)* ';'
        self.tokens.expect_keyword(Keyword.VAR)
        self._compile_var_names(SymbolKind.LOCAL)

    # --- Statements ---

    def compile_statements(self):
        dispatch = {
            Keyword.LET: self.compile_let,
            Keyword.IF: self.compile_if,
            Keyword.WHILE: self.compile_while,
            Keyword.DO: self.compile_do,
            Keyword.RETURN: self.compile_return,
        }
        while self.tokens.peek().is_keyword(*STATEMENT_KEYWORDS):
            dispatch[self.tokens.peek().keyword]()

    def compile_let(self):
        # 'let' varName ('[' expression ']')? '=' expression ';'
        self.tokens.expect_keyword(Keyword.LET)
        symbol = self._resolve(self.tokens.expect_identifier())

        if self.tokens.peek().is_symbol(Punct.LBRACKET):
            # Target address is on the stack before the value is evaluated
            self.tokens.advance()
            self._push_variable(symbol)
            self.compile_expression()
            self.tokens.expect_symbol(Punct.RBRACKET)
            self.vm.write_arithmetic(ArithmeticOp.ADD)

            self.tokens.expect_symbol(Punct.EQ)
            self.compile_expression()
            self.tokens.expect_symbol(Punct.SEMICOLON)

            self.vm.write_pop(Segment.TEMP, 0)
            self.vm.write_pop(Segment.POINTER, 1)
            self.vm.write_push(Segment.TEMP, 0)
            self.vm.write_pop(Segment.THAT, 0)
        else:
            self.tokens.expect_symbol(Punct.EQ)
            self.compile_expression()
            self.tokens.expect_symbol(Punct.SEMICOLON)
            self.vm.write_pop(symbol.kind.segment, symbol.index)

    def compile_if(self):
        # 'if' '(' expression ')' '{' statements '}' ('else' '{' statements '}')?
        self.tokens.expect_keyword(Keyword.IF)
        false_label = self._new_label()
        end_label = self._new_label()

        self.tokens.expect_symbol(Punct.LPAREN)
        self.compile_expression()
        self.tokens.expect_symbol(Punct.RPAREN)

        self.vm.write_arithmetic(ArithmeticOp.NOT)
        self.vm.write_if_goto(false_label)

        self._compile_block()

        self.vm.write_goto(end_label)
        self.vm.write_label(false_label)

        if self.tokens.peek().is_keyword(Keyword.ELSE):
            self.tokens.advance()
            self._compile_block()

        self.vm.write_label(end_label)

    def compile_while(self):
        # 'while' '(' expression ')' '{' statements '}'
        self.tokens.expect_keyword(Keyword.WHILE)
        loop_label = self._new_label()
        end_label = self._new_label()

        self.vm.write_label(loop_label)

        self.tokens.expect_symbol(Punct.LPAREN)
        self.compile_expression()
        self.tokens.expect_symbol(Punct.RPAREN)

        self.vm.write_arithmetic(ArithmeticOp.NOT)
        self.vm.write_if_goto(end_label)

        self._compile_block()

        self.vm.write_goto(loop_label)
        self.vm.write_label(end_label)

    def _compile_block(self):
        self.tokens.expect_symbol(Punct.LBRACE)
        self.compile_statements()
        self.tokens.expect_symbol(Punct.RBRACE)

    def compile_do(self):
        # 'do' subroutineCall ';'
        self.tokens.expect_keyword(Keyword.DO)
        self.compile_subroutine_call(self.tokens.expect_identifier())
        self.tokens.expect_symbol(Punct.SEMICOLON)
        self.vm.write_pop(Segment.TEMP, 0)

    def compile_return(self):
        # 'return' expression? ';'
        self.tokens.expect_keyword(Keyword.RETURN)
        if self.tokens.peek().is_symbol(Punct.SEMICOLON):
            self.vm.write_push(Segment.CONSTANT, 0)
        else:
            self.compile_expression()
        self.tokens.expect_symbol(Punct.SEMICOLON)
        self.vm.write_return()

    # --- Expressions ---

    def compile_expression(self):
        # term (op term)*, strictly left to right
        self.compile_term()

        while self.tokens.peek().is_symbol(*OPERATORS):
            op = self.tokens.advance().punct
            self.compile_term()

            if op in LIBRARY_OPS:
                self.vm.write_call(LIBRARY_OPS[op], 2)
            else:
                self.vm.write_arithmetic(BINARY_OPS[op])

    def compile_term(self):
        token = self.tokens.peek()

        if token.type == TokenType.INT_CONST:
            self.tokens.advance()
            value = int(token.value)
            if value > MAX_INT_CONSTANT:
                raise SemanticError(
                    f"integer constant {value} exceeds {MAX_INT_CONSTANT}",
                    self.filename,
                    token.line,
                    token.column,
                )
            self.vm.write_push(Segment.CONSTANT, value)

        elif token.type == TokenType.STRING_CONST:
            self.tokens.advance()
            self.vm.write_push(Segment.CONSTANT, len(token.value))
            self.vm.write_call("String.new", 1)
            for ch in token.value:
                if ord(ch) > MAX_INT_CONSTANT:
                    raise SemanticError(
                        f"character {ch!r} in string constant exceeds {MAX_INT_CONSTANT}",
                        self.filename,
                        token.line,
                        token.column,
                    )
                self.vm.write_push(Segment.CONSTANT, ord(ch))
                self.vm.write_call("String.appendChar", 2)

        elif token.is_keyword(Keyword.TRUE):
            self.tokens.advance()
            self.vm.write_push(Segment.CONSTANT, 0)
            self.vm.write_arithmetic(ArithmeticOp.NOT)

        elif token.is_keyword(Keyword.FALSE, Keyword.NULL):
            self.tokens.advance()
            self.vm.write_push(Segment.CONSTANT, 0)

        elif token.is_keyword(Keyword.THIS):
            self.tokens.advance()
            self.vm.write_push(Segment.POINTER, 0)

        elif token.is_symbol(Punct.LPAREN):
            self.tokens.advance()
            self.compile_expression()
            self.tokens.expect_symbol(Punct.RPAREN)

        elif token.is_symbol(*UNARY_OPS):
            self.tokens.advance()
            self.compile_term()
            self.vm.write_arithmetic(UNARY_OPS[token.punct])

        elif token.type == TokenType.IDENTIFIER:
            following = self.tokens.peek(1)

            if following.is_symbol(Punct.LBRACKET):
                # Array access
                symbol = self._resolve(self.tokens.advance())
                self.tokens.advance()
                self._push_variable(symbol)
                self.compile_expression()
                self.tokens.expect_symbol(Punct.RBRACKET)
                self.vm.write_arithmetic(ArithmeticOp.ADD)
                self.vm.write_pop(Segment.POINTER, 1)
                self.vm.write_push(Segment.THAT, 0)

            elif following.is_symbol(Punct.LPAREN, Punct.DOT):
                self.compile_subroutine_call(self.tokens.advance())

            else:
                self._push_variable(self._resolve(self.tokens.advance()))

        else:
            raise self.tokens.error(f"expected expression, got {token.describe()}", token)

    def compile_subroutine_call(self, name: Token):
        # subroutineName '(' expressionList ')' |
        # (className | varName) '.' subroutineName '(' expressionList ')'
        num_args = 0

        if self.tokens.peek().is_symbol(Punct.DOT):
            self.tokens.advance()
            method_name = self.tokens.expect_identifier().value

            symbol: Optional[Symbol] = self.symbols.lookup(name.value)
            if symbol is not None:
                # Method call on object
                self._push_variable(symbol)
                full_name = f"{symbol.type.name_text}.{method_name}"
                num_args = 1
            else:
                # Function/constructor call
                full_name = f"{name.value}.{method_name}"
        else:
            # Method call on this
            self.vm.write_push(Segment.POINTER, 0)
            full_name = f"{self.class_name}.{name.value}"
            num_args = 1

        self.tokens.expect_symbol(Punct.LPAREN)
        num_args += self.compile_expression_list()
        self.tokens.expect_symbol(Punct.RPAREN)

        self.vm.write_call(full_name, num_args)

    def compile_expression_list(self) -> int:
        count = 0
        if not self.tokens.peek().is_symbol(Punct.RPAREN):
            self.compile_expression()
            count = 1

            while self.tokens.peek().is_symbol(Punct.COMMA):
                self.tokens.advance()
                self.compile_expression()
                count += 1

        return count


def compile_source(source: str, filename: str = "") -> str:
    """Compile the text of one ``.jack`` file and return its VM code."""
    compiler = JackCompiler(TokenStream.from_source(source, filename), filename)
    compiler.compile()
    return compiler.vm.get_output()
