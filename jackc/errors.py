"""Compilation errors with source context."""


class CompileError(Exception):
    """Base class for every error raised while compiling a class."""

    def __init__(
        self, message: str, filename: str = "", line: int = 0, column: int = 0
    ) -> None:
        self.message = message
        self.filename = filename
        self.line = line
        self.column = column
        context = f"{filename}:" if filename else ""
        if line:
            context += f"{line}:{column}:" if column else f"{line}:"
        super().__init__(f"{context} {message}" if context else message)


class LexicalError(CompileError):
    """No token pattern matches the remaining source text."""


class JackSyntaxError(CompileError):
    """The token stream does not match the grammar."""


class SemanticError(CompileError):
    """An identifier is undeclared or declared twice, or a constant is out of range."""
