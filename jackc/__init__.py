"""Single-pass compiler from Jack classes to stack-machine VM code."""

from jackc.compiler import JackCompiler, compile_source
from jackc.errors import CompileError, JackSyntaxError, LexicalError, SemanticError

__version__ = "1.0.0"

__all__ = [
    "CompileError",
    "JackCompiler",
    "JackSyntaxError",
    "LexicalError",
    "SemanticError",
    "compile_source",
]
