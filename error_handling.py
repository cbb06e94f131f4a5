"""
Error handling for the Lox interpreter
Static (lexical/syntax) errors, runtime errors, and the reporter that collects them
"""

import sys
from typing import Any, Callable, Dict, List, Optional, TextIO

from pyparsing import col, line as source_line, lineno


# ============================================================================
# DATA STRUCTURES (Plain Dictionaries)
# ============================================================================

def make_error_report(
    line: int,
    where: str,
    message: str,
    column: Optional[int] = None,
    context: Optional[str] = None,
    stage: str = "syntax"
) -> Dict:
    """Create an error report structure"""
    return {
        'stage': stage,
        'line': line,
        'where': where,
        'message': message,
        'column': column,
        'context': context
    }


def format_error_report(report: Dict) -> str:
    """Format an error report as string"""
    if report['stage'] == "runtime":
        error_msg = f"{report['message']}\n[line {report['line']}]"
    else:
        error_msg = f"[line {report['line']}] Error{report['where']}: {report['message']}"

    if report['context']:
        error_msg += f"\n{report['context']}"

    return error_msg


# ============================================================================
# PURE FUNCTIONS
# ============================================================================

def token_location(token: Any) -> str:
    """Location string for an error tied to a token"""
    if token.type.name == "EOF":
        return " at end"
    return f" at '{token.lexeme}'"


def get_context_lines(source_text: str, offset: int) -> str:
    """Get the source line holding offset with a caret under its column"""
    if offset < 0 or offset > len(source_text):
        return ""

    line_num = lineno(offset, source_text)
    col_num = col(offset, source_text)
    text = source_line(offset, source_text)

    line_prefix = f"{line_num:4d}: "
    return f"{line_prefix}{text}\n{'':6}{' ' * (col_num - 1)}^"


# ============================================================================
# EXCEPTION CLASSES
# ============================================================================

class LoxError(Exception):
    """Base class for every error the interpreter reports"""


class LoxStaticError(LoxError):
    """Error found before execution; carries line, location and message"""
    stage = "syntax"

    def __init__(self, message: str, line: int, where: str = "", offset: Optional[int] = None):
        self.message = message
        self.line = line
        self.where = where
        self.offset = offset
        super().__init__(message)

    def to_report(self, source_text: Optional[str] = None) -> Dict:
        context = None
        column = None
        if source_text is not None and self.offset is not None:
            context = get_context_lines(source_text, self.offset)
            column = col(self.offset, source_text) if self.offset <= len(source_text) else None
        return make_error_report(self.line, self.where, self.message, column, context, self.stage)

    def __str__(self) -> str:
        return format_error_report(make_error_report(self.line, self.where, self.message, stage=self.stage))


class LoxLexicalError(LoxStaticError):
    """Bad character or unterminated string found by the scanner"""
    stage = "lexical"


class LoxParseError(LoxStaticError):
    """Syntax error found by the parser, tied to the offending token"""

    def __init__(self, message: str, token: Any):
        self.token = token
        super().__init__(message, token.line, token_location(token), token.offset)


class LoxRuntimeError(LoxError):
    """Error raised while evaluating; carries the offending token"""
    kind = "RuntimeError"

    def __init__(self, token: Any, message: str):
        self.token = token
        self.message = message
        super().__init__(message)

    @property
    def line(self) -> int:
        return self.token.line

    def to_report(self, source_text: Optional[str] = None) -> Dict:
        context = None
        if source_text is not None and self.token.offset is not None:
            context = get_context_lines(source_text, self.token.offset)
        return make_error_report(self.line, "", self.message, context=context, stage="runtime")


class LoxTypeError(LoxRuntimeError):
    kind = "TypeError"


class DivideByZeroError(LoxRuntimeError):
    kind = "DivideByZero"


class UndefinedVariableError(LoxRuntimeError):
    kind = "UndefinedVariable"


class NilAccessError(LoxRuntimeError):
    kind = "NilAccess"


class IllegalControlSignalError(LoxRuntimeError):
    kind = "IllegalControlSignal"


# ============================================================================
# REPORTER
# ============================================================================

StaticSink = Callable[[int, str, str], None]
RuntimeSink = Callable[[str, int], None]


class ErrorReporter:
    """Default error sink: records reports and writes them to a stream"""

    def __init__(self, source_text: Optional[str] = None, stream: Optional[TextIO] = None,
                 show_context: bool = False):
        self.source_text = source_text
        self.stream = stream
        self.show_context = show_context
        self.reports: List[Dict] = []
        self.errors: List[LoxError] = []
        self.had_error = False
        self.had_runtime_error = False

    def reset(self, source_text: Optional[str] = None) -> None:
        """Forget the error state of the previous run"""
        self.source_text = source_text
        self.reports = []
        self.errors = []
        self.had_error = False
        self.had_runtime_error = False

    def __call__(self, line: int, where: str, message: str) -> None:
        self.report(make_error_report(line, where, message))

    def static_error(self, error: LoxStaticError) -> None:
        self.errors.append(error)
        self.report(error.to_report(self.source_text if self.show_context else None))

    def runtime_error(self, error: LoxRuntimeError) -> None:
        self.errors.append(error)
        self.report(error.to_report(self.source_text if self.show_context else None))

    def report(self, report: Dict) -> None:
        self.reports.append(report)
        if report['stage'] == "runtime":
            self.had_runtime_error = True
        else:
            self.had_error = True

        stream = self.stream if self.stream is not None else sys.stderr
        print(format_error_report(report), file=stream)

    @property
    def messages(self) -> List[str]:
        return [report['message'] for report in self.reports]


def as_static_sink(sink: Any) -> Callable[[LoxStaticError], None]:
    """Adapt a reporter or a plain (line, where, message) callable"""
    if sink is None:
        return lambda error: None
    if isinstance(sink, ErrorReporter):
        return sink.static_error
    return lambda error: sink(error.line, error.where, error.message)


def as_runtime_sink(sink: Any) -> Callable[[LoxRuntimeError], None]:
    """Adapt a reporter or a plain (message, line) callable"""
    if sink is None:
        return lambda error: None
    if isinstance(sink, ErrorReporter):
        return sink.runtime_error
    return lambda error: sink(error.message, error.line)
