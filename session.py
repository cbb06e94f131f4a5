"""
Session control for the Lox interpreter: scan -> parse -> run for one source text at a time.
The global scope survives between runs; error state does not.
"""

from typing import Any, Callable, List, Optional

from environment import Environment
from error_handling import ErrorReporter
from interpreter import create_interpreter
from parsing import parse
from scanning import scan
from syntax_tree import Stmt


STATUS_OK = "ok"
STATUS_STATIC_ERROR = "static_error"
STATUS_RUNTIME_ERROR = "runtime_error"


class LoxSession:
  """Governs a Lox session, with one interpreter and therefore one global scope"""

  def __init__(self, reporter: Any = None, output: Optional[Callable[[str], Any]] = None,
               interactive: bool = False, debug: bool = False):
    self.reporter = reporter if reporter is not None else ErrorReporter(show_context=not interactive)
    self.debug = debug
    self.interactive = interactive
    self.interpreter = create_interpreter(output, self.reporter, debug, echo_expressions=interactive)
    self.last_statements: Optional[List[Stmt]] = None

  @property
  def globals(self) -> Environment:
    return self.interpreter.globals

  def run_source(self, source: str) -> str:
    """Run one source text; lexical or syntax errors suppress evaluation"""
    if isinstance(self.reporter, ErrorReporter):
      self.reporter.reset(source)

    tokens, lexical_errors = scan(source, self.reporter, self.debug)
    statements, syntax_errors = parse(tokens, self.reporter, self.debug)
    self.last_statements = statements

    if lexical_errors or syntax_errors:
      if self.debug:
        print(f"Skipping execution: {len(lexical_errors) + len(syntax_errors)} static errors")
      return STATUS_STATIC_ERROR

    if not self.interpreter.interpret(statements):
      return STATUS_RUNTIME_ERROR
    return STATUS_OK

  def run_file(self, path: str) -> str:
    with open(path, 'r', encoding='utf-8') as f:
      source = f.read()
    return self.run_source(source)


def run_source(source: str, output: Optional[Callable[[str], Any]] = None,
               reporter: Any = None, debug: bool = False) -> str:
  """One-shot helper: run source in a fresh session"""
  return LoxSession(reporter, output, debug=debug).run_source(source)
