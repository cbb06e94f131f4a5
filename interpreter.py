"""
Lox Interpreter - tree-walking evaluator
Statements run against a chain of Environments rooted at one global scope
"""

from enum import Enum, auto
from typing import Any, Callable, List, Optional

from environment import Environment
from error_handling import (
  DivideByZeroError,
  IllegalControlSignalError,
  LoxRuntimeError,
  as_runtime_sink,
)
from scanning import TokenType
from syntax_tree import (
  Assign, Binary, Block, Break, Continue, Expr, Expression, Grouping, If,
  Literal, Logical, LoopBody, Print, Stmt, Unary, Var, Variable, While
)
from utilities import (
  check_number_operand,
  check_number_operands,
  is_equal,
  is_number,
  is_truthy,
  lox_greater,
  lox_greater_equal,
  lox_less,
  lox_less_equal,
  lox_multiply,
  lox_subtract,
  operation_error,
  stringify,
)


class Completion(Enum):
  """How a statement finished; runtime faults travel as exceptions instead"""
  NORMAL = auto()
  BREAK = auto()
  CONTINUE = auto()


NUMERIC_BINARY_OPS = {
  TokenType.MINUS: lox_subtract,
  TokenType.STAR: lox_multiply,
  TokenType.GREATER: lox_greater,
  TokenType.GREATER_EQUAL: lox_greater_equal,
  TokenType.LESS: lox_less,
  TokenType.LESS_EQUAL: lox_less_equal,
}


class LoxInterpreter:
  """Evaluator state: the global scope, the active scope and the loop depth"""

  def __init__(self, environment: Optional[Environment] = None,
               output_sink: Optional[Callable[[str], Any]] = None,
               error_sink: Any = None,
               debug: bool = False,
               echo_expressions: bool = False):
    self.globals = environment if environment is not None else Environment()
    self.environment = self.globals
    self.output_sink = output_sink if output_sink is not None else print
    self.report_runtime_error = as_runtime_sink(error_sink)
    self.debug = debug
    self.echo_expressions = echo_expressions
    self.loop_depth = 0

  # ============================================================================
  # PROGRAM EVALUATION
  # ============================================================================

  def interpret(self, statements: List[Stmt]) -> bool:
    """
    Run statements in order in the global scope.
    The first runtime error is reported and stops the rest; returns False in that case.
    """
    self.environment = self.globals
    self.loop_depth = 0

    try:
      for statement in statements:
        self.execute(statement)
    except LoxRuntimeError as e:
      if self.debug:
        print(f"Runtime error ({e.kind}) at line {e.line}")
      self.report_runtime_error(e)
      return False

    return True

  # ============================================================================
  # STATEMENTS
  # ============================================================================

  def execute(self, stmt: Stmt) -> Completion:
    if self.debug:
      print(f"Executing: {type(stmt).__name__}")

    if isinstance(stmt, Expression):
      return self.exec_expression(stmt)
    elif isinstance(stmt, Print):
      return self.exec_print(stmt)
    elif isinstance(stmt, Var):
      return self.exec_var(stmt)
    elif isinstance(stmt, LoopBody):
      return self.exec_loop_body(stmt)
    elif isinstance(stmt, Block):
      return self.execute_block(stmt.statements, Environment(self.environment))
    elif isinstance(stmt, If):
      return self.exec_if(stmt)
    elif isinstance(stmt, While):
      return self.exec_while(stmt)
    elif isinstance(stmt, Break):
      return self.exec_control_signal(stmt.keyword, Completion.BREAK)
    elif isinstance(stmt, Continue):
      return self.exec_control_signal(stmt.keyword, Completion.CONTINUE)
    raise TypeError(f"Unknown statement type: {type(stmt).__name__}")

  def exec_expression(self, stmt: Expression) -> Completion:
    value = self.evaluate(stmt.expression)
    if self.echo_expressions:
      self.output_sink(stringify(value))
    return Completion.NORMAL

  def exec_print(self, stmt: Print) -> Completion:
    value = self.evaluate(stmt.expression)
    self.output_sink(stringify(value))
    return Completion.NORMAL

  def exec_var(self, stmt: Var) -> Completion:
    value = None
    if stmt.initializer is not None:
      value = self.evaluate(stmt.initializer)

    self.environment.define(stmt.name.lexeme, value)
    return Completion.NORMAL

  def execute_block(self, statements: List[Stmt], environment: Environment) -> Completion:
    """Run statements in environment; the previous scope is restored on every exit path"""
    previous = self.environment
    try:
      self.environment = environment

      for statement in statements:
        completion = self.execute(statement)
        if completion is not Completion.NORMAL:
          return completion

      return Completion.NORMAL
    finally:
      self.environment = previous

  def exec_loop_body(self, stmt: LoopBody) -> Completion:
    """Run a for-loop body, then its increment unless the body broke out"""
    body, *increment = stmt.statements
    previous = self.environment
    try:
      self.environment = Environment(previous)

      if self.execute(body) is Completion.BREAK:
        return Completion.BREAK
      for statement in increment:
        self.execute(statement)

      return Completion.NORMAL
    finally:
      self.environment = previous

  def exec_if(self, stmt: If) -> Completion:
    if is_truthy(self.evaluate(stmt.condition)):
      return self.execute(stmt.then_branch)
    elif stmt.else_branch is not None:
      return self.execute(stmt.else_branch)
    return Completion.NORMAL

  def exec_while(self, stmt: While) -> Completion:
    self.loop_depth += 1
    try:
      while is_truthy(self.evaluate(stmt.condition)):
        completion = self.execute(stmt.body)
        if completion is Completion.BREAK:
          break
        # CONTINUE falls through to the next condition test
    finally:
      self.loop_depth -= 1

    return Completion.NORMAL

  def exec_control_signal(self, keyword, signal: Completion) -> Completion:
    if self.loop_depth == 0:
      raise IllegalControlSignalError(keyword, f"'{keyword.lexeme}' outside of a loop.")
    return signal

  # ============================================================================
  # EXPRESSIONS
  # ============================================================================

  def evaluate(self, expr: Expr) -> Any:
    if isinstance(expr, Literal):
      return expr.value
    elif isinstance(expr, Grouping):
      return self.evaluate(expr.expression)
    elif isinstance(expr, Unary):
      return self.eval_unary(expr)
    elif isinstance(expr, Binary):
      return self.eval_binary(expr)
    elif isinstance(expr, Logical):
      return self.eval_logical(expr)
    elif isinstance(expr, Variable):
      return self.environment.get(expr.name)
    elif isinstance(expr, Assign):
      value = self.evaluate(expr.value)
      self.environment.assign(expr.name, value)
      return value
    raise TypeError(f"Unknown expression type: {type(expr).__name__}")

  def eval_unary(self, expr: Unary) -> Any:
    right = self.evaluate(expr.right)

    if expr.operator.type == TokenType.BANG:
      return not is_truthy(right)

    # MINUS
    check_number_operand(expr.operator, right)
    return -right

  def eval_binary(self, expr: Binary) -> Any:
    left = self.evaluate(expr.left)
    right = self.evaluate(expr.right)
    op = expr.operator

    if op.type in NUMERIC_BINARY_OPS:
      return NUMERIC_BINARY_OPS[op.type](op, left, right)
    elif op.type == TokenType.PLUS:
      return self.eval_plus(op, left, right)
    elif op.type == TokenType.SLASH:
      check_number_operands(op, left, right)
      if right == 0:
        raise DivideByZeroError(op, "Division by zero.")
      return left / right
    elif op.type == TokenType.EQUAL_EQUAL:
      return is_equal(left, right)
    elif op.type == TokenType.BANG_EQUAL:
      return not is_equal(left, right)
    raise TypeError(f"Unknown binary operator: {op.lexeme}")

  def eval_plus(self, op, left: Any, right: Any) -> Any:
    if is_number(left) and is_number(right):
      return left + right
    # One string operand: the other side is coerced to its display form
    if isinstance(left, str):
      return left + stringify(right)
    if isinstance(right, str):
      return stringify(left) + right
    raise operation_error(op, left, right)

  def eval_logical(self, expr: Logical) -> Any:
    left = self.evaluate(expr.left)

    if expr.operator.type == TokenType.OR:
      if is_truthy(left):
        return left
    elif not is_truthy(left):
      return left

    return self.evaluate(expr.right)


# ============================================================================
# FUNCTIONAL ENTRY POINT
# ============================================================================

def run(statements: List[Stmt], environment: Optional[Environment] = None,
        error_sink: Any = None, output_sink: Optional[Callable[[str], Any]] = None,
        debug: bool = False) -> bool:
  """Execute statements in environment; False when a runtime error stopped the run"""
  interpreter = LoxInterpreter(environment, output_sink, error_sink, debug)
  return interpreter.interpret(statements)


# ============================================================================
# FACTORY FUNCTIONS (for main.py)
# ============================================================================

def create_interpreter(output_sink: Optional[Callable[[str], Any]] = None,
                       error_sink: Any = None, debug: bool = False,
                       echo_expressions: bool = False) -> LoxInterpreter:
  """Factory function returning an interpreter with a fresh global scope"""
  return LoxInterpreter(None, output_sink, error_sink, debug, echo_expressions)


def create_debug_interpreter(output_sink: Optional[Callable[[str], Any]] = None,
                             error_sink: Any = None) -> LoxInterpreter:
  """Factory function returning a debug interpreter"""
  return create_interpreter(output_sink, error_sink, debug=True)
