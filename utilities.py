"""
Utilities module for the Lox interpreter
Value helpers shared by the evaluator: truthiness, equality, display form, operand checks
"""

from typing import Any, Callable
import operator

from error_handling import LoxTypeError
from scanning import Token


# ==================== TYPE CHECKING UTILITIES ====================

def is_number(value: Any) -> bool:
  """
  Check if value is a Lox number

  Args:
    value: Runtime value

  Returns:
    True for floats (booleans are never numbers)
  """
  return isinstance(value, float)


def type_name(value: Any) -> str:
  """Lox-facing name of a runtime value's kind"""
  if value is None:
    return "nil"
  if isinstance(value, bool):
    return "boolean"
  if isinstance(value, float):
    return "number"
  if isinstance(value, str):
    return "string"
  return type(value).__name__


def is_truthy(value: Any) -> bool:
  """
  Truthiness of a runtime value

  Args:
    value: Runtime value

  Returns:
    False for nil and false, True for everything else (0 and "" included)
  """
  if value is None:
    return False
  if isinstance(value, bool):
    return value
  return True


def is_equal(left: Any, right: Any) -> bool:
  """
  Value equality without coercion

  Args:
    left: Left operand
    right: Right operand

  Returns:
    True when both have the same kind and value; nil only equals nil

  Examples:
    is_equal(None, None) -> True
    is_equal(1.0, True) -> False
  """
  if left is None or right is None:
    return left is None and right is None
  if type(left) is not type(right):
    return False
  return left == right


def stringify(value: Any) -> str:
  """
  Display form of a runtime value

  Examples:
    stringify(None) -> "nil"
    stringify(3.0) -> "3"
    stringify(3.5) -> "3.5"
    stringify(True) -> "true"
  """
  if value is None:
    return "nil"
  if isinstance(value, bool):
    return "true" if value else "false"
  if isinstance(value, float):
    text = str(value)
    if text.endswith(".0"):
      text = text[:-2]
    return text
  return str(value)


# ==================== ERROR MESSAGE BUILDERS ====================

def operation_error(op: Token, left: Any, right: Any) -> LoxTypeError:
  """
  Generate the error for '+' on operands it cannot combine

  Args:
    op: Operator token
    left: Left operand
    right: Right operand

  Returns:
    LoxTypeError naming both operand kinds
  """
  return LoxTypeError(
    op,
    "Operands must be two numbers or two strings, or one string. "
    f"Got {type_name(left)} and {type_name(right)}."
  )


# ==================== VALIDATION UTILITIES ====================

def check_number_operand(op: Token, operand: Any) -> None:
  """Raise LoxTypeError unless operand is a number"""
  if is_number(operand):
    return
  raise LoxTypeError(op, "Operand must be a number.")


def check_number_operands(op: Token, left: Any, right: Any) -> None:
  """Raise LoxTypeError unless both operands are numbers"""
  if is_number(left) and is_number(right):
    return
  raise LoxTypeError(op, "Operands must be numbers.")


# ==================== BINARY OPERATION FACTORIES ====================

def binary_arithmetic_op(op: Callable[[float, float], float]) -> Callable[[Token, Any, Any], float]:
  """
  Factory for numeric binary operations

  Args:
    op: Python operator function (e.g., operator.sub)

  Returns:
    Function (operator_token, left, right) -> number

  Examples:
    lox_sub = binary_arithmetic_op(operator.sub)
    lox_sub(minus_token, 3.0, 1.0) -> 2.0
  """
  def arithmetic(token: Token, left: Any, right: Any) -> float:
    check_number_operands(token, left, right)
    return op(left, right)

  return arithmetic


def binary_comparison_op(op: Callable[[float, float], bool]) -> Callable[[Token, Any, Any], bool]:
  """
  Factory for numeric comparisons

  Args:
    op: Python operator function (e.g., operator.lt)

  Returns:
    Function (operator_token, left, right) -> boolean
  """
  def comparison(token: Token, left: Any, right: Any) -> bool:
    check_number_operands(token, left, right)
    return op(left, right)

  return comparison


lox_subtract = binary_arithmetic_op(operator.sub)
lox_multiply = binary_arithmetic_op(operator.mul)
lox_greater = binary_comparison_op(operator.gt)
lox_greater_equal = binary_comparison_op(operator.ge)
lox_less = binary_comparison_op(operator.lt)
lox_less_equal = binary_comparison_op(operator.le)
