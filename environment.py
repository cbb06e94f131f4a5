"""
Lox runtime environments
A scope is a name -> value mapping plus a read-only link to its enclosing scope
"""

from typing import Any, Dict, Iterator, Optional, Tuple

from error_handling import NilAccessError, UndefinedVariableError
from scanning import Token


class Environment:
  """One lexical scope in the chain"""

  def __init__(self, enclosing: Optional['Environment'] = None):
    self.enclosing = enclosing
    self.values: Dict[str, Any] = {}

  def define(self, name: str, value: Any) -> None:
    """Bind name in this scope; an existing binding here is overwritten"""
    self.values[name] = value

  def get(self, name: Token) -> Any:
    """Nearest binding of name; a binding holding nil is a fault, not a value"""
    scope = self._resolve(name.lexeme)
    if scope is None:
      raise UndefinedVariableError(name, f"Undefined variable '{name.lexeme}'.")

    value = scope.values[name.lexeme]
    if value is None:
      raise NilAccessError(name, f"Accessing variable '{name.lexeme}' whose value is nil.")
    return value

  def assign(self, name: Token, value: Any) -> None:
    """Rebind the nearest existing binding; never declares"""
    scope = self._resolve(name.lexeme)
    if scope is None:
      raise UndefinedVariableError(name, f"Undefined variable '{name.lexeme}'.")

    scope.values[name.lexeme] = value

  def is_defined(self, name: str) -> bool:
    return self._resolve(name) is not None

  def _resolve(self, name: str) -> Optional['Environment']:
    scope = self
    while scope is not None:
      if name in scope.values:
        return scope
      scope = scope.enclosing
    return None

  def depth(self) -> int:
    """Number of enclosing scopes above this one"""
    count = 0
    scope = self.enclosing
    while scope is not None:
      count += 1
      scope = scope.enclosing
    return count

  def items(self) -> Iterator[Tuple[str, Any]]:
    return iter(self.values.items())

  def __repr__(self) -> str:
    return f"Environment(depth={self.depth()}, names={sorted(self.values)})"
