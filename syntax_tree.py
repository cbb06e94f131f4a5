"""
Lox abstract syntax tree
Closed sets of expression and statement nodes, plus printers used for debugging
"""

from dataclasses import dataclass, fields
from typing import Any, List, Optional, Union

from scanning import Token
from utilities import stringify


# ============================================================================
# EXPRESSIONS
# ============================================================================

@dataclass(frozen=True)
class Expr:
    """Base class of expression nodes"""


@dataclass(frozen=True)
class Literal(Expr):
    value: Any


@dataclass(frozen=True)
class Grouping(Expr):
    expression: Expr


@dataclass(frozen=True)
class Unary(Expr):
    operator: Token
    right: Expr


@dataclass(frozen=True)
class Binary(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True)
class Logical(Expr):
    """Short-circuit 'and' / 'or'"""
    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True)
class Variable(Expr):
    name: Token


@dataclass(frozen=True)
class Assign(Expr):
    name: Token
    value: Expr


# ============================================================================
# STATEMENTS
# ============================================================================

@dataclass(frozen=True)
class Stmt:
    """Base class of statement nodes"""


@dataclass(frozen=True)
class Expression(Stmt):
    expression: Expr


@dataclass(frozen=True)
class Print(Stmt):
    expression: Expr


@dataclass(frozen=True)
class Var(Stmt):
    name: Token
    initializer: Optional[Expr] = None


@dataclass(frozen=True)
class Block(Stmt):
    statements: List[Stmt]


@dataclass(frozen=True)
class LoopBody(Block):
    """Body of a desugared for loop: [body, increment]; the increment also runs after 'continue'"""


@dataclass(frozen=True)
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt] = None


@dataclass(frozen=True)
class While(Stmt):
    condition: Expr
    body: Stmt


@dataclass(frozen=True)
class Break(Stmt):
    keyword: Token


@dataclass(frozen=True)
class Continue(Stmt):
    keyword: Token


Node = Union[Expr, Stmt]


# ============================================================================
# PRINTERS
# ============================================================================

def _literal_text(value: Any) -> str:
    if isinstance(value, str):
        return f'"{value}"'
    return stringify(value)


def _parenthesize(name: str, *parts: Node) -> str:
    inner = " ".join(ast_to_sexpr(part) for part in parts)
    return f"({name} {inner})" if inner else f"({name})"


def ast_to_sexpr(node: Node) -> str:
    """Render a node in parenthesized prefix form, e.g. (+ 1 (group 2))"""
    if isinstance(node, Literal):
        return _literal_text(node.value)
    elif isinstance(node, Grouping):
        return _parenthesize("group", node.expression)
    elif isinstance(node, Unary):
        return _parenthesize(node.operator.lexeme, node.right)
    elif isinstance(node, (Binary, Logical)):
        return _parenthesize(node.operator.lexeme, node.left, node.right)
    elif isinstance(node, Variable):
        return node.name.lexeme
    elif isinstance(node, Assign):
        return f"(= {node.name.lexeme} {ast_to_sexpr(node.value)})"
    elif isinstance(node, Expression):
        return _parenthesize(";", node.expression)
    elif isinstance(node, Print):
        return _parenthesize("print", node.expression)
    elif isinstance(node, Var):
        if node.initializer is None:
            return f"(var {node.name.lexeme})"
        return f"(var {node.name.lexeme} {ast_to_sexpr(node.initializer)})"
    elif isinstance(node, Block):
        return _parenthesize("block", *node.statements)
    elif isinstance(node, If):
        if node.else_branch is None:
            return _parenthesize("if", node.condition, node.then_branch)
        return _parenthesize("if-else", node.condition, node.then_branch, node.else_branch)
    elif isinstance(node, While):
        return _parenthesize("while", node.condition, node.body)
    elif isinstance(node, Break):
        return "(break)"
    elif isinstance(node, Continue):
        return "(continue)"
    raise TypeError(f"Unknown node type: {type(node).__name__}")


def _children(node: Node) -> List[Node]:
    children = []
    for field in fields(node):
        value = getattr(node, field.name)
        if isinstance(value, (Expr, Stmt)):
            children.append(value)
        elif isinstance(value, list):
            children.extend(value)
    return children


def _label(node: Node) -> str:
    label = type(node).__name__
    if isinstance(node, Literal):
        return f"{label}({_literal_text(node.value)})"
    if isinstance(node, (Unary, Binary, Logical)):
        return f"{label}({node.operator.lexeme})"
    if isinstance(node, (Variable, Assign, Var)):
        return f"{label}({node.name.lexeme})"
    return label


def pretty_print_ast(node: Node, indent: int = 0) -> str:
    """Pretty print a node as an indented tree for debugging"""
    result = "  " * indent + _label(node) + "\n"

    for child in _children(node):
        result += pretty_print_ast(child, indent + 1)

    return result


def find_nodes_by_type(node: Node, node_type: type) -> List[Node]:
    """Find all nodes of a specific type under node (node included)"""
    result = []

    def search(current: Node):
        if isinstance(current, node_type):
            result.append(current)
        for child in _children(current):
            search(child)

    search(node)
    return result
