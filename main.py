"""
Lox Programming Language - Main Entry Point
A small dynamically-typed scripting language run by a tree-walking interpreter
"""

import sys
import argparse
from pathlib import Path
from typing import Callable, List, Optional
import os

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from error_handling import ErrorReporter
from parsing import create_parser, create_debug_parser
from scanning import format_tokens, scan
from session import LoxSession, STATUS_RUNTIME_ERROR, STATUS_STATIC_ERROR
from syntax_tree import ast_to_sexpr, pretty_print_ast
from utilities import stringify

VERSION = "Lox v0.3.0 (Tree-walking Interpreter)"

EXIT_USAGE = 64
EXIT_STATIC_ERROR = 65
EXIT_NO_INPUT = 66
EXIT_RUNTIME_ERROR = 70


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      prog='lox',
      description='Lox Programming Language - tree-walking interpreter',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.lox             # Run a Lox script
  %(prog)s                        # Interactive mode
  %(prog)s --tokens script.lox    # Scan file and show tokens
  %(prog)s --parse script.lox     # Parse file and show AST
  %(prog)s --debug script.lox     # Run with debug output
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='Lox script file to execute'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--tokens',
      action='store_true',
      help='Scan file and show tokens (for debugging)'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse file and show AST (for debugging)'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Enable debug output for all stages'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def read_script(script_path: str) -> str:
  """Read a script, exiting with a hint when that is impossible"""
  try:
    with open(script_path, 'r', encoding='utf-8') as f:
      return f.read()
  except FileNotFoundError:
    print(f"Error: Script file '{script_path}' not found", file=sys.stderr)
    print(f"  Hint: Check the file path and make sure the file exists", file=sys.stderr)
    sys.exit(EXIT_NO_INPUT)
  except PermissionError:
    print(f"Error: Permission denied reading '{script_path}'", file=sys.stderr)
    sys.exit(EXIT_NO_INPUT)
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{script_path}': {e}", file=sys.stderr)
    print(f"  Hint: Make sure the file is a text file with UTF-8 encoding", file=sys.stderr)
    sys.exit(EXIT_NO_INPUT)


def tokens_file(script_path: str, debug: bool = False) -> None:
  """Scan a Lox script file and show its tokens"""
  source = read_script(script_path)
  reporter = ErrorReporter(source, show_context=True)
  tokens, errors = scan(source, reporter, debug)

  print(format_tokens(tokens))

  if errors:
    sys.exit(EXIT_STATIC_ERROR)


def parse_file(script_path: str, debug: bool = False) -> None:
  """Parse a Lox script file and show the AST"""
  source = read_script(script_path)
  reporter = ErrorReporter(source, show_context=True)
  parser = create_debug_parser(reporter) if debug else create_parser(reporter)

  print(f"Parsing {script_path}...")
  statements = parser.parse_string(source)

  if statements is None:
    print(f"\n{len(parser.errors)} error(s) in '{script_path}'", file=sys.stderr)
    sys.exit(EXIT_STATIC_ERROR)

  print(f"\nParsed {len(statements)} top-level statements:")
  print("=" * 50)

  for i, statement in enumerate(statements, 1):
    print(f"\nStatement {i}:")
    print(pretty_print_ast(statement), end='')


def run_script_file(script_path: str, debug: bool = False) -> None:
  """Run a Lox script file with full interpretation"""
  source = read_script(script_path)
  session = LoxSession(debug=debug)

  if debug:
    print(f"Running {script_path}...")

  status = session.run_source(source)

  if status == STATUS_STATIC_ERROR:
    sys.exit(EXIT_STATIC_ERROR)
  if status == STATUS_RUNTIME_ERROR:
    sys.exit(EXIT_RUNTIME_ERROR)


def setup_readline():
  """Setup readline with history and keyword completion"""
  if not READLINE_AVAILABLE:
    return

  history_file = os.path.expanduser("~/.lox_history")
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # First time, no history yet, or permission denied

  readline.set_history_length(1000)

  completions = [
      # Keywords
      "and", "break", "continue", "else", "false", "for", "if", "nil",
      "or", "print", "true", "var", "while",
      # REPL commands
      ":parse", ":env", ":help", "exit"
  ]

  def completer(text, state):
    options = [cmd for cmd in completions if cmd.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  import atexit
  atexit.register(readline.write_history_file, history_file)


def show_help() -> None:
  print("REPL Commands:")
  print("  :parse <expr>     - Show the parsed expression")
  print("  :env              - Show global bindings")
  print("  :help             - Show this help")
  print("  exit              - Exit REPL")
  print()
  print("Language features:")
  print("  var x = 5;                      - Variable declaration")
  print("  x = x + 1;                      - Assignment")
  print("  print \"a\" + 1;                  - Print (strings absorb other values)")
  print("  if (x > 3) print x; else { }    - Conditionals")
  print("  for (var i = 0; i < 3; i = i + 1) { if (i == 1) continue; print i; }")


def show_env(session: LoxSession) -> None:
  bindings = list(session.globals.items())
  print("Current environment:")
  if not bindings:
    print("  (no user-defined bindings)")
    return
  for name, value in bindings:
    val_str = stringify(value)
    if len(val_str) > 60:
      val_str = val_str[:57] + "..."
    print(f"  {name} = {val_str}")


def run_interactive_mode(debug: bool = False, input_func: Callable[[str], str] = input) -> None:
  """Run Lox in interactive mode; bindings persist between lines, errors do not"""
  print(f"{VERSION} - Interactive Mode")
  print("Type 'exit' to quit, ':help' for commands")
  if debug:
    print("Debug mode enabled")
  print()

  if input_func is input:
    setup_readline()

  reporter = ErrorReporter(stream=sys.stdout)
  session = LoxSession(reporter, interactive=True, debug=debug)
  parser = create_parser(reporter, debug)

  while True:
    try:
      code = input_func("lox> ")
    except (KeyboardInterrupt, EOFError):
      print("\nGoodbye!")
      break

    stripped = code.strip()
    if stripped == "exit":
      break
    if not stripped:
      continue

    if stripped == ":help":
      show_help()
      continue

    if stripped == ":env":
      show_env(session)
      continue

    if stripped.startswith(":parse "):
      reporter.reset()
      expr = parser.parse_expression(stripped[len(":parse "):])
      if expr is not None:
        print(ast_to_sexpr(expr))
      continue

    session.run_source(code)


def main(argv: Optional[List[str]] = None) -> None:
  """Main entry point for Lox"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  if args.script:
    if not Path(args.script).exists():
      print(f"Error: Script file '{args.script}' does not exist", file=sys.stderr)
      sys.exit(EXIT_NO_INPUT)

    if args.interactive:
      arg_parser.print_usage(sys.stderr)
      sys.exit(EXIT_USAGE)

    if args.tokens:
      tokens_file(args.script, debug=args.debug)
    elif args.parse:
      parse_file(args.script, debug=args.debug)
    else:
      run_script_file(args.script, debug=args.debug)

  else:
    run_interactive_mode(debug=args.debug)


if __name__ == "__main__":
  main()
