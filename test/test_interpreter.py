"""
Interpreter tests for the Lox language
Evaluation, scoping, loop control and runtime errors
"""

import pytest
from environment import Environment
from interpreter import Completion, LoxInterpreter, create_debug_interpreter, run
from parsing import parse
from scanning import scan
from session import (
  LoxSession,
  STATUS_OK,
  STATUS_RUNTIME_ERROR,
  STATUS_STATIC_ERROR,
  run_source,
)


def statements_of(source):
  tokens, _ = scan(source)
  statements, errors = parse(tokens)
  assert errors == []
  return statements


class TestValues:
  """Test display forms and operators"""

  def test_number_display(self, run_lox):
    """Integral results drop the trailing .0"""
    result = run_lox("print 1 + 2; print 7 / 2; print -0.5; print 10 / 4 * 2;")
    assert result.status == STATUS_OK
    assert result.output == ["3", "3.5", "-0.5", "5"]

  def test_large_number_display(self, run_lox):
    """Numbers use Python's float repr, exponent form from 1e16 upward"""
    result = run_lox("print 1234567890123456; print 10000000000000000; print 0.000001;")
    assert result.output == ["1234567890123456", "1e+16", "1e-06"]

  def test_literal_display(self, run_lox):
    """Test display of booleans, strings and nil"""
    result = run_lox('print true; print false; print "text"; print !nil;')
    assert result.output == ["true", "false", "text", "true"]

  def test_string_concatenation(self, run_lox):
    """A string operand turns + into concatenation"""
    result = run_lox('print "a" + "b"; print "n=" + 3; print 2.5 + "x"; print "t" + true;')
    assert result.output == ["ab", "n=3", "2.5x", "ttrue"]

  def test_comparison(self, run_lox):
    """Test the numeric comparison operators"""
    result = run_lox("print 1 < 2; print 2 <= 2; print 3 > 4; print 4 >= 5;")
    assert result.output == ["true", "true", "false", "false"]

  def test_equality_never_coerces(self, run_lox):
    """Values of different kinds are never equal"""
    result = run_lox('print 1 == 1; print "1" == 1; print nil == nil; print nil == false; print true != 1;')
    assert result.output == ["true", "false", "true", "false", "true"]

  def test_truthiness(self, run_lox):
    """Only nil and false are falsey"""
    result = run_lox('if (0) print "zero"; if ("") print "empty"; if (nil) print "nil"; else print "no";')
    assert result.output == ["zero", "empty", "no"]

  def test_logical_operators_return_operands(self, run_lox):
    """and/or return an operand, not a boolean"""
    result = run_lox('print nil or "yes"; print "first" or 2; print false and 1; print 1 and 2;')
    assert result.output == ["yes", "first", "false", "2"]

  def test_short_circuit(self, run_lox):
    """The right operand is skipped when the left decides"""
    result = run_lox("var a = 1; false and (a = 2); true or (a = 3); print a;")
    assert result.output == ["1"]

  def test_assignment_is_an_expression(self, run_lox):
    """Assignment yields the assigned value"""
    result = run_lox("var a = 1; var b = 2; a = b = 5; print a; print b;")
    assert result.output == ["5", "5"]


class TestScoping:
  """Test block scopes over the environment chain"""

  def test_shadowing_and_restore(self, run_lox):
    """Test shadowing inside a block"""
    result = run_lox("""
var a = "global";
{
  var a = "inner";
  print a;
}
print a;
""")
    assert result.output == ["inner", "global"]

  def test_assignment_reaches_outer_scope(self, run_lox):
    """Assignment in nested blocks updates the outer binding"""
    result = run_lox("var a = 1; { a = 2; { a = a + 1; } } print a;")
    assert result.output == ["3"]

  def test_block_locals_disappear(self, run_lox):
    """Block locals are gone after the block"""
    result = run_lox("{ var hidden = 1; } print hidden;")
    assert result.status == STATUS_RUNTIME_ERROR
    assert result.runtime_kinds == ["UndefinedVariable"]

  def test_redeclaration_overwrites(self, run_lox):
    """Redeclaring in the same scope overwrites"""
    result = run_lox("var a = 1; var a = 2; print a;")
    assert result.output == ["2"]

  def test_initializer_sees_outer_binding(self, run_lox):
    """An initializer is evaluated before its name is bound"""
    result = run_lox("var a = 1; { var a = a + 1; print a; }")
    assert result.output == ["2"]


class TestLoops:
  """Test while, for, break and continue"""

  def test_while_with_break(self, run_lox):
    """break ends a while loop"""
    result = run_lox("""
var x = 0;
while (true) {
  x = x + 1;
  if (x > 3) break;
}
print x;
""")
    assert result.output == ["4"]

  def test_continue_still_runs_for_increment(self, run_lox):
    """continue in a for loop moves on to the increment clause"""
    result = run_lox("""
var guard = 0;
for (var i = 0; i < 5; i = i + 1) {
  guard = guard + 1;
  if (guard > 20) break;
  if (i == 2) continue;
  print i;
}
print guard;
""")
    assert result.output == ["0", "1", "3", "4", "5"]

  def test_continue_on_every_iteration(self, run_lox):
    """A for loop whose body always continues still terminates"""
    result = run_lox("""
var runs = 0;
for (var i = 0; i < 3; i = i + 1) {
  runs = runs + 1;
  if (runs > 10) break;
  continue;
}
print runs;
""")
    assert result.output == ["3"]

  def test_continue_in_nested_block_of_for(self, run_lox):
    """continue from a nested block inside the for body still runs the increment"""
    result = run_lox("""
var n = 0;
for (var i = 0; i < 3; i = i + 1) {
  n = n + 1;
  if (n > 10) break;
  { if (i == 1) continue; }
  print i;
}
print n;
""")
    assert result.output == ["0", "2", "3"]

  def test_continue_in_plain_block_propagates(self, run_lox):
    """Inside a while loop, continue leaves the enclosing blocks and skips the rest of the body"""
    result = run_lox("""
var i = 0;
while (i < 3) {
  i = i + 1;
  if (i > 10) break;
  { if (i == 2) continue; }
  print i;
}
""")
    assert result.output == ["1", "3"]

  def test_break_skips_for_increment(self, run_lox):
    """break leaves a for loop without running the increment again"""
    result = run_lox("var i = 0; for (; i < 5; i = i + 1) { if (i == 2) break; } print i;")
    assert result.output == ["2"]

  def test_break_only_exits_innermost_loop(self, run_lox):
    """break leaves only the innermost loop"""
    result = run_lox("""
for (var i = 0; i < 3; i = i + 1) {
  for (var j = 0; j < 3; j = j + 1) {
    if (j == 1) break;
    print i + j * 10;
  }
}
""")
    assert result.output == ["0", "1", "2"]

  def test_break_inside_nested_blocks(self, run_lox):
    """break passes through nested blocks up to the loop"""
    result = run_lox("var n = 0; while (n < 10) { { { n = n + 1; if (n == 2) break; } } } print n;")
    assert result.output == ["2"]

  def test_for_loop_variable_is_scoped(self, run_lox):
    """The for loop variable is local to the loop"""
    result = run_lox("for (var i = 0; i < 1; i = i + 1) {} print i;")
    assert result.runtime_kinds == ["UndefinedVariable"]

  def test_while_false_never_runs(self, run_lox):
    """Test a loop whose condition is false at once"""
    result = run_lox('while (false) print "never"; print "done";')
    assert result.output == ["done"]

  @pytest.mark.parametrize("keyword", ["break", "continue"])
  def test_control_signal_outside_loop(self, run_lox, keyword):
    """break and continue outside a loop are runtime errors"""
    result = run_lox(f'print "before"; {keyword}; print "after";')
    assert result.status == STATUS_RUNTIME_ERROR
    assert result.output == ["before"]
    assert result.runtime_kinds == ["IllegalControlSignal"]
    assert result.reporter.messages == [f"'{keyword}' outside of a loop."]

  def test_break_in_if_outside_loop(self, run_lox):
    """Test break inside an if block outside any loop"""
    result = run_lox("if (true) { break; }")
    assert result.runtime_kinds == ["IllegalControlSignal"]


class TestRuntimeErrors:
  """The first runtime error is reported and stops the program"""

  def test_stops_at_first_error(self, run_lox):
    """The first runtime error stops the program"""
    result = run_lox('print 1; print -"x"; print 2; print nope;')
    assert result.output == ["1"]
    assert result.reporter.messages == ["Operand must be a number."]
    assert result.error_kinds == ["runtime"]

  def test_division_by_zero(self, run_lox):
    """Test division by zero"""
    result = run_lox("print 1 / 0;")
    assert result.runtime_kinds == ["DivideByZero"]
    assert result.reporter.messages == ["Division by zero."]

  def test_division_type_check_comes_first(self, run_lox):
    """Operand types are checked before the zero test"""
    result = run_lox('print "a" / 0;')
    assert result.runtime_kinds == ["TypeError"]
    assert result.reporter.messages == ["Operands must be numbers."]

  @pytest.mark.parametrize("source", [
    'print 1 - "a";',
    'print true * 2;',
    'print "a" < "b";',
    'print nil >= 1;',
  ])
  def test_numeric_operators_need_numbers(self, run_lox, source):
    """Test type errors from numeric operators"""
    result = run_lox(source)
    assert result.runtime_kinds == ["TypeError"]
    assert result.reporter.messages == ["Operands must be numbers."]

  def test_plus_without_string_or_numbers(self, run_lox):
    """Test the + type error naming both operand kinds"""
    result = run_lox("print true + nil;")
    assert result.runtime_kinds == ["TypeError"]
    assert result.reporter.messages == [
      "Operands must be two numbers or two strings, or one string. Got boolean and nil."
    ]

  def test_undefined_variable(self, run_lox):
    """Test reading an undeclared variable"""
    result = run_lox("print ghost;")
    assert result.reporter.messages == ["Undefined variable 'ghost'."]

  def test_assignment_to_undeclared_does_not_declare(self, run_lox):
    """Failed assignment leaves no binding behind"""
    result = run_lox("ghost = 1;")
    assert result.runtime_kinds == ["UndefinedVariable"]
    assert not result.session.globals.is_defined("ghost")

  def test_nil_variable_read(self, run_lox):
    """Reading an uninitialized variable is a fault"""
    result = run_lox("var a; print a;")
    assert result.runtime_kinds == ["NilAccess"]
    assert result.reporter.messages == ["Accessing variable 'a' whose value is nil."]

  def test_nil_literal_prints(self, run_lox):
    """A nil literal is a value, only nil-valued variables fault"""
    result = run_lox("print nil;")
    assert result.output == ["nil"]

  def test_error_line(self, run_lox):
    """Runtime errors report the operator's line"""
    result = run_lox("var a = 1;\n\nprint a + true;")
    assert result.reporter.reports[0]['line'] == 3

  def test_error_inside_block_restores_scope(self, run_lox):
    """An error inside a block leaves the global scope active"""
    result = run_lox("var a = 1; { var a = 2; print a / 0; }")
    assert result.status == STATUS_RUNTIME_ERROR
    interpreter = result.session.interpreter
    assert interpreter.environment is interpreter.globals
    assert interpreter.globals.values["a"] == 1.0

  def test_error_inside_loop_resets_depth(self, run_lox):
    """An error inside a loop leaves loop depth at zero"""
    result = run_lox("while (true) { print 1 / 0; }")
    assert result.session.interpreter.loop_depth == 0
    again = result.session.run_source("break;")
    assert again == STATUS_RUNTIME_ERROR


class TestSession:
  """Test a session running several sources against one global scope"""

  def test_globals_persist(self, run_lox):
    """Globals survive between runs of a session"""
    result = run_lox("var counter = 1;")
    session = result.session
    assert session.run_source("counter = counter + 1; print counter;") == STATUS_OK
    assert result.output == ["2"]

  def test_error_state_is_reset_between_runs(self, run_lox):
    """A failed run does not poison the next one"""
    result = run_lox("print missing;")
    assert result.reporter.had_runtime_error
    assert result.session.run_source("print 1;") == STATUS_OK
    assert not result.reporter.had_runtime_error
    assert result.reporter.reports == []

  def test_static_errors_suppress_execution(self, run_lox):
    """Lexical errors prevent any execution"""
    result = run_lox('print "ran"; print 1 @ 2;')
    assert result.status == STATUS_STATIC_ERROR
    assert result.output == []
    assert result.error_kinds == ["lexical", "syntax"]

  def test_syntax_error_suppresses_execution(self, run_lox):
    """Syntax errors prevent any execution"""
    result = run_lox('print "ran"; var;')
    assert result.status == STATUS_STATIC_ERROR
    assert result.output == []
    assert result.session.last_statements is None

  def test_interactive_echo(self, run_lox):
    """Interactive sessions echo expression values"""
    result = run_lox("var a = 2; a * 3; print a;", interactive=True)
    assert result.output == ["6", "2"]

  def test_no_echo_for_scripts(self, run_lox):
    """Scripts do not echo expression values"""
    result = run_lox("1 + 1;")
    assert result.output == []

  def test_run_file(self, reporter, tmp_path):
    """Test running a script file through a session"""
    script = tmp_path / "hello.lox"
    script.write_text('print "hello";')
    output = []
    assert LoxSession(reporter, output.append).run_file(str(script)) == STATUS_OK
    assert output == ["hello"]

  def test_one_shot_run_source(self, reporter):
    """Test the module-level run_source helper"""
    output = []
    assert run_source("print 40 + 2;", output.append, reporter) == STATUS_OK
    assert output == ["42"]


class TestInterpreterApi:
  """Test the interpreter without a session"""

  def test_run_with_plain_callables(self):
    """Test run with plain output and error callables"""
    output, errors = [], []
    ok = run(
      statements_of('print "x"; print 1 + nil;'),
      error_sink=lambda message, line: errors.append((message, line)),
      output_sink=output.append
    )
    assert not ok
    assert output == ["x"]
    assert errors == [(
      "Operands must be two numbers or two strings, or one string. Got number and nil.", 1
    )]

  def test_run_against_given_environment(self):
    """run defines globals in the environment it is given"""
    env = Environment()
    assert run(statements_of("var answer = 42;"), env, output_sink=lambda text: None)
    assert env.values["answer"] == 42.0

  def test_execute_returns_completion(self):
    """Statements report how they completed"""
    interpreter = LoxInterpreter(output_sink=lambda text: None)
    interpreter.loop_depth = 1
    statement = statements_of("break;")[0]
    assert interpreter.execute(statement) is Completion.BREAK
    assert interpreter.execute(statements_of("1;")[0]) is Completion.NORMAL

  def test_debug_interpreter_traces(self, capsys):
    """Debug interpreters trace each statement"""
    output = []
    interpreter = create_debug_interpreter(output.append)
    interpreter.interpret(statements_of("print 1;"))
    assert "Executing: Print" in capsys.readouterr().out
    assert output == ["1"]
