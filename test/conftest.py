"""
Test configuration for Lox interpreter tests
"""

import io
import sys
from pathlib import Path
from typing import List, NamedTuple

import pytest

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from error_handling import ErrorReporter
from session import LoxSession


class LoxResult(NamedTuple):
  status: str
  output: List[str]
  reporter: ErrorReporter
  session: LoxSession

  @property
  def error_kinds(self) -> List[str]:
    return [report['stage'] for report in self.reporter.reports]

  @property
  def runtime_kinds(self) -> List[str]:
    return [error.kind for error in self.reporter.errors if hasattr(error, 'kind')]


@pytest.fixture
def reporter():
  """Reporter writing to a throwaway stream"""
  return ErrorReporter(stream=io.StringIO())


@pytest.fixture
def run_lox(reporter):
  """Run source in a fresh session, collecting printed lines"""
  def runner(source: str, interactive: bool = False) -> LoxResult:
    output = []
    session = LoxSession(reporter, output.append, interactive=interactive)
    status = session.run_source(source)
    return LoxResult(status, output, reporter, session)

  return runner
