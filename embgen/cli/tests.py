from pathlib import Path
from typing import List, Optional

from pytest import main as run_tests
import typer

tests_cli = typer.Typer()


@tests_cli.command("run")
def run_generator_tests(
    pytest_args: Optional[List[str]] = typer.Argument(
        None, help="Extra arguments passed to pytest"
    ),
):
    tests_dir = Path(__file__).parent.parent / "tests"
    raise typer.Exit(code=int(run_tests([str(tests_dir), *(pytest_args or [])])))
