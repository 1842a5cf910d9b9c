import typer

from .tests import tests_cli
from .top import generate, check_target, show_config


def get_typer_cli() -> typer.Typer:
    cli = typer.Typer(help="Pre-build code and linker script generator for the embedded runner.")
    cli.command("generate")(generate)
    cli.command("check-target")(check_target)
    cli.command("show-config")(show_config)
    cli.add_typer(tests_cli, name="tests")
    return cli


def run_cli():
    get_typer_cli()()


if __name__ == "__main__":
    run_cli()
