"""Command line interface for kscript.

The launcher prints a single ``kotlin ...`` command on stdout for the calling
shell to ``exec``; every other message goes to stderr.
"""

import logging
import shutil
import sys

import click
from rich.console import Console

from kscript.config import load_settings
from kscript.core.pipeline import ScriptPipeline
from kscript.errors import KscriptError

HELP = """Enhanced scripting support for Kotlin on *nix-based systems.

The SCRIPT can be a script file (*.kts), a script URL, - for stdin, a *.kt
source file with a main method, or some kotlin code. Arguments after SCRIPT
are passed to the script.
"""


def _console() -> Console:
    return Console(stderr=True, soft_wrap=True)


def _self_update() -> None:
    location = shutil.which("kscript") or ""
    if ".sdkman" in location:
        _console().print("Installing latest version of kscript...")
        click.echo("sdkman_auto_answer=true && sdk install kscript")
    else:
        _console().print("Self-update is currently just supported via sdkman.")


@click.command(
    help=HELP,
    context_settings={
        "ignore_unknown_options": True,
        "allow_interspersed_args": False,
    },
)
@click.argument("script", required=False)
@click.argument("script_args", nargs=-1, type=click.UNPROCESSED)
@click.option(
    "-i",
    "--interactive",
    is_flag=True,
    help="Create interactive shell with DEPS as declared in script",
)
@click.option(
    "--clear-cache",
    is_flag=True,
    help="Wipe cached script jars and urls",
)
@click.option(
    "--self-update",
    is_flag=True,
    help="Update kscript to the latest version (sdkman installs only)",
)
@click.option("-v", "--verbose", is_flag=True, help="Log pipeline details to stderr")
@click.version_option(package_name="kscript")
def cli(
    script: str | None,
    script_args: tuple[str, ...],
    interactive: bool,
    clear_cache: bool,
    self_update: bool,
    verbose: bool,
) -> None:
    """Compile (if needed) and print the command that runs SCRIPT."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )

    try:
        pipeline = ScriptPipeline(load_settings())

        if clear_cache:
            _console().print("Cleaning up cache...")
            pipeline.clear_cache()
            return

        if self_update:
            _self_update()
            return

        if script is None:
            raise click.UsageError("Missing argument 'SCRIPT'.")

        if interactive:
            script_path, command = pipeline.interactive_command(script)
            _console().print(f"Creating REPL from {script_path}", markup=False)
            _console().print(command, markup=False)
            click.echo(command)
            return

        click.echo(pipeline.command_line(script, [script, *script_args]))
    except KscriptError as e:
        raise click.ClickException(str(e)) from e
