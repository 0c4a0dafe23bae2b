"""
toolshim - CLI entrypoint.

Usage:
    toolshim --help
    toolshim install github:fairwindsops/rbac-lookup:0.9
    toolshim list
    <tool> [args...]        (through a shim symlink)
"""

from __future__ import annotations

import contextlib
import json
import os
import sys
from collections.abc import Iterator, Sequence
from pathlib import Path

import click

from toolshim import __version__
from toolshim.core.config.loader import PROG_NAME, load_config
from toolshim.core.errors import NotFoundError, ToolshimError
from toolshim.core.models.config import ToolshimConfig
from toolshim.core.observability.logging_config import resolve_level, setup_logging


@contextlib.contextmanager
def _cli_errors() -> Iterator[None]:
    """Turn toolshim errors into ``Error: <message>`` and exit status 1."""
    try:
        yield
    except ToolshimError as e:
        raise click.ClickException(str(e)) from e


def _setup_logging(debug: bool = False, verbose: bool = False) -> None:
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, env=os.environ),
        log_file=os.environ.get("TOOLSHIM_LOG_FILE"),
        log_file_level=os.environ.get("TOOLSHIM_LOG_FILE_LEVEL"),
        quiet_third_party=not debug,
    )


def _config(ctx: click.Context) -> ToolshimConfig:
    return ctx.obj["config"]


def _display_preflight_check(config: ToolshimConfig) -> None:
    from toolshim.core.services.tool_install.detection.platform import directory_in_path

    if directory_in_path(config.shims_dir):
        return
    click.secho(
        f"WARNING: Please add the directory {str(config.shims_dir)!r} to your PATH "
        f"environment variable, so that {PROG_NAME}-managed tools can be run automatically.\n"
        "Be sure the updated path takes effect by restarting your shell or sourcing "
        "the shell initialization file.\n"
        "For example, you might add the following line to one of your shell "
        "initialization files:\n"
        f'PATH="{config.shims_dir}:$PATH"\n'
        "export PATH\n",
        fg="yellow",
        err=True,
    )


def _display_getting_started(config: ToolshimConfig) -> None:
    from toolshim.core.services.tool_install.execution.managed_tool import list_installed_tools

    count = len(list_installed_tools(config))
    if count == 0:
        phrase = "not yet managing any tools"
    elif count == 1:
        phrase = "already managing one tool"
    else:
        phrase = f"already managing {count} tools"
    click.echo(
        f"{PROG_NAME} is {phrase}.\n"
        f"To install more tools, run: {PROG_NAME} install github:<GitHub user>/<GitHub repository>\n"
        f"To list {PROG_NAME}-managed tools, run: {PROG_NAME} list\n"
        f"To list installed versions of a tool, run: {PROG_NAME} list <tool name>\n"
        f"For additional help, run: {PROG_NAME} --help"
    )


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name=PROG_NAME)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option(
    "--debug",
    "-D",
    is_flag=True,
    help="Enable debug logging (also enabled by setting TOOLSHIM_DEBUG to any value).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, debug: bool) -> None:
    """toolshim - install command-line tools and switch their versions per project."""
    _setup_logging(debug=debug, verbose=verbose)

    ctx.ensure_object(dict)
    with _cli_errors():
        ctx.obj["config"] = load_config()

    _display_preflight_check(_config(ctx))
    if ctx.invoked_subcommand is None:
        _display_getting_started(_config(ctx))


@cli.command()
@click.argument("tool_spec", metavar="<provider>:<source>[:version]")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(ctx: click.Context, tool_spec: str, as_json: bool) -> None:
    """Install a command-line tool.

    If no version is given, the latest release is installed (never a
    pre-release). A partial version such as 1.2 installs the newest
    matching 1.2.x.

    \b
    Providers:
      github|gh        <GitHub user>/<GitHub repository>
      hashicorp|hashi  <HashiCorp product name>

    \b
    Examples:
      toolshim install github:fairwindsops/rbac-lookup
      toolshim install github:fairwindsops/rbac-lookup:0.9.0
      toolshim install hashicorp:terraform:1.2
    """
    from toolshim.core.services.tool_install.execution.installer import install_tool

    with _cli_errors():
        result = install_tool(tool_spec, _config(ctx))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return
    click.secho(f"Installed {result.tool_name} {result.version}", fg="green")


@cli.command()
@click.argument("tool", metavar="<tool name>[:version]")
@click.pass_context
def uninstall(ctx: click.Context, tool: str) -> None:
    """Uninstall one version of a tool, or all of its versions.

    The version must be exact, as shown by: toolshim list <tool name>
    """
    from toolshim.core.services.tool_install.execution.managed_tool import ManagedTool

    name, _, version = tool.partition(":")
    managed = ManagedTool(name, _config(ctx))
    with _cli_errors():
        if version:
            if not managed.uninstall_version(version):
                raise NotFoundError(f"version {version} of {name} is not installed")
            click.echo(f"Uninstalled {name} {version}")
            return
        removed = managed.uninstall_all()
        if not removed:
            raise NotFoundError(f"no versions of {name} are installed")
    click.echo(f"Uninstalled {name} ({', '.join(removed)})")


@cli.command("list")
@click.argument("tool", required=False, metavar="[<tool name>]")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_cmd(ctx: click.Context, tool: str | None, as_json: bool) -> None:
    """List installed tools, or the installed versions of one tool."""
    from toolshim.core.services.tool_install.execution.managed_tool import (
        ManagedTool,
        list_installed_tools,
    )

    config = _config(ctx)
    if tool:
        items = ManagedTool(tool, config).installed_versions()
        if not items and not as_json:
            with _cli_errors():
                raise NotFoundError(f"no versions of {tool} are installed")
    else:
        items = list_installed_tools(config)

    if as_json:
        click.echo(json.dumps(items, indent=2))
        return
    for item in items:
        click.echo(item)


@cli.command()
def version() -> None:
    """Show the toolshim version."""
    click.echo(f"{PROG_NAME} version {__version__}")


# ── Shim mode ─────────────────────────────────────────────────────


def is_shim_invocation(argv0: str) -> bool:
    """Whether toolshim was started through a shim symlink."""
    name = Path(argv0).name
    return name != PROG_NAME and not name.endswith(".py")


def run_shim(tool_name: str, args: Sequence[str]) -> int:
    """Run the selected version of ``tool_name``. Returns an exit status."""
    from toolshim.core.services.tool_install.execution.managed_tool import ManagedTool

    _setup_logging()
    try:
        ManagedTool(tool_name, load_config()).run(args)
    except ToolshimError as e:
        click.echo(f"Error: {e}", err=True)
        return 1
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Console-script entry point; dispatches to shim mode by program name."""
    argv = list(sys.argv if argv is None else argv)
    if argv and is_shim_invocation(argv[0]):
        sys.exit(run_shim(Path(argv[0]).name, argv[1:]))
    cli.main(args=argv[1:], prog_name=PROG_NAME)


if __name__ == "__main__":
    main()
