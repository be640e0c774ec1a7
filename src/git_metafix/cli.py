"""Command line interface for git-metafix."""

import functools
import json
import logging
import sys
from pathlib import Path
from typing import Callable, Optional

import click
from rich.console import Console

from . import __version__
from .config import Config, ConfigManager
from .display import WorkflowDisplay
from .errors import ConfigError, MetafixError
from .models import RewriteRequest
from .prompting import ClickPrompter, NonInteractivePrompter, Prompter
from .utils.exception_logger import ExceptionLogger
from .workflow import IdentityRewriteWorkflow

logger = logging.getLogger(__name__)

console = Console(soft_wrap=True)

STRATEGY_CHOICES = ["auto", "filter-repo", "filter-branch"]


def identity_options(f: Callable) -> Callable:
    """Shared options seeding the rewrite request (flags or environment)."""
    options = [
        click.argument(
            "repo_path",
            required=False,
            envvar="REPO_PATH",
            type=click.Path(path_type=Path),
        ),
        click.option(
            "--old-email", envvar="OLD_EMAIL", help="Email address to replace"
        ),
        click.option("--new-email", envvar="NEW_EMAIL", help="Replacement email"),
        click.option("--old-name", envvar="OLD_NAME", help="Name to replace"),
        click.option("--new-name", envvar="NEW_NAME", help="Replacement name"),
        click.option(
            "--strategy",
            type=click.Choice(STRATEGY_CHOICES),
            default=None,
            help="Rewrite tool (default: config value, normally auto)",
        ),
        click.option(
            "--no-input",
            is_flag=True,
            help="Never prompt; missing values are an error",
        ),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def _seed(repo_path, old_email, new_email, old_name, new_name) -> RewriteRequest:
    return RewriteRequest(
        repository_path=repo_path,
        old_email=old_email,
        new_email=new_email,
        old_name=old_name,
        new_name=new_name,
    )


def _make_prompter(no_input: bool, assume_yes: bool) -> Prompter:
    if no_input:
        return NonInteractivePrompter(assume_yes=assume_yes)
    return ClickPrompter(assume_yes=assume_yes)


def _load_config(config_manager: ConfigManager) -> Config:
    try:
        return config_manager.load()
    except ValueError as e:
        raise ConfigError(str(e)) from e


def _load_workflow(
    ctx, prompter: Prompter, strategy: Optional[str]
) -> IdentityRewriteWorkflow:
    config = _load_config(ctx.obj["config_manager"])
    return IdentityRewriteWorkflow(
        config=config,
        prompter=prompter,
        display=WorkflowDisplay(console),
        strategy_preference=strategy,
    )


def handle_errors(f: Callable) -> Callable:
    """Map workflow errors to console output and exit codes."""

    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        ctx = click.get_current_context()
        display = WorkflowDisplay(console)
        try:
            return f(*args, **kwargs)
        except MetafixError as e:
            if e.is_notice:
                display.notice(e)
            else:
                display.error_panel(e, show_technical_details=ctx.obj["verbose"])
            sys.exit(e.exit_code)
        except KeyboardInterrupt:
            console.print("\nInterrupted.", style="yellow")
            sys.exit(130)
        except click.Abort:
            # EOF or Ctrl-C at a prompt
            console.print("\nAborted.", style="yellow")
            sys.exit(1)
        except Exception as e:
            exception_logger = ExceptionLogger.get_instance()
            if exception_logger:
                exception_logger.log_exception(e, context={"command": ctx.info_name})
            logger.debug("Unexpected error", exc_info=True)
            display.error_panel(e, show_technical_details=True)
            sys.exit(1)

    return wrapper


@click.group(invoke_without_command=True)
@click.option(
    "--config",
    "-c",
    type=click.Path(path_type=Path),
    help="Config file path (default: ~/.config/git-metafix/config.json)",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.version_option(version=__version__, prog_name="git-metafix")
@click.pass_context
def cli(ctx, config: Optional[Path], verbose: bool):
    """Rewrite commit author/committer email and name across git history.

    \b
    Uses git filter-repo when installed (pip install git-filter-repo),
    otherwise git filter-branch. Every commit hash changes: the result has
    to be force-pushed and collaborators must re-clone or rebase.

    \b
    EXAMPLES:
      git-metafix rewrite
      git-metafix rewrite /path/to/repo
      OLD_EMAIL=john@old.com NEW_EMAIL=john@new.com git-metafix rewrite
      git-metafix rewrite --old-name "John Doe" --new-name "John Smith"
      git-metafix inspect --old-email john@old.com --new-email john@new.com

    Do not run two instances against the same repository at once.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s:%(name)s:%(message)s",
    )

    ctx.obj["config_manager"] = ConfigManager(config)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@identity_options
@click.option(
    "--yes", "-y", is_flag=True, help="Answer yes to the rewrite confirmations"
)
@click.option(
    "--push/--no-push",
    default=None,
    help="Push the rewritten history (default: ask; with --yes, don't push)",
)
@click.pass_context
@handle_errors
def rewrite(
    ctx,
    repo_path: Optional[Path],
    old_email: Optional[str],
    new_email: Optional[str],
    old_name: Optional[str],
    new_name: Optional[str],
    strategy: Optional[str],
    no_input: bool,
    yes: bool,
    push: Optional[bool],
):
    """Rewrite author/committer identity in all branches and tags.

    REPO_PATH defaults to the current directory (or $REPO_PATH).
    """
    workflow = _load_workflow(ctx, _make_prompter(no_input, yes), strategy)
    workflow.run(
        _seed(repo_path, old_email, new_email, old_name, new_name), push=push
    )
    console.print()
    console.print("Email/name replacement completed!", style="bold green")


@cli.command()
@identity_options
@click.pass_context
@handle_errors
def inspect(
    ctx,
    repo_path: Optional[Path],
    old_email: Optional[str],
    new_email: Optional[str],
    old_name: Optional[str],
    new_name: Optional[str],
    strategy: Optional[str],
    no_input: bool,
):
    """Dry run: show what a rewrite would change, without changing it."""
    workflow = _load_workflow(ctx, _make_prompter(no_input, False), strategy)
    workflow.preview(_seed(repo_path, old_email, new_email, old_name, new_name))


@cli.command("config")
@click.option("--init", "init_", is_flag=True, help="Write the defaults to the config file")
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing config file")
@click.pass_context
@handle_errors
def config_command(ctx, init_: bool, force: bool):
    """Show the effective configuration."""
    config_manager: ConfigManager = ctx.obj["config_manager"]

    if init_:
        if config_manager.config_path.exists() and not force:
            console.print(
                f"Config already exists: {config_manager.config_path} (use --force)",
                style="yellow",
                markup=False,
            )
            sys.exit(1)

        config_manager.save(Config())
        console.print(
            f"✅ Wrote default configuration to {config_manager.config_path}",
            style="green",
            markup=False,
        )

    config = _load_config(config_manager)
    click.echo(json.dumps(config.model_dump(), indent=2))


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
