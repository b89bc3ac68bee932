"""Typer application and CLI entry point for regcreds.

The commands operate on the store built from the Docker config file
(``--config``, else ``$DOCKER_CONFIG/config.json``, else
``~/.docker/config.json``)::

    regcreds store registry.example.com -u alice --password-stdin
    regcreds get registry.example.com
    regcreds login ghcr.io -u alice -p "$TOKEN"
    regcreds list
    regcreds logout ghcr.io

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.

See Also:
    :mod:`regcreds.stores`: The store implementations.
    :mod:`regcreds.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
from typing import TYPE_CHECKING, Any, Optional

import typer

from regcreds import __version__
from regcreds.exit_codes import EXIT_CANCELLED, EXIT_GENERIC_FAILURE, EXIT_INVALID_USAGE

if TYPE_CHECKING:
    from regcreds.stores import DynamicStore


app = typer.Typer(
    name="regcreds",
    help="Manage container registry credentials in Docker's config.json and credential helpers.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"regcreds {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    config_path: Optional[str] = typer.Option(
        None, "--config", "-c", help="Path to the Docker config.json."
    ),
    allow_plaintext: bool = typer.Option(
        False,
        "--allow-plaintext",
        help="Allow saving credentials in plaintext when no helper is configured.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~regcreds.output.OutputManager` and the
    library log handler from CLI flags, and stores the store settings in
    ``ctx.obj`` for the sub-commands.
    """
    from regcreds.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(
        format=fmt,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
    )
    set_output(output)
    output.install_log_handler()

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["allow_plaintext"] = allow_plaintext


def _open_store(ctx: typer.Context) -> DynamicStore:
    """Build the :class:`~regcreds.stores.DynamicStore` for the invocation."""
    from regcreds.config import default_config_path
    from regcreds.models import StoreOptions
    from regcreds.stores import new_store

    obj = ctx.obj or {}
    path = obj.get("config_path") or default_config_path()
    options = StoreOptions(allow_plaintext_put=obj.get("allow_plaintext", False))
    return new_store(path, options)


def _read_secret(password: Optional[str], password_stdin: bool, prompt: str) -> str:
    """Resolve a secret from ``--password``, ``--password-stdin`` or a prompt."""
    from regcreds.output import error

    if password is not None and password_stdin:
        error("--password and --password-stdin are mutually exclusive.")
        raise typer.Exit(code=EXIT_INVALID_USAGE)
    if password_stdin:
        return sys.stdin.read().rstrip("\r\n")
    if password is not None:
        return password
    return typer.prompt(prompt, hide_input=True)


# ------------------------------------------------------------------ #
# Store commands
# ------------------------------------------------------------------ #


@app.command("get")
def get_command(
    ctx: typer.Context,
    server: str = typer.Argument(help="Server address, e.g. registry.example.com."),
) -> None:
    """Print the credential stored for SERVER.

    The credential, secrets included, goes to stdout.  Nothing stored is
    not an error: the empty credential is printed.
    """
    from regcreds.output import get_output

    cred = _open_store(ctx).get(server)
    get_output().format_data(cred.model_dump())


@app.command("store")
def store_command(
    ctx: typer.Context,
    server: str = typer.Argument(help="Server address, e.g. registry.example.com."),
    username: str = typer.Option("", "--username", "-u", help="Username."),
    password: Optional[str] = typer.Option(
        None, "--password", "-p", help="Password (prefer --password-stdin)."
    ),
    password_stdin: bool = typer.Option(
        False, "--password-stdin", help="Read the password from stdin."
    ),
    identity_token: str = typer.Option(
        "", "--identity-token", help="OAuth2 refresh token to store."
    ),
    access_token: str = typer.Option(
        "", "--access-token", help="Registry bearer token to store."
    ),
) -> None:
    """Save a credential for SERVER without contacting the registry."""
    from regcreds.models import Credential
    from regcreds.output import success, warning

    secret = ""
    if password is not None or password_stdin or not (identity_token or access_token):
        secret = _read_secret(password, password_stdin, "Password")
    cred = Credential(
        username=username,
        password=secret,
        refresh_token=identity_token,
        access_token=access_token,
    )
    store = _open_store(ctx)
    store.put(server, cred)
    if not store.get_helper_suffix(server):
        warning(f"Credential stored unencrypted in {store.config.path}.")
    success(f"Stored credential for {server}.")


@app.command("erase")
def erase_command(
    ctx: typer.Context,
    server: str = typer.Argument(help="Server address, e.g. registry.example.com."),
) -> None:
    """Remove the credential stored for SERVER.  Erasing nothing succeeds."""
    from regcreds.output import success

    _open_store(ctx).delete(server)
    success(f"Erased credential for {server}.")


@app.command("list")
def list_command(ctx: typer.Context) -> None:
    """List configured servers and the backend that serves each one."""
    from regcreds.output import get_output, info
    from regcreds.stores.native_store import HELPER_PREFIX

    store = _open_store(ctx)
    servers = set(store.config.server_addresses()) | set(store.config.credential_helpers)
    if not servers:
        info("No servers configured.")
        return

    rows = []
    for server in sorted(servers):
        helper = store.get_helper_suffix(server)
        rows.append([server, HELPER_PREFIX + helper if helper else "config file"])
    get_output().print_table(["server", "backend"], rows, title="Configured registries")


# ------------------------------------------------------------------ #
# Registry commands
# ------------------------------------------------------------------ #


@app.command("login")
def login_command(
    ctx: typer.Context,
    registry: str = typer.Argument(help="Registry name, e.g. ghcr.io or docker.io."),
    username: str = typer.Option(..., "--username", "-u", help="Username."),
    password: Optional[str] = typer.Option(
        None, "--password", "-p", help="Password (prefer --password-stdin)."
    ),
    password_stdin: bool = typer.Option(
        False, "--password-stdin", help="Read the password from stdin."
    ),
    plain_http: bool = typer.Option(
        False, "--plain-http", help="Contact the registry over plain HTTP."
    ),
) -> None:
    """Verify a credential against REGISTRY and save it."""
    from regcreds.models import Credential
    from regcreds.output import success
    from regcreds.registry import RegistryClient, login

    secret = _read_secret(password, password_stdin, "Password")
    login(
        _open_store(ctx),
        RegistryClient(registry, plain_http=plain_http),
        Credential(username=username, password=secret),
    )
    success("Login Succeeded")


@app.command("logout")
def logout_command(
    ctx: typer.Context,
    registry: str = typer.Argument(help="Registry name, e.g. ghcr.io or docker.io."),
) -> None:
    """Remove the saved credential for REGISTRY."""
    from regcreds.output import success
    from regcreds.registry import logout

    logout(_open_store(ctx), registry)
    success(f"Removed login credentials for {registry}.")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``regcreds`` console script.

    :class:`~regcreds.exceptions.RegcredsError` instances cause a clean
    exit with the error's ``exit_code``.  Any other exception is reported
    and exits with a generic failure.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)
    except Exception as exc:
        from regcreds.exceptions import PlaintextPutDisabledError, RegcredsError
        from regcreds.output import error, suggest

        if isinstance(exc, RegcredsError):
            error(str(exc))
            if isinstance(exc, PlaintextPutDisabledError):
                suggest("Pass --allow-plaintext, or configure credsStore or credHelpers in the config file.")
            sys.exit(exc.exit_code)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
