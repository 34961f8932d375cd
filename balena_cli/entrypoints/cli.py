import json
import logging
import os
import sys
from typing import Callable, NoReturn, Sequence, TypeVar

import typer

from balena_cli.adapters.api.pine_client import get_shared_client
from balena_cli.adapters.errors import AdapterError
from balena_cli.adapters.settings.balenarc import load_settings
from balena_cli.application import devices as device_cases
from balena_cli.application import fleets as fleet_cases
from balena_cli.application import releases as release_cases
from balena_cli.application import tags as tag_cases
from balena_cli.application.result_serialization import serialize_result
from balena_cli.domain.diagnostics import Severity
from balena_cli.domain.result import Result
from balena_cli.entrypoints.log_setup import configure_logging
from balena_cli.entrypoints.tables import horizontal, vertical
from balena_cli.ports.balena_api import BalenaApiPort
from balena_cli.version import __version__

T = TypeVar("T")

logger = logging.getLogger(__name__)

DEVICE_COLUMNS = [
    "id",
    "uuid",
    "device_name",
    "device_type",
    "fleet",
    "status",
    "is_online",
    "os_version",
]
DEVICE_FIELDS = [
    "id",
    "device_type",
    "status",
    "is_online",
    "ip_address",
    "fleet",
    "last_seen",
    "uuid",
    "commit",
    "supervisor_version",
    "os_version",
    "note",
]
FLEET_COLUMNS = ["id", "app_name", "slug", "device_type"]
FLEET_FIELDS = ["id", "slug", "device_type", "organization"]
RELEASE_COLUMNS = ["id", "commit", "created_at", "status", "semver", "is_final"]
RELEASE_FIELDS = ["id", "commit", "created_at", "status", "semver", "is_final"]
TAG_COLUMNS = ["tag_key", "value"]

app = typer.Typer(add_completion=False, no_args_is_help=True)
device_app = typer.Typer(no_args_is_help=True, help="Manage a single device.")
fleet_app = typer.Typer(no_args_is_help=True, help="Manage a single fleet.")
release_app = typer.Typer(no_args_is_help=True, help="Inspect a single release.")
tag_app = typer.Typer(no_args_is_help=True, help="Set or remove resource tags.")
app.add_typer(device_app, name="device")
app.add_typer(fleet_app, name="fleet")
app.add_typer(release_app, name="release")
app.add_typer(tag_app, name="tag")

FleetOption = typer.Option(None, "--fleet", "-f", help="fleet name, slug (org/name) or id")
DeviceOption = typer.Option(None, "--device", "-d", help="device UUID or id")
ReleaseOption = typer.Option(None, "--release", "-r", help="release id or commit")
JsonOption = typer.Option(False, "--json", "-j", help="produce JSON output")


def _api() -> BalenaApiPort:
    return get_shared_client(load_settings())


def _report_diagnostics(result: Result[T]) -> None:
    for diag in result.diagnostics:
        if diag.severity == Severity.ERROR:
            typer.echo(diag.message, err=True)
        elif diag.severity == Severity.WARN:
            typer.echo(f"Warning: {diag.message}", err=True)
        else:
            continue
        if diag.hint:
            typer.echo(diag.hint, err=True)


def _finish(
    result: Result[T],
    render: Callable[[T], str] | None = None,
    *,
    json_output: bool = False,
    command: str = "",
    args: list[str] | None = None,
) -> NoReturn:
    if json_output:
        typer.echo(json.dumps(serialize_result(result, command, args or []), indent=2))
    else:
        _report_diagnostics(result)
        if result.ok and render is not None and result.value is not None:
            typer.echo(render(result.value))
    raise typer.Exit(result.exit_code)


@app.callback()
def _root(
    debug: bool = typer.Option(False, "--debug", help="print debug information"),
) -> None:
    """Manage balena fleets, devices, releases and tags."""
    if debug:
        configure_logging(True)


@app.command()
def version() -> None:
    """Display the CLI version."""
    typer.echo(__version__)


@app.command()
def devices(fleet: str | None = FleetOption, json_output: bool = JsonOption) -> None:
    """List all devices, optionally filtered by fleet."""
    result = device_cases.list_devices(_api(), fleet)
    _finish(
        result,
        lambda items: horizontal(items, DEVICE_COLUMNS),
        json_output=json_output,
        command="devices",
        args=[fleet] if fleet else [],
    )


@device_app.command("info")
def device_info(uuid: str = typer.Argument(..., help="the device uuid or id")) -> None:
    """Show information about a single device."""
    result = device_cases.device_info(_api(), uuid)
    _finish(result, lambda d: vertical(d, DEVICE_FIELDS, title=d.device_name))


@device_app.command("register")
def device_register(
    fleet: str = typer.Argument(..., help="the fleet to register the device to"),
    uuid: str | None = typer.Option(None, "--uuid", "-u", help="custom uuid"),
) -> None:
    """Register a new device to a fleet."""
    result = device_cases.register_device(_api(), fleet, uuid)
    _finish(result, lambda d: f"Registered to {d.fleet or fleet}: {d.uuid}")


@device_app.command("rm")
def device_rm(
    uuid: str = typer.Argument(..., help="the device uuid or id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="answer yes to all confirmations"),
) -> None:
    """Remove a device."""
    if not yes:
        typer.confirm("Are you sure you want to delete the device?", abort=True)
    _finish(device_cases.remove_device(_api(), uuid))


@device_app.command("identify")
def device_identify(uuid: str = typer.Argument(..., help="the device uuid or id")) -> None:
    """Identify a device, e.g. by blinking its activity LED."""
    _finish(device_cases.identify_device(_api(), uuid))


@device_app.command("rename")
def device_rename(
    uuid: str = typer.Argument(..., help="the device uuid or id"),
    new_name: str | None = typer.Argument(None, help="the new device name"),
) -> None:
    """Rename a device, asking for the name when it is omitted."""
    if not new_name:
        new_name = typer.prompt("How do you want to name this device?")
    _finish(device_cases.rename_device(_api(), uuid, new_name))


@device_app.command("move")
def device_move(
    uuid: str = typer.Argument(..., help="the device uuid or id"),
    fleet: str = typer.Option(..., "--fleet", "-f", help="the destination fleet"),
) -> None:
    """Move a device to another fleet."""
    result = device_cases.move_device(_api(), uuid, fleet)
    _finish(result, lambda f: f"{uuid} was moved to {f.app_name}")


@app.command()
def fleets(json_output: bool = JsonOption) -> None:
    """List all fleets you have access to."""
    result = fleet_cases.list_fleets(_api())
    _finish(
        result,
        lambda items: horizontal(items, FLEET_COLUMNS),
        json_output=json_output,
        command="fleets",
    )


@fleet_app.command("info")
def fleet_info(fleet: str = typer.Argument(..., help="fleet name, slug or id")) -> None:
    """Show information about a single fleet."""
    result = fleet_cases.fleet_info(_api(), fleet)
    _finish(result, lambda f: vertical(f, FLEET_FIELDS, title=f.app_name))


@fleet_app.command("create")
def fleet_create(
    name: str = typer.Argument(..., help="the fleet name"),
    device_type: str = typer.Option(..., "--type", "-t", help="fleet device type slug"),
) -> None:
    """Create a new fleet."""
    result = fleet_cases.create_fleet(_api(), name, device_type)
    _finish(result, lambda f: f"Fleet created: {f.slug or f.app_name} ({f.device_type}, id {f.id})")


@app.command()
def releases(
    fleet: str = typer.Argument(..., help="fleet name, slug or id"),
    json_output: bool = JsonOption,
) -> None:
    """List the releases of a fleet, newest first."""
    result = release_cases.list_releases(_api(), fleet)
    _finish(
        result,
        lambda items: horizontal(items, RELEASE_COLUMNS),
        json_output=json_output,
        command="releases",
        args=[fleet],
    )


@release_app.command("info")
def release_info(release: str = typer.Argument(..., help="release id or commit")) -> None:
    """Show information about a single release."""
    result = release_cases.release_info(_api(), release)
    _finish(result, lambda r: vertical(r, RELEASE_FIELDS, title=r.commit))


@app.command()
def tags(
    fleet: str | None = FleetOption,
    device: str | None = DeviceOption,
    release: str | None = ReleaseOption,
    json_output: bool = JsonOption,
) -> None:
    """List the tags of a fleet, device or release."""
    result = tag_cases.list_tags(_api(), fleet=fleet, device=device, release=release)
    _finish(
        result,
        lambda items: horizontal(items, TAG_COLUMNS),
        json_output=json_output,
        command="tags",
    )


@tag_app.command("set")
def tag_set(
    tag_key: str = typer.Argument(..., help="the key string of the tag"),
    value: str = typer.Argument("", help="the optional value associated with the tag"),
    fleet: str | None = FleetOption,
    device: str | None = DeviceOption,
    release: str | None = ReleaseOption,
) -> None:
    """Set a tag on a fleet, device or release."""
    result = tag_cases.set_tag(
        _api(), tag_key, value, fleet=fleet, device=device, release=release
    )
    _finish(result)


@tag_app.command("rm")
def tag_rm(
    tag_key: str = typer.Argument(..., help="the key string of the tag"),
    fleet: str | None = FleetOption,
    device: str | None = DeviceOption,
    release: str | None = ReleaseOption,
) -> None:
    """Remove a tag from a fleet, device or release."""
    result = tag_cases.remove_tag(_api(), tag_key, fleet=fleet, device=device, release=release)
    _finish(result)


def _exit_code(code: object) -> int:
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    typer.echo(str(code), err=True)
    return 1


def run(argv: Sequence[str], *, no_flush: bool = False) -> int:
    """Run the CLI and return its exit code instead of exiting the process.

    ``argv`` is a full process vector: interpreter, launcher script, then the
    command arguments, as in ``[sys.executable, *sys.argv]``. Unless
    ``no_flush`` is set the standard streams are flushed before returning.
    """
    configure_logging(bool(os.environ.get("DEBUG")))
    command = typer.main.get_command(app)
    try:
        command.main(args=list(argv[2:]), prog_name="balena", standalone_mode=True)
        exit_code = 0
    except SystemExit as e:
        exit_code = _exit_code(e.code)
    except AdapterError as e:
        logger.debug("Command failed: %r", e)
        typer.echo(f"Error: {e}", err=True)
        if e.hint:
            typer.echo(e.hint, err=True)
        exit_code = 1
    finally:
        if not no_flush:
            sys.stdout.flush()
            sys.stderr.flush()
    return exit_code


def main() -> None:
    sys.exit(run([sys.executable, *sys.argv]))
