"""Command-line interface for spaces-browser.

Commands:
    - login: Validate and store credentials
    - logout: Forget stored credentials
    - buckets: List buckets for the stored credentials
    - ls: List one folder level of a bucket
    - url: Print the public URL of an object
"""

import logging
from typing import Annotated, Optional

import typer

from .controller import NotConnectedError, SpacesBrowserController
from .exceptions import SpacesError
from .hierarchy import project
from .models import Credentials, File, Folder
from .settings import AppSettings, SettingsStorage
from .ui_utils import format_last_modified, format_size, load_package_info

app = typer.Typer(
    name="spaces-browser",
    help="Browse buckets and objects stored in DigitalOcean Spaces.",
    no_args_is_help=True,
)


def _load_settings() -> AppSettings:
    return SettingsStorage().load()


def _build_controller(settings: AppSettings | None = None) -> SpacesBrowserController:
    return SpacesBrowserController(settings=settings or _load_settings())


def _connected_controller() -> SpacesBrowserController:
    controller = _build_controller()
    if not controller.restore():
        typer.echo("Not logged in. Run 'spaces-browser login' first.", err=True)
        raise typer.Exit(code=1)
    return controller


def _fail(exc: Exception) -> None:
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(code=1)


def version_callback(value: bool) -> None:
    """Display version information."""
    if value:
        info = load_package_info()
        typer.echo(f"{info.name} {info.version}".strip())
        raise typer.Exit()


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging."),
    ] = False,
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version."),
    ] = None,
) -> None:
    """Spaces Browser: list buckets and browse objects as folders."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


@app.command()
def login(
    access_key: Annotated[str, typer.Option("--access-key", prompt=True, help="Access key id.")],
    secret_key: Annotated[
        str,
        typer.Option("--secret-key", prompt=True, hide_input=True, help="Secret access key."),
    ],
    region: Annotated[
        Optional[str],
        typer.Option("--region", help="Region, e.g. nyc3. Defaults to the configured region."),
    ] = None,
) -> None:
    """Validate credentials by listing buckets, then store them."""
    settings = _load_settings()
    controller = _build_controller(settings)
    credentials = Credentials(
        access_key_id=access_key.strip(),
        secret_access_key=secret_key.strip(),
        region=(region or settings.default_region).strip(),
    )
    try:
        buckets = controller.login(credentials)
    except SpacesError as exc:
        _fail(exc)
    else:
        typer.echo(f"Logged in to {controller.client.endpoint} ({len(buckets)} bucket(s)).")


@app.command()
def logout() -> None:
    """Forget stored credentials."""
    _build_controller().logout()
    typer.echo("Logged out.")


@app.command()
def buckets() -> None:
    """List buckets."""
    controller = _connected_controller()
    try:
        records = controller.list_buckets()
    except SpacesError as exc:
        _fail(exc)
    else:
        for record in records:
            typer.echo(f"{record.name}\t{record.region}\t{format_last_modified(record.created_at)}")


@app.command("ls")
def list_folder(
    bucket: Annotated[str, typer.Argument(help="Bucket name.")],
    prefix: Annotated[str, typer.Argument(help="Folder prefix, e.g. 'photos/2024/'.")] = "",
    flat: Annotated[bool, typer.Option("--flat", help="List every key below the prefix.")] = False,
) -> None:
    """List the folders and files directly below PREFIX."""
    if prefix and not prefix.endswith("/") and not flat:
        prefix += "/"
    controller = _connected_controller()
    try:
        objects = controller.client.list_objects(bucket, prefix)
    except (SpacesError, NotConnectedError, ValueError) as exc:
        _fail(exc)
        return
    if flat:
        for record in objects:
            typer.echo(f"{format_size(record.size):>10}  {format_last_modified(record.last_modified)}  {record.key}")
        return
    level = project(objects, prefix)
    if level.is_empty:
        typer.echo("This folder is empty.")
        return
    for entry in level.entries():
        if isinstance(entry, Folder):
            typer.echo(f"{'DIR':>10}  {'':19}  {entry.name}/")
        elif isinstance(entry, File):
            record = entry.record
            typer.echo(f"{format_size(record.size):>10}  {format_last_modified(record.last_modified)}  {entry.name}")


@app.command()
def url(
    bucket: Annotated[str, typer.Argument(help="Bucket name.")],
    key: Annotated[str, typer.Argument(help="Object key.")],
) -> None:
    """Print the public URL of an object."""
    controller = _connected_controller()
    typer.echo(controller.client.object_url(bucket, key))
