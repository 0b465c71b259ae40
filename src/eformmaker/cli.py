from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, TypeVar

import httpx
import orjson
import typer

from eformmaker.api_client import FormsApiClient
from eformmaker.config import Settings
from eformmaker.errors import ApiError, EFormError, error_message
from eformmaker.fields import defaults_for
from eformmaker.local_store import LocalStore, storage_key
from eformmaker.logging_config import setup_logging
from eformmaker.preview import render_preview
from eformmaker.schema import known_field_types, parse_fields_json
from eformmaker.state import FormState
from eformmaker.utils import dumps_json, loads_json, to_safe_identifier, to_safe_upper_identifier
from eformmaker.versioning import VersioningController, describe_draft, describe_version

T = TypeVar("T")

cli = typer.Typer(add_completion=False, help="Form builder editing tools.")


class ConsoleNotifier:
    _COLORS = {
        "success": typer.colors.GREEN,
        "danger": typer.colors.RED,
        "warning": typer.colors.YELLOW,
    }

    def show(self, message: str, kind: str = "info", duration: float = 5.0) -> None:
        typer.secho(message, fg=self._COLORS.get(kind), err=True)


def make_client(settings: Settings) -> FormsApiClient:
    return FormsApiClient.from_settings(settings)


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj["settings"]


def _print_json(value: Any) -> None:
    typer.echo(orjson.dumps(value, option=orjson.OPT_INDENT_2).decode("utf-8"))


def _run(ctx: typer.Context, action: Callable[[FormsApiClient], Awaitable[T]]) -> T:
    async def runner() -> T:
        async with make_client(_settings(ctx)) as client:
            return await action(client)

    try:
        return asyncio.run(runner())
    except (EFormError, httpx.HTTPError) as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


def _controller(
    ctx: typer.Context, client: FormsApiClient, form_id: str | None = None
) -> VersioningController:
    settings = _settings(ctx)
    return VersioningController(
        client,
        FormState(form_id=form_id),
        autosave_interval=settings.autosave_interval,
        debounce_delay=settings.autosave_debounce,
        notifier=ConsoleNotifier(),
        reload_page=lambda: typer.echo("Server state changed; reload the builder."),
        navigate=lambda url: typer.echo(f"Open {url}"),
    )


@cli.callback()
def main(
    ctx: typer.Context,
    api_url: str | None = typer.Option(None, help="Root URL of the builder API"),
    log_level: str | None = typer.Option(None, help="Log level"),
) -> None:
    settings = Settings()
    if api_url:
        settings.api_url = api_url.rstrip("/")
    if log_level:
        settings.log_level = log_level.upper()
    setup_logging(settings.log_level, stream=sys.stderr)
    ctx.obj = {"settings": settings}


@cli.command()
def types() -> None:
    """List the field types the builder knows."""
    for name in known_field_types():
        typer.echo(name)


@cli.command()
def defaults(field_type: str = typer.Argument(..., help="Field type, e.g. dropdown")) -> None:
    typer.echo(dumps_json(defaults_for(field_type)._asdict()))


@cli.command()
def slug(
    text: str,
    upper: bool = typer.Option(False, "--upper", help="Upper snake case"),
) -> None:
    typer.echo(to_safe_upper_identifier(text) if upper else to_safe_identifier(text))


@cli.command("check-title")
def check_title(
    ctx: typer.Context,
    title: str,
    exclude_id: str | None = typer.Option(None, help="Form id to ignore"),
) -> None:
    async def action(client: FormsApiClient) -> bool:
        result = await client.check_title_unique(title, exclude_id)
        if not result.ok:
            raise ApiError(error_message(result.body, "Title check failed"), result.status_code)
        return bool(isinstance(result.body, dict) and result.body.get("unique"))

    typer.echo("available" if _run(ctx, action) else "taken")


@cli.command()
def show(ctx: typer.Context, form_id: str) -> None:
    async def action(client: FormsApiClient) -> Any:
        result = await client.get_form(form_id)
        if not result.ok:
            raise ApiError(error_message(result.body, f"Form {form_id} not found"), result.status_code)
        return result.body

    _print_json(_run(ctx, action))


@cli.command()
def delete(ctx: typer.Context, form_id: str) -> None:
    async def action(client: FormsApiClient) -> None:
        result = await client.delete_form(form_id)
        if not result.ok:
            raise ApiError(error_message(result.body, "Failed to delete form"), result.status_code)

    _run(ctx, action)
    typer.echo(f"Deleted {form_id}")


@cli.command()
def drafts(ctx: typer.Context) -> None:
    async def action(client: FormsApiClient) -> list[dict[str, Any]]:
        return await _controller(ctx, client).get_drafts()

    items = _run(ctx, action)
    if not items:
        typer.echo("No drafts found")
    for draft in items:
        typer.echo(f"{draft.get('id')}\t{describe_draft(draft)}")


@cli.command()
def versions(ctx: typer.Context, form_id: str) -> None:
    async def action(client: FormsApiClient) -> list[dict[str, Any]]:
        return await _controller(ctx, client, form_id).get_versions()

    items = _run(ctx, action)
    if not items:
        typer.echo("No versions found")
    for version in items:
        typer.echo(f"{version.get('id')}\t{describe_version(version)}")


@cli.command("create-version")
def create_version(
    ctx: typer.Context,
    form_id: str,
    description: str = typer.Option("", "--description", "-d", help="Change description"),
) -> None:
    async def action(client: FormsApiClient) -> dict[str, Any]:
        return await _controller(ctx, client, form_id).create_version(description)

    _print_json(_run(ctx, action))


@cli.command("publish-version")
def publish_version(ctx: typer.Context, form_id: str, version_id: str) -> None:
    async def action(client: FormsApiClient) -> dict[str, Any]:
        return await _controller(ctx, client, form_id).publish_version(version_id)

    _run(ctx, action)


@cli.command()
def rollback(ctx: typer.Context, form_id: str, version_id: str) -> None:
    async def action(client: FormsApiClient) -> dict[str, Any]:
        return await _controller(ctx, client, form_id).rollback_version(version_id)

    _run(ctx, action)


@cli.command()
def validate(path: Path = typer.Argument(..., exists=True, dir_okay=False)) -> None:
    """Check a JSON field list the way the builder does before saving."""
    _, errors = parse_fields_json(path.read_text(encoding="utf-8"))
    for message in errors:
        typer.secho(message, fg=typer.colors.RED, err=True)
    if errors:
        raise typer.Exit(code=1)
    typer.echo("OK")


@cli.command()
def preview(path: Path = typer.Argument(..., exists=True, dir_okay=False)) -> None:
    """Render a JSON field list as builder preview HTML."""
    try:
        data = loads_json(path.read_bytes())
    except orjson.JSONDecodeError as exc:
        typer.secho(f"Could not parse {path}: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    fields = data.get("fields", []) if isinstance(data, dict) else data or []
    typer.echo(render_preview(fields))


@cli.command()
def cache(
    ctx: typer.Context,
    form_id: str | None = typer.Argument(None, help="Form id; omit for the unsaved form"),
    clear: bool = typer.Option(False, "--clear", help="Drop the cached state"),
) -> None:
    """Show or clear the builder state cached on this machine."""
    store = LocalStore(_settings(ctx).local_store_path)
    if clear:
        store.clear(form_id)
        typer.echo(f"Cleared {storage_key(form_id)}")
        return
    data = store.read(form_id)
    if data is None:
        typer.echo("No cached state")
        return
    _print_json(data)
