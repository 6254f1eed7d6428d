"""Top-level `textassist settings` command group."""

from __future__ import annotations

import contextlib
import json
from pathlib import Path
from typing import Any, Iterator, Optional, Tuple

import click
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from textassist.core.config import (
    AuthKind,
    InferenceBaseConfig,
    ModelConfig,
    ProviderConfig,
    ProviderKind,
)
from textassist.core.errors import ProviderNotFoundError, SettingsError
from textassist.core.settings_repository import SettingsRepository
from textassist.core.settings_service import SettingsService
from textassist.utils.path_utils import SettingsPaths


_PROVIDER_KIND_CHOICES = [kind.value for kind in ProviderKind]
_AUTH_KIND_CHOICES = [kind.value for kind in AuthKind]


def _console() -> Console:
    return Console(soft_wrap=True)


def _service(ctx: click.Context) -> SettingsService:
    root = ctx.find_root()
    obj = root.obj if isinstance(root.obj, dict) else {}
    service = obj.get("service")
    if service is None:
        config_dir = obj.get("config_dir")
        paths = SettingsPaths(folder=Path(config_dir) if config_dir else None)
        service = SettingsService(SettingsRepository(paths))
        if isinstance(root.obj, dict):
            root.obj["service"] = service
    return service


@contextlib.contextmanager
def _settings_errors() -> Iterator[None]:
    try:
        yield
    except SettingsError as exc:
        raise click.ClickException(str(exc)) from exc


def _resolve_provider(service: SettingsService, ref: str) -> ProviderConfig:
    """Look a provider up by id first, then by exact name."""
    try:
        return service.get_provider(ref)
    except ProviderNotFoundError:
        return service.find_provider_by_name(ref)


def _parse_headers(entries: Tuple[str, ...]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for entry in entries:
        if "=" in entry:
            key, value = entry.split("=", 1)
        elif ":" in entry:
            key, value = entry.split(":", 1)
        else:
            raise click.BadParameter(
                f"Invalid header {entry!r}; use 'Name=Value' or 'Name: Value'.",
                param_hint="--header",
            )
        key = key.strip()
        if not key:
            raise click.BadParameter(f"Invalid header {entry!r}: empty name.", param_hint="--header")
        headers[key] = value.strip()
    return headers


def _dump(model: Any) -> Any:
    return model.model_dump(mode="json", by_alias=True)


def _auth_label(provider: ProviderConfig) -> str:
    if provider.auth_kind == AuthKind.NONE:
        return "none"
    if provider.load_auth_token_from_env:
        return f"{provider.auth_kind.value} (${provider.env_var_name})"
    return f"{provider.auth_kind.value} ({'***' if provider.auth_token else 'not set'})"


@click.group(name="settings", invoke_without_command=True, help="Inspect and edit TextAssist settings.")
@click.pass_context
def settings_group(ctx: click.Context) -> None:
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@settings_group.command(name="show")
@click.option("--json", "json_output", is_flag=True, help="Output the raw settings document.")
@click.pass_context
def show_settings(ctx: click.Context, json_output: bool) -> None:
    """Show the current settings."""
    with _settings_errors():
        settings = _service(ctx).get_settings()
    if json_output:
        click.echo(settings.to_json())
        return

    console = _console()
    current = settings.current_provider
    console.print(f"[bold]Current provider:[/bold] {escape(current.name)} ({escape(current.base_url)})")
    console.print(f"[bold]Providers:[/bold] {len(settings.available_providers)}")
    inference = settings.inference
    console.print(
        f"[bold]Inference:[/bold] timeout {inference.timeout_seconds}s, "
        f"retries {inference.max_retries}, markdown {'on' if inference.use_markdown_output else 'off'}"
    )
    model = settings.model
    temperature = f"{model.temperature:g}" if model.use_temperature else "provider default"
    console.print(
        f"[bold]Model:[/bold] {escape(model.name) if model.name else 'Not selected'} "
        f"(temperature {temperature})"
    )
    language = settings.language
    console.print(
        f"[bold]Languages:[/bold] {escape(language.default_input_language)} -> "
        f"{escape(language.default_output_language)} ({len(language.languages)} supported)"
    )


@settings_group.command(name="metadata")
@click.option("--json", "json_output", is_flag=True, help="Output machine-readable JSON.")
@click.pass_context
def show_metadata(ctx: click.Context, json_output: bool) -> None:
    """Show supported enum values and settings locations."""
    with _settings_errors():
        metadata = _service(ctx).get_app_settings_metadata()
    if json_output:
        click.echo(json.dumps(_dump(metadata), indent=2, ensure_ascii=False))
        return
    click.echo(f"Settings folder: {metadata.settings_folder}")
    click.echo(f"Settings file: {metadata.settings_file}")
    click.echo(f"Provider types: {', '.join(kind.value for kind in metadata.provider_kinds)}")
    click.echo(f"Auth types: {', '.join(kind.value for kind in metadata.auth_kinds)}")


@settings_group.command(name="init")
@click.pass_context
def init_settings(ctx: click.Context) -> None:
    """Create the default settings file if none exists."""
    service = _service(ctx)
    with _settings_errors():
        created = service.init_defaults_if_absent()
        path = service.repository.settings_file
    if created:
        click.echo(f"Created default settings at {path}")
    else:
        click.echo(f"Settings file already exists at {path}")


@settings_group.command(name="reset")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def reset_settings(ctx: click.Context, yes: bool) -> None:
    """Replace all settings with the defaults."""
    if not yes:
        click.confirm("Reset all settings to defaults?", abort=True)
    with _settings_errors():
        _service(ctx).reset_to_default()
    click.echo("Settings reset to defaults.")


# ----------------------------------------------------------------------
# Providers


@settings_group.group(name="providers", invoke_without_command=True, help="Manage provider profiles.")
@click.pass_context
def providers_group(ctx: click.Context) -> None:
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@providers_group.command(name="list")
@click.option("--json", "json_output", is_flag=True, help="Output machine-readable JSON.")
@click.pass_context
def list_providers(ctx: click.Context, json_output: bool) -> None:
    with _settings_errors():
        service = _service(ctx)
        providers = service.get_all_providers()
        current_id = service.get_settings().current_provider.id
    if json_output:
        click.echo(json.dumps([_dump(p) for p in providers], indent=2, ensure_ascii=False))
        return
    if not providers:
        click.echo("No providers configured.")
        return

    table = Table(box=box.SIMPLE_HEAVY)
    table.add_column("", width=1)
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Base URL")
    table.add_column("Auth")
    table.add_column("ID", overflow="fold")
    for provider in providers:
        table.add_row(
            "*" if provider.id == current_id else "",
            escape(provider.name),
            provider.provider_kind.value,
            escape(provider.base_url),
            escape(_auth_label(provider)),
            provider.id,
        )
    _console().print(table)


@providers_group.command(name="show")
@click.argument("provider")
@click.option("--json", "json_output", is_flag=True, help="Output machine-readable JSON.")
@click.pass_context
def show_provider(ctx: click.Context, provider: str, json_output: bool) -> None:
    """Show one provider, by id or name."""
    with _settings_errors():
        cfg = _resolve_provider(_service(ctx), provider)
    if json_output:
        click.echo(json.dumps(_dump(cfg), indent=2, ensure_ascii=False))
        return
    click.echo(f"Name: {cfg.name}")
    click.echo(f"ID: {cfg.id}")
    click.echo(f"Type: {cfg.provider_kind.value}")
    click.echo(f"Base URL: {cfg.base_url}")
    if cfg.use_custom_model_list:
        click.echo(f"Models: {', '.join(cfg.custom_models)}")
    else:
        click.echo(f"Models endpoint: {cfg.models_endpoint}")
    click.echo(f"Completion endpoint: {cfg.completion_endpoint}")
    click.echo(f"Auth: {_auth_label(cfg)}")
    if cfg.use_custom_headers and cfg.headers:
        click.echo("Headers:")
        for key, value in cfg.headers.items():
            click.echo(f"  {key}: {value}")


def _provider_fields(
    provider_kind: Optional[str],
    base_url: Optional[str],
    models_endpoint: Optional[str],
    completion_endpoint: Optional[str],
    auth: Optional[str],
    token: Optional[str],
    token_env: Optional[str],
    header_entries: Tuple[str, ...],
    models: Tuple[str, ...],
) -> dict[str, Any]:
    """Collect the provider fields given on the command line."""
    fields: dict[str, Any] = {}
    if provider_kind is not None:
        fields["provider_kind"] = ProviderKind(provider_kind)
    if base_url is not None:
        fields["base_url"] = base_url
    if models_endpoint is not None:
        fields["models_endpoint"] = models_endpoint
    if completion_endpoint is not None:
        fields["completion_endpoint"] = completion_endpoint
    if auth is not None:
        fields["auth_kind"] = AuthKind(auth)
    if token is not None:
        fields["auth_token"] = token
        fields["load_auth_token_from_env"] = False
    if token_env is not None:
        fields["env_var_name"] = token_env
        fields["load_auth_token_from_env"] = True
    if header_entries:
        fields["headers"] = _parse_headers(header_entries)
        fields["use_custom_headers"] = True
    if models:
        fields["custom_models"] = tuple(models)
        fields["use_custom_model_list"] = True
    return fields


def _provider_options(func: Any) -> Any:
    options = [
        click.option("--type", "provider_kind", type=click.Choice(_PROVIDER_KIND_CHOICES), default=None, help="Provider protocol."),
        click.option("--base-url", default=None, help="Absolute http(s) URL ending with '/'."),
        click.option("--models-endpoint", default=None, help="Relative path of the model list endpoint."),
        click.option("--completion-endpoint", default=None, help="Relative path of the chat completion endpoint."),
        click.option("--auth", type=click.Choice(_AUTH_KIND_CHOICES), default=None, help="Authentication type."),
        click.option("--token", default=None, help="Literal auth token."),
        click.option("--token-env", default=None, help="Read the auth token from this environment variable."),
        click.option("--header", "header_entries", multiple=True, help="Custom header (`Name=Value` or `Name: Value`)."),
        click.option("--model", "models", multiple=True, help="Custom model name; replaces the models endpoint."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@providers_group.command(name="add")
@click.argument("name")
@_provider_options
@click.option("--use", "make_current", is_flag=True, help="Make the new provider current.")
@click.pass_context
def add_provider(
    ctx: click.Context,
    name: str,
    provider_kind: Optional[str],
    base_url: Optional[str],
    models_endpoint: Optional[str],
    completion_endpoint: Optional[str],
    auth: Optional[str],
    token: Optional[str],
    token_env: Optional[str],
    header_entries: Tuple[str, ...],
    models: Tuple[str, ...],
    make_current: bool,
) -> None:
    """Add a provider profile."""
    fields = _provider_fields(
        provider_kind,
        base_url,
        models_endpoint,
        completion_endpoint,
        auth,
        token,
        token_env,
        header_entries,
        models,
    )
    fields.setdefault("provider_kind", ProviderKind.OPENAI_COMPATIBLE)
    fields.setdefault("completion_endpoint", "v1/chat/completions")
    if not fields.get("use_custom_model_list"):
        fields.setdefault("models_endpoint", "v1/models")
    if "auth_kind" not in fields and (token or token_env):
        fields["auth_kind"] = AuthKind.BEARER

    service = _service(ctx)
    with _settings_errors():
        created = service.create_provider(ProviderConfig(name=name, **fields))
        if make_current:
            service.set_current_provider(created.id)
    click.echo(f"Added provider '{created.name}' ({created.id})")


@providers_group.command(name="update")
@click.argument("provider")
@click.option("--name", "new_name", default=None, help="Rename the provider.")
@_provider_options
@click.pass_context
def update_provider(
    ctx: click.Context,
    provider: str,
    new_name: Optional[str],
    provider_kind: Optional[str],
    base_url: Optional[str],
    models_endpoint: Optional[str],
    completion_endpoint: Optional[str],
    auth: Optional[str],
    token: Optional[str],
    token_env: Optional[str],
    header_entries: Tuple[str, ...],
    models: Tuple[str, ...],
) -> None:
    """Change fields of an existing provider, by id or name."""
    fields = _provider_fields(
        provider_kind,
        base_url,
        models_endpoint,
        completion_endpoint,
        auth,
        token,
        token_env,
        header_entries,
        models,
    )
    if new_name is not None:
        fields["name"] = new_name

    service = _service(ctx)
    with _settings_errors():
        existing = _resolve_provider(service, provider)
        updated = service.update_provider(
            ProviderConfig.model_validate({**existing.model_dump(), **fields})
        )
    click.echo(f"Updated provider '{updated.name}'")


@providers_group.command(name="remove")
@click.argument("provider")
@click.pass_context
def remove_provider(ctx: click.Context, provider: str) -> None:
    """Delete a provider, by id or name. The current provider cannot be removed."""
    service = _service(ctx)
    with _settings_errors():
        existing = _resolve_provider(service, provider)
        service.delete_provider(existing.id)
    click.echo(f"Removed provider '{existing.name}'")


@providers_group.command(name="use")
@click.argument("provider")
@click.pass_context
def use_provider(ctx: click.Context, provider: str) -> None:
    """Make a provider current, by id or name."""
    service = _service(ctx)
    with _settings_errors():
        existing = _resolve_provider(service, provider)
        current = service.set_current_provider(existing.id)
    click.echo(f"Current provider: {current.name}")


# ----------------------------------------------------------------------
# Inference and model


@settings_group.group(name="inference", invoke_without_command=True, help="Request tuning.")
@click.pass_context
def inference_group(ctx: click.Context) -> None:
    if ctx.invoked_subcommand is None:
        with _settings_errors():
            cfg = _service(ctx).get_inference_config()
        click.echo(json.dumps(_dump(cfg), indent=2))


@inference_group.command(name="set")
@click.option("--timeout", type=int, default=None, help="Request timeout in seconds (1-600).")
@click.option("--max-retries", type=int, default=None, help="Retries per request (0-10).")
@click.option("--markdown/--no-markdown", default=None, help="Ask for Markdown output.")
@click.pass_context
def set_inference(
    ctx: click.Context,
    timeout: Optional[int],
    max_retries: Optional[int],
    markdown: Optional[bool],
) -> None:
    service = _service(ctx)
    with _settings_errors():
        current = service.get_inference_config()
        cfg = InferenceBaseConfig(
            timeout_seconds=current.timeout_seconds if timeout is None else timeout,
            max_retries=current.max_retries if max_retries is None else max_retries,
            use_markdown_output=current.use_markdown_output if markdown is None else markdown,
        )
        service.update_inference_config(cfg)
    click.echo(
        f"Inference: timeout {cfg.timeout_seconds}s, retries {cfg.max_retries}, "
        f"markdown {'on' if cfg.use_markdown_output else 'off'}"
    )


@settings_group.group(name="model", invoke_without_command=True, help="Model selection.")
@click.pass_context
def model_group(ctx: click.Context) -> None:
    if ctx.invoked_subcommand is None:
        with _settings_errors():
            cfg = _service(ctx).get_model_config()
        click.echo(json.dumps(_dump(cfg), indent=2))


@model_group.command(name="set")
@click.argument("name", required=False)
@click.option("--temperature", type=float, default=None, help="Sampling temperature (0-2).")
@click.option(
    "--use-temperature/--no-temperature",
    "use_temperature",
    default=None,
    help="Send the temperature with requests.",
)
@click.pass_context
def set_model(
    ctx: click.Context,
    name: Optional[str],
    temperature: Optional[float],
    use_temperature: Optional[bool],
) -> None:
    service = _service(ctx)
    with _settings_errors():
        current = service.get_model_config()
        if use_temperature is None and temperature is not None:
            use_temperature = True
        cfg = ModelConfig(
            name=current.name if name is None else name,
            use_temperature=current.use_temperature if use_temperature is None else use_temperature,
            temperature=current.temperature if temperature is None else temperature,
        )
        service.update_model_config(cfg)
    click.echo(f"Model: {cfg.name or 'Not selected'}")


# ----------------------------------------------------------------------
# Languages


@settings_group.group(name="languages", invoke_without_command=True, help="Supported languages.")
@click.pass_context
def languages_group(ctx: click.Context) -> None:
    if ctx.invoked_subcommand is None:
        ctx.invoke(list_languages)


@languages_group.command(name="list")
@click.option("--json", "json_output", is_flag=True, help="Output machine-readable JSON.")
@click.pass_context
def list_languages(ctx: click.Context, json_output: bool = False) -> None:
    with _settings_errors():
        cfg = _service(ctx).get_language_config()
    if json_output:
        click.echo(json.dumps(_dump(cfg), indent=2, ensure_ascii=False))
        return
    for language in cfg.languages:
        markers = []
        if language.casefold() == cfg.default_input_language.casefold():
            markers.append("input")
        if language.casefold() == cfg.default_output_language.casefold():
            markers.append("output")
        suffix = f" (default {', '.join(markers)})" if markers else ""
        click.echo(f"{language}{suffix}")


@languages_group.command(name="add")
@click.argument("language")
@click.pass_context
def add_language(ctx: click.Context, language: str) -> None:
    with _settings_errors():
        languages = _service(ctx).add_language(language)
    click.echo(f"{len(languages)} languages: {', '.join(languages)}")


@languages_group.command(name="remove")
@click.argument("language")
@click.pass_context
def remove_language(ctx: click.Context, language: str) -> None:
    with _settings_errors():
        languages = _service(ctx).remove_language(language)
    click.echo(f"{len(languages)} languages: {', '.join(languages)}")


@languages_group.command(name="default-input")
@click.argument("language")
@click.pass_context
def default_input(ctx: click.Context, language: str) -> None:
    with _settings_errors():
        cfg = _service(ctx).set_default_input_language(language)
    click.echo(f"Default input language: {cfg.default_input_language}")


@languages_group.command(name="default-output")
@click.argument("language")
@click.pass_context
def default_output(ctx: click.Context, language: str) -> None:
    with _settings_errors():
        cfg = _service(ctx).set_default_output_language(language)
    click.echo(f"Default output language: {cfg.default_output_language}")


__all__ = ["settings_group"]
