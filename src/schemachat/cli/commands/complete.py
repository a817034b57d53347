"""schemachat complete -- run one schema-validated completion."""

from __future__ import annotations

import importlib
import json
from contextlib import closing
from typing import Any

import click

from schemachat.cli.formatting import format_error, get_console
from schemachat.completion import completion
from schemachat.formatting import data_to_json
from schemachat.llm.factory import create_client
from schemachat.models.config import RequestOptions


def _load_schema(path: str) -> Any:
    """Import a schema type from ``module:Attribute``."""
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise click.BadParameter(
            f"expected 'module:Attribute', got {path!r}", param_hint="--schema"
        )
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise click.BadParameter(str(e), param_hint="--schema") from None
    try:
        return getattr(module, attr)
    except AttributeError:
        raise click.BadParameter(
            f"module {module_name!r} has no attribute {attr!r}", param_hint="--schema"
        ) from None


@click.command()
@click.argument("prompt")
@click.option(
    "--provider",
    default="openai",
    envvar="SCHEMACHAT_PROVIDER",
    type=click.Choice(["openai", "anthropic"], case_sensitive=False),
    help="Chat completion provider.",
)
@click.option("--model", default=None, envvar="SCHEMACHAT_MODEL", help="Model name.")
@click.option(
    "--schema",
    "schema_path",
    default=None,
    help="Schema type to validate against, as module:Attribute.",
)
@click.option("--system", "system_message", default=None, help="System message.")
@click.option("--auto-heal/--no-auto-heal", default=True, help="Allow one corrective round-trip.")
@click.option("--auto-slice/--no-auto-slice", default=False, help="Shrink the prompt on context overflow.")
@click.option("--temperature", type=float, default=None, help="Sampling temperature.")
@click.option("--max-tokens", type=int, default=None, help="Maximum tokens to generate.")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print only the data as JSON.")
def complete(
    prompt: str,
    provider: str,
    model: str | None,
    schema_path: str | None,
    system_message: str | None,
    auto_heal: bool,
    auto_slice: bool,
    temperature: float | None,
    max_tokens: int | None,
    as_json: bool,
) -> None:
    """Send PROMPT and print the validated response.

    Pass - as PROMPT to read it from stdin.
    """
    if prompt == "-":
        prompt = click.get_text_stream("stdin").read()
    schema = _load_schema(schema_path) if schema_path else None

    console = get_console()
    options = RequestOptions(
        schema=schema,
        system_message=system_message,
        auto_heal=auto_heal,
        auto_slice=auto_slice,
        temperature=temperature,
        max_tokens=max_tokens,
    )
    try:
        with closing(create_client(provider, model=model)) as client:
            response = completion(client, prompt, options)
    except SystemExit:
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None

    if as_json:
        if isinstance(response.data, str):
            click.echo(json.dumps(response.data))
        else:
            click.echo(data_to_json(response.data))
    else:
        response.pprint()
