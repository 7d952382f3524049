"""``gf api``: raw authenticated requests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click

from ..client import ALLOWED_METHODS, ForgeClient
from ..output import apply_path_filter
from ._common import AppContext, pass_app


def _split_field(raw: str, flag: str) -> tuple[str, str]:
    key, sep, value = raw.partition("=")
    if not sep or not key:
        msg = f"invalid {flag} format: {raw} (use key=value)"
        raise click.BadParameter(msg)
    return key, value


def build_body(fields: tuple[str, ...], raw_fields: tuple[str, ...], input_file: str | None) -> Any:
    if input_file:
        try:
            return json.loads(Path(input_file).read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            msg = f"invalid JSON in input file: {e}"
            raise click.BadParameter(msg, param_hint="--input") from e
    if not fields and not raw_fields:
        return None

    body: dict[str, Any] = {}
    for raw in fields:
        key, value = _split_field(raw, "field")
        body[key] = value
    for raw in raw_fields:
        key, value = _split_field(raw, "raw-field")
        try:
            body[key] = json.loads(value)
        except json.JSONDecodeError as e:
            msg = f"invalid JSON in raw-field {key}: {e}"
            raise click.BadParameter(msg) from e
    return body


@click.command()
@click.argument("endpoint")
@click.option(
    "-X",
    "--method",
    default="GET",
    type=click.Choice(ALLOWED_METHODS, case_sensitive=False),
    help="HTTP method.",
)
@click.option("-H", "--hostname", default=None, help="Forge hostname.")
@click.option("-f", "--field", "fields", multiple=True, help="String field key=value.")
@click.option("-F", "--raw-field", "raw_fields", multiple=True, help="JSON field key=<json>.")
@click.option("--input", "input_file", type=click.Path(exists=True, dir_okay=False), help="Read the body from a JSON file.")
@click.option("--silent", is_flag=True, help="Do not print the response.")
@click.option("-q", "--jq", "query", default=None, help="Filter the response (.field, .list[0].name).")
@pass_app
def api(
    app: AppContext,
    endpoint: str,
    method: str,
    hostname: str | None,
    fields: tuple[str, ...],
    raw_fields: tuple[str, ...],
    input_file: str | None,
    silent: bool,
    query: str | None,
) -> None:
    """Make an authenticated request to the Forge API and print the response.

    ENDPOINT is a path relative to the API root, e.g. /user/me.
    """
    body = build_body(fields, raw_fields, input_file)
    path = endpoint if endpoint.startswith("/") else f"/{endpoint}"

    async def call(client: ForgeClient) -> Any:
        return await client.request(method.upper(), path, json_data=body)

    result = app.run(call, hostname=hostname, require_token=False)
    if silent or result is None:
        return
    if query:
        try:
            result = apply_path_filter(result, query)
        except ValueError as e:
            raise click.ClickException(f"jq filter error: {e}") from e
    click.echo(json.dumps(result, indent=2, ensure_ascii=False))
