#!/usr/bin/env python3
"""
CLI tool for alertsync
Applies, reads, imports and deletes contact points and mute timings
"""

import asyncio
import json
import logging
import sys

import click
import yaml
from tabulate import tabulate

from alerting_client import AlertingClient, APIError
from config import CLIConfig, get_config
from errors import ReconcileError
from mute_timings import MuteTimingReconciler
from plugins.registry import get_registry
from reconciler import ContactPointReconciler
from retry import RetryCancelledError, RetryTimeoutError
from validation import ConfigurationError

logger = logging.getLogger(__name__)

# Failures reported to the user instead of a traceback
CLI_ERRORS = (
    APIError,
    ConfigurationError,
    ReconcileError,
    RetryCancelledError,
    RetryTimeoutError,
    ValueError,
)


def _load_file(filename):
    """Read a YAML or JSON document"""
    with open(filename, "r") as f:
        if filename.endswith(".yaml") or filename.endswith(".yml"):
            return yaml.safe_load(f)
        return json.load(f)


def _dump(data, output):
    if output == "json":
        return json.dumps(data, indent=2)
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)


def _emit(data, output, state_file=None):
    text = _dump(data, output)
    if state_file:
        with open(state_file, "w") as f:
            f.write(text)
        click.echo(f"State written to {state_file}")
    else:
        click.echo(text)


def _client():
    try:
        return AlertingClient.from_config(get_config().backend)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _run(coro):
    """Run a coroutine, turning known failures into a non-zero exit"""
    try:
        return asyncio.run(coro)
    except CLI_ERRORS as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL")
@click.option(
    "--output",
    "-o",
    type=click.Choice(["yaml", "json"]),
    default=None,
    help="Output format (defaults to ALERTCTL_OUTPUT)",
)
@click.pass_context
def cli(ctx, log_level, output):
    """alertctl - reconcile alerting contact points and mute timings"""
    ctx.ensure_object(dict)
    cli_config = CLIConfig.from_env()
    level = log_level or cli_config.log_level
    output = output or cli_config.output_format
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.obj["output"] = output


# Contact points


@cli.group("contact-point")
def contact_point():
    """Manage contact points"""
    pass


@contact_point.command("apply")
@click.argument("filename", type=click.Path(exists=True))
@click.option("--state", "state_file", default=None, help="Write the state here")
@click.pass_context
def contact_point_apply(ctx, filename, state_file):
    """Create or update a contact point from a YAML/JSON file"""
    desired = _load_file(filename)
    client = _client()
    reconciler = ContactPointReconciler(client, retry_config=get_config().retry)

    if desired.get("id"):
        result = _run(reconciler.update(desired))
    else:
        result = _run(reconciler.create(desired))

    click.echo(
        f"Contact point {result.resource_id} applied: {result.created} created, "
        f"{result.updated} updated, {result.deleted} deleted"
    )
    if result.state is not None:
        _emit(result.state, ctx.obj["output"], state_file)


@contact_point.command("get")
@click.argument("resource_id")
@click.option(
    "--prior",
    type=click.Path(exists=True),
    default=None,
    help="Previously declared file to take secure fields from",
)
@click.pass_context
def contact_point_get(ctx, resource_id, prior):
    """Show a contact point"""
    prior_state = _load_file(prior) if prior else None
    reconciler = ContactPointReconciler(_client())
    state = _run(reconciler.read(resource_id, prior_state))

    if state is None:
        click.echo(f"Contact point {resource_id} not found", err=True)
        sys.exit(1)
    _emit(state, ctx.obj["output"])


@contact_point.command("import")
@click.argument("resource_id")
@click.option("--state", "state_file", default=None, help="Write the state here")
@click.pass_context
def contact_point_import(ctx, resource_id, state_file):
    """Import a contact point by "<org>:<name>" or legacy "uid;uid" ID"""
    reconciler = ContactPointReconciler(_client())
    state = _run(reconciler.import_state(resource_id))

    if state is None:
        click.echo(f"Contact point {resource_id} not found", err=True)
        sys.exit(1)
    _emit(state, ctx.obj["output"], state_file)


@contact_point.command("delete")
@click.argument("resource_id")
@click.confirmation_option(prompt="Are you sure you want to delete this contact point?")
def contact_point_delete(resource_id):
    """Delete every notifier of a contact point"""
    reconciler = ContactPointReconciler(_client())
    deleted = _run(reconciler.delete(resource_id))
    click.echo(f"Deleted {deleted} notifiers of contact point {resource_id}")


# Mute timings


@cli.group("mute-timing")
def mute_timing():
    """Manage mute timings"""
    pass


@mute_timing.command("apply")
@click.argument("filename", type=click.Path(exists=True))
@click.option("--state", "state_file", default=None, help="Write the state here")
@click.pass_context
def mute_timing_apply(ctx, filename, state_file):
    """Create or update a mute timing from a YAML/JSON file"""
    desired = _load_file(filename)
    reconciler = MuteTimingReconciler(_client())

    if desired.get("id"):
        state = _run(reconciler.update(desired["id"], desired))
    else:
        state = _run(reconciler.create(desired))

    if state is None:
        click.echo(f"Mute timing {desired.get('name')} not found after apply", err=True)
        sys.exit(1)
    click.echo(f"Mute timing {state['id']} applied")
    _emit(state, ctx.obj["output"], state_file)


@mute_timing.command("get")
@click.argument("resource_id")
@click.pass_context
def mute_timing_get(ctx, resource_id):
    """Show a mute timing"""
    reconciler = MuteTimingReconciler(_client())
    state = _run(reconciler.read(resource_id))

    if state is None:
        click.echo(f"Mute timing {resource_id} not found", err=True)
        sys.exit(1)
    _emit(state, ctx.obj["output"])


@mute_timing.command("delete")
@click.argument("resource_id")
@click.confirmation_option(prompt="Are you sure you want to delete this mute timing?")
def mute_timing_delete(resource_id):
    """Delete a mute timing"""
    reconciler = MuteTimingReconciler(_client())
    if _run(reconciler.delete(resource_id)):
        click.echo(f"Mute timing {resource_id} deleted")
    else:
        click.echo(f"Mute timing {resource_id} was already gone")


# Notifier kinds


@cli.command()
def kinds():
    """List the supported notifier kinds"""
    headers = ["Field", "Type", "Secure Fields", "Description"]
    rows = []
    for descriptor in get_registry().describe_all():
        rows.append(
            [
                descriptor.field,
                descriptor.type_tag,
                ", ".join(descriptor.secure_fields),
                descriptor.description,
            ]
        )

    click.echo(tabulate(rows, headers=headers, tablefmt="grid"))


if __name__ == "__main__":
    cli()
