"""Typer CLI entrypoint."""

from __future__ import annotations

import logging

import typer

from iconnect.api import Client
from iconnect.core.errors import IConnectError
from iconnect.core.model import ConnectOutcome, ConnectResult, DeviceProfile

app = typer.Typer(help="Recognise an accessory and connect it over Bluetooth")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _build_client() -> Client:
    client = Client()
    for warning in getattr(client, "load_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    return client


def _describe_profile(profile: DeviceProfile) -> str:
    rules: list[str] = []
    if profile.weight is not None:
        rules.append(f"weight {profile.weight.min_g:g}-{profile.weight.max_g:g} g")
    if profile.shape is not None:
        rules.append(
            f"aspect {profile.shape.aspect_min:g}-{profile.shape.aspect_max:g} "
            f"(major >= {profile.shape.min_major:g})"
        )
    return f"{profile.id}: {profile.name} [{', '.join(rules)}] search='{profile.search_term}'"


def _report(result: ConnectResult) -> None:
    if result.outcome is ConnectOutcome.ALREADY_CONNECTED and result.device is not None:
        typer.echo(f"{result.device.display_name} is already connected")
        return
    if result.outcome is ConnectOutcome.ATTEMPT_ISSUED and result.device is not None:
        typer.echo(
            f"Connection requested for {result.device.display_name} "
            f"({result.device.address}) via {result.mechanism}"
        )
        return
    typer.echo(f"Error: {result.state.last_error or result.outcome.value}", err=True)
    raise typer.Exit(code=1)


@app.command("profiles")
def list_profiles() -> None:
    """List accessory profiles in match order."""
    try:
        client = _build_client()
        profiles = client.list_profiles()
        if not profiles:
            typer.echo("No profiles loaded")
            raise typer.Exit(code=1)
        for profile in profiles:
            typer.echo(_describe_profile(profile))
    except IConnectError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("devices")
def list_devices() -> None:
    """List paired Bluetooth devices."""
    try:
        client = _build_client()
        devices = client.list_devices()
        if not devices:
            typer.echo("No paired Bluetooth devices found")
            return
        for device in devices:
            kind = "audio" if device.is_audio else f"class 0x{device.class_of_device:06x}"
            status = "connected" if device.is_connected() else "disconnected"
            typer.echo(f"{device.address} {device.display_name} ({kind}, {status})")
    except IConnectError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("match")
def match(
    weight: float | None = typer.Option(None, "--weight", help="Calibrated weight in grams"),
    major: float | None = typer.Option(None, "--major", help="Touch ellipse major axis"),
    minor: float | None = typer.Option(None, "--minor", help="Touch ellipse minor axis"),
) -> None:
    """Match a weight or a touch shape against the profiles."""
    shape_given = major is not None or minor is not None
    if (weight is None) == (not shape_given) or (shape_given and (major is None or minor is None)):
        typer.echo("Error: pass either --weight or both --major and --minor", err=True)
        raise typer.Exit(code=2)
    try:
        client = _build_client()
        if weight is not None:
            profile = client.match_weight(weight)
        else:
            profile = client.match_shape(major, minor)  # type: ignore[arg-type]
        if profile is None:
            typer.echo("No matching profile")
            raise typer.Exit(code=1)
        typer.echo(f"{profile.id}: {profile.name} -> search '{profile.search_term}'")
    except IConnectError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("power")
def power() -> None:
    """Show whether the Bluetooth radio is on."""
    try:
        client = _build_client()
        typer.echo("on" if client.is_powered_on() else "off")
    except IConnectError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("connect")
def connect(
    name: str | None = typer.Option(None, "--name", help="Name or address substring"),
    profile_id: str | None = typer.Option(None, "--profile", help="Profile ID to connect"),
) -> None:
    """Connect a paired audio accessory.

    Without options, picks the first paired audio device that is not connected.
    """
    try:
        client = _build_client()
        if profile_id is not None:
            profile = next((p for p in client.list_profiles() if p.id == profile_id), None)
            if profile is None:
                typer.echo(f"Error: Unknown profile '{profile_id}'. Use 'iconnect profiles' to list them.", err=True)
                raise typer.Exit(code=1)
            result = client.connect_profile(profile)
        elif name is not None:
            result = client.connect_by_name(name)
        else:
            result = client.connect_best()
        _report(result)
    except IConnectError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()
