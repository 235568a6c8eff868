"""scriptsign CLI application with Typer."""

import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Annotated, NoReturn

import typer

from scriptsign import __version__
from scriptsign.app.ports import CertificateDescriptor
from scriptsign.app.signing_service import (
    VALID_STATUS,
    CertificateChoiceRequired,
    SigningCompleted,
    SigningOptions,
)
from scriptsign.bootstrap import bootstrap_application
from scriptsign.config import get_settings
from scriptsign.errors import SigningAbort

app = typer.Typer(
    name="scriptsign",
    help="Sign and verify scripts through a local code-signing service",
    add_completion=False,
    no_args_is_help=True,
)

ServiceURLOption = Annotated[
    str | None,
    typer.Option(
        "--service-url",
        help="Signing service base URL (default: SCRIPTSIGN_SERVICE_URL or http://localhost:20000)",
    ),
]


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"scriptsign version {__version__}")
        raise typer.Exit()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _fail(exc: SigningAbort) -> NoReturn:
    """Report an aborted invocation and exit non-zero."""

    typer.secho(f"Error [{exc.code}]: {exc.message}", fg=typer.colors.RED, err=True)
    if exc.detail is not None:
        typer.secho(f"  Service response: {exc.detail.describe()}", err=True)
    if exc.remediation:
        typer.secho(f"  Hint: {exc.remediation}", fg=typer.colors.YELLOW, err=True)
    raise typer.Exit(code=1) from exc


def _format_expiry(certificate: CertificateDescriptor) -> str:
    if certificate.not_after is None:
        return "unknown"
    if isinstance(certificate.not_after, str):
        return certificate.not_after
    return certificate.not_after.isoformat()


def _echo_certificates(certificates: Sequence[CertificateDescriptor]) -> None:
    for index, certificate in enumerate(certificates, start=1):
        typer.echo(f"  [{index}] {certificate.subject}")
        typer.echo(f"      Thumbprint: {certificate.thumbprint}")
        typer.echo(f"      Expires:    {_format_expiry(certificate)}")


def _report_choice(outcome: CertificateChoiceRequired) -> None:
    typer.secho(
        "No certificate specified. Available code-signing certificates:",
        fg=typer.colors.CYAN,
    )
    _echo_certificates(outcome.certificates)
    typer.echo("")
    typer.echo(
        f"Re-run with --cert <THUMBPRINT> (or --pfx <FILE>) to sign {outcome.script_path}"
    )


def _report_signed(outcome: SigningCompleted) -> None:
    typer.secho(f"Signed {outcome.script_path}", fg=typer.colors.GREEN)
    signature = outcome.signature
    if signature is not None:
        typer.echo(f"  Status:         {signature.status}")
        if signature.signed_by:
            typer.echo(f"  Signed by:      {signature.signed_by}")
        if signature.time_stamper:
            typer.echo(f"  Timestamped by: {signature.time_stamper}")
        if signature.signature_type:
            typer.echo(f"  Signature type: {signature.signature_type}")

    warning = outcome.verification_warning
    if warning is None:
        typer.secho(f"Verification: {outcome.final_status}", fg=typer.colors.GREEN)
        return

    typer.secho(f"Warning: {warning}", fg=typer.colors.YELLOW, err=True)
    if outcome.verification is not None:
        typer.echo(f"Verification: {outcome.final_status}")


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-V", help="Enable debug logging"),
    ] = False,
) -> None:
    """scriptsign - sign and verify scripts via a local signing service."""
    settings = get_settings()
    _configure_logging("DEBUG" if verbose else settings.log_level)


@app.command("sign")
def sign(
    script: Annotated[Path, typer.Argument(help="Script file to sign")],
    cert: Annotated[
        str | None,
        typer.Option("--cert", "-c", help="Thumbprint of the certificate to sign with"),
    ] = None,
    pfx: Annotated[
        Path | None,
        typer.Option("--pfx", help="PFX (PKCS#12) file to sign with instead of a stored certificate"),
    ] = None,
    pfx_password: Annotated[
        str | None,
        typer.Option(
            "--pfx-password",
            envvar="SCRIPTSIGN_PFX_PASSWORD",
            help="Password for the PFX file",
        ),
    ] = None,
    timestamp_server: Annotated[
        str | None,
        typer.Option("--timestamp-server", "-t", help="Timestamp server URL"),
    ] = None,
    service_url: ServiceURLOption = None,
) -> None:
    """Sign SCRIPT, then verify the new signature.

    Without --cert or --pfx the available certificates are listed and
    nothing is signed.
    """
    container = bootstrap_application(service_url=service_url)
    options = SigningOptions(
        script_path=script,
        cert_thumbprint=cert,
        pfx_path=pfx,
        pfx_password=pfx_password,
        timestamp_server=timestamp_server or container.settings.timestamp_server,
    )

    try:
        outcome = container.orchestrator().run(options)
    except SigningAbort as exc:
        _fail(exc)

    if isinstance(outcome, CertificateChoiceRequired):
        _report_choice(outcome)
        return

    _report_signed(outcome)


@app.command("verify")
def verify(
    script: Annotated[Path, typer.Argument(help="Script file to verify")],
    service_url: ServiceURLOption = None,
) -> None:
    """Verify the signature of SCRIPT."""
    container = bootstrap_application(service_url=service_url)

    try:
        data = container.orchestrator().verify_only(script)
    except SigningAbort as exc:
        _fail(exc)

    if data.status != VALID_STATUS:
        typer.secho(f"Signature status: {data.status}", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=1)

    typer.secho(f"Signature status: {data.status}", fg=typer.colors.GREEN)
    if data.signed_by:
        typer.echo(f"  Signed by: {data.signed_by}")


@app.command("certs")
def certs(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
    service_url: ServiceURLOption = None,
) -> None:
    """List the code-signing certificates known to the service."""
    container = bootstrap_application(service_url=service_url)

    try:
        certificates = container.orchestrator().list_certificates()
    except SigningAbort as exc:
        _fail(exc)

    if json_output:
        from scriptsign.utils.cli_output import json_response

        typer.echo(
            json_response(
                "certificates",
                1,
                service_url=container.signing_port.base_url,
                certificates=[
                    certificate.model_dump(mode="json", by_alias=True)
                    for certificate in certificates
                ],
            )
        )
        return

    typer.echo(f"{len(certificates)} certificate(s) at {container.signing_port.base_url}:")
    _echo_certificates(certificates)


@app.command("status")
def status(service_url: ServiceURLOption = None) -> None:
    """Check that the signing service is reachable and ready to sign."""
    container = bootstrap_application(service_url=service_url)

    try:
        container.orchestrator().check_service()
    except SigningAbort as exc:
        _fail(exc)

    typer.secho(
        f"Signing service at {container.signing_port.base_url} is available",
        fg=typer.colors.GREEN,
    )


def find_port(
    start: Annotated[
        int | None,
        typer.Option("--start", "-s", min=1, max=65535, help="First port to try (default: 11000)"),
    ] = None,
    end: Annotated[
        int | None,
        typer.Option("--end", "-e", min=1, max=65535, help="Last port to try (default: 12000)"),
    ] = None,
) -> None:
    """Print the first port in the range that nothing is listening on."""
    container = bootstrap_application()
    finder = container.port_finder
    first = finder.default_start if start is None else start
    last = finder.default_end if end is None else end

    port = finder.find_available_port(first, last)
    if port is None:
        typer.secho(f"No free port found in {first}-{last}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.echo(str(port))


app.command("find-port")(find_port)

# Standalone `find-port` entry point
port_app = typer.Typer(
    name="find-port",
    help="Find a free TCP port",
    add_completion=False,
)
port_app.command()(find_port)


if __name__ == "__main__":
    app()
