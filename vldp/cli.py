"""
Command-line interface for the VLDP toolkit.

Commands:
    gamma      show how a privacy parameter is encoded
    calibrate  compare the mechanism with its exact report distribution
    demo       run an in-process client/server exchange
"""

import logging
import sys
import time

import click

from . import __version__
from .analysis import calibrate as run_calibration
from .config import load_config
from .exceptions import VLDPError
from .parameters import decode_gamma, encode_gamma, parse_gamma

logger = logging.getLogger(__name__)


def _load_config_or_exit(config_path):
    try:
        return load_config(config_path)
    except VLDPError as exc:
        raise click.BadParameter(str(exc), param_hint="--config")


def _parse_gamma_or_exit(gamma):
    try:
        return parse_gamma(gamma)
    except VLDPError as exc:
        raise click.BadParameter(str(exc), param_hint="--gamma")


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose):
    """
    Verifiable local differential privacy toolkit.

    ⚠️  DRAFT - NOT PRODUCTION READY
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("gamma")
@click.option("--gamma-bytes", type=click.IntRange(1, 16), default=4, show_default=True)
def gamma(gamma, gamma_bytes):
    """
    Show the fixed-width encoding of GAMMA.

    Examples:

        vldp gamma 0.25

        vldp gamma 1/3 --gamma-bytes 2
    """
    value = _parse_gamma_or_exit(gamma)
    encoded = encode_gamma(value, gamma_bytes)
    gamma_as_int = int.from_bytes(encoded, "little")
    effective = (gamma_as_int + 1) / (1 << (8 * gamma_bytes))

    click.echo(f"gamma:           {value} ({float(value):.6f})")
    click.echo(f"gamma_as_bytes:  {encoded.hex()}")
    click.echo(f"gamma_as_int:    {gamma_as_int}")
    click.echo(f"decoded:         {float(decode_gamma(encoded)):.6f}")
    click.echo(f"P(random bucket): {effective:.6f}")


@main.command()
@click.option("--gamma", "gamma_value", default="0.25", show_default=True)
@click.option("--true-value", type=int, required=True, help="Private input to randomize")
@click.option("--samples", type=click.IntRange(1), default=10000, show_default=True)
@click.option("--seed", type=int, default=None, help="Seed for reproducible sampling")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False))
def calibrate(gamma_value, true_value, samples, seed, config_path):
    """
    Sample the mechanism and compare with the exact report distribution.

    Examples:

        vldp calibrate --true-value 3 --samples 20000 --seed 7
    """
    config = _load_config_or_exit(config_path)
    value = _parse_gamma_or_exit(gamma_value)
    gamma_as_int = int.from_bytes(encode_gamma(value, config.gamma_bytes), "little")

    try:
        result = run_calibration(true_value, gamma_as_int, config, samples, seed)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--true-value")

    click.echo(f"{'report':>8} {'expected':>10} {'observed':>10}")
    for report in range(config.min_ldp_value, config.k + 1):
        click.echo(
            f"{report:>8} {result.expected[report]:>10.4f} {result.observed[report]:>10.4f}"
        )
    click.echo(f"true report rate: {result.true_report_rate:.4f}")
    click.echo(f"total variation:  {result.total_variation:.4f}")


@main.command()
@click.option(
    "--variant",
    type=click.Choice(["shuffle", "expand"], case_sensitive=False),
    default="shuffle",
    show_default=True,
)
@click.option("--rounds", type=click.IntRange(1), default=2, show_default=True)
@click.option("--gamma", "gamma_value", default="0.25", show_default=True)
@click.option("--true-value", type=int, default=1, show_default=True)
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False))
def demo(variant, rounds, gamma_value, true_value, config_path):
    """
    Run client and server in-process and verify every report.

    Examples:

        vldp demo --variant expand --rounds 3
    """
    from .circuits import expand as expand_circuit
    from .circuits import shuffle as shuffle_circuit
    from .client import ClientExpand, ClientShuffle, sign_true_value
    from .messages import ClientReportMessage
    from .parameters import SystemParameters
    from .primitives.schnorr import SchnorrSignature
    from .server import ServerExpand, ServerShuffle

    config = _load_config_or_exit(config_path)
    _parse_gamma_or_exit(gamma_value)
    variant = variant.lower()

    click.echo("\n" + "=" * 70)
    click.echo(click.style(f"VLDP {variant} demo", fg="cyan", bold=True))
    click.echo("=" * 70)

    try:
        params = SystemParameters.setup(gamma_value, config)
        signature = SchnorrSignature()
        server_sk, server_pk = signature.keygen(params.server_signature)
        client_sk, client_pk = signature.keygen(params.client_signature)

        started = time.perf_counter()
        if variant == "shuffle":
            pk, vk = shuffle_circuit.keygen(config, params)
            client = ClientShuffle(config, params, server_pk, client_pk, pk)
            server = ServerShuffle(config, params, server_sk, server_pk, vk)
        else:
            pk, vk = expand_circuit.keygen(config, params)
            client = ClientExpand(config, params, server_pk, client_pk, pk)
            server = ServerExpand(config, params, server_sk, server_pk, vk)
        click.echo(f"keygen: {len(vk.shape.constraints)} constraints "
                   f"({time.perf_counter() - started:.2f}s)")

        accepted_all = True
        for round_index in range(rounds):
            needs_handshake = (
                variant == "shuffle" or round_index % config.num_leaves == 0
            )
            if needs_handshake:
                response = server.generate_randomness(client.generate_randomness_create())
                if not client.generate_randomness_verify(response):
                    click.echo(click.style("✗ server signature rejected", fg="red"), err=True)
                    sys.exit(1)

            reading_time = round_index + 1
            input_signature = sign_true_value(
                signature, params.client_signature, client_sk, config,
                true_value, reading_time,
            )
            time_bounds = (0, reading_time + 1)
            started = time.perf_counter()
            report = client.verifiable_randomization_create(
                true_value, reading_time, input_signature, time_bounds
            )
            accepted = server.verifiable_randomization_verify(report, time_bounds)
            accepted_all = accepted_all and accepted

            ldp_value = ClientReportMessage.from_bytes(report).ldp_value
            mark = click.style("✓", fg="green") if accepted else click.style("✗", fg="red")
            click.echo(
                f"{mark} round {round_index}: ldp_value={ldp_value} "
                f"({time.perf_counter() - started:.2f}s)"
            )
    except (VLDPError, ValueError) as exc:
        click.echo(click.style(f"\n✗ Error: {exc}", fg="red"), err=True)
        logger.debug("demo failed", exc_info=True)
        sys.exit(1)

    if not accepted_all:
        sys.exit(1)
    click.echo(click.style("\n✓ All reports verified", fg="green"))


if __name__ == "__main__":
    main()
