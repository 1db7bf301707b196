# Copyright 2025 The Sigstore Authors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""The main entry-point for the claim_signing package."""

import logging
import pathlib
import sys

import click

import claim_signing
from claim_signing._signing.algorithms import SigningAlg


# Decorator for the commonly used argument for the claim path.
_claim_path_argument = click.argument(
    "claim_path", type=pathlib.Path, metavar="CLAIM_PATH"
)


# Decorator for the commonly used option to set the signature path.
_write_signature_option = click.option(
    "--signature",
    type=pathlib.Path,
    metavar="SIGNATURE_PATH",
    default=pathlib.Path("claim.sig"),
    help="Location of the signature file to generate. Defaults to `claim.sig`.",
)


# Decorator for the commonly used option to write the signing metadata.
_write_metadata_option = click.option(
    "--metadata",
    type=pathlib.Path,
    metavar="METADATA_PATH",
    help=(
        "Optional location of a JSON file recording the signature, the "
        "algorithm, the certificate chain and the reserved size."
    ),
)


def _sign_with(
    config: claim_signing.signing.Config,
    claim_path: pathlib.Path,
    signature: pathlib.Path,
    metadata: pathlib.Path | None,
) -> None:
    """Signs the claim and writes the outputs, exiting on failure.

    Either all outputs are written or none: if the metadata cannot be
    written, the signature is removed as well.
    """
    try:
        signed = config.sign(claim_path, signature)
    except Exception as err:
        click.echo(f"Signing failed with error: {err}", err=True)
        sys.exit(1)

    if metadata is not None:
        try:
            metadata.write_text(signed.to_json())
        except OSError as err:
            signature.unlink(missing_ok=True)
            click.echo(f"Signing failed with error: {err}", err=True)
            sys.exit(1)

    click.echo("Signing succeeded")


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.version_option(claim_signing.__version__, "--version")
@click.option(
    "--log-level",
    type=click.Choice(
        ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False
    ),
    default="INFO",
    show_default=True,
    metavar="LEVEL",
    envvar="CLAIM_SIGNING_LOG_LEVEL",
    help="Set the logging level. This can also be set via the "
    "CLAIM_SIGNING_LOG_LEVEL env var.",
)
def main(log_level: str) -> None:
    """Provenance claim signing.

    Use each subcommand's `--help` option for details on each mode.
    """
    logging.basicConfig(
        format="%(message)s", level=getattr(logging, log_level.upper())
    )


@main.group(name="sign", subcommand_metavar="SIGNING_METHOD")
def _sign() -> None:
    """Sign claims.

    Produces a detached signature over a claim file. The claim is treated as an
    opaque sequence of bytes.

    We support multiple signing methods, specified as subcommands.

    Use each subcommand's `--help` option for details on each mode.
    """


@_sign.command(name="placeholder")
@_claim_path_argument
@_write_signature_option
@_write_metadata_option
def _sign_placeholder(
    claim_path: pathlib.Path,
    signature: pathlib.Path,
    metadata: pathlib.Path | None = None,
) -> None:
    """Sign using a placeholder signer.

    Signing the claim at CLAIM_PATH, produces the signature at SIGNATURE_PATH
    (as per `--signature` option).

    The signature is always the same invalid value and will never verify. Use
    this to exercise manifest assembly before a real signer is available.
    """
    _sign_with(
        claim_signing.signing.Config().use_placeholder_signer(),
        claim_path,
        signature,
        metadata,
    )


@_sign.command(name="key")
@_claim_path_argument
@_write_signature_option
@_write_metadata_option
@click.option(
    "--private_key",
    type=pathlib.Path,
    metavar="PRIVATE_KEY",
    required=True,
    help="Path to the private key, as a PEM-encoded file.",
)
@click.option(
    "--signing_certificate",
    type=pathlib.Path,
    metavar="CERTIFICATE_PATH",
    required=True,
    help=(
        "Path to the signing certificate, as a PEM-encoded file. It may "
        "also contain the rest of the certificate chain."
    ),
)
@click.option(
    "--alg",
    type=click.Choice([alg.value for alg in SigningAlg], case_sensitive=False),
    required=True,
    help="The signing algorithm.",
)
@click.option(
    "--tsa_url",
    type=str,
    metavar="URL",
    help="URL of a timestamp authority to countersign the signature.",
)
@click.option(
    "--ocsp_response",
    type=pathlib.Path,
    metavar="OCSP_PATH",
    help="Path to a DER-encoded OCSP response for the signing certificate.",
)
@click.option(
    "--password",
    type=str,
    metavar="PASSWORD",
    help="Password for the key encryption, if any",
)
def _sign_private_key(
    claim_path: pathlib.Path,
    signature: pathlib.Path,
    private_key: pathlib.Path,
    signing_certificate: pathlib.Path,
    alg: str,
    metadata: pathlib.Path | None = None,
    tsa_url: str | None = None,
    ocsp_response: pathlib.Path | None = None,
    password: str | None = None,
) -> None:
    """Sign using a private key and its signing certificate.

    Signing the claim at CLAIM_PATH, produces the signature at SIGNATURE_PATH
    (as per `--signature` option).

    The algorithm must match the key: `es256`, `es384` and `es512` need an
    elliptic curve key on the matching curve, `ps256`, `ps384` and `ps512`
    need an RSA key and `ed25519` needs an Ed25519 key.
    """
    try:
        config = claim_signing.signing.Config().use_key_signer(
            private_key=private_key,
            signing_certificate=signing_certificate,
            alg=alg,
            tsa_url=tsa_url,
            password=password,
            ocsp_response=ocsp_response,
        )
    except Exception as err:
        click.echo(f"Signing failed with error: {err}", err=True)
        sys.exit(1)

    _sign_with(config, claim_path, signature, metadata)
