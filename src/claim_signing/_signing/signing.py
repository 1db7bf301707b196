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

"""Machinery for signing claims.

This module defines the capability contracts every signing backend implements.
A claim is an opaque byte buffer; signing it produces an opaque signature byte
buffer, plus metadata (certificate chain, algorithm, timestamp authority and
revocation proof) that an external component embeds into the manifest next to
the signature.

The manifest is laid out before the signature exists, so every signer declares
an upper bound on the size of its signatures via `reserve_size`. A signature
larger than the reservation is an error: it is never truncated to fit.

There are two capabilities:

- `Signer` is the synchronous one, exposing the full metadata surface.
- `AsyncSigner` is for backends that must not block the event loop (e.g.,
  remote signing services). It only exposes `sign` and `reserve_size`; other
  metadata is provided when constructing the backend.

`ConfigurableSigner` extends `Signer` with construction from credential
material, either from files or from in-memory bytes.

Callers should not invoke `sign` directly when assembling a manifest, but go
through `sign_claim` (or `async_sign_claim`) which enforces the size bound.
"""

import abc
import logging
import os
import pathlib
import sys
from typing import Optional
from typing import TypeAlias


if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self


logger = logging.getLogger(__name__)


# Type alias to support `os.PathLike`, `str` and `bytes` objects in the API
PathLike: TypeAlias = str | bytes | os.PathLike


class SignerError(Exception):
    """Base class for all errors raised by signers."""


class SigningError(SignerError):
    """Signing failed, or produced a signature larger than reserved."""


class CertificateError(SignerError):
    """The certificate chain is missing, malformed or unreadable."""


class CredentialError(SignerError):
    """A signer could not be built from the given credential material."""


class Signer(abc.ABC):
    """Generic synchronous signer for claims.

    Each signing backend subclasses this and owns whatever key material or
    handle it needs. Instances are immutable from the point of view of the
    caller: none of the methods change what the others return, so one
    instance can be shared between callers.
    """

    @abc.abstractmethod
    def sign(self, data: bytes) -> bytes:
        """Signs the provided claim bytes.

        Args:
            data: The claim to sign.

        Returns:
            The signature over `data`. Its length is at most `reserve_size()`.

        Raises:
            SigningError: The key is unusable, the backend rejected the
              payload, or the signature would not fit in `reserve_size()`.
        """

    @abc.abstractmethod
    def alg(self) -> Optional[str]:
        """Returns the name of the signing algorithm, if any."""

    @abc.abstractmethod
    def certs(self) -> list[bytes]:
        """Returns the certificate chain as DER encoded certificates.

        The certificate whose key produced the signature is the last element.
        Intermediate and root certificates, if any, come before it.

        Raises:
            CertificateError: The certificates could not be loaded.
        """

    @abc.abstractmethod
    def reserve_size(self) -> int:
        """Returns the size in bytes of the largest possible signature.

        The value is constant for the lifetime of the instance.
        """

    def time_authority_url(self) -> Optional[str]:
        """Returns the URL of a timestamp authority to countersign with.

        By default, signers don't use a timestamp authority.
        """
        return None

    def ocsp_val(self) -> Optional[bytes]:
        """Returns a cached DER encoded OCSP response for the signing cert.

        A return value of `None` means there is no cached response. It does not
        mean the certificate has been revoked.
        """
        return None


class AsyncSigner(abc.ABC):
    """Generic non-blocking signer for claims.

    This is a narrower contract than `Signer`: it has no accessors for the
    certificate chain, algorithm, timestamp authority or OCSP response. Those
    are part of the configuration passed when building the concrete backend.
    """

    @abc.abstractmethod
    async def sign(self, data: bytes) -> bytes:
        """Signs the provided claim bytes, without blocking the event loop.

        Same semantics as `Signer.sign`.
        """

    @abc.abstractmethod
    def reserve_size(self) -> int:
        """Returns the size in bytes of the largest possible signature."""


class ConfigurableSigner(Signer):
    """A signer that can be built from signing credentials."""

    @classmethod
    def from_files(
        cls,
        signcert_path: PathLike,
        pkey_path: PathLike,
        alg: str,
        tsa_url: Optional[str] = None,
    ) -> Self:
        """Builds a signer from a certificate file and a private key file.

        Args:
            signcert_path: Path to the signing certificate (and chain).
            pkey_path: Path to the private key.
            alg: The signing algorithm to use.
            tsa_url: Optional URL of a timestamp authority.

        Raises:
            CredentialError: A file cannot be read or does not contain valid
              credentials for `alg`.
        """
        signcert = read_credential(signcert_path)
        pkey = read_credential(pkey_path)
        return cls.from_signcert_and_pkey(signcert, pkey, alg, tsa_url)

    @classmethod
    @abc.abstractmethod
    def from_signcert_and_pkey(
        cls,
        signcert: bytes,
        pkey: bytes,
        alg: str,
        tsa_url: Optional[str] = None,
    ) -> Self:
        """Builds a signer from in-memory certificate and private key bytes.

        Args:
            signcert: The signing certificate (and chain).
            pkey: The private key.
            alg: The signing algorithm to use.
            tsa_url: Optional URL of a timestamp authority.

        Raises:
            CredentialError: The bytes are not valid credentials for `alg`.
        """


def read_credential(path: PathLike) -> bytes:
    """Reads credential material, raising `CredentialError` on failure."""
    path = pathlib.Path(os.fsdecode(path))
    logger.debug(f"Reading credential material from {path}")
    try:
        return path.read_bytes()
    except OSError as e:
        raise CredentialError(
            f"Cannot read credentials from {path}: {e}"
        ) from e


def check_signature_size(signature: bytes, reserved: int) -> bytes:
    """Checks that a signature fits in the space reserved for it.

    Signatures are never truncated: a signature one byte over the reservation
    is as much of an error as any other failure to sign.

    Args:
        signature: The signature produced by a signer.
        reserved: The `reserve_size()` the signer declared.

    Returns:
        The unchanged signature.

    Raises:
        SigningError: The signature is longer than `reserved`.
    """
    if len(signature) > reserved:
        raise SigningError(
            f"Signature of {len(signature)} bytes does not fit in the "
            f"{reserved} bytes reserved for it"
        )
    return signature


def sign_claim(signer: Signer, data: bytes) -> bytes:
    """Signs a claim, making sure the signature fits in the reserved size.

    Args:
        signer: The signer to use.
        data: The claim to sign.

    Returns:
        The signature, at most `signer.reserve_size()` bytes long.

    Raises:
        SigningError: The signer failed, or produced a signature too large.
    """
    reserved = signer.reserve_size()
    try:
        signature = signer.sign(data)
    except SigningError:
        raise
    except Exception as e:
        raise SigningError(f"Signing failed: {e}") from e

    logger.debug(
        f"Signed {len(data)} bytes, got {len(signature)} bytes "
        f"of {reserved} reserved"
    )
    return check_signature_size(signature, reserved)


async def async_sign_claim(signer: AsyncSigner, data: bytes) -> bytes:
    """Same as `sign_claim` but for an `AsyncSigner`."""
    reserved = signer.reserve_size()
    try:
        signature = await signer.sign(data)
    except SigningError:
        raise
    except Exception as e:
        raise SigningError(f"Signing failed: {e}") from e

    logger.debug(
        f"Signed {len(data)} bytes, got {len(signature)} bytes "
        f"of {reserved} reserved"
    )
    return check_signature_size(signature, reserved)
