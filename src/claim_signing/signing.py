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

"""High level API for the signing interface of `claim_signing` library.

The module allows signing a claim with a default configuration, which uses a
placeholder signer (the signature will not verify):

```python
claim_signing.signing.sign("claim.bin", "claim.sig")
```

The module allows customizing the signing configuration before signing:

```python
claim_signing.signing.Config().use_key_signer(
    private_key="key.pem", signing_certificate="chain.pem", alg="es256"
).sign("claim.bin", "claim.sig")
```

The same signing configuration can be used to sign multiple claims, also
directly from memory:

```python
signing_config = claim_signing.signing.Config().use_key_signer(
    private_key="key.pem", signing_certificate="chain.pem", alg="ps256"
)

for claim in all_claims:
    signed = signing_config.sign_bytes(claim)
    embed(signed.signature, signed.certs)
```

Any `Signer` implementation can be plugged in with `Config.use_signer`.

The API defined here is stable and backwards compatible.
"""

import base64
import dataclasses
import json
import logging
import os
import pathlib
import sys
from typing import Optional

from claim_signing._signing import placeholder
from claim_signing._signing import sign_key
from claim_signing._signing import signing
from claim_signing._signing.algorithms import SigningAlg
from claim_signing._signing.placeholder import AsyncPlaceholder
from claim_signing._signing.placeholder import Placeholder
from claim_signing._signing.sign_async import ThreadedAsyncSigner
from claim_signing._signing.signing import AsyncSigner
from claim_signing._signing.signing import CertificateError
from claim_signing._signing.signing import ConfigurableSigner
from claim_signing._signing.signing import CredentialError
from claim_signing._signing.signing import PathLike
from claim_signing._signing.signing import Signer
from claim_signing._signing.signing import SignerError
from claim_signing._signing.signing import SigningError
from claim_signing._signing.signing import async_sign_claim
from claim_signing._signing.signing import sign_claim


if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self


logger = logging.getLogger(__name__)


# Signer using a private key and its signing certificate.
KeySigner = sign_key.Signer


__all__ = [
    "AsyncPlaceholder",
    "AsyncSigner",
    "CertificateError",
    "Config",
    "ConfigurableSigner",
    "CredentialError",
    "KeySigner",
    "Placeholder",
    "SignedClaim",
    "Signer",
    "SignerError",
    "SigningAlg",
    "SigningError",
    "ThreadedAsyncSigner",
    "async_sign_claim",
    "sign",
    "sign_claim",
]


@dataclasses.dataclass(frozen=True)
class SignedClaim:
    """A signature together with the metadata to embed next to it.

    Attributes:
        signature: The signature bytes.
        alg: The signing algorithm, `None` for placeholder signatures.
        certs: DER encoded certificates, signing certificate last.
        reserve_size: The space reserved for the signature in the manifest.
        time_authority_url: Timestamp authority to countersign with, if any.
        ocsp_val: Cached OCSP response for the signing certificate, if any.
    """

    signature: bytes
    alg: Optional[str]
    certs: list[bytes]
    reserve_size: int
    time_authority_url: Optional[str] = None
    ocsp_val: Optional[bytes] = None

    def to_json(self) -> str:
        """Serializes the metadata, with binary values base64 encoded."""

        def _encode(value: bytes) -> str:
            return base64.b64encode(value).decode("utf-8")

        return json.dumps(
            {
                "signature": _encode(self.signature),
                "alg": self.alg,
                "certs": [_encode(cert) for cert in self.certs],
                "reserve_size": self.reserve_size,
                "time_authority_url": self.time_authority_url,
                "ocsp_val": (
                    _encode(self.ocsp_val) if self.ocsp_val else None
                ),
            },
            indent=2,
        )


def sign(claim_path: PathLike, signature_path: PathLike) -> SignedClaim:
    """Signs a claim using the default configuration.

    In this default configuration we sign using the placeholder signer, so the
    resulting signature will never verify. This is useful to test the rest of
    the pipeline.

    Args:
        claim_path: the path to the claim to sign.
        signature_path: the path of the resulting signature.

    Returns:
        The signature and its metadata.
    """
    return Config().sign(claim_path, signature_path)


class Config:
    """Configuration to use when signing claims.

    Currently we support signing with a placeholder signer and with private
    keys paired with signing certificates. Other signers can be set directly.
    """

    def __init__(self):
        """Initializes the default configuration for signing."""
        self.use_placeholder_signer()

    @property
    def signer(self) -> Signer:
        """The signer used by this configuration."""
        return self._signer

    def sign(
        self, claim_path: PathLike, signature_path: PathLike
    ) -> SignedClaim:
        """Signs a claim file using the current configuration.

        Args:
            claim_path: The path to the claim to sign.
            signature_path: The path of the resulting signature.

        Returns:
            The signature and its metadata.
        """
        data = pathlib.Path(os.fsdecode(claim_path)).read_bytes()
        signed = self.sign_bytes(data)
        pathlib.Path(os.fsdecode(signature_path)).write_bytes(signed.signature)
        logger.info(f"Wrote signature for {claim_path} to {signature_path}")
        return signed

    def sign_bytes(self, data: bytes) -> SignedClaim:
        """Signs an in-memory claim using the current configuration.

        The metadata is collected before signing, as the space for the
        signature is reserved ahead of time.

        Args:
            data: The claim to sign.

        Returns:
            The signature and its metadata.

        Raises:
            SigningError: Signing failed or the signature does not fit in the
              reserved space.
            CertificateError: The certificate chain cannot be loaded.
        """
        reserve_size = self._signer.reserve_size()
        certs = self._signer.certs()
        alg = self._signer.alg()
        signature = signing.sign_claim(self._signer, data)

        return SignedClaim(
            signature=signature,
            alg=alg,
            certs=certs,
            reserve_size=reserve_size,
            time_authority_url=self._signer.time_authority_url(),
            ocsp_val=self._signer.ocsp_val(),
        )

    def use_signer(self, signer: Signer) -> Self:
        """Configures the signing to be performed with a custom signer.

        Args:
            signer: The signer to use.

        Return:
            The new signing configuration.
        """
        self._signer = signer
        return self

    def use_placeholder_signer(self) -> Self:
        """Configures the signing to use a placeholder signer.

        Signatures produced by this signer are always invalid.

        Return:
            The new signing configuration.
        """
        self._signer = placeholder.Placeholder()
        return self

    def use_key_signer(
        self,
        *,
        private_key: PathLike,
        signing_certificate: PathLike,
        alg: str,
        tsa_url: Optional[str] = None,
        password: Optional[str] = None,
        ocsp_response: Optional[PathLike] = None,
    ) -> Self:
        """Configures the signing to be performed using a private key.

        Args:
            private_key: The path to the PEM encoded private key.
            signing_certificate: The path to the PEM encoded signing
              certificate, optionally followed by the rest of the chain.
            alg: The signing algorithm (e.g., `es256`, `ps384`, `ed25519`).
            tsa_url: An optional timestamp authority URL.
            password: An optional password for the key, if encrypted.
            ocsp_response: An optional path to a DER encoded OCSP response
              for the signing certificate.

        Return:
            The new signing configuration.

        Raises:
            CredentialError: The credentials cannot be loaded.
        """
        signer = sign_key.Signer.from_files(
            signing_certificate, private_key, alg, tsa_url, password=password
        )
        if ocsp_response is not None:
            signer = signer.with_ocsp_response(
                signing.read_credential(ocsp_response)
            )
        self._signer = signer
        return self
