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

"""Signers using a private key and its signing certificate."""

from collections.abc import Sequence
import copy
import logging
import sys
from typing import Optional

from asn1crypto import ocsp
from asn1crypto.algos import DSASignature
from cryptography import exceptions
from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric import ed25519
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric import types as crypto_types
from typing_extensions import override

from claim_signing._signing import signing
from claim_signing._signing.algorithms import SigningAlg


if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self


logger = logging.getLogger(__name__)


# Room for the signature itself and the structure wrapping it
_BASE_RESERVE_SIZE: int = 1024

# Room for the timestamp authority countersignature, if used
_TIMESTAMP_RESERVE_SIZE: int = 10000

_MIN_RSA_KEY_SIZE: int = 2048


def _check_key_for_alg(
    private_key: crypto_types.PrivateKeyTypes, alg: SigningAlg
) -> None:
    """Checks that the private key can be used with the signing algorithm.

    Args:
        private_key: The private key to check.
        alg: The algorithm the key is going to be used with.

    Raises:
        CredentialError: The key cannot be used with the algorithm.
    """
    if alg.is_ecdsa:
        if not isinstance(private_key, ec.EllipticCurvePrivateKey):
            raise signing.CredentialError(
                f"Algorithm {alg.value} requires an elliptic curve key"
            )
        curve = private_key.curve.name
        if curve != alg.curve_name():
            raise signing.CredentialError(
                f"Algorithm {alg.value} requires curve "
                f"'{alg.curve_name()}', got '{curve}'"
            )
    elif alg.is_rsa_pss:
        if not isinstance(private_key, rsa.RSAPrivateKey):
            raise signing.CredentialError(
                f"Algorithm {alg.value} requires an RSA key"
            )
        if private_key.key_size < _MIN_RSA_KEY_SIZE:
            raise signing.CredentialError(
                f"RSA key of {private_key.key_size} bits is too small, "
                f"need at least {_MIN_RSA_KEY_SIZE}"
            )
    elif not isinstance(private_key, ed25519.Ed25519PrivateKey):
        raise signing.CredentialError(
            f"Algorithm {alg.value} requires an Ed25519 key"
        )


def _order_chain(
    private_key: crypto_types.PrivateKeyTypes,
    certificates: Sequence[x509.Certificate],
) -> list[x509.Certificate]:
    """Moves the certificate paired with the private key to the end.

    The other certificates keep their relative order.

    Raises:
        CredentialError: No certificate matches the private key, or the
          public key of a certificate cannot be loaded.
    """
    public_key = private_key.public_key()
    for index, certificate in enumerate(certificates):
        try:
            certificate_key = certificate.public_key()
        except (ValueError, exceptions.UnsupportedAlgorithm) as e:
            raise signing.CredentialError(
                f"Cannot load public key of certificate {index}: {e}"
            ) from e
        if certificate_key == public_key:
            others = [c for i, c in enumerate(certificates) if i != index]
            return others + [certificate]

    raise signing.CredentialError(
        "No certificate matches the public key paired with the private key"
    )


def _load_ocsp_response(ocsp_response: bytes, serial_number: int) -> bytes:
    """Checks that the bytes are a successful OCSP response for the cert.

    Args:
        ocsp_response: The DER encoded OCSP response.
        serial_number: Serial number of the signing certificate.

    Raises:
        CredentialError: The response is malformed, unsuccessful, or does not
          cover the signing certificate.
    """
    try:
        response = ocsp.OCSPResponse.load(ocsp_response)
        status = response["response_status"].native
    except (ValueError, TypeError) as e:
        raise signing.CredentialError(f"Invalid OCSP response: {e}") from e

    if status != "successful":
        raise signing.CredentialError(
            f"OCSP response has status '{status}', expected 'successful'"
        )

    try:
        single_responses = response.response_data["responses"]
        serial_numbers = [
            single["cert_id"]["serial_number"].native
            for single in single_responses
        ]
    except (ValueError, TypeError, KeyError) as e:
        raise signing.CredentialError(f"Invalid OCSP response: {e}") from e

    if serial_number not in serial_numbers:
        raise signing.CredentialError(
            "OCSP response does not cover the signing certificate "
            f"(serial number {serial_number:x})"
        )
    return ocsp_response


class Signer(signing.ConfigurableSigner):
    """Signer using a private key and a chain of certificates.

    Supports ECDSA (P-256, P-384, P-521), RSA-PSS and Ed25519 keys. ECDSA
    signatures are produced in the fixed length `r || s` form.
    """

    def __init__(
        self,
        private_key: crypto_types.PrivateKeyTypes,
        certificates: Sequence[x509.Certificate],
        alg: SigningAlg,
        tsa_url: Optional[str] = None,
        ocsp_response: Optional[bytes] = None,
    ):
        """Initializes the signer with already loaded credentials.

        Prefer `from_files` or `from_signcert_and_pkey` instead.

        Args:
            private_key: The private key to sign with.
            certificates: The signing certificate and its chain, in any order.
            alg: The signing algorithm.
            tsa_url: Optional URL of a timestamp authority.
            ocsp_response: Optional DER encoded OCSP response for the signing
              certificate.

        Raises:
            CredentialError: The key does not match the algorithm or any of
              the certificates, or the OCSP response is invalid.
        """
        _check_key_for_alg(private_key, alg)
        chain = _order_chain(private_key, certificates)

        self._private_key = private_key
        self._alg = alg
        self._tsa_url = tsa_url
        self._serial_number = chain[-1].serial_number
        self._ocsp_response = (
            _load_ocsp_response(ocsp_response, self._serial_number)
            if ocsp_response
            else None
        )
        self._certs = [
            c.public_bytes(encoding=serialization.Encoding.DER) for c in chain
        ]

        self._reserve_size = _BASE_RESERVE_SIZE + sum(
            len(c) for c in self._certs
        )
        if tsa_url:
            self._reserve_size += _TIMESTAMP_RESERVE_SIZE

        logger.debug(
            f"Loaded {alg.value} signer with {len(self._certs)} "
            f"certificate(s), reserving {self._reserve_size} bytes"
        )

    @classmethod
    @override
    def from_files(
        cls,
        signcert_path: signing.PathLike,
        pkey_path: signing.PathLike,
        alg: str,
        tsa_url: Optional[str] = None,
        password: Optional[str] = None,
    ) -> Self:
        signcert = signing.read_credential(signcert_path)
        pkey = signing.read_credential(pkey_path)
        return cls.from_signcert_and_pkey(
            signcert, pkey, alg, tsa_url, password=password
        )

    @classmethod
    @override
    def from_signcert_and_pkey(
        cls,
        signcert: bytes,
        pkey: bytes,
        alg: str,
        tsa_url: Optional[str] = None,
        password: Optional[str] = None,
    ) -> Self:
        try:
            signing_alg = SigningAlg.parse(alg)
        except ValueError as e:
            raise signing.CredentialError(str(e)) from e

        try:
            private_key = serialization.load_pem_private_key(
                pkey, password.encode("utf-8") if password else None
            )
        except (ValueError, TypeError, exceptions.UnsupportedAlgorithm) as e:
            raise signing.CredentialError(
                f"Cannot load private key: {e}"
            ) from e

        try:
            certificates = x509.load_pem_x509_certificates(signcert)
        except ValueError as e:
            raise signing.CredentialError(
                f"Cannot load certificates: {e}"
            ) from e

        return cls(private_key, certificates, signing_alg, tsa_url)

    def with_ocsp_response(self, ocsp_response: bytes) -> Self:
        """Returns a copy of this signer which also carries an OCSP response.

        Args:
            ocsp_response: DER encoded OCSP response for the signing
              certificate, usually fetched ahead of time and cached.

        Raises:
            CredentialError: The response is not a successful OCSP response
              for the signing certificate.
        """
        new_signer = copy.copy(self)
        new_signer._ocsp_response = _load_ocsp_response(
            ocsp_response, self._serial_number
        )
        return new_signer

    @override
    def sign(self, data: bytes) -> bytes:
        try:
            signature = self._raw_sign(data)
        except (ValueError, TypeError, exceptions.UnsupportedAlgorithm) as e:
            raise signing.SigningError(
                f"Signing with {self._alg.value} failed: {e}"
            ) from e

        return signing.check_signature_size(signature, self._reserve_size)

    def _raw_sign(self, data: bytes) -> bytes:
        hash_algorithm = self._alg.hash_algorithm()

        if self._alg.is_ecdsa:
            der_signature = self._private_key.sign(
                data, ec.ECDSA(hash_algorithm)
            )
            # COSE wants `r || s`, each padded to the size of the curve
            size = (self._private_key.curve.key_size + 7) // 8
            decoded = DSASignature.load(der_signature)
            r = decoded["r"].native
            s = decoded["s"].native
            return r.to_bytes(size, "big") + s.to_bytes(size, "big")

        if self._alg.is_rsa_pss:
            return self._private_key.sign(
                data,
                padding.PSS(
                    mgf=padding.MGF1(hash_algorithm),
                    salt_length=hash_algorithm.digest_size,
                ),
                hash_algorithm,
            )

        return self._private_key.sign(data)

    @override
    def alg(self) -> Optional[str]:
        return self._alg.value

    @override
    def certs(self) -> list[bytes]:
        return list(self._certs)

    @override
    def reserve_size(self) -> int:
        return self._reserve_size

    @override
    def time_authority_url(self) -> Optional[str]:
        return self._tsa_url

    @override
    def ocsp_val(self) -> Optional[bytes]:
        return self._ocsp_response
