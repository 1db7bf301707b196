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

"""Test fixtures to share between tests. Not part of the public API."""

import dataclasses
import datetime
import pathlib
from typing import Optional

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric import ed25519
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509 import ocsp
from cryptography.x509.oid import NameOID
import pytest


# Claim contents
KNOWN_CLAIM: bytes = b"This is a simple claim"


@dataclasses.dataclass
class Credentials:
    """Signing credentials written to disk, with their in-memory values."""

    private_key: object
    leaf: x509.Certificate
    root: x509.Certificate
    root_key: ec.EllipticCurvePrivateKey
    key_pem: bytes
    chain_pem: bytes
    key_path: pathlib.Path
    chain_path: pathlib.Path
    intermediate: Optional[x509.Certificate] = None
    intermediate_key: Optional[ec.EllipticCurvePrivateKey] = None

    def ocsp_response(
        self, status: ocsp.OCSPCertStatus = ocsp.OCSPCertStatus.GOOD
    ) -> bytes:
        """Builds a DER encoded OCSP response for the leaf certificate."""
        if self.intermediate is not None:
            issuer, issuer_key = self.intermediate, self.intermediate_key
        else:
            issuer, issuer_key = self.root, self.root_key

        now = datetime.datetime.now(datetime.timezone.utc)
        builder = (
            ocsp.OCSPResponseBuilder()
            .add_response(
                cert=self.leaf,
                issuer=issuer,
                algorithm=hashes.SHA256(),
                cert_status=status,
                this_update=now,
                next_update=now + datetime.timedelta(days=1),
                revocation_time=None,
                revocation_reason=None,
            )
            .responder_id(ocsp.OCSPResponderEncoding.HASH, issuer)
        )
        response = builder.sign(issuer_key, hashes.SHA256())
        return response.public_bytes(serialization.Encoding.DER)


def _generate_key(kind: str):
    match kind:
        case "es256":
            return ec.generate_private_key(ec.SECP256R1())
        case "es384":
            return ec.generate_private_key(ec.SECP384R1())
        case "es512":
            return ec.generate_private_key(ec.SECP521R1())
        case "ps256" | "ps384" | "ps512":
            return rsa.generate_private_key(
                public_exponent=65537, key_size=2048
            )
        case "ed25519":
            return ed25519.Ed25519PrivateKey.generate()
        case _:
            raise ValueError(f"Unknown key kind {kind}")


def _build_certificate(
    subject_key, issuer_key, subject: str, issuer: str, is_ca: bool
) -> x509.Certificate:
    now = datetime.datetime.now(datetime.timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(
            x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, subject)])
        )
        .issuer_name(
            x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, issuer)])
        )
        .public_key(subject_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .add_extension(
            x509.BasicConstraints(ca=is_ca, path_length=None), critical=True
        )
    )
    return builder.sign(issuer_key, hashes.SHA256())


def _to_pem(certificate: x509.Certificate) -> bytes:
    return certificate.public_bytes(serialization.Encoding.PEM)


@pytest.fixture
def make_credentials(tmp_path_factory):
    """Factory for credentials of a given key kind.

    The certificate file holds the leaf certificate first and the root last,
    as is usual for PEM bundles. With `with_intermediate`, the leaf is issued
    by an intermediate CA placed between them.
    """

    def _make(
        kind: str = "es256",
        password: bytes | None = None,
        with_intermediate: bool = False,
    ):
        root_key = ec.generate_private_key(ec.SECP256R1())
        root = _build_certificate(
            root_key, root_key, "Test Root", "Test Root", is_ca=True
        )

        intermediate = None
        intermediate_key = None
        issuer_key, issuer_name = root_key, "Test Root"
        if with_intermediate:
            intermediate_key = ec.generate_private_key(ec.SECP256R1())
            intermediate = _build_certificate(
                intermediate_key,
                root_key,
                "Test Intermediate",
                "Test Root",
                is_ca=True,
            )
            issuer_key, issuer_name = intermediate_key, "Test Intermediate"

        private_key = _generate_key(kind)
        leaf = _build_certificate(
            private_key, issuer_key, "Test Signer", issuer_name, is_ca=False
        )

        encryption = (
            serialization.BestAvailableEncryption(password)
            if password
            else serialization.NoEncryption()
        )
        key_pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=encryption,
        )
        chain = [leaf, intermediate, root] if intermediate else [leaf, root]
        chain_pem = b"".join(_to_pem(c) for c in chain)

        directory = tmp_path_factory.mktemp("credentials")
        key_path = directory / "signing-key.pem"
        key_path.write_bytes(key_pem)
        chain_path = directory / "signing-cert.pem"
        chain_path.write_bytes(chain_pem)

        return Credentials(
            private_key=private_key,
            leaf=leaf,
            root=root,
            root_key=root_key,
            key_pem=key_pem,
            chain_pem=chain_pem,
            key_path=key_path,
            chain_path=chain_path,
            intermediate=intermediate,
            intermediate_key=intermediate_key,
        )

    return _make


@pytest.fixture
def credentials(make_credentials):
    """Credentials for an ES256 signer."""
    return make_credentials("es256")


@pytest.fixture
def claim_file(tmp_path):
    """A claim stored on disk."""
    path = tmp_path / "claim.bin"
    path.write_bytes(KNOWN_CLAIM)
    return path
