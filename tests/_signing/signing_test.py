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

"""Tests for the signing contracts and reserve-checked signing."""

import asyncio
from typing import Optional

import pytest
from typing_extensions import override

from claim_signing._signing import signing


class _FixedSigner(signing.Signer):
    """A signer returning a configurable signature."""

    def __init__(self, signature: bytes, reserve_size: int):
        self._signature = signature
        self._reserve_size = reserve_size

    @override
    def sign(self, data: bytes) -> bytes:
        return self._signature

    @override
    def alg(self) -> Optional[str]:
        return "es256"

    @override
    def certs(self) -> list[bytes]:
        return [b"root", b"leaf"]

    @override
    def reserve_size(self) -> int:
        return self._reserve_size


class _FailingSigner(_FixedSigner):
    def __init__(self, error: Exception):
        super().__init__(b"", 128)
        self._error = error

    @override
    def sign(self, data: bytes) -> bytes:
        raise self._error


class _FixedAsyncSigner(signing.AsyncSigner):
    def __init__(self, signature: bytes, reserve_size: int):
        self._signature = signature
        self._reserve_size = reserve_size

    @override
    async def sign(self, data: bytes) -> bytes:
        await asyncio.sleep(0)
        return self._signature

    @override
    def reserve_size(self) -> int:
        return self._reserve_size


class TestSigner:
    def test_cannot_instantiate_abstract_signer(self):
        with pytest.raises(TypeError):
            signing.Signer()

    def test_cannot_instantiate_abstract_async_signer(self):
        with pytest.raises(TypeError):
            signing.AsyncSigner()

    def test_time_authority_url_defaults_to_none(self):
        signer = _FixedSigner(b"sig", 128)
        assert signer.time_authority_url() is None

    def test_ocsp_val_defaults_to_none(self):
        signer = _FixedSigner(b"sig", 128)
        assert signer.ocsp_val() is None


class TestConfigurableSigner:
    def test_from_signcert_and_pkey_is_abstract(self):
        class _Incomplete(signing.ConfigurableSigner, _FixedSigner):
            pass

        with pytest.raises(TypeError):
            _Incomplete(b"sig", 128)

    def test_from_files_delegates_to_bytes(self, tmp_path):
        recorded = []

        class _Recording(signing.ConfigurableSigner, _FixedSigner):
            @classmethod
            def from_signcert_and_pkey(cls, signcert, pkey, alg, tsa_url=None):
                recorded.append((signcert, pkey, alg, tsa_url))
                return cls(b"sig", 128)

        cert_path = tmp_path / "cert.pem"
        cert_path.write_bytes(b"certificate")
        key_path = tmp_path / "key.pem"
        key_path.write_bytes(b"key")

        signer = _Recording.from_files(
            cert_path, str(key_path), "es256", "http://tsa.example.com"
        )

        assert isinstance(signer, _Recording)
        assert recorded == [
            (b"certificate", b"key", "es256", "http://tsa.example.com")
        ]

    def test_from_files_missing_path(self, tmp_path):
        class _Unreachable(signing.ConfigurableSigner, _FixedSigner):
            @classmethod
            def from_signcert_and_pkey(cls, signcert, pkey, alg, tsa_url=None):
                raise AssertionError("should not be reached")

        with pytest.raises(signing.CredentialError, match="Cannot read"):
            _Unreachable.from_files(
                tmp_path / "missing.pem", tmp_path / "key.pem", "es256"
            )


class TestSignClaim:
    def test_returns_signature_within_reservation(self):
        signer = _FixedSigner(b"x" * 128, 128)
        assert signing.sign_claim(signer, b"claim") == b"x" * 128

    def test_rejects_signature_exceeding_reservation(self):
        signer = _FixedSigner(b"x" * 129, 128)
        with pytest.raises(signing.SigningError, match="does not fit"):
            signing.sign_claim(signer, b"claim")

    def test_signing_error_propagates(self):
        error = signing.SigningError("key unusable")
        signer = _FailingSigner(error)

        with pytest.raises(signing.SigningError) as exc_info:
            signing.sign_claim(signer, b"claim")

        assert exc_info.value is error

    def test_backend_errors_are_wrapped(self):
        signer = _FailingSigner(RuntimeError("HSM unavailable"))

        with pytest.raises(signing.SigningError, match="HSM unavailable") as e:
            signing.sign_claim(signer, b"claim")

        assert isinstance(e.value.__cause__, RuntimeError)

    def test_errors_share_base_class(self):
        assert issubclass(signing.SigningError, signing.SignerError)
        assert issubclass(signing.CertificateError, signing.SignerError)
        assert issubclass(signing.CredentialError, signing.SignerError)


class TestAsyncSignClaim:
    def test_returns_signature_within_reservation(self):
        signer = _FixedAsyncSigner(b"sig", 128)
        signature = asyncio.run(signing.async_sign_claim(signer, b"claim"))
        assert signature == b"sig"

    def test_rejects_signature_exceeding_reservation(self):
        signer = _FixedAsyncSigner(b"x" * 200, 128)
        with pytest.raises(signing.SigningError, match="does not fit"):
            asyncio.run(signing.async_sign_claim(signer, b"claim"))


class TestCheckSignatureSize:
    def test_signature_filling_the_reservation(self):
        signature = b"x" * 64
        assert signing.check_signature_size(signature, 64) is signature

    def test_empty_signature(self):
        assert signing.check_signature_size(b"", 0) == b""

    def test_one_byte_over_is_rejected(self):
        with pytest.raises(signing.SigningError, match="65 bytes"):
            signing.check_signature_size(b"x" * 65, 64)


class TestReadCredential:
    def test_reads_bytes(self, tmp_path):
        path = tmp_path / "key.pem"
        path.write_bytes(b"secret")
        assert signing.read_credential(path) == b"secret"
        assert signing.read_credential(str(path)) == b"secret"

    def test_directory_is_not_a_credential(self, tmp_path):
        with pytest.raises(signing.CredentialError):
            signing.read_credential(tmp_path)
