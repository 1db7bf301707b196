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

"""Signing algorithms supported by the key based signers."""

import enum
from typing import Optional

from cryptography.hazmat.primitives import hashes


class SigningAlg(str, enum.Enum):
    """Signing algorithms, named as in COSE/JWS (lower case)."""

    ES256 = "es256"
    ES384 = "es384"
    ES512 = "es512"
    PS256 = "ps256"
    PS384 = "ps384"
    PS512 = "ps512"
    ED25519 = "ed25519"

    @classmethod
    def parse(cls, name: str) -> "SigningAlg":
        """Returns the algorithm with the given name, ignoring case.

        Raises:
            ValueError: The algorithm is not supported.
        """
        if not isinstance(name, str):
            raise ValueError(
                f"Signing algorithm must be a string, got {name!r}"
            )
        try:
            return cls(name.lower())
        except ValueError:
            supported = ", ".join(alg.value for alg in cls)
            raise ValueError(
                f"Unsupported signing algorithm '{name}', "
                f"expected one of: {supported}"
            ) from None

    @property
    def is_ecdsa(self) -> bool:
        return self.value.startswith("es")

    @property
    def is_rsa_pss(self) -> bool:
        return self.value.startswith("ps")

    def hash_algorithm(self) -> Optional[hashes.HashAlgorithm]:
        """Returns the hash used with this algorithm.

        EdDSA hashes internally, so there is no hash to select for Ed25519.
        """
        match self.value[-3:]:
            case "256":
                return hashes.SHA256()
            case "384":
                return hashes.SHA384()
            case "512":
                return hashes.SHA512()
            case _:
                return None

    def curve_name(self) -> Optional[str]:
        """Returns the elliptic curve required by ECDSA algorithms."""
        return _CURVES.get(self)


_CURVES = {
    SigningAlg.ES256: "secp256r1",
    SigningAlg.ES384: "secp384r1",
    SigningAlg.ES512: "secp521r1",
}
