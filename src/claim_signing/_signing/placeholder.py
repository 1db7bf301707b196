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

"""Signers that don't sign.

These are useful for testing and development, where the rest of the pipeline
(manifest assembly, embedding, size budgeting) has to run end to end but a
valid signature is not needed. Claims signed with these will not verify.
"""

from typing import Optional

from typing_extensions import override

from claim_signing._signing import signing


_INVALID_SIGNATURE: bytes = b"invalid signature"
_RESERVE_SIZE: int = 128


class Placeholder(signing.Signer):
    """A signer that always returns the same, invalid, signature."""

    @override
    def sign(self, data: bytes) -> bytes:
        del data  # unused
        return _INVALID_SIGNATURE

    @override
    def alg(self) -> Optional[str]:
        return None

    @override
    def certs(self) -> list[bytes]:
        return []

    @override
    def reserve_size(self) -> int:
        return _RESERVE_SIZE


class AsyncPlaceholder(signing.AsyncSigner):
    """Async version of `Placeholder`."""

    @override
    async def sign(self, data: bytes) -> bytes:
        del data  # unused
        return _INVALID_SIGNATURE

    @override
    def reserve_size(self) -> int:
        return _RESERVE_SIZE
