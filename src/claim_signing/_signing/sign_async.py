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

"""Async signers built on top of synchronous ones."""

import asyncio

from typing_extensions import override

from claim_signing._signing import signing


class ThreadedAsyncSigner(signing.AsyncSigner):
    """Runs a synchronous signer in a worker thread.

    The event loop is not blocked while the wrapped signer works (e.g., while
    it talks to a timestamp authority or a hardware module).
    """

    def __init__(self, signer: signing.Signer):
        """Initializes the async signer.

        Args:
            signer: The synchronous signer to delegate to. It is also the
              source of the certificate chain and algorithm, via `signer`.
        """
        self._signer = signer

    @property
    def signer(self) -> signing.Signer:
        """The wrapped synchronous signer."""
        return self._signer

    @override
    async def sign(self, data: bytes) -> bytes:
        return await asyncio.to_thread(self._signer.sign, data)

    @override
    def reserve_size(self) -> int:
        return self._signer.reserve_size()
