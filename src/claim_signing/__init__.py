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

"""Pluggable signing of provenance claims.

A claim is an opaque byte payload (e.g., the content of a provenance
manifest). Signing it produces a detached signature plus the metadata needed to
embed the signature in the manifest: the certificate chain (signing certificate
last), the algorithm name, an optional timestamp authority URL and an optional
cached OCSP response.

All signers implement the same contract, `claim_signing.signing.Signer`, or its
non-blocking counterpart `claim_signing.signing.AsyncSigner`. Each signer also
declares, ahead of signing, the maximum size of its signatures. Manifests are
laid out with that much space reserved for the signature, and signing fails if
the signature does not fit.

Signing can be done using the default configuration, which uses a placeholder
signer producing signatures that never verify:

```python
claim_signing.signing.sign("claim.bin", "claim.sig")
```

Alternatively, a private key and its signing certificate can be used:

```python
claim_signing.signing.Config().use_key_signer(
    private_key="key.pem", signing_certificate="chain.pem", alg="es256"
).sign("claim.bin", "claim.sig")
```

Signers can also be built directly from credential material:

```python
signer = claim_signing.signing.KeySigner.from_signcert_and_pkey(
    cert_bytes, key_bytes, "ed25519", tsa_url="http://timestamp.example.com"
)
signature = claim_signing.signing.sign_claim(signer, claim)
```

Validating signatures is out of scope of this package.
"""

from claim_signing import signing


__version__ = "1.0.0"


__all__ = ["signing"]
