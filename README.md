# alpenglow

Building blocks for the block dissemination layer of the Alpenglow
proof-of-stake consensus protocol, for research and simulation.

## What is inside

- `alpenglow.hashing`: SHA-256 helpers `hash_bytes`, `hash_all` and
  `truncate`. `truncate` cuts a 32-byte hash down to 16 bytes.
- `alpenglow.merkle`: `MerkleTree` with labelled leaf and inner hashes.
  It pads to a power of two with empty leaves. It also has `hash_leaf`,
  `hash_pair`, `check_proof` and `check_hash_proof` for verifying
  membership paths.
- `alpenglow.signature`: Ed25519 `SecretKey`, `PublicKey` and `Signature`.
- `alpenglow.validator`: the `ValidatorInfo` dataclass, and `Transaction`,
  whose payload is limited to 512 bytes.
- `alpenglow.weighted_shuffle`: `WeightedShuffle`, a stake-weighted shuffle
  in which zero-weight entries come last in uniformly random order.
- `alpenglow.sampling`: the `SamplingStrategy` interface together with
  `UniformSampler`, `StakeWeightedSampler`, `DecayingAcceptanceSampler` and
  `TurbineSampler`. A sampler that rejects every candidate raises
  `SamplingError`.
- `alpenglow.committee`: committee samplers with reduced variance. These are
  `PartitionSampler`, `FaitAccompli1Sampler` (built with
  `with_partition_fallback` or `with_stake_weighted_fallback`) and
  `FaitAccompli2Sampler`.
- `alpenglow.network`: `NetworkMessage` and `MessageKind`, which give a
  compact wire encoding limited to the 1500-byte MTU. The module also has the
  abstract async `Network` transport, `parse_addr`, and the `NetworkError`
  exception family.
- `alpenglow.logsetup`: `enable_logging()` writes compact, coloured,
  level-prefixed logs to standard error. `enable_logging_stderr()` writes a
  detailed format instead. The `ALPENGLOW_LOG` environment variable sets the
  level (`trace`, `debug`, `info`, `warn`, `error` or `off`). The default
  level is `error`.

## Installing

```
pip install .
```

Add the `test` extra to run the test suite:

```
pip install ".[test]"
pytest
```

## Examples

```python
from alpenglow.merkle import MerkleTree, check_proof

tree = MerkleTree([b"hello", b"world", b"data", b"test"])
proof = tree.create_proof(2)
assert check_proof(b"data", 2, tree.root(), proof)
```

```python
from alpenglow.signature import SecretKey

sk = SecretKey.generate()
sig = sk.sign(b"message")
assert sig.verify(b"message", sk.to_pk())
```

```python
import random

from alpenglow.sampling import StakeWeightedSampler
from alpenglow.signature import SecretKey
from alpenglow.validator import ValidatorInfo

validators = [
    ValidatorInfo(id=i, stake=stake, pubkey=SecretKey.generate().to_pk())
    for i, stake in enumerate([10, 1, 1])
]
sampler = StakeWeightedSampler(validators)
relays = sampler.sample_multiple(5, random.Random(7))
```

```python
from alpenglow.network import NetworkMessage

encoded = NetworkMessage.ping().to_bytes()
assert NetworkMessage.from_bytes(encoded) == NetworkMessage.ping()
```

## What this package does not do

The package holds the building blocks only. It has no block dissemination
protocol that sends shreds between validators. It has no concrete transport:
`Network` is an abstract interface, and you supply the UDP, TCP or simulated
implementation yourself. It has no command-line program or node that runs a
cluster.