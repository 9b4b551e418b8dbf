"""Committee sampling strategies with reduced variance.

- :class:`PartitionSampler` splits validators into bins of equal stake and
  draws one validator per bin.
- :class:`FaitAccompli1Sampler` implements the FA1-F strategy: heavy
  validators are selected deterministically, the rest come from a fallback.
- :class:`FaitAccompli2Sampler` implements the FA2 strategy, which also
  treats medium-stake validators specially.
"""

from __future__ import annotations

import bisect
import dataclasses
import math
import random
from collections.abc import Iterable, Sequence
from itertools import accumulate

from alpenglow.sampling import SamplingError, SamplingStrategy, StakeWeightedSampler
from alpenglow.validator import Stake, ValidatorId, ValidatorInfo


def _draw(cumulative: Sequence[int], rng: random.Random) -> int:
    """Pick an index with probability proportional to its weight."""
    return bisect.bisect_right(cumulative, rng.randrange(cumulative[-1]))


def _fa1_split(
    validators: Sequence[ValidatorInfo], k: int
) -> tuple[list[ValidatorId], list[ValidatorInfo]]:
    """Return the deterministic FA1 samples and the validators' leftover stakes."""
    total_stake = sum(v.stake for v in validators)
    required: list[ValidatorId] = []
    truncated: list[ValidatorInfo] = []
    for v in validators:
        samples = math.floor(v.stake / total_stake * k)
        truncated.append(dataclasses.replace(v, stake=v.stake - samples * total_stake // k))
        required.extend([v.id] * samples)
    return required, truncated


class PartitionSampler(SamplingStrategy):
    """Samples in proportion to stake, one validator from each of several bins.

    Validators are randomly permuted and then cut into ``num_bins`` bins of
    equal stake. Within a bin a validator is drawn in proportion to the part
    of its stake that lies in that bin. A validator holding less stake than
    one bin appears in at most two bins and is thus drawn at most twice.
    """

    def __init__(self, validators: Iterable[ValidatorInfo], num_bins: int) -> None:
        self.validators = list(validators)
        self.bin_validators: list[list[ValidatorId]] = [[] for _ in range(num_bins)]
        self.bin_stakes: list[list[Stake]] = [[] for _ in range(num_bins)]
        self._bins: list[list[int]] = []
        if num_bins == 0:
            return

        total_stake = sum(v.stake for v in self.validators)
        stake_per_bin = -(-total_stake // num_bins)
        shuffled = list(self.validators)
        random.shuffle(shuffled)

        current_bin = 0
        current_bin_stake = 0
        for v in shuffled:
            stake = v.stake
            while stake > 0:
                self.bin_validators[current_bin].append(v.id)
                taken = min(stake, stake_per_bin - current_bin_stake)
                current_bin_stake += taken
                self.bin_stakes[current_bin].append(taken)
                stake -= taken
                if current_bin < num_bins - 1 and (
                    stake > 0 or current_bin_stake == stake_per_bin
                ):
                    current_bin += 1
                    current_bin_stake = 0

        for number, stakes in enumerate(self.bin_stakes):
            cumulative = list(accumulate(stakes))
            if not cumulative or cumulative[-1] <= 0:
                raise ValueError(f"bin {number} holds no stake")
            self._bins.append(cumulative)

    def sample(self, rng: random.Random) -> ValidatorId:
        """Not supported: a partition sampler only draws one validator per bin."""
        raise SamplingError("partition sampler only supports sample_multiple")

    def sample_info(self, rng: random.Random) -> ValidatorInfo:
        return self.validators[self.sample(rng)]

    def sample_multiple(self, k: int, rng: random.Random) -> list[ValidatorId]:
        """Draw one validator from every bin; ``k`` is fixed by the bin count."""
        return [
            members[_draw(cumulative, rng)]
            for cumulative, members in zip(self._bins, self.bin_validators)
        ]


class FaitAccompli1Sampler(SamplingStrategy):
    """The FA1-F committee sampling strategy.

    Any validator with more than ``1/k`` of the stake is selected
    ``floor(fraction * k)`` times deterministically. The remaining samples
    come from ``fallback_sampler``, built over the leftover stakes.
    """

    def __init__(
        self,
        validators: Iterable[ValidatorInfo],
        required_samples: Iterable[ValidatorId],
        fallback_sampler: SamplingStrategy,
    ) -> None:
        self.validators = list(validators)
        self.required_samples = list(required_samples)
        self.fallback_sampler = fallback_sampler

    @classmethod
    def with_partition_fallback(
        cls, validators: Iterable[ValidatorInfo], k: int
    ) -> FaitAccompli1Sampler:
        """Build an FA1 sampler for ``k`` samples with a :class:`PartitionSampler` fallback."""
        validators = list(validators)
        required, truncated = _fa1_split(validators, k)
        k_prime = k - len(required)
        if all(v.stake == 0 for v in truncated):
            fallback = PartitionSampler(validators, k_prime)
        else:
            fallback = PartitionSampler(truncated, k_prime)
        return cls(validators, required, fallback)

    @classmethod
    def with_stake_weighted_fallback(
        cls, validators: Iterable[ValidatorInfo], k: int
    ) -> FaitAccompli1Sampler:
        """Build an FA1 sampler for ``k`` samples with a stake-weighted IID fallback."""
        validators = list(validators)
        required, truncated = _fa1_split(validators, k)
        if all(v.stake == 0 for v in truncated):
            fallback = StakeWeightedSampler(validators)
        else:
            fallback = StakeWeightedSampler(truncated)
        return cls(validators, required, fallback)

    def sample(self, rng: random.Random) -> ValidatorId:
        return rng.randrange(len(self.validators))

    def sample_info(self, rng: random.Random) -> ValidatorInfo:
        return self.validators[self.sample(rng)]

    def sample_multiple(self, k: int, rng: random.Random) -> list[ValidatorId]:
        samples = list(self.required_samples)
        if len(samples) < k:
            samples.extend(self.fallback_sampler.sample_multiple(k - len(samples), rng))
        return samples


class FaitAccompli2Sampler(SamplingStrategy):
    """The FA2 committee sampling strategy, built for a fixed ``k``.

    Heavy validators are selected deterministically as in FA1, medium
    validators are each included with their own probability, and the rest
    is filled by a stake-weighted IID fallback sampler.
    """

    def __init__(self, validators: Iterable[ValidatorInfo], k: int) -> None:
        self.validators = list(validators)
        total_stake = sum(v.stake for v in self.validators)
        rel_stakes = [v.stake / total_stake for v in self.validators]

        self.required_samples: list[ValidatorId] = []
        for v, rel in zip(self.validators, rel_stakes):
            self.required_samples.extend([v.id] * math.floor(rel * k))

        f = self._minimize_f(rel_stakes, k)
        self.medium_nodes: list[tuple[ValidatorId, float]] = [
            (i, 1.0 - (fi - rel) * k)
            for i, (fi, rel) in enumerate(zip(f, rel_stakes))
            if fi > rel
        ]

        r = sum(rel - fi for fi, rel in zip(f, rel_stakes) if rel > fi)
        if r == 0.0:
            self.fallback_sampler = StakeWeightedSampler(self.validators)
        else:
            redistributed = [
                dataclasses.replace(
                    v, stake=int((rel - fi) / r * total_stake) if rel > fi else 0
                )
                for v, fi, rel in zip(self.validators, f, rel_stakes)
            ]
            self.fallback_sampler = StakeWeightedSampler(redistributed)

    @staticmethod
    def _minimize_f(rel_stakes: Sequence[float], k: int) -> list[float]:
        f = [math.floor(rel * k + 0.5) / k for rel in rel_stakes]
        if sum(f) > 1.0:
            raise ValueError("rounded stake fractions exceed one")
        return f

    def sample(self, rng: random.Random) -> ValidatorId:
        """Not supported: FA2 only draws whole committees."""
        raise SamplingError("FA2 only supports sample_multiple")

    def sample_info(self, rng: random.Random) -> ValidatorInfo:
        """Not supported: FA2 only draws whole committees."""
        raise SamplingError("FA2 only supports sample_multiple")

    def sample_multiple(self, k: int, rng: random.Random) -> list[ValidatorId]:
        samples = list(self.required_samples)
        for validator, probability in self.medium_nodes:
            if rng.random() < probability:
                samples.append(validator)
        if len(samples) < k:
            samples.extend(self.fallback_sampler.sample_multiple(k - len(samples), rng))
        return samples