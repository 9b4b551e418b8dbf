"""Strategies for randomly sampling validators.

Every strategy implements :class:`SamplingStrategy`. A strategy has to
provide :meth:`SamplingStrategy.sample` and
:meth:`SamplingStrategy.sample_info`. Drawing ``k`` validators with
:meth:`SamplingStrategy.sample_multiple` comes for free, and strategies may
override it.

- :class:`UniformSampler` samples uniformly with replacement.
- :class:`StakeWeightedSampler` samples in proportion to stake.
- :class:`DecayingAcceptanceSampler` samples a validator less often the more
  often it was already picked.
- :class:`TurbineSampler` mimics the workload distribution of Turbine.
"""

from __future__ import annotations

import bisect
import dataclasses
import random
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable
from itertools import accumulate

from alpenglow.validator import ValidatorId, ValidatorInfo

MAX_TRIES_PER_SAMPLE = 100_000

# Fanout of a Turbine tree unless configured otherwise.
DEFAULT_FANOUT = 200

_MAX_STAKE = 2**64 - 1


class SamplingError(RuntimeError):
    """Raised when a sampler rejects every candidate it draws."""


class SamplingStrategy(ABC):
    """Draws validators at random according to some distribution."""

    @abstractmethod
    def sample(self, rng: random.Random) -> ValidatorId:
        """Draw one validator ID. May or may not change the sampler's state."""

    @abstractmethod
    def sample_info(self, rng: random.Random) -> ValidatorInfo:
        """Draw one validator and return its info."""

    def sample_multiple(self, k: int, rng: random.Random) -> list[ValidatorId]:
        """Draw ``k`` validator IDs."""
        return [self.sample(rng) for _ in range(k)]


class UniformSampler(SamplingStrategy):
    """Picks every validator with equal probability, with replacement."""

    def __init__(self, validators: Iterable[ValidatorInfo]) -> None:
        self.validators = list(validators)

    def sample(self, rng: random.Random) -> ValidatorId:
        return rng.randrange(len(self.validators))

    def sample_info(self, rng: random.Random) -> ValidatorInfo:
        return self.validators[self.sample(rng)]


class StakeWeightedSampler(SamplingStrategy):
    """Picks validators in proportion to their stake, with replacement."""

    def __init__(self, validators: Iterable[ValidatorInfo]) -> None:
        self.validators = list(validators)
        if not self.validators:
            raise ValueError("cannot sample from an empty set of validators")
        if any(v.stake < 0 for v in self.validators):
            raise ValueError("stakes must not be negative")
        self._cumulative = list(accumulate(v.stake for v in self.validators))
        self._total = self._cumulative[-1]
        if self._total == 0:
            raise ValueError("total stake must be positive")

    def sample(self, rng: random.Random) -> ValidatorId:
        return bisect.bisect_right(self._cumulative, rng.randrange(self._total))

    def sample_info(self, rng: random.Random) -> ValidatorInfo:
        return self.validators[self.sample(rng)]


class DecayingAcceptanceSampler(SamplingStrategy):
    """A hybrid between weighted sampling with and without replacement.

    A validator that was drawn ``c`` times before is rejected with
    probability ``c / max_samples``, so it is drawn at most
    ``ceil(max_samples)`` times. ``max_samples = 1`` gives stake-weighted
    sampling without replacement; ``max_samples = inf`` gives sampling with
    replacement.
    """

    def __init__(self, validators: Iterable[ValidatorInfo], max_samples: float) -> None:
        self._stake_weighted = StakeWeightedSampler(validators)
        self.max_samples = max_samples
        self._lock = threading.Lock()
        self._counts = [0] * len(self._stake_weighted.validators)

    @property
    def validators(self) -> list[ValidatorInfo]:
        return self._stake_weighted.validators

    def reset(self) -> None:
        """Forget all earlier draws."""
        with self._lock:
            self._counts = [0] * len(self._stake_weighted.validators)

    def sample(self, rng: random.Random) -> ValidatorId:
        """Draw one validator, raising :class:`SamplingError` if all tries fail."""
        for _ in range(MAX_TRIES_PER_SAMPLE):
            candidate = self._stake_weighted.sample(rng)
            with self._lock:
                p_reject = self._counts[candidate] / self.max_samples
                if rng.random() >= p_reject:
                    self._counts[candidate] += 1
                    return candidate
        raise SamplingError(f"rejected all {MAX_TRIES_PER_SAMPLE} samples")

    def sample_info(self, rng: random.Random) -> ValidatorInfo:
        return self.validators[self.sample(rng)]

    def sample_multiple(self, k: int, rng: random.Random) -> list[ValidatorId]:
        """Draw ``k`` validators, then reset the draw counts."""
        samples = [self.sample(rng) for _ in range(k)]
        self.reset()
        return samples


class TurbineSampler(SamplingStrategy):
    """Samples relays so that work is spread as it would be in Turbine.

    No validator should be picked with probability above
    ``turbine_fanout / len(validators)``. Only two Turbine levels are modelled.
    """

    def __init__(
        self, validators: Iterable[ValidatorInfo], turbine_fanout: int = DEFAULT_FANOUT
    ) -> None:
        validators = list(validators)
        total_stake = sum(v.stake for v in validators)
        expected_work = [0.0] * len(validators)

        for leader in validators:
            validators_left = len(validators) - 1
            prob = leader.stake / total_stake
            expected_work[leader.id] += prob
            for root in validators:
                if root.id == leader.id:
                    continue
                left = validators_left - 1
                stake_left = total_stake - leader.stake
                root_prob = prob * root.stake / stake_left
                expected_work[root.id] += root_prob * min(turbine_fanout, left)
                full_level1_slots = left // turbine_fanout
                partial_level1_work = left % turbine_fanout
                for candidate in validators:
                    if candidate.id in (leader.id, root.id):
                        continue
                    select_prob = candidate.stake / (total_stake - root.stake)
                    miss_all = (1.0 - select_prob) ** full_level1_slots
                    prob_full = root_prob * (1.0 - miss_all)
                    expected_work[candidate.id] += prob_full * turbine_fanout
                    prob_partial = root_prob * miss_all * select_prob
                    expected_work[candidate.id] += prob_partial * partial_level1_work

        reweighted = [
            dataclasses.replace(v, stake=min(max(int(work * 1_000_000_000.0), 0), _MAX_STAKE))
            for v, work in zip(validators, expected_work)
        ]
        self._stake_weighted = StakeWeightedSampler(reweighted)

    @property
    def validators(self) -> list[ValidatorInfo]:
        """Validators with stakes replaced by their expected Turbine work."""
        return self._stake_weighted.validators

    def sample(self, rng: random.Random) -> ValidatorId:
        """Draw one validator, raising :class:`SamplingError` if all tries fail."""
        root = self._stake_weighted.sample(rng)
        if rng.random() < 0.2:
            return root
        for _ in range(MAX_TRIES_PER_SAMPLE):
            candidate = self._stake_weighted.sample(rng)
            if candidate != root:
                return candidate
        raise SamplingError(f"rejected all {MAX_TRIES_PER_SAMPLE} samples")

    def sample_info(self, rng: random.Random) -> ValidatorInfo:
        return self.validators[self.sample(rng)]