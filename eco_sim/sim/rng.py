# eco_sim/sim/rng.py
import math
import random


class RNG:
    """Seedable random source handed to every stochastic call site."""

    def __init__(self, seed=None):
        self._rng = random.Random(seed)

    def random(self) -> float:
        return self._rng.random()

    def uniform(self, a: float, b: float) -> float:
        return self._rng.uniform(a, b)

    def chance(self, p: float) -> bool:
        return self._rng.random() < p

    def choice(self, seq):
        return self._rng.choice(seq)

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)

    def index(self, n: int) -> int:
        return self._rng.randrange(n)

    def angle(self) -> float:
        return self._rng.uniform(0.0, 2.0 * math.pi)

    def unit_vector(self):
        a = self.angle()
        return (math.cos(a), math.sin(a))

    def spread(self, half_width: float) -> float:
        """Uniform noise in [-half_width, +half_width]."""
        return self._rng.uniform(-half_width, half_width)
