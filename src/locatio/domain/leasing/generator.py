"""Heroku-style subdomain name generator (``adjective-noun-NN``).

Example: ``sunny-meadow-42``, ``crystal-peak-17``, ``golden-river-89``.
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

from locatio.foundation.domain.subdomain_value_objects import subdomain_errors

if TYPE_CHECKING:
    from collections.abc import Callable, Container

ADJECTIVES: tuple[str, ...] = (
    "amber", "ancient", "autumn", "azure", "bright", "calm", "clear", "coral",
    "cosmic", "crimson", "crystal", "dapper", "dawn", "dusk", "ember", "fading",
    "fallen", "fierce", "fiery", "gentle", "gilded", "golden", "graceful", "hidden",
    "icy", "jade", "keen", "lively", "lunar", "midnight", "misty", "noble",
    "ocean", "pearl", "polished", "pristine", "proud", "quiet", "radiant", "rapid",
    "royal", "rustic", "sacred", "serene", "shadow", "shining", "silent", "silver",
    "smooth", "snowy", "solar", "starry", "steady", "still", "stormy", "summer",
    "sunny", "swift", "twilight", "violet", "wandering", "warm", "wild", "winter",
    "wispy", "wooden", "young", "zesty",
)  # fmt: skip

NOUNS: tuple[str, ...] = (
    "bay", "beach", "bluff", "brook", "canyon", "cave", "cliff", "cloud",
    "coast", "cove", "creek", "delta", "dune", "field", "forest", "garden",
    "glade", "glen", "grove", "harbor", "haven", "hill", "hollow", "horizon",
    "inlet", "island", "lagoon", "lake", "landing", "meadow", "mesa", "mist",
    "moon", "mountain", "oasis", "ocean", "orchard", "passage", "path", "peak",
    "pine", "plains", "pond", "prairie", "rain", "reef", "ridge", "river",
    "rock", "sand", "shadow", "shore", "sky", "slope", "spring", "star",
    "stone", "storm", "stream", "summit", "sun", "sunset", "surf", "tide",
    "trail", "tree", "valley", "view", "village", "vista", "water", "wave",
    "willow", "wind", "wood",
)  # fmt: skip


class NameSpaceExhaustedError(RuntimeError):
    """The generator could not find enough unused names."""


class SubdomainNameGenerator:
    """Generates candidate names for the pool.

    Args:
        rng: Random source; pass a seeded ``random.Random`` for reproducible output.
        is_taken: Optional external uniqueness check (e.g. names tenants
            registered outside the pool). Names for which it returns True
            are skipped.
        max_attempts_per_name: Draws allowed per requested name before giving up.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        *,
        is_taken: Callable[[str], bool] | None = None,
        max_attempts_per_name: int = 50,
    ) -> None:
        self._rng = rng or random.Random()
        self._is_taken = is_taken
        self._max_attempts_per_name = max_attempts_per_name

    def build_name(self) -> str:
        adjective = self._rng.choice(ADJECTIVES)
        noun = self._rng.choice(NOUNS)
        number = self._rng.randint(10, 99)
        return f"{adjective}-{noun}-{number}"

    def _usable(self, name: str, exclude: Container[str]) -> bool:
        if name in exclude or subdomain_errors(name):
            return False
        return not (self._is_taken is not None and self._is_taken(name))

    def generate(self, exclude: Container[str] = frozenset()) -> str:
        """Return one name not in ``exclude``."""
        return self.generate_batch(1, exclude=exclude)[0]

    def generate_batch(self, count: int, exclude: Container[str] = frozenset()) -> list[str]:
        """Return ``count`` distinct names, none of them in ``exclude``.

        Raises:
            NameSpaceExhaustedError: If too many draws collide.
        """
        names: list[str] = []
        seen: set[str] = set()
        attempts = 0
        attempt_limit = max(count, 1) * self._max_attempts_per_name
        while len(names) < count:
            attempts += 1
            if attempts > attempt_limit:
                msg = f"Could only generate {len(names)} of {count} unused subdomain names"
                raise NameSpaceExhaustedError(msg)
            name = self.build_name()
            if name in seen or not self._usable(name, exclude):
                continue
            seen.add(name)
            names.append(name)
        return names
