import random
from collections import Counter

import pytest

from backend.src.carcassonne.selection import (
    SELECTION_REGISTRY,
    get_selector,
    rank_biased_index,
    select_parent_indices,
    tournament_index,
)


def test_rank_biased_frequency_favours_best():
    """Index 0 is drawn most often and index N-1 least often."""
    print("\n" + "=" * 60)
    print("INPUT")
    print("=" * 60)
    n, draws = 10, 20000
    print(f"Population size {n}, {draws} draws, seed 42...")

    print("\n" + "=" * 60)
    print("PROCESS")
    print("=" * 60)
    rng = random.Random(42)
    counts = Counter(rank_biased_index(rng, n) for _ in range(draws))
    print("Counting draws per rank...")

    print("\n" + "=" * 60)
    print("OUTPUT")
    print("=" * 60)
    for idx in range(n):
        print(f"  rank {idx}: {counts[idx]}")

    print("\n" + "=" * 60)
    print("VERIFICATION")
    print("=" * 60)
    failures = []
    if set(counts) - set(range(n)):
        failures.append(f"Out-of-range indices drawn: {sorted(set(counts) - set(range(n)))}")
    if counts[0] != max(counts.values()):
        failures.append(f"Rank 0 drawn {counts[0]} times, not the most frequent")
    if counts[n - 1] != min(counts[i] for i in range(n)):
        failures.append(f"Rank {n - 1} drawn {counts[n - 1]} times, not the least frequent")
    if any(counts[i] == 0 for i in range(n)):
        failures.append("Some rank was never drawn")
    if failures:
        for i, failure in enumerate(failures, 1):
            print(f"  {i}. {failure}")
        pytest.fail(f"Test had {len(failures)} failure(s): {'; '.join(failures)}")
    else:
        print("  ✓ Selection biased toward the best ranks")


@pytest.mark.parametrize("n", [1, 2, 5, 50])
def test_rank_biased_index_in_range(n):
    rng = random.Random(n)
    for _ in range(2000):
        assert 0 <= rank_biased_index(rng, n) < n


def test_tournament_index_is_best_of_sample():
    rng = random.Random(3)
    draws = [tournament_index(rng, 10, k=10) for _ in range(500)]
    assert set(draws) <= {0, 1}
    assert draws.count(0) > draws.count(1)
    assert tournament_index(random.Random(0), 1, k=3) == 0
    draws = [tournament_index(random.Random(i), 10, k=1) for i in range(200)]
    assert len(set(draws)) > 1


@pytest.mark.parametrize("name", sorted(SELECTION_REGISTRY))
def test_parent_indices_distinct(name):
    selector = get_selector(name, tournament_k=3)
    rng = random.Random(11)
    for n in (2, 3, 10):
        for _ in range(200):
            first, second = select_parent_indices(rng, n, selector)
            assert first != second
            assert 0 <= first < n and 0 <= second < n


def test_get_selector_unknown_name():
    with pytest.raises(KeyError):
        get_selector("roulette")
