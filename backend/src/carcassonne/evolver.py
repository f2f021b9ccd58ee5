from __future__ import annotations
from concurrent.futures import Executor
from dataclasses import dataclass, field
from itertools import repeat
from typing import Callable, List, Optional, Protocol, Sequence
import random

from .fitness import FitnessScores, Weights, evaluate
from .resolver import resolve_overlaps
from .seeders import SEEDING_REGISTRY, SeederFn, random_orientation, random_pos
from .selection import SELECTION_REGISTRY, Selector, get_selector, select_parent_indices
from .tiles import Board, Placement, TileTemplate
from .vars import (
    DEFAULT_BOARD_SIZE,
    POPULATION_SIZE,
    MUTATION_RATE,
    ELITE_COUNT,
    TOURNAMENT_K,
    SELECTION,
    SEEDING,
    RANDOM_SEED,
)


class ConfigurationError(ValueError):
    """Raised at startup when a run cannot be carried out with the given settings."""


class StopFlag(Protocol):
    def is_set(self) -> bool: ...


@dataclass
class Genome:
    """One candidate solution: heritable genes plus their collision-free layout."""
    genes: List[Placement]
    resolved: List[Placement]
    fitness: int | None = None
    scores: FitnessScores | None = None


@dataclass
class EAConfig:
    board_width: int = DEFAULT_BOARD_SIZE
    board_height: int = DEFAULT_BOARD_SIZE
    population_size: int = POPULATION_SIZE
    mutation_rate: float = MUTATION_RATE
    mutate_orientation: bool = True
    elite_count: int = ELITE_COUNT
    selection: str = SELECTION
    tournament_k: int = TOURNAMENT_K
    seeding: str = SEEDING
    random_seed: int | None = RANDOM_SEED
    max_generations: int | None = None
    weights: Weights = Weights()


@dataclass(frozen=True)
class Progress:
    """Snapshot published after each generation is ranked."""
    generation: int
    best_score: int
    board: Board
    scores: FitnessScores
    generation_best: int
    generation_mean: float


@dataclass
class SearchResult:
    best: Genome
    population: List[Genome]
    history: dict[str, list[float]] = field(default_factory=dict)
    generations: int = 0
    converged: bool = False

    @property
    def score(self) -> int:
        return self.best.fitness if self.best.fitness is not None else -1


ProgressFn = Callable[[Progress], None]


def validate_config(catalogue: Sequence[TileTemplate], cfg: EAConfig) -> None:
    """Reject settings under which the search could not run or terminate."""
    if not catalogue:
        raise ConfigurationError("Tile catalogue is empty")
    if cfg.board_width < 1 or cfg.board_height < 1:
        raise ConfigurationError(f"Board must be at least 1x1, got {cfg.board_width}x{cfg.board_height}")
    capacity = cfg.board_width * cfg.board_height
    if capacity < len(catalogue):
        raise ConfigurationError(
            f"Board {cfg.board_width}x{cfg.board_height} has {capacity} cells for {len(catalogue)} tiles"
        )
    if cfg.population_size < 2:
        raise ConfigurationError(f"Population size must be at least 2, got {cfg.population_size}")
    if not 0.0 <= cfg.mutation_rate < 1.0:
        raise ConfigurationError(f"Mutation rate must be in [0, 1), got {cfg.mutation_rate}")
    if not 0 <= cfg.elite_count < cfg.population_size:
        raise ConfigurationError(f"Elite count must be in [0, {cfg.population_size}), got {cfg.elite_count}")
    if cfg.selection not in SELECTION_REGISTRY:
        raise ConfigurationError(f"Unknown selection {cfg.selection!r}; expected one of {sorted(SELECTION_REGISTRY)}")
    if cfg.seeding not in SEEDING_REGISTRY:
        raise ConfigurationError(f"Unknown seeding {cfg.seeding!r}; expected one of {sorted(SEEDING_REGISTRY)}")
    if cfg.tournament_k < 1:
        raise ConfigurationError(f"Tournament size must be positive, got {cfg.tournament_k}")
    if cfg.max_generations is not None and cfg.max_generations < 1:
        raise ConfigurationError(f"max_generations must be positive, got {cfg.max_generations}")
    w = cfg.weights
    if min(w.clusters, w.edge_mismatch, w.unclosed_towns, w.town_clusters) < 0:
        raise ConfigurationError(f"Fitness weights must be non-negative, got {w}")


def _get_rng(seed: int | None) -> random.Random:
    return random.Random(seed)


def _fitness_value(genome: Genome) -> float:
    return genome.fitness if genome.fitness is not None else float("inf")


def make_genome(genes: List[Placement], cfg: EAConfig) -> Genome:
    return Genome(genes=genes, resolved=resolve_overlaps(genes, cfg.board_width, cfg.board_height))


def evaluate_population(population: list[Genome], cfg: EAConfig, executor: Executor | None = None) -> None:
    """Score every unscored genome. With an executor, boards are scored concurrently; results keep population order."""
    pending = [genome for genome in population if genome.fitness is None]
    if not pending:
        return
    layouts = [genome.resolved for genome in pending]
    if executor is None:
        results = [evaluate(layout, cfg.board_width, cfg.board_height, cfg.weights) for layout in layouts]
    else:
        results = list(
            executor.map(
                evaluate,
                layouts,
                repeat(cfg.board_width),
                repeat(cfg.board_height),
                repeat(cfg.weights),
            )
        )
    for genome, (f, scores) in zip(pending, results):
        genome.fitness = f
        genome.scores = scores


def rank_population(population: list[Genome]) -> list[Genome]:
    """Stable sort, best (lowest) fitness first."""
    return sorted(population, key=_fitness_value)


def init_population(
    catalogue: Sequence[TileTemplate], cfg: EAConfig, rng: random.Random, make_random: SeederFn
) -> list[Genome]:
    population: list[Genome] = []
    for _ in range(cfg.population_size):
        genes = make_random(catalogue, cfg.board_width, cfg.board_height, rng)
        population.append(make_genome(genes, cfg))
    return population


def crossover(genes1: Sequence[Placement], genes2: Sequence[Placement], rng: random.Random) -> list[Placement]:
    """
    Single-point crossover by template index: parent 1's genes before a random cut,
    parent 2's genes from the cut on.
    """
    cut = rng.randrange(len(genes1))
    return list(genes1[:cut]) + list(genes2[cut:])


def mutate(genes: list[Placement], rng: random.Random, cfg: EAConfig) -> None:
    """
    With probability ``mutation_rate`` move one random gene to a new random cell
    (and, if ``mutate_orientation``, give it a new random orientation).
    """
    if rng.random() >= cfg.mutation_rate:
        return
    idx = rng.randrange(len(genes))
    gene = genes[idx]
    pos = random_pos(rng, cfg.board_width, cfg.board_height)
    orientation = random_orientation(rng) if cfg.mutate_orientation else gene.orientation
    genes[idx] = Placement(template=gene.template, pos=pos, orientation=orientation)


def breed(parent1: Genome, parent2: Genome, cfg: EAConfig, rng: random.Random) -> Genome:
    child_genes = crossover(parent1.genes, parent2.genes, rng)
    mutate(child_genes, rng, cfg)
    return make_genome(child_genes, cfg)


def make_next_generation(
    ranked: list[Genome],
    cfg: EAConfig,
    rng: random.Random,
    selector: Selector,
) -> list[Genome]:
    """Refill the population from a best-first ranking: optional elites, then bred offspring.
    Assumes the ranked population is already evaluated.
    """
    new_population: list[Genome] = []
    for i in range(min(cfg.elite_count, len(ranked))):
        elite = ranked[i]
        new_population.append(
            Genome(genes=list(elite.genes), resolved=list(elite.resolved), fitness=elite.fitness, scores=elite.scores)
        )

    while len(new_population) < cfg.population_size:
        i, j = select_parent_indices(rng, len(ranked), selector)
        new_population.append(breed(ranked[i], ranked[j], cfg, rng))
    return new_population


def evolve(
    catalogue: Sequence[TileTemplate],
    cfg: EAConfig = EAConfig(),
    *,
    make_random: Optional[SeederFn] = None,
    on_progress: Optional[ProgressFn] = None,
    stop_event: Optional[StopFlag] = None,
    executor: Executor | None = None,
) -> SearchResult:
    """
    Run the search until a zero score, ``cfg.max_generations`` or ``stop_event``.

    After each generation is ranked, ``on_progress`` receives the best-so-far score
    and board. The stop flag is checked once per generation.
    """
    validate_config(catalogue, cfg)
    rng = _get_rng(cfg.random_seed)
    make_random = make_random or SEEDING_REGISTRY[cfg.seeding]
    selector = get_selector(cfg.selection, cfg.tournament_k)

    population = init_population(catalogue, cfg, rng, make_random)
    best: Genome | None = None
    history_best: list[float] = []
    history_mean: list[float] = []
    generation = 0

    while True:
        evaluate_population(population, cfg, executor)
        ranked = rank_population(population)
        leader = ranked[0]
        if best is None or _fitness_value(leader) < _fitness_value(best):
            best = leader

        fitnesses = [g.fitness for g in ranked if g.fitness is not None]
        gen_mean = sum(fitnesses) / len(fitnesses)
        history_best.append(leader.fitness)
        history_mean.append(gen_mean)
        generation += 1

        if on_progress is not None:
            on_progress(
                Progress(
                    generation=generation,
                    best_score=best.fitness,
                    board=Board.from_placements(best.resolved, cfg.board_width, cfg.board_height),
                    scores=best.scores,
                    generation_best=leader.fitness,
                    generation_mean=gen_mean,
                )
            )

        if best.fitness == 0:
            break
        if stop_event is not None and stop_event.is_set():
            break
        if cfg.max_generations is not None and generation >= cfg.max_generations:
            break
        population = make_next_generation(ranked, cfg, rng, selector)

    history = {"best": history_best, "mean": history_mean}
    return SearchResult(
        best=best,
        population=ranked,
        history=history,
        generations=generation,
        converged=best.fitness == 0,
    )
