from __future__ import annotations

import random

# Board defaults (15x15 = 225 cells, room for the 72-tile base game)
DEFAULT_BOARD_SIZE = 15

# EA configuration defaults
POPULATION_SIZE = 50
MUTATION_RATE = 0.5
ELITE_COUNT = 0          # 0 = every generation is fully bred from parents
TOURNAMENT_K = 3
SELECTION = "rank"
SEEDING = "uniform"
RANDOM_SEED = random.randint(0, 1_000_000)

# Fitness weights (lower is better; every term is a penalty count)
CLUSTER_WEIGHT = 1
EDGE_MISMATCH_WEIGHT = 1
UNCLOSED_TOWN_WEIGHT = 1
TOWN_CLUSTER_WEIGHT = 1

# Worker -> consumer handoff
PROGRESS_QUEUE_SIZE = 64
