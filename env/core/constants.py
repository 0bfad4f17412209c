"""
Game constants of the arena rules (damage, heal, ranges).

These belong to the simulation, not to the squad's tuning, so they are
plain module constants rather than configuration.
"""

ATTACK_POWER = 30
RANGED_ATTACK_POWER = 10
HEAL_POWER = 12
RANGED_HEAL_POWER = 4

MELEE_RANGE = 1
RANGED_RANGE = 3
RANGED_HEAL_RANGE = 3
TRANSFER_RANGE = 1

# Ranged mass attack damage per active part, by Chebyshev range.
RANGED_MASS_ATTACK_POWER = {1: 10, 2: 4, 3: 1}

BODYPART_HITS = 100
CARRY_CAPACITY = 50

TOWER_RANGE = 50
TOWER_CAPACITY = 50
TOWER_COOLDOWN = 10

PLAIN_COST = 2
SWAMP_COST = 10
IMPASSABLE_COST = 255
