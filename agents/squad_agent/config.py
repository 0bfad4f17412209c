"""
Tunable thresholds of the squad controller.

Every radius, ratio and timer the controller uses lives here as a named
field. The values were tuned empirically; override them per agent spec
(`init_params={"config": {...}}`) or through SQUAD_* environment variables.
"""

from __future__ import annotations

import os
from typing import Any, Dict

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field


class SquadConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    # --- roles ---------------------------------------------------------
    runner_count: int = Field(2, ge=0, description="Fastest Vanguards redesignated as flag runners on first assignment.")
    sentinel_count: int = Field(0, ge=0, description="Vanguards closest to the home flag kept back as defenders.")
    role_reeval_ticks: int = Field(30, gt=0, description="Interval between role re-evaluations.")
    min_rangers_for_vanguard_promotion: int = Field(2, ge=1, description="Rangers required before one is promoted to Vanguard.")
    min_rangers_for_medic_conversion: int = Field(3, ge=1, description="Rangers required before one with HEAL parts becomes Medic.")

    # --- threat & focus -----------------------------------------------
    medic_threat_range: int = Field(4, ge=0, description="Enemies this close to one of our Medics are killed first.")
    kill_secure_hp: int = Field(100, ge=0, description="Enemies at or below this many hits are near-certain kills.")
    healer_support_radius: int = Field(5, ge=0, description="An enemy healer this close keeps a target sustained.")
    focus_engagement_radius: int = Field(6, ge=1, description="Focus candidates must be this close to one of our units.")

    # --- influence field ----------------------------------------------
    influence_refresh_ticks: int = Field(3, gt=0, description="Age at which the influence field is rebuilt.")
    enemy_threat_radius: int = Field(6, ge=0, description="Chebyshev radius of an enemy's threat overlay.")
    enemy_threat_scale: float = Field(0.4, ge=0, description="Scale applied to threat/(distance+1).")
    source_penalty_cap: int = Field(200, ge=0, description="Cap on a single source's contribution to a tile.")
    plain_cost: int = Field(2, ge=1, description="Base movement cost of a plain tile.")
    swamp_cost: int = Field(10, ge=1, description="Base movement cost of a swamp tile.")
    tower_threat_weight: float = Field(0.20, ge=0, description="Scale from estimated tower damage to tile cost.")
    tower_range: int = Field(50, ge=0, description="Attack range of a tower.")
    edge_band: int = Field(8, ge=0, description="Tiles within this distance of a map edge are repelled.")
    edge_penalty_per_tile: int = Field(10, ge=0, description="Edge repulsion per tile inside the band.")
    ally_stacking_penalty: int = Field(4, ge=0, description="Extra cost on tiles occupied by our own units.")
    max_cost: int = Field(254, ge=1, le=254, description="Upper clamp of every influence tile.")
    path_max_ops: int = Field(2000, gt=0, description="Node budget of one path search.")

    # --- phases --------------------------------------------------------
    phase_expansion_end: int = Field(150, ge=0)
    phase_consolidation_end: int = Field(500, ge=0)
    phase_assault_end: int = Field(1500, ge=0)

    # --- commander -----------------------------------------------------
    tank_health_floor: float = Field(0.40, ge=0, le=1, description="Incumbent tank is replaced at or below this HP ratio.")
    formation_distance: int = Field(3, ge=1, description="Tiles behind the tank where Medics gather.")
    formation_enemy_radius: int = Field(10, ge=1, description="Enemies this close to the tank define the threat direction.")
    cluster_radius: int = Field(10, ge=1, description="Radius used to find the largest enemy cluster.")
    runner_undefended_radius: int = Field(8, ge=0, description="A flag with no enemy this close counts as undefended.")
    flag_threat_radius: int = Field(10, ge=0, description="Enemies this close to an owned flag threaten it.")
    flag_defender_radius: int = Field(5, ge=0, description="An owned unit this close to a flag defends it.")
    straggler_distance: int = Field(15, ge=1, description="Units farther than this from the centroid may be recalled.")
    straggler_enemy_count: int = Field(3, ge=1, description="Local enemies needed to recall a straggler.")
    sticky_ticks: int = Field(40, ge=0, description="Ticks a chosen flag objective stays locked.")

    # --- retreat -------------------------------------------------------
    retreat_hp_ratio: float = Field(0.30, ge=0, le=1)
    pullback_hp_ratio: float = Field(0.65, ge=0, le=1)
    vanguard_fights_to_death: bool = Field(False, description="Exempt Vanguards from retreating.")
    retreat_scan_range: int = Field(8, ge=1, description="Enemies within this range are fled from.")
    emergency_flee_range: int = Field(10, ge=1, description="Range a retreating unit tries to open.")

    # --- movement ------------------------------------------------------
    local_detect_range: int = Field(12, ge=1, description="Radius for local force balance.")
    outnumbered_min_enemies: int = Field(3, ge=1)
    main_body_share: float = Field(0.5, ge=0, le=1, description="Local allies at this share of the squad are the main body.")
    dominance_ratio: float = Field(1.5, gt=0, description="Squad-wide advantage above which nobody kites.")
    outnumbered_ratio: float = Field(1.5, gt=0, description="Local enemy/ally ratio that triggers kiting.")
    vanguard_engage_radius: int = Field(8, ge=1)
    ranger_ideal_range: int = Field(3, ge=1)
    ranger_approach_radius: int = Field(6, ge=1)
    opportunity_enemy_radius: int = Field(10, ge=1, description="Radius in which a weak enemy group is sized up.")
    opportunity_ally_radius: int = Field(8, ge=1, description="Radius of the allied group backing a pursuit.")
    opportunity_max_enemies: int = Field(3, ge=1)
    opportunity_strength_ratio: float = Field(2.0, gt=0)
    medic_critical_ratio: float = Field(0.50, ge=0, le=1)
    medic_damaged_ratio: float = Field(0.90, ge=0, le=1)
    medic_follow_range: int = Field(1, ge=1)
    runner_danger_radius: int = Field(6, ge=0)
    runner_pickup_range: int = Field(8, ge=0)
    pickup_deviate_range: int = Field(3, ge=0)
    flag_detour_suppress_vanguard: int = Field(8, ge=0)
    flag_detour_suppress_other: int = Field(3, ge=0)
    flag_detour_radius: int = Field(8, ge=0)
    flag_detour_radius_medic: int = Field(3, ge=0)
    sentinel_patrol_range: int = Field(4, ge=0)
    sentinel_guard_radius: int = Field(10, ge=0, description="Enemies this close to the home flag are engaged by Sentinels.")

    # --- combat --------------------------------------------------------
    area_attack_multiplier: float = Field(1.2, gt=0, description="Area total must beat focused total by this factor.")
    area_attack_melee_count: int = Field(2, ge=1, description="Enemies at range 1 that always justify the area attack.")
    medic_tank_heal_ratio: float = Field(0.95, ge=0, le=1, description="Tank below this HP ratio gets priority heals.")

    # --- logistics / towers -------------------------------------------
    tower_charge_threshold: float = Field(0.8, ge=0, le=1)
    tower_assign_radius: int = Field(12, ge=0)
    tower_kill_secure_hp: int = Field(200, ge=0)
    charger_idle_pickup_range: int = Field(6, ge=0)
    charger_deliver_pickup_range: int = Field(4, ge=0)
    charger_idle_tower_range: int = Field(2, ge=0)

    # --- diagnostics ---------------------------------------------------
    diag_interval: int = Field(100, gt=0)

    def with_overrides(self, **overrides: Any) -> SquadConfig:
        """Return a validated copy with some fields replaced."""
        return SquadConfig.model_validate({**self.model_dump(), **overrides})

    @classmethod
    def from_env(cls, prefix: str = "SQUAD_", **overrides: Any) -> SquadConfig:
        """
        Build a config from SQUAD_<FIELD> environment variables (a .env file is loaded first).

        Explicit keyword overrides win over the environment.
        """
        load_dotenv()
        values: Dict[str, Any] = {}
        for name in cls.model_fields:
            raw = os.environ.get(f"{prefix}{name.upper()}")
            if raw is not None:
                values[name] = raw
        values.update(overrides)
        return cls.model_validate(values)
