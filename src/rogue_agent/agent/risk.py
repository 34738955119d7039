"""Fight-or-flight estimates for a single hostile."""

from dataclasses import dataclass
from typing import Iterable, Optional

from rogue_agent.engine.types import Pawn


DEFAULT_DAMAGE_FACTOR = 0.9


@dataclass(frozen=True)
class FightAssessment:
    """Per-exchange combat estimate against one hostile.

    A hit count of None means the matching damage is zero: the hostile is no
    real threat (hits_to_kill_self) or the agent cannot hurt it (hits_to_death).
    """
    hostile: Pawn
    damage_to_self: int
    damage_from_self: int
    hits_to_kill_self: Optional[int]
    hits_to_death: Optional[int]
    safe_to_engage: bool

    @property
    def can_kill(self) -> bool:
        return self.hits_to_death is not None


def assess(hostile: Pawn, agent: Pawn, damage_factor: float = DEFAULT_DAMAGE_FACTOR) -> FightAssessment:
    """Estimate an exchange of blows between the agent and a hostile.

    Pessimistic for the agent: the hostile hits with full strength while the
    agent's own damage is scaled down by damage_factor.
    """
    damage_to_self = hostile.total_attack * hostile.attack // max(agent.total_defence, 1)
    damage_from_self = int(agent.total_attack * agent.attack * damage_factor / max(hostile.total_defence, 1))

    hits_to_kill_self = agent.health // damage_to_self if damage_to_self > 0 else None
    hits_to_death = hostile.health // damage_from_self if damage_from_self > 0 else None

    if hits_to_death is None:
        safe = False
    elif hits_to_kill_self is None:
        safe = True
    else:
        safe = hits_to_kill_self > hits_to_death - 1

    return FightAssessment(
        hostile=hostile,
        damage_to_self=damage_to_self,
        damage_from_self=damage_from_self,
        hits_to_kill_self=hits_to_kill_self,
        hits_to_death=hits_to_death,
        safe_to_engage=safe,
    )


def threat_total(assessments: Iterable[FightAssessment]) -> int:
    """Combined damage the agent takes per exchange from several hostiles."""
    return sum(a.damage_to_self for a in assessments)
