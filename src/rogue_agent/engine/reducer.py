"""Turn resolution for the reference host."""

from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ValidationError

from .types import (
    Action,
    ActionType,
    AttackAction,
    CellType,
    Event,
    LevelSnapshot,
    LevelStatus,
    NoAction,
    Pawn,
    StepAction,
    TurnResult,
)


MAX_HEALTH = 100
HEALTH_PACK_VALUE = 50
TRAP_DAMAGE = 10


def attack_damage(attacker: Pawn, defender: Pawn) -> int:
    """Damage dealt by one blow; every landed blow deals at least 1."""
    return max(1, attacker.total_attack * attacker.attack // max(defender.total_defence, 1))


def resolve_turn(snapshot: LevelSnapshot, action: object) -> TurnResult:
    """Apply the agent's action, then let adjacent hostiles strike back.

    Args:
        snapshot: Current level snapshot
        action: Action (or action dict) chosen by the agent

    Returns:
        TurnResult containing the next snapshot, events and level status
    """
    turn = snapshot.turn
    events: List[Event] = []

    player = snapshot.player.model_copy(deep=True)
    hostiles = [h.model_copy(deep=True) for h in snapshot.hostiles]
    items = list(snapshot.items)
    packs = list(snapshot.health_packs)
    level_map = snapshot.level_map

    action = _coerce_action(action)
    status = LevelStatus.ONGOING

    if isinstance(action, StepAction):
        dest = player.location + action.offset
        cell = level_map.cell_at(dest)
        hostile = snapshot.hostile_at(dest)
        item = snapshot.item_at(dest)
        pack = snapshot.health_pack_at(dest)

        if cell == CellType.WALL:
            events.append(_event(turn, "step_blocked", dest=dest, reason="wall"))
        elif hostile is not None:
            events.append(_event(turn, "step_blocked", dest=dest, reason="hostile"))
        elif item is not None:
            # equipping happens in place
            items.remove(item)
            player.total_attack = player.attack + item.attack_bonus
            player.total_defence = player.defence + item.defence_bonus
            events.append(_event(
                turn, "equip",
                attack_bonus=item.attack_bonus,
                defence_bonus=item.defence_bonus,
            ))
        elif pack is not None:
            packs.remove(pack)
            healed = min(MAX_HEALTH, player.health + HEALTH_PACK_VALUE) - player.health
            player.health += healed
            events.append(_event(turn, "heal", amount=healed))
        else:
            player.location = dest
            events.append(_event(turn, "step", dest=dest))
            if cell == CellType.TRAP:
                player.health -= TRAP_DAMAGE
                events.append(_event(turn, "trap_triggered", damage=TRAP_DAMAGE))
            elif cell == CellType.EXIT:
                status = LevelStatus.COMPLETED
                events.append(_event(turn, "exit_reached"))

    elif isinstance(action, AttackAction):
        target_loc = player.location + action.offset
        target = next((h for h in hostiles if h.location == target_loc), None)
        if target is None:
            events.append(_event(turn, "attack_missed", dest=target_loc))
        else:
            damage = attack_damage(player, target)
            target.health -= damage
            events.append(_event(turn, "attack", dest=target_loc, damage=damage))
            if target.health <= 0:
                hostiles.remove(target)
                events.append(_event(turn, "hostile_killed", dest=target_loc))

    else:
        events.append(_event(turn, "idle", reason=getattr(action, "reason", None)))

    # Hostiles reply after the agent acts
    if status == LevelStatus.ONGOING:
        for hostile in hostiles:
            if hostile.location.is_in_range(player.location, 1):
                damage = attack_damage(hostile, player)
                player.health -= damage
                events.append(_event(turn, "hostile_attack", source=hostile.location, damage=damage))

    if player.health <= 0:
        status = LevelStatus.DEAD
        events.append(_event(turn, "agent_died"))

    next_snapshot = LevelSnapshot(
        turn=turn + 1,
        player=player,
        hostiles=hostiles,
        items=items,
        health_packs=packs,
        level_map=level_map,
    )
    return TurnResult(next_snapshot=next_snapshot, events=events, status=status)


def _coerce_action(action_data: Optional[object]) -> Action:
    """Convert action-like input into a validated Action."""
    if action_data is None:
        return NoAction(reason="missing_action")

    if isinstance(action_data, BaseModel):
        return action_data

    if isinstance(action_data, dict):
        action_type = action_data.get("type")
        try:
            if action_type == ActionType.STEP.value:
                return StepAction.model_validate(action_data)
            if action_type == ActionType.ATTACK.value:
                return AttackAction.model_validate(action_data)
            if action_type == ActionType.NONE.value:
                return NoAction.model_validate(action_data)
        except ValidationError:
            return NoAction(reason="invalid_action_schema")

    return NoAction(reason="unknown_action_type")


def _event(turn: int, kind: str, **payload) -> Event:
    return Event(turn=turn, kind=kind, payload=_plain(payload))


def _plain(payload: Dict) -> Dict:
    """Flatten locations to (x, y) pairs so events serialise cleanly."""
    flat: Dict = {}
    for key, value in payload.items():
        if isinstance(value, BaseModel) and hasattr(value, "x"):
            flat[key] = _xy(value)
        else:
            flat[key] = value
    return flat


def _xy(location) -> Tuple[int, int]:
    return location.x, location.y
