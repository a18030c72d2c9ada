# backend/src/tunnelsim/core/engine/commands.py

from dataclasses import dataclass
from typing import Literal, Union


# Команды внутренние (их строит APL, а не API), поэтому обычные dataclass,
# а не pydantic: на 30k прогонов валидация каждой команды слишком дорогая.


@dataclass(frozen=True)
class Move:
    mover_id: int
    target_zone: int
    # для лога: имя цели или "forward"/"backward"
    toward: str
    type: Literal["Move"] = "Move"


@dataclass(frozen=True)
class Guard:
    combatant_id: int
    type: Literal["Guard"] = "Guard"


@dataclass(frozen=True)
class Attack:
    attacker_id: int
    target_id: int
    type: Literal["Attack"] = "Attack"


MovementCommand = Union[Move, Guard]

Command = Union[Move, Guard, Attack]
