from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Iterator, Sequence
from uuid import uuid4

from presence.game.types import Participant


def make_name(rng: random.Random | None = None) -> str:
    r = rng or random
    return f"Player-{r.randint(1000, 9999)}"


@dataclass(slots=True)
class ParticipantRegistry:
    colors: Sequence[str]
    _participants: dict[str, Participant] = field(default_factory=dict)
    _rng: random.Random = field(default_factory=random.Random)

    def __len__(self) -> int:
        return len(self._participants)

    def __contains__(self, participant_id: object) -> bool:
        return participant_id in self._participants

    def __iter__(self) -> Iterator[Participant]:
        return iter(self._participants.values())

    def _new_id(self) -> str:
        while True:
            participant_id = uuid4().hex[:12]
            if participant_id not in self._participants:
                return participant_id

    def get(self, participant_id: str) -> Participant | None:
        return self._participants.get(participant_id)

    def register(self) -> Participant:
        if not self.colors:
            raise ValueError("color palette is empty")
        p = Participant(
            id=self._new_id(),
            name=make_name(self._rng),
            color=self._rng.choice(list(self.colors)),
        )
        self._participants[p.id] = p
        return p

    def remove(self, participant_id: str) -> Participant | None:
        return self._participants.pop(participant_id, None)

    def rename(self, participant_id: str, name: str | None) -> None:
        p = self._participants.get(participant_id)
        if p is None or not name:
            return
        p.name = name

    def reset(self, participant_id: str) -> None:
        p = self._participants.get(participant_id)
        if p is None:
            return
        p.x = 0.0
        p.y = 0.0
        p.z = 0.0

    def snapshot(self) -> list[Participant]:
        return list(self._participants.values())
