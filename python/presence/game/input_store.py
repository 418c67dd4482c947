from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from presence.game.protocol import InputMessage
from presence.game.types import InputSample, MoveIntent, ViewIntent


@dataclass(slots=True)
class InputStore:
    default_speed: float = 0.6
    _samples: dict[str, InputSample] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self._samples)

    def __contains__(self, participant_id: object) -> bool:
        return participant_id in self._samples

    def __iter__(self) -> Iterator[str]:
        return iter(self._samples)

    def get(self, participant_id: str) -> InputSample | None:
        return self._samples.get(participant_id)

    def ensure(self, participant_id: str) -> InputSample:
        sample = self._samples.get(participant_id)
        if sample is None:
            sample = InputSample(speed=self.default_speed)
            self._samples[participant_id] = sample
        return sample

    def remove(self, participant_id: str) -> InputSample | None:
        return self._samples.pop(participant_id, None)

    def apply(self, participant_id: str, msg: InputMessage) -> InputSample:
        # fields absent from the message keep their previous values
        sample = self.ensure(participant_id)
        if msg.move is not None:
            sample.move = MoveIntent(forward=msg.move.forward, right=msg.move.right, up=msg.move.up)
        if msg.speed is not None:
            sample.speed = msg.speed
        if msg.view is not None:
            sample.view = ViewIntent(yaw=msg.view.yaw, pitch=msg.view.pitch)
        return sample
