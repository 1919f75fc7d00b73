# Copyright (c) Meta Platforms, Inc. and affiliates.
# All rights reserved.
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from mountconf.schemas.scenario_result import ScenarioLog


def _drop_unset(pairs: Iterable[Tuple[str, Any]]) -> Dict[str, Any]:
    return {key: value for key, value in pairs if value is not None}


@dataclass
class Log:
    """A batch of scenario records, stamped with the unixtime it was published at."""

    ts: int
    message: Sequence[ScenarioLog]

    def records(self) -> List[Dict[str, Any]]:
        return [asdict(record, dict_factory=_drop_unset) for record in self.message]
