# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 BLUEDA Team

"""
Lifecycle notifications emitted by the drivers.

A driver owns one EventDispatcher. Listeners subscribe for a set of
recipients and are called, in subscription order, with every event addressed
to one of them. Events addressed to Recipient.ALL reach every listener, and
listeners subscribed for Recipient.ALL receive every event.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, FrozenSet, Iterable, List, Optional, Tuple

import numpy as np


class LifecycleTag(Enum):
    """What happened."""
    INITIALIZE_BEGIN = 'initialize_begin'
    INITIALIZE_END = 'initialize_end'
    INITIALIZE_STEP_BEGIN = 'initialize_step_begin'
    INITIALIZE_STEP_END = 'initialize_step_end'
    FORWARD_BEGIN = 'forward_begin'
    FORWARD_END = 'forward_end'
    ANALYZE_BEGIN = 'analyze_begin'
    ANALYZE_END = 'analyze_end'
    INITIAL_CONDITION = 'initial_condition'
    FORECAST = 'forecast'
    ANALYSIS = 'analysis'
    FINALIZE = 'finalize'


class Recipient(Enum):
    """Who an event is addressed to."""
    ALL = 'all'
    MODEL = 'model'
    OBSERVATION_MANAGER = 'observation_manager'
    DRIVER = 'driver'


@dataclass(frozen=True)
class LifecycleEvent:
    """
    One notification.

    ``state`` is a copy of the model state at emission time, or None for the
    begin/end markers.
    """
    tag: LifecycleTag
    recipients: FrozenSet[Recipient]
    driver: str
    step: int
    time: float
    state: Optional[np.ndarray] = field(default=None, compare=False)

    def is_for(self, recipients: FrozenSet[Recipient]) -> bool:
        if Recipient.ALL in self.recipients or Recipient.ALL in recipients:
            return True
        return bool(self.recipients & recipients)


Listener = Callable[[LifecycleEvent], None]


class EventDispatcher:
    """Ordered list of (listener, recipients) pairs."""

    def __init__(self):
        self._listeners: List[Tuple[Listener, FrozenSet[Recipient]]] = []

    def subscribe(
        self,
        listener: Listener,
        recipients: Iterable[Recipient] = (Recipient.ALL,),
    ) -> None:
        self._listeners.append((listener, frozenset(recipients)))

    def dispatch(self, event: LifecycleEvent) -> None:
        # Listener exceptions propagate to the driver.
        for listener, recipients in list(self._listeners):
            if event.is_for(recipients):
                listener(event)

    def __len__(self) -> int:
        return len(self._listeners)
