"""
Frame sequencing for animated Manhattan plots.

A sequence is built from M genuine states. Between two consecutive states
K synthetic transition frames are inserted at x = k / (K + 1), k = 1..K,
so the total frame count is M + (M - 1) * K. Frames are generated lazily;
the sequencer never holds more than the current frame.

Two transition policies are supported:

scalar
    State values are numeric scores keyed by marker id. A transition frame
    covers only markers present in both states and shows
    ``p0 + ease(x) * (p1 - p0)``.
categorical
    State values are category labels keyed by marker id. Markers whose label
    does not change keep it at full opacity. A changed marker shows the
    source label fading out (opacity 1 - 2x) during the first half of the
    transition and the destination label fading in (opacity 2x - 1) during
    the second half. A marker missing from one side has no label there.

In both policies the frame title switches from the source label to the
destination label at x = 0.5, with title opacity |1 - 2x|.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Literal, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..gtools.classify import BASE_LABELS, classify_markers
from ..gtools.registry import ChromRegistry
from .easing import Easing, get_easing

logger = logging.getLogger(__name__)

Policy = Literal["scalar", "categorical"]
POLICIES = ("scalar", "categorical")


@dataclass(frozen=True, eq=False)
class State:
    """One genuine animation state: a label and a value per marker id."""

    label: str
    values: pd.Series


@dataclass(frozen=True, eq=False)
class Frame:
    """
    One renderable snapshot.

    ``fraction`` is None for genuine frames and the interpolation fraction
    x in (0, 1) for transition frames. ``alpha`` is the per-marker opacity
    of categorical frames.
    """

    index: int
    state: int
    label: str
    values: pd.Series
    fraction: Optional[float] = None
    label_alpha: float = 1.0
    alpha: Optional[pd.Series] = None

    @property
    def is_transition(self) -> bool:
        return self.fraction is not None


def frame_count(n_states: int, transitions: int) -> int:
    if n_states <= 0:
        return 0
    return n_states + (n_states - 1) * transitions


def transition_fractions(transitions: int) -> list[float]:
    return [k / (transitions + 1) for k in range(1, transitions + 1)]


def interpolate_scalar(
    source: pd.Series,
    target: pd.Series,
    x: float,
    easing: Easing,
) -> pd.Series:
    """Ease shared markers from ``source`` to ``target``; others are dropped."""
    shared = source.index.intersection(target.index, sort=False)
    p0 = source.loc[shared].astype(float)
    p1 = target.loc[shared].astype(float)
    return p0 + easing(x) * (p1 - p0)


def interpolate_categorical(
    source: pd.Series,
    target: pd.Series,
    x: float,
) -> tuple[pd.Series, pd.Series]:
    """Labels and opacities of one categorical transition frame."""
    ids = source.index.union(target.index, sort=False)
    src = source.reindex(ids)
    dst = target.reindex(ids)
    changed = ~((src == dst) | (src.isna() & dst.isna()))
    if x < 0.5:
        labels = src.copy()
        ramp = 1.0 - 2.0 * x
    else:
        labels = dst.copy()
        ramp = 2.0 * x - 1.0
    alpha = pd.Series(np.where(changed.to_numpy(), ramp, 1.0), index=ids)
    return labels, alpha


class FrameSequencer:
    """
    Lazy frame sequence over ordered genuine states.

    Parameters
    ----------
    states : sequence of State
        Genuine states in display order.
    transitions : int, default=10
        Number K of transition frames between consecutive states.
    policy : {'scalar', 'categorical'}, default='scalar'
        Transition policy, see module docstring.
    easing : str or callable, default='tanh'
        Easing used by the scalar policy.
    """

    def __init__(
        self,
        states: Sequence[State],
        transitions: int = 10,
        policy: Policy = "scalar",
        easing: Union[str, Easing] = "tanh",
    ) -> None:
        if transitions < 0:
            raise ValueError("transitions must be >= 0.")
        if policy not in POLICIES:
            raise ValueError(f"Unknown policy: {policy} (choose from: {', '.join(POLICIES)})")
        self.states = list(states)
        self.transitions = int(transitions)
        self.policy = policy
        self.easing = get_easing(easing)

    def __len__(self) -> int:
        return frame_count(len(self.states), self.transitions)

    def __iter__(self) -> Iterator[Frame]:
        n = len(self.states)
        index = 0
        for i, state in enumerate(self.states):
            yield self._genuine(index, i, state)
            index += 1
            if i == n - 1:
                break
            target = self.states[i + 1]
            for x in transition_fractions(self.transitions):
                yield self._transition(index, i, state, target, x)
                index += 1

    def _genuine(self, index: int, i: int, state: State) -> Frame:
        alpha = None
        if self.policy == "categorical":
            alpha = pd.Series(1.0, index=state.values.index)
        return Frame(index=index, state=i, label=state.label, values=state.values, alpha=alpha)

    def _transition(self, index: int, i: int, source: State, target: State, x: float) -> Frame:
        label = source.label if x < 0.5 else target.label
        label_alpha = abs(1.0 - 2.0 * x)
        if self.policy == "scalar":
            values = interpolate_scalar(source.values, target.values, x, self.easing)
            alpha = None
        else:
            values, alpha = interpolate_categorical(source.values, target.values, x)
        return Frame(
            index=index,
            state=i,
            label=label,
            values=values,
            fraction=x,
            label_alpha=label_alpha,
            alpha=alpha,
        )


# ----------------------------------------------------------------------
# State builders
# ----------------------------------------------------------------------
def scalar_states(
    tables: Iterable[tuple[str, pd.DataFrame]],
    column: str = "score",
) -> list[State]:
    """One state per (label, association table), valued by ``column``."""
    states: list[State] = []
    for label, df in tables:
        values = df.set_index("id")[column].astype(float)
        if values.index.has_duplicates:
            raise ValueError(f"Duplicated marker ids in state '{label}'.")
        states.append(State(str(label), values))
    return states


def pathway_states(
    markers: pd.DataFrame,
    registry: ChromRegistry,
    categories: Mapping[str, Iterable[str]],
    order: Optional[Sequence[str]] = None,
    cumulative: bool = False,
    base_labels: tuple[str, str] = BASE_LABELS,
) -> list[State]:
    """
    One categorical state per category.

    Each state highlights its category on top of the even/odd background.
    With ``cumulative`` a state also keeps every earlier category; a marker
    in several of them shows the one latest in ``order``.
    """
    order = list(categories) if order is None else list(order)
    missing = [name for name in order if name not in categories]
    if missing:
        raise ValueError(f"Unknown categories in order: {', '.join(missing)}")
    clash = [name for name in order if name in base_labels]
    if clash:
        raise ValueError(
            f"Category name(s) collide with background labels: {', '.join(clash)}"
        )
    ids = markers["id"].astype(str)
    states: list[State] = []
    for i, name in enumerate(order):
        names = order[: i + 1] if cumulative else [name]
        labels = classify_markers(
            markers,
            registry,
            [(n, categories[n]) for n in names],
            base_labels=base_labels,
        )
        states.append(State(name, pd.Series(labels.to_numpy(), index=ids.to_numpy())))
    logger.debug(f"Built {len(states)} pathway states (cumulative={cumulative}).")
    return states
