"""Linear undo/redo history of snapshots."""

from dataclasses import dataclass, field, replace

from .types import Snapshot


@dataclass(frozen=True)
class HistoryState:
    """
    Past, present and future snapshots.

    Values are never mutated; every transition returns a new HistoryState.
    `max_past` caps the undo depth (None = unbounded). When the cap is hit the
    oldest entries are dropped, so undo can no longer reach the very first state.
    """
    present: Snapshot
    past: tuple[Snapshot, ...] = ()
    future: tuple[Snapshot, ...] = ()
    max_past: int | None = field(default=None, compare=False)

    @property
    def can_undo(self) -> bool:
        return bool(self.past)

    @property
    def can_redo(self) -> bool:
        return bool(self.future)


@dataclass(frozen=True)
class Record:
    """Adopt a new present and discard the redo path."""
    snapshot: Snapshot


@dataclass(frozen=True)
class SetWithoutRecording:
    """Replace the present without touching past or future."""
    snapshot: Snapshot


@dataclass(frozen=True)
class Undo:
    pass


@dataclass(frozen=True)
class Redo:
    pass


HistoryAction = Record | SetWithoutRecording | Undo | Redo


def _trim(past: tuple[Snapshot, ...], max_past: int | None) -> tuple[Snapshot, ...]:
    if max_past is None or len(past) <= max_past:
        return past
    return past[len(past) - max_past:] if max_past > 0 else ()


def record(state: HistoryState, snapshot: Snapshot) -> HistoryState:
    past = _trim(state.past + (state.present,), state.max_past)
    return replace(state, past=past, present=snapshot, future=())


def set_without_recording(state: HistoryState, snapshot: Snapshot) -> HistoryState:
    return replace(state, present=snapshot)


def undo(state: HistoryState) -> HistoryState:
    if not state.past:
        return state
    return replace(
        state,
        past=state.past[:-1],
        present=state.past[-1],
        future=(state.present,) + state.future,
    )


def redo(state: HistoryState) -> HistoryState:
    if not state.future:
        return state
    return replace(
        state,
        past=_trim(state.past + (state.present,), state.max_past),
        present=state.future[0],
        future=state.future[1:],
    )


def apply(state: HistoryState, action: HistoryAction) -> HistoryState:
    """Reduce a history action into the next HistoryState."""
    match action:
        case Record(snapshot=snapshot):
            return record(state, snapshot)
        case SetWithoutRecording(snapshot=snapshot):
            return set_without_recording(state, snapshot)
        case Undo():
            return undo(state)
        case Redo():
            return redo(state)
    raise TypeError(f"Unknown history action: {action!r}")
