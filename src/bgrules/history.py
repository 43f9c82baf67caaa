"""Linear replay history of board snapshots."""

from dataclasses import dataclass, replace
from typing import Tuple

from bgrules.core.types import Board


@dataclass(frozen=True)
class ReplayHistory:
    """Board snapshots plus the index of the one being shown.

    Pushing while stepped back discards the snapshots after the index, the
    same way an editor's redo stack is dropped on a new edit.

    Attributes:
        snapshots: Boards in play order
        index: Position of the current snapshot (-1 when empty)
    """
    snapshots: Tuple[Board, ...] = ()
    index: int = -1

    def __post_init__(self):
        """Validate history index."""
        assert -1 <= self.index < len(self.snapshots), f"Invalid history index: {self.index}"
        assert self.index >= 0 or not self.snapshots, "Non-empty history needs an index"

    def __len__(self) -> int:
        return len(self.snapshots)

    @property
    def current(self) -> Board:
        if self.index < 0:
            raise IndexError("History is empty")
        return self.snapshots[self.index]

    @property
    def at_latest(self) -> bool:
        return self.index == len(self.snapshots) - 1

    def push(self, board: Board) -> "ReplayHistory":
        kept = self.snapshots[: self.index + 1]
        return ReplayHistory(snapshots=kept + (board,), index=len(kept))

    def step(self, direction: int) -> "ReplayHistory":
        """Move the index by ``direction``, clamped to the recorded range."""
        if not self.snapshots:
            return self
        index = max(0, min(len(self.snapshots) - 1, self.index + direction))
        return replace(self, index=index)


def start_history(board: Board) -> ReplayHistory:
    return ReplayHistory().push(board)
