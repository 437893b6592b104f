import logging
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from planipeda.core.registry import ChildKind
from planipeda.schemas.composition import CompositionItem, MutationOp, MutationResult

# Configure logger for this module
logger = logging.getLogger(__name__)


class CompositionList:
    """
    The ordered, editable list of child references of one parent document.

    Pure in-memory structure: no operation performs I/O. The position of an
    item in the list is its canonical order (index + 1 once persisted). Every
    mutation builds the new ordering first and swaps it in with a single
    assignment. A given
    `(child_kind, child_id)` pair appears at most once.
    """

    def __init__(self, items: Optional[Iterable[CompositionItem]] = None):
        self._items: List[CompositionItem] = []
        for item in items or ():
            if not self.append(item, renumber=False):
                raise ValueError(f"Duplicate composition item '{item.local_key}'")

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[CompositionItem]:
        return iter(tuple(self._items))

    def __getitem__(self, index: int) -> CompositionItem:
        return self._items[index]

    @property
    def items(self) -> Tuple[CompositionItem, ...]:
        return tuple(self._items)

    def keys(self) -> List[str]:
        return [item.local_key for item in self._items]

    def contains(self, kind: ChildKind, child_id: int) -> bool:
        return any(item.child_kind == kind and item.child_id == child_id for item in self._items)

    def index_of(self, local_key: str) -> int:
        for index, item in enumerate(self._items):
            if item.local_key == local_key:
                return index
        return -1

    def append(self, item: CompositionItem, renumber: bool = True) -> bool:
        """
        Adds `item` at the end with order = length + 1. Returns False and
        leaves the list unchanged when the same kind and id are already present.
        """
        if self.contains(item.child_kind, item.child_id):
            logger.debug(f"CompositionList: Duplicate append of '{item.local_key}' ignored.")
            return False
        if renumber:
            item = item.model_copy(update={"order": len(self._items) + 1})
        self._items = self._items + [item]
        return True

    def remove(self, local_key: str) -> bool:
        """
        Drops the item. Remaining items keep their order fields; positions
        are renumbered at save time.
        """
        index = self.index_of(local_key)
        if index < 0:
            return False
        self._items = self._items[:index] + self._items[index + 1:]
        return True

    def move_up(self, local_key: str) -> bool:
        index = self.index_of(local_key)
        if index <= 0:
            return False
        self._swap(index - 1, index)
        return True

    def move_down(self, local_key: str) -> bool:
        index = self.index_of(local_key)
        if index < 0 or index >= len(self._items) - 1:
            return False
        self._swap(index, index + 1)
        return True

    def reorder(self, from_index: int, to_index: int) -> bool:
        """
        Moves the item at `from_index` to `to_index`, shifting the items in
        between (drag and drop). Raises IndexError for positions outside the list.
        """
        size = len(self._items)
        if not (0 <= from_index < size) or not (0 <= to_index < size):
            raise IndexError(f"reorder({from_index}, {to_index}) out of range for {size} items")
        if from_index == to_index:
            return False
        items = list(self._items)
        moved = items.pop(from_index)
        items.insert(to_index, moved)
        self._items = items
        return True

    def _swap(self, first: int, second: int) -> None:
        items = list(self._items)
        items[first], items[second] = items[second], items[first]
        self._items = items

    def partition(self) -> Dict[ChildKind, List[Tuple[int, CompositionItem]]]:
        """
        Groups items by kind. Each entry pairs the item with its 1-based
        position in the whole list, which is the order value persisted for it.
        """
        groups: Dict[ChildKind, List[Tuple[int, CompositionItem]]] = {}
        for position, item in enumerate(self._items, start=1):
            groups.setdefault(item.child_kind, []).append((position, item))
        return groups


def mutate_composition(
    items: Iterable[CompositionItem],
    op: MutationOp,
    item: Optional[CompositionItem] = None,
    local_key: Optional[str] = None,
    from_index: Optional[int] = None,
    to_index: Optional[int] = None,
) -> MutationResult:
    """
    Applies one editing operation to a copy of `items` and returns the new
    list. The input is never modified.

    Raises ValueError when the arguments an operation needs are missing and
    IndexError for an out-of-range reorder.
    """
    composition = CompositionList(items)
    op = MutationOp(op)
    duplicate = False

    if op == MutationOp.APPEND:
        if item is None:
            raise ValueError("append requires an item")
        changed = composition.append(item)
        duplicate = not changed
    elif op in (MutationOp.REMOVE, MutationOp.MOVE_UP, MutationOp.MOVE_DOWN):
        if not local_key:
            raise ValueError(f"{op.value} requires a local_key")
        if op == MutationOp.REMOVE:
            changed = composition.remove(local_key)
        elif op == MutationOp.MOVE_UP:
            changed = composition.move_up(local_key)
        else:
            changed = composition.move_down(local_key)
    else:
        if from_index is None or to_index is None:
            raise ValueError("reorder requires from_index and to_index")
        changed = composition.reorder(from_index, to_index)

    logger.debug(f"mutate_composition: {op.value} changed={changed} duplicate={duplicate} size={len(composition)}")
    return MutationResult(items=list(composition), changed=changed, duplicate=duplicate)
