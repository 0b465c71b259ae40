from __future__ import annotations

import logging
from typing import Hashable, NamedTuple, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

PLACEHOLDER_CLASS = "dnd-insert"


class Node:
    css_class = ""

    def __init__(self) -> None:
        self.parent: Container | None = None


class Card(Node):
    css_class = "field-card"

    def __init__(self, field_id: str, index: int) -> None:
        super().__init__()
        self.field_id = field_id
        self.index = index

    def __repr__(self) -> str:
        return f"Card({self.field_id!r}, {self.index})"


class Placeholder(Node):
    css_class = PLACEHOLDER_CLASS

    def __repr__(self) -> str:
        return "Placeholder()"


class Container:
    """Ordered list of nodes standing in for the preview element."""

    def __init__(self, children: Sequence[Node] = ()) -> None:
        self.children: list[Node] = []
        for child in children:
            self.append(child)

    def append(self, node: Node) -> None:
        self.insert_before(node, None)

    def insert_before(self, node: Node, reference: Node | None) -> None:
        if node.parent is not None:
            node.parent.remove_child(node)
        if reference is None or reference.parent is not self:
            self.children.append(node)
        else:
            self.children.insert(self.children.index(reference), node)
        node.parent = self

    def remove_child(self, node: Node) -> None:
        if node.parent is not self:
            return
        self.children.remove(node)
        node.parent = None

    def next_sibling(self, node: Node) -> Node | None:
        position = self.children.index(node) + 1
        return self.children[position] if position < len(self.children) else None

    def clear(self) -> None:
        for child in self.children:
            child.parent = None
        self.children = []

    def cards(self) -> list[Card]:
        return [child for child in self.children if isinstance(child, Card)]


class DropTarget(NamedTuple):
    to: int
    is_noop: bool


def place_placeholder(placeholder: Placeholder, target: Node | None, before: bool = True) -> None:
    if target is None or target is placeholder or target.parent is None:
        return
    parent = target.parent
    remove_placeholder(placeholder)
    reference = target if before else parent.next_sibling(target)
    parent.insert_before(placeholder, reference)


def remove_placeholder(placeholder: Placeholder) -> None:
    if placeholder.parent is not None:
        placeholder.parent.remove_child(placeholder)


def compute_drop_index(slots: Sequence[Hashable], placeholder: Hashable, from_index: int) -> DropTarget:
    raw_index = len(slots)
    for position, slot in enumerate(slots):
        if slot is placeholder or slot == placeholder:
            raw_index = position
            break
    to = raw_index if from_index >= raw_index else raw_index - 1
    is_noop = to == from_index or raw_index == from_index + 1
    return DropTarget(to, is_noop)


def compute_drop_target(container: Container, from_index: int, placeholder: Placeholder) -> DropTarget:
    return compute_drop_index(container.children, placeholder, from_index)


def fallback_drop_target(from_index: int, raw_index: int) -> DropTarget:
    to = raw_index - 1 if from_index < raw_index else raw_index
    return DropTarget(to, to == from_index)


def move(items: list[T], from_index: int, to_index: int) -> list[T]:
    length = len(items)
    if (
        from_index == to_index
        or from_index < 0
        or to_index < 0
        or from_index >= length
        or to_index > length
    ):
        return items
    moved = list(items)
    item = moved.pop(from_index)
    moved.insert(to_index, item)
    return moved


class DragSession:
    """One drag gesture, from drag start to drop or cancel.

    The session owns its placeholder, so two sessions never share a marker.
    """

    def __init__(self, from_index: int, field_id: str | None = None) -> None:
        self.from_index = from_index
        self.field_id = field_id
        self.placeholder = Placeholder()
        self.active = True

    def drag_over(self, target: Node | None, before: bool = True) -> None:
        if not self.active:
            return
        place_placeholder(self.placeholder, target, before)

    def has_placeholder_in(self, container: Container) -> bool:
        return self.placeholder.parent is container

    def target_in(
        self,
        container: Container,
        target: Node | None = None,
        before: bool = True,
    ) -> DropTarget:
        if self.has_placeholder_in(container):
            return compute_drop_target(container, self.from_index, self.placeholder)
        # dropped before any drag-over placed the marker
        cards = container.cards()
        if isinstance(target, Card) and target in cards:
            position = cards.index(target)
            raw_index = position if before else position + 1
        else:
            raw_index = len(cards)
        return fallback_drop_target(self.from_index, raw_index)

    def drop(
        self,
        container: Container,
        items: list[T],
        target: Node | None = None,
        before: bool = True,
    ) -> list[T]:
        if not self.active or self.from_index < 0:
            remove_placeholder(self.placeholder)
            return items
        drop_target = self.target_in(container, target, before)
        remove_placeholder(self.placeholder)
        if drop_target.is_noop or drop_target.to < 0:
            return items
        logger.debug("Moving field %s from %d to %d", self.field_id, self.from_index, drop_target.to)
        return move(items, self.from_index, drop_target.to)

    def end(self) -> None:
        remove_placeholder(self.placeholder)
        self.active = False
