"""
Reconciler: the single view of one room's timeline and member set.

Two channels feed it:
- Poll snapshots (apply_snapshot / apply_member_snapshot): replace-or-grow.
  A snapshot replaces the timeline only when its length or tail id differs
  from the current one. This is a cheap equality check, not a content diff.
- Stream events (apply_stream_event): append-if-absent by id, no re-sort.
  A stream event older than the tail therefore shows up out of order until
  the next replacing snapshot.

Novelty: a message is surfaced at most once per session, and only messages
authored by someone other than the local user reach novelty handlers. The
first message snapshot of a session is history and surfaces nothing.

Every apply_* call is synchronous, so on a single event loop the calls never
interleave.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from roomchat.models.room import Member, Message

logger = logging.getLogger(__name__)

NoveltyHandler = Callable[[Message], None]
TimelineHandler = Callable[["TimelineDiff"], None]
MembershipHandler = Callable[["MembershipDiff"], None]


@dataclass(frozen=True)
class TimelineDiff:
    kind: str  # "replace" | "append" | "none"
    messages: tuple[Message, ...] = ()  # full timeline on replace, the appended message on append
    novel: tuple[Message, ...] = ()

    @property
    def changed(self) -> bool:
        return self.kind != "none"


@dataclass(frozen=True)
class MembershipDiff:
    changed: bool
    members: tuple[Member, ...] = ()
    joined: tuple[Member, ...] = ()
    left: tuple[Member, ...] = ()


NO_CHANGE = TimelineDiff("none")


def _call(handler: Callable[[Any], None], arg: Any) -> None:
    try:
        handler(arg)
    except Exception:
        logger.exception("Reconciler listener %r failed", handler)


def _add_handler(handlers: list, handler) -> Callable[[], None]:
    handlers.append(handler)

    def remove() -> None:
        try:
            handlers.remove(handler)
        except ValueError:
            pass
    return remove


class Reconciler:
    def __init__(self, room_id: str, self_user_id: str):
        self.room_id = room_id
        self.self_user_id = self_user_id
        self._timeline: list[Message] = []
        self._ids: set[str] = set()
        self._members: dict[str, Member] = {}
        self._surfaced: set[str] = set()
        self._primed = False
        self._novelty_handlers: list[NoveltyHandler] = []
        self._timeline_handlers: list[TimelineHandler] = []
        self._membership_handlers: list[MembershipHandler] = []

    @property
    def timeline(self) -> tuple[Message, ...]:
        return tuple(self._timeline)

    @property
    def members(self) -> tuple[Member, ...]:
        return tuple(self._members.values())

    @property
    def tail_id(self) -> Optional[str]:
        return self._timeline[-1].id if self._timeline else None

    def add_novelty_handler(self, handler: NoveltyHandler) -> Callable[[], None]:
        return _add_handler(self._novelty_handlers, handler)

    def add_timeline_handler(self, handler: TimelineHandler) -> Callable[[], None]:
        return _add_handler(self._timeline_handlers, handler)

    def add_membership_handler(self, handler: MembershipHandler) -> Callable[[], None]:
        return _add_handler(self._membership_handlers, handler)

    def apply_snapshot(self, messages: Sequence[Message]) -> TimelineDiff:
        """Replace the timeline with an authoritative, ordered snapshot if it changed."""
        incoming_tail = messages[-1].id if messages else None
        if len(messages) == len(self._timeline) and incoming_tail == self.tail_id:
            self._primed = True
            return NO_CHANGE

        self._timeline = list(messages)
        self._ids = {m.id for m in self._timeline}

        if not self._primed:
            # history, not news
            self._primed = True
            self._surfaced.update(self._ids)
            novel: list[Message] = []
        else:
            novel = [m for m in self._timeline if self._surface(m)]

        diff = TimelineDiff("replace", tuple(self._timeline), tuple(novel))
        self._emit(diff)
        return diff

    def apply_stream_event(self, message: Message) -> TimelineDiff:
        """Append a pushed message unless its id is already in the timeline."""
        if message.room_id != self.room_id:
            logger.debug("Ignoring message %s for room %s in room %s", message.id, message.room_id, self.room_id)
            return NO_CHANGE
        if message.id in self._ids:
            return NO_CHANGE

        self._timeline.append(message)
        self._ids.add(message.id)
        novel = (message,) if self._surface(message) else ()
        diff = TimelineDiff("append", (message,), novel)
        self._emit(diff)
        return diff

    def apply_member_snapshot(self, members: Sequence[Member]) -> MembershipDiff:
        """Replace the member set when the count differs or an unknown member id appears.

        Since ids are unique, an equal count with no unknown id means the id
        sets are equal, so departures are picked up through the count check.
        """
        incoming_ids = [m.id for m in members]
        unknown = [i for i in incoming_ids if i not in self._members]
        if len(members) == len(self._members) and not unknown:
            return MembershipDiff(False, self.members)

        incoming = {m.id: m for m in members}
        joined = tuple(m for m in members if m.id not in self._members)
        left = tuple(m for mid, m in self._members.items() if mid not in incoming)
        self._members = incoming

        diff = MembershipDiff(True, self.members, joined, left)
        for handler in list(self._membership_handlers):
            _call(handler, diff)
        return diff

    def _surface(self, message: Message) -> bool:
        """Mark a message as seen; True if it is news from someone else."""
        if message.id in self._surfaced:
            return False
        self._surfaced.add(message.id)
        return message.author_id != self.self_user_id

    def _emit(self, diff: TimelineDiff) -> None:
        # Novelty first: the ids are already marked surfaced, so this is its only chance.
        for message in diff.novel:
            for novelty_handler in list(self._novelty_handlers):
                _call(novelty_handler, message)
        for handler in list(self._timeline_handlers):
            _call(handler, diff)
