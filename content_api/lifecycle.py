"""
Status state machines for every publishable entity type.

A machine is pure data: the closed set of states, the legal edges, the two
"primary" states that ``toggle`` flips between and the states the public
may see.  ``set_status`` and ``toggle`` apply a machine to an ORM entity in
place; they are the only code paths that write ``status``.

Two shapes are in use:

- editorial (articles, samples): ``Draft <-> Published`` and either of them
  ``-> Archived``; ``Archived`` has no outgoing edges.
- free (service pages, sections, testimonials): any enumerated state may be
  set directly, while ``toggle`` still only flips the primary pair.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Mapping

from content_api.access import Caller, Capability
from content_api.errors import Forbidden, IllegalTransition, ValidationFailed

logger = logging.getLogger(__name__)


class EditorialStatus(str, Enum):
    DRAFT = "Draft"
    PUBLISHED = "Published"
    ARCHIVED = "Archived"


class ServiceStatus(str, Enum):
    DRAFT = "Draft"
    LIVE = "Live"
    INACTIVE = "Inactive"
    COMING_SOON = "Coming_Soon"


class SectionStatus(str, Enum):
    DRAFT = "Draft"
    LIVE = "Live"
    INACTIVE = "Inactive"


class TestimonialStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class StatusMachine:
    name: str
    states: tuple[str, ...]
    draft: str
    live: str
    public: frozenset[str]
    edges: Mapping[str, frozenset[str]]
    archived: str | None = None
    required: Capability = Capability.PUBLISH

    @property
    def initial(self) -> str:
        return self.draft

    def is_terminal(self, state: str) -> bool:
        return not self.edges.get(state)

    def can_transition(self, current: str, target: str) -> bool:
        return target in self.edges.get(current, frozenset())

    def toggle_target(self, current: str) -> str | None:
        """The other primary state, or None when *current* is a side state."""
        if current == self.draft:
            return self.live
        if current == self.live:
            return self.draft
        return None


def _editorial_edges(draft: str, live: str, archived: str) -> dict[str, frozenset[str]]:
    return {
        draft: frozenset({live, archived}),
        live: frozenset({draft, archived}),
        archived: frozenset(),
    }


def _free_edges(states: tuple[str, ...]) -> dict[str, frozenset[str]]:
    return {state: frozenset(s for s in states if s != state) for state in states}


EDITORIAL = StatusMachine(
    name="editorial",
    states=tuple(s.value for s in EditorialStatus),
    draft=EditorialStatus.DRAFT.value,
    live=EditorialStatus.PUBLISHED.value,
    public=frozenset({EditorialStatus.PUBLISHED.value}),
    edges=_editorial_edges(
        EditorialStatus.DRAFT.value,
        EditorialStatus.PUBLISHED.value,
        EditorialStatus.ARCHIVED.value,
    ),
    archived=EditorialStatus.ARCHIVED.value,
)

SERVICE = StatusMachine(
    name="service",
    states=tuple(s.value for s in ServiceStatus),
    draft=ServiceStatus.DRAFT.value,
    live=ServiceStatus.LIVE.value,
    public=frozenset({ServiceStatus.LIVE.value}),
    edges=_free_edges(tuple(s.value for s in ServiceStatus)),
)

SECTION = StatusMachine(
    name="section",
    states=tuple(s.value for s in SectionStatus),
    draft=SectionStatus.DRAFT.value,
    live=SectionStatus.LIVE.value,
    # Sections are navigation scaffolding; the public listing shows them all.
    public=frozenset(s.value for s in SectionStatus),
    edges=_free_edges(tuple(s.value for s in SectionStatus)),
)

TESTIMONIAL = StatusMachine(
    name="testimonial",
    states=tuple(s.value for s in TestimonialStatus),
    draft=TestimonialStatus.DRAFT.value,
    live=TestimonialStatus.PUBLISHED.value,
    public=frozenset({TestimonialStatus.PUBLISHED.value}),
    edges=_free_edges(tuple(s.value for s in TestimonialStatus)),
    archived=TestimonialStatus.ARCHIVED.value,
)


def _stamp_publication(machine: StatusMachine, entity, now: datetime) -> None:
    # First entry into the live state only; later toggles keep the original instant.
    if entity.status == machine.live and hasattr(entity, "published_at"):
        if entity.published_at is None:
            entity.published_at = now


def check_transition(
    machine: StatusMachine, current: str, target: str, caller: Caller, label: str
) -> bool:
    """
    Validate a requested move from *current* to *target*.

    Returns False when the move is a no-op (same state).  Raises
    ``Forbidden`` for callers without the machine's required capability,
    ``ValidationFailed`` for values outside the enumeration and
    ``IllegalTransition`` for a missing edge.
    """
    if not caller.can(machine.required):
        raise Forbidden(f"Not authorized to change {label.lower()} status")
    if target not in machine.states:
        raise ValidationFailed.for_field(
            "status", f"Status must be one of: {', '.join(machine.states)}"
        )
    if target == current:
        return False
    if not machine.can_transition(current, target):
        raise IllegalTransition(label, current, target)
    return True


def set_status(
    machine: StatusMachine,
    entity,
    target: str,
    caller: Caller,
    label: str,
    clock: Callable[[], datetime] = utcnow,
):
    """Move *entity* to *target* along an edge of *machine*."""
    if not check_transition(machine, entity.status, target, caller, label):
        return entity

    logger.info("%s %s: %s -> %s", label, entity.id, entity.status, target)
    entity.status = target
    _stamp_publication(machine, entity, clock())
    return entity


def toggle(
    machine: StatusMachine,
    entity,
    caller: Caller,
    label: str,
    clock: Callable[[], datetime] = utcnow,
):
    """Flip *entity* between the machine's draft and live states."""
    if not caller.can(machine.required):
        raise Forbidden(f"Not authorized to change {label.lower()} status")
    target = machine.toggle_target(entity.status)
    if target is None:
        raise IllegalTransition(label, entity.status)

    logger.info("%s %s toggled: %s -> %s", label, entity.id, entity.status, target)
    entity.status = target
    _stamp_publication(machine, entity, clock())
    return entity
