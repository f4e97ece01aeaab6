"""
Cascading selector: the state machine behind the rating form.

Class → Group → Rater → Ratee. Changing an upstream selection clears every
downstream selection and option list straight away, then refetches the next
option list from the store. Each fetch is tagged with a per-list generation
and the selection value that triggered it; a result arriving after the
selection moved on is dropped instead of overwriting the newer list.

The store is any object exposing ``list_classes()``, ``list_groups(class_id)``
and ``list_participants(group_id)`` coroutines (see ``RatingStore``).
"""

import enum
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from pydantic import BaseModel

from peerrate.exceptions import FetchError
from peerrate.models.peer_rating import DEFAULT_RATING_SCORE
from peerrate.schemas.options import ClassOption, GroupOption, ParticipantOption

logger = logging.getLogger(__name__)

SELECTION_FIELDS = (
    "class_id",
    "group_id",
    "rater_id",
    "ratee_id",
    "rating_score",
    "rating_comment",
)

# Generic inline messages; the underlying error is only logged.
FETCH_ERROR_MESSAGES = {
    "classes": "Could not load classes. Please try again.",
    "groups": "Could not load project groups. Please try again.",
    "participants": "Could not load group members. Please try again.",
}


class ListState(str, enum.Enum):
    EMPTY = "empty"
    LOADING = "loading"
    POPULATED = "populated"


class SelectorState(BaseModel):
    """Everything the form needs to render, owned by one selector."""

    # ── Selections ──
    class_id: str = ""
    group_id: str = ""
    rater_id: str = ""
    ratee_id: str = ""
    rating_score: Union[int, str] = DEFAULT_RATING_SCORE
    rating_comment: str = ""

    # ── Option lists ──
    classes: List[ClassOption] = []
    groups: List[GroupOption] = []
    participants: List[ParticipantOption] = []
    classes_state: ListState = ListState.EMPTY
    groups_state: ListState = ListState.EMPTY
    participants_state: ListState = ListState.EMPTY

    # ── Activity ──
    in_flight: int = 0
    submitting: bool = False
    error: Optional[str] = None


class CascadingSelector:
    def __init__(self, store, state: Optional[SelectorState] = None):
        self.store = store
        self.state = state or SelectorState()
        self._generations: Dict[str, int] = {"classes": 0, "groups": 0, "participants": 0}

    # ═══════════════════════════════════════════════════════════════
    #  Derived views
    # ═══════════════════════════════════════════════════════════════

    @property
    def loading(self) -> bool:
        return self.state.in_flight > 0

    @property
    def ratee_options(self) -> List[ParticipantOption]:
        """Group members minus the selected rater."""
        return [p for p in self.state.participants if p.nrp != self.state.rater_id]

    def is_disabled(self, field: str) -> bool:
        busy = self.loading or self.state.submitting
        if field == "class_id":
            return busy
        if field == "group_id":
            return busy or not self.state.class_id
        if field == "rater_id":
            return busy or not self.state.group_id
        if field == "ratee_id":
            return busy or not self.state.rater_id or not self.ratee_options
        if field in ("rating_score", "rating_comment", "submit"):
            return busy
        raise KeyError(field)

    def form_values(self) -> Dict[str, Any]:
        return {name: getattr(self.state, name) for name in SELECTION_FIELDS}

    # ═══════════════════════════════════════════════════════════════
    #  Transitions
    # ═══════════════════════════════════════════════════════════════

    async def load_classes(self) -> None:
        await self._fetch("classes", "", self.store.list_classes)

    async def select_class(self, class_id: Optional[str]) -> None:
        class_id = self._known(class_id, [c.class_id for c in self.state.classes])
        self.state.class_id = class_id
        self._clear_groups()
        self._clear_participants()
        if not class_id:
            return
        await self._fetch("groups", class_id, lambda: self.store.list_groups(class_id))

    async def select_group(self, group_id: Optional[str]) -> None:
        group_id = self._known(group_id, [g.group_id for g in self.state.groups])
        self.state.group_id = group_id
        self._clear_participants()
        if not group_id:
            return
        await self._fetch(
            "participants", group_id, lambda: self.store.list_participants(group_id)
        )

    def select_rater(self, rater_id: Optional[str]) -> None:
        self.state.rater_id = self._known(rater_id, [p.nrp for p in self.state.participants])
        # A rater cannot rate themself; drop a ratee that just became invalid.
        if self.state.ratee_id not in [p.nrp for p in self.ratee_options]:
            self.state.ratee_id = ""

    def select_ratee(self, ratee_id: Optional[str]) -> None:
        self.state.ratee_id = self._known(ratee_id, [p.nrp for p in self.ratee_options])

    def set_score(self, value: Union[int, str, None]) -> None:
        if value is None:
            value = ""
        if isinstance(value, str):
            value = value.strip()
            try:
                value = int(value)
            except ValueError:
                pass
        self.state.rating_score = value

    def set_comment(self, value: Optional[str]) -> None:
        self.state.rating_comment = value or ""

    def reset(self) -> None:
        """Back to the initial defaults; the loaded class list is kept."""
        self.state = SelectorState(
            classes=self.state.classes,
            classes_state=self.state.classes_state,
            in_flight=self.state.in_flight,
        )
        self._generations["groups"] += 1
        self._generations["participants"] += 1

    # ═══════════════════════════════════════════════════════════════
    #  Session persistence
    # ═══════════════════════════════════════════════════════════════

    def snapshot(self) -> Dict[str, Any]:
        """Selections only; option lists are refetched on restore."""
        return self.form_values()

    @classmethod
    async def restore(cls, store, snapshot: Optional[Dict[str, Any]] = None) -> "CascadingSelector":
        """Rebuild a selector by replaying the saved selections in order.

        Selections that are no longer valid (a group moved to another class,
        a participant left the group) fall away during the replay.
        """
        snapshot = snapshot or {}
        selector = cls(store)
        await selector.load_classes()
        await selector.select_class(snapshot.get("class_id"))
        await selector.select_group(snapshot.get("group_id"))
        selector.select_rater(snapshot.get("rater_id"))
        selector.select_ratee(snapshot.get("ratee_id"))
        selector.set_score(snapshot.get("rating_score", DEFAULT_RATING_SCORE))
        selector.set_comment(snapshot.get("rating_comment"))
        return selector

    # ═══════════════════════════════════════════════════════════════
    #  Internals
    # ═══════════════════════════════════════════════════════════════

    @staticmethod
    def _known(value: Optional[str], choices: List[str]) -> str:
        value = (value or "").strip()
        return value if value in choices else ""

    def _clear_groups(self) -> None:
        self.state.group_id = ""
        self.state.groups = []
        self.state.groups_state = ListState.EMPTY
        self._generations["groups"] += 1

    def _clear_participants(self) -> None:
        self.state.rater_id = ""
        self.state.ratee_id = ""
        self.state.participants = []
        self.state.participants_state = ListState.EMPTY
        self._generations["participants"] += 1

    def _trigger_value(self, name: str) -> str:
        if name == "groups":
            return self.state.class_id
        if name == "participants":
            return self.state.group_id
        return ""

    def _is_current(self, name: str, generation: int, trigger: str) -> bool:
        return generation == self._generations[name] and trigger == self._trigger_value(name)

    async def _fetch(self, name: str, trigger: str, loader: Callable[[], Awaitable[list]]) -> None:
        self._generations[name] += 1
        generation = self._generations[name]
        setattr(self.state, f"{name}_state", ListState.LOADING)
        self.state.in_flight += 1
        # A failure from an earlier step stays visible until a new fetch starts.
        self.state.error = None
        try:
            options = await loader()
        except FetchError as e:
            if self._is_current(name, generation, trigger):
                logger.warning("Could not load %s for %r: %s", name, trigger, e)
                setattr(self.state, name, [])
                setattr(self.state, f"{name}_state", ListState.EMPTY)
                self.state.error = FETCH_ERROR_MESSAGES[name]
            return
        finally:
            self.state.in_flight -= 1

        if not self._is_current(name, generation, trigger):
            logger.debug("Discarding stale %s result for %r", name, trigger)
            return
        setattr(self.state, name, list(options))
        setattr(
            self.state,
            f"{name}_state",
            ListState.POPULATED if options else ListState.EMPTY,
        )
