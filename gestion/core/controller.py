"""State container shared by every list + filter + CRUD page.

A page describes the names of its asynchronous operations, modals, busy
buttons, selection slots and tables with a :class:`ControllerSchema`. The
schema produces the initial :class:`ControllerState`, which is only ever
changed by :func:`reduce` applying one of the action records below. A
:class:`Store` owns the current state for one page, dispatches actions and
fences overlapping requests so a stale response can never overwrite a newer
one.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field, replace
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from .constants import (
    CRUD_APIS,
    CRUD_BUTTONS,
    CRUD_MODALS,
    CRUD_SELECTIONS,
    DEFAULT_TABLE,
    DEFAULT_PER_PAGE,
)
from .load_state import LoadState
from .pagination import PaginatedCollection, Pagination

logger = logging.getLogger(__name__)


class UnknownKeyError(KeyError):
    """Raised when an action names a key the page schema does not declare."""


@dataclass(frozen=True)
class AsyncOptions:
    """Option list for a dropdown fed by another resource."""

    items: Tuple[Any, ...] = ()
    load: LoadState = LoadState.IDLE


@dataclass(frozen=True)
class ControllerSchema:
    apis: Tuple[str, ...]
    modals: Tuple[str, ...]
    buttons: Tuple[str, ...]
    selections: Tuple[str, ...]
    tables: Tuple[str, ...] = (DEFAULT_TABLE,)
    async_selections: Tuple[str, ...] = ()
    per_page: int = DEFAULT_PER_PAGE

    @classmethod
    def crud(
        cls,
        *,
        tables: Sequence[str] = (DEFAULT_TABLE,),
        async_selections: Sequence[str] = (),
        per_page: int = DEFAULT_PER_PAGE,
    ) -> "ControllerSchema":
        """Return the schema used by a standard list + upsert + delete page."""
        return cls(
            apis=CRUD_APIS,
            modals=CRUD_MODALS,
            buttons=CRUD_BUTTONS,
            selections=CRUD_SELECTIONS,
            tables=tuple(tables),
            async_selections=tuple(async_selections),
            per_page=per_page,
        )

    def initial_state(self) -> "ControllerState":
        return ControllerState(
            schema=self,
            apis={name: LoadState.IDLE for name in self.apis},
            open_modal=None,
            modal=LoadState.IDLE,
            buttons={name: False for name in self.buttons},
            selections={name: None for name in self.selections},
            tables={
                name: PaginatedCollection(pagination=Pagination(per_page=self.per_page))
                for name in self.tables
            },
            async_selections={name: AsyncOptions() for name in self.async_selections},
        )


@dataclass(frozen=True)
class ControllerState:
    schema: ControllerSchema
    apis: Mapping[str, LoadState]
    open_modal: Optional[str]
    modal: LoadState
    buttons: Mapping[str, bool]
    selections: Mapping[str, Any]
    tables: Mapping[str, PaginatedCollection]
    async_selections: Mapping[str, AsyncOptions] = field(default_factory=dict)

    @property
    def modals(self) -> Dict[str, bool]:
        """Visibility flag per declared modal; at most one is ``True``."""
        return {name: name == self.open_modal for name in self.schema.modals}

    def api(self, name: str) -> LoadState:
        return self.apis[_require(name, self.schema.apis, "api")]

    def button(self, name: str) -> bool:
        return self.buttons[_require(name, self.schema.buttons, "button")]

    def selection(self, name: str) -> Any:
        return self.selections[_require(name, self.schema.selections, "selection")]

    def table(self, name: str = DEFAULT_TABLE) -> PaginatedCollection:
        return self.tables[_require(name, self.schema.tables, "table")]

    def is_open(self, name: str) -> bool:
        _require(name, self.schema.modals, "modal")
        return self.open_modal == name


# ─────────────────────────────────────────────────────────
# ACTIONS
# ─────────────────────────────────────────────────────────
@dataclass(frozen=True)
class SetApi:
    name: str
    state: LoadState


@dataclass(frozen=True)
class SetModal:
    name: str
    open: bool
    load: Optional[LoadState] = None


@dataclass(frozen=True)
class SetButton:
    name: str
    busy: bool


@dataclass(frozen=True)
class SetSelection:
    name: str
    row: Any = None


@dataclass(frozen=True)
class SetTable:
    name: str = DEFAULT_TABLE
    rows: Optional[Sequence[Any]] = None
    pagination: Optional[Mapping[str, Any]] = None


@dataclass(frozen=True)
class SetAsyncSelection:
    name: str
    items: Optional[Sequence[Any]] = None
    load: Optional[LoadState] = None


Action = Union[SetApi, SetModal, SetButton, SetSelection, SetTable, SetAsyncSelection]


def _require(name: str, names: Iterable[str], kind: str) -> str:
    if name not in names:
        raise UnknownKeyError(f"Unknown {kind} key: {name!r}")
    return name


def _set_api(state: ControllerState, action: SetApi) -> ControllerState:
    _require(action.name, state.schema.apis, "api")
    return replace(state, apis={**state.apis, action.name: LoadState(action.state)})


def _set_modal(state: ControllerState, action: SetModal) -> ControllerState:
    _require(action.name, state.schema.modals, "modal")
    load = action.load
    if load is None:
        load = LoadState.OK if action.open else LoadState.IDLE
    # Closing any modal leaves no overlay open.
    open_modal = action.name if action.open else None
    return replace(state, open_modal=open_modal, modal=LoadState(load))


def _set_button(state: ControllerState, action: SetButton) -> ControllerState:
    _require(action.name, state.schema.buttons, "button")
    return replace(state, buttons={**state.buttons, action.name: bool(action.busy)})


def _set_selection(state: ControllerState, action: SetSelection) -> ControllerState:
    _require(action.name, state.schema.selections, "selection")
    return replace(state, selections={**state.selections, action.name: action.row})


def _set_table(state: ControllerState, action: SetTable) -> ControllerState:
    _require(action.name, state.schema.tables, "table")
    collection = state.tables[action.name]
    if action.rows is not None:
        collection = collection.with_rows(action.rows)
    if action.pagination is not None:
        collection = collection.with_pagination(action.pagination)
    return replace(state, tables={**state.tables, action.name: collection})


def _set_async_selection(
    state: ControllerState, action: SetAsyncSelection
) -> ControllerState:
    _require(action.name, state.schema.async_selections, "async selection")
    current = state.async_selections[action.name]
    updated = AsyncOptions(
        items=tuple(action.items) if action.items is not None else current.items,
        load=LoadState(action.load) if action.load is not None else current.load,
    )
    return replace(
        state, async_selections={**state.async_selections, action.name: updated}
    )


_REDUCERS: Dict[type, Callable[[ControllerState, Any], ControllerState]] = {
    SetApi: _set_api,
    SetModal: _set_modal,
    SetButton: _set_button,
    SetSelection: _set_selection,
    SetTable: _set_table,
    SetAsyncSelection: _set_async_selection,
}


def reduce(state: ControllerState, action: Action) -> ControllerState:
    """Return the state that results from applying ``action`` to ``state``."""

    reducer = _REDUCERS.get(type(action))
    if reducer is None:
        raise TypeError(f"Unsupported action: {action!r}")
    return reducer(state, action)


# ─────────────────────────────────────────────────────────
# REQUEST FENCING
# ─────────────────────────────────────────────────────────
class CancellationToken:
    """Shared flag invalidated when the owning page goes away."""

    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass(frozen=True)
class RequestTicket:
    operation: str
    sequence: int
    token: CancellationToken


class Store:
    """Owns the controller state of one page."""

    def __init__(self, schema: ControllerSchema) -> None:
        self.schema = schema
        self.state = schema.initial_state()
        self._token = CancellationToken()
        self._counter = itertools.count(1)
        self._latest: Dict[str, int] = {}

    def dispatch(self, *actions: Action) -> ControllerState:
        for action in actions:
            self.state = reduce(self.state, action)
        return self.state

    def set_api(self, name: str, value: LoadState) -> ControllerState:
        return self.dispatch(SetApi(name, value))

    def set_modal(
        self, name: str, value: bool, load: Optional[LoadState] = None
    ) -> ControllerState:
        return self.dispatch(SetModal(name, value, load))

    def set_button(self, name: str, busy: bool) -> ControllerState:
        return self.dispatch(SetButton(name, busy))

    def set_selection(self, name: str, row: Any) -> ControllerState:
        return self.dispatch(SetSelection(name, row))

    def set_table(
        self,
        name: str = DEFAULT_TABLE,
        rows: Optional[Sequence[Any]] = None,
        pagination: Optional[Mapping[str, Any]] = None,
    ) -> ControllerState:
        return self.dispatch(SetTable(name, rows, pagination))

    def set_async_selection(
        self,
        name: str,
        items: Optional[Sequence[Any]] = None,
        load: Optional[LoadState] = None,
    ) -> ControllerState:
        return self.dispatch(SetAsyncSelection(name, items, load))

    # Request lifecycle -------------------------------------------------
    @property
    def mounted(self) -> bool:
        return not self._token.cancelled

    def begin_request(self, operation: str) -> RequestTicket:
        """Issue a ticket that supersedes every earlier one for ``operation``."""

        sequence = next(self._counter)
        self._latest[operation] = sequence
        return RequestTicket(operation, sequence, self._token)

    def invalidate(self, operation: str) -> None:
        """Make every outstanding ticket for ``operation`` stale."""
        self._latest[operation] = next(self._counter)

    def is_current(self, ticket: RequestTicket) -> bool:
        return (
            not ticket.token.cancelled
            and self._latest.get(ticket.operation) == ticket.sequence
        )

    def resolve(self, ticket: RequestTicket, *actions: Action) -> bool:
        """Apply ``actions`` only if ``ticket`` is still the latest request."""

        if not self.is_current(ticket):
            logger.debug(
                "Discarding stale %s response (sequence %s)",
                ticket.operation,
                ticket.sequence,
            )
            return False
        self.dispatch(*actions)
        return True

    def unmount(self) -> None:
        """Invalidate every outstanding request of this page."""
        self._token.cancel()


__all__ = [
    "Action",
    "AsyncOptions",
    "CancellationToken",
    "ControllerSchema",
    "ControllerState",
    "RequestTicket",
    "SetApi",
    "SetAsyncSelection",
    "SetButton",
    "SetModal",
    "SetSelection",
    "SetTable",
    "Store",
    "UnknownKeyError",
    "reduce",
]
