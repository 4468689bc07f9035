"""State schema and per-field merge rules.

A state is a plain dictionary whose keys are fixed up front by a
``StateSchema``. Each declared field carries a merge rule that decides how a
step's partial update is folded into the running state:

- overwrite: the new value replaces the old one (last write wins)
- append: the new list is concatenated onto the existing one

Example:
    >>> from typing import Annotated, TypedDict
    >>> from stepwise.core.state import StateSchema, append
    >>>
    >>> class GraphState(TypedDict):
    ...     name: str
    ...     items: Annotated[list[str], append]
    >>>
    >>> schema = StateSchema.from_annotations(GraphState)
    >>> state = schema.initial_state()
    >>> state = schema.apply(state, {"name": "Ada", "items": ["First"]})
    >>> schema.apply(state, {"items": ["Second"]})
    {'name': 'Ada', 'items': ['First', 'Second']}
"""

import copy
import operator
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    Iterator,
    List,
    Mapping,
    Optional,
    get_args,
    get_origin,
    get_type_hints,
    Annotated,
)

from stepwise.utils.errors import (
    GraphValidationError,
    InvalidUpdateError,
    UndeclaredFieldError,
)

# Reserved node markers; they may not be used as field or node names
START = "START"
END = "END"


class MergeKind(str, Enum):
    """How a field combines its current value with an update."""

    OVERWRITE = "overwrite"
    APPEND = "append"
    CUSTOM = "custom"


def append(current: List[Any], update: List[Any]) -> List[Any]:
    """Append reducer: ``current`` followed by ``update``."""
    return list(current) + list(update)


def overwrite(current: Any, update: Any) -> Any:
    """Overwrite reducer: the update wins."""
    return update


_APPEND_REDUCERS = (append, operator.add, operator.concat)


@dataclass
class FieldSpec:
    """Declaration of a single state field.

    Attributes:
        name: Field name (state key)
        type_hint: Declared semantic type, informational only
        kind: Merge rule for the field
        default_factory: Produces the field's initial value
        reducer: Binary merge function for CUSTOM fields
    """

    name: str
    type_hint: Any = Any
    kind: MergeKind = MergeKind.OVERWRITE
    default_factory: Optional[Callable[[], Any]] = None
    reducer: Optional[Callable[[Any, Any], Any]] = field(default=None, repr=False)

    def __post_init__(self):
        if self.kind == MergeKind.CUSTOM and self.reducer is None:
            raise GraphValidationError(
                f"Field '{self.name}' is declared custom but has no reducer"
            )
        if self.default_factory is None and self.kind == MergeKind.APPEND:
            self.default_factory = list

    def default(self) -> Any:
        """Return a fresh initial value for this field."""
        if self.default_factory is None:
            return None
        return self.default_factory()

    def merge(self, current: Any, update: Any) -> Any:
        """Combine the current value with an update."""
        if self.kind == MergeKind.OVERWRITE:
            return update
        if self.kind == MergeKind.APPEND:
            if not isinstance(update, (list, tuple)):
                raise InvalidUpdateError(
                    f"Append field '{self.name}' expects a list update, "
                    f"got {type(update).__name__}"
                )
            return append(current if current is not None else [], update)
        return self.reducer(current, update)


class StateSchema:
    """Fixed set of named fields, each with a merge rule and a default.

    The schema is the only authority on which keys a state may hold. Updates
    naming any other key are rejected rather than silently dropped.
    """

    def __init__(self, fields: Optional[List[FieldSpec]] = None):
        """Initialize schema.

        Args:
            fields: Field declarations, in declaration order

        Raises:
            GraphValidationError: On duplicate or reserved field names
        """
        self._fields: Dict[str, FieldSpec] = {}
        for spec in fields or []:
            self._add(spec)

    def _add(self, spec: FieldSpec) -> None:
        if spec.name in (START, END):
            raise GraphValidationError(f"'{spec.name}' is a reserved name")
        if spec.name in self._fields:
            raise GraphValidationError(f"Duplicate state field: {spec.name}")
        self._fields[spec.name] = spec

    @classmethod
    def from_annotations(cls, annotated: type) -> "StateSchema":
        """Build a schema from a ``TypedDict`` or any annotated class.

        ``Annotated[list[str], append]`` (or ``operator.add``) marks an
        append field; any other callable in the metadata becomes a custom
        reducer. Plain annotations are overwrite fields. Class attribute
        values, where the class allows them, become overwrite defaults.
        """
        hints = get_type_hints(annotated, include_extras=True)
        fields = []
        for name, hint in hints.items():
            base, reducer = hint, None
            if get_origin(hint) is Annotated:
                base, *metadata = get_args(hint)
                reducer = next((m for m in metadata if callable(m)), None)

            if reducer is None or reducer is overwrite:
                kind = MergeKind.OVERWRITE
            elif reducer in _APPEND_REDUCERS:
                kind, reducer = MergeKind.APPEND, None
            else:
                kind = MergeKind.CUSTOM

            default_factory = None
            if name in vars(annotated):
                value = vars(annotated)[name]
                default_factory = lambda value=value: copy.copy(value)
            elif kind == MergeKind.CUSTOM and get_origin(base) is list:
                default_factory = list

            fields.append(
                FieldSpec(
                    name=name,
                    type_hint=base,
                    kind=kind,
                    default_factory=default_factory,
                    reducer=reducer,
                )
            )
        return cls(fields)

    def overwrite(self, name: str, type_hint: Any = Any, default: Any = None) -> "StateSchema":
        """Declare an overwrite field. Returns self for chaining."""
        self._add(
            FieldSpec(
                name=name,
                type_hint=type_hint,
                kind=MergeKind.OVERWRITE,
                default_factory=lambda: copy.copy(default),
            )
        )
        return self

    def append_field(self, name: str, type_hint: Any = Any) -> "StateSchema":
        """Declare an append-sequence field. Returns self for chaining."""
        self._add(FieldSpec(name=name, type_hint=type_hint, kind=MergeKind.APPEND))
        return self

    @property
    def field_names(self) -> List[str]:
        return list(self._fields)

    def get_field(self, name: str) -> FieldSpec:
        """Get a field declaration by name.

        Raises:
            UndeclaredFieldError: If the field does not exist
        """
        try:
            return self._fields[name]
        except KeyError:
            raise UndeclaredFieldError([name]) from None

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[FieldSpec]:
        return iter(self._fields.values())

    def __len__(self) -> int:
        return len(self._fields)

    def initial_state(self, partial: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Create a fresh state from declared defaults.

        Args:
            partial: Optional caller-supplied values, merged with the same
                rules a step update would use

        Returns:
            New state dictionary
        """
        state = {name: spec.default() for name, spec in self._fields.items()}
        if partial is not None:
            state = self.apply(state, partial)
        return state

    def validate_update(self, update: Any, node_id: Optional[str] = None) -> Mapping[str, Any]:
        """Check that an update is a mapping over declared fields.

        ``None`` is accepted and normalised to the empty update.

        Raises:
            InvalidUpdateError: If the update is not a mapping
            UndeclaredFieldError: If the update names unknown fields
        """
        if update is None:
            return {}
        if not isinstance(update, Mapping):
            where = f"Node '{node_id}'" if node_id else "Update"
            raise InvalidUpdateError(
                f"{where} must be a mapping of field names to values, "
                f"got {type(update).__name__}"
            )
        unknown = [key for key in update if key not in self._fields]
        if unknown:
            raise UndeclaredFieldError(unknown, node_id=node_id)
        return update

    def apply(
        self,
        state: Mapping[str, Any],
        update: Any,
        node_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Merge a partial update into a state.

        Neither ``state`` nor ``update`` is modified; a new dictionary is
        returned. Fields absent from the update keep their values.
        """
        update = self.validate_update(update, node_id=node_id)
        merged = dict(state)
        for name, value in update.items():
            merged[name] = self._fields[name].merge(merged.get(name), value)
        return merged

    def snapshot(self, state: Mapping[str, Any]) -> Dict[str, Any]:
        """Copy a state for handing to a step.

        List values are copied so that a step appending to its argument
        cannot reach the runtime's state.
        """
        return {
            key: list(value) if isinstance(value, list) else value
            for key, value in state.items()
        }

    def __repr__(self) -> str:
        fields = ", ".join(f"{spec.name}:{spec.kind.value}" for spec in self)
        return f"StateSchema({fields})"


def coerce_schema(schema: Any) -> StateSchema:
    """Accept a ``StateSchema`` or an annotated class."""
    if isinstance(schema, StateSchema):
        return schema
    if isinstance(schema, type):
        return StateSchema.from_annotations(schema)
    raise GraphValidationError(
        f"Expected a StateSchema or an annotated class, got {type(schema).__name__}"
    )
