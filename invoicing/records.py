"""
Record Module

Generic record abstraction the behaviours are built on: a fixed set of
columns with attribute get/set, type casting of decimal columns, and ordered
before_validation / before_save lifecycle callbacks. Persistence itself is
delegated to a StorageInterface.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, ClassVar, Dict, List, Optional, Tuple, Union
import logging
import uuid

from .currency import to_decimal
from .storage import StorageInterface


logger = logging.getLogger("invoicing.records")

BEFORE_VALIDATION = "before_validation"
BEFORE_SAVE = "before_save"
LIFECYCLE_EVENTS = (BEFORE_VALIDATION, BEFORE_SAVE)


@dataclass(frozen=True)
class LifecycleCallback:
    """
    A callback registered on a record class.
    ``callback`` is either the name of a record method (so subclass overrides
    are honoured) or a callable taking the record.
    """
    callback: Union[str, Callable[[Any], Any]]
    condition: Optional[Callable[[Any], bool]] = None

    def run(self, record: 'Record') -> Any:
        if self.condition is not None and not self.condition(record):
            return None
        if isinstance(self.callback, str):
            return getattr(record, self.callback)()
        return self.callback(record)


# Callbacks declared directly on each class, in registration order
_callbacks: Dict[type, Dict[str, List[LifecycleCallback]]] = {}


def register_callback(model_class: type, event: str,
                      callback: Union[str, Callable[[Any], Any]],
                      condition: Optional[Callable[[Any], bool]] = None) -> None:
    """Append a lifecycle callback to ``model_class``"""
    if event not in LIFECYCLE_EVENTS:
        raise ValueError(f"Unknown lifecycle event: {event}")
    _callbacks.setdefault(model_class, {}).setdefault(event, []).append(
        LifecycleCallback(callback, condition)
    )


def callbacks_for(model_class: type, event: str) -> List[LifecycleCallback]:
    """Callbacks for ``event`` on ``model_class``, ancestors' callbacks first"""
    result: List[LifecycleCallback] = []
    for klass in reversed(model_class.__mro__):
        result.extend(_callbacks.get(klass, {}).get(event, ()))
    return result


class Record:
    """
    Base class for records.

    Subclasses declare ``table_name`` and ``columns``; columns listed in
    ``decimal_columns`` are cast to Decimal when read. Assigning a column
    stores the raw value, which stays available through
    ``read_attribute_before_type_cast``.
    """
    table_name: ClassVar[str] = ""
    columns: ClassVar[Tuple[str, ...]] = ()
    decimal_columns: ClassVar[Tuple[str, ...]] = ()

    def __init__(self, **attributes):
        object.__setattr__(self, '_attributes', {name: None for name in ('id',) + tuple(self.columns)})
        self.errors: List[str] = []
        for name, value in attributes.items():
            setattr(self, name, value)

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails, i.e. for plain columns
        attributes = self.__dict__.get('_attributes')
        if attributes is not None and name in attributes:
            return self.read_attribute(name)
        raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")

    def __setattr__(self, name: str, value: Any) -> None:
        # Class-level accessors (e.g. behaviour descriptors) take precedence
        if name in self._attributes and not hasattr(type(self), name):
            self._attributes[name] = value
        else:
            object.__setattr__(self, name, value)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self._attributes.get('id')!r}>"

    @property
    def attribute_names(self) -> Tuple[str, ...]:
        return tuple(self._attributes)

    def has_attribute(self, name: str) -> bool:
        return name in self._attributes

    def read_attribute(self, name: str) -> Any:
        """Type-cast value of a column; unparseable decimals read as None"""
        value = self._attributes.get(name)
        if value is not None and name in self.decimal_columns and not isinstance(value, Decimal):
            return to_decimal(value)
        return value

    def read_attribute_before_type_cast(self, name: str) -> Any:
        return self._attributes.get(name)

    def write_attribute(self, name: str, value: Any) -> None:
        if name not in self._attributes:
            raise AttributeError(f"'{type(self).__name__}' has no column '{name}'")
        self._attributes[name] = value

    def to_dict(self) -> Dict[str, Any]:
        """Type-cast column values, for storage"""
        return {name: self.read_attribute(name) for name in self._attributes}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Record':
        return cls(**data)

    # Lifecycle

    def run_callbacks(self, event: str) -> None:
        for callback in callbacks_for(type(self), event):
            callback.run(self)

    def validate(self) -> None:
        """Override to append messages to ``self.errors``"""
        pass

    def valid(self) -> bool:
        """Run before_validation callbacks, then ``validate``"""
        self.errors = []
        self.run_callbacks(BEFORE_VALIDATION)
        self.validate()
        return not self.errors

    def save(self, storage: Optional[StorageInterface] = None) -> bool:
        """
        Validate, run before_save callbacks and persist.

        Args:
            storage: Record store to write to; if None only the callbacks run

        Returns:
            False if validation failed, True otherwise
        """
        if not self.valid():
            logger.info(f"{type(self).__name__} not saved: {'; '.join(self.errors)}")
            return False

        self.run_callbacks(BEFORE_SAVE)

        if storage is not None:
            if self._attributes['id'] is None:
                self._attributes['id'] = str(uuid.uuid4())
            storage.save(self.table_name or type(self).__name__.lower(), self._attributes['id'], self.to_dict())
        return True
