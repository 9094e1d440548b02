"""
Behaviour Configuration Chain

Each ``acts_as_*`` declaration on a record class produces an immutable
ClassInfo snapshot. Snapshots of the same behaviour are linked: a new
snapshot points at the one left by the previous declaration on the class or
its nearest ancestor, and merges its own arguments and options on top. The
current snapshot per (behaviour, class) lives in a process-wide registry that
is written at class-declaration time and only read afterwards.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Type
import logging

from .logging_config import log_action


logger = logging.getLogger("invoicing.class_info")


def _flatten(args: Iterable[Any]) -> List[Any]:
    result = []
    for arg in args:
        if isinstance(arg, (list, tuple)):
            result.extend(_flatten(arg))
        else:
            result.append(arg)
    return result


def _unique(items: Iterable[Any]) -> List[Any]:
    seen: List[Any] = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen


class ClassInfo:
    """
    Configuration snapshot of one behaviour declaration on one class.

    Attributes:
        model_class: Class the declaration was made on
        previous_info: Snapshot of the previous declaration of the same
            behaviour on this class or an ancestor; None for the first
        current_args: Attribute names passed to this declaration
        all_args: current_args merged after previous_info.all_args
        new_args: all_args minus previous_info.all_args
        current_options: Options passed to this declaration
        all_options: option_defaults(), overridden by previous_info's options,
            overridden by current_options
    """

    def __init__(self, model_class: type, previous_info: Optional['ClassInfo'], args: Iterable[Any]):
        args = list(args)
        options = args.pop() if args and isinstance(args[-1], Mapping) else {}

        self.model_class = model_class
        self.previous_info = previous_info

        self.current_options = MappingProxyType({str(key): value for key, value in options.items()})
        all_options = dict(self.option_defaults() if previous_info is None else previous_info.all_options)
        all_options.update(self.current_options)
        self.all_options = MappingProxyType(all_options)

        current_args = _unique(str(arg) for arg in _flatten(args))
        self.current_args: Tuple[str, ...] = tuple(current_args)
        if previous_info is None:
            self.all_args: Tuple[str, ...] = self.current_args
            self.new_args: Tuple[str, ...] = self.current_args
        else:
            self.all_args = tuple(_unique(list(previous_info.all_args) + current_args))
            self.new_args = tuple(arg for arg in self.all_args if arg not in previous_info.all_args)

        object.__setattr__(self, '_frozen', True)

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, '_frozen', False):
            raise AttributeError(f"{type(self).__name__} is immutable")
        object.__setattr__(self, name, value)

    def __repr__(self) -> str:
        return (f"<{type(self).__name__} {self.model_class.__name__} "
                f"args={list(self.all_args)} options={dict(self.all_options)}>")

    def option_defaults(self) -> Dict[str, Any]:
        """Override to return default option values"""
        return {}

    def method_name(self, name: str) -> str:
        """
        The configured replacement for ``name`` if there is an option with
        that key, otherwise ``name`` itself. This is how behaviours let
        callers rename the attributes and methods they use.
        """
        renamed = self.all_options.get(str(name))
        return str(renamed) if renamed else str(name)

    def get(self, obj: Any, name: str) -> Any:
        """Value of the (renamed) attribute on ``obj``; None if obj is None or lacks it"""
        if obj is None:
            return None
        return getattr(obj, self.method_name(name), None)

    def set(self, obj: Any, name: str, value: Any) -> None:
        """Assign the (renamed) attribute on ``obj``, unless obj is None"""
        if obj is not None:
            setattr(obj, self.method_name(name), value)


@dataclass(frozen=True)
class Behaviour:
    """
    A behaviour family that can be declared on record classes.

    ``mixin`` members are installed on a class the first time the behaviour
    is declared on it or any ancestor, followed by ``setup``. ``declare``
    runs for every declaration with the new snapshot.
    """
    name: str
    mixin: type
    info_class: Type[ClassInfo] = ClassInfo
    setup: Optional[Callable[[type], None]] = None
    declare: Optional[Callable[[ClassInfo], None]] = None


_registry: Dict[Tuple[str, type], ClassInfo] = {}


def class_info(behaviour: Behaviour, model_class: type) -> Optional[ClassInfo]:
    """
    Current snapshot of ``behaviour`` for ``model_class``. A class that never
    declared the behaviour itself resolves to its nearest ancestor's
    snapshot; that lookup is remembered for the class.
    """
    key = (behaviour.name, model_class)
    info = _registry.get(key)
    if info is None:
        for ancestor in model_class.__mro__[1:]:
            info = _registry.get((behaviour.name, ancestor))
            if info is not None:
                _registry[key] = info
                break
    return info


def include(model_class: type, mixin: type) -> None:
    """Install mixin members that ``model_class`` does not define itself"""
    for name, member in vars(mixin).items():
        if name.startswith('__') or name in model_class.__dict__:
            continue
        setattr(model_class, name, member)


def declaration_args(args: Iterable[Any], options: Mapping[str, Any]) -> List[Any]:
    """Fold keyword options into the trailing options mapping of ``args``"""
    args = list(args)
    if options:
        if args and isinstance(args[-1], Mapping):
            args[-1] = {**args[-1], **options}
        else:
            args.append(dict(options))
    return args


def acts_as(behaviour: Behaviour, model_class: type, args: Iterable[Any]) -> ClassInfo:
    """
    Declare ``behaviour`` on ``model_class``.

    Args:
        behaviour: Behaviour family being declared
        model_class: Record class
        args: Attribute names, optionally followed by a mapping of options

    Returns:
        The new snapshot, now current for ``model_class``
    """
    previous_info = class_info(behaviour, model_class)
    if previous_info is None:
        include(model_class, behaviour.mixin)
        if behaviour.setup is not None:
            behaviour.setup(model_class)

    info = behaviour.info_class(model_class, previous_info, args)
    _registry[(behaviour.name, model_class)] = info

    if behaviour.declare is not None:
        behaviour.declare(info)

    log_action(
        logger, "debug", f"Declared {behaviour.name} on {model_class.__name__}",
        record_type=model_class.__name__, behaviour=behaviour.name, action="acts_as",
        extra={"new_args": list(info.new_args), "options": sorted(info.current_options)}
    )
    return info
