"""
Currency Value Behaviour

Declares monetary attributes on a record class whose values are rounded to
the smallest unit of the record's currency when read, and which can be
rendered as formatted strings. Assignment stores the raw value unchanged, so
unrounded inputs stay available (e.g. for summing line items) until the
record is saved; a before_save callback then writes the rounded values back.

    acts_as_currency_value(Product, 'price', 'tax_amount', currency='currency_code')
    product.price                       # Decimal rounded to 0.01
    product.price_formatted()           # "1,234.50 €"
"""

from dataclasses import dataclass
from decimal import Decimal
from functools import partial
from typing import Any, Dict, Mapping, Optional
import logging

from . import currency
from .class_info import Behaviour, ClassInfo, acts_as, class_info, declaration_args
from .currency import CurrencyDescriptor, round_to_unit, to_decimal
from .records import BEFORE_SAVE, register_callback


logger = logging.getLogger("invoicing.currency_value")

FORMATTED_SUFFIX = "_formatted"


@dataclass(frozen=True)
class GovernedAttribute:
    """Entry of the governed attribute table"""
    name: str
    formatted_name: str


class CurrencyValueClassInfo(ClassInfo):
    """Snapshot of an acts_as_currency_value declaration"""

    @property
    def governed_attributes(self) -> Dict[str, GovernedAttribute]:
        return {attr: GovernedAttribute(attr, attr + FORMATTED_SUFFIX) for attr in self.all_args}

    def currency_of(self, obj: Any) -> Optional[str]:
        """
        Currency code of ``obj``: its (renamed) currency attribute if it has
        one, else the ``currency_code`` option; None if neither is available.
        """
        attr = self.method_name('currency')
        if obj.has_attribute(attr) or hasattr(type(obj), attr):
            return self.get(obj, 'currency')
        return self.all_options.get('currency_code')

    def currency_info_for(self, obj: Any) -> Optional[CurrencyDescriptor]:
        return currency.currency_info(self.currency_of(obj))

    def conversion_input(self, obj: Any, attr: str) -> Optional[Decimal]:
        """
        Raw Decimal value of ``attr`` before rounding. A method named by the
        ``conversion_input`` option gets the first say; otherwise the stored
        value is parsed.
        """
        value = None
        callback = self.all_options.get('conversion_input')
        if callback:
            value = to_decimal(getattr(obj, callback)(attr))
        if value is None:
            value = to_decimal(obj.read_attribute(attr))
        return value

    def read(self, obj: Any, attr: str) -> Any:
        """Rounded value of ``attr``; the raw value if obj has no currency"""
        descriptor = obj.currency_info()
        if descriptor is None:
            return obj.read_attribute(attr)
        value = self.conversion_input(obj, attr)
        return None if value is None else round_to_unit(value, descriptor.rounding_unit)

    def format_value(self, obj: Any, value: Any, options: Optional[Mapping[str, Any]] = None) -> str:
        """
        Format ``value`` in the currency of ``obj``. Caller options are
        merged over this snapshot's options; a record method named by
        ``value_for_formatting`` may transform the value first.
        """
        options = {**self.all_options, **(options or {})}
        intercept = options.get('value_for_formatting')
        if intercept and hasattr(obj, intercept):
            value = getattr(obj, intercept)(value, options)
        descriptor = obj.currency_info() or self.currency_info_for(obj)
        return currency.format_value(descriptor, value, options)

    def format_attribute(self, obj: Any, attr: str,
                         options: Optional[Mapping[str, Any]] = None, **kwargs) -> str:
        # Formats the value as assigned, not the rounded one
        value = to_decimal(obj.read_attribute_before_type_cast(attr))
        if value is None:
            return ''
        return obj.format_currency_value(value, {**(options or {}), **kwargs, 'method_name': attr})


class CurrencyAttribute:
    """Descriptor reading a governed attribute rounded and writing it raw"""

    def __init__(self, name: str):
        self.name = name

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self
        return currency_value_class_info(obj).read(obj, self.name)

    def __set__(self, obj, value) -> None:
        obj.write_attribute(self.name, value)


class FormattedAccessor:
    """Descriptor exposing ``<attr>_formatted(**options)``"""

    def __init__(self, name: str):
        self.name = name

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self
        return partial(currency_value_class_info(obj).format_attribute, obj, self.name)


class CurrencyValue:
    """Members installed on classes declared with acts_as_currency_value"""

    def currency_info(self) -> Optional[CurrencyDescriptor]:
        """
        Currency descriptor used to round and format this record's values.
        Override to look the currency up elsewhere; returning None disables
        rounding.
        """
        return currency_value_class_info(self).currency_info_for(self)

    def format_currency_value(self, value: Any, options: Optional[Mapping[str, Any]] = None, **kwargs) -> str:
        """Format a numeric value in the currency of this record"""
        return currency_value_class_info(self).format_value(self, value, {**(options or {}), **kwargs})

    def write_back_currency_values(self) -> None:
        """before_save callback: store the rounded value of every governed attribute"""
        info = currency_value_class_info(self)
        for attr in info.all_args:
            self.write_attribute(attr, getattr(self, attr))
        logger.debug(f"Wrote back rounded values of {list(info.all_args)} on {type(self).__name__}")


def _setup(model_class: type) -> None:
    register_callback(model_class, BEFORE_SAVE, 'write_back_currency_values')


def _declare(info: ClassInfo) -> None:
    for attr in info.new_args:
        setattr(info.model_class, attr, CurrencyAttribute(attr))
        setattr(info.model_class, attr + FORMATTED_SUFFIX, FormattedAccessor(attr))


CURRENCY_VALUE = Behaviour(
    name="currency_value",
    mixin=CurrencyValue,
    info_class=CurrencyValueClassInfo,
    setup=_setup,
    declare=_declare,
)


def currency_value_class_info(record: Any) -> Optional[CurrencyValueClassInfo]:
    """Current currency value snapshot for a record or record class"""
    model_class = record if isinstance(record, type) else type(record)
    return class_info(CURRENCY_VALUE, model_class)


def acts_as_currency_value(model_class: type, *args, **options) -> type:
    """
    Declare currency value attributes on ``model_class``.

    Args:
        model_class: Record class
        *args: Attribute names (a trailing mapping is taken as options)
        **options: ``currency`` (name of the currency code attribute),
            ``currency_code`` (fixed code when there is no such attribute),
            ``conversion_input``, ``value_for_formatting``

    Returns:
        model_class
    """
    acts_as(CURRENCY_VALUE, model_class, declaration_args(args, options))
    return model_class
