"""
Line Item Behaviour

Declares a record class as a line item of a ledger item. The net and tax
amounts are currency values; their currency is that of the ledger item the
line belongs to, reached through the ``ledger_item`` back-reference.
"""

from typing import Any, Optional

from .class_info import Behaviour, ClassInfo, acts_as, class_info, declaration_args
from .currency import CurrencyDescriptor
from .currency_value import acts_as_currency_value, currency_value_class_info


class LineItem:
    """Members installed on classes declared with acts_as_line_item"""

    def currency_info(self) -> Optional[CurrencyDescriptor]:
        """Currency of the owning ledger item; the line's own if it has none yet"""
        ledger_item = line_item_class_info(self).get(self, 'ledger_item')
        if ledger_item is not None and hasattr(ledger_item, 'currency_info'):
            return ledger_item.currency_info()
        return currency_value_class_info(self).currency_info_for(self)


LINE_ITEM = Behaviour(name="line_item", mixin=LineItem)


def line_item_class_info(record: Any) -> Optional[ClassInfo]:
    """Current line item snapshot for a record or record class"""
    model_class = record if isinstance(record, type) else type(record)
    return class_info(LINE_ITEM, model_class)


def acts_as_line_item(model_class: type, *args, **options) -> type:
    """
    Declare ``model_class`` as a line item.

    Options rename ``net_amount``, ``tax_amount`` and ``ledger_item``.
    """
    info = acts_as(LINE_ITEM, model_class, declaration_args(args, options))
    if info.previous_info is None:
        acts_as_currency_value(model_class, info.method_name('net_amount'), info.method_name('tax_amount'))
    return model_class
