"""
Ledger Item Behaviour

Declares a record class as a ledger item: a financial document such as an
invoice, credit note or payment exchanged between a sender and a recipient.
Totals are aggregated from the document's line items before validation, and
whether the document is a debit or a credit depends on whose point of view it
is looked at from.

Every attribute the behaviour uses can be renamed through options:

    acts_as_ledger_item(Bill, subtype='invoice', total_amount='gross_amount')

The total and tax amounts are declared as currency values automatically, so
``bill.gross_amount_formatted(debit='negative', self_id=42)`` shows the
amount negated when the bill is a debit for party 42.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping, Optional
import logging

from .class_info import Behaviour, ClassInfo, acts_as, class_info, declaration_args
from .currency_value import FORMATTED_SUFFIX, acts_as_currency_value
from .line_item import line_item_class_info
from .logging_config import log_action
from .records import BEFORE_VALIDATION, register_callback


logger = logging.getLogger("invoicing.ledger_item")


class LedgerItemSubtype(Enum):
    """Kinds of ledger item with built-in debit/credit policies"""
    INVOICE = "invoice"
    CREDIT_NOTE = "credit_note"
    PAYMENT = "payment"


# Whether a document counts as a debit for the party that sent it
_DEBIT_WHEN_SENT_BY_SELF: Dict[str, bool] = {
    LedgerItemSubtype.INVOICE.value: True,
    LedgerItemSubtype.CREDIT_NOTE.value: True,
    LedgerItemSubtype.PAYMENT.value: False,
}


class AmbiguousPartyError(ValueError):
    """The viewing party is neither sender nor recipient of a ledger item"""
    pass


class ConflictingPartyError(ValueError):
    """The viewing party is both sender and recipient of a ledger item"""
    pass


class LedgerItemClassInfo(ClassInfo):
    """Snapshot of an acts_as_ledger_item declaration"""

    @property
    def subtype(self) -> Optional[str]:
        subtype = self.all_options.get('subtype')
        if isinstance(subtype, Enum):
            return subtype.value
        return None if subtype is None else str(subtype)

    def method_name(self, name: str) -> str:
        # Accessors generated by the currency value behaviour follow the
        # renaming of their base attribute: rename first, then add the suffix
        name = str(name)
        if name.endswith(FORMATTED_SUFFIX):
            return super().method_name(name[:-len(FORMATTED_SUFFIX)]) + FORMATTED_SUFFIX
        return super().method_name(name)


def _is_negative(option: Any) -> bool:
    return option is not None and str(getattr(option, 'value', option)) == "negative"


def _marks_self(details: Any) -> bool:
    # Details that are not a mapping carry no is_self marker
    return isinstance(details, Mapping) and bool(details.get('is_self'))


class LedgerItem:
    """Members installed on classes declared with acts_as_ledger_item"""

    def calculate_total_amount(self) -> Optional[Decimal]:
        """
        Sum net and tax amounts over all line items; assign the sum of both
        to total_amount and the tax sum to tax_amount.

        Runs as a before_validation callback. A payment without line items
        keeps the amounts it was given.

        Returns:
            Net total, or None if the amounts were left untouched
        """
        info = ledger_item_class_info(self)
        line_items = list(info.get(self, 'line_items') or [])
        if type(self).is_payment() and not line_items:
            return None

        net_total = tax_total = Decimal('0')

        for line in line_items:
            line_info = line_item_class_info(line)
            if line_info is None:
                raise TypeError(f"{type(line).__name__} is not declared as a line item")

            # The line item's currency value accessors find the currency
            # through this back-reference
            line_info.set(line, 'ledger_item', self)
            line.valid()

            net_amount = line_info.get(line, 'net_amount')
            tax_amount = line_info.get(line, 'tax_amount')
            if net_amount is not None:
                net_total += net_amount
            if tax_amount is not None:
                tax_total += tax_amount

        info.set(self, 'total_amount', net_total + tax_total)
        info.set(self, 'tax_amount', tax_total)

        log_action(
            logger, "debug", f"Calculated totals of {type(self).__name__}",
            record_type=type(self).__name__, behaviour="ledger_item", action="calculate_total_amount",
            extra={"line_items": len(line_items), "net_total": net_total, "tax_total": tax_total}
        )
        return net_total

    @property
    def net_amount(self) -> Optional[Decimal]:
        """total_amount minus tax_amount, or None if either is missing"""
        info = ledger_item_class_info(self)
        total_amount = info.get(self, 'total_amount')
        tax_amount = info.get(self, 'tax_amount')
        if total_amount is None or tax_amount is None:
            return None
        return total_amount - tax_amount

    def sent_by(self, user_id: Any) -> bool:
        """
        True if this document was sent by ``user_id``. None means "ourselves",
        which also matches when the sender details carry ``is_self``.
        """
        info = ledger_item_class_info(self)
        if info.get(self, 'sender_id') == user_id:
            return True
        return user_id is None and _marks_self(info.get(self, 'sender_details'))

    def received_by(self, user_id: Any) -> bool:
        """Counterpart of ``sent_by`` for the recipient"""
        info = ledger_item_class_info(self)
        if info.get(self, 'recipient_id') == user_id:
            return True
        return user_id is None and _marks_self(info.get(self, 'recipient_details'))

    def is_debit(self, self_id: Any) -> bool:
        """
        Whether this document is a debit on the account of ``self_id``.

        Raises:
            AmbiguousPartyError: self_id is neither sender nor recipient
            ConflictingPartyError: self_id is both sender and recipient
            NotImplementedError: the subtype has no debit/credit policy
        """
        sender_is_self = self.sent_by(self_id)
        recipient_is_self = self.received_by(self_id)
        if not sender_is_self and not recipient_is_self:
            raise AmbiguousPartyError(f"self_id {self_id!r} is neither sender nor recipient")
        if sender_is_self and recipient_is_self:
            raise ConflictingPartyError(f"self_id {self_id!r} is both sender and recipient")

        debit_when_sent = type(self).debit_when_sent_by_self()
        if debit_when_sent is None:
            raise NotImplementedError(
                f"{type(self).__name__} (subtype {ledger_item_class_info(self).subtype!r}) "
                f"must override debit_when_sent_by_self"
            )
        return sender_is_self if debit_when_sent else recipient_is_self

    def value_for_formatting(self, value: Any, options: Optional[Mapping[str, Any]] = None) -> Any:
        """
        Sign used when displaying ``value``: with ``debit='negative'`` debits
        from the point of view of ``self_id`` are negated, with
        ``credit='negative'`` credits are. Stored amounts are not affected.
        """
        options = options or {}
        self_id = options.get('self_id')
        if _is_negative(options.get('debit')) and self.is_debit(self_id):
            value = -value
        if _is_negative(options.get('credit')) and not self.is_debit(self_id):
            value = -value
        return value

    @classmethod
    def debit_when_sent_by_self(cls) -> Optional[bool]:
        """
        True if this kind of document is a debit for its sender and a credit
        for its recipient, False if the other way round. Invoices and credit
        notes are debits for the sender, payments are credits. Classes with
        other subtypes must override this.
        """
        return _DEBIT_WHEN_SENT_BY_SELF.get(ledger_item_class_info(cls).subtype)

    @classmethod
    def is_invoice(cls) -> bool:
        return ledger_item_class_info(cls).subtype == LedgerItemSubtype.INVOICE.value

    @classmethod
    def is_credit_note(cls) -> bool:
        return ledger_item_class_info(cls).subtype == LedgerItemSubtype.CREDIT_NOTE.value

    @classmethod
    def is_payment(cls) -> bool:
        return ledger_item_class_info(cls).subtype == LedgerItemSubtype.PAYMENT.value


def _setup(model_class: type) -> None:
    register_callback(model_class, BEFORE_VALIDATION, 'calculate_total_amount')


LEDGER_ITEM = Behaviour(
    name="ledger_item",
    mixin=LedgerItem,
    info_class=LedgerItemClassInfo,
    setup=_setup,
)


def ledger_item_class_info(record: Any) -> Optional[LedgerItemClassInfo]:
    """Current ledger item snapshot for a record or record class"""
    model_class = record if isinstance(record, type) else type(record)
    return class_info(LEDGER_ITEM, model_class)


def acts_as_ledger_item(model_class: type, *args, **options) -> type:
    """
    Declare ``model_class`` as a ledger item.

    Args:
        model_class: Record class
        *args: Optional trailing mapping of options
        **options: ``subtype`` plus renames of ``total_amount``,
            ``tax_amount``, ``currency``, ``sender_id``, ``sender_details``,
            ``recipient_id``, ``recipient_details`` and ``line_items``

    Returns:
        model_class
    """
    info = acts_as(LEDGER_ITEM, model_class, declaration_args(args, options))
    if info.previous_info is None:
        acts_as_currency_value(
            model_class, info.method_name('total_amount'), info.method_name('tax_amount'),
            currency=info.method_name('currency'), value_for_formatting='value_for_formatting'
        )
    return model_class


def acts_as_invoice(model_class: type, **options) -> type:
    return acts_as_ledger_item(model_class, **{**options, 'subtype': LedgerItemSubtype.INVOICE.value})


def acts_as_credit_note(model_class: type, **options) -> type:
    return acts_as_ledger_item(model_class, **{**options, 'subtype': LedgerItemSubtype.CREDIT_NOTE.value})


def acts_as_payment(model_class: type, **options) -> type:
    return acts_as_ledger_item(model_class, **{**options, 'subtype': LedgerItemSubtype.PAYMENT.value})
