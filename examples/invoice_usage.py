#!/usr/bin/env python3
"""
Example: Declaring invoices, credit notes and payments

This example shows how record types declare the ledger item and line item
behaviours, how totals are calculated on save and how amounts are formatted
from the point of view of either party.
"""

import os
import sys

# Add the invoicing package to the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from invoicing.config import get_config
from invoicing.logging_config import setup_logging
from invoicing.records import Record
from invoicing.storage import InMemoryStorage
from invoicing.line_item import acts_as_line_item
from invoicing.ledger_item import acts_as_invoice, acts_as_credit_note, acts_as_payment


class InvoiceLine(Record):
    table_name = "invoice_lines"
    columns = ('description', 'net_amount', 'tax_amount')
    decimal_columns = ('net_amount', 'tax_amount')


acts_as_line_item(InvoiceLine)


class LedgerDocument(Record):
    columns = ('sender_id', 'recipient_id', 'sender_details', 'recipient_details',
               'currency', 'total_amount', 'tax_amount')
    decimal_columns = ('total_amount', 'tax_amount')


class Invoice(LedgerDocument):
    table_name = "invoices"


class CreditNote(LedgerDocument):
    table_name = "credit_notes"


class Payment(LedgerDocument):
    table_name = "payments"


acts_as_invoice(Invoice)
acts_as_credit_note(CreditNote)
acts_as_payment(Payment)


SUPPLIER = "acme"
CUSTOMER = "globex"


def main():
    print("🧾 Invoicing Behaviours - Ledger Example")
    print("=" * 60)

    # 1. Configuration
    print("\n1. 🔧 Configuration Setup")
    config = get_config()
    print(f"   Default currency: {config.default_currency_code}")
    print(f"   Log Level: {config.log_level}")
    setup_logging()

    storage = InMemoryStorage()

    # 2. Invoice with line items
    print("\n2. 📄 Issuing an invoice")
    invoice = Invoice(
        sender_id=SUPPLIER, recipient_id=CUSTOMER, currency="EUR",
        sender_details={"name": "Acme Ltd", "is_self": True},
        recipient_details={"name": "Globex Corp"},
    )
    invoice.line_items = [
        InvoiceLine(description="Consulting", net_amount="1200", tax_amount="228"),
        InvoiceLine(description="Travel", net_amount="85.505", tax_amount="16.245"),
    ]
    invoice.save(storage)
    print(f"   Net: {invoice.net_amount}")
    print(f"   Total: {invoice.total_amount_formatted()}")

    # 3. Credit note and payment
    print("\n3. 💳 Credit note and payment")
    credit_note = CreditNote(sender_id=SUPPLIER, recipient_id=CUSTOMER, currency="EUR")
    credit_note.line_items = [InvoiceLine(description="Discount", net_amount="100", tax_amount="19")]
    credit_note.save(storage)

    payment = Payment(sender_id=CUSTOMER, recipient_id=SUPPLIER, currency="EUR", total_amount="1000")
    payment.line_items = []
    payment.save(storage)

    # 4. Statement from each party's point of view
    for party in (SUPPLIER, CUSTOMER):
        print(f"\n4. 📊 Statement for {party}")
        for document in (invoice, credit_note, payment):
            side = "debit" if document.is_debit(party) else "credit"
            amount = document.total_amount_formatted(debit='negative', self_id=party, negative='brackets')
            print(f"   {type(document).__name__:<12} {side:<7} {amount:>16}")

    print(f"\n✅ Stored {storage.count('invoices')} invoice(s), "
          f"{storage.count('credit_notes')} credit note(s), {storage.count('payments')} payment(s)")


if __name__ == "__main__":
    main()
