"""
Test suite for currency_value module

Tests rounding on read, raw writes, formatted output, conversion and
formatting hooks, and the save-time write-back of rounded values.
"""

import pytest
from decimal import Decimal

from invoicing.records import Record, BEFORE_SAVE, callbacks_for
from invoicing.storage import InMemoryStorage
from invoicing.currency import CURRENCIES
from invoicing.currency_value import (
    CurrencyAttribute, CurrencyValueClassInfo, GovernedAttribute,
    acts_as_currency_value, currency_value_class_info
)


class CurrencyValueRecord(Record):
    table_name = "currency_value_records"
    columns = ('currency_code', 'amount', 'tax_amount')
    decimal_columns = ('amount', 'tax_amount')


acts_as_currency_value(CurrencyValueRecord, 'amount', 'tax_amount', currency='currency_code')


class NoCurrencyColumnRecord(Record):
    table_name = "no_currency_column_records"
    columns = ('amount',)
    decimal_columns = ('amount',)


acts_as_currency_value(NoCurrencyColumnRecord, 'amount')


class FixedCurrencyRecord(Record):
    columns = ('amount',)


acts_as_currency_value(FixedCurrencyRecord, 'amount', currency_code='JPY')


class UnroundedRecord(Record):
    columns = ('amount',)
    decimal_columns = ('amount',)

    def currency_info(self):
        return None


acts_as_currency_value(UnroundedRecord, 'amount')


class ConvertedRecord(Record):
    columns = ('amount', 'fee')

    def doubled(self, attr):
        if attr == 'fee':
            return None
        return Decimal(str(self.read_attribute(attr))) * 2

    def negated(self, value, options):
        return -value


acts_as_currency_value(ConvertedRecord, 'amount', 'fee',
                       conversion_input='doubled', value_for_formatting='negated')


class TestDeclaration:
    """Test declaring currency value attributes"""

    def test_snapshot(self):
        """Test the snapshot and governed attribute table"""
        info = currency_value_class_info(CurrencyValueRecord)
        assert isinstance(info, CurrencyValueClassInfo)
        assert info.all_args == ('amount', 'tax_amount')
        assert info.governed_attributes['amount'] == GovernedAttribute('amount', 'amount_formatted')

    def test_accessors_installed(self):
        """Test descriptors are installed on the class"""
        assert isinstance(CurrencyValueRecord.amount, CurrencyAttribute)
        assert hasattr(CurrencyValueRecord, 'amount_formatted')
        assert hasattr(CurrencyValueRecord, 'tax_amount_formatted')

    def test_instance_lookup(self):
        """Test the snapshot can be looked up from an instance"""
        record = CurrencyValueRecord()
        assert currency_value_class_info(record) is currency_value_class_info(CurrencyValueRecord)


class TestRoundingOnRead:
    """Test governed attributes are rounded when read"""

    def test_rounds_to_currency_unit(self):
        """Test rounding to cents"""
        record = CurrencyValueRecord(currency_code='EUR', amount='1234.567', tax_amount=Decimal('0.02'))
        assert record.amount == Decimal('1234.57')
        assert record.tax_amount == Decimal('0.02')

    def test_rounds_by_currency_column(self):
        """Test the currency column selects the rounding unit"""
        assert CurrencyValueRecord(currency_code='JPY', amount='1234.5').amount == Decimal('1235')
        assert CurrencyValueRecord(currency_code='CHF', amount='10.03').amount == Decimal('10.05')

    def test_unknown_currency_uses_default(self):
        """Test an unknown or missing code rounds like EUR"""
        assert CurrencyValueRecord(currency_code='XYZ', amount='1.005').amount == Decimal('1.01')
        assert CurrencyValueRecord(amount='1.005').amount == Decimal('1.01')

    def test_currency_code_option(self):
        """Test the currency_code option applies without a currency column"""
        assert FixedCurrencyRecord(amount='10.5').amount == Decimal('11')

    def test_no_currency_column_defaults_to_eur(self):
        """Test records without currency information use the default"""
        record = NoCurrencyColumnRecord(amount=95.15)
        assert record.amount == Decimal('95.15')
        assert record.currency_info() == CURRENCIES['EUR']

    def test_missing_value(self):
        """Test None stays None"""
        assert CurrencyValueRecord(currency_code='EUR').amount is None

    def test_no_currency_descriptor_returns_raw(self):
        """Test rounding is skipped when the record has no currency"""
        record = UnroundedRecord(amount='1.23456')
        assert record.amount == Decimal('1.23456')

    def test_write_keeps_raw_value(self):
        """Test assignment stores the unrounded value"""
        record = CurrencyValueRecord(currency_code='EUR')
        record.amount = '10.005'
        assert record.read_attribute_before_type_cast('amount') == '10.005'
        assert record.read_attribute('amount') == Decimal('10.005')
        assert record.amount == Decimal('10.01')

    def test_conversion_input_hook(self):
        """Test a conversion_input callback supplies the raw value"""
        record = ConvertedRecord(amount='1.004', fee='2.5')
        assert record.amount == Decimal('2.01')
        # callback returning None falls back to the stored value
        assert record.fee == Decimal('2.50')

    def test_large_amounts(self):
        """Test amounts beyond 28 significant digits are rounded on read"""
        assert CurrencyValueRecord(currency_code='EUR', amount=Decimal('1e26')).amount == Decimal('1e26')
        record = CurrencyValueRecord(currency_code='EUR', amount='123456789012345678901234567.895')
        assert record.amount == Decimal('123456789012345678901234567.90')

    def test_rounding_is_idempotent_through_accessor(self):
        """Test assigning a read value back reads the same"""
        record = CurrencyValueRecord(currency_code='EUR', amount='7.125')
        rounded = record.amount
        record.amount = rounded
        assert record.amount == rounded


class TestFormattedOutput:
    """Test <attr>_formatted accessors"""

    def test_formatted(self):
        """Test formatting in the record's currency"""
        record = CurrencyValueRecord(currency_code='EUR', amount=98765432, tax_amount=0.02)
        assert record.amount_formatted() == "98,765,432.00 €"
        assert record.tax_amount_formatted() == "0.02 €"

    def test_formatted_other_currency(self):
        """Test formatting follows the currency column"""
        record = CurrencyValueRecord(currency_code='USD', amount='1234.5')
        assert record.amount_formatted() == "$1,234.50"

    def test_formatted_negative_options(self):
        """Test caller options reach the formatter"""
        record = CurrencyValueRecord(currency_code='EUR', amount='-1234.5')
        assert record.amount_formatted(negative='brackets') == "(1,234.50 €)"
        assert record.amount_formatted({'negative': 'hyphen'}) == "-1,234.50 €"
        assert record.amount_formatted() == "−1,234.50 €"

    def test_formatted_uses_value_before_rounding(self):
        """Test the raw input is formatted, not the rounded read"""
        record = NoCurrencyColumnRecord(amount='0.015')
        assert record.amount_formatted() == "0.02 €"

    def test_malformed_value_formats_empty(self):
        """Test non-numeric raw values give an empty string"""
        record = CurrencyValueRecord(currency_code='EUR', amount='abc')
        assert record.amount_formatted() == ''
        assert record.amount is None

    def test_missing_value_formats_empty(self):
        """Test None formats as an empty string"""
        assert CurrencyValueRecord(currency_code='EUR').amount_formatted() == ''

    def test_large_value_formats(self):
        """Test formatting amounts beyond 28 significant digits"""
        record = CurrencyValueRecord(currency_code='EUR', amount='1e30')
        assert record.amount_formatted() == "1" + ",000" * 10 + ".00 €"

    def test_value_for_formatting_hook(self):
        """Test the formatting hook transforms the displayed value only"""
        record = ConvertedRecord(amount='5')
        assert record.amount_formatted(negative='hyphen') == "-5.00 €"
        assert record.read_attribute('amount') == '5'

    def test_format_currency_value(self):
        """Test formatting arbitrary values in the record's currency"""
        record = CurrencyValueRecord(currency_code='JPY')
        assert record.format_currency_value(Decimal('-1500'), negative='hyphen') == "-¥1,500"


class TestWriteBack:
    """Test rounded values are written back before saving"""

    def test_save_writes_back_rounded_values(self):
        """Test the stored value is the rounded one after save"""
        record = CurrencyValueRecord(currency_code='EUR', amount='1.005', tax_amount='0.124')
        assert record.save()
        assert record.read_attribute_before_type_cast('amount') == Decimal('1.01')
        assert record.read_attribute_before_type_cast('tax_amount') == Decimal('0.12')

    def test_save_persists_rounded_values(self):
        """Test the record store receives rounded values"""
        storage = InMemoryStorage()
        record = CurrencyValueRecord(currency_code='EUR', amount='98765432', tax_amount='0.0249')
        record.save(storage)

        row = storage.load("currency_value_records", record.id)
        assert row['amount'] == "98765432.00"
        assert row['tax_amount'] == "0.02"
        assert row['currency_code'] == "EUR"

    def test_write_back_registered_once(self):
        """Test repeated declarations keep a single write-back callback"""
        class TwiceDeclared(Record):
            columns = ('amount', 'tax_amount')

        acts_as_currency_value(TwiceDeclared, 'amount')
        info = currency_value_class_info(TwiceDeclared)
        acts_as_currency_value(TwiceDeclared, 'tax_amount', 'amount')

        assert currency_value_class_info(TwiceDeclared).previous_info is info
        assert currency_value_class_info(TwiceDeclared).new_args == ('tax_amount',)
        assert len(callbacks_for(TwiceDeclared, BEFORE_SAVE)) == 1

        record = TwiceDeclared(amount='1.111', tax_amount='2.222')
        record.save()
        assert record.read_attribute('amount') == Decimal('1.11')
        assert record.read_attribute('tax_amount') == Decimal('2.22')

    def test_subclass_inherits_write_back(self):
        """Test subclasses round on save without declaring again"""
        class SubRecord(CurrencyValueRecord):
            pass

        record = SubRecord(currency_code='JPY', amount='99.5')
        record.save()
        assert record.read_attribute('amount') == Decimal('100')
        assert len(callbacks_for(SubRecord, BEFORE_SAVE)) == 1

    def test_unrounded_write_back(self):
        """Test records without a currency keep raw values on save"""
        record = UnroundedRecord(amount='1.23456')
        record.save()
        assert record.read_attribute('amount') == Decimal('1.23456')
