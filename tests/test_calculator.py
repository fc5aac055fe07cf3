from decimal import Decimal

import pytest

from pricing.calculator import (
    APPLY_PRICE,
    DECREASE_FIXED,
    DECREASE_PERCENTAGE,
    calculate_new_price,
    describe_price_type,
    format_amount,
    parse_decimal,
    price_change,
    quantize_money,
)

ORIGINALS = ['0', '0.01', '9.99', '25.00', '100', '1234.56']
AMOUNTS = ['0', '0.5', '10', '20', '99.99', '100']


class TestParseDecimal:

    @pytest.mark.parametrize('raw', [None, '', 'abc', 'NaN', 'inf', True, [], '1,5'])
    def test_unparsable_is_zero(self, raw):
        assert parse_decimal(raw) == Decimal('0')

    def test_numbers_and_strings(self):
        assert parse_decimal('19.99') == Decimal('19.99')
        assert parse_decimal(' 5 ') == Decimal('5')
        assert parse_decimal(3) == Decimal('3')
        assert parse_decimal(9.99) == Decimal('9.99')


class TestCalculateNewPrice:

    @pytest.mark.parametrize('original', ORIGINALS)
    @pytest.mark.parametrize('amount', AMOUNTS)
    def test_apply_price_ignores_original(self, original, amount):
        assert calculate_new_price(original, APPLY_PRICE, amount) == Decimal(amount)

    @pytest.mark.parametrize('original', ORIGINALS)
    @pytest.mark.parametrize('amount', AMOUNTS)
    def test_decrease_fixed_never_negative(self, original, amount):
        result = calculate_new_price(original, DECREASE_FIXED, amount)
        assert result == max(Decimal('0'), Decimal(original) - Decimal(amount))
        assert result >= 0

    @pytest.mark.parametrize('original', ORIGINALS)
    @pytest.mark.parametrize('amount', AMOUNTS)
    def test_decrease_percentage_never_above_original(self, original, amount):
        result = calculate_new_price(original, DECREASE_PERCENTAGE, amount)
        expected = max(Decimal('0'), Decimal(original) - Decimal(original) * Decimal(amount) / 100)
        assert result == expected
        assert result <= Decimal(original)

    def test_unknown_type_is_identity(self):
        assert calculate_new_price('42.00', 'increase-fixed', '5') == Decimal('42.00')

    def test_unparsable_inputs_count_as_zero(self):
        assert calculate_new_price('n/a', DECREASE_FIXED, '5') == Decimal('0')
        assert calculate_new_price('30', DECREASE_FIXED, 'oops') == Decimal('30')

    def test_same_inputs_same_output(self):
        first = calculate_new_price('19.99', DECREASE_PERCENTAGE, '15')
        second = calculate_new_price('19.99', DECREASE_PERCENTAGE, '15')
        assert first == second

    def test_fixed_decrease_scenario(self):
        new = calculate_new_price('25.00', DECREASE_FIXED, 10)
        assert quantize_money(new) == Decimal('15.00')
        change = price_change('25.00', new)
        assert change.delta == Decimal('-10.00')
        assert str(change.delta_percent) == '-40.0'
        assert change.changed

    def test_percentage_scenario(self):
        assert quantize_money(calculate_new_price('50.00', DECREASE_PERCENTAGE, 20)) == Decimal('40.00')

    def test_apply_price_scenario(self):
        for original in ('1.00', '9.99', '500.00'):
            assert calculate_new_price(original, APPLY_PRICE, '9.99') == Decimal('9.99')


class TestPriceChange:

    def test_zero_original_has_zero_percent(self):
        change = price_change('0', '5')
        assert change.delta == Decimal('5.00')
        assert change.delta_percent == Decimal('0')
        assert change.changed

    def test_sub_cent_difference_is_no_change(self):
        change = price_change('10.000', '10.004')
        assert not change.changed

    def test_increase_is_positive(self):
        change = price_change('10', '12.5')
        assert change.delta == Decimal('2.50')
        assert change.delta_percent == Decimal('25.0')

    def test_percent_rounded_to_one_place(self):
        change = price_change('3', '2')
        assert change.delta_percent == Decimal('-33.3')

    def test_very_large_amount(self):
        new_price = calculate_new_price('10.00', APPLY_PRICE, '1e30')
        change = price_change('10.00', new_price)
        assert change.changed
        assert change.delta > Decimal('9e29')
        assert change.delta_percent > Decimal('9e30')
        assert str(quantize_money(new_price)) == '1000000000000000000000000000000.00'


class TestDescriptions:

    def test_format_amount_strips_zeroes(self):
        assert format_amount('20.00') == '20'
        assert format_amount('12.50') == '12.5'
        assert format_amount('0') == '0'

    def test_describe_price_type(self):
        assert describe_price_type(DECREASE_PERCENTAGE, '20') == 'Decrease by percentage: 20%'
        assert describe_price_type(APPLY_PRICE, '9.99') == 'Apply fixed price: 9.99'
        assert describe_price_type(DECREASE_FIXED, 5) == 'Decrease by fixed amount: 5.00'
        assert describe_price_type('bogus', 5) == 'No pricing rule applied'
