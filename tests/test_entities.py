# -*- coding: utf-8 -*-
"""
Tests de entidades: montos, conversión desde/hacia JSON.
"""
from decimal import Decimal

import pytest

from conftest import make_product
from pos_terminal.models import (
    CartLine,
    PaymentMethod,
    PaymentSelection,
    Product,
    SaleRequest,
    SaleResult,
    User,
    UserRole,
    ZERO,
    parse_payment_method,
    to_money,
)


def test_to_money_rounds_half_up():
    assert to_money('2.675') == Decimal('2.68')
    assert to_money(Decimal('2.674')) == Decimal('2.67')
    assert to_money(3) == Decimal('3.00')


def test_to_money_float_goes_through_str():
    assert to_money(0.1 + 0.2) == Decimal('0.30')


def test_to_money_empty_values_are_zero():
    assert to_money(None) == ZERO
    assert to_money('') == ZERO


@pytest.mark.parametrize('value', ['abc', True, 'NaN-ish'])
def test_to_money_rejects_invalid(value):
    with pytest.raises(ValueError):
        to_money(value)


@pytest.mark.parametrize('value', [
    'nan', 'NaN', 'sNaN', 'inf', '-Infinity', '1e1000',
    float('nan'), float('inf'), Decimal('NaN'),
])
def test_to_money_rejects_non_finite_and_huge(value):
    with pytest.raises(ValueError):
        to_money(value)


def test_product_from_dict_rejects_nan_price():
    with pytest.raises(ValueError):
        Product.from_dict({'id': 1, 'name': 'X', 'sku': 'X', 'price': float('nan'), 'stock': 1})


def test_product_from_dict_parses_wire_format():
    p = Product.from_dict({
        'id': 7, 'name': 'Leche', 'sku': 'LEC-1L', 'price': Decimal('1.5'),
        'stock': 12, 'created_at': '2024-01-01T00:00:00Z',
    })
    assert p == Product(7, 'Leche', 'LEC-1L', Decimal('1.50'), 12)


def test_product_from_dict_negative_stock_is_zero():
    p = Product.from_dict({'id': 1, 'name': 'X', 'sku': 'X', 'price': '1', 'stock': -3})
    assert p.stock == 0


def test_product_from_dict_rejects_negative_price():
    with pytest.raises(ValueError):
        Product.from_dict({'id': 1, 'name': 'X', 'sku': 'X', 'price': '-1.00', 'stock': 1})


def test_product_from_dict_requires_id():
    with pytest.raises(KeyError):
        Product.from_dict({'name': 'X', 'sku': 'X', 'price': '1.00'})


def test_product_matches_name_sku_and_id():
    p = make_product(42, name='Café Molido', sku='CAF-250')
    assert p.matches('café')
    assert p.matches('caf-2')
    assert p.matches('42')
    assert not p.matches('azúcar')


def test_cart_line_total_is_exact():
    line = CartLine(make_product(1, '0.10'), 3)
    assert line.line_total == Decimal('0.30')


def test_sale_request_carries_no_prices():
    lines = (CartLine(make_product(1, '10.00'), 2), CartLine(make_product(2, '5.50'), 1))
    req = SaleRequest.from_cart(lines, PaymentSelection(PaymentMethod.CARD, Decimal('25.5')))

    assert req.to_dict() == {
        'items': [
            {'product_id': 1, 'quantity': 2},
            {'product_id': 2, 'quantity': 1},
        ],
        'payment_method': 'card',
        'paid_amount': 25.5,
    }


def test_sale_result_from_dict_and_change():
    sale = SaleResult.from_dict({
        'id': 10,
        'total_amount': Decimal('25.50'),
        'paid_amount': Decimal('30'),
        'payment_method': 'cash',
        'created_at': '2024-05-01T10:00:00Z',
        'items': [{
            'product_id': 1, 'product_name': 'Café', 'quantity': 2,
            'unit_price': Decimal('10.00'), 'line_total': Decimal('20.00'),
        }],
    })
    assert sale.change == Decimal('4.50')
    assert sale.items[0].product_name == 'Café'
    assert sale.to_dict()['change'] == 4.5


def test_sale_result_requires_total():
    with pytest.raises(KeyError):
        SaleResult.from_dict({'id': 1})


def test_user_unknown_role_falls_back_to_cashier():
    user = User.from_dict({'id': 1, 'name': 'Ana', 'email': 'a@b.cl', 'role': 'admin'})
    assert user.role == UserRole.CASHIER
    assert not user.is_manager()


def test_parse_payment_method():
    assert parse_payment_method('CARD') == PaymentMethod.CARD
    assert parse_payment_method(PaymentMethod.CASH) == PaymentMethod.CASH
    with pytest.raises(ValueError):
        parse_payment_method('bitcoin')
