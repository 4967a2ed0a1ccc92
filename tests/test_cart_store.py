# -*- coding: utf-8 -*-
"""
Tests del carrito: topes de stock, orden, no-ops y notificaciones.
"""
from decimal import Decimal

import pytest

from conftest import make_product
from pos_terminal.models import PaymentMethod, PaymentSelection
from pos_terminal.services import CartStore


@pytest.fixture
def cart():
    return CartStore()


@pytest.fixture
def events(cart):
    received = []
    cart.subscribe(lambda store: received.append(store.snapshot()))
    return received


def assert_invariants(cart):
    ids = [line.product_id for line in cart.snapshot()]
    assert len(ids) == len(set(ids))
    for line in cart.snapshot():
        assert 1 <= line.quantity <= line.product.stock


def test_add_six_times_with_stock_five_stops_at_five(cart):
    product = make_product(1, stock=5)
    for _ in range(6):
        cart.add(product)
    assert cart.get_line(1).quantity == 5
    assert_invariants(cart)


def test_add_at_capacity_does_not_notify(cart, events):
    product = make_product(1, stock=1)
    cart.add(product)
    cart.add(product)
    assert len(events) == 1
    assert cart.get_line(1).quantity == 1


def test_add_out_of_stock_product_is_noop(cart, events):
    cart.add(make_product(3, stock=0))
    assert cart.is_empty
    assert events == []


def test_lines_keep_first_add_order(cart):
    a, b = make_product(1), make_product(2)
    cart.add(a)
    cart.add(b)
    cart.add(a)
    assert [line.product_id for line in cart.snapshot()] == [1, 2]
    assert len(cart) == 2


def test_increment_refreshes_product_snapshot(cart):
    cart.add(make_product(1, '10.00', stock=5))
    cart.add(make_product(1, '12.00', stock=5))
    line = cart.get_line(1)
    assert line.quantity == 2
    assert line.product.price == Decimal('12.00')


def test_set_quantity_clamps_to_stock(cart):
    cart.add(make_product(1, stock=3))
    cart.set_quantity(1, 10000)
    assert cart.get_line(1).quantity == 3


@pytest.mark.parametrize('requested', [0, -5])
def test_set_quantity_never_goes_below_one(cart, requested):
    cart.add(make_product(1, stock=3))
    cart.add(make_product(1, stock=3))
    cart.set_quantity(1, requested)
    assert cart.get_line(1).quantity == 1


def test_set_quantity_unknown_id_is_noop(cart, events):
    cart.set_quantity(99, 2)
    assert cart.is_empty
    assert events == []


def test_remove_is_idempotent(cart, events):
    cart.add(make_product(1))
    cart.add(make_product(2))
    cart.remove(1)
    once = cart.snapshot()
    cart.remove(1)
    assert cart.snapshot() == once
    assert [line.product_id for line in once] == [2]
    # add, add, remove: el segundo remove no notifica
    assert len(events) == 3


def test_clear_resets_payment(cart):
    cart.add(make_product(1))
    cart.set_payment_method('card')
    cart.set_paid_amount('50')
    cart.clear()
    assert cart.is_empty
    assert cart.payment == PaymentSelection(PaymentMethod.CASH, Decimal('0.00'))


def test_payment_edits(cart, events):
    cart.set_payment_method(PaymentMethod.CARD)
    cart.set_paid_amount(Decimal('12.345'))
    assert cart.payment.method == PaymentMethod.CARD
    assert cart.payment.paid_amount == Decimal('12.35')
    assert len(events) == 2

    cart.set_payment_method('card')
    assert len(events) == 2


def test_negative_paid_amount_is_stored(cart):
    cart.set_paid_amount('-5')
    assert cart.payment.paid_amount == Decimal('-5.00')


@pytest.mark.parametrize('amount', ['NaN', 'inf', '1e1000'])
def test_non_finite_paid_amount_is_rejected(cart, events, amount):
    with pytest.raises(ValueError):
        cart.set_paid_amount(amount)
    assert cart.payment.paid_amount == Decimal('0.00')
    assert events == []


def test_invalid_payment_method_raises(cart):
    with pytest.raises(ValueError):
        cart.set_payment_method('cheque')


def test_unsubscribe_stops_notifications(cart):
    received = []
    unsubscribe = cart.subscribe(received.append)
    cart.add(make_product(1))
    unsubscribe()
    cart.add(make_product(2))
    assert len(received) == 1


def test_invariants_hold_through_mixed_operations(cart):
    a, b, c = make_product(1, stock=2), make_product(2, stock=4), make_product(3, stock=1)
    operations = [
        lambda: cart.add(a), lambda: cart.add(b), lambda: cart.add(a),
        lambda: cart.add(a), lambda: cart.set_quantity(2, 9), lambda: cart.add(c),
        lambda: cart.add(c), lambda: cart.set_quantity(1, -1), lambda: cart.remove(3),
        lambda: cart.add(b), lambda: cart.set_quantity(2, 3),
    ]
    for op in operations:
        op()
        assert_invariants(cart)

    assert [(l.product_id, l.quantity) for l in cart.snapshot()] == [(1, 1), (2, 3)]
