# -*- coding: utf-8 -*-
"""
Fixtures compartidas: repositorios falsos (sin red) y cliente Flask.
"""
import json
import os
import threading
from decimal import Decimal

import pytest
import requests

# Sin archivos de log durante los tests
os.environ.setdefault('POS_ENABLE_PROFILING', '0')
os.environ.setdefault('POS_PRODUCTION_MODE', '0')

from pos_terminal.errors import AuthenticationError, RemoteRejectedError
from pos_terminal.models import (
    Product,
    SaleResult,
    SaleResultItem,
    Session,
    User,
    UserRole,
    to_money,
)


def make_product(pid, price='10.00', stock=5, name=None, sku=None):
    return Product(
        id=pid,
        name=name or f'Producto {pid}',
        sku=sku or f'SKU-{pid:03d}',
        price=Decimal(price),
        stock=stock,
    )


# ==============================================================================
# REPOSITORIOS FALSOS
# ==============================================================================

class FakeCatalogRepository:
    def __init__(self, products=None):
        self.products = list(products or [])
        self.error = None
        self.calls = 0
        self.low_stock_calls = []

    def list_products(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.products)

    def list_low_stock(self, threshold):
        self.low_stock_calls.append(threshold)
        if self.error is not None:
            raise self.error
        return [p for p in self.products if p.stock <= threshold]


class FakeSalesRepository:
    """
    Libro de ventas en memoria. Usa los precios del catálogo para
    calcular el total, como lo haría el servidor.
    """

    def __init__(self, products=None):
        self.prices = {p.id: p for p in (products or [])}
        self.requests = []
        self.sales = []
        self.error = None
        self.gate = None      # threading.Event para bloquear create_sale
        self.entered = threading.Event()

    def create_sale(self, request):
        self.requests.append(request)
        self.entered.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error

        items = []
        for item in request.items:
            product = self.prices[item.product_id]
            items.append(SaleResultItem(
                product_id=product.id,
                product_name=product.name,
                quantity=item.quantity,
                unit_price=product.price,
                line_total=to_money(product.price * item.quantity),
            ))
        sale = SaleResult(
            id=len(self.sales) + 1,
            total_amount=to_money(sum((i.line_total for i in items), Decimal('0'))),
            paid_amount=request.paid_amount,
            payment_method=request.payment_method.value,
            created_at='2024-05-01T10:00:00Z',
            items=tuple(items),
        )
        self.sales.insert(0, sale)
        return sale

    def get_sale(self, sale_id):
        for sale in self.sales:
            if sale.id == sale_id:
                return sale
        raise RemoteRejectedError('sale not found', status_code=404)

    def list_sales(self):
        return list(self.sales)


class FakeAuthRepository:
    USERS = {
        'caja@tienda.cl': ('1234', User(1, 'Cajero', 'caja@tienda.cl', UserRole.CASHIER)),
        'jefe@tienda.cl': ('1234', User(2, 'Gerente', 'jefe@tienda.cl', UserRole.MANAGER)),
    }

    def __init__(self):
        self.current_user_error = None

    def login(self, email, password):
        record = self.USERS.get(email)
        if record is None or record[0] != password:
            raise AuthenticationError('invalid credentials')
        return Session(token=f'token-{record[1].id}', user=record[1])

    def get_current_user(self):
        if self.current_user_error is not None:
            raise self.current_user_error
        return self.USERS['caja@tienda.cl'][1]


def run_now(task):
    task()


# ==============================================================================
# HTTP FALSO (requests.Session)
# ==============================================================================

def make_response(status, body=None, raw=None):
    resp = requests.Response()
    resp.status_code = status
    if body is not None:
        resp._content = json.dumps(body).encode('utf-8')
    else:
        resp._content = raw if raw is not None else b''
    resp.headers['Content-Type'] = 'application/json'
    resp.encoding = 'utf-8'
    return resp


class FakeHttp:
    """Reemplazo de requests.Session que devuelve respuestas encoladas."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append({'method': method, 'url': url, **kwargs})
        result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


# ==============================================================================
# FIXTURES
# ==============================================================================

@pytest.fixture
def products():
    return [
        make_product(1, '10.00', 5, name='Café molido', sku='CAF-250'),
        make_product(2, '5.50', 3, name='Azúcar', sku='AZU-1K'),
        make_product(3, '2.25', 0, name='Té verde', sku='TE-020'),
    ]


@pytest.fixture
def catalog_repo(products):
    return FakeCatalogRepository(products)


@pytest.fixture
def sales_repo(products):
    return FakeSalesRepository(products)


@pytest.fixture
def auth_repo():
    return FakeAuthRepository()


@pytest.fixture
def client(catalog_repo, sales_repo, auth_repo):
    from pos_terminal.app_container import AppContainer
    from pos_terminal.config import Settings
    from pos_terminal.main import app

    AppContainer.reset_instance()
    AppContainer(
        settings=Settings(enable_profiling=False),
        catalog_repo=catalog_repo,
        sales_repo=sales_repo,
        auth_repo=auth_repo,
        refresh_runner=run_now,
    )
    app.config['TESTING'] = True
    with app.test_client() as c:
        yield c
    AppContainer.reset_instance()


def login(client, email='caja@tienda.cl', password='1234'):
    r = client.post('/login', json={'email': email, 'password': password})
    assert r.status_code == 200, r.get_json()
    return r.get_json()
