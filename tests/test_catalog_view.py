# -*- coding: utf-8 -*-
"""
Tests de la vista de catálogo: estados, búsqueda y stock bajo.
"""
import threading

import pytest

from conftest import make_product
from pos_terminal.errors import AuthenticationError, CatalogFetchError, TransportError
from pos_terminal.services import Loaded, LoadFailed, NotLoaded, ProductCatalogView


@pytest.fixture
def view(catalog_repo):
    return ProductCatalogView(catalog_repo)


def test_starts_not_loaded_with_empty_products(view):
    assert isinstance(view.state, NotLoaded)
    assert view.products == ()
    assert view.search('') == []


def test_load_replaces_snapshot(view, products):
    loaded = view.load()
    assert loaded == products
    assert isinstance(view.state, Loaded)
    assert view.products == tuple(products)


def test_load_failure_raises_catalog_fetch_error(view, catalog_repo):
    catalog_repo.error = TransportError('La solicitud falló con estado 500')
    with pytest.raises(CatalogFetchError) as exc:
        view.load()
    assert exc.value.message == 'La solicitud falló con estado 500'
    assert isinstance(view.state, LoadFailed)
    assert view.products == ()


def test_load_unauthorized_is_distinct(view, catalog_repo):
    catalog_repo.error = AuthenticationError('token expired')
    with pytest.raises(AuthenticationError):
        view.load()
    assert isinstance(view.state, LoadFailed)


def test_refresh_never_raises(view, catalog_repo):
    view.load()
    catalog_repo.error = TransportError()
    state = view.refresh()
    assert isinstance(state, LoadFailed)
    assert view.search('') == []


def test_search_by_name_sku_and_id(view):
    view.load()
    assert [p.id for p in view.search('  CAFÉ ')] == [1]
    assert [p.id for p in view.search('azu-')] == [2]
    assert [p.id for p in view.search('3')] == [3]
    assert view.search('no existe') == []


def test_search_empty_query_returns_all_in_order(view, products):
    view.load()
    assert view.search('   ') == products


def test_get_from_snapshot(view):
    view.load()
    assert view.get(2).name == 'Azúcar'
    assert view.get(99) is None


def test_low_stock_does_not_touch_snapshot(view, catalog_repo):
    result = view.low_stock(3)
    assert [p.id for p in result] == [2, 3]
    assert catalog_repo.low_stock_calls == [3]
    assert isinstance(view.state, NotLoaded)


def test_low_stock_rejects_negative_threshold(view, catalog_repo):
    with pytest.raises(ValueError):
        view.low_stock(-1)
    assert catalog_repo.low_stock_calls == []


def test_low_stock_failure_is_catalog_fetch_error(view, catalog_repo):
    catalog_repo.error = TransportError()
    with pytest.raises(CatalogFetchError):
        view.low_stock(5)


class BlockingCatalogRepository:
    """Primera llamada bloqueada hasta liberar el gate; las siguientes responden al tiro."""

    def __init__(self, first, second):
        self.results = [first, second]
        self.gate = threading.Event()
        self.entered = threading.Event()
        self.calls = 0

    def list_products(self):
        self.calls += 1
        result = self.results[self.calls - 1]
        if self.calls == 1:
            self.entered.set()
            self.gate.wait(timeout=5)
        return result


def test_older_load_finishing_last_does_not_replace_newer_snapshot():
    old = [make_product(1, stock=5)]
    new = [make_product(1, stock=2), make_product(4, stock=9)]
    repo = BlockingCatalogRepository(old, new)
    view = ProductCatalogView(repo)

    worker = threading.Thread(target=view.refresh)
    worker.start()
    assert repo.entered.wait(timeout=5)

    view.load()
    repo.gate.set()
    worker.join(timeout=5)

    assert view.products == tuple(new)
