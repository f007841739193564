"""
Tests for atomic stock reservation.
"""
import threading
from decimal import Decimal

import pytest
from sqlalchemy import text

from extensions import db
from models import Producto
from services.base import InsufficientStockException, NotFoundException, ValidationException
from services.inventory_service import InventoryService


@pytest.fixture
def inventory(app):
    return InventoryService()


@pytest.mark.unit
def test_reserve_stock_decrements_and_returns_price(inventory, producto):
    precio = inventory.reserve_stock(producto.id, 3)

    assert precio == Decimal('5')
    assert inventory.get_stock(producto.id) == 7
    # La instancia en sesión queda sincronizada con la base
    assert producto.existencia == 7


@pytest.mark.unit
def test_reserve_stock_exact_amount_leaves_zero(inventory, producto):
    inventory.reserve_stock(producto.id, 10)
    assert inventory.get_stock(producto.id) == 0


@pytest.mark.unit
def test_reserve_stock_insufficient(inventory, producto):
    with pytest.raises(InsufficientStockException) as exc:
        inventory.reserve_stock(producto.id, 11)

    assert exc.value.producto_id == producto.id
    assert exc.value.disponible == 10
    assert exc.value.solicitado == 11
    assert exc.value.status_code == 409
    assert 'Tornillo' in exc.value.message
    assert inventory.get_stock(producto.id) == 10


@pytest.mark.unit
def test_reserve_stock_unknown_product(inventory):
    with pytest.raises(NotFoundException):
        inventory.reserve_stock(999, 1)


@pytest.mark.unit
@pytest.mark.parametrize('cantidad', [0, -2, 1.5, '3', None, True])
def test_reserve_stock_rejects_invalid_quantity(inventory, producto, cantidad):
    with pytest.raises(ValidationException):
        inventory.reserve_stock(producto.id, cantidad)
    assert inventory.get_stock(producto.id) == 10


@pytest.mark.unit
def test_two_reservations_exceeding_stock_only_first_succeeds(inventory, producto):
    inventory.reserve_stock(producto.id, 6)

    with pytest.raises(InsufficientStockException) as exc:
        inventory.reserve_stock(producto.id, 5)

    assert exc.value.disponible == 4
    assert inventory.get_stock(producto.id) == 4


@pytest.mark.slow
@pytest.mark.integration
def test_concurrent_reservations_exceeding_stock_only_one_succeeds(producto, concurrently):
    producto_id = producto.id
    barrier = threading.Barrier(2)

    def reserve(cantidad):
        barrier.wait(timeout=5)
        InventoryService().reserve_stock(producto_id, cantidad)

    outcomes = concurrently(lambda: reserve(6), lambda: reserve(5))

    assert sorted(outcomes) == ['InsufficientStockException', 'ok']
    reservado = 6 if outcomes[0] == 'ok' else 5
    assert InventoryService().get_stock(producto_id) == 10 - reservado


@pytest.mark.integration
def test_reserve_stock_uses_database_value_not_stale_session(inventory, producto):
    # La sesión ya tiene cargado el producto con existencia 10
    assert producto.existencia == 10

    # Otra transacción descuenta stock y confirma
    with db.engine.begin() as conn:
        conn.execute(text("UPDATE productos SET existencia = 3 WHERE id = :id"), {'id': producto.id})

    with pytest.raises(InsufficientStockException) as exc:
        inventory.reserve_stock(producto.id, 5)

    assert exc.value.disponible == 3
    assert inventory.get_stock(producto.id) == 3


@pytest.mark.integration
def test_uncommitted_reservation_is_undone_by_rollback(inventory, producto):
    inventory.reserve_stock(producto.id, 4, commit=False)
    db.session.rollback()

    assert inventory.get_stock(producto.id) == 10


@pytest.mark.unit
def test_release_stock_increments(inventory, producto):
    inventory.reserve_stock(producto.id, 4)
    inventory.release_stock(producto.id, 4)
    assert inventory.get_stock(producto.id) == 10


@pytest.mark.unit
def test_release_stock_unknown_product(inventory):
    with pytest.raises(NotFoundException):
        inventory.release_stock(999, 1)


@pytest.mark.unit
def test_stock_never_negative_after_reservation_sequence(inventory, producto):
    for cantidad in (3, 4, 2, 5, 1, 7):
        try:
            inventory.reserve_stock(producto.id, cantidad)
        except InsufficientStockException:
            pass
        assert db.session.get(Producto, producto.id).existencia >= 0
    assert inventory.get_stock(producto.id) == 0
