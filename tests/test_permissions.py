"""
Tests for the authorization guard.
"""
from decimal import Decimal

import pytest

from extensions import db
from models import CostoEnvio, OrderState, Pedido, Producto, Proveedor, Role
from services.base import PermissionDeniedException, UnauthenticatedException
from services.permissions import (
    LOCKED_CLIENT_MESSAGE,
    Actor,
    can_edit,
    can_manage_catalogue,
    can_view,
    client_is_locked,
    ensure_can_edit,
    ensure_can_view,
)


def _pedido(cliente, estado):
    pedido = Pedido(
        cliente_id=cliente.id,
        vendedor_id=cliente.vendedor_id,
        items=[],
        notas=[],
        subtotal=Decimal('0'),
        envio=Decimal('0'),
        total=Decimal('0'),
        estado=estado,
    )
    db.session.add(pedido)
    db.session.commit()
    return pedido


@pytest.mark.unit
def test_actor_from_identity():
    actor = Actor.from_identity({'id': '7', 'role': 'administrador'})
    assert actor == Actor(id=7, role=Role.ADMIN)
    assert actor.is_admin
    assert Actor.from_identity(None) is None
    assert Actor.from_identity({'id': 3}) is None


@pytest.mark.unit
@pytest.mark.parametrize('identity', [
    {'id': 1, 'role': 'hacker'},
    {'id': 'abc', 'role': 'vendedor'},
    {'id': [1], 'role': 'vendedor'},
])
def test_actor_from_invalid_identity_is_unauthenticated(identity):
    with pytest.raises(UnauthenticatedException) as exc:
        Actor.from_identity(identity)
    assert exc.value.status_code == 401


@pytest.mark.unit
def test_can_manage_catalogue(seller, admin):
    assert can_manage_catalogue(admin)
    assert not can_manage_catalogue(seller)
    with pytest.raises(UnauthenticatedException):
        can_manage_catalogue(None)


@pytest.mark.unit
def test_missing_actor_is_unauthenticated(cliente):
    with pytest.raises(UnauthenticatedException) as exc:
        can_view(None, cliente)
    assert exc.value.status_code == 401


@pytest.mark.unit
def test_owner_and_admin_can_edit_client(cliente, seller, other_seller, admin):
    assert can_view(seller, cliente)
    assert can_edit(seller, cliente)
    assert can_edit(admin, cliente)
    assert not can_view(other_seller, cliente)
    assert not can_edit(other_seller, cliente)


@pytest.mark.integration
@pytest.mark.parametrize('estado', [OrderState.DELIVERED, OrderState.CANCELLED])
def test_client_locked_once_an_order_leaves_editable_set(cliente, seller, admin, estado):
    _pedido(cliente, OrderState.PENDING)
    assert not client_is_locked(cliente)

    _pedido(cliente, estado)
    assert client_is_locked(cliente)

    with pytest.raises(PermissionDeniedException) as exc:
        ensure_can_edit(seller, cliente)
    assert exc.value.message == LOCKED_CLIENT_MESSAGE
    assert exc.value.status_code == 403

    with pytest.raises(PermissionDeniedException):
        ensure_can_view(seller, cliente)

    assert can_edit(admin, cliente)


@pytest.mark.integration
def test_lock_is_reevaluated_on_each_check(cliente, seller):
    pedido = _pedido(cliente, OrderState.DELIVERED)
    assert not can_edit(seller, cliente)

    pedido.estado = OrderState.OBSERVED
    db.session.commit()
    assert can_edit(seller, cliente)


@pytest.mark.unit
def test_order_edit_rules(cliente, seller, other_seller, admin):
    pedido = _pedido(cliente, OrderState.APPROVED)
    assert can_view(seller, pedido)
    assert can_edit(seller, pedido)
    assert not can_view(other_seller, pedido)
    assert not can_edit(other_seller, pedido)

    pedido.estado = OrderState.DELIVERED
    db.session.commit()
    assert can_view(seller, pedido)
    assert not can_edit(seller, pedido)
    assert can_edit(admin, pedido)


@pytest.mark.unit
@pytest.mark.parametrize('recurso', [Proveedor(), Producto(), CostoEnvio()])
def test_catalog_resources_are_admin_only(app, seller, admin, recurso):
    assert can_view(seller, recurso)
    assert not can_edit(seller, recurso)
    assert can_edit(admin, recurso)


@pytest.mark.unit
def test_unknown_resource_type_is_rejected(seller):
    with pytest.raises(TypeError):
        can_edit(seller, object())


@pytest.mark.unit
def test_denials_are_logged_to_security_logger(cliente, other_seller, caplog):
    with caplog.at_level('WARNING', logger='security'):
        assert not can_edit(other_seller, cliente)
        with pytest.raises(PermissionDeniedException):
            ensure_can_edit(other_seller, cliente)

    eventos = [r for r in caplog.records if r.name == 'security']
    assert len(eventos) == 1
    assert eventos[0].security_event['event_type'] == 'permission_denied'
    assert eventos[0].security_event['user_id'] == other_seller.id
