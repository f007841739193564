"""
Tests for order state transitions.
"""
import pytest

from models import OrderState, Pedido
from services import order_state_machine as sm
from services.base import PermissionDeniedException, ValidationException


@pytest.mark.unit
def test_editable_states():
    assert sm.is_editable(OrderState.PENDING)
    assert sm.is_editable(OrderState.APPROVED)
    assert sm.is_editable(OrderState.OBSERVED)
    assert not sm.is_editable(OrderState.DELIVERED)
    assert not sm.is_editable(OrderState.CANCELLED)


@pytest.mark.unit
def test_cancelled_is_the_only_terminal_state():
    assert [s for s in OrderState if sm.is_terminal(s)] == [OrderState.CANCELLED]


@pytest.mark.unit
@pytest.mark.parametrize('origen', [OrderState.PENDING, OrderState.APPROVED, OrderState.OBSERVED])
def test_cancel_reachable_from_non_delivered(origen):
    assert sm.can_transition(origen, OrderState.CANCELLED)
    assert sm.releases_stock(origen, OrderState.CANCELLED)


@pytest.mark.unit
def test_delivered_cannot_be_cancelled():
    assert not sm.can_transition(OrderState.DELIVERED, OrderState.CANCELLED)


@pytest.mark.unit
def test_cancelled_goes_nowhere():
    for destino in OrderState:
        if destino is not OrderState.CANCELLED:
            assert not sm.can_transition(OrderState.CANCELLED, destino)
    assert not sm.releases_stock(OrderState.CANCELLED, OrderState.CANCELLED)


@pytest.mark.unit
def test_parse_state_accepts_values_and_members():
    assert sm.parse_state('aprobado') is OrderState.APPROVED
    assert sm.parse_state(OrderState.OBSERVED) is OrderState.OBSERVED
    with pytest.raises(ValidationException):
        sm.parse_state('enviado')


@pytest.mark.unit
def test_check_transition_requires_admin(app, seller, admin):
    pedido = Pedido(estado=OrderState.PENDING)

    with pytest.raises(PermissionDeniedException):
        sm.check_transition(seller, pedido, 'aprobado')

    assert sm.check_transition(admin, pedido, 'aprobado') is OrderState.APPROVED


@pytest.mark.unit
def test_check_transition_rejects_cancelling_delivered(app, admin):
    pedido = Pedido(estado=OrderState.DELIVERED)

    with pytest.raises(ValidationException) as exc:
        sm.check_transition(admin, pedido, OrderState.CANCELLED)
    assert exc.value.message == "No se puede cancelar un pedido ya entregado"
