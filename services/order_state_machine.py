"""
Máquina de estados de pedidos
=============================

    pendiente -> aprobado -> observado -> entregado
        \\___________\\___________\\______-> cancelado

- ``cancelado`` es terminal y alcanzable desde cualquier estado no entregado.
- Un administrador puede mover un pedido entre los estados no terminales
  (incluido volver atrás un ``entregado`` para corregirlo).
- Un vendedor nunca cambia el estado directamente.
"""

from typing import Any, Dict, FrozenSet

from models import EDITABLE_STATES, OrderState
from services.base import ValidationException
from services.permissions import Actor, can_change_order_state, ensure


TRANSITIONS: Dict[OrderState, FrozenSet[OrderState]] = {
    OrderState.PENDING: frozenset({
        OrderState.APPROVED, OrderState.OBSERVED, OrderState.DELIVERED, OrderState.CANCELLED,
    }),
    OrderState.APPROVED: frozenset({
        OrderState.PENDING, OrderState.OBSERVED, OrderState.DELIVERED, OrderState.CANCELLED,
    }),
    OrderState.OBSERVED: frozenset({
        OrderState.PENDING, OrderState.APPROVED, OrderState.DELIVERED, OrderState.CANCELLED,
    }),
    OrderState.DELIVERED: frozenset({
        OrderState.PENDING, OrderState.APPROVED, OrderState.OBSERVED,
    }),
    OrderState.CANCELLED: frozenset(),
}


def parse_state(value: Any) -> OrderState:
    """Convierte un valor de entrada en ``OrderState`` o lanza ValidationException."""
    if isinstance(value, OrderState):
        return value
    try:
        return OrderState(value)
    except ValueError:
        validos = ', '.join(s.value for s in OrderState)
        raise ValidationException(
            f"Estado inválido: {value}. Debe ser uno de: {validos}",
            details={'estado': value},
        )


def is_editable(state: OrderState) -> bool:
    return state in EDITABLE_STATES


def is_terminal(state: OrderState) -> bool:
    return not TRANSITIONS[state]


def can_transition(current: OrderState, target: OrderState) -> bool:
    if current == target:
        return True
    return target in TRANSITIONS[current]


def releases_stock(current: OrderState, target: OrderState) -> bool:
    """Al cancelar se devuelve la mercadería reservada (una sola vez)."""
    return target == OrderState.CANCELLED and current != OrderState.CANCELLED


def check_transition(actor: Actor, pedido, target: Any) -> OrderState:
    """
    Valida el cambio de estado de ``pedido`` a ``target``.

    Returns:
        OrderState: El estado destino ya normalizado

    Raises:
        PermissionDeniedException: Si el actor no es administrador
        ValidationException: Si el estado no existe o la transición no es legal
    """
    target = parse_state(target)
    ensure(
        can_change_order_state(actor), actor, 'change_state', pedido,
        reason="Solo un administrador puede cambiar el estado de un pedido",
    )
    if not can_transition(pedido.estado, target):
        if pedido.estado == OrderState.DELIVERED and target == OrderState.CANCELLED:
            mensaje = "No se puede cancelar un pedido ya entregado"
        else:
            mensaje = f"No se puede pasar un pedido de {pedido.estado.value} a {target.value}"
        raise ValidationException(
            mensaje,
            details={'actual': pedido.estado.value, 'destino': target.value},
        )
    return target
