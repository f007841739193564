"""
Permissions Service
===================

Sistema centralizado de permisos y autorización.

Cada operación recibe un ``Actor`` (id + rol) ya autenticado y consulta una
única vez ``can_view`` / ``can_edit`` (o sus variantes ``ensure_*`` que lanzan
excepción) en lugar de repetir las reglas de rol y propiedad.

Reglas:
- ``administrador`` puede ver y editar cualquier cliente y pedido.
- ``vendedor`` solo opera sobre sus propios clientes, y un cliente queda
  bloqueado para su vendedor en cuanto alguno de sus pedidos sale del
  conjunto editable (pendiente, aprobado, observado).
- Proveedores, productos y tramos de envío solo los edita un administrador.

Uso:
    from services.permissions import Actor, ensure_can_edit

    actor = Actor(id=usuario.id, role=Role.SELLER)
    ensure_can_edit(actor, cliente)
"""

from dataclasses import dataclass
from typing import Any, Optional

from models import (
    Cliente,
    CostoEnvio,
    EDITABLE_STATES,
    Pedido,
    Producto,
    Proveedor,
    Role,
)
from services.base import PermissionDeniedException, UnauthenticatedException
from utils.security_logger import log_permission_denied


LOCKED_CLIENT_MESSAGE = (
    "No tienes permisos para actualizar este cliente debido al estado de sus pedidos, "
    "por favor contacta a un administrador si necesitas hacer algún cambio."
)
NO_CREDENTIALS_MESSAGE = "No tienes las credenciales"


@dataclass(frozen=True)
class Actor:
    """Identidad ya autenticada de quien invoca una operación."""
    id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        if self.role == Role.ADMIN:
            return True
        if self.role == Role.SELLER:
            return False
        raise ValueError(f"Rol desconocido: {self.role!r}")

    @classmethod
    def from_identity(cls, identity: Optional[dict]) -> Optional['Actor']:
        """Construye un Actor desde el payload ``{'id', 'role'}`` de la capa de transporte."""
        if not identity or identity.get('id') is None or not identity.get('role'):
            return None
        try:
            return cls(id=int(identity['id']), role=Role(identity['role']))
        except (ValueError, TypeError):
            raise UnauthenticatedException("Identidad inválida")


def require_actor(actor: Optional[Actor]) -> Actor:
    """Devuelve el actor o lanza UnauthenticatedException si no hay identidad."""
    if actor is None or getattr(actor, 'id', None) is None:
        raise UnauthenticatedException()
    return actor


def client_is_locked(cliente: Cliente) -> bool:
    """True si algún pedido del cliente salió del conjunto editable."""
    return any(pedido.estado not in EDITABLE_STATES for pedido in cliente.pedidos)


# ===== REGLAS POR TIPO DE RECURSO =====
# Cada función devuelve None si se permite o el motivo del rechazo.

def _client_denial(actor: Actor, cliente: Cliente) -> Optional[str]:
    if actor.is_admin:
        return None
    if client_is_locked(cliente):
        return LOCKED_CLIENT_MESSAGE
    if cliente.vendedor_id != actor.id:
        return "No tienes las credenciales para ver este cliente"
    return None


def _order_view_denial(actor: Actor, pedido: Pedido) -> Optional[str]:
    if actor.is_admin or pedido.vendedor_id == actor.id:
        return None
    return NO_CREDENTIALS_MESSAGE


def _order_edit_denial(actor: Actor, pedido: Pedido) -> Optional[str]:
    if actor.is_admin:
        return None
    if pedido.cliente is None or pedido.cliente.vendedor_id != actor.id:
        return NO_CREDENTIALS_MESSAGE
    if not pedido.is_editable:
        return f"El pedido está {pedido.estado.value} y ya no puede modificarse"
    return None


def _admin_only_denial(actor: Actor, resource: Any) -> Optional[str]:
    if can_manage_catalogue(actor):
        return None
    return NO_CREDENTIALS_MESSAGE


def _view_denial(actor: Actor, resource: Any) -> Optional[str]:
    if isinstance(resource, Cliente):
        return _client_denial(actor, resource)
    if isinstance(resource, Pedido):
        return _order_view_denial(actor, resource)
    if isinstance(resource, (Proveedor, Producto, CostoEnvio)):
        return None
    raise TypeError(f"Recurso sin reglas de permisos: {type(resource).__name__}")


def _edit_denial(actor: Actor, resource: Any) -> Optional[str]:
    if isinstance(resource, Cliente):
        return _client_denial(actor, resource)
    if isinstance(resource, Pedido):
        return _order_edit_denial(actor, resource)
    if isinstance(resource, (Proveedor, Producto, CostoEnvio)):
        return _admin_only_denial(actor, resource)
    raise TypeError(f"Recurso sin reglas de permisos: {type(resource).__name__}")


# ===== API PÚBLICA =====

def can_view(actor: Actor, resource: Any) -> bool:
    """Verifica si el actor puede ver el recurso."""
    return _view_denial(require_actor(actor), resource) is None


def can_edit(actor: Actor, resource: Any) -> bool:
    """Verifica si el actor puede modificar (o eliminar) el recurso."""
    return _edit_denial(require_actor(actor), resource) is None


def can_change_order_state(actor: Actor) -> bool:
    """Solo un administrador cambia el estado de un pedido directamente."""
    return require_actor(actor).is_admin


def can_manage_catalogue(actor: Actor) -> bool:
    """Proveedores, productos y tramos de envío: altas y cambios solo de administradores."""
    return require_actor(actor).is_admin


def can_create_order_for(actor: Actor, cliente: Cliente) -> bool:
    actor = require_actor(actor)
    return actor.is_admin or cliente.vendedor_id == actor.id


def can_delete_order(actor: Actor, pedido: Pedido) -> bool:
    """Solo el vendedor dueño borra un pedido, y solo mientras sea editable."""
    actor = require_actor(actor)
    return pedido.vendedor_id == actor.id and pedido.is_editable


def _deny(actor: Actor, action: str, resource: Any, reason: str):
    if isinstance(resource, type):
        resource_name, resource_id = resource.__name__, None
    else:
        resource_name, resource_id = type(resource).__name__, getattr(resource, 'id', None)
    log_permission_denied(f"{resource_name}:{resource_id}", action, actor=actor, reason=reason)
    raise PermissionDeniedException(action, resource_name, reason=reason)


def ensure_can_view(actor: Actor, resource: Any) -> None:
    reason = _view_denial(require_actor(actor), resource)
    if reason is not None:
        _deny(actor, 'view', resource, reason)


def ensure_can_edit(actor: Actor, resource: Any, action: str = 'edit') -> None:
    reason = _edit_denial(require_actor(actor), resource)
    if reason is not None:
        _deny(actor, action, resource, reason)


def ensure(allowed: bool, actor: Actor, action: str, resource: Any, reason: str = NO_CREDENTIALS_MESSAGE) -> None:
    """Lanza PermissionDeniedException (y registra el evento) si ``allowed`` es False."""
    if not allowed:
        _deny(actor, action, resource, reason)
