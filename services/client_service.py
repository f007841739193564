"""
Client Service - Gestión de clientes de cada vendedor
=====================================================
Los clientes pertenecen al vendedor que los creó. Ver, editar o eliminar un
cliente pasa siempre por ``services.permissions``, que además bloquea al
cliente para su vendedor cuando alguno de sus pedidos dejó de ser editable.
"""

from typing import Any, Dict, List, Optional

from services.base import BaseService, ValidationException
from services.permissions import Actor, ensure_can_edit, ensure_can_view, require_actor
from models import Cliente, Pedido
from utils import safe_int


EDITABLE_FIELDS = ('nombre', 'apellido', 'empresa', 'email', 'telefono', 'direccion')
REQUIRED_FIELDS = ('nombre', 'apellido', 'email')


class ClientService(BaseService[Cliente]):

    model_class = Cliente

    def create_client(self, actor: Optional[Actor], data: Dict[str, Any]) -> Cliente:
        """
        Registra un cliente para el vendedor autenticado.

        Raises:
            UnauthenticatedException: Si no hay actor
            ValidationException: Si faltan campos o el email ya está registrado
        """
        actor = require_actor(actor)

        missing_fields = [f for f in REQUIRED_FIELDS if not data.get(f)]
        if missing_fields:
            raise ValidationException(
                f"Campos requeridos faltantes: {', '.join(missing_fields)}",
                details={'missing_fields': missing_fields}
            )

        email = data['email'].strip().lower()
        if Cliente.query.filter_by(email=email).first():
            raise ValidationException("Este cliente ya está registrado", details={'field': 'email'})

        values = {k: data[k] for k in EDITABLE_FIELDS if k in data}
        values['email'] = email
        cliente = self.create(vendedor_id=actor.id, **values)
        self._log_info(f"Cliente {cliente.id} registrado por vendedor {actor.id}")
        return cliente

    def get_client(self, actor: Optional[Actor], cliente_id: int) -> Cliente:
        cliente = self.get_by_id_or_fail(cliente_id)
        ensure_can_view(actor, cliente)
        return cliente

    def get_client_admin(self, cliente_id: int) -> Cliente:
        return self.get_by_id_or_fail(cliente_id)

    def update_client(self, actor: Optional[Actor], cliente_id: int, data: Dict[str, Any]) -> Cliente:
        cliente = self.get_by_id_or_fail(cliente_id)
        ensure_can_edit(actor, cliente)

        values = {k: data[k] for k in EDITABLE_FIELDS if k in data}
        if 'email' in values:
            values['email'] = (values['email'] or '').strip().lower()
            if not values['email']:
                raise ValidationException("El email es requerido")
            if values['email'] != cliente.email and Cliente.query.filter_by(email=values['email']).first():
                raise ValidationException("Este cliente ya está registrado", details={'field': 'email'})

        return self.update(cliente_id, **values)

    def delete_client(self, actor: Optional[Actor], cliente_id: int) -> str:
        cliente = self.get_by_id_or_fail(cliente_id)
        ensure_can_edit(actor, cliente, action='delete')

        if cliente.pedidos.count():
            raise ValidationException(
                "El cliente tiene pedidos asociados y no puede eliminarse",
                details={'cliente_id': cliente_id},
            )

        self.delete(cliente_id)
        return "Cliente eliminado"

    def orders_of(self, actor: Optional[Actor], cliente_id: int) -> List[Pedido]:
        cliente = self.get_client(actor, cliente_id)
        return cliente.pedidos.order_by(Pedido.id).all()

    def _scoped_query(self, actor: Actor):
        actor = require_actor(actor)
        query = Cliente.query
        if not actor.is_admin:
            query = query.filter(Cliente.vendedor_id == actor.id)
        return query

    def list_clients(self, actor: Optional[Actor], limit: Any = 10, offset: Any = 0) -> List[Cliente]:
        """Clientes del vendedor (todos para un administrador), paginados."""
        return (
            self._scoped_query(actor)
            .order_by(Cliente.id)
            .offset(safe_int(offset, 0))
            .limit(safe_int(limit, 10) or 10)
            .all()
        )

    def count_clients(self, actor: Optional[Actor]) -> int:
        return self._scoped_query(actor).count()
