"""
Order Service - Motor de cumplimiento de pedidos
================================================
Crea y modifica pedidos combinando:

- ``permissions``: quién puede operar sobre el cliente / pedido
- ``InventoryService``: reserva y liberación atómica de stock
- ``PricingService``: costo de envío por tramos
- ``order_state_machine``: estados legales y quién puede cambiarlos

La creación es todo-o-nada: las reservas de todas las líneas y el alta del
pedido ocurren en una misma transacción, y cualquier error hace rollback de la
sesión, devolviendo el stock ya descontado en esa llamada.

Después de cada alta o modificación exitosa se cumple::

    subtotal == sum(precio_linea * cantidad_linea)
    total == subtotal + envio
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.attributes import flag_modified, set_committed_value

from services.base import (
    BaseService,
    ConcurrentModificationException,
    NotFoundException,
    ServiceException,
    ValidationException,
)
from services.inventory_service import InventoryService
from services.pricing_service import PricingService
from services import order_state_machine
from services.permissions import (
    Actor,
    can_create_order_for,
    can_delete_order,
    ensure,
    ensure_can_edit,
    ensure_can_view,
    require_actor,
)
from extensions import db
from models import Cliente, OrderState, Pedido, Producto, Proveedor
from utils import safe_int
from utils.security_logger import log_state_change


def _parse_lines(items: Any, allow_empty: bool = False) -> List[Dict[str, int]]:
    """Normaliza ``[{producto_id|id, cantidad}]`` y rechaza productos repetidos."""
    if items is None or (not items and not allow_empty):
        raise ValidationException("El pedido debe tener al menos un artículo")
    if not isinstance(items, (list, tuple)):
        raise ValidationException("Los artículos deben enviarse como lista")

    lineas = []
    vistos = set()
    for item in items:
        if not isinstance(item, dict):
            raise ValidationException(f"Artículo inválido: {item!r}")
        producto_id = item.get('producto_id', item.get('id'))
        cantidad = item.get('cantidad')
        if producto_id is None or cantidad is None:
            raise ValidationException(
                "Cada artículo requiere producto y cantidad",
                details={'item': item},
            )
        try:
            producto_id = int(producto_id)
        except (TypeError, ValueError):
            raise ValidationException(f"Producto inválido: {producto_id!r}")
        if producto_id in vistos:
            raise ValidationException(
                f"El producto {producto_id} está repetido en el pedido",
                details={'producto_id': producto_id},
            )
        vistos.add(producto_id)
        lineas.append({'producto_id': producto_id, 'cantidad': cantidad})
    return lineas


def _parse_notas(notas: Any) -> List[str]:
    if notas is None:
        return []
    if isinstance(notas, str) or not isinstance(notas, (list, tuple)):
        raise ValidationException("Las notas deben enviarse como lista de textos")
    return [str(nota) for nota in notas]


def _parse_envio(envio: Any) -> Decimal:
    try:
        valor = Decimal(str(envio))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationException(f"Costo de envío inválido: {envio!r}")
    if valor < 0:
        raise ValidationException("El costo de envío no puede ser negativo")
    return valor


class OrderService(BaseService[Pedido]):
    """
    Servicio de pedidos.

    Proporciona:
    - Alta de pedidos con reserva de stock y cálculo de totales
    - Modificación restringida por estado y rol
    - Baja de pedidos (devuelve el stock)
    - Marcado de comisión pagada
    - Consultas por vendedor, estado y proveedor
    """

    model_class = Pedido

    def __init__(self, inventory: Optional[InventoryService] = None,
                 pricing: Optional[PricingService] = None):
        super().__init__()
        self.inventory = inventory or InventoryService()
        self.pricing = pricing or PricingService()

    # ===== CREATE =====

    def create_order(
        self,
        actor: Optional[Actor],
        cliente_id: int,
        items: Iterable[Dict[str, Any]],
        notas: Optional[List[str]] = None,
        proveedor_id: Optional[int] = None,
    ) -> Pedido:
        """
        Crea un pedido para un cliente del vendedor.

        Args:
            actor: Usuario autenticado que crea el pedido (queda como vendedor)
            cliente_id: ID del cliente
            items: Lista de ``{'producto_id', 'cantidad'}``
            notas: Notas libres
            proveedor_id: Proveedor asociado (opcional)

        Returns:
            Pedido: Pedido persistido en estado pendiente

        Raises:
            UnauthenticatedException: Si no hay actor
            NotFoundException: Si el cliente, proveedor o algún producto no existe
            PermissionDeniedException: Si el cliente no pertenece al vendedor
            InsufficientStockException: Si alguna línea supera la existencia
            ConfigurationException: Si no hay tramo de envío para el subtotal
        """
        actor = require_actor(actor)

        cliente = db.session.get(Cliente, cliente_id)
        if not cliente:
            raise NotFoundException('Cliente', cliente_id)
        ensure(can_create_order_for(actor, cliente), actor, 'create_order', cliente)

        lineas = _parse_lines(items)
        notas = _parse_notas(notas)

        if proveedor_id is not None and not db.session.get(Proveedor, proveedor_id):
            raise NotFoundException('Proveedor', proveedor_id)

        try:
            items_reservados = []
            for linea in lineas:
                precio = self.inventory.reserve_stock(linea['producto_id'], linea['cantidad'], commit=False)
                producto = db.session.get(Producto, linea['producto_id'])
                items_reservados.append({
                    'producto_id': producto.id,
                    'nombre': producto.nombre,
                    'cantidad': linea['cantidad'],
                    'precio': str(precio),
                })

            pedido = Pedido(
                cliente_id=cliente.id,
                vendedor_id=actor.id,
                proveedor_id=proveedor_id,
                items=items_reservados,
                notas=notas,
                estado=OrderState.PENDING,
                comision_pagada=False,
            )
            pedido.subtotal = pedido.calcular_subtotal()
            pedido.envio = self.pricing.resolve_delivery_cost(pedido.subtotal)
            pedido.total = pedido.subtotal + pedido.envio

            db.session.add(pedido)
            db.session.commit()
        except ServiceException as e:
            db.session.rollback()
            self._log_warning(f"Pedido para cliente {cliente_id} rechazado: {e.message}")
            raise
        except SQLAlchemyError as e:
            db.session.rollback()
            self._log_error(f"Error al guardar el pedido: {str(e)}")
            raise ServiceException(f"No se pudo guardar el pedido: {str(e)}")

        self._log_info(
            f"Pedido {pedido.id} creado por vendedor {actor.id}: "
            f"subtotal={pedido.subtotal} envio={pedido.envio} total={pedido.total}"
        )
        return pedido

    # ===== UPDATE =====

    def update_order(
        self,
        actor: Optional[Actor],
        pedido_id: int,
        estado: Any = None,
        items: Optional[Iterable[Dict[str, Any]]] = None,
        notas: Optional[List[str]] = None,
        envio: Any = None,
    ) -> Pedido:
        """
        Modifica un pedido existente.

        Args:
            actor: Usuario autenticado
            pedido_id: ID del pedido
            estado: Nuevo estado (solo administradores)
            items: Nuevas cantidades de líneas ya existentes ``{'producto_id', 'cantidad'}``
            notas: Reemplazo completo de las notas
            envio: Costo de envío; si se omite se recalcula por tramos

        Returns:
            Pedido: Pedido actualizado

        Raises:
            UnauthenticatedException: Si no hay actor
            NotFoundException: Si el pedido no existe
            PermissionDeniedException: Si el actor no puede editar el pedido o su estado
            ValidationException: Si la transición o los datos son inválidos
            InsufficientStockException: Si un aumento de cantidad supera la existencia
        """
        actor = require_actor(actor)
        pedido = self._load_for_update(pedido_id)

        ensure_can_edit(actor, pedido)
        destino = None
        if estado is not None:
            destino = order_state_machine.check_transition(actor, pedido, estado)

        lineas = _parse_lines(items, allow_empty=True) if items is not None else []
        if lineas and pedido.estado == OrderState.CANCELLED:
            raise ValidationException("No se pueden modificar las cantidades de un pedido cancelado")
        nuevas_notas = _parse_notas(notas) if notas is not None else None
        envio_manual = _parse_envio(envio) if envio is not None else None

        try:
            self._claim(pedido)
            if lineas:
                self._apply_quantity_changes(pedido, lineas)
            self._refresh_prices(pedido)

            if nuevas_notas is not None:
                pedido.notas = nuevas_notas
                flag_modified(pedido, 'notas')

            pedido.subtotal = pedido.calcular_subtotal()
            if envio_manual is not None:
                pedido.envio = envio_manual
            else:
                pedido.envio = self.pricing.resolve_delivery_cost(pedido.subtotal)
            pedido.total = pedido.subtotal + pedido.envio

            anterior = pedido.estado
            if destino is not None and destino != anterior:
                if order_state_machine.releases_stock(anterior, destino):
                    self._release_items(pedido)
                pedido.estado = destino

            db.session.commit()
        except ServiceException as e:
            db.session.rollback()
            self._log_warning(f"Actualización del pedido {pedido_id} rechazada: {e.message}")
            raise
        except SQLAlchemyError as e:
            db.session.rollback()
            self._log_error(f"Error al actualizar el pedido {pedido_id}: {str(e)}")
            raise ServiceException(f"Error actualizando el pedido: {str(e)}")

        if destino is not None and destino != anterior:
            log_state_change(pedido.id, anterior.value, destino.value, actor=actor)
        self._log_info(f"Pedido {pedido.id} actualizado: subtotal={pedido.subtotal} total={pedido.total}")
        return pedido

    # ===== DELETE =====

    def delete_order(self, actor: Optional[Actor], pedido_id: int) -> str:
        """
        Elimina un pedido y devuelve su stock.

        Solo el vendedor que lo creó puede eliminarlo, y solo mientras el
        pedido siga en un estado editable.
        """
        actor = require_actor(actor)
        pedido = self._load_for_update(pedido_id)

        if pedido.vendedor_id != actor.id:
            reason = "No tienes las credenciales"
        else:
            reason = f"El pedido está {pedido.estado.value} y ya no puede eliminarse"
        ensure(can_delete_order(actor, pedido), actor, 'delete', pedido, reason=reason)

        try:
            self._claim(pedido)
            self._release_items(pedido)
            db.session.delete(pedido)
            db.session.commit()
        except ServiceException:
            db.session.rollback()
            raise
        except SQLAlchemyError as e:
            db.session.rollback()
            self._log_error(f"Error al eliminar el pedido {pedido_id}: {str(e)}")
            raise ServiceException(f"No se pudo eliminar el pedido: {str(e)}")

        self._log_info(f"Pedido {pedido_id} eliminado por vendedor {actor.id}")
        return "Pedido eliminado"

    # ===== COMMISSIONS =====

    def mark_commission_paid(self, pedido_id: int) -> Pedido:
        """Marca la comisión del pedido como pagada. Repetirlo no tiene efecto."""
        pedido = self.get_by_id_or_fail(pedido_id)
        if pedido.comision_pagada:
            return pedido
        return self.update(pedido_id, comision_pagada=True)

    # ===== QUERIES =====

    def get_order(self, actor: Optional[Actor], pedido_id: int) -> Pedido:
        pedido = self.get_by_id_or_fail(pedido_id)
        ensure_can_view(actor, pedido)
        return pedido

    def list_orders(self) -> List[Pedido]:
        return Pedido.query.order_by(Pedido.id).all()

    def _scoped_query(self, actor: Actor, estado: Any = None):
        actor = require_actor(actor)
        query = Pedido.query
        if not actor.is_admin:
            query = query.filter(Pedido.vendedor_id == actor.id)
        if estado:
            query = query.filter(Pedido.estado == order_state_machine.parse_state(estado))
        return query

    def list_orders_for(self, actor: Optional[Actor], estado: Any = None,
                        limit: Any = None, offset: Any = 0) -> List[Pedido]:
        """Pedidos visibles para el actor (todos si es administrador), paginados."""
        limit = safe_int(limit, 0) or current_app.config.get('ORDER_PAGE_SIZE', 10)
        offset = safe_int(offset, 0)
        return (
            self._scoped_query(actor, estado)
            .order_by(Pedido.id)
            .offset(offset)
            .limit(limit)
            .all()
        )

    def count_orders_for(self, actor: Optional[Actor], estado: Any = None) -> int:
        return self._scoped_query(actor, estado).count()

    def list_orders_by_supplier(self, actor: Optional[Actor], proveedor_id: int) -> List[Pedido]:
        actor = require_actor(actor)
        return (
            Pedido.query
            .filter(Pedido.vendedor_id == actor.id, Pedido.proveedor_id == proveedor_id)
            .order_by(Pedido.id)
            .all()
        )

    def list_orders_by_state(self, actor: Optional[Actor], estado: Any) -> List[Pedido]:
        actor = require_actor(actor)
        return (
            Pedido.query
            .filter(Pedido.vendedor_id == actor.id,
                    Pedido.estado == order_state_machine.parse_state(estado))
            .order_by(Pedido.id)
            .all()
        )

    def delivered_orders(self, vendedor_id: int) -> List[Pedido]:
        return (
            Pedido.query
            .filter(Pedido.vendedor_id == vendedor_id, Pedido.estado == OrderState.DELIVERED)
            .order_by(Pedido.id)
            .all()
        )

    # ===== HELPER METHODS =====

    def _load_for_update(self, pedido_id: int) -> Pedido:
        """Lee el pedido desde la base bloqueando la fila donde el motor lo permite."""
        pedido = db.session.get(Pedido, pedido_id, with_for_update=True, populate_existing=True)
        if pedido is None:
            raise NotFoundException('Pedido', pedido_id)
        return pedido

    def _claim(self, pedido: Pedido) -> None:
        """
        Incrementa ``version`` solo si nadie modificó el pedido desde que se leyó.

        Raises:
            ConcurrentModificationException: Si otra operación ganó la carrera
        """
        result = db.session.execute(
            update(Pedido)
            .where(Pedido.id == pedido.id, Pedido.version == pedido.version)
            .values(version=Pedido.version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ConcurrentModificationException('Pedido', pedido.id)
        set_committed_value(pedido, 'version', pedido.version + 1)

    def _apply_quantity_changes(self, pedido: Pedido, lineas: List[Dict[str, Any]]) -> None:
        """Ajusta cantidades de líneas existentes reservando o liberando la diferencia."""
        items = [dict(item) for item in pedido.items or []]
        por_producto = {int(item['producto_id']): item for item in items}

        for linea in lineas:
            item = por_producto.get(linea['producto_id'])
            if item is None:
                raise ValidationException(
                    f"El producto {linea['producto_id']} no está en el pedido",
                    details={'producto_id': linea['producto_id']},
                )
            nueva = self.inventory.validate_quantity(linea['cantidad'])
            delta = nueva - int(item['cantidad'])
            if delta > 0:
                self.inventory.reserve_stock(linea['producto_id'], delta, commit=False)
            elif delta < 0:
                self.inventory.release_stock(linea['producto_id'], -delta, commit=False)
            item['cantidad'] = nueva

        pedido.items = items
        flag_modified(pedido, 'items')

    def _refresh_prices(self, pedido: Pedido) -> None:
        """Toma el precio vigente de cada producto; si fue borrado conserva el guardado."""
        items = []
        for item in pedido.items or []:
            item = dict(item)
            producto = db.session.get(Producto, int(item['producto_id']))
            if producto is not None:
                item['precio'] = str(Decimal(producto.precio))
            items.append(item)
        pedido.items = items
        flag_modified(pedido, 'items')

    def _release_items(self, pedido: Pedido) -> None:
        if pedido.estado == OrderState.CANCELLED:
            return
        for item in pedido.items or []:
            try:
                self.inventory.release_stock(int(item['producto_id']), int(item['cantidad']), commit=False)
            except NotFoundException:
                self._log_warning(
                    f"Producto {item['producto_id']} del pedido {pedido.id} ya no existe; no se repone stock"
                )
