"""
Inventory Service - Reserva y liberación de stock
=================================================
Servicio dueño de la existencia de cada producto.

La reserva se hace con un único UPDATE condicional::

    UPDATE productos SET existencia = existencia - :cantidad
    WHERE id = :id AND existencia >= :cantidad

Si no se afecta ninguna fila el producto no existe o no alcanza el stock.
Nunca se lee la existencia para luego escribirla, por lo que dos reservas
concurrentes sobre el mismo producto no pueden superar lo disponible.

Las operaciones aceptan ``commit=False`` para participar de una transacción
mayor (p.ej. la creación de un pedido con varias líneas); en ese caso quien
llama es responsable de hacer commit o rollback.
"""

from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from services.base import (
    BaseService,
    InsufficientStockException,
    NotFoundException,
    ServiceException,
    ValidationException,
)
from extensions import db
from models import Producto


class InventoryService(BaseService[Producto]):
    """
    Libro de inventario.

    Proporciona:
    - Reserva atómica de stock (devuelve el precio unitario vigente)
    - Liberación de stock previamente reservado
    - Consulta de existencia actual
    """

    model_class = Producto

    def reserve_stock(self, producto_id: int, cantidad: Any, commit: bool = True) -> Decimal:
        """
        Descuenta ``cantidad`` de la existencia del producto.

        Args:
            producto_id: ID del producto
            cantidad: Unidades a reservar (entero positivo)
            commit: Si es False no se confirma la transacción

        Returns:
            Decimal: Precio unitario del producto al momento de la reserva

        Raises:
            ValidationException: Si la cantidad no es un entero positivo
            NotFoundException: Si el producto no existe
            InsufficientStockException: Si la cantidad supera la existencia
        """
        cantidad = self.validate_quantity(cantidad)

        try:
            result = db.session.execute(
                update(Producto)
                .where(Producto.id == producto_id, Producto.existencia >= cantidad)
                .values(existencia=Producto.existencia - cantidad)
                .execution_options(synchronize_session=False)
            )
            producto = self._refresh(producto_id)
        except SQLAlchemyError as e:
            db.session.rollback()
            self._log_error(f"Error al reservar stock del producto {producto_id}: {str(e)}")
            raise ServiceException(f"Error al reservar stock: {str(e)}")

        if result.rowcount == 0:
            if producto is None:
                raise NotFoundException('Producto', producto_id)
            self._log_warning(
                f"Stock insuficiente para {producto.sku}: disponible {producto.existencia}, "
                f"solicitado {cantidad}"
            )
            raise InsufficientStockException(producto.id, producto.nombre, producto.existencia, cantidad)

        precio = Decimal(producto.precio)
        if commit:
            self.commit()

        self._log_debug(f"Reservadas {cantidad} u. del producto {producto_id} a {precio}")
        return precio

    def release_stock(self, producto_id: int, cantidad: Any, commit: bool = True) -> None:
        """
        Devuelve ``cantidad`` a la existencia del producto.

        No es idempotente: cada reserva debe liberarse una sola vez.

        Raises:
            ValidationException: Si la cantidad no es un entero positivo
            NotFoundException: Si el producto no existe
        """
        cantidad = self.validate_quantity(cantidad)

        try:
            result = db.session.execute(
                update(Producto)
                .where(Producto.id == producto_id)
                .values(existencia=Producto.existencia + cantidad)
                .execution_options(synchronize_session=False)
            )
            self._refresh(producto_id)
        except SQLAlchemyError as e:
            db.session.rollback()
            self._log_error(f"Error al liberar stock del producto {producto_id}: {str(e)}")
            raise ServiceException(f"Error al liberar stock: {str(e)}")

        if result.rowcount == 0:
            raise NotFoundException('Producto', producto_id)

        if commit:
            self.commit()

        self._log_debug(f"Liberadas {cantidad} u. del producto {producto_id}")

    def get_stock(self, producto_id: int) -> int:
        """Existencia actual leída de la base (no de la sesión)."""
        existencia = db.session.execute(
            select(Producto.existencia).where(Producto.id == producto_id)
        ).scalar_one_or_none()
        if existencia is None:
            raise NotFoundException('Producto', producto_id)
        return existencia

    # ===== HELPER METHODS =====

    @staticmethod
    def validate_quantity(cantidad: Any) -> int:
        if isinstance(cantidad, bool) or not isinstance(cantidad, int):
            raise ValidationException(
                f"Cantidad inválida: {cantidad!r}",
                details={'cantidad': repr(cantidad)},
            )
        if cantidad <= 0:
            raise ValidationException("La cantidad debe ser positiva", details={'cantidad': cantidad})
        return cantidad

    @staticmethod
    def _refresh(producto_id: int) -> Optional[Producto]:
        # El UPDATE no sincroniza la sesión; recargar la fila evita valores viejos
        return db.session.get(Producto, producto_id, populate_existing=True)
