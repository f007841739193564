"""
Commission Service - Historial de comisiones de vendedores
==========================================================
Registra los pagos de comisión a vendedores. El historial es de solo
agregado: este servicio no expone modificación ni borrado de registros.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from services.base import AppendOnlyService, NotFoundException, ServiceException, ValidationException
from extensions import db
from models import ComisionHistorial, Pedido, Usuario
from utils.security_logger import log_transaction


class CommissionService(AppendOnlyService[ComisionHistorial]):

    model_class = ComisionHistorial

    def record_commission(self, vendedor_id: int, data: Dict[str, Any]) -> Usuario:
        """
        Agrega un pago de comisión al historial del vendedor.

        Args:
            vendedor_id: ID del vendedor
            data: ``pedido_id``, ``monto`` y ``pagado_por``

        Returns:
            Usuario: Vendedor con su historial actualizado

        Raises:
            NotFoundException: Si el vendedor o el pedido no existen
            ValidationException: Si faltan datos o el monto no es positivo
        """
        vendedor = db.session.get(Usuario, vendedor_id)
        if not vendedor:
            raise NotFoundException('Usuario', vendedor_id)

        pedido_id = data.get('pedido_id')
        pagado_por = (data.get('pagado_por') or '').strip()
        if pedido_id is None or not pagado_por:
            raise ValidationException("pedido_id y pagado_por son requeridos")

        pedido = db.session.get(Pedido, pedido_id)
        if not pedido:
            raise NotFoundException('Pedido', pedido_id)

        try:
            monto = Decimal(str(data.get('monto')))
        except (InvalidOperation, ValueError, TypeError):
            raise ValidationException(f"Monto inválido: {data.get('monto')!r}")
        if monto <= 0:
            raise ValidationException("El monto de la comisión debe ser positivo")

        try:
            registro = ComisionHistorial(
                vendedor_id=vendedor.id,
                pedido_id=pedido.id,
                fecha=datetime.utcnow(),
                monto=monto,
                pagado_por=pagado_por,
            )
            db.session.add(registro)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            self._log_error(f"Error al agregar el historial de comisión: {str(e)}")
            raise ServiceException(f"Error al agregar el historial de comisión: {str(e)}")

        log_transaction('commission_payout', monto, details={
            'vendedor_id': vendedor.id, 'pedido_id': pedido.id, 'pagado_por': pagado_por,
        })
        self._log_info(f"Comisión de {monto} registrada para vendedor {vendedor.id} (pedido {pedido.id})")
        return vendedor

    def get_history(self, vendedor_id: int) -> List[ComisionHistorial]:
        if not db.session.get(Usuario, vendedor_id):
            raise NotFoundException('Usuario', vendedor_id)
        return (
            ComisionHistorial.query
            .filter_by(vendedor_id=vendedor_id)
            .order_by(ComisionHistorial.id)
            .all()
        )

    def total_paid(self, vendedor_id: int) -> Decimal:
        total = (
            db.session.query(func.coalesce(func.sum(ComisionHistorial.monto), 0))
            .filter(ComisionHistorial.vendedor_id == vendedor_id)
            .scalar()
        )
        return Decimal(str(total))
