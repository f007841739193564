"""
Pricing Service - Costo de envío por tramos
===========================================
Resuelve el costo de envío de un pedido a partir de su subtotal usando la
tabla de tramos ``CostoEnvio`` y administra dicha tabla.

Los tramos son rangos semiabiertos ``[minimo, maximo)``; un ``maximo`` nulo
cubre todo lo que esté por encima de ``minimo``. La tabla nunca puede tener
solapamientos y la búsqueda debe encontrar exactamente un tramo: si no lo
encuentra se lanza ``ConfigurationException`` en lugar de asumir envío cero.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import delete, or_
from sqlalchemy.exc import SQLAlchemyError

from services.base import (
    BaseService,
    ConfigurationException,
    ServiceException,
    ValidationException,
)
from services.permissions import Actor, can_manage_catalogue, ensure, ensure_can_edit
from extensions import db
from models import CostoEnvio


# (minimo, maximo, costo) usados por `flask tiers seed`
DEFAULT_TIERS: Tuple[Tuple[str, Optional[str], str], ...] = (
    ('0', '100', '10'),
    ('100', '500', '5'),
    ('500', None, '0'),
)


def _to_decimal(value: Any, field: str) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationException(f"Valor inválido para {field}: {value!r}", details={'field': field})


def _overlaps(min_a, max_a, min_b, max_b) -> bool:
    a_below_b_end = max_b is None or min_a < max_b
    b_below_a_end = max_a is None or min_b < max_a
    return a_below_b_end and b_below_a_end


class PricingService(BaseService[CostoEnvio]):
    """Política de precios: costo de envío por tramos de subtotal."""

    model_class = CostoEnvio

    def resolve_delivery_cost(self, subtotal: Any) -> Decimal:
        """
        Obtiene el costo de envío del tramo que contiene ``subtotal``.

        Raises:
            ValidationException: Si el subtotal es negativo o inválido
            ConfigurationException: Si ningún tramo (o más de uno) cubre el subtotal
        """
        subtotal = _to_decimal(subtotal, 'subtotal')
        if subtotal < 0:
            raise ValidationException("El subtotal no puede ser negativo")

        tramos = (
            CostoEnvio.query
            .filter(CostoEnvio.minimo <= subtotal)
            .filter(or_(CostoEnvio.maximo.is_(None), CostoEnvio.maximo > subtotal))
            .all()
        )

        if not tramos:
            self._log_error(f"Sin tramo de envío para subtotal {subtotal}")
            raise ConfigurationException(
                f"No hay un costo de envío configurado para el subtotal {subtotal}",
                details={'subtotal': str(subtotal)},
            )
        if len(tramos) > 1:
            self._log_error(f"Tramos de envío solapados para subtotal {subtotal}: {[t.id for t in tramos]}")
            raise ConfigurationException(
                f"Hay {len(tramos)} tramos de envío que cubren el subtotal {subtotal}",
                details={'subtotal': str(subtotal), 'tramos': [t.id for t in tramos]},
            )

        return Decimal(tramos[0].costo)

    # ===== TIER MANAGEMENT =====

    def list_tiers(self) -> List[CostoEnvio]:
        return CostoEnvio.query.order_by(CostoEnvio.minimo).all()

    def create_tier(self, actor: Optional[Actor], data: Dict[str, Any]) -> CostoEnvio:
        """
        Crea un tramo de envío.

        Args:
            actor: Usuario autenticado (administrador)
            data: minimo, maximo (opcional, nulo = sin tope) y costo

        Raises:
            PermissionDeniedException: Si el actor no es administrador
            ValidationException: Si el rango es inválido o se solapa con otro tramo
        """
        ensure(can_manage_catalogue(actor), actor, 'create', CostoEnvio)
        minimo, maximo, costo = self._validate_range(data)
        self._ensure_no_overlap(minimo, maximo)
        return self.create(minimo=minimo, maximo=maximo, costo=costo)

    def update_tier(self, actor: Optional[Actor], tier_id: int, data: Dict[str, Any]) -> CostoEnvio:
        tramo = self.get_by_id_or_fail(tier_id)
        ensure_can_edit(actor, tramo)
        merged = {
            'minimo': data.get('minimo', tramo.minimo),
            'maximo': data['maximo'] if 'maximo' in data else tramo.maximo,
            'costo': data.get('costo', tramo.costo),
        }
        minimo, maximo, costo = self._validate_range(merged)
        self._ensure_no_overlap(minimo, maximo, exclude_id=tier_id)
        return self.update(tier_id, minimo=minimo, maximo=maximo, costo=costo)

    def delete_tier(self, actor: Optional[Actor], tier_id: int) -> bool:
        ensure_can_edit(actor, self.get_by_id_or_fail(tier_id), action='delete')
        return self.delete(tier_id)

    def find_gaps(self) -> List[Tuple[Decimal, Optional[Decimal]]]:
        """Rangos de subtotal no cubiertos por ningún tramo, empezando en 0."""
        gaps = []
        cursor = Decimal('0')
        for tramo in self.list_tiers():
            if tramo.minimo > cursor:
                gaps.append((cursor, Decimal(tramo.minimo)))
            if tramo.maximo is None:
                return gaps
            cursor = max(cursor, Decimal(tramo.maximo))
        gaps.append((cursor, None))
        return gaps

    def seed_tiers(self, tiers: Iterable[Tuple[Any, Any, Any]] = DEFAULT_TIERS) -> List[CostoEnvio]:
        """Reemplaza la tabla de tramos completa en una sola transacción.

        Lo invoca `flask tiers seed`, sin actor.
        """
        nuevos = []
        try:
            db.session.execute(delete(CostoEnvio).execution_options(synchronize_session=False))
            for previo in [obj for obj in db.session.identity_map.values() if isinstance(obj, CostoEnvio)]:
                db.session.expunge(previo)
            for minimo, maximo, costo in tiers:
                minimo, maximo, costo = self._validate_range(
                    {'minimo': minimo, 'maximo': maximo, 'costo': costo}
                )
                for previo in nuevos:
                    if _overlaps(minimo, maximo, previo.minimo, previo.maximo):
                        raise ValidationException(
                            f"El tramo [{minimo}, {maximo}) se solapa con [{previo.minimo}, {previo.maximo})"
                        )
                tramo = CostoEnvio(minimo=minimo, maximo=maximo, costo=costo)
                db.session.add(tramo)
                nuevos.append(tramo)
            db.session.commit()
        except ValidationException:
            db.session.rollback()
            raise
        except SQLAlchemyError as e:
            db.session.rollback()
            self._log_error(f"Error al cargar tramos de envío: {str(e)}")
            raise ServiceException(f"Error al cargar tramos de envío: {str(e)}")

        self._log_info(f"{len(nuevos)} tramos de envío cargados")
        return nuevos

    # ===== HELPERS =====

    def _validate_range(self, data: Dict[str, Any]):
        if data.get('minimo') is None or data.get('costo') is None:
            raise ValidationException("minimo y costo son requeridos")
        minimo = _to_decimal(data['minimo'], 'minimo')
        maximo = data.get('maximo')
        maximo = _to_decimal(maximo, 'maximo') if maximo is not None else None
        costo = _to_decimal(data['costo'], 'costo')

        if minimo < 0:
            raise ValidationException("El mínimo del tramo no puede ser negativo")
        if costo < 0:
            raise ValidationException("El costo de envío no puede ser negativo")
        if maximo is not None and maximo <= minimo:
            raise ValidationException(
                "El máximo del tramo debe ser mayor que el mínimo",
                details={'minimo': str(minimo), 'maximo': str(maximo)},
            )
        return minimo, maximo, costo

    def _ensure_no_overlap(self, minimo, maximo, exclude_id: Optional[int] = None):
        for tramo in self.list_tiers():
            if tramo.id == exclude_id:
                continue
            if _overlaps(minimo, maximo, Decimal(tramo.minimo),
                         Decimal(tramo.maximo) if tramo.maximo is not None else None):
                raise ValidationException(
                    f"El tramo [{minimo}, {maximo}) se solapa con el tramo {tramo.id} "
                    f"[{tramo.minimo}, {tramo.maximo})",
                    details={'tramo_id': tramo.id},
                )
