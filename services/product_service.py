"""
Product Service - Catálogo de productos
=======================================
Alta, modificación, búsqueda y carga masiva de productos.

El SKU nunca lo envía quien llama: siempre se deriva de
``skuproveedor + skuproducto``. Al actualizar un producto existente solo se
tocan los campos enviados; la existencia que no se envía queda como está.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from services.base import BaseService, NotFoundException, ServiceException, ValidationException
from services.permissions import Actor, can_manage_catalogue, ensure, ensure_can_edit
from extensions import db
from models import Producto, Proveedor


PRODUCT_FIELDS = ('nombre', 'skuproveedor', 'skuproducto', 'precio', 'existencia', 'proveedor_id')
SEARCH_LIMIT = 10


class ProductService(BaseService[Producto]):

    model_class = Producto

    # ===== CRUD =====

    def create_product(self, actor: Optional[Actor], data: Dict[str, Any]) -> Producto:
        """
        Crea un producto.

        Raises:
            PermissionDeniedException: Si el actor no es administrador
            ValidationException: Si faltan datos o el skuproducto ya existe
        """
        ensure(can_manage_catalogue(actor), actor, 'create', Producto)
        values = self._clean(data, partial=False)
        if Producto.query.filter_by(skuproducto=values['skuproducto']).first():
            raise ValidationException(
                f"El SKU de producto '{values['skuproducto']}' ya existe",
                details={'field': 'skuproducto'},
            )
        values['sku'] = Producto.build_sku(values.get('skuproveedor'), values['skuproducto'])
        return self.create(**values)

    def update_product(self, actor: Optional[Actor], producto_id: int, data: Dict[str, Any]) -> Producto:
        producto = self.get_by_id_or_fail(producto_id)
        ensure_can_edit(actor, producto)
        values = self._clean(data, partial=True)

        nuevo_sku = values.get('skuproducto')
        if nuevo_sku and nuevo_sku != producto.skuproducto:
            if Producto.query.filter_by(skuproducto=nuevo_sku).first():
                raise ValidationException(
                    f"El SKU de producto '{nuevo_sku}' ya existe",
                    details={'field': 'skuproducto'},
                )
        values['sku'] = Producto.build_sku(
            values.get('skuproveedor', producto.skuproveedor),
            values.get('skuproducto', producto.skuproducto),
        )
        return self.update(producto_id, **values)

    def delete_product(self, actor: Optional[Actor], producto_id: int) -> str:
        producto = self.get_by_id_or_fail(producto_id)
        ensure_can_edit(actor, producto, action='delete')
        self.delete(producto_id)
        return "Producto eliminado"

    def get_product(self, producto_id: int) -> Producto:
        return self.get_by_id_or_fail(producto_id)

    def list_products(self) -> List[Producto]:
        return self.get_all()

    def list_by_supplier_sku(self, skuproveedor: str) -> List[Producto]:
        return Producto.query.filter_by(skuproveedor=skuproveedor).order_by(Producto.id).all()

    def search(self, texto: str) -> List[Producto]:
        """Búsqueda sin distinguir mayúsculas sobre nombre y SKU."""
        texto = (texto or '').strip()
        if not texto:
            return []
        patron = f"%{texto}%"
        return (
            Producto.query
            .filter(or_(Producto.nombre.ilike(patron), Producto.sku.ilike(patron)))
            .order_by(Producto.nombre)
            .limit(SEARCH_LIMIT)
            .all()
        )

    # ===== BULK =====

    def insert_products(self, actor: Optional[Actor], productos: List[Dict[str, Any]]) -> List[Producto]:
        """Inserta todos los productos o ninguno."""
        ensure(can_manage_catalogue(actor), actor, 'create', Producto)
        nuevos = []
        try:
            for data in productos:
                values = self._clean(data, partial=False)
                values['sku'] = Producto.build_sku(values.get('skuproveedor'), values['skuproducto'])
                producto = Producto(**values)
                db.session.add(producto)
                nuevos.append(producto)
            db.session.commit()
        except ValidationException:
            db.session.rollback()
            raise
        except SQLAlchemyError as e:
            db.session.rollback()
            self._log_error(f"Error en carga masiva de productos: {str(e)}")
            raise ServiceException(f"Error en carga masiva de productos: {str(e)}")
        self._log_info(f"{len(nuevos)} productos insertados")
        return nuevos

    def upsert_products(self, actor: Optional[Actor], productos: List[Dict[str, Any]]) -> Dict[str, list]:
        """
        Crea o actualiza productos buscando por ``skuproducto``.

        Un error en una fila no detiene el resto: se informa en ``errors``.

        Returns:
            dict: ``{'success': [Producto], 'errors': [{'skuproducto', 'message'}]}``
        """
        ensure(can_manage_catalogue(actor), actor, 'upsert', Producto)
        success = []
        errors = []

        for data in productos:
            skuproducto = data.get('skuproducto')
            try:
                existente = Producto.query.filter_by(skuproducto=skuproducto).first() if skuproducto else None
                if existente:
                    values = self._clean(data, partial=True)
                    values['sku'] = Producto.build_sku(
                        values.get('skuproveedor', existente.skuproveedor), existente.skuproducto
                    )
                    for key, value in values.items():
                        setattr(existente, key, value)
                    producto = existente
                else:
                    values = self._clean(data, partial=False)
                    values['sku'] = Producto.build_sku(values.get('skuproveedor'), values['skuproducto'])
                    producto = Producto(**values)
                    db.session.add(producto)
                db.session.commit()
                success.append(producto)
            except ServiceException as e:
                db.session.rollback()
                errors.append({'skuproducto': skuproducto, 'message': e.message})
            except SQLAlchemyError as e:
                db.session.rollback()
                self._log_warning(f"Upsert de producto {skuproducto} fallido: {str(e)}")
                errors.append({'skuproducto': skuproducto, 'message': str(e.orig if hasattr(e, 'orig') else e)})

        self._log_info(f"Upsert de productos: {len(success)} ok, {len(errors)} con error")
        return {'success': success, 'errors': errors}

    # ===== HELPERS =====

    def _clean(self, data: Dict[str, Any], partial: bool) -> Dict[str, Any]:
        values = {k: data[k] for k in PRODUCT_FIELDS if k in data}

        if not partial:
            missing = [f for f in ('nombre', 'skuproducto', 'precio') if values.get(f) in (None, '')]
            if missing:
                raise ValidationException(
                    f"Campos requeridos faltantes: {', '.join(missing)}",
                    details={'missing_fields': missing},
                )
            values.setdefault('skuproveedor', '')
            values.setdefault('existencia', 0)

        if 'precio' in values:
            try:
                values['precio'] = Decimal(str(values['precio']))
            except (InvalidOperation, ValueError, TypeError):
                raise ValidationException("Precio inválido", details={'field': 'precio'})
            if values['precio'] < 0:
                raise ValidationException("El precio no puede ser negativo", details={'field': 'precio'})

        if 'existencia' in values:
            existencia = values['existencia']
            if isinstance(existencia, bool) or not isinstance(existencia, int) or existencia < 0:
                raise ValidationException("La existencia debe ser un entero no negativo",
                                          details={'field': 'existencia'})

        if values.get('proveedor_id') is not None and not db.session.get(Proveedor, values['proveedor_id']):
            raise NotFoundException('Proveedor', values['proveedor_id'])

        return values
