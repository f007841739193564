"""
Supplier Service - Gestión de proveedores
"""

from typing import Any, Dict, List, Optional

from services.base import BaseService, ValidationException
from services.permissions import Actor, can_manage_catalogue, ensure, ensure_can_edit
from models import Proveedor


SUPPLIER_FIELDS = ('nombre', 'codigo', 'email', 'telefono', 'direccion')


class SupplierService(BaseService[Proveedor]):

    model_class = Proveedor

    def create_supplier(self, actor: Optional[Actor], data: Dict[str, Any]) -> Proveedor:
        """
        Registra un proveedor.

        Raises:
            PermissionDeniedException: Si el actor no es administrador
            ValidationException: Si faltan campos o el email/código ya existen
        """
        ensure(can_manage_catalogue(actor), actor, 'create', Proveedor)

        missing_fields = [f for f in ('nombre', 'codigo', 'email') if not data.get(f)]
        if missing_fields:
            raise ValidationException(
                f"Campos requeridos faltantes: {', '.join(missing_fields)}",
                details={'missing_fields': missing_fields}
            )

        values = {k: data[k] for k in SUPPLIER_FIELDS if k in data}
        values['email'] = values['email'].strip().lower()
        self._check_unique(values)
        return self.create(**values)

    def get_supplier(self, proveedor_id: int) -> Proveedor:
        return self.get_by_id_or_fail(proveedor_id)

    def list_suppliers(self, solo_activos: bool = False) -> List[Proveedor]:
        if solo_activos:
            return self.get_all(estado=True)
        return self.get_all()

    def update_supplier(self, actor: Optional[Actor], proveedor_id: int, data: Dict[str, Any]) -> Proveedor:
        proveedor = self.get_by_id_or_fail(proveedor_id)
        ensure_can_edit(actor, proveedor)

        values = {k: data[k] for k in SUPPLIER_FIELDS if k in data}
        if 'email' in values:
            values['email'] = (values['email'] or '').strip().lower()
        self._check_unique(values, exclude_id=proveedor.id)
        return self.update(proveedor_id, **values)

    def toggle_state(self, actor: Optional[Actor], proveedor_id: int) -> Proveedor:
        """Habilita o deshabilita al proveedor."""
        proveedor = self.get_by_id_or_fail(proveedor_id)
        ensure_can_edit(actor, proveedor, action='toggle')
        return self.update(proveedor_id, estado=not proveedor.estado)

    def delete_supplier(self, actor: Optional[Actor], proveedor_id: int) -> str:
        proveedor = self.get_by_id_or_fail(proveedor_id)
        ensure_can_edit(actor, proveedor, action='delete')
        if proveedor.productos.count():
            raise ValidationException(
                "El proveedor tiene productos asociados y no puede eliminarse",
                details={'proveedor_id': proveedor_id},
            )
        self.delete(proveedor_id)
        return "Proveedor eliminado"

    def _check_unique(self, values: Dict[str, Any], exclude_id: Optional[int] = None):
        for field in ('email', 'codigo'):
            if field not in values:
                continue
            query = Proveedor.query.filter(getattr(Proveedor, field) == values[field])
            if exclude_id is not None:
                query = query.filter(Proveedor.id != exclude_id)
            if query.first():
                raise ValidationException(
                    f"Ya existe un proveedor con ese {field}",
                    details={'field': field},
                )
