"""
Tests for supplier management.
"""
import pytest

from services.base import PermissionDeniedException, ValidationException
from services.supplier_service import SupplierService


@pytest.fixture
def suppliers(app):
    return SupplierService()


@pytest.mark.unit
def test_create_supplier(suppliers, admin):
    proveedor = suppliers.create_supplier(admin, {'nombre': 'Sur', 'codigo': 'SUR', 'email': 'SUR@prov.test'})
    assert proveedor.email == 'sur@prov.test'
    assert proveedor.estado is True


@pytest.mark.unit
def test_create_supplier_duplicate_email(suppliers, admin, proveedor):
    with pytest.raises(ValidationException):
        suppliers.create_supplier(admin, {'nombre': 'Otro', 'codigo': 'OT', 'email': proveedor.email})


@pytest.mark.unit
def test_supplier_writes_require_admin(suppliers, seller, proveedor):
    with pytest.raises(PermissionDeniedException) as exc:
        suppliers.create_supplier(seller, {'nombre': 'X', 'codigo': 'X', 'email': 'x@x.test'})
    assert exc.value.details == {'action': 'create', 'resource': 'Proveedor'}
    with pytest.raises(PermissionDeniedException):
        suppliers.update_supplier(seller, proveedor.id, {'nombre': 'X'})
    with pytest.raises(PermissionDeniedException):
        suppliers.toggle_state(seller, proveedor.id)
    with pytest.raises(PermissionDeniedException):
        suppliers.delete_supplier(seller, proveedor.id)


@pytest.mark.unit
def test_toggle_state_and_active_listing(suppliers, admin, proveedor):
    assert suppliers.toggle_state(admin, proveedor.id).estado is False
    assert suppliers.list_suppliers(solo_activos=True) == []
    assert len(suppliers.list_suppliers()) == 1
    assert suppliers.toggle_state(admin, proveedor.id).estado is True


@pytest.mark.unit
def test_update_supplier_keeps_own_email(suppliers, admin, proveedor):
    actualizado = suppliers.update_supplier(admin, proveedor.id, {'email': proveedor.email, 'telefono': '123'})
    assert actualizado.telefono == '123'


@pytest.mark.integration
def test_delete_supplier_with_products_is_rejected(suppliers, admin, proveedor, producto):
    with pytest.raises(ValidationException):
        suppliers.delete_supplier(admin, proveedor.id)


@pytest.mark.integration
def test_delete_supplier(suppliers, admin, proveedor):
    assert suppliers.delete_supplier(admin, proveedor.id) == "Proveedor eliminado"
    assert suppliers.list_suppliers() == []
