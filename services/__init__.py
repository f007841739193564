"""
Services Package
================
Capa de servicios para la lógica de negocio del backend de ventas.

Los servicios encapsulan la lógica de negocio y proporcionan una interfaz
limpia para operaciones complejas. Todos los servicios heredan de BaseService.

Estructura:
-----------
- base: Clase base y excepciones
- permissions: Reglas de visibilidad y edición (Actor, can_view, can_edit)
- order_state_machine: Estados de pedido y transiciones permitidas
- pricing_service: Tramos de costo de envío
- inventory_service: Reserva y liberación atómica de existencia
- order_service: Alta, modificación y borrado de pedidos
- commission_service: Historial de comisiones pagadas
- client_service / product_service / supplier_service / user_service: ABM

Uso:
----
    from services import OrderService, Actor
    from models import Role

    actor = Actor(id=vendedor.id, role=Role.SELLER)
    pedido = OrderService().create_order(actor, cliente_id=1, items=[{'producto_id': 3, 'cantidad': 2}])
"""

# Base service and exceptions
from services.base import (
    BaseService,
    AppendOnlyService,
    ServiceException,
    ValidationException,
    UnauthenticatedException,
    NotFoundException,
    PermissionDeniedException,
    InsufficientStockException,
    ConfigurationException,
    ConcurrentModificationException,
)

from services.permissions import Actor, can_view, can_edit

# Domain services
from services.pricing_service import PricingService
from services.inventory_service import InventoryService
from services.order_service import OrderService
from services.commission_service import CommissionService
from services.client_service import ClientService
from services.product_service import ProductService
from services.supplier_service import SupplierService
from services.user_service import UserService


__all__ = [
    # Base classes
    'BaseService',
    'AppendOnlyService',

    # Exceptions
    'ServiceException',
    'ValidationException',
    'UnauthenticatedException',
    'NotFoundException',
    'PermissionDeniedException',
    'InsufficientStockException',
    'ConfigurationException',
    'ConcurrentModificationException',

    # Authorization
    'Actor',
    'can_view',
    'can_edit',

    # Domain services
    'PricingService',
    'InventoryService',
    'OrderService',
    'CommissionService',
    'ClientService',
    'ProductService',
    'SupplierService',
    'UserService',
]
