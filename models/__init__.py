"""
Models Package
==============
Este paquete contiene todos los modelos del sistema organizados por funcionalidad.

Estructura:
- core: Usuario, roles e historial de comisiones
- clients: Cliente
- suppliers: Proveedor y Producto
- orders: Pedido y sus estados
- pricing: CostoEnvio (tramos de costo de envío)
"""

from extensions import db

# Core models - Usuario, roles, comisiones
from models.core import (
    Role,
    Usuario,
    ComisionHistorial,
)

# Client models
from models.clients import Cliente

# Supplier and product models
from models.suppliers import (
    Proveedor,
    Producto,
)

# Order models
from models.orders import (
    OrderState,
    EDITABLE_STATES,
    Pedido,
)

# Pricing models
from models.pricing import CostoEnvio


__all__ = [
    'db',
    # Core
    'Role',
    'Usuario',
    'ComisionHistorial',
    # Clients
    'Cliente',
    # Suppliers
    'Proveedor',
    'Producto',
    # Orders
    'OrderState',
    'EDITABLE_STATES',
    'Pedido',
    # Pricing
    'CostoEnvio',
]
