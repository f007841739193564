"""
Modelos de Pedidos

Un pedido guarda sus líneas embebidas (JSON) con el precio unitario tomado al
momento de reservar el stock, de modo que subtotal y total siempre pueden
recalcularse desde las propias líneas.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from extensions import db


class OrderState(str, Enum):
    PENDING = 'pendiente'
    APPROVED = 'aprobado'
    OBSERVED = 'observado'
    DELIVERED = 'entregado'
    CANCELLED = 'cancelado'


# Estados en los que un vendedor todavía puede modificar el pedido
EDITABLE_STATES = frozenset({OrderState.PENDING, OrderState.APPROVED, OrderState.OBSERVED})


class Pedido(db.Model):
    __tablename__ = 'pedidos'

    id = db.Column(db.Integer, primary_key=True)
    cliente_id = db.Column(db.Integer, db.ForeignKey('clientes.id'), nullable=False, index=True)
    vendedor_id = db.Column(db.Integer, db.ForeignKey('usuarios.id'), nullable=False, index=True)
    proveedor_id = db.Column(db.Integer, db.ForeignKey('proveedores.id'), index=True)

    # [{producto_id, nombre, cantidad, precio}]
    items = db.Column(db.JSON, nullable=False, default=list)
    notas = db.Column(db.JSON, nullable=False, default=list)

    subtotal = db.Column(db.Numeric(15, 2), nullable=False, default=Decimal('0'))
    envio = db.Column(db.Numeric(15, 2), nullable=False, default=Decimal('0'))
    total = db.Column(db.Numeric(15, 2), nullable=False, default=Decimal('0'))
    estado = db.Column(
        db.Enum(OrderState, name='pedido_estado', values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=OrderState.PENDING,
        index=True,
    )
    comision_pagada = db.Column(db.Boolean, nullable=False, default=False)
    # Se incrementa en cada modificación; ver OrderService._claim
    version = db.Column(db.Integer, nullable=False, default=1, server_default='1')
    creado = db.Column(db.DateTime, default=datetime.utcnow)

    # Relaciones
    cliente = db.relationship('Cliente', back_populates='pedidos')
    vendedor = db.relationship('Usuario')
    proveedor = db.relationship('Proveedor')

    def __repr__(self):
        return f'<Pedido {self.id} - {self.estado.value if self.estado else None}>'

    @property
    def is_editable(self):
        return self.estado in EDITABLE_STATES

    def calcular_subtotal(self):
        """Suma precio unitario reservado x cantidad de cada línea."""
        return sum(
            (Decimal(str(item['precio'])) * int(item['cantidad']) for item in self.items or []),
            Decimal('0'),
        )

    def to_dict(self):
        """Pedido con cliente, vendedor y proveedor resueltos."""
        return {
            'id': self.id,
            'items': [
                {
                    'producto_id': item['producto_id'],
                    'nombre': item.get('nombre'),
                    'cantidad': item['cantidad'],
                    'precio': float(Decimal(str(item['precio']))),
                }
                for item in self.items or []
            ],
            'cliente': self.cliente.to_dict() if self.cliente else None,
            'vendedor': self.vendedor.to_dict() if self.vendedor else None,
            'proveedor': self.proveedor.to_dict() if self.proveedor else None,
            'subtotal': float(self.subtotal) if self.subtotal is not None else None,
            'envio': float(self.envio) if self.envio is not None else None,
            'total': float(self.total) if self.total is not None else None,
            'estado': self.estado.value if self.estado else None,
            'notas': list(self.notas or []),
            'comision_pagada': self.comision_pagada,
            'creado': self.creado.isoformat() if self.creado else None,
        }
