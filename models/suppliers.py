"""
Modelos de Proveedores y Productos
"""

from datetime import datetime
from extensions import db


class Proveedor(db.Model):
    """Proveedor de productos. `estado` indica si está habilitado."""
    __tablename__ = 'proveedores'

    id = db.Column(db.Integer, primary_key=True)
    nombre = db.Column(db.String(200), nullable=False)
    codigo = db.Column(db.String(50), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    telefono = db.Column(db.String(20))
    direccion = db.Column(db.String(300))
    estado = db.Column(db.Boolean, nullable=False, default=True)
    fecha_registro = db.Column(db.DateTime, default=datetime.utcnow)

    # Relaciones
    productos = db.relationship('Producto', back_populates='proveedor', lazy='dynamic')

    def __repr__(self):
        return f'<Proveedor {self.nombre}>'

    def to_dict(self):
        return {
            'id': self.id,
            'nombre': self.nombre,
            'codigo': self.codigo,
            'email': self.email,
            'telefono': self.telefono,
            'direccion': self.direccion,
            'estado': self.estado,
        }


class Producto(db.Model):
    """
    Producto vendible.

    El SKU se deriva siempre como ``skuproveedor + skuproducto`` y la
    existencia nunca puede quedar negativa (restricción en la base).
    """
    __tablename__ = 'productos'
    __table_args__ = (
        db.CheckConstraint('existencia >= 0', name='existencia_no_negativa'),
    )

    id = db.Column(db.Integer, primary_key=True)
    nombre = db.Column(db.String(200), nullable=False)
    skuproveedor = db.Column(db.String(50), nullable=False, default='')
    skuproducto = db.Column(db.String(50), unique=True, nullable=False)
    sku = db.Column(db.String(100), nullable=False, index=True)
    precio = db.Column(db.Numeric(15, 2), nullable=False)
    existencia = db.Column(db.Integer, nullable=False, default=0)
    proveedor_id = db.Column(db.Integer, db.ForeignKey('proveedores.id'))
    fecha_creacion = db.Column(db.DateTime, default=datetime.utcnow)

    proveedor = db.relationship('Proveedor', back_populates='productos')

    def __repr__(self):
        return f'<Producto {self.sku} - {self.nombre}>'

    @staticmethod
    def build_sku(skuproveedor, skuproducto):
        return f"{skuproveedor or ''}{skuproducto or ''}"

    def to_dict(self):
        return {
            'id': self.id,
            'nombre': self.nombre,
            'sku': self.sku,
            'skuproveedor': self.skuproveedor,
            'skuproducto': self.skuproducto,
            'precio': float(self.precio) if self.precio is not None else None,
            'existencia': self.existencia,
            'proveedor_id': self.proveedor_id,
        }
