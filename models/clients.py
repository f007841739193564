"""
Models for client management
"""
from extensions import db
from datetime import datetime


class Cliente(db.Model):
    """Modelo para gestión de clientes. Cada cliente pertenece a un único vendedor."""
    __tablename__ = 'clientes'

    id = db.Column(db.Integer, primary_key=True)
    vendedor_id = db.Column(db.Integer, db.ForeignKey('usuarios.id'), nullable=False, index=True)

    # Información personal
    nombre = db.Column(db.String(100), nullable=False)
    apellido = db.Column(db.String(100), nullable=False)
    empresa = db.Column(db.String(150))

    # Contacto
    email = db.Column(db.String(120), unique=True, nullable=False)
    telefono = db.Column(db.String(20))
    direccion = db.Column(db.String(200))

    # Metadata
    fecha_creacion = db.Column(db.DateTime, default=datetime.utcnow)
    fecha_modificacion = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relaciones
    vendedor = db.relationship('Usuario', back_populates='clientes')
    pedidos = db.relationship('Pedido', back_populates='cliente', lazy='dynamic')

    def __repr__(self):
        return f'<Cliente {self.nombre} {self.apellido}>'

    @property
    def nombre_completo(self):
        """Retorna el nombre completo del cliente"""
        return f"{self.nombre} {self.apellido}"

    def to_dict(self):
        """Convierte el cliente a diccionario para JSON"""
        return {
            'id': self.id,
            'nombre': self.nombre,
            'apellido': self.apellido,
            'nombre_completo': self.nombre_completo,
            'empresa': self.empresa,
            'email': self.email,
            'telefono': self.telefono,
            'direccion': self.direccion,
            'vendedor_id': self.vendedor_id,
            'fecha_creacion': self.fecha_creacion.isoformat() if self.fecha_creacion else None,
        }
