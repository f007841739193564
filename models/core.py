"""
Modelos Core: Usuario, roles e historial de comisiones
Este módulo contiene los modelos de los actores del sistema (vendedores y
administradores) y el registro inmutable de comisiones pagadas.
"""

from datetime import datetime
from enum import Enum

from extensions import db
from werkzeug.security import generate_password_hash, check_password_hash


class Role(str, Enum):
    """Roles disponibles. ADMIN es el rol elevado."""
    SELLER = 'vendedor'
    ADMIN = 'administrador'


class Usuario(db.Model):
    __tablename__ = 'usuarios'

    id = db.Column(db.Integer, primary_key=True)
    nombre = db.Column(db.String(100), nullable=False)
    apellido = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(
        db.Enum(Role, name='usuario_role', values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=Role.SELLER,
    )
    fecha_creacion = db.Column(db.DateTime, default=datetime.utcnow)

    # Relaciones
    clientes = db.relationship('Cliente', back_populates='vendedor', lazy='dynamic')
    comisiones = db.relationship(
        'ComisionHistorial',
        back_populates='vendedor',
        order_by='ComisionHistorial.id',
        foreign_keys='ComisionHistorial.vendedor_id',
    )

    def __repr__(self):
        return f'<Usuario {self.email}>'

    @property
    def nombre_completo(self):
        return f"{self.nombre} {self.apellido}"

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def to_dict(self, include_comisiones=False):
        data = {
            'id': self.id,
            'nombre': self.nombre,
            'apellido': self.apellido,
            'email': self.email,
            'role': self.role.value if self.role else None,
            'fecha_creacion': self.fecha_creacion.isoformat() if self.fecha_creacion else None,
        }
        if include_comisiones:
            data['comisiones'] = [c.to_dict() for c in self.comisiones]
        return data


class ComisionHistorial(db.Model):
    """Registro de una comisión pagada a un vendedor. Solo se agregan filas."""
    __tablename__ = 'comisiones_historial'

    id = db.Column(db.Integer, primary_key=True)
    vendedor_id = db.Column(db.Integer, db.ForeignKey('usuarios.id'), nullable=False, index=True)
    pedido_id = db.Column(db.Integer, db.ForeignKey('pedidos.id'), nullable=False)
    fecha = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    monto = db.Column(db.Numeric(15, 2), nullable=False)
    pagado_por = db.Column(db.String(120), nullable=False)

    vendedor = db.relationship('Usuario', back_populates='comisiones', foreign_keys=[vendedor_id])
    pedido = db.relationship('Pedido')

    def __repr__(self):
        return f'<ComisionHistorial pedido={self.pedido_id} monto={self.monto}>'

    def to_dict(self):
        return {
            'id': self.id,
            'pedido_id': self.pedido_id,
            'fecha': self.fecha.isoformat() if self.fecha else None,
            'monto': float(self.monto) if self.monto is not None else None,
            'pagado_por': self.pagado_por,
        }
