"""
Tabla de costos de envío por rango de subtotal
"""
from datetime import datetime

from extensions import db


class CostoEnvio(db.Model):
    """Rango [minimo, maximo) de subtotal con su costo de envío fijo.

    ``maximo`` nulo significa rango abierto hacia arriba.
    """
    __tablename__ = 'costos_envio'
    __table_args__ = (
        db.CheckConstraint('minimo >= 0', name='minimo_no_negativo'),
        db.CheckConstraint('costo >= 0', name='costo_no_negativo'),
    )

    id = db.Column(db.Integer, primary_key=True)
    minimo = db.Column(db.Numeric(15, 2), nullable=False)
    maximo = db.Column(db.Numeric(15, 2))
    costo = db.Column(db.Numeric(15, 2), nullable=False)
    fecha_creacion = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f'<CostoEnvio [{self.minimo}, {self.maximo}) -> {self.costo}>'

    def to_dict(self):
        return {
            'id': self.id,
            'minimo': float(self.minimo),
            'maximo': float(self.maximo) if self.maximo is not None else None,
            'costo': float(self.costo),
        }
