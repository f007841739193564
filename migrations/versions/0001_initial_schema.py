"""Initial schema: usuarios, clientes, proveedores, productos, pedidos,
costos_envio y comisiones_historial.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17 00:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


USUARIO_ROLE = sa.Enum('vendedor', 'administrador', name='usuario_role')
PEDIDO_ESTADO = sa.Enum(
    'pendiente', 'aprobado', 'observado', 'entregado', 'cancelado', name='pedido_estado'
)


def upgrade():
    op.create_table(
        'usuarios',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('nombre', sa.String(length=100), nullable=False),
        sa.Column('apellido', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=120), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', USUARIO_ROLE, nullable=False),
        sa.Column('fecha_creacion', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_usuarios'),
        sa.UniqueConstraint('email', name='uq_usuarios_email'),
    )

    op.create_table(
        'proveedores',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('nombre', sa.String(length=200), nullable=False),
        sa.Column('codigo', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=120), nullable=False),
        sa.Column('telefono', sa.String(length=20), nullable=True),
        sa.Column('direccion', sa.String(length=300), nullable=True),
        sa.Column('estado', sa.Boolean(), nullable=False),
        sa.Column('fecha_registro', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_proveedores'),
        sa.UniqueConstraint('codigo', name='uq_proveedores_codigo'),
        sa.UniqueConstraint('email', name='uq_proveedores_email'),
    )

    op.create_table(
        'costos_envio',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('minimo', sa.Numeric(15, 2), nullable=False),
        sa.Column('maximo', sa.Numeric(15, 2), nullable=True),
        sa.Column('costo', sa.Numeric(15, 2), nullable=False),
        sa.Column('fecha_creacion', sa.DateTime(), nullable=True),
        sa.CheckConstraint('minimo >= 0', name='ck_costos_envio_minimo_no_negativo'),
        sa.CheckConstraint('costo >= 0', name='ck_costos_envio_costo_no_negativo'),
        sa.PrimaryKeyConstraint('id', name='pk_costos_envio'),
    )

    op.create_table(
        'clientes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('vendedor_id', sa.Integer(), nullable=False),
        sa.Column('nombre', sa.String(length=100), nullable=False),
        sa.Column('apellido', sa.String(length=100), nullable=False),
        sa.Column('empresa', sa.String(length=150), nullable=True),
        sa.Column('email', sa.String(length=120), nullable=False),
        sa.Column('telefono', sa.String(length=20), nullable=True),
        sa.Column('direccion', sa.String(length=200), nullable=True),
        sa.Column('fecha_creacion', sa.DateTime(), nullable=True),
        sa.Column('fecha_modificacion', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['vendedor_id'], ['usuarios.id'], name='fk_clientes_vendedor_id_usuarios'),
        sa.PrimaryKeyConstraint('id', name='pk_clientes'),
        sa.UniqueConstraint('email', name='uq_clientes_email'),
    )
    op.create_index('ix_clientes_vendedor_id', 'clientes', ['vendedor_id'])

    op.create_table(
        'productos',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('nombre', sa.String(length=200), nullable=False),
        sa.Column('skuproveedor', sa.String(length=50), nullable=False),
        sa.Column('skuproducto', sa.String(length=50), nullable=False),
        sa.Column('sku', sa.String(length=100), nullable=False),
        sa.Column('precio', sa.Numeric(15, 2), nullable=False),
        sa.Column('existencia', sa.Integer(), nullable=False),
        sa.Column('proveedor_id', sa.Integer(), nullable=True),
        sa.Column('fecha_creacion', sa.DateTime(), nullable=True),
        sa.CheckConstraint('existencia >= 0', name='ck_productos_existencia_no_negativa'),
        sa.ForeignKeyConstraint(['proveedor_id'], ['proveedores.id'], name='fk_productos_proveedor_id_proveedores'),
        sa.PrimaryKeyConstraint('id', name='pk_productos'),
        sa.UniqueConstraint('skuproducto', name='uq_productos_skuproducto'),
    )
    op.create_index('ix_productos_sku', 'productos', ['sku'])

    op.create_table(
        'pedidos',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('cliente_id', sa.Integer(), nullable=False),
        sa.Column('vendedor_id', sa.Integer(), nullable=False),
        sa.Column('proveedor_id', sa.Integer(), nullable=True),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.Column('notas', sa.JSON(), nullable=False),
        sa.Column('subtotal', sa.Numeric(15, 2), nullable=False),
        sa.Column('envio', sa.Numeric(15, 2), nullable=False),
        sa.Column('total', sa.Numeric(15, 2), nullable=False),
        sa.Column('estado', PEDIDO_ESTADO, nullable=False),
        sa.Column('comision_pagada', sa.Boolean(), nullable=False),
        sa.Column('version', sa.Integer(), server_default='1', nullable=False),
        sa.Column('creado', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['cliente_id'], ['clientes.id'], name='fk_pedidos_cliente_id_clientes'),
        sa.ForeignKeyConstraint(['vendedor_id'], ['usuarios.id'], name='fk_pedidos_vendedor_id_usuarios'),
        sa.ForeignKeyConstraint(['proveedor_id'], ['proveedores.id'], name='fk_pedidos_proveedor_id_proveedores'),
        sa.PrimaryKeyConstraint('id', name='pk_pedidos'),
    )
    op.create_index('ix_pedidos_cliente_id', 'pedidos', ['cliente_id'])
    op.create_index('ix_pedidos_vendedor_id', 'pedidos', ['vendedor_id'])
    op.create_index('ix_pedidos_proveedor_id', 'pedidos', ['proveedor_id'])

    op.create_table(
        'comisiones_historial',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('vendedor_id', sa.Integer(), nullable=False),
        sa.Column('pedido_id', sa.Integer(), nullable=False),
        sa.Column('fecha', sa.DateTime(), nullable=False),
        sa.Column('monto', sa.Numeric(15, 2), nullable=False),
        sa.Column('pagado_por', sa.String(length=120), nullable=False),
        sa.ForeignKeyConstraint(['vendedor_id'], ['usuarios.id'], name='fk_comisiones_historial_vendedor_id_usuarios'),
        sa.ForeignKeyConstraint(['pedido_id'], ['pedidos.id'], name='fk_comisiones_historial_pedido_id_pedidos'),
        sa.PrimaryKeyConstraint('id', name='pk_comisiones_historial'),
    )
    op.create_index('ix_comisiones_historial_vendedor_id', 'comisiones_historial', ['vendedor_id'])


def downgrade():
    op.drop_index('ix_comisiones_historial_vendedor_id', table_name='comisiones_historial')
    op.drop_table('comisiones_historial')
    op.drop_index('ix_pedidos_proveedor_id', table_name='pedidos')
    op.drop_index('ix_pedidos_vendedor_id', table_name='pedidos')
    op.drop_index('ix_pedidos_cliente_id', table_name='pedidos')
    op.drop_table('pedidos')
    op.drop_index('ix_productos_sku', table_name='productos')
    op.drop_table('productos')
    op.drop_index('ix_clientes_vendedor_id', table_name='clientes')
    op.drop_table('clientes')
    op.drop_table('costos_envio')
    op.drop_table('proveedores')
    op.drop_table('usuarios')

    bind = op.get_bind()
    PEDIDO_ESTADO.drop(bind, checkfirst=True)
    USUARIO_ROLE.drop(bind, checkfirst=True)
