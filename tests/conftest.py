"""
Pytest configuration and fixtures for the sales backend.
"""
import os
import tempfile
import threading
from decimal import Decimal

import pytest

# Set test environment variables before importing app
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['TESTING'] = '1'

# SQLite file so separate connections share the same data
test_db_fd, test_db_path = tempfile.mkstemp(suffix='.db')
os.environ['DATABASE_URL'] = f'sqlite:///{test_db_path}'

from app import create_app
from extensions import db
from models import Cliente, CostoEnvio, Producto, Proveedor, Role, Usuario
from services.permissions import Actor


@pytest.fixture(scope='session')
def app():
    """Create and configure a Flask app instance for testing."""
    flask_app = create_app(overrides={
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f'sqlite:///{test_db_path}',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SECRET_KEY': 'test-secret-key',
        'ORDER_PAGE_SIZE': 10,
    })

    with flask_app.app_context():
        yield flask_app

    # Close and remove test database
    os.close(test_db_fd)
    os.unlink(test_db_path)


@pytest.fixture(autouse=True)
def database(app):
    """Fresh schema for every test."""
    db.create_all()
    yield db
    db.session.remove()
    db.drop_all()


@pytest.fixture(scope='function')
def runner(app):
    """Create a CLI runner for testing CLI commands."""
    return app.test_cli_runner()


def _make_user(nombre, email, role):
    user = Usuario(nombre=nombre, apellido='Test', email=email, role=role)
    user.set_password('testpassword123')
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def vendedor(app):
    return _make_user('Sofia', 'sofia@ventas.test', Role.SELLER)


@pytest.fixture
def otro_vendedor(app):
    return _make_user('Bruno', 'bruno@ventas.test', Role.SELLER)


@pytest.fixture
def admin_user(app):
    return _make_user('Admin', 'admin@ventas.test', Role.ADMIN)


@pytest.fixture
def seller(vendedor):
    return Actor(id=vendedor.id, role=Role.SELLER)


@pytest.fixture
def other_seller(otro_vendedor):
    return Actor(id=otro_vendedor.id, role=Role.SELLER)


@pytest.fixture
def admin(admin_user):
    return Actor(id=admin_user.id, role=Role.ADMIN)


@pytest.fixture
def cliente(vendedor):
    """Cliente del vendedor principal."""
    c = Cliente(
        vendedor_id=vendedor.id,
        nombre='Carla',
        apellido='Gomez',
        empresa='Ferretería Sur',
        email='carla@cliente.test',
    )
    db.session.add(c)
    db.session.commit()
    return c


@pytest.fixture
def proveedor(app):
    p = Proveedor(nombre='Distribuidora Norte', codigo='DN', email='ventas@norte.test')
    db.session.add(p)
    db.session.commit()
    return p


@pytest.fixture
def producto(proveedor):
    """Producto X: existencia 10, precio 5."""
    p = Producto(
        nombre='Tornillo',
        skuproveedor='DN',
        skuproducto='TOR-1',
        sku=Producto.build_sku('DN', 'TOR-1'),
        precio=Decimal('5'),
        existencia=10,
        proveedor_id=proveedor.id,
    )
    db.session.add(p)
    db.session.commit()
    return p


@pytest.fixture
def producto_b(proveedor):
    p = Producto(
        nombre='Tuerca',
        skuproveedor='DN',
        skuproducto='TUE-1',
        sku=Producto.build_sku('DN', 'TUE-1'),
        precio=Decimal('2.50'),
        existencia=4,
        proveedor_id=proveedor.id,
    )
    db.session.add(p)
    db.session.commit()
    return p


@pytest.fixture
def tramos(app):
    """[0, 20) -> 2 y [20, ∞) -> 5"""
    rows = [
        CostoEnvio(minimo=Decimal('0'), maximo=Decimal('20'), costo=Decimal('2')),
        CostoEnvio(minimo=Decimal('20'), maximo=None, costo=Decimal('5')),
    ]
    db.session.add_all(rows)
    db.session.commit()
    return rows


@pytest.fixture
def concurrently(app):
    """
    Run each callable in its own thread, app context and session.

    Returns the outcome of each call in order: ``'ok'`` or the name of the
    exception it raised.
    """
    def run(*calls):
        outcomes = [None] * len(calls)

        def worker(index, call):
            with app.app_context():
                try:
                    call()
                    outcomes[index] = 'ok'
                except Exception as e:
                    outcomes[index] = type(e).__name__
                finally:
                    db.session.remove()

        threads = [threading.Thread(target=worker, args=(i, c)) for i, c in enumerate(calls)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)
        db.session.expire_all()
        return outcomes

    return run


# Markers for categorizing tests
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (fast)"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (slower)"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow running"
    )
