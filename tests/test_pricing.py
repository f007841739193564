"""
Tests for delivery cost tiers.
"""
from decimal import Decimal

import pytest

from extensions import db
from models import CostoEnvio
from services.base import (
    ConfigurationException,
    PermissionDeniedException,
    UnauthenticatedException,
    ValidationException,
)
from services.pricing_service import DEFAULT_TIERS, PricingService


@pytest.fixture
def pricing(app):
    return PricingService()


@pytest.mark.unit
@pytest.mark.parametrize('subtotal, esperado', [
    ('0', Decimal('2')),
    ('15', Decimal('2')),
    ('19.99', Decimal('2')),
    ('20', Decimal('5')),
    ('100000', Decimal('5')),
])
def test_resolve_delivery_cost_picks_matching_tier(pricing, tramos, subtotal, esperado):
    assert pricing.resolve_delivery_cost(Decimal(subtotal)) == esperado


@pytest.mark.unit
def test_resolve_delivery_cost_without_tiers_is_configuration_error(pricing):
    with pytest.raises(ConfigurationException) as exc:
        pricing.resolve_delivery_cost(Decimal('10'))
    assert exc.value.status_code == 500
    assert exc.value.details['subtotal'] == '10'


@pytest.mark.unit
def test_resolve_delivery_cost_gap_is_configuration_error(pricing):
    db.session.add_all([
        CostoEnvio(minimo=Decimal('0'), maximo=Decimal('10'), costo=Decimal('3')),
        CostoEnvio(minimo=Decimal('50'), maximo=None, costo=Decimal('0')),
    ])
    db.session.commit()

    with pytest.raises(ConfigurationException):
        pricing.resolve_delivery_cost(Decimal('30'))
    assert pricing.find_gaps() == [(Decimal('10'), Decimal('50'))]


@pytest.mark.unit
def test_resolve_delivery_cost_rejects_overlapping_rows(pricing):
    # Filas insertadas sin pasar por el servicio
    db.session.add_all([
        CostoEnvio(minimo=Decimal('0'), maximo=Decimal('30'), costo=Decimal('3')),
        CostoEnvio(minimo=Decimal('20'), maximo=None, costo=Decimal('1')),
    ])
    db.session.commit()

    with pytest.raises(ConfigurationException) as exc:
        pricing.resolve_delivery_cost(Decimal('25'))
    assert len(exc.value.details['tramos']) == 2


@pytest.mark.unit
def test_resolve_delivery_cost_rejects_negative_subtotal(pricing, tramos):
    with pytest.raises(ValidationException):
        pricing.resolve_delivery_cost(Decimal('-1'))


@pytest.mark.unit
def test_create_tier_rejects_overlap(pricing, admin, tramos):
    with pytest.raises(ValidationException) as exc:
        pricing.create_tier(admin, {'minimo': '10', 'maximo': '30', 'costo': '1'})
    assert 'solapa' in exc.value.message


@pytest.mark.unit
@pytest.mark.parametrize('data', [
    {'minimo': '10', 'maximo': '5', 'costo': '1'},
    {'minimo': '-1', 'maximo': '5', 'costo': '1'},
    {'minimo': '0', 'maximo': '5', 'costo': '-1'},
    {'minimo': 'abc', 'costo': '1'},
    {'maximo': '5', 'costo': '1'},
])
def test_create_tier_rejects_invalid_ranges(pricing, admin, data):
    with pytest.raises(ValidationException):
        pricing.create_tier(admin, data)


@pytest.mark.unit
def test_update_tier_can_extend_into_own_range(pricing, admin, tramos):
    tramo = pricing.update_tier(admin, tramos[0].id, {'costo': '3'})
    assert Decimal(tramo.costo) == Decimal('3')
    assert pricing.resolve_delivery_cost(Decimal('1')) == Decimal('3')


@pytest.mark.unit
def test_update_tier_rejects_overlap_with_neighbour(pricing, admin, tramos):
    with pytest.raises(ValidationException):
        pricing.update_tier(admin, tramos[0].id, {'maximo': '25'})


@pytest.mark.unit
def test_tier_writes_require_admin(pricing, seller, tramos):
    with pytest.raises(PermissionDeniedException) as exc:
        pricing.create_tier(seller, {'minimo': '100', 'costo': '0'})
    assert exc.value.details == {'action': 'create', 'resource': 'CostoEnvio'}

    with pytest.raises(PermissionDeniedException):
        pricing.update_tier(seller, tramos[0].id, {'costo': '0'})

    with pytest.raises(PermissionDeniedException):
        pricing.delete_tier(seller, tramos[1].id)

    with pytest.raises(UnauthenticatedException):
        pricing.create_tier(None, {'minimo': '100', 'costo': '0'})

    assert CostoEnvio.query.count() == 2
    assert pricing.resolve_delivery_cost(Decimal('1')) == Decimal('2')


@pytest.mark.unit
def test_admin_deletes_tier(pricing, admin, tramos):
    assert pricing.delete_tier(admin, tramos[1].id)
    assert pricing.find_gaps() == [(Decimal('20'), None)]


@pytest.mark.integration
@pytest.mark.filterwarnings("error::sqlalchemy.exc.SAWarning")
def test_seed_tiers_replaces_table(pricing, tramos):
    nuevos = pricing.seed_tiers()

    assert len(nuevos) == len(DEFAULT_TIERS)
    assert CostoEnvio.query.count() == len(DEFAULT_TIERS)
    assert pricing.find_gaps() == []
    assert pricing.resolve_delivery_cost(Decimal('99.99')) == Decimal('10')
    assert pricing.resolve_delivery_cost(Decimal('500')) == Decimal('0')


@pytest.mark.integration
def test_seed_tiers_with_overlap_keeps_previous_table(pricing, tramos):
    with pytest.raises(ValidationException):
        pricing.seed_tiers([('0', '50', '1'), ('40', None, '0')])

    assert CostoEnvio.query.count() == 2
    assert pricing.resolve_delivery_cost(Decimal('1')) == Decimal('2')


@pytest.mark.integration
def test_tiers_cli_seed_and_list(runner):
    result = runner.invoke(args=['tiers', 'seed'])
    assert result.exit_code == 0
    assert '[OK] 3 tramos cargados.' in result.output

    result = runner.invoke(args=['tiers', 'list'])
    assert result.exit_code == 0
    assert '[0.00, 100.00) -> 10.00' in result.output
    assert 'Subtotales sin tramo' not in result.output
