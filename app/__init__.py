"""Application factory and bootstrap helpers."""
from __future__ import annotations

from dotenv import load_dotenv

load_dotenv()

import logging
from decimal import Decimal
from typing import Any, Dict, Optional

import click
from flask import Flask
from flask.cli import AppGroup

from .config import AppConfig
from extensions import db, migrate
from config.logging_config import setup_logging

_logger = logging.getLogger(__name__)


def _format_tier(tramo) -> str:
    maximo = "∞" if tramo.maximo is None else f"{Decimal(tramo.maximo):.2f}"
    return f"[{Decimal(tramo.minimo):.2f}, {maximo}) -> {Decimal(tramo.costo):.2f}"


def _register_tiers_cli(app: Flask) -> None:
    tiers_cli = AppGroup("tiers", help="Tramos de costo de envío.")

    @tiers_cli.command("seed")
    def tiers_seed():
        """Reemplaza los tramos de envío por la tabla por defecto."""

        from services.pricing_service import PricingService

        with app.app_context():
            tramos = PricingService().seed_tiers()
            for tramo in tramos:
                click.echo(_format_tier(tramo))

        click.echo(f"[OK] {len(tramos)} tramos cargados.")

    @tiers_cli.command("list")
    def tiers_list():
        """Muestra los tramos vigentes y los huecos sin cubrir."""

        from services.pricing_service import PricingService

        with app.app_context():
            service = PricingService()
            tramos = service.list_tiers()
            if not tramos:
                click.echo("[WARN] No hay tramos de envío configurados.")
                return
            for tramo in tramos:
                click.echo(_format_tier(tramo))
            for minimo, maximo in service.find_gaps():
                fin = "∞" if maximo is None else f"{maximo:.2f}"
                click.echo(f"[WARN] Subtotales sin tramo: [{minimo:.2f}, {fin})")

    app.cli.add_command(tiers_cli)


def _register_clis(app: Flask) -> None:
    _register_tiers_cli(app)


def create_app(config: Optional[AppConfig] = None, overrides: Optional[Dict[str, Any]] = None) -> Flask:
    app = Flask(__name__)

    # Los overrides tienen prioridad: AppConfig solo completa valores ausentes
    if overrides:
        app.config.update(overrides)

    cfg = config or AppConfig()
    cfg.init_app(app)

    setup_logging(app)

    db.init_app(app)
    migrate.init_app(app, db, compare_type=True)

    _register_clis(app)

    _logger.debug("Aplicación creada con base %s", app.config["SQLALCHEMY_DATABASE_URI"].split("@")[-1])
    return app


__all__ = ["create_app", "db", "migrate"]
