import logging
import os
from logging.handlers import RotatingFileHandler


def setup_logging(app):
    """Configura logging estructurado para la aplicacion"""

    formatter = logging.Formatter(
        '[%(asctime)s] %(levelname)s in %(module)s: %(message)s'
    )

    security_logger = logging.getLogger('security')
    security_logger.setLevel(logging.INFO)

    if app.testing:
        # En tests los mensajes quedan en el logger de la app (caplog)
        app.logger.setLevel(logging.DEBUG)
        security_logger.propagate = True
        return

    log_dir = app.config.get('LOG_DIR') or os.path.join(app.root_path, 'logs')
    os.makedirs(log_dir, exist_ok=True)

    # Handler para archivo general de aplicacion
    file_handler = RotatingFileHandler(
        os.path.join(log_dir, 'app.log'),
        maxBytes=10485760,  # 10MB
        backupCount=10
    )
    file_handler.setFormatter(formatter)
    file_handler.setLevel(logging.INFO)

    # Handler para errores criticos
    error_handler = RotatingFileHandler(
        os.path.join(log_dir, 'errors.log'),
        maxBytes=10485760,
        backupCount=10
    )
    error_handler.setFormatter(formatter)
    error_handler.setLevel(logging.ERROR)

    # Handler para accesos denegados y cambios de estado de pedidos
    security_handler = RotatingFileHandler(
        os.path.join(log_dir, 'security.log'),
        maxBytes=10485760,
        backupCount=20  # Mas retention para auditorias
    )
    security_handler.setFormatter(formatter)
    security_handler.setLevel(logging.INFO)

    app.logger.addHandler(file_handler)
    app.logger.addHandler(error_handler)
    app.logger.setLevel(logging.INFO)

    security_logger.addHandler(security_handler)
    security_logger.propagate = False  # No propagar a root logger

    app.logger.info('Sistema de logging configurado correctamente')
    app.logger.info(f'Logs guardados en: {log_dir}')
