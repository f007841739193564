"""
Utils package
"""


def safe_int(value, default=0):
    """Convierte a int de forma segura

    Args:
        value: Valor a convertir
        default: Valor por defecto si falla la conversión

    Returns:
        int: Valor convertido o default
    """
    try:
        if value is None or value == '':
            return default
        result = int(value)
        if result < 0:
            return default
        return result
    except (ValueError, TypeError):
        return default
