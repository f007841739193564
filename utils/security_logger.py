"""
Security logging utilities
Logs security-relevant events (denied actions, state changes, payouts) for audit purposes
"""

import logging
from datetime import datetime

security_logger = logging.getLogger('security')


def _actor_fields(actor):
    if actor is None:
        return {'user_id': None, 'user_role': 'anonymous'}
    role = getattr(actor, 'role', None)
    return {
        'user_id': getattr(actor, 'id', None),
        'user_role': getattr(role, 'value', role),
    }


def log_security_event(event_type, message, actor=None, level=logging.WARNING, **extra_data):
    """
    Log a security event

    Args:
        event_type: Type of security event (e.g., 'permission_denied', 'state_change')
        message: Human-readable message
        actor: Actor performing the operation (may be None)
        **extra_data: Additional data to log
    """
    log_data = {
        'timestamp': datetime.utcnow().isoformat(),
        'event_type': event_type,
        'message': message,
        **_actor_fields(actor),
        **extra_data
    }

    security_logger.log(
        level,
        f"[SECURITY] {event_type}: {message}",
        extra={'security_event': log_data}
    )


def log_permission_denied(resource, action, actor=None, reason=None):
    """Log a permission denied event"""
    log_security_event(
        'permission_denied',
        f"Permission denied for {action} on {resource}",
        actor=actor,
        resource=resource,
        action=action,
        reason=reason
    )


def log_state_change(pedido_id, old_state, new_state, actor=None):
    """Log an order state change"""
    log_security_event(
        'state_change',
        f"Pedido {pedido_id} changed from {old_state} to {new_state}",
        actor=actor,
        level=logging.INFO,
        pedido_id=pedido_id,
        old_state=old_state,
        new_state=new_state
    )


def log_transaction(transaction_type, amount, actor=None, details=None):
    """Log a financial transaction"""
    log_security_event(
        'transaction',
        f"Transaction: {transaction_type} - Amount: {amount}",
        actor=actor,
        level=logging.INFO,
        transaction_type=transaction_type,
        amount=str(amount),
        details=details
    )
