"""
User Service - Gestión de vendedores y administradores
======================================================
Alta y mantenimiento de usuarios. La autenticación en sí queda fuera de este
backend: las operaciones reciben un ``Actor`` ya identificado.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from services.base import BaseService, ServiceException, ValidationException
from services.permissions import Actor, ensure, require_actor
from extensions import db
from models import Role, Usuario


class UserService(BaseService[Usuario]):
    """
    Servicio para gestión de usuarios.

    Proporciona métodos para:
    - Registro de usuarios con contraseña hasheada
    - Actualización de datos personales y rol
    - Listados y conteos por rol
    """

    model_class = Usuario

    def create_user(self, data: Dict[str, Any]) -> Usuario:
        """
        Registra un usuario nuevo.

        Args:
            data: ``nombre``, ``apellido``, ``email``, ``password`` y opcionalmente ``role``

        Raises:
            ValidationException: Si faltan campos, el rol es inválido o el email ya existe
        """
        required_fields = ['nombre', 'apellido', 'email', 'password']
        missing_fields = [f for f in required_fields if not data.get(f)]
        if missing_fields:
            raise ValidationException(
                f"Campos requeridos faltantes: {', '.join(missing_fields)}",
                details={'missing_fields': missing_fields}
            )

        email = data['email'].strip().lower()
        if Usuario.query.filter_by(email=email).first():
            raise ValidationException("Este email ya está registrado", details={'field': 'email'})

        if len(data['password']) < 8:
            raise ValidationException("La contraseña debe tener al menos 8 caracteres")

        usuario = Usuario(
            nombre=data['nombre'].strip(),
            apellido=data['apellido'].strip(),
            email=email,
            role=self._parse_role(data.get('role', Role.SELLER)),
        )
        usuario.set_password(data['password'])
        return self._save_new(usuario)

    def _save_new(self, usuario: Usuario) -> Usuario:
        try:
            db.session.add(usuario)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            self._log_error(f"Error al registrar usuario: {str(e)}")
            raise ServiceException(f"Error al registrar usuario: {str(e)}")
        self._log_info(f"Usuario {usuario.id} registrado con rol {usuario.role.value}")
        return usuario

    def get_user(self, usuario_id: int) -> Usuario:
        return self.get_by_id_or_fail(usuario_id)

    def update_user(self, actor: Optional[Actor], usuario_id: int, data: Dict[str, Any]) -> Usuario:
        """
        Actualiza datos del usuario. Cada uno edita sus datos; el rol solo lo
        cambia un administrador.
        """
        actor = require_actor(actor)
        usuario = self.get_by_id_or_fail(usuario_id)
        ensure(actor.is_admin or actor.id == usuario.id, actor, 'edit', usuario)

        values = {k: data[k] for k in ('nombre', 'apellido') if data.get(k)}

        if 'email' in data:
            email = (data['email'] or '').strip().lower()
            if not email:
                raise ValidationException("El email es requerido")
            if email != usuario.email and Usuario.query.filter_by(email=email).first():
                raise ValidationException("Este email ya está registrado", details={'field': 'email'})
            values['email'] = email

        if 'role' in data:
            ensure(actor.is_admin, actor, 'change_role', usuario)
            values['role'] = self._parse_role(data['role'])

        if data.get('password'):
            usuario.set_password(data['password'])

        return self.update(usuario_id, **values)

    def list_by_role(self, role: Any) -> List[Usuario]:
        return self.get_all(role=self._parse_role(role))

    def count_by_role(self, role: Any) -> int:
        return self.count(role=self._parse_role(role))

    @staticmethod
    def _parse_role(role: Any) -> Role:
        try:
            return Role(role)
        except ValueError:
            raise ValidationException(f"Rol inválido: {role!r}", details={'field': 'role'})
