"""Erros de domínio e o status HTTP que cada um representa."""


class AscenderError(Exception):
    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AscenderError):
    status_code = 400


class NotFoundError(AscenderError):
    status_code = 404


class PermissionDeniedError(AscenderError):
    status_code = 403


class ConflictError(AscenderError):
    status_code = 409


class GatewayError(AscenderError):
    """Falha do banco de dados repassada com a mensagem original."""
    status_code = 400


class IdentityError(AscenderError):
    """Falha do serviço de identidade (e-mail duplicado, senha fraca, usuário inexistente)."""
    status_code = 400
