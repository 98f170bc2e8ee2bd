"""
Module-level token API backed by a process-wide default service.
"""

from typing import Mapping, Optional

from ltpa.service import LtpaService, TokenVerificationResponse

# Global service instance
_service: Optional[LtpaService] = None


def get_service() -> LtpaService:
    """
    Get the global token service instance.

    Returns:
        LtpaService instance, created with default settings on first use
    """
    global _service
    if _service is None:
        _service = LtpaService()
    return _service


def init_service(service: Optional[LtpaService] = None, **kwargs) -> LtpaService:
    """
    Initialize the global token service.

    Args:
        service: Ready-made service to install; built from kwargs when omitted

    Returns:
        LtpaService instance
    """
    global _service
    _service = service or LtpaService(**kwargs)
    return _service


def set_secrets(secrets: Mapping[str, str]) -> None:
    get_service().set_secrets(secrets)


def set_validity(seconds: int) -> None:
    get_service().set_validity(seconds)


def set_grace_period(seconds: int) -> None:
    get_service().set_grace_period(seconds)


def set_strict_expiration_validation(strict: bool) -> None:
    get_service().set_strict_expiration_validation(strict)


def generate_user_name_buf(username: str, errors: str = "strict") -> bytes:
    return get_service().generate_user_name_buf(username, errors)


def generate(user_name_buf: bytes, domain: str, time_start: Optional[int] = None) -> str:
    return get_service().generate(user_name_buf, domain, time_start)


def validate(token: str, domain: str) -> None:
    get_service().validate(token, domain)


def verify(token: str, domain: str) -> TokenVerificationResponse:
    return get_service().verify(token, domain)


def refresh(token: str, domain: str) -> str:
    return get_service().refresh(token, domain)


def get_user_name_buf(token: str) -> bytes:
    return get_service().get_user_name_buf(token)


def get_user_name(token: str) -> str:
    return get_service().get_user_name(token)
