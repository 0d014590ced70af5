from typing import Optional, Any, Dict

from clinic.models import AuditLog, User


def client_ip(request) -> Optional[str]:
    if request is None:
        return None
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip() or None
    return request.META.get('REMOTE_ADDR')


def user_agent(request) -> Optional[str]:
    if request is None:
        return None
    ua = request.META.get('HTTP_USER_AGENT')
    return ua[:255] if ua else None


def log_action(*, user: Optional[User], action: str, entity: str, entity_id: Any = None,
               details: Optional[Dict[str, Any]] = None, request=None) -> AuditLog:
    return AuditLog.objects.create(
        user=user if isinstance(user, User) else None,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        details=details or {},
        ip=client_ip(request),
        user_agent=user_agent(request),
    )
