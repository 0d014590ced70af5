from typing import Any, Optional

from clinic.models import Setting, User
from clinic.services.audit import log_action
from clinic.services.common import iso


def format_setting(s: Setting) -> dict:
    return {
        'key': s.key,
        'value': s.value,
        'description': s.description,
        'updatedBy': s.updated_by_id,
        'updatedAt': iso(s.updated_at),
    }


def upsert_setting(user: User, key: str, value: Any, description: Optional[str] = None, *, request=None) -> Setting:
    defaults = {'value': value, 'updated_by': user}
    if description is not None:
        defaults['description'] = description
    setting, created = Setting.objects.update_or_create(key=key, defaults=defaults)
    log_action(user=user, action='SETTING_UPDATED', entity='setting', entity_id=key,
               details={'created': created}, request=request)
    return setting
