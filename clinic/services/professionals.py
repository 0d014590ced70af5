from __future__ import annotations

import base64
import binascii
import logging
import re
from typing import Any, Iterable, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from clinic.exceptions import DocumentInUse, EmailInUse, InvalidDocument, ProfessionalInUse
from clinic.models import Role, User, UserRole
from clinic.services.audit import log_action
from clinic.services.common import digits, iso

logger = logging.getLogger(__name__)

ASSIGNABLE_ROLES = {Role.PROFESSIONAL, Role.ADMIN}
AVATAR_PATTERN = re.compile(r'^data:image/(png|jpeg|jpg|webp);base64,([A-Za-z0-9+/=\s]+)$')
AVATAR_MAX_LENGTH = 2_000_000
AVATAR_MAX_BYTES = 1024 * 1024
AVATAR_ERROR = 'Imagem inválida. Envie uma foto PNG, JPG ou WEBP de até 2MB.'


def format_professional(u: User, roles: Optional[Iterable[str]] = None) -> dict:
    return {
        'id': u.id,
        'name': u.name,
        'email': u.email,
        'documentId': u.document_id,
        'specialty': u.specialty,
        'phone': u.phone,
        'avatarUrl': u.avatar_url,
        'isActive': u.is_active,
        'mustChangePassword': u.must_change_password,
        'roles': sorted(roles if roles is not None else u.role_names()),
        'createdAt': iso(u.created_at),
        'updatedAt': iso(u.updated_at),
    }


def assign_role(user: User, role_name: str) -> UserRole:
    role, _ = Role.objects.get_or_create(name=role_name)
    link, _ = UserRole.objects.get_or_create(user=user, role=role)
    return link


def professionals_queryset():
    return User.objects.filter(roles__name__in=ASSIGNABLE_ROLES).distinct()


def directory(*, q: Optional[str] = None, status: Optional[str] = None, limit: int = 50,
              offset: int = 0) -> tuple[list[dict], int]:
    qs = professionals_queryset().prefetch_related('roles')
    if q:
        qs = qs.filter(Q(name__icontains=q) | Q(email__icontains=q) | Q(document_id__icontains=q))
    if status == 'active':
        qs = qs.filter(is_active=True)
    elif status == 'inactive':
        qs = qs.filter(is_active=False)
    total = qs.count()
    items = [
        format_professional(u, roles=[r.name for r in u.roles.all()])
        for u in qs.order_by('name', 'id')[offset:offset + limit]
    ]
    return items, total


def summary() -> dict:
    counts = professionals_queryset().aggregate(
        total=Count('id', distinct=True),
        active=Count('id', filter=Q(is_active=True), distinct=True),
    )
    return {'total': counts['total'], 'active': counts['active'], 'inactive': counts['total'] - counts['active']}


def _normalize_document(raw: str) -> str:
    document = digits(raw)
    if len(document) != 11:
        raise InvalidDocument()
    return document


def invite_professional(admin: User, data: dict[str, Any], *, request=None) -> User:
    """Create a professional account with the default password."""
    email = data['email'].strip().lower()
    document = _normalize_document(data['documentId'])
    if User.objects.filter(email__iexact=email).exists():
        raise EmailInUse()
    if User.objects.filter(document_id=document).exists():
        raise DocumentInUse()
    roles = (set(data.get('roles') or []) & ASSIGNABLE_ROLES) | {Role.PROFESSIONAL}
    phone = digits(data.get('phone')) or None

    with transaction.atomic():
        user = User.objects.create_user(
            username=email,
            email=email,
            password=settings.PROFESSIONAL_DEFAULT_PASSWORD,
            name=data['name'].strip(),
            document_id=document,
            specialty=(data.get('specialty') or '').strip() or None,
            phone=phone,
            must_change_password=True,
        )
        for role in sorted(roles):
            assign_role(user, role)
        log_action(user=admin, action='PROFESSIONAL_CREATED', entity='user', entity_id=user.id,
                   details={'email': email, 'roles': sorted(roles)}, request=request)
    logger.info('Professional %s invited by %s', user.id, admin.id)
    return user


def onboard(user: User, data: dict[str, Any], *, request=None) -> dict:
    document = _normalize_document(data['documentId'])
    if User.objects.filter(document_id=document).exclude(id=user.id).exists():
        raise DocumentInUse()
    was_professional = Role.PROFESSIONAL in user.role_names()
    with transaction.atomic():
        user.name = data['fullName'].strip()
        user.document_id = document
        user.specialty = data['specialty'].strip()
        if data.get('phone'):
            user.phone = digits(data['phone'])
        user.save()
        assign_role(user, Role.PROFESSIONAL)
        log_action(user=user, action='PROFESSIONAL_ONBOARDED', entity='user', entity_id=user.id,
                   details={'documentId': document}, request=request)
    return {
        'status': 'updated' if was_professional else 'created',
        'userId': user.id,
        'roles': sorted(user.role_names()),
    }


def validate_avatar(data_url: str) -> str:
    if len(data_url) > AVATAR_MAX_LENGTH:
        raise ValidationError({'avatarDataUrl': [AVATAR_ERROR]})
    match = AVATAR_PATTERN.match(data_url)
    if not match:
        raise ValidationError({'avatarDataUrl': [AVATAR_ERROR]})
    try:
        raw = base64.b64decode(re.sub(r'\s+', '', match.group(2)), validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError({'avatarDataUrl': [AVATAR_ERROR]})
    if not raw or len(raw) > AVATAR_MAX_BYTES:
        raise ValidationError({'avatarDataUrl': [AVATAR_ERROR]})
    return data_url


def update_profile(user: User, data: dict[str, Any], *, request=None) -> User:
    fields = []
    if 'name' in data:
        user.name = data['name'].strip()
        fields.append('name')
    for key in ('specialty', 'phone'):
        if key in data:
            value = data[key]
            setattr(user, key, (value.strip() or None) if isinstance(value, str) else None)
            fields.append(key)
    if 'avatarDataUrl' in data:
        value = data['avatarDataUrl']
        user.avatar_url = validate_avatar(value) if value else None
        fields.append('avatar_url')
    user.save(update_fields=fields + ['updated_at'])
    log_action(user=user, action='PROFILE_UPDATED', entity='user', entity_id=user.id,
               details={'fields': fields}, request=request)
    return user


def change_password(user: User, current: str, new: str, *, request=None) -> None:
    from django.contrib.auth.password_validation import validate_password
    from django.core.exceptions import ValidationError as DjangoValidationError

    if not user.check_password(current):
        raise ValidationError({'currentPassword': ['Senha atual incorreta.']})
    try:
        validate_password(new, user=user)
    except DjangoValidationError as e:
        raise ValidationError({'newPassword': e.messages})
    user.set_password(new)
    user.must_change_password = False
    user.save(update_fields=['password', 'must_change_password', 'updated_at'])
    log_action(user=user, action='PASSWORD_CHANGED', entity='user', entity_id=user.id, request=request)


def delete_professional(admin: User, professional_id: int, *, request=None) -> None:
    professional = professionals_queryset().filter(id=professional_id).first()
    if professional is None:
        raise NotFound('Profissional não encontrado.')
    if professional.appointments.exists() or professional.occurrences.exists():
        raise ProfessionalInUse()
    snapshot = {'email': professional.email, 'name': professional.name, 'deletedAt': iso(timezone.now())}
    professional.delete()
    log_action(user=admin, action='PROFESSIONAL_DELETED', entity='user', entity_id=professional_id,
               details=snapshot, request=request)
