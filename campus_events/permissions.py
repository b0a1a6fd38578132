"""
Capability checks.

``can(actor, action, resource)`` is the single place that decides whether a
user may perform an action on an event, registration, certificate or forum
post. Routes and services call ``ensure_can`` instead of re-deriving
owner/organizer/admin checks on their own.
"""

from campus_events.errors import PermissionDenied


def is_admin(user):
    return user is not None and user.role == "admin"


def manages_event(user, event):
    """Admin, the event organizer or one of its co-organizers."""
    if user is None or event is None:
        return False
    if is_admin(user) or event.organizer_id == user.id:
        return True
    return any(co.id == user.id for co in event.co_organizers)


def _can_view_event(user, event):
    # unapproved events are only visible to the people managing them
    if event.status in ("draft", "pending", "rejected"):
        return manages_event(user, event)
    if event.visibility == "public":
        return True
    if manages_event(user, event):
        return True
    if event.visibility == "department-only":
        return user is not None and bool(user.department) and user.department == event.department
    return False


def _owns(user, resource):
    return user is not None and getattr(resource, "user_id", None) == user.id


def can(user, action, resource, **context):
    if action == "event.manage":
        return manages_event(user, resource)
    if action == "event.view":
        return _can_view_event(user, resource)

    if action == "registration.view":
        return _owns(user, resource) or manages_event(user, resource.event)
    if action == "registration.cancel":
        return _owns(user, resource) or is_admin(user)
    if action == "registration.checkin":
        if manages_event(user, resource.event):
            return True
        return _owns(user, resource) and context.get("method") == "self-checkin"
    if action in ("registration.attendance", "registration.status"):
        return manages_event(user, resource.event)
    if action == "registration.feedback":
        return _owns(user, resource)
    if action == "registration.team":
        return _owns(user, resource) and resource.is_team_lead

    if action == "certificate.generate":
        # resource is the registration the certificate is issued for
        return manages_event(user, resource.event)
    if action == "certificate.view":
        return _owns(user, resource) or manages_event(user, resource.event)
    if action == "certificate.download":
        return _owns(user, resource) or is_admin(user)
    if action == "certificate.share":
        return _owns(user, resource)

    if action == "forum.manage_post":
        return user is not None and (resource.author_id == user.id or is_admin(user))

    raise ValueError(f"Unknown action: {action}")


def ensure_can(user, action, resource, message=None, **context):
    if not can(user, action, resource, **context):
        raise PermissionDenied(message or "Not authorized to perform this action")
