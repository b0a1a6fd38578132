# Importing every model here registers all tables on Base.metadata.
from campus_events.models import certificate, event, forum, notification, registration, user  # noqa: F401
