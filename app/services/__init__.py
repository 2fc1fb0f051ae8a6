"""
Services layer - report intake logic lives here, routes stay thin.

DESIGN PRINCIPLE:
- Services contain business logic, NOT routes
- Collaborators (store, notifier, identity) are passed in, never global
- Only operators move a report's status
"""
