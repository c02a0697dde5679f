"""
Tests for chat app.

This package contains test modules for:
- test_models.py: Constraint and cascade tests
- test_services.py: ChatService and MessageService tests
- test_views.py: REST API endpoint tests
- test_consumers.py: WebSocket gateway tests
- test_middleware.py: WebSocket JWT authentication tests
- test_presence.py: Connection registry and presence tests
- test_tasks.py: Celery task tests

Usage:
    pytest chat/tests/
    pytest chat/tests/test_consumers.py
"""
