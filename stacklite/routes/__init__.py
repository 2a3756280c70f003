# Routes package init
"""
StackLite Backend — API Routes Package
========================================

Route Inventory:
    - users.py:      POST /api/users/signup, POST /api/users/login
    - questions.py:  /api/questions/... (questions, answers, votes, comments)
    - health.py:     GET  /health

Routes stay thin: read the request, call a service, return its model.
Business rules live in stacklite.services and stacklite.domain.
"""
