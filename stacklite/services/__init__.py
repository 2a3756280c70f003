# Services package init
"""
StackLite Backend — Services Layer
====================================

What:  Business logic between the routes (HTTP) and the database.
How:   Services take a session plus plain request data, apply the rules,
       and return response models. They raise StackLiteError subclasses,
       never HTTP exceptions.

Service Inventory:
    - UserService:     signup and login (credentials from stacklite.security)
    - QuestionService: the question aggregate and its answer transitions
                       (rules from stacklite.domain.thread)
"""
