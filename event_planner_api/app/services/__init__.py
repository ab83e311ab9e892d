"""
Service layer.

Each service encapsulates the business logic of one domain and raises
``core.errors.AppError`` subclasses; translating them to HTTP
responses is left to the application's exception handlers.
"""
