"""
Application layer - Use cases, DTOs, and service factories.

This layer orchestrates business logic by:
1. Defining request/response DTOs for the operation surface
2. Implementing use cases that coordinate core services, stores and locks
3. Providing the structured-result facade and its factory functions
"""
