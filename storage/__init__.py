"""
Relational storage for the bookstore backend.

- ORM schema for users, CRM cards, catalogue and orders
- Async engine and session management
"""
