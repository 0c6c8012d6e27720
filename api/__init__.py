"""
FastAPI RESTful API for the Bookstore Management backend.

This module provides a REST API for:
- User signup/signin with bearer tokens
- CRM cards, e-mails, payment cards and addresses
- Book catalogue with filtering
- Orders, order items and order statuses
"""
