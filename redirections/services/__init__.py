"""
Services module for business logic separation.

- slug_resolver / decision_engine / click_accounting: the public redirect path
- redirect_service: wires the three together for the HTTP layer
- admin_service / identity: the administrator surface
"""
