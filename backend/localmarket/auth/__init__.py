"""
Authentication and authorization.

    identity.py  Bearer-token verification delegated to the identity provider
    policy.py    Declarative (method, path) → access rule table and the single
                 interceptor dependency that enforces it
"""
