"""auth/ -- Authentication and authorization package for ItemVault.

Layer rule: auth/ imports only core/, records.models, stdlib and third-party
libraries. It does NOT import from api/.
api/ imports from auth/, not the other way around.
"""
