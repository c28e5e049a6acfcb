"""records/ -- In-memory user and item repository for ItemVault.

Layer rule: records/ imports from core/ and auth.passwords only.
api/ imports from records/, not the other way around.
"""
