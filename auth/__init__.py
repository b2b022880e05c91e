"""auth/ -- Credential lifecycle for socialauth.

Passwords (auth.passwords), credential issuance and verification
(auth.tokens), and the login/authorize facade (auth.service).

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/. api/ imports from auth/, not the other way around.
"""
