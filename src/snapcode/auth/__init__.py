"""Authentication and authorization.

Learn: Users sign in with Google; we never see a password. After the
OAuth handshake:
1. identity.py — find-or-create the local User
2. sessions.py — issue a JWT access/refresh pair, record the refresh
   token in token_store.py
3. dependencies.py — verify the access token on every request
4. ownership.py — make sure the caller owns what they fetch
"""
