"""auth/ -- Session and role-based authorization package for PawConnect.

Layer rule: auth/ imports only stdlib + third-party libraries and core/.
It does NOT import from web/. web/ and the CLI import from auth/, not the
other way around.
"""
