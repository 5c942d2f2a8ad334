"""auth/ -- Authentication, access control and the user directory.

Layer rule: auth/ imports only stdlib + third-party libraries.
It does NOT import from api/ or core/; configuration values are passed in.
api/ imports from auth/, not the other way around.
"""
