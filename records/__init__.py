"""records/ -- Verification record domain and persistence for VerifyTrack.

Layer rule: records/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/ or auth/. Ownership decisions live in
auth/policy.py; this package only stores and filters what it is told to.
"""
