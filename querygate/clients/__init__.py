"""
Clients for talking to a QueryGate server over HTTP.
"""
