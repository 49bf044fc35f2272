"""
All the routines to talk to Kubernetes API.

Every routine is a coroutine that receives an already prepared API context
(an ``aiohttp`` session with the server's location and a token fetcher),
the client's settings, and a logger -- explicitly, with no global state.

The routines can be mocked when only the high-level logic has to be tested,
not the API calls themselves.
"""
