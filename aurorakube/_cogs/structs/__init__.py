"""
All the structures to address, describe, and authenticate the resources.

All the functions here are purely data-manipulative and computational.
No external calls or any i/o activities are done here
(except for reading the local token files by the token fetchers).
"""
