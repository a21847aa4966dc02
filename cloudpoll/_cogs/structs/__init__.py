"""
Typed structures of the remote resources' states and the connection info.

All the functions are purely data-manipulative and computational.
No external calls or any i/o activities are done here.
"""
