"""
General-purpose helpers not related to the library itself
(neither to the polling engine nor to the clients nor to the structs),
which are used to prepare and control the runtime environment.

As a rule of thumb, helpers MUST be abstracted from the library
to such an extent that they could be extracted as reusable libraries.
"""
