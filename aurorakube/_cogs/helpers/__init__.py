"""
General-purpose helpers not related to the client itself
(neither to the resource addressing nor to the request execution),
which are used to prepare and control the runtime environment.

These are things that should better be in the standard library
or in the dependencies.

As a rule of thumb, helpers MUST be abstracted from the library
to such an extent that they could be extracted as reusable libraries.
If they implement concepts of K8s API, they are not "helpers"
(consider making them structs or clients).
"""
