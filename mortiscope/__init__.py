"""MortiScope.

Server side of the MortiScope forensic entomology case-management application.

High-level architecture
-----------------------

- ``mortiscope.core``: shared building blocks (logging, monitoring, errors,
  object storage, the database layer and the I/O / domain models).
- ``mortiscope.server``: the FastAPI application, its routers, middleware,
  exception handlers and the service layer that implements every operation.

A user creates a *case*, uploads crime-scene images into it, submits the case for
analysis by the external detection service, reviews and corrects the resulting
insect *detections*, and finally exports the results.
"""

__version__ = "0.1.0"
