"""Adapter package for external I/O implementations.

Purpose:
    Concrete implementations for domain ports: the pyserial transport, the
    REST delivery backend, CSV manifest/audit files, and a delivery stub.

Dependencies:
    Individual submodules depend on ``pyserial``, ``requests``, the ``csv``
    module and domain protocol definitions.

Call context:
    Imported by ``fota.app.main`` for runtime wiring and by tests.
"""
