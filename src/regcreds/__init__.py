"""regcreds -- Credential stores for container registries.

This package reads and writes registry credentials the way the Docker CLI
does: plaintext entries in ``config.json``, ``docker-credential-*`` helper
programs, or an in-memory map, chosen per server from ``credHelpers`` and
``credsStore``.

Typical usage::

    from regcreds.stores import new_store_from_docker
    from regcreds.models import Credential, StoreOptions

    store = new_store_from_docker(StoreOptions(allow_plaintext_put=True))
    store.put("registry.example.com", Credential(username="u", password="p"))

Modules:
    app: Typer CLI (``regcreds get``, ``login``, ...).
    models: Pydantic models for credentials, config entries and options.
    config: Atomic, concurrency-safe access to ``config.json``.
    codec: The base64 ``auth`` field encoding.
    context: Cancellation and deadlines for helper processes and pings.
    executer: Runs ``docker-credential-*`` helper programs.
    registry: Login and logout against a registry's ``/v2/`` endpoint.
    stores: The store implementations.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes for the CLI.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
