"""Tokens domain: request/access token lifecycle and storage.

The lifecycle service owns the state machine; stores own atomicity.
Wire a store, a generator and the two registries into
TokenLifecycleService (the container factory does this at startup).
"""
