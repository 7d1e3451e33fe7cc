"""Fakes for the tokens domain."""

from tokengate.domains.tokens.fakes.generator import FakeTokenGenerator
from tokengate.domains.tokens.fakes.store import FlakyTokenStore, run_before

__all__ = ["FakeTokenGenerator", "FlakyTokenStore", "run_before"]
