"""Tokengate: three-legged delegated-authorization token provider."""
