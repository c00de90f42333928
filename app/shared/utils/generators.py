"""CUID2 generators for row ids and worker claim tokens."""

from cuid2 import Cuid

_ID_GENERATOR = Cuid()
# Claim tokens only need to be unique among live leases.
_CLAIM_TOKEN_GENERATOR = Cuid(length=16)


def generate_cuid() -> str:
    """Return a new CUID2 for use as a primary key."""
    return _ID_GENERATOR.generate()


def generate_claim_token() -> str:
    """Return a short CUID2 identifying one worker's lease on an execution."""
    return _CLAIM_TOKEN_GENERATOR.generate()
