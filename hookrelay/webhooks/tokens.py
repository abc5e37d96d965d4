"""Per-conversation webhook tokens.

Each conversation that subscribes to a repository is issued its own token,
derived from the instance-wide shared secret. Gitea echoes the token back in
the payload's ``secret`` field, so a leaked token only lets an attacker spoof
deliveries to the one conversation it was issued to.
"""

from __future__ import annotations

import hashlib
import hmac

TOKEN_LENGTH = 20


def expected_token(repo: str, destination: str, shared_secret: str) -> str:
    """Derive the token for ``destination``'s subscription to ``repo``.

    Pure function of its three inputs. Callers normalize ``repo`` first.
    """
    # NUL cannot appear in repository names or destinations
    message = f"{repo}\x00{destination}".encode()
    digest = hmac.new(shared_secret.encode(), message, hashlib.sha256).hexdigest()
    return digest[:TOKEN_LENGTH]


def verify_token(presented: str, expected: str) -> bool:
    """Constant-time comparison; empty values never verify."""
    if not presented or not expected:
        return False
    return hmac.compare_digest(presented.encode(), expected.encode())
