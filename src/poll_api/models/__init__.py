"""ORM model registry.  Import all models so Alembic autogenerate discovers them."""

from poll_api.models.ballot import Ballot, Choice
from poll_api.models.identity import Identity
from poll_api.models.poll import Poll

__all__ = [
    "Ballot",
    "Choice",
    "Identity",
    "Poll",
]
