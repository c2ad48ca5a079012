"""Remote store access: HTTP client, request sequencing and table queries."""

from pdv_core.store.client import RestClient, make_session
from pdv_core.store.sequencing import RequestSequencer, Ticket

__all__ = ["RequestSequencer", "RestClient", "Ticket", "make_session"]
