"""Infrastructure adapters for talking to the ResolveIt backend."""

from resolveit.infra.http import ApiClient, ApiError
from resolveit.infra.normalize import Envelope, normalize

__all__ = ["ApiClient", "ApiError", "Envelope", "normalize"]
