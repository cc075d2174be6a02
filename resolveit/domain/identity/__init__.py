"""Session handling for authenticated backend calls."""

from resolveit.domain.identity.session import Session, load_current_user, login

__all__ = ["Session", "load_current_user", "login"]
