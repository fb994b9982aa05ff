"""Session providers: who is voting, and the bearer credential proving it."""
from typing import Protocol

from humorai.exceptions import AuthenticationError
from humorai.models.session import Session


class SessionProvider(Protocol):

    @property
    def voter_id(self) -> str | None:
        ...

    async def get_access_token(self) -> str:
        ...


class StaticSessionProvider:
    """
    Holds a session handed over by an outside identity provider.

    Signing in is not handled here; call `set_session` whenever the host application
    obtains or refreshes a session, and `clear` on sign-out.
    """

    def __init__(self, session: Session | None = None) -> None:
        self._session = session

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def voter_id(self) -> str | None:
        return self._session.user_id if self._session else None

    def set_session(self, session: Session | None) -> None:
        self._session = session

    def clear(self) -> None:
        self._session = None

    async def get_access_token(self) -> str:
        """
        Return the bearer credential of the active session.

        :raises AuthenticationError: If there is no active session
        """
        if self._session is None or not self._session.access_token:
            raise AuthenticationError("Not authenticated. Please sign in again.")
        return self._session.access_token
