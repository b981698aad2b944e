"""
Authentication Contract

Identity is issued outside this package. The session core only needs a
signed-in Principal; every record operation is scoped to its id.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict, Field


class Principal(BaseModel):
    """The signed-in user on whose behalf records are read and written."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str
    email: str


class AuthProviderInterface(ABC):
    """Abstract interface for whatever issues principals."""

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> Principal:
        """
        Raises:
            InvalidCredentialsError: If the email/password pair is rejected
        """
        pass

    @abstractmethod
    async def register(self, name: str, email: str, password: str) -> Principal:
        """
        Raises:
            DuplicateRegistrationError: If the email is already registered
        """
        pass


class AuthError(Exception):
    """Base exception for authentication failures. The message is displayable."""
    pass


class InvalidCredentialsError(AuthError):
    pass


class DuplicateRegistrationError(AuthError):
    pass
