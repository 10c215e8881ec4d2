"""
Base interfaces for integration providers.
Abstract base classes for third-party service integrations.
"""
from abc import ABC, abstractmethod
from typing import Optional, Dict


class TransferProcessor(ABC):
    """Base interface for payout transfer providers (Stripe Connect, etc.)"""

    @abstractmethod
    async def create_transfer(
        self,
        destination: str,
        amount_minor_units: int,
        metadata: Dict[str, str],
        idempotency_key: Optional[str] = None
    ) -> str:
        """
        Send funds to a connected account.

        Returns:
            The provider's transfer id

        Raises:
            ExternalServiceError: the provider refused or could not be reached
        """
        pass
