"""Chunk placement: which storage account receives each chunk of a master file."""

from typing import List, Sequence

from common.logging_config import get_logger
from common.types import StorageAccount
from controller.exceptions import ConfigurationError

logger = get_logger(__name__)


class RoundRobinPlacement:
    """
    Chunk i (1-indexed) goes to accounts[(i - 1) mod N].

    Quota is ignored; the account order fixed at job start decides everything.
    """

    name = "round_robin"

    def select_account(
        self,
        sequence_number: int,
        accounts: Sequence[StorageAccount],
        chunk_size: int = 0,
    ) -> StorageAccount:
        """
        Args:
            sequence_number: 1-indexed chunk sequence number
            accounts: Eligible accounts, in stable order
            chunk_size: Size of the encrypted chunk (unused here)

        Returns:
            The account that must hold this chunk
        """
        if not accounts:
            raise ConfigurationError("No storage accounts available for placement")
        if sequence_number < 1:
            raise ValueError(f"Sequence numbers start at 1, got {sequence_number}")
        return accounts[(sequence_number - 1) % len(accounts)]

    def plan(self, chunk_count: int, accounts: Sequence[StorageAccount]) -> List[str]:
        """Account ids for chunks 1..chunk_count."""
        return [self.select_account(i, accounts).account_id for i in range(1, chunk_count + 1)]


class QuotaAwarePlacement(RoundRobinPlacement):
    """
    Start at the round-robin slot and take the first account whose last quota
    snapshot has room for the chunk. Falls back to the round-robin slot when
    none does, letting the backend report the quota error.
    """

    name = "quota_aware"

    def select_account(
        self,
        sequence_number: int,
        accounts: Sequence[StorageAccount],
        chunk_size: int = 0,
    ) -> StorageAccount:
        default = super().select_account(sequence_number, accounts, chunk_size)
        start = (sequence_number - 1) % len(accounts)

        for offset in range(len(accounts)):
            candidate = accounts[(start + offset) % len(accounts)]
            remaining = candidate.quota_remaining
            if remaining is None or remaining >= chunk_size:
                if candidate.account_id != default.account_id:
                    logger.debug(
                        f"Chunk {sequence_number} moved from {default.account_id} "
                        f"to {candidate.account_id} (quota)"
                    )
                return candidate

        logger.warning(f"No account has room for chunk {sequence_number}; using {default.account_id}")
        return default


_STRATEGIES = {
    RoundRobinPlacement.name: RoundRobinPlacement,
    QuotaAwarePlacement.name: QuotaAwarePlacement,
}


def get_placement_strategy(name: str) -> RoundRobinPlacement:
    """
    Build a placement strategy by its configured name.

    Raises:
        ConfigurationError: If the name is unknown
    """
    try:
        return _STRATEGIES[name]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown distribution strategy '{name}'. Choose one of: {', '.join(sorted(_STRATEGIES))}"
        )
