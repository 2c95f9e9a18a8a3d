"""Domain exceptions raised by the persistence layer."""


class LedgerError(Exception):
    """Base class for ledger errors."""

    pass


class BetNotFoundError(LedgerError):
    """Bet id does not exist."""

    pass


class BookieNotFoundError(LedgerError):
    """Bookie id does not exist."""

    pass


class BetAlreadySettledError(LedgerError):
    """A resolved bet cannot be settled again."""

    pass


class InvalidSettlementError(LedgerError):
    """Settlement request is missing data or uses a non-final status."""

    pass


class InsufficientBalanceError(LedgerError):
    """Withdrawal exceeds the bookie balance."""

    pass


class InvalidTransactionError(LedgerError):
    """Transaction amount or type is not acceptable."""

    pass


class BookieExistsError(LedgerError):
    """A bookie with the same name is already registered."""

    pass
