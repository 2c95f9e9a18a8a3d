"""Persistence layer for bets, bookies, transactions and goals."""

from .models import Base, Bet, Bookie, Transaction, Goal, TransactionType

__all__ = ["Base", "Bet", "Bookie", "Transaction", "Goal", "TransactionType"]
