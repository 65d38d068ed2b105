from src.accounts.models import Account, Target
from src.accounts.reaper import AccountReaper
from src.accounts.service import (
    AccountService,
    AlreadyExistsError,
    InvalidCredentialsError,
    InvalidInputError,
    InvalidUrlError,
    ServiceError,
)
from src.accounts.store import AccountStore

__all__ = [
    "Account",
    "AccountReaper",
    "AccountService",
    "AccountStore",
    "AlreadyExistsError",
    "InvalidCredentialsError",
    "InvalidInputError",
    "InvalidUrlError",
    "ServiceError",
    "Target",
]
