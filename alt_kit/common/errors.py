from __future__ import annotations

from typing import Optional


class RescheduleError(Exception):
    pass


class SolanaUnavailableError(RescheduleError):
    def __init__(self, msg: str):
        super().__init__(msg)
        self._msg = msg

    def __str__(self) -> str:
        return f'Solana is unavailable: {self._msg}'


class ALTError(Exception):
    pass


class ALTDerivationError(ALTError, RescheduleError):
    def __init__(self, table_account: str, recent_block_slot: int, msg: str):
        super().__init__(table_account, recent_block_slot, msg)
        self._table_acct = table_account
        self._recent_block_slot = recent_block_slot
        self._msg = msg

    @property
    def table_account(self) -> str:
        return self._table_acct

    @property
    def recent_block_slot(self) -> int:
        return self._recent_block_slot

    def __str__(self) -> str:
        return f'Cannot derive ALT {self._table_acct} from slot {self._recent_block_slot}: {self._msg}'


class ALTCapacityError(ALTError):
    def __init__(self, table_account: str, current_len: int, add_len: int, max_len: int):
        super().__init__(table_account, current_len, add_len, max_len)
        self._table_acct = table_account
        self._current_len = current_len
        self._add_len = add_len
        self._max_len = max_len

    def __str__(self) -> str:
        return (
            f'ALT {self._table_acct} cannot hold {self._current_len} + {self._add_len} accounts, '
            f'max is {self._max_len}'
        )


class ALTAuthorityError(ALTError):
    def __init__(self, table_account: str, authority: Optional[str], signer: str):
        super().__init__(table_account, authority, signer)
        self._table_acct = table_account
        self._authority = authority
        self._signer = signer

    def __str__(self) -> str:
        if self._authority is None:
            return f'ALT {self._table_acct} is frozen and cannot be changed by {self._signer}'
        return f'ALT {self._table_acct} has authority {self._authority}, not {self._signer}'


class ALTNotFoundError(ALTError):
    def __init__(self, table_account: str):
        super().__init__(table_account)
        self._table_acct = table_account

    def __str__(self) -> str:
        return f'ALT {self._table_acct} does not exist'


class ALTDeactivatedError(ALTError):
    def __init__(self, table_account: str, deactivation_slot: int):
        super().__init__(table_account, deactivation_slot)
        self._table_acct = table_account
        self._deactivation_slot = deactivation_slot

    @property
    def deactivation_slot(self) -> int:
        return self._deactivation_slot

    def __str__(self) -> str:
        return f'ALT {self._table_acct} is deactivated in the slot {self._deactivation_slot}'


class ALTUnresolvedAccountError(ALTError):
    def __init__(self, account: str):
        super().__init__(account)
        self._acct = account

    @property
    def account(self) -> str:
        return self._acct

    def __str__(self) -> str:
        return f'Account {self._acct} is not a signer, is not static and does not exist in lookup tables'


class MissingSignerError(Exception):
    def __init__(self, account_list: list):
        super().__init__(account_list)
        self._acct_list = [str(acct) for acct in account_list]

    @property
    def account_list(self) -> list:
        return self._acct_list

    def __str__(self) -> str:
        return f'Transaction is not signed by: {", ".join(self._acct_list)}'


class RejectedError(RescheduleError):
    def __init__(self, reason: str, sig: Optional[str] = None):
        super().__init__(reason, sig)
        self._reason = reason
        self._sig = sig

    @property
    def reason(self) -> str:
        return self._reason

    @property
    def sig(self) -> Optional[str]:
        return self._sig

    def __str__(self) -> str:
        if self._sig is None:
            return f'Transaction is rejected: {self._reason}'
        return f'Transaction {self._sig} is rejected: {self._reason}'


class UnconfirmedError(Exception):
    def __init__(self, sig: str, timeout_sec: float):
        super().__init__(sig, timeout_sec)
        self._sig = sig
        self._timeout_sec = timeout_sec

    @property
    def sig(self) -> str:
        return self._sig

    def __str__(self) -> str:
        return f'Transaction {self._sig} is not confirmed in {self._timeout_sec} seconds'


class SolTxSizeError(Exception):
    def __init__(self, current_len: int, max_len: int):
        super().__init__(current_len, max_len)
        self._current_len = current_len
        self._max_len = max_len

    def __str__(self) -> str:
        return f'Transaction size is exceeded {self._current_len} > {self._max_len}'
