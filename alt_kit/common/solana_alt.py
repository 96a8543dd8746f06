from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Sequence, Tuple

from .constants import ADDRESS_LOOKUP_TABLE_ID
from .errors import ALTNotFoundError, ALTDeactivatedError
from .layouts import ALTAccountInfo
from .solana_interactor import SolInteractor
from .solana_tx import SolCommit, SolPubKey


@dataclass(frozen=True)
class ALTAddress:
    table_account: SolPubKey
    recent_block_slot: int
    nonce: int
    authority: SolPubKey
    payer: SolPubKey

    @staticmethod
    def derive(authority: SolPubKey, payer: SolPubKey, recent_block_slot: int) -> ALTAddress:
        table_account, nonce = SolPubKey.find_program_address(
            seeds=[bytes(authority), recent_block_slot.to_bytes(8, "little")],
            program_id=ADDRESS_LOOKUP_TABLE_ID
        )
        return ALTAddress(table_account, recent_block_slot, nonce, authority, payer)


@dataclass(frozen=True)
class ALTInfo:
    """State of an Address Lookup Table.

    Values are immutable: extending a table produces a new ALTInfo,
    the list of accounts is append-only and keeps the on-chain order.
    """
    table_account: SolPubKey
    authority: Optional[SolPubKey]
    account_key_list: Tuple[SolPubKey, ...] = tuple()
    deactivation_slot: Optional[int] = None
    last_extended_slot: int = 0
    _key_idx_dict: Dict[SolPubKey, int] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'account_key_list', tuple(self.account_key_list))

        key_idx_dict: Dict[SolPubKey, int] = dict()
        for idx, key in enumerate(self.account_key_list):
            key_idx_dict.setdefault(key, idx)
        object.__setattr__(self, '_key_idx_dict', key_idx_dict)

    @staticmethod
    def init_empty(alt_address: ALTAddress) -> ALTInfo:
        return ALTInfo(table_account=alt_address.table_account, authority=alt_address.authority)

    @staticmethod
    def from_account(alt_acct_info: ALTAccountInfo) -> ALTInfo:
        return ALTInfo(
            table_account=alt_acct_info.table_account,
            authority=alt_acct_info.authority,
            account_key_list=tuple(alt_acct_info.account_key_list),
            deactivation_slot=alt_acct_info.deactivation_slot,
            last_extended_slot=alt_acct_info.last_extended_slot
        )

    @property
    def len_account_key_list(self) -> int:
        return len(self.account_key_list)

    def is_frozen(self) -> bool:
        return self.authority is None

    def find_index(self, key: SolPubKey) -> Optional[int]:
        return self._key_idx_dict.get(key, None)

    def extend(self, acct_key_list: Sequence[SolPubKey]) -> ALTInfo:
        return replace(self, account_key_list=self.account_key_list + tuple(acct_key_list))


def resolve_alt_info(solana: SolInteractor, table_account: SolPubKey) -> ALTInfo:
    alt_acct_info = solana.get_account_lookup_table_info(table_account)
    if alt_acct_info is None:
        raise ALTNotFoundError(str(table_account))

    deactivation_slot = alt_acct_info.deactivation_slot
    if deactivation_slot is not None:
        current_slot = solana.get_block_slot(SolCommit.Confirmed)
        if deactivation_slot < current_slot:
            raise ALTDeactivatedError(str(table_account), deactivation_slot)

    return ALTInfo.from_account(alt_acct_info)
