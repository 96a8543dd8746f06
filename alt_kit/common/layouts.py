from __future__ import annotations

import logging

from dataclasses import dataclass
from typing import Optional, List

from construct import Bytes, Int8ul, Int16ul, Int32ul, Int64ul
from construct import Struct

from .constants import LOOKUP_ACCOUNT_TAG, ADDRESS_LOOKUP_TABLE_ID
from .solana_tx import SolPubKey


LOG = logging.getLogger(__name__)


ACCOUNT_LOOKUP_TABLE_LAYOUT = Struct(
    "type" / Int32ul,
    "deactivation_slot" / Int64ul,
    "last_extended_slot" / Int64ul,
    "last_extended_slot_start_index" / Int8ul,
    "has_authority" / Int8ul,
    "authority" / Bytes(32),
    "padding" / Int16ul
)

U64_MAX = 2 ** 64 - 1


@dataclass
class AccountInfo:
    address: SolPubKey
    lamports: int
    owner: SolPubKey
    data: bytes


@dataclass
class ALTAccountInfo:
    type: int
    table_account: SolPubKey
    deactivation_slot: Optional[int]
    last_extended_slot: int
    last_extended_slot_start_index: int
    authority: Optional[SolPubKey]
    account_key_list: List[SolPubKey]

    @staticmethod
    def from_account_info(info: AccountInfo) -> Optional[ALTAccountInfo]:
        if info.owner != ADDRESS_LOOKUP_TABLE_ID:
            LOG.warning(f'Wrong owner {str(info.owner)} of account {str(info.address)}')
            return None
        elif len(info.data) < ACCOUNT_LOOKUP_TABLE_LAYOUT.sizeof():
            LOG.warning(
                f'Wrong data length for lookup table data {str(info.address)}: '
                f'{len(info.data)} < {ACCOUNT_LOOKUP_TABLE_LAYOUT.sizeof()}'
            )
            return None

        lookup = ACCOUNT_LOOKUP_TABLE_LAYOUT.parse(info.data)
        if lookup.type != LOOKUP_ACCOUNT_TAG:
            LOG.warning(f'Wrong type {lookup.type} of lookup table {str(info.address)}')
            return None

        offset = ACCOUNT_LOOKUP_TABLE_LAYOUT.sizeof()
        if (len(info.data) - offset) % SolPubKey.LENGTH:
            LOG.warning(f'Wrong length of the account list in lookup table {str(info.address)}')
            return None

        account_key_list = [
            SolPubKey.from_bytes(info.data[key_offset:key_offset + SolPubKey.LENGTH])
            for key_offset in range(offset, len(info.data), SolPubKey.LENGTH)
        ]

        authority = SolPubKey.from_bytes(lookup.authority) if lookup.has_authority else None

        return ALTAccountInfo(
            type=lookup.type,
            table_account=info.address,
            deactivation_slot=None if lookup.deactivation_slot == U64_MAX else lookup.deactivation_slot,
            last_extended_slot=lookup.last_extended_slot,
            last_extended_slot_start_index=lookup.last_extended_slot_start_index,
            authority=authority,
            account_key_list=account_key_list
        )

    def to_data(self) -> bytes:
        hdr = ACCOUNT_LOOKUP_TABLE_LAYOUT.build(dict(
            type=self.type,
            deactivation_slot=U64_MAX if self.deactivation_slot is None else self.deactivation_slot,
            last_extended_slot=self.last_extended_slot,
            last_extended_slot_start_index=self.last_extended_slot_start_index,
            has_authority=0 if self.authority is None else 1,
            authority=bytes(32) if self.authority is None else bytes(self.authority),
            padding=0
        ))
        return hdr + b''.join(bytes(key) for key in self.account_key_list)
