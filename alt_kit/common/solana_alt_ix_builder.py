from __future__ import annotations

from enum import IntEnum
from typing import Sequence

from .constants import ADDRESS_LOOKUP_TABLE_ID, SYS_PROGRAM_ID
from .solana_alt import ALTAddress
from .solana_tx import SolTxIx, SolAccountMeta, SolPubKey


class AltIxCode(IntEnum):
    Create = 0
    Extend = 2


class ALTIxBuilder:
    @staticmethod
    def make_create_lookup_table_ix(alt_address: ALTAddress) -> SolTxIx:
        data = b''.join([
            int(AltIxCode.Create).to_bytes(4, byteorder='little'),
            alt_address.recent_block_slot.to_bytes(8, byteorder='little'),
            alt_address.nonce.to_bytes(1, byteorder='little')
        ])
        return SolTxIx(
            program_id=ADDRESS_LOOKUP_TABLE_ID,
            data=data,
            accounts=[
                SolAccountMeta(pubkey=alt_address.table_account, is_signer=False, is_writable=True),
                SolAccountMeta(pubkey=alt_address.authority, is_signer=True, is_writable=False),
                SolAccountMeta(pubkey=alt_address.payer, is_signer=True, is_writable=True),
                SolAccountMeta(pubkey=SYS_PROGRAM_ID, is_signer=False, is_writable=False),
            ]
        )

    @staticmethod
    def make_extend_lookup_table_ix(table_account: SolPubKey,
                                    authority: SolPubKey,
                                    payer: SolPubKey,
                                    account_list: Sequence[SolPubKey]) -> SolTxIx:
        data = b''.join([
            int(AltIxCode.Extend).to_bytes(4, byteorder='little'),
            len(account_list).to_bytes(8, byteorder='little')
        ] + [
            bytes(pubkey) for pubkey in account_list
        ])

        return SolTxIx(
            program_id=ADDRESS_LOOKUP_TABLE_ID,
            data=data,
            accounts=[
                SolAccountMeta(pubkey=table_account, is_signer=False, is_writable=True),
                SolAccountMeta(pubkey=authority, is_signer=True, is_writable=False),
                SolAccountMeta(pubkey=payer, is_signer=True, is_writable=True),
                SolAccountMeta(pubkey=SYS_PROGRAM_ID, is_signer=False, is_writable=False),
            ]
        )
