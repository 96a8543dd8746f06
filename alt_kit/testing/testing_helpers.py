from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from ..common.config import Config
from ..common.constants import ADDRESS_LOOKUP_TABLE_ID, LOOKUP_ACCOUNT_TAG
from ..common.layouts import AccountInfo, ALTAccountInfo
from ..common.solana_alt_ix_builder import AltIxCode
from ..common.solana_interactor import SolRecentBlockHash, SolSendResult
from ..common.solana_tx import SolAccount, SolBlockHash, SolCommit, SolPubKey, SolTx, SolTxIx, SolAccountMeta


TEST_BLOCK_HASH = SolBlockHash.from_string('4NCYB3kRT8sCNodPNuCZo8VUh4xqpBQxsxed2wd9xaD4')


class FakeConfig(Config):
    def __init__(self):
        super().__init__()
        self._retry_on_fail = 2
        self._confirm_timeout_sec = 5
        self._alt_propagation_delay_sec = Decimal('0.0')


def make_account(seed: int) -> SolAccount:
    return SolAccount.from_seed(bytes([seed] * 32))


def make_key(seed: int) -> SolPubKey:
    return SolPubKey.from_bytes(bytes([seed] * SolPubKey.LENGTH))


def make_ix(program_id: SolPubKey, *acct_meta_list: SolAccountMeta, data: bytes = b'\x01') -> SolTxIx:
    return SolTxIx(program_id=program_id, data=data, accounts=list(acct_meta_list))


def rw(key: SolPubKey) -> SolAccountMeta:
    return SolAccountMeta(pubkey=key, is_signer=False, is_writable=True)


def ro(key: SolPubKey) -> SolAccountMeta:
    return SolAccountMeta(pubkey=key, is_signer=False, is_writable=False)


def signer_rw(key: SolPubKey) -> SolAccountMeta:
    return SolAccountMeta(pubkey=key, is_signer=True, is_writable=True)


def signer_ro(key: SolPubKey) -> SolAccountMeta:
    return SolAccountMeta(pubkey=key, is_signer=True, is_writable=False)


class FakeSolInteractor:
    """In-memory ledger: keeps lookup tables and executes the lookup table program."""

    def __init__(self, slot: int = 10_000):
        self.slot = slot
        self.block_hash = TEST_BLOCK_HASH
        self.account_dict: Dict[SolPubKey, AccountInfo] = dict()
        self.commitment_list: List[SolCommit.Type] = list()
        self.confirm_commitment_list: List[SolCommit.Type] = list()
        self.sent_tx_list: List[SolTx] = list()
        self.send_error: Optional[Dict[str, Any]] = None
        self.is_confirmed = True
        self.status_err: Optional[Any] = None

    def get_block_slot(self, commitment: SolCommit.Type) -> int:
        self.commitment_list.append(commitment)
        return self.slot

    def get_recent_block_hash(self, commitment=SolCommit.Finalized) -> SolRecentBlockHash:
        return SolRecentBlockHash(block_hash=self.block_hash, last_valid_block_height=self.slot + 150)

    def get_account_info(self, pubkey: SolPubKey, commitment=SolCommit.Confirmed) -> Optional[AccountInfo]:
        return self.account_dict.get(pubkey, None)

    def get_account_lookup_table_info(self, table_account: SolPubKey,
                                      commitment=SolCommit.Confirmed) -> Optional[ALTAccountInfo]:
        info = self.get_account_info(table_account)
        if info is None:
            return None
        return ALTAccountInfo.from_account_info(info)

    def add_alt(self, table_account: SolPubKey, authority: Optional[SolPubKey],
                acct_key_list: Sequence[SolPubKey], deactivation_slot: Optional[int] = None) -> None:
        alt_acct_info = ALTAccountInfo(
            type=LOOKUP_ACCOUNT_TAG,
            table_account=table_account,
            deactivation_slot=deactivation_slot,
            last_extended_slot=self.slot,
            last_extended_slot_start_index=0,
            authority=authority,
            account_key_list=list(acct_key_list)
        )
        self.account_dict[table_account] = AccountInfo(
            address=table_account,
            lamports=1_000_000,
            owner=ADDRESS_LOOKUP_TABLE_ID,
            data=alt_acct_info.to_data()
        )

    def _execute_alt_ix(self, ix_code: int, acct_list: List[SolPubKey], data: bytes):
        table_account = acct_list[0]
        if ix_code == AltIxCode.Create:
            self.add_alt(table_account, acct_list[1], [])
        elif ix_code == AltIxCode.Extend:
            alt_acct_info = self.get_account_lookup_table_info(table_account)
            key_cnt = int.from_bytes(data[4:12], 'little')
            new_key_list = [
                SolPubKey.from_bytes(data[12 + idx * SolPubKey.LENGTH:12 + (idx + 1) * SolPubKey.LENGTH])
                for idx in range(key_cnt)
            ]
            self.add_alt(table_account, alt_acct_info.authority, alt_acct_info.account_key_list + new_key_list)

    def _execute(self, tx: SolTx) -> None:
        msg = tx.message
        key_list = list(msg.account_keys)
        for ix in msg.instructions:
            if key_list[ix.program_id_index] != ADDRESS_LOOKUP_TABLE_ID:
                continue
            data = bytes(ix.data)
            acct_list = [key_list[idx] for idx in ix.accounts]
            self._execute_alt_ix(int.from_bytes(data[:4], 'little'), acct_list, data)

    def send_tx(self, tx: SolTx, skip_preflight: bool) -> SolSendResult:
        self.sent_tx_list.append(tx)
        if self.send_error is not None:
            return SolSendResult(error=self.send_error, result=None)

        self._execute(tx)
        return SolSendResult(error=None, result=str(tx.signatures[0]))

    def check_confirm_of_tx_sig_list(self, tx_sig_list: List[str],
                                     commitment: SolCommit.Type,
                                     timeout_sec: float) -> bool:
        self.confirm_commitment_list.append(commitment)
        return self.is_confirmed

    def get_sig_status_list(self, tx_sig_list: List[str]) -> List[Optional[Dict[str, Any]]]:
        return [
            {'slot': self.slot, 'confirmations': None, 'err': self.status_err, 'confirmationStatus': 'confirmed'}
            for _ in tx_sig_list
        ]
