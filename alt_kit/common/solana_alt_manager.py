from __future__ import annotations

import logging
import time

from typing import List, Optional, Sequence, Tuple

from .config import Config
from .errors import ALTError, ALTDerivationError, ALTCapacityError, ALTAuthorityError
from .solana_alt import ALTAddress, ALTInfo, resolve_alt_info
from .solana_alt_ix_builder import ALTIxBuilder
from .solana_alt_limit import ALTLimit
from .solana_interactor import SolInteractor
from .solana_tx import SolAccount, SolCommit, SolPubKey, SolSig, SolTxIx
from .solana_tx_sender import SolTxSender
from .utils.json_logger import logging_context


LOG = logging.getLogger(__name__)


class ALTManager:
    def __init__(self, config: Config, solana: SolInteractor) -> None:
        self._config = config
        self._solana = solana
        self._ix_builder = ALTIxBuilder()
        self._tx_sender = SolTxSender(config, solana)

    def get_anchor_slot(self) -> int:
        # Only the finalized slot is the same for all observers,
        #   so all of them derive the same table address for it
        return self._solana.get_block_slot(SolCommit.Finalized)

    def create(self, authority: SolPubKey, payer: SolPubKey,
               anchor_slot: Optional[int] = None) -> Tuple[ALTAddress, SolTxIx]:
        if anchor_slot is None:
            anchor_slot = self.get_anchor_slot()
        else:
            finalized_slot = self.get_anchor_slot()
            if finalized_slot - anchor_slot > ALTLimit.max_recent_slot_age:
                alt_address = ALTAddress.derive(authority, payer, anchor_slot)
                raise ALTDerivationError(
                    str(alt_address.table_account), anchor_slot,
                    f'slot is older than {int(ALTLimit.max_recent_slot_age)} slots from {finalized_slot}'
                )

        alt_address = ALTAddress.derive(authority, payer, anchor_slot)
        table_account = str(alt_address.table_account)

        if self._solana.get_account_info(alt_address.table_account) is not None:
            raise ALTDerivationError(table_account, anchor_slot, 'account already exists')

        LOG.debug(f'Derived ALT {table_account} from slot {anchor_slot} with nonce {alt_address.nonce}')
        return alt_address, self._ix_builder.make_create_lookup_table_ix(alt_address)

    def extend(self, alt_info: ALTInfo, authority: SolPubKey, payer: SolPubKey,
               acct_key_list: Sequence[SolPubKey]) -> SolTxIx:
        table_account = str(alt_info.table_account)
        if alt_info.authority != authority:
            authority_str = str(alt_info.authority) if alt_info.authority is not None else None
            raise ALTAuthorityError(table_account, authority_str, str(authority))

        if len(acct_key_list) == 0:
            raise ALTError(f'No accounts to extend the lookup table {table_account}')

        max_alt_account_cnt = ALTLimit.max_alt_account_cnt
        if alt_info.len_account_key_list + len(acct_key_list) > max_alt_account_cnt:
            raise ALTCapacityError(
                table_account, alt_info.len_account_key_list, len(acct_key_list), max_alt_account_cnt
            )

        return self._ix_builder.make_extend_lookup_table_ix(
            alt_info.table_account, authority, payer, acct_key_list
        )

    def create_and_extend(self, signer: SolAccount,
                          acct_key_list: Sequence[SolPubKey]) -> Tuple[ALTAddress, List[SolSig]]:
        signer_key = signer.pubkey()
        if len(acct_key_list) > ALTLimit.max_alt_account_cnt:
            raise ALTCapacityError('new', 0, len(acct_key_list), ALTLimit.max_alt_account_cnt)

        alt_address, create_ix = self.create(signer_key, signer_key)
        alt_info = ALTInfo.init_empty(alt_address)
        sig_list: List[SolSig] = list()

        with logging_context(alt=str(alt_address.table_account)):
            # The first part of accounts goes together with the creation,
            #   each next part is sent only after the previous tx is finalized
            ix_list: List[SolTxIx] = [create_ix]
            max_tx_account_cnt = ALTLimit.max_tx_account_cnt
            acct_list = list(acct_key_list)
            while True:
                acct_list_part, acct_list = acct_list[:max_tx_account_cnt], acct_list[max_tx_account_cnt:]
                if len(acct_list_part) > 0:
                    ix_list.append(self.extend(alt_info, signer_key, signer_key, acct_list_part))
                    alt_info = alt_info.extend(acct_list_part)

                commitment = SolCommit.Finalized if len(acct_list) > 0 else None
                sig = self._tx_sender.send_v0(ix_list, signer, commitment)
                sig_list.append(sig)
                LOG.info(f'ALT {str(alt_info.table_account)} contains {alt_info.len_account_key_list} accounts')

                if len(acct_list) == 0:
                    break
                ix_list = list()

        return alt_address, sig_list

    def resolve(self, table_account: SolPubKey) -> ALTInfo:
        return resolve_alt_info(self._solana, table_account)

    def print_table(self, table_account: SolPubKey) -> List[Tuple[int, SolPubKey]]:
        # Changes of the table become visible only after some delay
        time.sleep(self._config.alt_propagation_delay_sec)

        alt_info = self.resolve(table_account)
        LOG.info(f'Lookup Table: {str(table_account)}')

        idx_key_list = list(enumerate(alt_info.account_key_list))
        for idx, key in idx_key_list:
            LOG.info(f'   Index: {idx}  Address: {str(key)}')
        return idx_key_list
