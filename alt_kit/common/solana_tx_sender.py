from __future__ import annotations

import logging

from typing import Dict, List, Optional, Sequence

import solders.message

from .config import Config
from .errors import MissingSignerError, RejectedError, UnconfirmedError, SolTxSizeError
from .solana_interactor import SolInteractor
from .solana_alt import resolve_alt_info
from .solana_msg_compiler import SolMsgCompiler
from .solana_tx import SolAccount, SolCommit, SolMsg, SolPktDataSize, SolPubKey, SolSig, SolTx, SolTxIx
from .solana_tx_error_parser import SolTxErrorParser
from .utils.json_logger import logging_context


LOG = logging.getLogger(__name__)


class SolTxSender:
    _empty_sig = SolSig.default()

    def __init__(self, config: Config, solana: SolInteractor) -> None:
        self._config = config
        self._solana = solana
        self._msg_compiler = SolMsgCompiler()

    @staticmethod
    def get_signer_key_list(msg: SolMsg) -> List[SolPubKey]:
        return list(msg.account_keys[:msg.header.num_required_signatures])

    def sign(self, msg: SolMsg, signer_list: Sequence[SolAccount]) -> SolTx:
        signer_dict: Dict[SolPubKey, SolAccount] = {signer.pubkey(): signer for signer in signer_list}
        signer_key_list = self.get_signer_key_list(msg)

        missed_key_list = [key for key in signer_key_list if key not in signer_dict]
        if len(missed_key_list) > 0:
            raise MissingSignerError(missed_key_list)

        msg_data = solders.message.to_bytes_versioned(msg)
        sig_list = [signer_dict[key].sign_message(msg_data) for key in signer_key_list]
        return SolTx.populate(msg, sig_list)

    def _validate_tx(self, tx: SolTx) -> None:
        signer_key_list = self.get_signer_key_list(tx.message)
        sig_list = list(tx.signatures)
        missed_key_list = [
            key for idx, key in enumerate(signer_key_list)
            if (idx >= len(sig_list)) or (sig_list[idx] == self._empty_sig)
        ]
        if len(missed_key_list) > 0:
            raise MissingSignerError(missed_key_list)

        tx_data = bytes(tx)
        if len(tx_data) > SolPktDataSize:
            raise SolTxSizeError(len(tx_data), SolPktDataSize)

    def submit(self, tx: SolTx, timeout_sec: Optional[float] = None,
               commitment: Optional[SolCommit.Type] = None) -> SolSig:
        self._validate_tx(tx)
        if timeout_sec is None:
            timeout_sec = self._config.confirm_timeout_sec
        if commitment is None:
            commitment = self._config.commit_type

        sig = tx.signatures[0]
        with logging_context(tx=str(sig)):
            send_result = self._solana.send_tx(tx, self._config.skip_preflight)
            if send_result.error is not None:
                reason = SolTxErrorParser(send_result.error).get_error_msg()
                LOG.debug(f'Transaction is rejected: {reason}')
                raise RejectedError(reason, str(sig))

            LOG.debug(f'Wait for {commitment} of the transaction for {timeout_sec} seconds')
            if not self._solana.check_confirm_of_tx_sig_list([str(sig)], commitment, timeout_sec):
                raise UnconfirmedError(str(sig), timeout_sec)

            status = self._solana.get_sig_status_list([str(sig)])[0]
            err = status.get('err', None) if status is not None else None
            if err is not None:
                reason = SolTxErrorParser(status).get_error_msg()
                LOG.debug(f'Transaction is failed: {reason}')
                raise RejectedError(reason, str(sig))

            LOG.info(f'Transaction {str(sig)} is {commitment}')
        return sig

    def send_v0(self, ix_list: Sequence[SolTxIx], signer: SolAccount,
                commitment: Optional[SolCommit.Type] = None) -> SolSig:
        block_hash = self._solana.get_recent_block_hash().block_hash
        msg = self._msg_compiler.compile_v0(signer.pubkey(), block_hash, ix_list)
        return self.submit(self.sign(msg, [signer]), commitment=commitment)

    def send_v0_with_alt(self, ix_list: Sequence[SolTxIx], signer: SolAccount, table_account: SolPubKey,
                         static_key_list: Sequence[SolPubKey] = tuple()) -> SolSig:
        alt_info = resolve_alt_info(self._solana, table_account)

        block_hash = self._solana.get_recent_block_hash().block_hash
        msg = self._msg_compiler.compile_v0(signer.pubkey(), block_hash, ix_list, [alt_info], static_key_list)
        return self.submit(self.sign(msg, [signer]))
