from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Union, Any, List, Optional, Set

import base64
import itertools
import json
import threading
import time
import logging
import requests
import base58
import websockets.sync.client

from .config import Config
from .errors import SolanaUnavailableError
from .layouts import AccountInfo, ALTAccountInfo
from .solana_tx import SolTx, SolBlockHash, SolPubKey, SolCommit
from .solana_tx_error_parser import SolTxErrorParser
from .utils import get_from_dict


LOG = logging.getLogger(__name__)
RPCRequest = Dict[str, Any]
RPCResponse = Dict[str, Any]


@dataclass(frozen=True)
class SolRecentBlockHash:
    block_hash: SolBlockHash
    last_valid_block_height: int


@dataclass(frozen=True)
class SolSendResult:
    error: Optional[Dict[str, Any]]
    result: Optional[str]


class SolClient:
    def __init__(self, solana_url: str, solana_timeout: float):
        self._solana_url = solana_url
        self._solana_timeout = solana_timeout
        self._session: Optional[requests.Session] = None
        self._headers = {
            'Content-Type': 'application/json',
            'Accept-Encoding': 'gzip,deflate'
        }

    def __del__(self):
        self._close()

    @property
    def solana_url(self) -> str:
        return self._solana_url

    def post(self, request: RPCRequest) -> RPCResponse:
        try:
            if self._session is None:
                self._session = requests.Session()
                self._session.headers.update(self._headers)

            raw_response = self._session.post(self._solana_url, json=request, timeout=self._solana_timeout)
            raw_response.raise_for_status()

            return raw_response.json()

        except requests.RequestException:
            self._close()
            raise

    def _close(self) -> None:
        if self._session is None:
            return

        self._session.close()
        self._session = None


class SolInteractor:
    """JSON-RPC boundary to a Solana node.

    Connection errors are retried RETRY_ON_FAIL times, everything else is
    returned to the caller as is.
    """

    def __init__(self, config: Config, solana_url: Optional[str] = None) -> None:
        self._config = config
        self._request_cnt = itertools.count()
        self._client = SolClient(solana_url or config.solana_url, config.solana_timeout)

    def _clean_solana_err(self, exc: BaseException) -> str:
        s = str(exc)
        if self._config.hide_solana_url:
            s = s.replace(self._client.solana_url, 'XXXXX')
        return s

    def _send_post_request(self, request: RPCRequest) -> RPCResponse:
        """This method is used to make retries to send request to Solana"""
        retry_on_fail = self._config.retry_on_fail

        for retry in itertools.count():
            try:
                return self._client.post(request)
            except requests.RequestException as exc:
                str_err = self._clean_solana_err(exc)
                if retry + 1 >= retry_on_fail:
                    raise SolanaUnavailableError(str_err)

                LOG.warning(
                    f'Receive connection error {str_err} on connection to Solana. '
                    f'Attempt {retry + 2} to send the request to Solana node...'
                )
                time.sleep(1)

    def _build_rpc_request(self, method: str, *param_list: Any) -> RPCRequest:
        request_id = next(self._request_cnt) + 1

        return {
            'jsonrpc': '2.0',
            'id': request_id,
            'method': method,
            'params': list(param_list)
        }

    def _send_rpc_request(self, method: str, *param_list: Any) -> RPCResponse:
        request = self._build_rpc_request(method, *param_list)
        return self._send_post_request(request)

    def get_block_slot(self, commitment: SolCommit.Type) -> int:
        opts = {
            'commitment': SolCommit.to_solana(commitment)
        }
        response = self._send_rpc_request('getSlot', opts)
        slot = response.get('result', None)
        if slot is None:
            LOG.debug(f'Error on get slot: {json.dumps(response)}')
            raise SolanaUnavailableError(f'failed to get {commitment} slot')
        return slot

    def get_recent_block_hash(self, commitment=SolCommit.Finalized) -> SolRecentBlockHash:
        opts = {
            'commitment': SolCommit.to_solana(commitment)
        }
        response = self._send_rpc_request('getLatestBlockhash', opts)
        result = get_from_dict(response, ('result', 'value'), None)
        if result is None:
            LOG.debug(f'Error on get latest block hash: {json.dumps(response)}')
            raise SolanaUnavailableError('failed to get recent block hash')

        return SolRecentBlockHash(
            block_hash=SolBlockHash.from_string(result.get('blockhash')),
            last_valid_block_height=result.get('lastValidBlockHeight')
        )

    @staticmethod
    def _decode_account_info(address: Union[str, SolPubKey], raw_account: Dict[str, Any]) -> AccountInfo:
        data = base64.b64decode(raw_account.get('data', None)[0])
        lamports = raw_account.get('lamports', 0)
        owner = SolPubKey.from_string(raw_account.get('owner', None))
        if isinstance(address, str):
            address = SolPubKey.from_string(address)
        return AccountInfo(address, lamports, owner, data)

    def get_account_info(self, pubkey: Union[str, SolPubKey],
                         commitment=SolCommit.Confirmed) -> Optional[AccountInfo]:
        opts = {
            'encoding': 'base64',
            'commitment': SolCommit.to_solana(commitment),
        }

        result = self._send_rpc_request('getAccountInfo', str(pubkey), opts)
        raw_account = get_from_dict(result, ('result', 'value'), None)
        if raw_account is None:
            return None

        return self._decode_account_info(pubkey, raw_account)

    def get_account_lookup_table_info(self, table_account: SolPubKey,
                                      commitment=SolCommit.Confirmed) -> Optional[ALTAccountInfo]:
        info = self.get_account_info(table_account, commitment)
        if info is None:
            return None
        return ALTAccountInfo.from_account_info(info)

    def send_tx(self, tx: SolTx, skip_preflight: bool) -> SolSendResult:
        opts = {
            'skipPreflight': skip_preflight,
            'encoding': 'base64',
            'preflightCommitment': SolCommit.Processed
        }

        base64_tx = base64.b64encode(bytes(tx)).decode('utf-8')
        response = self._send_rpc_request('sendTransaction', base64_tx, opts)

        raw_result = response.get('result', None)
        result = None
        if isinstance(raw_result, str):
            result = base58.b58encode(base58.b58decode(raw_result)).decode('utf-8')
        elif raw_result is not None:
            LOG.debug(f'Got strange result on transaction execution: {str(raw_result)}')

        error = response.get('error', None)
        if error:
            if SolTxErrorParser(error).check_if_already_processed():
                result = str(tx.signatures[0])
                LOG.debug(f'Transaction is already processed: {result}')
                error = None
            else:
                result = None

        return SolSendResult(result=result, error=error)

    def check_confirm_of_tx_sig_list(self, tx_sig_list: List[str],
                                     commitment: SolCommit.Type,
                                     timeout_sec: float) -> bool:
        if not tx_sig_list:
            return True

        opts = {
            'commitment': SolCommit.to_solana(commitment)
        }
        is_done = False
        with websockets.sync.client.connect(self._config.solana_ws_url) as websocket:
            for tx_sig in tx_sig_list:
                request = self._build_rpc_request('signatureSubscribe', tx_sig, opts)
                websocket.send(json.dumps(request))

            timeout_timer = threading.Timer(timeout_sec, lambda: websocket.close())
            timeout_timer.start()

            sub_set: Set[int] = set()
            for response in websocket:
                response = json.loads(response)

                if response.get('method', '') == 'signatureNotification':
                    sub_id = get_from_dict(response, ('params', 'subscription'), None)
                    if sub_id is not None:
                        sub_set.add(sub_id)

                if len(tx_sig_list) == len(sub_set):
                    is_done = True
                    websocket.close()
                    break

            timeout_timer.cancel()
            timeout_timer.join()

        return is_done

    def get_sig_status_list(self, tx_sig_list: List[str]) -> List[Optional[Dict[str, Any]]]:
        if len(tx_sig_list) == 0:
            return list()

        opts = {
            'searchTransactionHistory': False
        }
        response = self._send_rpc_request('getSignatureStatuses', tx_sig_list, opts)
        status_list = get_from_dict(response, ('result', 'value'), None)
        if status_list is None:
            LOG.debug(f'Error on get signature statuses: {json.dumps(response)}')
            raise SolanaUnavailableError('failed to get signature statuses')
        return status_list
