import base64
import unittest

from unittest.mock import patch

import requests

from ..common.constants import ADDRESS_LOOKUP_TABLE_ID, LOOKUP_ACCOUNT_TAG
from ..common.errors import SolanaUnavailableError
from ..common.layouts import ALTAccountInfo
from ..common.solana_interactor import SolClient, SolInteractor
from ..common.solana_msg_compiler import SolMsgCompiler
from ..common.solana_tx import SolCommit
from ..common.solana_tx_sender import SolTxSender

from .testing_helpers import FakeConfig, FakeSolInteractor, TEST_BLOCK_HASH, make_account, make_ix, make_key, rw


class TestSolInteractor(unittest.TestCase):
    def setUp(self) -> None:
        self.config = FakeConfig()
        self.solana = SolInteractor(self.config, 'http://solana.local:8899')

    @staticmethod
    def _reply(result):
        return lambda request: {'jsonrpc': '2.0', 'id': request['id'], 'result': result}

    def test_get_block_slot(self):
        with patch.object(SolClient, 'post', side_effect=self._reply(123)) as post:
            self.assertEqual(self.solana.get_block_slot(SolCommit.Finalized), 123)

        request = post.call_args[0][0]
        self.assertEqual(request['method'], 'getSlot')
        self.assertEqual(request['params'], [{'commitment': 'finalized'}])

    def test_get_block_slot_error(self):
        response = {'jsonrpc': '2.0', 'id': 1, 'error': {'code': -32005, 'message': 'Node is behind'}}
        with patch.object(SolClient, 'post', return_value=response):
            with self.assertRaises(SolanaUnavailableError):
                self.solana.get_block_slot(SolCommit.Confirmed)

    @patch('time.sleep')
    def test_connection_retry(self, sleep):
        exc = requests.ConnectionError('Failed to connect to http://solana.local:8899')
        with patch.object(SolClient, 'post', side_effect=exc) as post:
            with self.assertRaises(SolanaUnavailableError) as ctx:
                self.solana.get_block_slot(SolCommit.Confirmed)

        self.assertEqual(post.call_count, self.config.retry_on_fail)
        self.assertEqual(sleep.call_count, self.config.retry_on_fail - 1)
        self.assertNotIn('solana.local', str(ctx.exception))

    @patch('time.sleep')
    def test_connection_restore(self, sleep):
        reply = self._reply(77)
        side_effect_list = [requests.ConnectionError('reset'), reply]
        with patch.object(SolClient, 'post', side_effect=lambda req: _call_next(side_effect_list, req)):
            self.assertEqual(self.solana.get_block_slot(SolCommit.Confirmed), 77)

    def test_get_recent_block_hash(self):
        value = {'value': {'blockhash': str(TEST_BLOCK_HASH), 'lastValidBlockHeight': 400}}
        with patch.object(SolClient, 'post', side_effect=self._reply(value)):
            block_hash = self.solana.get_recent_block_hash()

        self.assertEqual(block_hash.block_hash, TEST_BLOCK_HASH)
        self.assertEqual(block_hash.last_valid_block_height, 400)

    def test_get_account_lookup_table_info(self):
        data = ALTAccountInfo(
            type=LOOKUP_ACCOUNT_TAG,
            table_account=make_key(50),
            deactivation_slot=None,
            last_extended_slot=300,
            last_extended_slot_start_index=0,
            authority=make_key(1),
            account_key_list=[make_key(20), make_key(21)]
        ).to_data()
        value = {'value': {
            'data': [base64.b64encode(data).decode('utf-8'), 'base64'],
            'lamports': 1_000_000,
            'owner': str(ADDRESS_LOOKUP_TABLE_ID),
            'executable': False
        }}

        with patch.object(SolClient, 'post', side_effect=self._reply(value)):
            alt_acct_info = self.solana.get_account_lookup_table_info(make_key(50))

        self.assertEqual(alt_acct_info.table_account, make_key(50))
        self.assertEqual(alt_acct_info.authority, make_key(1))
        self.assertEqual(alt_acct_info.account_key_list, [make_key(20), make_key(21)])

        with patch.object(SolClient, 'post', side_effect=self._reply({'value': None})):
            self.assertIsNone(self.solana.get_account_lookup_table_info(make_key(50)))

    def test_send_tx(self):
        payer = make_account(1)
        msg = SolMsgCompiler().compile_v0(payer.pubkey(), TEST_BLOCK_HASH, [make_ix(make_key(100), rw(make_key(20)))])
        tx = SolTxSender(self.config, FakeSolInteractor()).sign(msg, [payer])
        sig = str(tx.signatures[0])

        with patch.object(SolClient, 'post', side_effect=self._reply(sig)) as post:
            result = self.solana.send_tx(tx, skip_preflight=True)

        self.assertIsNone(result.error)
        self.assertEqual(result.result, sig)

        request = post.call_args[0][0]
        self.assertEqual(request['method'], 'sendTransaction')
        self.assertEqual(request['params'][0], base64.b64encode(bytes(tx)).decode('utf-8'))
        self.assertTrue(request['params'][1]['skipPreflight'])

        def _reply_error(message: str, err):
            return lambda request: {
                'jsonrpc': '2.0', 'id': request['id'],
                'error': {'code': -32002, 'message': message, 'data': {'err': err, 'logs': []}}
            }

        already_processed = _reply_error(
            'Transaction simulation failed: This transaction has already been processed', 'AlreadyProcessed'
        )
        with patch.object(SolClient, 'post', side_effect=already_processed):
            result = self.solana.send_tx(tx, skip_preflight=False)

        self.assertIsNone(result.error)
        self.assertEqual(result.result, sig)

        block_hash_notfound = _reply_error('Transaction simulation failed: Blockhash not found', 'BlockhashNotFound')
        with patch.object(SolClient, 'post', side_effect=block_hash_notfound):
            result = self.solana.send_tx(tx, skip_preflight=False)

        self.assertIsNone(result.result)
        self.assertEqual(result.error['data']['err'], 'BlockhashNotFound')

    def test_get_sig_status_list(self):
        status = {'slot': 5, 'confirmations': None, 'err': None, 'confirmationStatus': 'finalized'}
        with patch.object(SolClient, 'post', side_effect=self._reply({'value': [status, None]})) as post:
            status_list = self.solana.get_sig_status_list(['sig1', 'sig2'])

        self.assertEqual(status_list, [status, None])
        request = post.call_args[0][0]
        self.assertEqual(request['params'], [['sig1', 'sig2'], {'searchTransactionHistory': False}])
        self.assertEqual(self.solana.get_sig_status_list([]), [])


def _call_next(side_effect_list, request):
    side_effect = side_effect_list.pop(0)
    if isinstance(side_effect, Exception):
        raise side_effect
    return side_effect(request)


if __name__ == '__main__':
    unittest.main()
