import unittest

from ..common.solana_tx_error_parser import SolTxErrorParser, get_log_list


class TestSolTxErrorParser(unittest.TestCase):
    def test_send_error(self):
        error = {
            'code': -32002,
            'message': 'Transaction simulation failed: Error processing Instruction 1: invalid instruction data',
            'data': {
                'err': {'InstructionError': [1, 'InvalidInstructionData']},
                'logs': [
                    'Program AddressLookupTab1e1111111111111111111111111 invoke [1]',
                    'Program log: Instruction: ExtendLookupTable',
                    'Program AddressLookupTab1e1111111111111111111111111 failed: invalid instruction data'
                ]
            }
        }
        parser = SolTxErrorParser(error)
        self.assertFalse(parser.check_if_already_processed())
        self.assertEqual(
            parser.get_error_msg(),
            'Transaction simulation failed: Error processing Instruction 1: invalid instruction data: '
            'Instruction: ExtendLookupTable'
        )

    def test_already_processed(self):
        self.assertTrue(SolTxErrorParser({
            'code': -32002,
            'message': 'Transaction simulation failed: This transaction has already been processed',
            'data': {'err': 'AlreadyProcessed', 'logs': []}
        }).check_if_already_processed())
        self.assertTrue(SolTxErrorParser({'err': 'AlreadyProcessed'}).check_if_already_processed())

    def test_status_error(self):
        parser = SolTxErrorParser({'slot': 10, 'err': {'InstructionError': [0, {'Custom': 6}]}})
        self.assertEqual(parser.get_error_msg(), '{"InstructionError": [0, {"Custom": 6}]}')

    def test_no_error(self):
        parser = SolTxErrorParser(None)
        self.assertEqual(parser.get_error_msg(), '')
        self.assertEqual(SolTxErrorParser('timeout').get_error_msg(), 'timeout')

    def test_get_log_list(self):
        self.assertEqual(get_log_list({'meta': {'logMessages': ['a']}}), ['a'])
        self.assertEqual(get_log_list({'logs': ['b']}), ['b'])
        self.assertEqual(get_log_list({}), [])


if __name__ == '__main__':
    unittest.main()
