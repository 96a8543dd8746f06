from solders.system_program import ID as _SYS_PROGRAM_ID

from .solana_tx import SolPubKey


ONE_BLOCK_SEC = 0.4
MIN_FINALIZE_SEC = ONE_BLOCK_SEC * 32

ADDRESS_LOOKUP_TABLE_ID = SolPubKey.from_string('AddressLookupTab1e1111111111111111111111111')
SYS_PROGRAM_ID = _SYS_PROGRAM_ID

LOOKUP_ACCOUNT_TAG = 1
