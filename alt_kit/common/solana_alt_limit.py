from enum import IntEnum


class ALTLimit(IntEnum):
    max_alt_account_cnt = 256
    max_tx_account_cnt = 27
    # Length of the SlotHashes sysvar, older slots cannot be used for derivation
    max_recent_slot_age = 512
