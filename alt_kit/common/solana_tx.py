from __future__ import annotations

from typing import NewType, Union

import base58

import solders.hash
import solders.instruction
import solders.keypair
import solders.message
import solders.pubkey
import solders.signature
import solders.transaction


SolTxIx = solders.instruction.Instruction
SolAccountMeta = solders.instruction.AccountMeta
SolBlockHash = solders.hash.Hash
SolAccount = solders.keypair.Keypair
SolSig = solders.signature.Signature
SolPubKey = solders.pubkey.Pubkey
SolLegacyMsg = solders.message.Message
SolV0Msg = solders.message.MessageV0
SolMsg = Union[SolLegacyMsg, SolV0Msg]
SolTx = solders.transaction.VersionedTransaction

# IPv6 MTU - IP header - fragment header
SolPktDataSize = 1280 - 40 - 8
SolSigLength = 64


class SolCommit:
    Type = NewType('SolCommit', str)

    NotProcessed = Type('not-processed')
    Processed = Type('processed')
    Confirmed = Type('confirmed')
    Safe = Type('safe')  # optimistic-finalized => 2/3 of validators
    Finalized = Type('finalized')

    Order = [NotProcessed, Processed, Confirmed, Safe, Finalized]

    @staticmethod
    def to_level(commitment: Type) -> int:
        for index, value in enumerate(SolCommit.Order):
            if value == commitment:
                return index

        assert False, 'Wrong commitment'

    @staticmethod
    def to_type(value: str) -> Type:
        # 'max' and 'root' are deprecated aliases of the finalized view
        if value in ('max', 'root'):
            return SolCommit.Finalized
        for commitment in SolCommit.Order:
            if commitment == value:
                return commitment

        raise ValueError(f'Wrong commitment {value}')

    @staticmethod
    def to_solana(commitment: Type) -> Type:
        if commitment == SolCommit.NotProcessed:
            return SolCommit.Processed
        elif commitment == SolCommit.Safe:
            return SolCommit.Confirmed
        elif commitment in {SolCommit.Processed, SolCommit.Confirmed, SolCommit.Finalized}:
            return commitment

        assert False, 'Wrong commitment'


def to_b58(value: Union[bytes, SolPubKey, SolSig, SolBlockHash]) -> str:
    return base58.b58encode(bytes(value)).decode('utf-8')


def _b58_decode(value: str, length: int, name: str) -> bytes:
    try:
        raw_value = base58.b58decode(value.strip())
    except ValueError as exc:
        raise ValueError(f'{name} {value} is not a base58 string: {exc}')

    if len(raw_value) != length:
        raise ValueError(f'{name} {value} has wrong length {len(raw_value)} != {length}')
    return raw_value


def b58_to_pubkey(value: str) -> SolPubKey:
    return SolPubKey.from_bytes(_b58_decode(value, SolPubKey.LENGTH, 'Address'))


def b58_to_sig(value: str) -> SolSig:
    return SolSig.from_bytes(_b58_decode(value, SolSigLength, 'Signature'))
