from __future__ import annotations

import logging

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

import solders.instruction
import solders.message

from .errors import ALTUnresolvedAccountError
from .solana_alt import ALTInfo
from .solana_tx import SolBlockHash, SolLegacyMsg, SolMsg, SolPubKey, SolTxIx, SolV0Msg


LOG = logging.getLogger(__name__)

_SoldersCompiledIx = solders.instruction.CompiledInstruction
_SoldersMsgALT = solders.message.MessageAddressTableLookup
_SoldersMsgHdr = solders.message.MessageHeader

_MaxAccountIdx = 255


@dataclass
class _KeyMeta:
    is_signer: bool = False
    is_writable: bool = False
    is_invoked: bool = False


@dataclass
class _KeyTierList:
    signed_rw_key_list: List[SolPubKey]
    signed_ro_key_list: List[SolPubKey]
    unsigned_rw_key_list: List[SolPubKey]
    unsigned_ro_key_list: List[SolPubKey]
    program_key_list: List[SolPubKey]

    @property
    def signed_key_list(self) -> List[SolPubKey]:
        return self.signed_rw_key_list + self.signed_ro_key_list


@dataclass
class _ALTLookup:
    alt_info: ALTInfo
    rw_idx_list: List[int]
    rw_key_list: List[SolPubKey]
    ro_idx_list: List[int]
    ro_key_list: List[SolPubKey]

    def is_empty(self) -> bool:
        return len(self.rw_idx_list) == len(self.ro_idx_list) == 0


class SolMsgCompiler:
    """Compiles instructions into legacy and v0 messages.

    Static accounts are ordered in tiers, as the header of a message
    describes them only by counts:
      1) fee payer
      2) other writable signers
      3) readonly signers
      4) writable non-signers
      5) readonly non-signers
      6) program ids
    Inside a tier accounts keep the order of the first reference,
    so the same input always produces the same bytes.
    """

    @staticmethod
    def _collect_key_meta(fee_payer: SolPubKey, ix_list: Sequence[SolTxIx]) -> Dict[SolPubKey, _KeyMeta]:
        key_meta_dict: Dict[SolPubKey, _KeyMeta] = {fee_payer: _KeyMeta(is_signer=True, is_writable=True)}

        for ix in ix_list:
            for acct_meta in ix.accounts:
                key_meta = key_meta_dict.setdefault(acct_meta.pubkey, _KeyMeta())
                key_meta.is_signer |= acct_meta.is_signer
                key_meta.is_writable |= acct_meta.is_writable

            key_meta = key_meta_dict.setdefault(ix.program_id, _KeyMeta())
            key_meta.is_invoked = True

        return key_meta_dict

    @staticmethod
    def _split_key_tier_list(key_meta_dict: Dict[SolPubKey, _KeyMeta]) -> _KeyTierList:
        tier_list = _KeyTierList(list(), list(), list(), list(), list())
        for key, key_meta in key_meta_dict.items():
            if key_meta.is_signer:
                if key_meta.is_writable:
                    tier_list.signed_rw_key_list.append(key)
                else:
                    tier_list.signed_ro_key_list.append(key)
            elif key_meta.is_writable:
                tier_list.unsigned_rw_key_list.append(key)
            elif key_meta.is_invoked:
                tier_list.program_key_list.append(key)
            else:
                tier_list.unsigned_ro_key_list.append(key)
        return tier_list

    @staticmethod
    def _compile_ix_list(key_list: Sequence[SolPubKey], ix_list: Sequence[SolTxIx]) -> List[_SoldersCompiledIx]:
        if len(key_list) > _MaxAccountIdx + 1:
            raise ValueError(f'Too many accounts in the message: {len(key_list)} > {_MaxAccountIdx + 1}')

        key_idx_dict: Dict[SolPubKey, int] = {key: idx for idx, key in enumerate(key_list)}
        return [
            _SoldersCompiledIx(
                program_id_index=key_idx_dict[ix.program_id],
                data=bytes(ix.data),
                accounts=bytes([key_idx_dict[acct_meta.pubkey] for acct_meta in ix.accounts])
            )
            for ix in ix_list
        ]

    def compile_legacy(self, fee_payer: SolPubKey,
                       recent_block_hash: SolBlockHash,
                       ix_list: Sequence[SolTxIx]) -> SolLegacyMsg:
        key_meta_dict = self._collect_key_meta(fee_payer, ix_list)
        tier_list = self._split_key_tier_list(key_meta_dict)

        key_list = (
            tier_list.signed_key_list +
            tier_list.unsigned_rw_key_list +
            tier_list.unsigned_ro_key_list +
            tier_list.program_key_list
        )

        return SolLegacyMsg.new_with_compiled_instructions(
            len(tier_list.signed_key_list),
            len(tier_list.signed_ro_key_list),
            len(tier_list.unsigned_ro_key_list) + len(tier_list.program_key_list),
            key_list,
            recent_block_hash,
            self._compile_ix_list(key_list, ix_list)
        )

    @staticmethod
    def _build_alt_lookup_list(tier_list: _KeyTierList,
                               alt_info_list: Sequence[ALTInfo],
                               static_key_set: frozenset) -> Tuple[List[_ALTLookup], List[SolPubKey], List[SolPubKey]]:
        alt_lookup_list = [_ALTLookup(alt_info, list(), list(), list(), list()) for alt_info in alt_info_list]
        static_rw_key_list: List[SolPubKey] = list()
        static_ro_key_list: List[SolPubKey] = list()

        def _lookup(_key: SolPubKey, _is_writable: bool) -> None:
            if _key not in static_key_set:
                for alt_lookup in alt_lookup_list:
                    idx = alt_lookup.alt_info.find_index(_key)
                    if idx is None:
                        continue

                    if _is_writable:
                        alt_lookup.rw_idx_list.append(idx)
                        alt_lookup.rw_key_list.append(_key)
                    else:
                        alt_lookup.ro_idx_list.append(idx)
                        alt_lookup.ro_key_list.append(_key)
                    return

                if len(alt_info_list) > 0:
                    raise ALTUnresolvedAccountError(str(_key))

            if _is_writable:
                static_rw_key_list.append(_key)
            else:
                static_ro_key_list.append(_key)

        for key in tier_list.unsigned_rw_key_list:
            _lookup(key, True)
        for key in tier_list.unsigned_ro_key_list:
            _lookup(key, False)

        alt_lookup_list = [alt_lookup for alt_lookup in alt_lookup_list if not alt_lookup.is_empty()]
        return alt_lookup_list, static_rw_key_list, static_ro_key_list

    def compile_v0(self, fee_payer: SolPubKey,
                   recent_block_hash: SolBlockHash,
                   ix_list: Sequence[SolTxIx],
                   alt_info_list: Sequence[ALTInfo] = tuple(),
                   static_key_list: Sequence[SolPubKey] = tuple()) -> SolV0Msg:
        """Compiles a v0 message, replacing non-signer accounts by indexes in lookup tables.

        Signers and program ids are always written in full. A non-signer account
        must be found in one of the tables or be listed in static_key_list.
        Without lookup tables all accounts are static.
        """
        key_meta_dict = self._collect_key_meta(fee_payer, ix_list)
        tier_list = self._split_key_tier_list(key_meta_dict)

        alt_lookup_list, static_rw_key_list, static_ro_key_list = self._build_alt_lookup_list(
            tier_list, alt_info_list, frozenset(static_key_list)
        )

        # Account indexes must index into the list of addresses
        # constructed from the concatenation of three key lists:
        #   1) message `account_keys`
        #   2) ordered list of keys loaded from `writable` lookup table indexes
        #   3) ordered list of keys loaded from `readable` lookup table indexes
        msg_key_list = (
            tier_list.signed_key_list +
            static_rw_key_list +
            static_ro_key_list +
            tier_list.program_key_list
        )
        full_key_list = (
            msg_key_list +
            [key for alt_lookup in alt_lookup_list for key in alt_lookup.rw_key_list] +
            [key for alt_lookup in alt_lookup_list for key in alt_lookup.ro_key_list]
        )

        alt_msg_list = [
            _SoldersMsgALT(
                account_key=alt_lookup.alt_info.table_account,
                writable_indexes=bytes(alt_lookup.rw_idx_list),
                readonly_indexes=bytes(alt_lookup.ro_idx_list)
            )
            for alt_lookup in alt_lookup_list
        ]

        hdr = _SoldersMsgHdr(
            num_required_signatures=len(tier_list.signed_key_list),
            num_readonly_signed_accounts=len(tier_list.signed_ro_key_list),
            num_readonly_unsigned_accounts=len(static_ro_key_list) + len(tier_list.program_key_list)
        )

        if len(alt_msg_list) > 0:
            LOG.debug(
                f'Compiled v0 message: {len(msg_key_list)} static accounts, '
                f'{len(full_key_list) - len(msg_key_list)} accounts from {len(alt_msg_list)} lookup tables'
            )

        return SolV0Msg(
            header=hdr,
            account_keys=msg_key_list,
            recent_blockhash=recent_block_hash,
            instructions=self._compile_ix_list(full_key_list, ix_list),
            address_table_lookups=alt_msg_list
        )

    @staticmethod
    def get_msg_size(msg: SolMsg) -> int:
        return len(solders.message.to_bytes_versioned(msg))
