from __future__ import annotations

import json
import logging

from pathlib import Path
from typing import Optional, Union

from .config import Config
from .errors import ALTError
from .solana_tx import SolPubKey, b58_to_pubkey


LOG = logging.getLogger(__name__)


class ALTStateFile:
    """Keeps the address of a lookup table between runs as {"table": "<base58>"}."""

    _table_key = 'table'

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)

    @staticmethod
    def from_config(config: Config) -> ALTStateFile:
        return ALTStateFile(config.alt_state_path)

    @property
    def path(self) -> Path:
        return self._path

    def save(self, table_account: SolPubKey) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps({self._table_key: str(table_account)}))
        LOG.debug(f'Saved ALT {str(table_account)} to {self._path}')

    def load(self) -> Optional[SolPubKey]:
        if not self._path.exists():
            return None

        try:
            state = json.loads(self._path.read_text())
            return b58_to_pubkey(state[self._table_key])
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise ALTError(f'Bad lookup table record in {self._path}: {exc}')
