import os
import logging

from decimal import Decimal
from urllib.parse import urlparse
from typing import Optional, Union

from .constants import MIN_FINALIZE_SEC
from .solana_tx import SolCommit


LOG = logging.getLogger(__name__)


def parse_solana_ws_url(solana_url: str) -> str:
    parsed_solana_url = urlparse(solana_url)
    scheme = 'wss' if parsed_solana_url.scheme == 'https' else 'ws'

    if parsed_solana_url.port is not None:
        port = parsed_solana_url.port + 1
        netloc = f'{parsed_solana_url.hostname}:{port}'
    else:
        netloc = parsed_solana_url.netloc

    parsed_solana_ws_url = parsed_solana_url._replace(
        scheme=scheme,
        netloc=netloc
    )

    return parsed_solana_ws_url.geturl()


class Config:
    def __init__(self):
        self._solana_url = os.environ.get('SOLANA_URL', 'http://localhost:8899')
        self._solana_timeout = self._env_num('SOLANA_TIMEOUT', Decimal('15.0'), Decimal('1.0'), Decimal('3600'))
        self._solana_ws_url = os.environ.get('SOLANA_WS_URL', parse_solana_ws_url(self._solana_url))
        self._hide_solana_url = self._env_bool('HIDE_SOLANA_URL', True)

        # Transaction execution settings
        self._retry_on_fail = self._env_num('RETRY_ON_FAIL', 10, 1, 50)
        self._confirm_timeout_sec = self._env_num('CONFIRM_TIMEOUT_SEC', int(MIN_FINALIZE_SEC), 4, 120)
        self._commit_type = self._env_commit_level(
            'COMMIT_LEVEL',
            SolCommit.Confirmed,
            SolCommit.Confirmed
        )
        self._skip_preflight = self._env_bool('SKIP_PREFLIGHT', False)

        # Address Lookup Table settings
        self._alt_propagation_delay_sec = self._env_num(
            'ALT_PROPAGATION_DELAY_SEC',
            Decimal('2.0'),
            Decimal('0.0'),
            Decimal('60.0')
        )
        self._alt_state_path = os.environ.get('ALT_STATE_PATH', 'lookup-table.json')

    @staticmethod
    def _env_commit_level(
        name: str,
        default_value: SolCommit.Type,
        min_value: Optional[SolCommit.Type] = None
    ) -> SolCommit.Type:
        value = os.environ.get(name, None)
        if value is None:
            return default_value

        try:
            value = SolCommit.to_type(value.lower().strip())
            if (min_value is not None) and (SolCommit.to_level(value) < SolCommit.to_level(min_value)):
                LOG.error(f'{name} cannot be less than min value {min_value}')
                return default_value

            return value
        except ValueError:
            LOG.error(f'Bad value for {name}, force to use default value {default_value}')
            return default_value

    @staticmethod
    def _env_bool(name: str, default_value: bool) -> bool:
        true_value_list = ('YES', 'ON', 'TRUE')
        false_value_list = ('NO', 'OFF', 'FALSE')

        value = os.environ.get(name, true_value_list[0] if default_value else false_value_list[0]).upper().strip()
        if (value not in true_value_list) and (value not in false_value_list):
            LOG.error(f'{name} cannot be: {true_value_list} or {false_value_list}')
            return default_value

        return value in true_value_list

    @staticmethod
    def _env_num(
        name: str, default_value: Union[int, Decimal],
        min_value: Optional[Union[int, Decimal]] = None,
        max_value: Optional[Union[int, Decimal]] = None
    ) -> Union[int, Decimal]:
        value = os.environ.get(name, None)
        if value is None:
            return default_value

        try:
            if isinstance(default_value, int):
                value = int(value, base=10)
            else:
                value = Decimal(value)
        except (ValueError, ArithmeticError):
            LOG.error(f'Bad value for {name}, force to use default value {default_value}')
            return default_value

        if (min_value is not None) and (value < min_value):
            LOG.error(f'{name} cannot be less than min value {min_value}')
            value = min_value
        elif (max_value is not None) and (value > max_value):
            LOG.error(f'{name} cannot be bigger than max value {max_value}')
            value = max_value
        return value

    ###################
    # Base settings

    @property
    def solana_url(self) -> str:
        return self._solana_url

    @property
    def solana_timeout(self) -> float:
        return float(self._solana_timeout)

    @property
    def solana_ws_url(self) -> str:
        return self._solana_ws_url

    @property
    def hide_solana_url(self) -> bool:
        return self._hide_solana_url

    #########################
    # Transaction execution settings

    @property
    def retry_on_fail(self) -> int:
        return self._retry_on_fail

    @property
    def confirm_timeout_sec(self) -> int:
        return self._confirm_timeout_sec

    @property
    def commit_type(self) -> SolCommit.Type:
        return self._commit_type

    @property
    def skip_preflight(self) -> bool:
        return self._skip_preflight

    #########################
    # Address Lookup Table settings

    @property
    def alt_propagation_delay_sec(self) -> float:
        return float(self._alt_propagation_delay_sec)

    @property
    def alt_state_path(self) -> str:
        return self._alt_state_path

    def as_dict(self) -> dict:
        config_dict = {
            'SOLANA_TIMEOUT': self.solana_timeout,
            'HIDE_SOLANA_URL': self.hide_solana_url,

            # Transaction execution settings
            'RETRY_ON_FAIL': self.retry_on_fail,
            'CONFIRM_TIMEOUT_SEC': self.confirm_timeout_sec,
            'COMMIT_LEVEL': self.commit_type,
            'SKIP_PREFLIGHT': self.skip_preflight,

            # Address Lookup Table settings
            'ALT_PROPAGATION_DELAY_SEC': self.alt_propagation_delay_sec,
            'ALT_STATE_PATH': self.alt_state_path,
        }
        if not self.hide_solana_url:
            config_dict.update({
                'SOLANA_URL': self.solana_url,
                'SOLANA_WS_URL': self.solana_ws_url,
            })
        return config_dict
