from __future__ import annotations

import json
from typing import Union, Any, Dict, List, Tuple

from .utils import get_from_dict


def get_log_list(receipt: Dict[str, Any]) -> List[str]:
    for path in (('data', 'logs'), ('meta', 'logMessages'), ('logs', )):
        log_list = get_from_dict(receipt, path, None)
        if log_list is not None:
            return log_list
    return list()


class SolTxErrorParser:
    """Extracts the reason of a failure from a sendTransaction error or a signature status."""

    _already_processed_msg = 'This transaction has already been processed'
    _already_processed_err = 'AlreadyProcessed'
    _log_prefix_list = ('Program log: ', 'Program failed to complete: ')
    _max_log_cnt = 5

    def __init__(self, error: Union[Dict[str, Any], str, None]):
        self._error = error

    def _get_value(self, path: Tuple[Any, ...]) -> Any:
        if not isinstance(self._error, dict):
            return None
        return get_from_dict(self._error, path, None)

    def _get_err(self) -> Any:
        for path in (('data', 'err'), ('err', )):
            err = self._get_value(path)
            if err is not None:
                return err
        return None

    def _get_log_list(self) -> List[str]:
        if not isinstance(self._error, dict):
            return list()
        return get_log_list(self._error)

    def check_if_already_processed(self) -> bool:
        if self._get_err() == self._already_processed_err:
            return True

        msg = self._get_value(('message', ))
        return isinstance(msg, str) and (msg.find(self._already_processed_msg) != -1)

    def get_error_msg(self) -> str:
        if self._error is None:
            return ''
        elif isinstance(self._error, str):
            return self._error

        msg = self._get_value(('message', ))
        if msg is None:
            err = self._get_err()
            msg = json.dumps(err if err is not None else self._error)

        log_list: List[str] = list()
        for log_rec in self._get_log_list():
            for prefix in self._log_prefix_list:
                if log_rec.startswith(prefix):
                    log_list.append(log_rec[len(prefix):])
                    break

        if len(log_list) > 0:
            msg += ': ' + '. '.join(log_list[-self._max_log_cnt:])
        return msg
