import itertools
import logging
import pyickb.errors
import random
import requests
import time
import typing

# Doc: https://github.com/nervosnetwork/ckb/tree/develop/rpc

log = logging.getLogger(__name__)


class Retry:
    # Fixed budget polling policy: at most attempts tries, interval seconds apart.

    def __init__(self, attempts: int = 120, interval: float = 1.0) -> None:
        assert attempts > 0
        assert interval >= 0
        self.attempts = attempts
        self.interval = interval


class Client:
    def __init__(self, url: str, timeout: float = 10) -> None:
        self.url = url
        self.timeout = timeout

    def post(self, payload: typing.Any) -> typing.Any:
        try:
            r = requests.post(self.url, json=payload, timeout=self.timeout)
            r.raise_for_status()
            return r.json()
        except requests.RequestException as e:
            raise pyickb.errors.NetworkFailure(str(e)) from e

    def call(self, method: str, params: typing.List) -> typing.Any:
        log.debug('call %s %s', method, params)
        r = self.post({
            'id': random.randint(0x00000000, 0xffffffff),
            'jsonrpc': '2.0',
            'method': method,
            'params': params,
        })
        if 'error' in r:
            raise pyickb.errors.RPCError(r['error'].get('message', ''), r['error'])
        return r['result']

    def batch(self, calls: typing.List[typing.Tuple[str, typing.List]]) -> typing.List[typing.Dict]:
        # Send all calls in one request. Responses are returned in request order, whatever order the node used.
        log.debug('batch %s calls', len(calls))
        r = self.post([{
            'id': i,
            'jsonrpc': '2.0',
            'method': e[0],
            'params': e[1],
        } for i, e in enumerate(calls)])
        if isinstance(r, dict):
            # The node rejected the batch as a whole.
            raise pyickb.errors.RPCError(r['error'].get('message', ''), r['error'])
        r = sorted(r, key=lambda e: e['id'])
        assert [e['id'] for e in r] == list(range(len(calls)))
        return r

    def get_block_hash(self, block_number: str) -> typing.Optional[str]:
        return self.call('get_block_hash', [block_number])

    def get_cells(self, search_key: typing.Dict, order: str, limit: str, after: typing.Optional[str]) -> typing.Dict:
        return self.call('get_cells', [search_key, order, limit, after])

    def get_cells_iter(self, search_key: typing.Dict) -> typing.Generator:
        cursor = None
        limits = 256
        for _ in itertools.repeat(0):
            r = self.get_cells(search_key, 'asc', hex(limits), cursor)
            cursor = r['last_cursor']
            for e in r['objects']:
                yield e
            if len(r['objects']) < limits:
                break

    def get_fee_rate_statistics(self, target: typing.Optional[str] = None) -> typing.Optional[typing.Dict]:
        return self.call('get_fee_rate_statistics', [target])

    def get_header(self, block_hash: str) -> typing.Optional[typing.Dict]:
        return self.call('get_header', [block_hash])

    def get_header_by_number(self, block_number: str) -> typing.Optional[typing.Dict]:
        return self.call('get_header_by_number', [block_number])

    def get_live_cell(self, out_point: typing.Dict, with_data: bool) -> typing.Dict:
        return self.call('get_live_cell', [out_point, with_data])

    def get_tip_header(self) -> typing.Dict:
        return self.call('get_tip_header', [])

    def get_transaction(self, tx_hash: str) -> typing.Optional[typing.Dict]:
        return self.call('get_transaction', [tx_hash])

    def send_transaction(self, transaction: typing.Dict, outputs_validator: typing.Optional[str] = None) -> str:
        return self.call('send_transaction', [transaction, outputs_validator])

    def wait(self, tx_hash: str, retry: typing.Optional[Retry] = None) -> None:
        # Poll until the transaction is committed. Only pending and proposed are worth waiting for.
        retry = retry or Retry()
        for _ in range(retry.attempts):
            r = self.get_transaction(tx_hash)
            status = r['tx_status']['status'] if r else 'unknown'
            log.debug('wait %s %s', tx_hash, status)
            if status == 'committed':
                return
            if status not in ['pending', 'proposed']:
                raise pyickb.errors.UnexpectedStatus(f'transaction {tx_hash} is {status}', {'status': status})
            time.sleep(retry.interval)
        raise pyickb.errors.TransactionTimeout(f'transaction {tx_hash} not committed after {retry.attempts} attempts')
