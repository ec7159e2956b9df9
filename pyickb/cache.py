import concurrent.futures
import pyickb.core
import pyickb.errors
import pyickb.rpc
import threading
import typing


class HeaderCache:
    # Memoizes block number to block hash and block hash to header for the lifetime of one builder. Never share an
    # instance between builders: a header seen while building one transaction may belong to a fork by the next one.

    def __init__(self, client: pyickb.rpc.Client) -> None:
        self.client = client
        self.lock = threading.Lock()
        self.block_hash_table: typing.Dict[int, concurrent.futures.Future] = {}
        self.header_table: typing.Dict[bytes, concurrent.futures.Future] = {}

    def memo(self, table: typing.Dict, key: typing.Any, fetch: typing.Callable[[], typing.Any]) -> typing.Any:
        # The first caller for a key fetches, later callers wait on the same future. Failures are not memoized.
        with self.lock:
            future = table.get(key)
            owner = future is None
            if owner:
                future = concurrent.futures.Future()
                table[key] = future
        if owner:
            try:
                future.set_result(fetch())
            except Exception as e:
                with self.lock:
                    del table[key]
                future.set_exception(e)
        return future.result()

    def seed(self, block_number: int, block_hash: bytearray) -> None:
        with self.lock:
            if block_number not in self.block_hash_table:
                future = concurrent.futures.Future()
                future.set_result(bytearray(block_hash))
                self.block_hash_table[block_number] = future

    def block_hash(self, block_number: int) -> bytearray:
        def fetch() -> bytearray:
            r = self.client.get_block_hash(hex(block_number))
            if not r:
                raise pyickb.errors.BlockHashNotFound(f'block hash not found from block number {block_number}')
            return pyickb.core.hexbytes(r)
        return self.memo(self.block_hash_table, block_number, fetch)

    def header(self, block_hash: bytearray) -> pyickb.core.Header:
        def fetch() -> pyickb.core.Header:
            r = self.client.get_header(f'0x{block_hash.hex()}')
            if not r:
                raise pyickb.errors.HeaderNotFound(f'header not found from block hash 0x{block_hash.hex()}')
            return pyickb.core.Header.rpc_decode(r)
        return self.memo(self.header_table, bytes(block_hash), fetch)

    def header_by_number(self, block_number: int) -> pyickb.core.Header:
        return self.header(self.block_hash(block_number))

    def cell_header(self, cell: pyickb.core.Cell) -> pyickb.core.Header:
        if not cell.located():
            raise pyickb.errors.MissingLocationMetadata('cell must have both block hash and block number populated')
        self.seed(cell.block_number, cell.block_hash)
        return self.header(cell.block_hash)
