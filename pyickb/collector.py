import pyickb.cache
import pyickb.core
import pyickb.rpc
import typing


class Query:
    # What to collect. The lock always matches exactly. kype selects cells with exactly this type script, kype_empty
    # cells without any type script. data_empty restricts to cells without data. block_range is [start, end).

    def __init__(
        self,
        lock: pyickb.core.Script,
        kype: typing.Optional[pyickb.core.Script] = None,
        kype_empty: bool = False,
        data_empty: bool = False,
        block_range: typing.Optional[typing.Tuple[int, int]] = None,
    ) -> None:
        assert not (kype and kype_empty)
        self.lock = lock
        self.kype = kype
        self.kype_empty = kype_empty
        self.data_empty = data_empty
        self.block_range = block_range

    def search_key(self) -> typing.Dict:
        # See: https://github.com/nervosnetwork/ckb/tree/develop/rpc#method-get_cells
        f = {}
        if self.kype:
            f['script'] = self.kype.rpc()
        if self.kype_empty:
            f['script_len_range'] = ['0x0', '0x1']
        if self.data_empty:
            f['output_data_len_range'] = ['0x0', '0x1']
        if self.block_range:
            f['block_range'] = [hex(self.block_range[0]), hex(self.block_range[1])]
        r = {
            'script': self.lock.rpc(),
            'script_type': 'lock',
            'script_search_mode': 'exact',
            'with_data': True,
        }
        if f:
            r['filter'] = f
        return r

    def match(self, cell: pyickb.core.Cell) -> bool:
        # The indexer filters type scripts by prefix; keep only exact matches.
        if self.kype:
            return pyickb.core.script_eq(cell.output.kype, self.kype)
        return True


class Collector:
    # The cell query collaborator, backed by the indexer built into the node.

    def __init__(self, client: pyickb.rpc.Client) -> None:
        self.client = client

    def collect(self, query: Query) -> typing.List[pyickb.core.Cell]:
        cache = pyickb.cache.HeaderCache(self.client)
        r = []
        for e in self.client.get_cells_iter(query.search_key()):
            cell = pyickb.core.Cell.rpc_decode(e)
            if not query.match(cell):
                continue
            cell.block_hash = cache.block_hash(cell.block_number)
            r.append(cell)
        return r
