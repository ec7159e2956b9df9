import json
import pyickb
import pytest
import typing


def registry() -> pyickb.config.Registry:
    conf = pyickb.config.ObjectDict({
        'hrp': 'ckt',
        'url': 'http://127.0.0.1:8114',
        'script': pyickb.config.ObjectDict({
            'dao': pyickb.config.entry(pyickb.config.dao_code_hash, 1, '00' * 32, 2, 0),
            'secp256k1_blake160': pyickb.config.entry(pyickb.config.secp256k1_blake160_code_hash, 1, '00' * 32, 0, 1),
        }),
        'extra_cell_deps': [],
    })
    for i, name in enumerate(['pw_lock', 'sudt', 'ickb_logic', 'owner_lock', 'receipt_type', 'receipt_lock']):
        pyickb.config.register(conf, name, f'{i + 1:02x}' * 32, 1, 'ff' * 32, i, 0)
    return pyickb.config.Registry(conf)


class Client(pyickb.rpc.Client):
    # A node that knows a handful of headers and accepts every transaction.

    def __init__(self) -> None:
        super().__init__('http://127.0.0.1:8114')
        self.block_hashes: typing.Dict[int, str] = {}
        self.headers: typing.Dict[str, typing.Dict] = {}
        self.tip: typing.Optional[pyickb.core.Header] = None
        self.status = 'committed'
        self.sent: typing.List[typing.Dict] = []
        self.calls: typing.List[str] = []

    def get_block_hash(self, block_number: str) -> typing.Optional[str]:
        self.calls.append('get_block_hash')
        return self.block_hashes.get(int(block_number, 16))

    def get_header(self, block_hash: str) -> typing.Optional[typing.Dict]:
        self.calls.append('get_header')
        return self.headers.get(block_hash)

    def get_tip_header(self) -> typing.Dict:
        return self.tip.rpc()

    def get_transaction(self, tx_hash: str) -> typing.Optional[typing.Dict]:
        self.calls.append('get_transaction')
        return {'tx_status': {'status': self.status}}

    def send_transaction(self, transaction: typing.Dict, outputs_validator: typing.Optional[str] = None) -> str:
        self.sent.append(transaction)
        return '0x' + pyickb.core.hash(bytearray(json.dumps(transaction).encode())).hex()


class Collector:
    # Answers queries from a fixed list of live cells.

    def __init__(self) -> None:
        self.cells: typing.List[pyickb.core.Cell] = []

    def collect(self, query: pyickb.collector.Query) -> typing.List[pyickb.core.Cell]:
        r = []
        for c in self.cells:
            if c.output.lock != query.lock:
                continue
            if query.kype_empty and c.output.kype is not None:
                continue
            if query.data_empty and c.data:
                continue
            if not query.match(c):
                continue
            r.append(c)
        return r


class Chain:
    def __init__(self) -> None:
        self.registry = registry()
        self.client = Client()
        self.collector = Collector()
        self.lock = self.registry.script('secp256k1_blake160', bytearray.fromhex('75178f34549c5fe9cd1a0c57aebd01e7ddf9249e'))
        self.signer = pyickb.signer.SighashAllSigner(lambda digest: bytearray([1]) * 65)
        self.nonce = 0
        self.genesis = self.header(1, pyickb.core.Epoch(0, 1, 1000))
        self.tip(pyickb.core.Epoch(1000, 0, 1000))

    def header(self, number: int, epoch: pyickb.core.Epoch, ar: int = pyickb.economics.AR_0) -> pyickb.core.Header:
        raw = pyickb.core.RawHeader(
            0,
            0x1d08a31f,
            0,
            number,
            epoch.encode(),
            bytearray(32),
            bytearray(32),
            bytearray(32),
            bytearray(32),
            pyickb.core.dao_encode(0, ar, 0, 0),
        )
        header = pyickb.core.Header(raw, 0)
        h = f'0x{header.hash().hex()}'
        self.client.block_hashes[number] = h
        self.client.headers[h] = header.rpc()
        return header

    def tip(self, epoch: pyickb.core.Epoch, ar: int = pyickb.economics.AR_0) -> pyickb.core.Header:
        self.client.tip = self.header(10**6, epoch, ar)
        return self.client.tip

    def cell(
        self,
        capacity: int,
        lock: pyickb.core.Script,
        kype: typing.Optional[pyickb.core.Script] = None,
        data: typing.Optional[bytearray] = None,
        header: typing.Optional[pyickb.core.Header] = None,
        live: bool = True,
    ) -> pyickb.core.Cell:
        header = header or self.genesis
        self.nonce += 1
        cell = pyickb.core.Cell(
            pyickb.core.CellOutput(capacity, lock, kype),
            data if data is not None else bytearray(),
            pyickb.core.OutPoint(pyickb.core.hash(bytearray(self.nonce.to_bytes(8, 'little'))), 0),
            header.hash(),
            header.raw.number,
        )
        if live:
            self.collector.cells.append(cell)
        return cell

    def builder(self) -> pyickb.builder.Builder:
        return pyickb.builder.Builder(
            self.registry,
            self.client,
            self.collector,
            self.lock,
            self.signer,
            pyickb.rpc.Retry(3, 0),
        )


@pytest.fixture
def chain() -> Chain:
    return Chain()
