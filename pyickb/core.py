import functools
import hashlib
import json
import pyickb.denomination
import pyickb.errors
import pyickb.molecule
import typing

# Specifies how the script code_hash is used to match the script code and how to run the code.
script_hash_type_data = 0
script_hash_type_type = 1
script_hash_type_data1 = 2
script_hash_type_data2 = 4


def hash(data: bytearray) -> bytearray:
    return bytearray(hashlib.blake2b(data, digest_size=32, person=b'ckb-default-hash').digest())


def hexbytes(data: str) -> bytearray:
    assert data.startswith('0x')
    return bytearray.fromhex(data[2:])


class Script:
    def __init__(self, code_hash: bytearray, hash_type: int, args: bytearray) -> None:
        assert len(code_hash) == 32
        assert hash_type in [
            script_hash_type_data,
            script_hash_type_type,
            script_hash_type_data1,
            script_hash_type_data2,
        ]
        self.code_hash = code_hash
        self.hash_type = hash_type
        self.args = args

    def __repr__(self) -> str:
        return json.dumps(self.json())

    def __eq__(self, other: object) -> bool:
        assert isinstance(other, Script)
        return all([
            self.code_hash == other.code_hash,
            self.hash_type == other.hash_type,
            self.args == other.args,
        ])

    def hash(self) -> bytearray:
        return hash(self.molecule())

    def json(self) -> typing.Dict:
        return {
            'code_hash': self.code_hash.hex(),
            'hash_type': self.hash_type,
            'args': self.args.hex(),
        }

    def molecule(self) -> bytearray:
        return pyickb.molecule.Table([
            pyickb.molecule.Byte32,
            pyickb.molecule.Byte,
            pyickb.molecule.Bytes,
        ]).encode([self.code_hash, self.hash_type, self.args])

    @classmethod
    def molecule_decode(cls, data: bytearray) -> typing.Self:
        result = pyickb.molecule.Table([
            pyickb.molecule.Byte32,
            pyickb.molecule.Byte,
            pyickb.molecule.Bytes,
        ]).decode(data)
        return Script(result[0], result[1], result[2])

    def occupied_size(self) -> int:
        # Bytes counted against a cell's capacity: code_hash, hash_type and args.
        return 32 + 1 + len(self.args)

    def rpc(self) -> typing.Dict:
        return {
            'code_hash': f'0x{self.code_hash.hex()}',
            'hash_type': {
                script_hash_type_data: 'data',
                script_hash_type_type: 'type',
                script_hash_type_data1: 'data1',
                script_hash_type_data2: 'data2',
            }[self.hash_type],
            'args': f'0x{self.args.hex()}',
        }

    @classmethod
    def rpc_decode(cls, data: typing.Dict) -> typing.Self:
        return Script(
            hexbytes(data['code_hash']),
            {
                'data': script_hash_type_data,
                'type': script_hash_type_type,
                'data1': script_hash_type_data1,
                'data2': script_hash_type_data2,
            }[data['hash_type']],
            hexbytes(data['args']),
        )


def script_eq(a: typing.Optional[Script], b: typing.Optional[Script]) -> bool:
    # Exact match on all three fields. An absent type script never equals a present one.
    if a is None and b is None:
        raise pyickb.errors.UndefinedScriptComparison('comparing two undefined scripts')
    if a is None or b is None:
        return False
    return a == b


class OutPoint:
    def __init__(self, tx_hash: bytearray, index: int) -> None:
        assert len(tx_hash) == 32
        self.tx_hash = tx_hash
        self.index = index

    def __eq__(self, other: object) -> bool:
        assert isinstance(other, OutPoint)
        return all([
            self.tx_hash == other.tx_hash,
            self.index == other.index,
        ])

    def __hash__(self) -> int:
        return int.from_bytes(self.molecule())

    def __repr__(self) -> str:
        return json.dumps(self.json())

    def json(self) -> typing.Dict:
        return {
            'tx_hash': self.tx_hash.hex(),
            'index': self.index,
        }

    def molecule(self) -> bytearray:
        return pyickb.molecule.Struct([
            pyickb.molecule.Byte32,
            pyickb.molecule.U32,
        ]).encode([self.tx_hash, self.index])

    @classmethod
    def molecule_decode(cls, data: bytearray) -> typing.Self:
        result = pyickb.molecule.Struct([
            pyickb.molecule.Byte32,
            pyickb.molecule.U32,
        ]).decode(data)
        return OutPoint(result[0], result[1])

    @classmethod
    def molecule_size(cls) -> int:
        return pyickb.molecule.Byte32.size() + pyickb.molecule.U32.size()

    def rpc(self) -> typing.Dict:
        return {
            'tx_hash': f'0x{self.tx_hash.hex()}',
            'index': hex(self.index),
        }

    @classmethod
    def rpc_decode(cls, data: typing.Dict) -> typing.Self:
        return OutPoint(hexbytes(data['tx_hash']), int(data['index'], 16))


class CellInput:
    def __init__(self, since: int, previous_output: OutPoint) -> None:
        self.since = since
        self.previous_output = previous_output

    def __eq__(self, other: object) -> bool:
        assert isinstance(other, CellInput)
        return all([
            self.since == other.since,
            self.previous_output == other.previous_output,
        ])

    def __repr__(self) -> str:
        return json.dumps(self.json())

    def json(self) -> typing.Dict:
        return {
            'since': self.since,
            'previous_output': self.previous_output.json()
        }

    def molecule(self) -> bytearray:
        return pyickb.molecule.Struct([
            pyickb.molecule.U64,
            pyickb.molecule.Custom(OutPoint.molecule_size())
        ]).encode([self.since, self.previous_output.molecule()])

    @classmethod
    def molecule_decode(cls, data: bytearray) -> typing.Self:
        result = pyickb.molecule.Struct([
            pyickb.molecule.U64,
            pyickb.molecule.Custom(OutPoint.molecule_size())
        ]).decode(data)
        return CellInput(result[0], OutPoint.molecule_decode(result[1]))

    @classmethod
    def molecule_size(cls) -> int:
        return pyickb.molecule.U64.size() + OutPoint.molecule_size()

    def rpc(self) -> typing.Dict:
        return {
            'since': hex(self.since),
            'previous_output': self.previous_output.rpc()
        }


class CellOutput:
    def __init__(self, capacity: int, lock: Script, kype: typing.Optional[Script]) -> None:
        self.capacity = capacity
        self.lock = lock
        self.kype = kype

    def __eq__(self, other: object) -> bool:
        assert isinstance(other, CellOutput)
        return all([
            self.capacity == other.capacity,
            self.lock == other.lock,
            script_eq(self.kype, other.kype) if self.kype or other.kype else True,
        ])

    def __repr__(self) -> str:
        return json.dumps(self.json())

    def json(self) -> typing.Dict:
        return {
            'capacity': self.capacity,
            'lock': self.lock.json(),
            'type': self.kype.json() if self.kype else None
        }

    def molecule(self) -> bytearray:
        return pyickb.molecule.Table([
            pyickb.molecule.U64,
            pyickb.molecule.Custom(0),
            pyickb.molecule.Custom(0),
        ]).encode([
            self.capacity,
            self.lock.molecule(),
            self.kype.molecule() if self.kype else bytearray(),
        ])

    @classmethod
    def molecule_decode(cls, data: bytearray) -> typing.Self:
        result = pyickb.molecule.Table([
            pyickb.molecule.U64,
            pyickb.molecule.Custom(0),
            pyickb.molecule.Custom(0),
        ]).decode(data)
        return CellOutput(
            result[0],
            Script.molecule_decode(result[1]),
            Script.molecule_decode(result[2]) if result[2] else None
        )

    def rpc(self) -> typing.Dict:
        return {
            'capacity': hex(self.capacity),
            'lock': self.lock.rpc(),
            'type': self.kype.rpc() if self.kype else None
        }

    @classmethod
    def rpc_decode(cls, data: typing.Dict) -> typing.Self:
        return CellOutput(
            int(data['capacity'], 16),
            Script.rpc_decode(data['lock']),
            Script.rpc_decode(data['type']) if data.get('type') else None,
        )


class CellDep:
    def __init__(self, out_point: OutPoint, dep_type: int) -> None:
        self.out_point = out_point
        self.dep_type = dep_type

    def __eq__(self, other: object) -> bool:
        assert isinstance(other, CellDep)
        return all([
            self.out_point == other.out_point,
            self.dep_type == other.dep_type,
        ])

    def __repr__(self) -> str:
        return json.dumps(self.json())

    @classmethod
    def conf_decode(cls, data: typing.Any) -> typing.Self:
        return CellDep(OutPoint(data.out_point.tx_hash, data.out_point.index), data.dep_type)

    def json(self) -> typing.Dict:
        return {
            'out_point': self.out_point.json(),
            'dep_type': self.dep_type,
        }

    def molecule(self) -> bytearray:
        return pyickb.molecule.Struct([
            pyickb.molecule.Custom(OutPoint.molecule_size()),
            pyickb.molecule.Byte,
        ]).encode([self.out_point.molecule(), self.dep_type])

    @classmethod
    def molecule_size(cls) -> int:
        return OutPoint.molecule_size() + pyickb.molecule.Byte.size()

    def rpc(self) -> typing.Dict:
        return {
            'out_point': self.out_point.rpc(),
            'dep_type': {0: 'code', 1: 'dep_group'}[self.dep_type]
        }


class RawTransaction:
    def __init__(
        self,
        version: int,
        cell_deps: typing.List[CellDep],
        header_deps: typing.List[bytearray],
        inputs: typing.List[CellInput],
        outputs: typing.List[CellOutput],
        outputs_data: typing.List[bytearray]
    ) -> None:
        self.version = version
        self.cell_deps = cell_deps
        self.header_deps = header_deps
        self.inputs = inputs
        self.outputs = outputs
        self.outputs_data = outputs_data

    def __eq__(self, other: object) -> bool:
        assert isinstance(other, RawTransaction)
        return all([
            self.version == other.version,
            self.cell_deps == other.cell_deps,
            self.header_deps == other.header_deps,
            self.inputs == other.inputs,
            self.outputs == other.outputs,
            self.outputs_data == other.outputs_data,
        ])

    def __repr__(self) -> str:
        return json.dumps(self.json())

    def hash(self) -> bytearray:
        return hash(self.molecule())

    def json(self) -> typing.Dict:
        return {
            'version': self.version,
            'cell_deps': [e.json() for e in self.cell_deps],
            'header_deps': [e.hex() for e in self.header_deps],
            'inputs': [e.json() for e in self.inputs],
            'outputs': [e.json() for e in self.outputs],
            'outputs_data': [e.hex() for e in self.outputs_data],
        }

    def molecule(self) -> bytearray:
        return pyickb.molecule.Table([
            pyickb.molecule.U32,
            pyickb.molecule.Slice(pyickb.molecule.Custom(CellDep.molecule_size())),
            pyickb.molecule.Slice(pyickb.molecule.Byte32),
            pyickb.molecule.Slice(pyickb.molecule.Custom(CellInput.molecule_size())),
            pyickb.molecule.Scale(pyickb.molecule.Custom(0)),
            pyickb.molecule.Scale(pyickb.molecule.Bytes),
        ]).encode([
            self.version,
            [e.molecule() for e in self.cell_deps],
            self.header_deps,
            [e.molecule() for e in self.inputs],
            [e.molecule() for e in self.outputs],
            self.outputs_data,
        ])

    def rpc(self) -> typing.Dict:
        return {
            'version': hex(self.version),
            'cell_deps': [e.rpc() for e in self.cell_deps],
            'header_deps': [f'0x{e.hex()}' for e in self.header_deps],
            'inputs': [e.rpc() for e in self.inputs],
            'outputs': [e.rpc() for e in self.outputs],
            'outputs_data': [f'0x{e.hex()}' for e in self.outputs_data],
        }


class Transaction:
    def __init__(self, raw: RawTransaction, witnesses: typing.List[bytearray]) -> None:
        self.raw = raw
        self.witnesses = witnesses

    def __eq__(self, other: object) -> bool:
        assert isinstance(other, Transaction)
        return all([
            self.raw == other.raw,
            self.witnesses == other.witnesses,
        ])

    def __repr__(self) -> str:
        return json.dumps(self.json())

    def hash(self) -> bytearray:
        return self.raw.hash()

    def hash_sighash_all(self, major: int, other: typing.List[int]) -> bytearray:
        # See: https://github.com/nervosnetwork/ckb-system-scripts/wiki/How-to-sign-transaction
        lock = WitnessArgs.molecule_decode(self.witnesses[major]).lock
        assert lock is not None
        assert all([e == 0 for e in lock])
        b = bytearray()
        b.extend(self.raw.hash())
        for e in [major] + [e for e in other if e < len(self.witnesses)]:
            w = self.witnesses[e]
            b.extend(len(w).to_bytes(8, 'little'))
            b.extend(w)
        for e in self.witnesses[len(self.raw.inputs):]:
            b.extend(len(e).to_bytes(8, 'little'))
            b.extend(e)
        return hash(b)

    def json(self) -> typing.Dict:
        r = self.raw.json()
        r['witnesses'] = [e.hex() for e in self.witnesses]
        return r

    def molecule(self) -> bytearray:
        return pyickb.molecule.Table([
            pyickb.molecule.Custom(0),
            pyickb.molecule.Scale(pyickb.molecule.Bytes),
        ]).encode([self.raw.molecule(), self.witnesses])

    def rpc(self) -> typing.Dict:
        r = self.raw.rpc()
        r['witnesses'] = [f'0x{e.hex()}' for e in self.witnesses]
        return r


def epoch_encode(e: int, i: int, l: int) -> int:
    assert 0 <= e and e <= 0xffffff
    assert 0 <= i and i <= 0xffff
    assert 0 <= l and l <= 0xffff
    return l << 0x28 | i << 0x18 | e


def epoch_decode(v: int) -> typing.Tuple[int, int, int]:
    e = v & 0xffffff
    i = v >> 0x18 & 0xffff
    l = v >> 0x28 & 0xffff
    return e, i, l


@functools.total_ordering
class Epoch:
    # A point in time expressed as number + index / length. Fractions are compared by cross multiplication, so no
    # floating point is involved.

    def __init__(self, number: int, index: int, length: int) -> None:
        self.number = number
        self.index = index
        self.length = length

    def __eq__(self, other: object) -> bool:
        assert isinstance(other, Epoch)
        return all([
            self.number == other.number,
            self.index * other.length == other.index * self.length,
        ])

    def __lt__(self, other: object) -> bool:
        assert isinstance(other, Epoch)
        if self.number != other.number:
            return self.number < other.number
        return self.index * other.length < other.index * self.length

    def __repr__(self) -> str:
        return json.dumps(self.json())

    def json(self) -> typing.Dict:
        return {
            'number': self.number,
            'index': self.index,
            'length': self.length,
        }

    def encode(self) -> int:
        return epoch_encode(self.number, self.index, self.length)

    @classmethod
    def decode(cls, data: int) -> typing.Self:
        e, i, l = epoch_decode(data)
        return Epoch(e, i, l)


class WitnessArgs:
    def __init__(
        self,
        lock: typing.Optional[bytearray],
        input_type: typing.Optional[bytearray],
        output_type: typing.Optional[bytearray],
    ) -> None:
        self.lock = lock
        self.input_type = input_type
        self.output_type = output_type

    def __eq__(self, other: object) -> bool:
        assert isinstance(other, WitnessArgs)
        return all([
            self.lock == other.lock,
            self.input_type == other.input_type,
            self.output_type == other.output_type,
        ])

    def __repr__(self) -> str:
        return json.dumps(self.json())

    def json(self) -> typing.Dict:
        return {
            'lock': self.lock.hex() if self.lock is not None else None,
            'input_type': self.input_type.hex() if self.input_type is not None else None,
            'output_type': self.output_type.hex() if self.output_type is not None else None,
        }

    def molecule(self) -> bytearray:
        return pyickb.molecule.Table([
            pyickb.molecule.Option(pyickb.molecule.Bytes),
            pyickb.molecule.Option(pyickb.molecule.Bytes),
            pyickb.molecule.Option(pyickb.molecule.Bytes),
        ]).encode([self.lock, self.input_type, self.output_type])

    @classmethod
    def molecule_decode(cls, data: bytearray) -> typing.Self:
        result = pyickb.molecule.Table([
            pyickb.molecule.Option(pyickb.molecule.Bytes),
            pyickb.molecule.Option(pyickb.molecule.Bytes),
            pyickb.molecule.Option(pyickb.molecule.Bytes),
        ]).decode(data)
        return WitnessArgs(result[0], result[1], result[2])


class RawHeader:
    def __init__(
        self,
        version: int,
        compact_target: int,
        timestamp: int,
        number: int,
        epoch: int,
        parent_hash: bytearray,
        transactions_root: bytearray,
        proposals_hash: bytearray,
        extra_hash: bytearray,
        dao: bytearray,
    ) -> None:
        self.version = version
        self.compact_target = compact_target
        self.timestamp = timestamp
        self.number = number
        self.epoch = epoch
        self.parent_hash = parent_hash
        self.transactions_root = transactions_root
        self.proposals_hash = proposals_hash
        self.extra_hash = extra_hash
        self.dao = dao

    def json(self) -> typing.Dict:
        return {
            'version': self.version,
            'compact_target': self.compact_target,
            'timestamp': self.timestamp,
            'number': self.number,
            'epoch': self.epoch,
            'parent_hash': self.parent_hash.hex(),
            'transactions_root': self.transactions_root.hex(),
            'proposals_hash': self.proposals_hash.hex(),
            'extra_hash': self.extra_hash.hex(),
            'dao': self.dao.hex(),
        }

    def molecule(self) -> bytearray:
        return pyickb.molecule.Struct([
            pyickb.molecule.U32,
            pyickb.molecule.U32,
            pyickb.molecule.U64,
            pyickb.molecule.U64,
            pyickb.molecule.U64,
            pyickb.molecule.Byte32,
            pyickb.molecule.Byte32,
            pyickb.molecule.Byte32,
            pyickb.molecule.Byte32,
            pyickb.molecule.Byte32,
        ]).encode([
            self.version,
            self.compact_target,
            self.timestamp,
            self.number,
            self.epoch,
            self.parent_hash,
            self.transactions_root,
            self.proposals_hash,
            self.extra_hash,
            self.dao,
        ])

    def rpc(self) -> typing.Dict:
        return {
            'version': hex(self.version),
            'compact_target': hex(self.compact_target),
            'timestamp': hex(self.timestamp),
            'number': hex(self.number),
            'epoch': hex(self.epoch),
            'parent_hash': f'0x{self.parent_hash.hex()}',
            'transactions_root': f'0x{self.transactions_root.hex()}',
            'proposals_hash': f'0x{self.proposals_hash.hex()}',
            'extra_hash': f'0x{self.extra_hash.hex()}',
            'dao': f'0x{self.dao.hex()}',
        }

    @classmethod
    def rpc_decode(cls, data: typing.Dict) -> typing.Self:
        return RawHeader(
            version=int(data['version'], 16),
            compact_target=int(data['compact_target'], 16),
            timestamp=int(data['timestamp'], 16),
            number=int(data['number'], 16),
            epoch=int(data['epoch'], 16),
            parent_hash=hexbytes(data['parent_hash']),
            transactions_root=hexbytes(data['transactions_root']),
            proposals_hash=hexbytes(data['proposals_hash']),
            extra_hash=hexbytes(data['extra_hash']),
            dao=hexbytes(data['dao']),
        )


class Header:
    def __init__(self, raw: RawHeader, nonce: int) -> None:
        self.raw = raw
        self.nonce = nonce

    def __repr__(self) -> str:
        return json.dumps(self.json())

    def ar(self) -> int:
        return dao_decode(self.raw.dao)[1]

    def epoch(self) -> Epoch:
        return Epoch.decode(self.raw.epoch)

    def hash(self) -> bytearray:
        return hash(self.molecule())

    def json(self) -> typing.Dict:
        r = self.raw.json()
        r['nonce'] = self.nonce
        return r

    def molecule(self) -> bytearray:
        return self.raw.molecule() + pyickb.molecule.U128.encode(self.nonce)

    def rpc(self) -> typing.Dict:
        r = self.raw.rpc()
        r['nonce'] = hex(self.nonce)
        return r

    @classmethod
    def rpc_decode(cls, data: typing.Dict) -> typing.Self:
        return Header(RawHeader.rpc_decode(data), int(data['nonce'], 16))


def dao_encode(c: int, ar: int, s: int, u: int) -> bytearray:
    # CKB's block header has a particular field named dao containing auxiliary information for Nervos DAO's use.
    # https://github.com/nervosnetwork/rfcs/blob/master/rfcs/0023-dao-deposit-withdraw/0023-dao-deposit-withdraw.md
    return pyickb.molecule.Struct([pyickb.molecule.U64] * 4).encode([c, ar, s, u])


def dao_decode(d: bytearray) -> typing.Tuple[int, int, int, int]:
    c, ar, s, u = pyickb.molecule.Struct([pyickb.molecule.U64] * 4).decode(d)
    return c, ar, s, u


class Cell:
    # A live cell as seen by the indexer: its output, its data and where it sits on chain. Cells queued as transaction
    # inputs must know their out point, block hash and block number.

    def __init__(
        self,
        output: CellOutput,
        data: bytearray,
        out_point: typing.Optional[OutPoint] = None,
        block_hash: typing.Optional[bytearray] = None,
        block_number: typing.Optional[int] = None,
    ) -> None:
        self.output = output
        self.data = data
        self.out_point = out_point
        self.block_hash = block_hash
        self.block_number = block_number

    def __eq__(self, other: object) -> bool:
        assert isinstance(other, Cell)
        return all([
            self.output == other.output,
            self.data == other.data,
            self.out_point == other.out_point if self.out_point and other.out_point else self.out_point is other.out_point,
        ])

    def __repr__(self) -> str:
        return json.dumps(self.json())

    def clone(self) -> typing.Self:
        # Same output and data, no location: the shape of a cell that is about to be recreated.
        output = CellOutput(self.output.capacity, self.output.lock, self.output.kype)
        return Cell(output, bytearray(self.data))

    def located(self) -> bool:
        return all([
            self.out_point is not None,
            self.block_hash is not None and len(self.block_hash) != 0,
            self.block_number is not None,
        ])

    def json(self) -> typing.Dict:
        return {
            'output': self.output.json(),
            'data': self.data.hex(),
            'out_point': self.out_point.json() if self.out_point else None,
            'block_hash': self.block_hash.hex() if self.block_hash else None,
            'block_number': self.block_number,
        }

    def occupied_capacity(self) -> int:
        size = 8 + self.output.lock.occupied_size() + len(self.data)
        if self.output.kype:
            size += self.output.kype.occupied_size()
        return size * pyickb.denomination.ckbytes

    @classmethod
    def rpc_decode(cls, data: typing.Dict) -> typing.Self:
        # Decode an object returned by the indexer's get_cells. The indexer does not report block hashes.
        return Cell(
            CellOutput.rpc_decode(data['output']),
            hexbytes(data['output_data']) if data.get('output_data') else bytearray(),
            OutPoint.rpc_decode(data['out_point']),
            None,
            int(data['block_number'], 16),
        )
