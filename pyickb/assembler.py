# Turns an ordered list of input and output cells into a complete transaction, one field at a time. Every step only
# works on an empty field: running a step twice would append indices computed from a stale state.
import pyickb.config
import pyickb.core
import pyickb.dao
import pyickb.errors
import pyickb.molecule
import typing

# Length of a secp256k1 recoverable signature, the size a placeholder must reserve for the signer.
signature_size = 65


class Skeleton:
    def __init__(self, inputs: typing.List[pyickb.core.Cell], outputs: typing.List[pyickb.core.Cell]) -> None:
        self.inputs = list(inputs)
        self.outputs = list(outputs)
        self.cell_deps: typing.List[pyickb.core.CellDep] = []
        self.header_deps: typing.List[bytearray] = []
        self.input_sinces: typing.Dict[int, int] = {}
        self.witnesses: typing.List[bytearray] = []

    def transaction(self) -> pyickb.core.Transaction:
        raw = pyickb.core.RawTransaction(
            0,
            list(self.cell_deps),
            list(self.header_deps),
            [pyickb.core.CellInput(self.input_sinces.get(i, 0), c.out_point) for i, c in enumerate(self.inputs)],
            [c.output for c in self.outputs],
            [c.data for c in self.outputs],
        )
        return pyickb.core.Transaction(raw, list(self.witnesses))


def add_cell_deps(skeleton: Skeleton, registry: pyickb.config.Registry) -> Skeleton:
    if skeleton.cell_deps:
        raise pyickb.errors.AlreadyPopulated('cell deps can only be added to an empty cell deps structure')
    skeleton.cell_deps.extend(registry.cell_deps())
    return skeleton


def add_header_deps(
    skeleton: Skeleton,
    registry: pyickb.config.Registry,
    block_hash: typing.Callable[[int], bytearray],
) -> Skeleton:
    if skeleton.header_deps:
        raise pyickb.errors.AlreadyPopulated('header deps can only be added to an empty header deps structure')
    # Dicts keep insertion order, which is the order of the header deps.
    unique: typing.Dict[bytes, bytearray] = {}
    for c in skeleton.inputs:
        if not c.located():
            raise pyickb.errors.MissingLocationMetadata('cell must have both block hash and block number populated')
        if not pyickb.dao.is_dao(registry, c):
            continue
        unique.setdefault(bytes(c.block_hash), c.block_hash)
        if pyickb.dao.is_withdrawal_request(registry, c):
            h = block_hash(pyickb.dao.deposit_block_number(c))
            unique.setdefault(bytes(h), h)
    skeleton.header_deps.extend(unique.values())
    return skeleton


def add_input_sinces(
    skeleton: Skeleton,
    registry: pyickb.config.Registry,
    since: typing.Callable[[pyickb.core.Cell], int],
) -> Skeleton:
    if skeleton.input_sinces:
        raise pyickb.errors.AlreadyPopulated('input sinces can only be added to an empty input sinces structure')
    for i, c in enumerate(skeleton.inputs):
        if pyickb.dao.is_withdrawal_request(registry, c):
            skeleton.input_sinces[i] = since(c)
    return skeleton


def add_witness_placeholders(
    skeleton: Skeleton,
    registry: pyickb.config.Registry,
    block_hash: typing.Callable[[int], bytearray],
) -> Skeleton:
    if skeleton.witnesses:
        raise pyickb.errors.AlreadyPopulated('witnesses can only be added to an empty witnesses structure')
    standard = registry.standard_locks()
    seen = set()
    for c in skeleton.inputs:
        witness = pyickb.core.WitnessArgs(bytearray(), None, None)
        lock_hash = bytes(c.output.lock.hash())
        if lock_hash not in seen:
            seen.add(lock_hash)
            # Only the first input of a lock group carries the signature.
            if any([c.output.lock.code_hash == e.code_hash and c.output.lock.hash_type == e.hash_type for e in standard]):
                witness.lock = bytearray(signature_size)
        if pyickb.dao.is_withdrawal_request(registry, c):
            h = block_hash(pyickb.dao.deposit_block_number(c))
            if h not in skeleton.header_deps:
                raise pyickb.errors.HeaderDepNotFound(f'block hash 0x{h.hex()} not found in header deps')
            witness.input_type = pyickb.molecule.U64.encode(skeleton.header_deps.index(h))
        skeleton.witnesses.append(witness.molecule())
    return skeleton
