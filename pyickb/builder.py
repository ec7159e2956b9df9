import logging
import pyickb.assembler
import pyickb.cache
import pyickb.collector
import pyickb.config
import pyickb.core
import pyickb.dao
import pyickb.denomination
import pyickb.economics
import pyickb.errors
import pyickb.fee
import pyickb.molecule
import pyickb.rpc
import typing

log = logging.getLogger(__name__)

# Smallest change cells the builder is willing to create. A pure capacity change cell needs 61 CKB of occupied
# capacity, a token change cell 142 CKB once its type script and amount are counted.
change_capacity_minimum = 62 * pyickb.denomination.ckbytes
change_capacity_minimum_token = 142 * pyickb.denomination.ckbytes


class Sent:
    def __init__(
        self,
        transaction: pyickb.core.Transaction,
        fee: int,
        signed_transaction: pyickb.core.Transaction,
        hash: bytearray,
    ) -> None:
        self.transaction = transaction
        self.fee = fee
        self.signed_transaction = signed_transaction
        self.hash = hash

    def __repr__(self) -> str:
        return f'Sent(0x{self.hash.hex()}, fee={self.fee})'


class Builder:
    # Accumulates the input and output cells of one transaction, then balances, assembles, signs and sends it.
    #
    # A builder is meant for a single transaction: its header cache is only valid for as long as the chain it saw
    # does not reorganize.

    def __init__(
        self,
        registry: pyickb.config.Registry,
        client: pyickb.rpc.Client,
        collector: pyickb.collector.Collector,
        lock: pyickb.core.Script,
        signer: typing.Any,
        retry: typing.Optional[pyickb.rpc.Retry] = None,
    ) -> None:
        self.registry = registry
        self.client = client
        self.collector = collector
        self.lock = lock
        self.signer = signer
        self.retry = retry or pyickb.rpc.Retry()
        self.cache = pyickb.cache.HeaderCache(client)
        self.inputs: typing.List[pyickb.core.Cell] = []
        self.outputs: typing.List[pyickb.core.Cell] = []
        self.owner_spent = False

    def add(self, source: str, position: str, *cells: pyickb.core.Cell) -> typing.Self:
        assert source in ['input', 'output']
        assert position in ['start', 'end']
        target = self.inputs if source == 'input' else self.outputs
        if position == 'start':
            target[0:0] = cells
        else:
            target.extend(cells)
        if source == 'input' and not all([c.located() for c in self.inputs]):
            raise pyickb.errors.MissingLocationMetadata('all input cells must have both block hash and block number')
        return self

    def fund(self) -> typing.Self:
        capacity = self.collector.collect(pyickb.collector.Query(self.lock, kype_empty=True, data_empty=True))
        token = []
        if 'sudt' in self.registry and 'owner_lock' in self.registry:
            token = self.collector.collect(pyickb.collector.Query(self.lock, kype=self.registry.token()))
        self.add('input', 'end', *capacity, *token)
        tip = pyickb.core.Header.rpc_decode(self.client.get_tip_header()).epoch()
        mature = []
        for c in self.collector.collect(pyickb.collector.Query(self.lock, kype=self.registry.script('dao'))):
            if pyickb.dao.is_deposit(self.registry, c):
                continue
            if pyickb.dao.since_epoch(self.withdrawal_since(c)) <= tip:
                mature.append(c)
        self.add('input', 'end', *mature)
        log.debug('fund capacity=%s token=%s withdrawal=%s', len(capacity), len(token), len(mature))
        return self

    def deposit(self, amount: int, quantity: int = 1) -> typing.Self:
        assert quantity > 0
        deposit = pyickb.core.Cell(
            pyickb.core.CellOutput(amount, self.registry.script('ickb_logic'), self.registry.script('dao')),
            pyickb.dao.deposit_data(),
        )
        occupied = deposit.occupied_capacity()
        if amount < occupied:
            raise pyickb.errors.InsufficientDeposit(f'deposit amount is {amount}, but should be at least {occupied}')
        if amount - occupied > pyickb.dao.receipt_amount_limit:
            raise pyickb.errors.DepositTooLarge(
                f'deposit amount is {amount}, but should be at most {pyickb.dao.receipt_amount_limit + occupied}')
        owner = None
        if not self.owner_spent:
            # Re-create the owner cell so that exactly one live owner cell exists at any time.
            found = self.collector.collect(pyickb.collector.Query(
                self.registry.script('owner_lock'),
                kype_empty=True,
                data_empty=True,
            ))
            if not found:
                raise pyickb.errors.OwnerCellNotFound('owner cell not found')
            owner = found[0]
        receipt = pyickb.core.Cell(
            pyickb.core.CellOutput(
                0,
                self.registry.script('receipt_lock', self.lock.hash()),
                self.registry.script('receipt_type'),
            ),
            pyickb.dao.receipt_encode(quantity, amount - occupied),
        )
        receipt.output.capacity = receipt.occupied_capacity()
        self.add('output', 'start', *[deposit.clone() for _ in range(quantity)], receipt)
        if owner:
            self.add('input', 'end', owner)
            self.add('output', 'end', owner.clone())
            self.owner_spent = True
        return self

    def withdraw_from(self, *deposits: pyickb.core.Cell, receipt: typing.Optional[pyickb.core.Cell] = None) -> typing.Self:
        withdrawals = []
        for c in deposits:
            if not pyickb.dao.is_deposit(self.registry, c):
                raise pyickb.errors.NotADeposit(f'cell {c.out_point} is not a deposit')
            if not c.located():
                raise pyickb.errors.MissingLocationMetadata('deposit must have both block hash and block number')
            withdrawals.append(pyickb.core.Cell(
                pyickb.core.CellOutput(c.output.capacity, self.lock, self.registry.script('dao')),
                pyickb.dao.withdrawal_data(c.block_number),
            ))
        if receipt:
            self.add('input', 'start', receipt)
        self.add('input', 'start', *deposits)
        self.add('output', 'start', *withdrawals)
        return self

    def has_withdrawal_phase2(self) -> bool:
        return any([pyickb.dao.is_withdrawal_request(self.registry, c) for c in self.inputs])

    def withdrawal_since(self, cell: pyickb.core.Cell) -> int:
        if not pyickb.dao.is_withdrawal_request(self.registry, cell):
            raise pyickb.errors.InvariantViolation(f'cell {cell.out_point} is not a withdrawal request')
        withdraw = self.cache.cell_header(cell)
        deposit = self.cache.header_by_number(pyickb.dao.deposit_block_number(cell))
        return pyickb.dao.since(deposit.epoch(), withdraw.epoch())

    def ckb_delta(self) -> int:
        r = 0
        for c in self.inputs:
            if pyickb.dao.is_withdrawal_request(self.registry, c):
                withdraw = self.cache.cell_header(c)
                deposit = self.cache.header_by_number(pyickb.dao.deposit_block_number(c))
                r += pyickb.dao.maximum_withdraw(c, deposit, withdraw)
            else:
                r += c.output.capacity
        for c in self.outputs:
            r -= c.output.capacity
        return r

    def ickb_delta(self) -> int:
        token = self.registry.token() if 'sudt' in self.registry and 'owner_lock' in self.registry else None
        receipt = self.registry.script('receipt_type') if 'receipt_type' in self.registry else None
        r = 0
        for c in self.inputs:
            if token and pyickb.core.script_eq(c.output.kype, token):
                r += pyickb.molecule.U128.decode(c.data[:16])
            elif pyickb.dao.is_deposit(self.registry, c):
                header = self.cache.cell_header(c)
                r -= pyickb.economics.ickb_value(c.output.capacity - c.occupied_capacity(), header)
            elif receipt and pyickb.core.script_eq(c.output.kype, receipt):
                header = self.cache.cell_header(c)
                r += pyickb.economics.receipt_ickb_value(*pyickb.dao.receipt_decode(c.data), header)
        for c in self.outputs:
            if token and pyickb.core.script_eq(c.output.kype, token):
                r -= pyickb.molecule.U128.decode(c.data[:16])
        return r

    def change(self, ckb_delta: int) -> typing.List[pyickb.core.Cell]:
        ickb_delta = self.ickb_delta()
        if ckb_delta == 0 and ickb_delta == 0:
            return []
        if ckb_delta >= change_capacity_minimum and ickb_delta == 0:
            return [pyickb.core.Cell(pyickb.core.CellOutput(ckb_delta, self.lock, None), bytearray())]
        if ckb_delta >= change_capacity_minimum_token and ickb_delta > 0:
            return [pyickb.core.Cell(
                pyickb.core.CellOutput(ckb_delta, self.lock, self.registry.token()),
                pyickb.molecule.U128.encode(ickb_delta),
            )]
        raise pyickb.errors.InsufficientFunds(
            f'not enough funds to execute the transaction, ckb delta {ckb_delta}, ickb delta {ickb_delta}',
            {'ckb_delta': ckb_delta, 'ickb_delta': ickb_delta},
        )

    def build(self, ckb_delta: int) -> typing.Tuple[pyickb.assembler.Skeleton, pyickb.core.Transaction]:
        skeleton = pyickb.assembler.Skeleton(self.inputs, self.outputs + self.change(ckb_delta))
        pyickb.assembler.add_cell_deps(skeleton, self.registry)
        pyickb.assembler.add_header_deps(skeleton, self.registry, self.cache.block_hash)
        pyickb.assembler.add_input_sinces(skeleton, self.registry, self.withdrawal_since)
        pyickb.assembler.add_witness_placeholders(skeleton, self.registry, self.cache.block_hash)
        return skeleton, self.signer.sign(skeleton, self.lock)

    def build_and_send(self, fee_rate: int = pyickb.fee.default_rate) -> Sent:
        ckb_delta = self.ckb_delta()
        _, signed = self.build(ckb_delta)
        fee = pyickb.fee.transaction_fee(signed, fee_rate)
        skeleton, signed = self.build(ckb_delta - fee)
        log.info('send fee=%s inputs=%s outputs=%s', fee, len(skeleton.inputs), len(skeleton.outputs))
        hash = self.client.send_transaction(signed.rpc(), 'passthrough')
        log.info('sent %s', hash)
        self.client.wait(hash, self.retry)
        return Sent(skeleton.transaction(), fee, signed, pyickb.core.hexbytes(hash))
