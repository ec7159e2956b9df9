import logging
import pyickb.builder
import pyickb.collector
import pyickb.config
import pyickb.core
import pyickb.dao
import pyickb.economics
import pyickb.errors
import pyickb.rpc
import typing

log = logging.getLogger(__name__)


class Wallet:
    # The everyday flows of one account: move capacity, deposit into the pool, request a withdrawal and complete it.
    # Every flow builds, signs and sends exactly one transaction.

    def __init__(
        self,
        registry: pyickb.config.Registry,
        client: pyickb.rpc.Client,
        lock: pyickb.core.Script,
        signer: typing.Any,
        retry: typing.Optional[pyickb.rpc.Retry] = None,
    ) -> None:
        self.registry = registry
        self.client = client
        self.collector = pyickb.collector.Collector(client)
        self.lock = lock
        self.signer = signer
        self.retry = retry

    def builder(self) -> pyickb.builder.Builder:
        return pyickb.builder.Builder(self.registry, self.client, self.collector, self.lock, self.signer, self.retry)

    def capacity(self) -> int:
        query = pyickb.collector.Query(self.lock, kype_empty=True, data_empty=True)
        return sum([c.output.capacity for c in self.collector.collect(query)])

    def transfer(self, script: pyickb.core.Script, capacity: int) -> pyickb.builder.Sent:
        output = pyickb.core.Cell(pyickb.core.CellOutput(capacity, script, None), bytearray())
        assert capacity >= output.occupied_capacity()
        return self.builder().fund().add('output', 'end', output).build_and_send()

    def deposit(self, amount: int) -> pyickb.builder.Sent:
        # Deposits past the soft cap are discounted, so a large amount is split in equal deposits below it.
        occupied = pyickb.core.Cell(
            pyickb.core.CellOutput(0, self.registry.script('ickb_logic'), self.registry.script('dao')),
            pyickb.dao.deposit_data(),
        ).occupied_capacity()
        if amount < occupied:
            raise pyickb.errors.InsufficientDeposit(f'deposit amount is {amount}, but should be at least {occupied}')
        tip = pyickb.core.Header.rpc_decode(self.client.get_tip_header())
        limit = pyickb.economics.ckb_soft_cap_per_deposit(tip) + occupied
        quantity = -(-amount // limit)
        log.info('deposit %s in %s deposits', amount, quantity)
        return self.builder().fund().deposit(amount // quantity, quantity).build_and_send()

    def withdrawal_request(self) -> pyickb.builder.Sent:
        # Receipts live under the receipt lock, or under the account lock for receipts created by older versions.
        receipt_type = self.registry.script('receipt_type')
        for lock in [self.lock, self.registry.script('receipt_lock', self.lock.hash())]:
            for receipt in self.collector.collect(pyickb.collector.Query(lock, kype=receipt_type)):
                deposits = [c for c in self.collector.collect(pyickb.collector.Query(
                    self.registry.script('ickb_logic'),
                    kype=self.registry.script('dao'),
                    block_range=(receipt.block_number, receipt.block_number + 1),
                )) if c.out_point.tx_hash == receipt.out_point.tx_hash and pyickb.dao.is_deposit(self.registry, c)]
                if not deposits:
                    continue
                return self.builder().fund().withdraw_from(*deposits, receipt=receipt).build_and_send()
        raise pyickb.errors.DepositNotFound('deposit not found')

    def withdraw(self) -> pyickb.builder.Sent:
        b = self.builder().fund()
        if not b.has_withdrawal_phase2():
            raise pyickb.errors.WithdrawalNotFound('withdrawal request not found')
        return b.build_and_send()
